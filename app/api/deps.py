from fastapi import Depends
from fastapi.security import OAuth2PasswordBearer
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.exceptions import AuthenticationError
from app.core.security import ACCESS_TOKEN, token_subject
from app.db.session import get_db
from app.models.user import User

# auto_error=False so a missing header is reported through AuthenticationError
oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/api/users/login", auto_error=False)


async def get_current_user(
    db: AsyncSession = Depends(get_db),
    token: str | None = Depends(oauth2_scheme),
) -> User:
    if not token:
        raise AuthenticationError("Not authenticated")
    try:
        user_id = token_subject(token, ACCESS_TOKEN)
    except ValueError:
        raise AuthenticationError()

    # Async query execution
    stmt = select(User).where(User.id == user_id)
    result = await db.execute(stmt)
    user = result.scalar_one_or_none()

    if user is None:
        raise AuthenticationError()

    return user
