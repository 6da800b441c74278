"""
Users API - registration, login, token refresh and profile.
"""
import logging

from fastapi import APIRouter, Depends, HTTPException, Request, status
from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.deps import get_current_user
from app.core.auth_safety import (
    login_is_allowed,
    register_failed_login,
    register_successful_login,
)
from app.core.exceptions import AuthenticationError, ValidationError
from app.core.rate_limit import limiter
from app.core.security import (
    REFRESH_TOKEN,
    hash_password,
    sanitize_input,
    token_pair,
    token_subject,
    verify_password,
)
from app.db.session import get_db
from app.models.user import User
from app.schemas.auth import (
    LoginRequest,
    RefreshTokenRequest,
    TokenResponse,
    UserCreate,
    UserOut,
    UserProfileUpdate,
)

router = APIRouter(prefix="/users", tags=["users"])
security_logger = logging.getLogger("knowledgeconnect.security")

PROFILE_TEXT_FIELDS = {
    "full_name", "institute_name", "country", "location", "qualification", "course", "bio",
}


def _safe_client_ip(request: Request) -> str:
    if not request.client:
        return "unknown"
    return request.client.host or "unknown"


def _identifier(request: Request, email: str) -> str:
    return f"{_safe_client_ip(request)}:{email.lower().strip()}"


def _token_pair(user: User) -> dict:
    return {**token_pair(user.id), "user": user}


async def _email_taken(db: AsyncSession, email: str, exclude_id: int | None = None) -> bool:
    stmt = select(User.id).where(func.lower(User.email) == email.lower())
    if exclude_id is not None:
        stmt = stmt.where(User.id != exclude_id)
    result = await db.execute(stmt)
    return result.first() is not None


@router.post("/register", response_model=TokenResponse, status_code=status.HTTP_201_CREATED)
@limiter.limit("5/minute")
async def register(request: Request, payload: UserCreate, db: AsyncSession = Depends(get_db)):
    if await _email_taken(db, payload.email):
        raise ValidationError("Email already registered")

    fields = payload.model_dump(exclude={"password"})
    for key in PROFILE_TEXT_FIELDS & fields.keys():
        fields[key] = sanitize_input(fields[key])
    user = User(password_hash=hash_password(payload.password), **fields)
    try:
        db.add(user)
        await db.commit()
    except IntegrityError as exc:
        # Unique email index: a concurrent registration got there first.
        await db.rollback()
        raise ValidationError("Email already registered") from exc
    await db.refresh(user)

    security_logger.info("auth_register ip=%s user_id=%s", _safe_client_ip(request), user.id)
    return _token_pair(user)


@router.post("/login", response_model=TokenResponse)
@limiter.limit("10/minute")
async def login(request: Request, payload: LoginRequest, db: AsyncSession = Depends(get_db)):
    ident = _identifier(request, payload.email)
    allowed, retry_after = login_is_allowed(ident)
    if not allowed:
        security_logger.warning(
            "auth_login_locked ip=%s email=%s retry_after=%s",
            _safe_client_ip(request), payload.email, retry_after,
        )
        raise HTTPException(
            status_code=429,
            detail=f"Too many failed attempts. Try again in {retry_after} seconds.",
        )

    result = await db.execute(select(User).where(func.lower(User.email) == payload.email))
    user = result.scalar_one_or_none()

    if not user or not verify_password(payload.password, user.password_hash):
        locked_now, retry_after = register_failed_login(ident)
        security_logger.warning(
            "auth_login_failed ip=%s email=%s locked=%s",
            _safe_client_ip(request), payload.email, locked_now,
        )
        if locked_now:
            raise HTTPException(
                status_code=429,
                detail=f"Too many failed attempts. Try again in {retry_after} seconds.",
            )
        raise AuthenticationError("Invalid login credentials")

    register_successful_login(ident)
    security_logger.info("auth_login_success ip=%s user_id=%s", _safe_client_ip(request), user.id)
    return _token_pair(user)


@router.post("/refresh", response_model=TokenResponse)
@limiter.limit("20/minute")
async def refresh(request: Request, payload: RefreshTokenRequest, db: AsyncSession = Depends(get_db)):
    try:
        user_id = token_subject(payload.refresh_token, REFRESH_TOKEN)
    except ValueError:
        raise AuthenticationError("Invalid refresh token")

    result = await db.execute(select(User).where(User.id == user_id))
    user = result.scalar_one_or_none()
    if not user:
        raise AuthenticationError("Invalid refresh token")
    return _token_pair(user)


@router.get("/profile", response_model=UserOut)
async def get_profile(current_user: User = Depends(get_current_user)):
    return current_user


@router.patch("/profile", response_model=UserOut)
async def update_profile(
    payload: UserProfileUpdate,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    updates = payload.model_dump(exclude_none=True)
    if "email" in updates and updates["email"] != current_user.email:
        if await _email_taken(db, updates["email"], exclude_id=current_user.id):
            raise ValidationError("Email already in use")

    for key, value in updates.items():
        if key in PROFILE_TEXT_FIELDS:
            value = sanitize_input(value)
        setattr(current_user, key, value)

    try:
        db.add(current_user)
        await db.commit()
    except IntegrityError as exc:
        await db.rollback()
        raise ValidationError("Email already in use") from exc
    await db.refresh(current_user)
    return current_user
