"""
Credentials - password hashing, typed JWTs and input sanitizing.

Every token carries a ``type`` claim (``access`` or ``refresh``); callers
resolve a token through ``token_subject`` with the type they expect, so a
refresh token can never authenticate a request and vice versa.
"""
from datetime import datetime, timedelta, timezone

import bleach
from jose import JWTError, jwt
from passlib.context import CryptContext

from app.core.config import settings

ACCESS_TOKEN = "access"
REFRESH_TOKEN = "refresh"

pwd_context = CryptContext(schemes=["pbkdf2_sha256"], deprecated="auto")


# ── Passwords ─────────────────────────────────────────────
def hash_password(password: str) -> str:
    return pwd_context.hash(password)


def verify_password(plain_password: str, hashed_password: str) -> bool:
    return pwd_context.verify(plain_password, hashed_password)


# ── Tokens ────────────────────────────────────────────────
def _issue(user_id: int, token_type: str, minutes: int) -> str:
    expire = datetime.now(timezone.utc) + timedelta(minutes=minutes)
    claims = {"sub": str(user_id), "exp": expire, "type": token_type}
    return jwt.encode(claims, settings.secret_key, algorithm=settings.algorithm)


def create_access_token(user_id: int) -> str:
    return _issue(user_id, ACCESS_TOKEN, settings.access_token_expire_minutes)


def create_refresh_token(user_id: int) -> str:
    return _issue(user_id, REFRESH_TOKEN, settings.refresh_token_expire_minutes)


def token_pair(user_id: int) -> dict:
    return {
        "access_token": create_access_token(user_id),
        "refresh_token": create_refresh_token(user_id),
        "token_type": "bearer",
    }


def token_subject(token: str, expected_type: str) -> int:
    """Return the user id of a valid token of ``expected_type``.

    Raises ``ValueError`` for a bad signature, an expired token, a token of
    the other type, or a missing/non-numeric subject.
    """
    try:
        claims = jwt.decode(token, settings.secret_key, algorithms=[settings.algorithm])
    except JWTError as exc:
        raise ValueError("Invalid token") from exc

    if claims.get("type") != expected_type:
        raise ValueError(f"Expected a {expected_type} token")
    subject = claims.get("sub")
    if subject is None or not str(subject).isdigit():
        raise ValueError("Token has no user subject")
    return int(subject)


# ── Input ─────────────────────────────────────────────────
def sanitize_input(text: str | None) -> str | None:
    """Strip markup from user-supplied text."""
    if not text:
        return text
    return bleach.clean(text, tags=[], strip=True)
