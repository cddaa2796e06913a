"""Account registration, credential checks and session issuance."""

import logging
from datetime import datetime, timedelta, timezone
from uuid import UUID

import jwt
from sqlalchemy.orm import Session

from app.core.config import settings
from app.core.errors import ConflictError, UnauthorizedError, ValidationError
from app.core.security import (
    TOKEN_TYPE_REFRESH,
    create_access_token,
    create_refresh_token,
    create_reset_token,
    decode_token,
    hash_password,
    verify_password,
)
from app.db.models import User
from app.services import profile_service
from app.utils.normalization import is_valid_email, normalize_email

logger = logging.getLogger(__name__)

MIN_PASSWORD_LENGTH = 8


def _validate_password(password: str | None) -> str:
    if not password or len(password) < MIN_PASSWORD_LENGTH:
        raise ValidationError(f"Password must be at least {MIN_PASSWORD_LENGTH} characters")
    return password


def get_user_by_email(db: Session, email: str) -> User | None:
    return db.query(User).filter(User.email == normalize_email(email)).first()


def register_user(db: Session, email: str, password: str, company_name: str | None = None) -> User:
    """
    Create a user and their default company profile.

    Raises:
        ValidationError: bad email or short password
        ConflictError: email already registered
    """
    if not is_valid_email(email):
        raise ValidationError("Invalid email format")
    _validate_password(password)
    if get_user_by_email(db, email):
        raise ConflictError("An account with this email already exists")

    user = User(email=normalize_email(email), password_hash=hash_password(password))
    db.add(user)
    db.flush()
    profile = profile_service.create_default_profile(db, user)
    if company_name:
        profile.company_name = company_name
    logger.info("User registered", extra={"user_id": str(user.id)})
    return user


def authenticate(db: Session, email: str, password: str) -> User:
    user = get_user_by_email(db, email or "")
    if not user or not verify_password(password or "", user.password_hash):
        raise UnauthorizedError("Invalid email or password")
    user.last_login_at = datetime.now(timezone.utc)
    return user


def issue_session(user: User) -> dict:
    """Access + refresh token pair for a user."""
    expires_in = settings.ACCESS_TOKEN_EXPIRES_MINUTES * 60
    return {
        "access_token": create_access_token(user.id, user.token_version),
        "refresh_token": create_refresh_token(user.id, user.token_version),
        "token_type": "bearer",
        "expires_in": expires_in,
        "expires_at": int((datetime.now(timezone.utc) + timedelta(seconds=expires_in)).timestamp()),
    }


def refresh_session(db: Session, refresh_token: str) -> tuple[User, dict]:
    try:
        payload = decode_token(refresh_token, (TOKEN_TYPE_REFRESH,))
        user_id = UUID(str(payload.get("sub")))
    except (jwt.InvalidTokenError, ValueError):
        raise UnauthorizedError("Invalid or expired refresh token")

    user = db.query(User).filter(User.id == user_id).first()
    if not user or user.token_version != payload.get("token_version"):
        raise UnauthorizedError("Invalid or expired refresh token")
    return user, issue_session(user)


def revoke_sessions(user: User) -> None:
    """Invalidate every outstanding access/refresh/reset token."""
    user.token_version += 1


def create_password_reset_link(db: Session, email: str) -> tuple[User, str] | None:
    """Reset link for a registered email, or None (callers must not reveal which)."""
    user = get_user_by_email(db, email or "")
    if not user:
        return None
    token = create_reset_token(user.id, user.token_version)
    return user, f"{settings.FRONTEND_URL}/reset-password?token={token}"


def reset_password(user: User, new_password: str) -> None:
    user.password_hash = hash_password(_validate_password(new_password))
    revoke_sessions(user)
