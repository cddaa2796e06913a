"""Security utilities for JWT tokens and password hashing."""

import secrets
from datetime import datetime, timedelta, timezone
from uuid import UUID

import bcrypt
import jwt

from app.core.config import settings

TOKEN_TYPE_ACCESS = "access"
TOKEN_TYPE_REFRESH = "refresh"
TOKEN_TYPE_RESET = "reset"


# =============================================================================
# Passwords
# =============================================================================

def hash_password(password: str) -> str:
    return bcrypt.hashpw(password.encode("utf-8"), bcrypt.gensalt()).decode("utf-8")


def verify_password(password: str, password_hash: str) -> bool:
    try:
        return bcrypt.checkpw(password.encode("utf-8"), password_hash.encode("utf-8"))
    except ValueError:
        # Malformed stored hash
        return False


# =============================================================================
# Tokens (JWT bearer)
# =============================================================================

def _encode(user_id: UUID, token_type: str, token_version: int, lifetime: timedelta) -> str:
    now = datetime.now(timezone.utc)
    payload = {
        "sub": str(user_id),
        "type": token_type,
        "token_version": token_version,
        "jti": secrets.token_hex(8),
        "iat": now,
        "exp": now + lifetime,
    }
    return jwt.encode(payload, settings.JWT_SECRET, algorithm="HS256")


def create_access_token(user_id: UUID, token_version: int) -> str:
    """
    Create signed access JWT.

    Always signs with current secret (JWT_SECRET).
    """
    return _encode(
        user_id,
        TOKEN_TYPE_ACCESS,
        token_version,
        timedelta(minutes=settings.ACCESS_TOKEN_EXPIRES_MINUTES),
    )


def create_refresh_token(user_id: UUID, token_version: int) -> str:
    return _encode(
        user_id,
        TOKEN_TYPE_REFRESH,
        token_version,
        timedelta(days=settings.REFRESH_TOKEN_EXPIRES_DAYS),
    )


def create_reset_token(user_id: UUID, token_version: int) -> str:
    return _encode(
        user_id,
        TOKEN_TYPE_RESET,
        token_version,
        timedelta(minutes=settings.RESET_TOKEN_EXPIRES_MINUTES),
    )


def decode_token(token: str, expected_types: tuple[str, ...] = (TOKEN_TYPE_ACCESS,)) -> dict:
    """
    Decode and verify a JWT.

    Tries current secret first, then previous (for rotation support).

    Raises:
        jwt.InvalidTokenError: If token invalid with all secrets or of the wrong type
    """
    last_error: jwt.InvalidTokenError | None = None
    for secret in settings.jwt_secrets:
        try:
            payload = jwt.decode(token, secret, algorithms=["HS256"])
            break
        except jwt.InvalidTokenError as e:
            last_error = e
    else:
        raise last_error or jwt.InvalidTokenError("Invalid token")

    if payload.get("type") not in expected_types:
        raise jwt.InvalidTokenError("Unexpected token type")
    return payload


def generate_invitation_token() -> str:
    """32 random bytes as 64 hex characters."""
    return secrets.token_hex(32)
