"""FastAPI dependencies for authentication and database access."""

from typing import Generator
from uuid import UUID

import jwt
from fastapi import Depends, HTTPException, Request
from sqlalchemy.orm import Session

from app.core.security import TOKEN_TYPE_ACCESS, decode_token
from app.db.session import SessionLocal

BEARER_PREFIX = "bearer "


def get_db() -> Generator[Session, None, None]:
    """
    Database session dependency.

    Yields a database session and ensures it's closed after the request.
    """
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def get_bearer_token(request: Request) -> str:
    """
    Extract the token from `Authorization: Bearer <jwt>`.

    Raises:
        HTTPException 401: Header missing or not a bearer credential
    """
    header = request.headers.get("Authorization", "")
    if not header.lower().startswith(BEARER_PREFIX):
        raise HTTPException(status_code=401, detail="No token provided")
    token = header[len(BEARER_PREFIX):].strip()
    if not token:
        raise HTTPException(status_code=401, detail="No token provided")
    return token


def authenticate_token(db: Session, token: str, expected_types: tuple[str, ...] = (TOKEN_TYPE_ACCESS,)):
    """
    Resolve a token to its user.

    Validates:
    - JWT is valid, unexpired and of an expected type
    - User exists
    - Token version matches (for revocation support)

    Raises:
        HTTPException 401: Authentication failed
    """
    # Import here to avoid circular imports
    from app.db.models import User

    try:
        payload = decode_token(token, expected_types)
        user_id = UUID(str(payload.get("sub")))
    except (jwt.InvalidTokenError, ValueError):
        raise HTTPException(status_code=401, detail="Invalid or expired token")

    user = db.query(User).filter(User.id == user_id).first()
    if not user:
        raise HTTPException(status_code=401, detail="User not found")

    if user.token_version != payload.get("token_version"):
        raise HTTPException(status_code=401, detail="Session revoked")

    return user


def get_current_user(request: Request, db: Session = Depends(get_db)):
    """
    Get authenticated user from the bearer access token.

    This is the PRIMARY auth dependency for protected endpoints.
    """
    user = authenticate_token(db, get_bearer_token(request))
    request.state.user_id = str(user.id)
    return user
