"""Authentication router: email/password accounts and bearer sessions."""

import logging

from fastapi import APIRouter, Depends, Request
from sqlalchemy.orm import Session

from app.core.deps import authenticate_token, get_bearer_token, get_current_user, get_db
from app.core.security import TOKEN_TYPE_ACCESS, TOKEN_TYPE_RESET
from app.db.models import User
from app.schemas.auth import (
    ForgotPasswordRequest,
    LoginRequest,
    MeResponse,
    RefreshRequest,
    RegisterRequest,
    ResetPasswordRequest,
    SessionResponse,
    UserRead,
)
from app.schemas.profile import ProfileRead
from app.services import auth_service, email_service, profile_service

# Rate limiting
from app.core.rate_limit import AUTH_LIMIT, limiter

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auth", tags=["auth"])

FORGOT_PASSWORD_MESSAGE = "If an account exists for that email, a reset link has been sent."


def _session_response(user: User) -> SessionResponse:
    return SessionResponse(**auth_service.issue_session(user), user=UserRead.model_validate(user))


# =============================================================================
# Sessions
# =============================================================================

@router.post("/register", response_model=SessionResponse, status_code=201)
@limiter.limit(AUTH_LIMIT)
def register(request: Request, body: RegisterRequest, db: Session = Depends(get_db)):
    """Create an account plus its default company profile and sign in."""
    user = auth_service.register_user(db, body.email, body.password, body.company_name)
    db.commit()
    return _session_response(user)


@router.post("/login", response_model=SessionResponse)
@limiter.limit(AUTH_LIMIT)
def login(request: Request, body: LoginRequest, db: Session = Depends(get_db)):
    user = auth_service.authenticate(db, body.email, body.password)
    db.commit()
    return _session_response(user)


@router.post("/refresh", response_model=SessionResponse)
@limiter.limit(AUTH_LIMIT)
def refresh(request: Request, body: RefreshRequest, db: Session = Depends(get_db)):
    """Exchange a refresh token for a new session."""
    user, session = auth_service.refresh_session(db, body.refresh_token)
    return SessionResponse(**session, user=UserRead.model_validate(user))


@router.post("/logout")
def logout(user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    """Revoke every outstanding token for the caller."""
    auth_service.revoke_sessions(user)
    db.commit()
    return {"success": True}


@router.get("/me", response_model=MeResponse)
def me(user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    profile = profile_service.get_profile_for_user(db, user.id)
    return MeResponse(
        user=UserRead.model_validate(user),
        profile=ProfileRead.model_validate(profile) if profile else None,
    )


# =============================================================================
# Password reset
# =============================================================================

@router.post("/forgot-password")
@limiter.limit(AUTH_LIMIT)
async def forgot_password(request: Request, body: ForgotPasswordRequest, db: Session = Depends(get_db)):
    """Always succeeds; the reset email is only sent for registered addresses."""
    result = auth_service.create_password_reset_link(db, body.email)
    if result:
        user, link = result
        ok, error = await email_service.send_password_reset(user.email, link)
        if not ok:
            logger.warning("Password reset email not sent: %s", error)
    return {"success": True, "message": FORGOT_PASSWORD_MESSAGE}


@router.post("/reset-password")
@limiter.limit(AUTH_LIMIT)
def reset_password(request: Request, body: ResetPasswordRequest, db: Session = Depends(get_db)):
    """Set a new password using a reset (or access) bearer token."""
    user = authenticate_token(
        db, get_bearer_token(request), (TOKEN_TYPE_RESET, TOKEN_TYPE_ACCESS)
    )
    auth_service.reset_password(user, body.password)
    db.commit()
    return {"success": True, "message": "Password updated. Please sign in again."}
