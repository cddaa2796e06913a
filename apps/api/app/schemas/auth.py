"""Auth-related Pydantic schemas."""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel

from app.schemas.profile import ProfileRead


class RegisterRequest(BaseModel):
    """
    Request schema for registration.

    Email shape and password length are checked by auth_service so the
    error messages match the rest of the API.
    """
    email: str
    password: str
    company_name: str | None = None


class LoginRequest(BaseModel):
    email: str
    password: str


class RefreshRequest(BaseModel):
    refresh_token: str


class ForgotPasswordRequest(BaseModel):
    email: str


class ResetPasswordRequest(BaseModel):
    password: str


class UserRead(BaseModel):
    """Response schema for reading a user."""
    id: UUID
    email: str
    created_at: datetime
    last_login_at: datetime | None

    model_config = {"from_attributes": True}


class SessionResponse(BaseModel):
    access_token: str
    refresh_token: str
    token_type: str
    expires_in: int
    expires_at: int
    user: UserRead


class MeResponse(BaseModel):
    user: UserRead
    profile: ProfileRead | None
