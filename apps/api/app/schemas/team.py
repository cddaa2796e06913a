"""Team invitation schemas."""

from datetime import datetime
from typing import Any
from uuid import UUID

from pydantic import BaseModel


class InviteRequest(BaseModel):
    """
    Request schema for inviting a team member.

    Fields are optional here so missing values surface as the service's
    "required" validation message.
    """
    proposal_id: UUID | None = None
    member_email: str | None = None
    role: str | None = None
    rate_range: dict[str, Any] | None = None


class InvitationRead(BaseModel):
    id: UUID
    proposal_id: UUID
    member_email: str
    role: str
    rate_range: dict[str, Any] | None
    status: str
    member_profile_id: UUID | None
    invited_at: datetime
    responded_at: datetime | None

    model_config = {"from_attributes": True}


class InviteResponse(BaseModel):
    invitation: InvitationRead
    invitation_link: str
    email_sent: bool


class TeamResponse(BaseModel):
    proposal_id: UUID
    proposal_title: str
    is_owner: bool
    members: list[InvitationRead]


class MyInvitationRead(InvitationRead):
    proposal_title: str


class InvitationPublicRead(BaseModel):
    """Details shown on the accept page before sign-in."""
    id: UUID
    proposal_title: str
    member_email: str
    role: str
    status: str
    invited_at: datetime


class RespondRequest(BaseModel):
    token: str | None = None
