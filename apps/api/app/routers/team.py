"""Proposal team invitation endpoints."""

import logging
from uuid import UUID

from fastapi import APIRouter, Depends, Request
from sqlalchemy.orm import Session

from app.core.deps import get_current_user, get_db
from app.core.errors import ValidationError
from app.core.rate_limit import INVITATION_LIMIT, limiter
from app.db.models import User
from app.schemas.team import (
    InvitationPublicRead,
    InvitationRead,
    InviteRequest,
    InviteResponse,
    MyInvitationRead,
    RespondRequest,
    TeamResponse,
)
from app.services import email_service, profile_service, team_service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/team", tags=["team"])


# =============================================================================
# Owner actions
# =============================================================================

@router.post("/invite", response_model=InviteResponse, status_code=201)
@limiter.limit(INVITATION_LIMIT)
async def invite_member(
    request: Request,
    body: InviteRequest,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Invite (or re-invite after a decline) a member to a proposal team."""
    if body.proposal_id is None:
        raise ValidationError("proposal_id, member_email and role are required")
    invitation = team_service.invite_member(
        db,
        user,
        body.proposal_id,
        member_email=body.member_email or "",
        role=body.role or "",
        rate_range=body.rate_range,
    )
    db.commit()

    link = team_service.invitation_link(invitation)
    profile = profile_service.get_profile_for_user(db, user.id)
    # Best-effort: the invitation stands even if the email does not go out
    email_sent, error = await email_service.send_team_invitation(
        invitation.member_email,
        profile.company_name if profile else user.email,
        invitation.proposal.title,
        invitation.role,
        link,
    )
    if not email_sent:
        logger.warning("Team invitation email not sent: %s", error)

    return InviteResponse(
        invitation=InvitationRead.model_validate(invitation),
        invitation_link=link,
        email_sent=email_sent,
    )


@router.get("/proposal/{proposal_id}", response_model=TeamResponse)
def get_team(proposal_id: UUID, user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    proposal, invitations = team_service.get_team(db, user, proposal_id)
    return TeamResponse(
        proposal_id=proposal.id,
        proposal_title=proposal.title,
        is_owner=proposal.user_id == user.id,
        members=[InvitationRead.model_validate(inv) for inv in invitations],
    )


@router.delete("/proposal/{proposal_id}/member/{member_id}")
def remove_member(
    proposal_id: UUID,
    member_id: UUID,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    team_service.remove_member(db, user, proposal_id, member_id)
    db.commit()
    return {"success": True}


# =============================================================================
# Invitee actions
# =============================================================================

@router.get("/invitations", response_model=list[MyInvitationRead])
def my_invitations(user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    return [
        MyInvitationRead(
            **InvitationRead.model_validate(inv).model_dump(),
            proposal_title=inv.proposal.title,
        )
        for inv in team_service.list_my_invitations(db, user)
    ]


@router.get("/invitations/token/{token}", response_model=InvitationPublicRead)
def invitation_by_token(token: str, db: Session = Depends(get_db)):
    """Public invitation details for the accept page."""
    invitation = team_service.get_invitation_by_token(db, token)
    return InvitationPublicRead(
        id=invitation.id,
        proposal_title=invitation.proposal.title,
        member_email=invitation.member_email,
        role=invitation.role,
        status=invitation.status,
        invited_at=invitation.invited_at,
    )


async def _respond(db: Session, user: User, invitation_id: UUID, body: RespondRequest | None, accept: bool):
    invitation = team_service.respond_to_invitation(
        db, user, invitation_id, accept=accept, token=body.token if body else None
    )
    db.commit()

    owner_email = team_service.proposal_owner_email(db, invitation)
    if owner_email:
        ok, error = await email_service.send_invitation_response(
            owner_email, invitation.member_email, invitation.proposal.title, accept
        )
        if not ok:
            logger.warning("Invitation response email not sent: %s", error)
    return InvitationRead.model_validate(invitation)


@router.post("/invitations/{invitation_id}/accept", response_model=InvitationRead)
async def accept_invitation(
    invitation_id: UUID,
    body: RespondRequest | None = None,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    return await _respond(db, user, invitation_id, body, accept=True)


@router.post("/invitations/{invitation_id}/decline", response_model=InvitationRead)
async def decline_invitation(
    invitation_id: UUID,
    body: RespondRequest | None = None,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    return await _respond(db, user, invitation_id, body, accept=False)
