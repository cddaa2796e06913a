"""Proposal team invitations.

State machine per (proposal, member_email):

    invited -> accepted   (terminal)
    invited -> declined
    declined -> invited   (re-invite with a fresh token)
"""

import logging
from datetime import datetime, timezone
from uuid import UUID

from sqlalchemy.orm import Session

from app.core.config import settings
from app.core.errors import ConflictError, ForbiddenError, NotFoundError, ValidationError
from app.core.security import generate_invitation_token
from app.db.enums import InvitationStatus
from app.db.models import Proposal, ProposalTeamInvitation, User
from app.services import profile_service
from app.utils.normalization import is_valid_email, normalize_email

logger = logging.getLogger(__name__)


class AlreadyRespondedError(ConflictError):
    def __init__(self, message: str = "Invitation has already been responded to"):
        super().__init__(message)


def invitation_link(invitation: ProposalTeamInvitation) -> str:
    return f"{settings.FRONTEND_URL}/invitations/accept?token={invitation.invitation_token}"


def _owned_proposal(db: Session, user: User, proposal_id: UUID) -> Proposal:
    proposal = db.query(Proposal).filter(Proposal.id == proposal_id).first()
    if not proposal:
        raise NotFoundError("Proposal not found")
    if proposal.user_id != user.id:
        raise ForbiddenError("Only the proposal owner can manage its team")
    return proposal


def _validate_rate_range(rate_range: dict | None) -> dict | None:
    if rate_range is None:
        return None
    if not isinstance(rate_range, dict):
        raise ValidationError("rate_range must be an object with low and high")
    low, high = rate_range.get("low"), rate_range.get("high")
    for value in (low, high):
        if value is not None and not isinstance(value, (int, float)):
            raise ValidationError("rate_range values must be numbers")
    if low is not None and high is not None and low > high:
        raise ValidationError("rate_range low cannot exceed high")
    return {"low": low, "high": high}


def invite_member(
    db: Session,
    user: User,
    proposal_id: UUID,
    *,
    member_email: str,
    role: str,
    rate_range: dict | None = None,
) -> ProposalTeamInvitation:
    """
    Invite someone to a proposal team, or re-invite after a decline.

    Raises:
        ValidationError: missing fields or bad email
        NotFoundError / ForbiddenError: proposal missing / not owned
        ConflictError: already invited or already a member
    """
    if not member_email or not role or not role.strip():
        raise ValidationError("proposal_id, member_email and role are required")
    if not is_valid_email(member_email):
        raise ValidationError("Invalid email format")
    proposal = _owned_proposal(db, user, proposal_id)
    email = normalize_email(member_email)
    rates = _validate_rate_range(rate_range)

    invitation = (
        db.query(ProposalTeamInvitation)
        .filter(
            ProposalTeamInvitation.proposal_id == proposal.id,
            ProposalTeamInvitation.member_email == email,
        )
        .first()
    )
    if invitation is not None:
        if invitation.status == InvitationStatus.INVITED.value:
            raise ConflictError("This member has already been invited")
        if invitation.status == InvitationStatus.ACCEPTED.value:
            raise ConflictError("This member is already on the team")
        invitation.status = InvitationStatus.INVITED.value
        invitation.responded_at = None
        invitation.role = role.strip()
        invitation.rate_range = rates
        invitation.invitation_token = generate_invitation_token()
        invitation.invited_at = datetime.now(timezone.utc)
    else:
        invitation = ProposalTeamInvitation(
            proposal_id=proposal.id,
            member_email=email,
            role=role.strip(),
            rate_range=rates,
            status=InvitationStatus.INVITED.value,
            invitation_token=generate_invitation_token(),
        )
        db.add(invitation)
    db.flush()
    logger.info(
        "Team invitation issued",
        extra={"proposal_id": str(proposal.id), "invitation_id": str(invitation.id)},
    )
    return invitation


def _is_accepted_member(db: Session, user: User, proposal_id: UUID) -> bool:
    return (
        db.query(ProposalTeamInvitation.id)
        .filter(
            ProposalTeamInvitation.proposal_id == proposal_id,
            ProposalTeamInvitation.member_email == user.email,
            ProposalTeamInvitation.status == InvitationStatus.ACCEPTED.value,
        )
        .first()
        is not None
    )


def get_team(db: Session, user: User, proposal_id: UUID) -> tuple[Proposal, list[ProposalTeamInvitation]]:
    """Proposal and all its invitations; visible to the owner and accepted members."""
    proposal = db.query(Proposal).filter(Proposal.id == proposal_id).first()
    if not proposal:
        raise NotFoundError("Proposal not found")
    if proposal.user_id != user.id and not _is_accepted_member(db, user, proposal.id):
        raise ForbiddenError("You do not have access to this team")
    invitations = (
        db.query(ProposalTeamInvitation)
        .filter(ProposalTeamInvitation.proposal_id == proposal.id)
        .order_by(ProposalTeamInvitation.invited_at)
        .all()
    )
    return proposal, invitations


def list_my_invitations(db: Session, user: User) -> list[ProposalTeamInvitation]:
    return (
        db.query(ProposalTeamInvitation)
        .filter(ProposalTeamInvitation.member_email == user.email)
        .order_by(ProposalTeamInvitation.invited_at.desc())
        .all()
    )


def get_invitation_by_token(db: Session, token: str) -> ProposalTeamInvitation:
    invitation = (
        db.query(ProposalTeamInvitation)
        .filter(ProposalTeamInvitation.invitation_token == token)
        .first()
    )
    if not invitation:
        raise NotFoundError("Invitation not found")
    return invitation


def respond_to_invitation(
    db: Session,
    user: User,
    invitation_id: UUID,
    *,
    accept: bool,
    token: str | None = None,
) -> ProposalTeamInvitation:
    """
    Accept or decline an invitation addressed to the caller.

    Raises:
        NotFoundError: no such invitation
        ForbiddenError: token mismatch or invitation addressed to someone else
        AlreadyRespondedError: status is no longer `invited`
    """
    invitation = (
        db.query(ProposalTeamInvitation)
        .filter(ProposalTeamInvitation.id == invitation_id)
        .first()
    )
    if not invitation:
        raise NotFoundError("Invitation not found")
    if token is not None and token != invitation.invitation_token:
        raise ForbiddenError("Invalid invitation token")
    if invitation.member_email != user.email:
        raise ForbiddenError("This invitation was sent to a different email address")
    if invitation.status != InvitationStatus.INVITED.value:
        raise AlreadyRespondedError()

    invitation.responded_at = datetime.now(timezone.utc)
    if accept:
        invitation.status = InvitationStatus.ACCEPTED.value
        profile = profile_service.get_profile_for_user(db, user.id)
        invitation.member_profile_id = profile.id if profile else None
    else:
        invitation.status = InvitationStatus.DECLINED.value
    db.flush()
    logger.info(
        "Invitation %s",
        invitation.status,
        extra={"invitation_id": str(invitation.id), "proposal_id": str(invitation.proposal_id)},
    )
    return invitation


def remove_member(db: Session, user: User, proposal_id: UUID, member_id: UUID) -> None:
    """Delete an invitation (any state) from the owner's proposal."""
    proposal = _owned_proposal(db, user, proposal_id)
    invitation = (
        db.query(ProposalTeamInvitation)
        .filter(
            ProposalTeamInvitation.id == member_id,
            ProposalTeamInvitation.proposal_id == proposal.id,
        )
        .first()
    )
    if not invitation:
        raise NotFoundError("Team member not found")
    db.delete(invitation)
    db.flush()


def proposal_owner_email(db: Session, invitation: ProposalTeamInvitation) -> str | None:
    owner = (
        db.query(User)
        .join(Proposal, Proposal.user_id == User.id)
        .filter(Proposal.id == invitation.proposal_id)
        .first()
    )
    return owner.email if owner else None
