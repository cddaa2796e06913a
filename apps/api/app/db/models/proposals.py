"""Proposals, their team invitations and stage time tracking."""

from __future__ import annotations

import uuid
from datetime import datetime
from typing import Any

from sqlalchemy import (
    JSON,
    ForeignKey,
    Index,
    Integer,
    String,
    UniqueConstraint,
    Uuid,
    func,
    text,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.db.base import Base
from app.db.enums import InvitationStatus, ProposalStatus, ProposalTemplate
from app.db.types import utcnow


class Proposal(Base):
    """
    A generated (or hand-created) proposal.

    `content` holds the whole generated document as JSON. Edits are
    last-write-wins; there is no version column.
    """

    __tablename__ = "proposals"
    __table_args__ = (Index("ix_proposals_user_status", "user_id", "status"),)

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    user_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("users.id", ondelete="CASCADE"), nullable=False
    )
    rfp_id: Mapped[uuid.UUID | None] = mapped_column(
        Uuid, ForeignKey("rfp_uploads.id", ondelete="SET NULL"), nullable=True
    )
    title: Mapped[str] = mapped_column(String(500), nullable=False)
    status: Mapped[str] = mapped_column(
        String(30), default=ProposalStatus.DRAFT.value, nullable=False
    )
    content: Mapped[dict[str, Any]] = mapped_column(JSON, default=dict, nullable=False)
    template: Mapped[str] = mapped_column(
        String(30), default=ProposalTemplate.STANDARD.value, nullable=False
    )
    score: Mapped[int] = mapped_column(Integer, default=0, server_default=text("0"), nullable=False)
    exported_at: Mapped[datetime | None] = mapped_column(nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        default=utcnow, server_default=func.now(), nullable=False
    )
    updated_at: Mapped[datetime] = mapped_column(
        default=utcnow, onupdate=utcnow, server_default=func.now(), nullable=False
    )

    rfp = relationship("RFPUpload")
    invitations: Mapped[list[ProposalTeamInvitation]] = relationship(
        back_populates="proposal", cascade="all, delete-orphan"
    )
    time_tracking: Mapped[list[ProposalTimeTracking]] = relationship(
        back_populates="proposal", cascade="all, delete-orphan"
    )


class ProposalTeamInvitation(Base):
    """An invitation for someone to join a proposal team."""

    __tablename__ = "proposal_team_invitations"
    __table_args__ = (
        UniqueConstraint("proposal_id", "member_email", name="uq_invitation_proposal_email"),
        Index("ix_invitations_member_email", "member_email"),
    )

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    proposal_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("proposals.id", ondelete="CASCADE"), nullable=False
    )
    member_email: Mapped[str] = mapped_column(String(320), nullable=False)
    role: Mapped[str] = mapped_column(String(255), nullable=False)
    rate_range: Mapped[dict[str, Any] | None] = mapped_column(JSON, nullable=True)
    status: Mapped[str] = mapped_column(
        String(20), default=InvitationStatus.INVITED.value, nullable=False
    )
    invitation_token: Mapped[str] = mapped_column(String(64), unique=True, nullable=False)
    member_profile_id: Mapped[uuid.UUID | None] = mapped_column(
        Uuid, ForeignKey("company_profiles.id", ondelete="SET NULL"), nullable=True
    )
    invited_at: Mapped[datetime] = mapped_column(
        default=utcnow, server_default=func.now(), nullable=False
    )
    responded_at: Mapped[datetime | None] = mapped_column(nullable=True)

    proposal: Mapped[Proposal] = relationship(back_populates="invitations")


class ProposalTimeTracking(Base):
    """A stage of work on a proposal; `completed_at` is null while in progress."""

    __tablename__ = "proposal_time_tracking"
    __table_args__ = (Index("ix_time_tracking_user_proposal", "user_id", "proposal_id"),)

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    proposal_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("proposals.id", ondelete="CASCADE"), nullable=False
    )
    user_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("users.id", ondelete="CASCADE"), nullable=False
    )
    stage: Mapped[str] = mapped_column(String(100), nullable=False)
    started_at: Mapped[datetime] = mapped_column(
        default=utcnow, server_default=func.now(), nullable=False
    )
    completed_at: Mapped[datetime | None] = mapped_column(nullable=True)
    details: Mapped[dict[str, Any]] = mapped_column("metadata", JSON, default=dict, nullable=False)

    proposal: Mapped[Proposal] = relationship(back_populates="time_tracking")
