"""Analytics service for the proposal dashboard.

Stage timing from proposal_time_tracking and response statistics over team
invitations. Purely script-generated aggregations.
"""
import uuid
from datetime import datetime, timedelta, timezone
from typing import Any

from sqlalchemy.orm import Session

from app.core.errors import ForbiddenError, NotFoundError, ValidationError
from app.db.enums import InvitationStatus
from app.db.models import Proposal, ProposalTeamInvitation, ProposalTimeTracking
from app.db.types import ensure_utc

FAST_RESPONSE_WINDOW = timedelta(hours=48)


def _minutes_between(start: datetime, end: datetime) -> int:
    return int((ensure_utc(end) - ensure_utc(start)).total_seconds() // 60)


# ============================================================================
# Proposal stage times
# ============================================================================

def get_proposal_times(
    db: Session,
    user_id: uuid.UUID,
    proposal_id: uuid.UUID | None = None,
) -> dict[str, Any]:
    """Per-row durations (open rows measured until now), per-stage and overall summaries."""
    query = db.query(ProposalTimeTracking).filter(ProposalTimeTracking.user_id == user_id)
    if proposal_id:
        query = query.filter(ProposalTimeTracking.proposal_id == proposal_id)
    rows = query.order_by(ProposalTimeTracking.started_at.desc()).all()

    now = datetime.now(timezone.utc)
    entries = []
    by_stage: dict[str, dict[str, Any]] = {}
    completed_minutes = 0
    completed_count = 0
    for row in rows:
        duration = _minutes_between(row.started_at, row.completed_at or now)
        entries.append({
            "id": str(row.id),
            "proposal_id": str(row.proposal_id),
            "stage": row.stage,
            "started_at": row.started_at.isoformat(),
            "completed_at": row.completed_at.isoformat() if row.completed_at else None,
            "duration_minutes": duration,
            "metadata": row.details or {},
        })
        stage = by_stage.setdefault(
            row.stage, {"total_count": 0, "completed_count": 0, "total_minutes": 0}
        )
        stage["total_count"] += 1
        if row.completed_at:
            stage["completed_count"] += 1
            stage["total_minutes"] += duration
            completed_minutes += duration
            completed_count += 1

    for stage in by_stage.values():
        stage["average_minutes"] = (
            round(stage["total_minutes"] / stage["completed_count"])
            if stage["completed_count"]
            else 0
        )

    return {
        "time_tracking": entries,
        "stage_stats": by_stage,
        "summary": {
            "total_stages": len(rows),
            "completed_stages": completed_count,
            "average_time_minutes": round(completed_minutes / completed_count) if completed_count else 0,
        },
    }


# ============================================================================
# Team response rates
# ============================================================================

def get_team_responses(db: Session, user_id: uuid.UUID) -> dict[str, Any]:
    invitations = (
        db.query(ProposalTeamInvitation)
        .join(Proposal, ProposalTeamInvitation.proposal_id == Proposal.id)
        .filter(Proposal.user_id == user_id)
        .all()
    )
    total = len(invitations)
    accepted = sum(1 for inv in invitations if inv.status == InvitationStatus.ACCEPTED.value)
    declined = sum(1 for inv in invitations if inv.status == InvitationStatus.DECLINED.value)
    pending = sum(1 for inv in invitations if inv.status == InvitationStatus.INVITED.value)

    response_times = [
        ensure_utc(inv.responded_at) - ensure_utc(inv.invited_at)
        for inv in invitations
        if inv.responded_at and inv.status != InvitationStatus.INVITED.value
    ]
    responded = accepted + declined
    within_window = sum(1 for delta in response_times if delta <= FAST_RESPONSE_WINDOW)
    average_hours = (
        round(sum(delta.total_seconds() for delta in response_times) / len(response_times) / 3600, 1)
        if response_times
        else 0
    )

    return {
        "total_invitations": total,
        "accepted": accepted,
        "declined": declined,
        "pending": pending,
        "response_rate": round(responded / total * 100) if total else 0,
        "average_response_time_hours": average_hours,
        "responded_within_48_hours": within_window,
        "response_rate_48_hours": round(within_window / total * 100) if total else 0,
    }


# ============================================================================
# Stage tracking
# ============================================================================

def _owned_proposal(db: Session, user_id: uuid.UUID, proposal_id: uuid.UUID) -> Proposal:
    proposal = db.query(Proposal).filter(Proposal.id == proposal_id).first()
    if not proposal:
        raise NotFoundError("Proposal not found")
    if proposal.user_id != user_id:
        raise ForbiddenError("Not authorized to track this proposal")
    return proposal


def track_stage(
    db: Session,
    user_id: uuid.UUID,
    proposal_id: uuid.UUID,
    stage: str,
    metadata: dict | None = None,
) -> tuple[ProposalTimeTracking, bool]:
    """
    Start timing a stage.

    Returns:
        (row, created). An open row for the same stage is returned unchanged.
    """
    if not stage or not stage.strip():
        raise ValidationError("proposal_id and stage are required")
    stage = stage.strip()
    proposal = _owned_proposal(db, user_id, proposal_id)

    existing = (
        db.query(ProposalTimeTracking)
        .filter(
            ProposalTimeTracking.proposal_id == proposal.id,
            ProposalTimeTracking.stage == stage,
            ProposalTimeTracking.completed_at.is_(None),
        )
        .first()
    )
    if existing:
        return existing, False

    row = ProposalTimeTracking(
        proposal_id=proposal.id,
        user_id=user_id,
        stage=stage,
        details=metadata or {},
    )
    db.add(row)
    db.flush()
    return row, True


def complete_stage(db: Session, user_id: uuid.UUID, tracking_id: uuid.UUID) -> ProposalTimeTracking:
    row = db.query(ProposalTimeTracking).filter(ProposalTimeTracking.id == tracking_id).first()
    if not row:
        raise NotFoundError("Time tracking entry not found")
    if row.user_id != user_id:
        raise ForbiddenError("Not authorized to update this entry")
    row.completed_at = datetime.now(timezone.utc)
    db.flush()
    return row
