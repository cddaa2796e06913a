"""Analytics endpoints: proposal stage timing and team response rates."""

from uuid import UUID

from fastapi import APIRouter, Depends, Query, Request
from fastapi.responses import JSONResponse
from sqlalchemy.orm import Session

from app.core.deps import get_current_user, get_db
from app.core.rate_limit import ANALYTICS_LIMIT, limiter
from app.db.models import User
from app.schemas.analytics import (
    ProposalTimesResponse,
    TeamResponsesResponse,
    TimeTrackingRead,
    TrackStageRequest,
)
from app.services import analytics_service

router = APIRouter(prefix="/analytics", tags=["analytics"])


@router.get("/proposal-times", response_model=ProposalTimesResponse)
@limiter.limit(ANALYTICS_LIMIT)
def proposal_times(
    request: Request,
    proposal_id: UUID | None = Query(None),
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    return analytics_service.get_proposal_times(db, user.id, proposal_id)


@router.get("/team-responses", response_model=TeamResponsesResponse)
@limiter.limit(ANALYTICS_LIMIT)
def team_responses(
    request: Request,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    return analytics_service.get_team_responses(db, user.id)


@router.post("/track-stage", response_model=TimeTrackingRead)
def track_stage(
    body: TrackStageRequest,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Start a stage timer; 201 when created, 200 when already running."""
    row, created = analytics_service.track_stage(
        db, user.id, body.proposal_id, body.stage or "", body.metadata
    )
    db.commit()
    payload = TimeTrackingRead.model_validate(row).model_dump(mode="json")
    return JSONResponse(status_code=201 if created else 200, content=payload)


@router.put("/track-stage/{tracking_id}/complete", response_model=TimeTrackingRead)
def complete_stage(
    tracking_id: UUID,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    row = analytics_service.complete_stage(db, user.id, tracking_id)
    db.commit()
    return TimeTrackingRead.model_validate(row)
