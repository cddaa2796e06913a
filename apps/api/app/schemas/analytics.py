"""Analytics schemas."""

from datetime import datetime
from typing import Any
from uuid import UUID

from pydantic import BaseModel, Field


class TrackStageRequest(BaseModel):
    proposal_id: UUID
    stage: str | None = None
    metadata: dict[str, Any] | None = None


class TimeTrackingRead(BaseModel):
    id: UUID
    proposal_id: UUID
    stage: str
    started_at: datetime
    completed_at: datetime | None
    metadata: dict[str, Any] = Field(validation_alias="details")

    model_config = {"from_attributes": True}


class StageStats(BaseModel):
    total_count: int
    completed_count: int
    total_minutes: int
    average_minutes: int


class TimeSummary(BaseModel):
    total_stages: int
    completed_stages: int
    average_time_minutes: int


class ProposalTimesResponse(BaseModel):
    time_tracking: list[dict[str, Any]]
    stage_stats: dict[str, StageStats]
    summary: TimeSummary


class TeamResponsesResponse(BaseModel):
    total_invitations: int
    accepted: int
    declined: int
    pending: int
    response_rate: int
    average_response_time_hours: float
    responded_within_48_hours: int
    response_rate_48_hours: int
