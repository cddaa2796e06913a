"""Proposal Pydantic schemas."""

from datetime import datetime
from typing import Any
from uuid import UUID

from pydantic import BaseModel

from app.db.enums import ProposalTemplate
from app.db.models import Proposal


class ProposalCreate(BaseModel):
    title: str | None = None
    rfp_id: UUID | None = None
    content: dict[str, Any] | None = None
    status: str | None = None
    template: str | None = None


class ProposalGenerateRequest(BaseModel):
    rfp_id: UUID
    template: str = ProposalTemplate.STANDARD.value
    playbook_id: str | None = None


class ProposalUpdate(BaseModel):
    """Partial update; at least one field must be present."""
    title: str | None = None
    content: dict[str, Any] | None = None
    status: str | None = None


class ProposalStatusUpdate(BaseModel):
    status: str


class RefineRequest(BaseModel):
    section_name: str | None = None
    current_content: str | None = None
    improvement_goals: list[str] | None = None


class RFPSummary(BaseModel):
    id: UUID
    file_name: str
    title: str | None


class ProposalRead(BaseModel):
    id: UUID
    rfp_id: UUID | None
    title: str
    status: str
    template: str
    score: int
    content: dict[str, Any]
    exported_at: datetime | None
    created_at: datetime
    updated_at: datetime
    rfp: RFPSummary | None = None

    @classmethod
    def from_model(cls, proposal: Proposal) -> "ProposalRead":
        rfp = None
        if proposal.rfp is not None:
            rfp = RFPSummary(
                id=proposal.rfp.id,
                file_name=proposal.rfp.file_name,
                title=(proposal.rfp.parsed_data or {}).get("title"),
            )
        return cls(
            id=proposal.id,
            rfp_id=proposal.rfp_id,
            title=proposal.title,
            status=proposal.status,
            template=proposal.template,
            score=proposal.score,
            content=proposal.content or {},
            exported_at=proposal.exported_at,
            created_at=proposal.created_at,
            updated_at=proposal.updated_at,
            rfp=rfp,
        )


class ProposalListResponse(BaseModel):
    items: list[ProposalRead]
    total: int
    limit: int
    offset: int


class BatchItemRead(BaseModel):
    file_name: str
    status: str
    rfp_id: str | None = None
    proposal_id: str | None = None
    error: str | None = None


class BatchResponse(BaseModel):
    success_count: int
    error_count: int
    skipped_count: int
    results: list[BatchItemRead]
