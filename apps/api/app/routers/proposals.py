"""Proposal endpoints: generation, editing, AI tooling and exports."""

from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, Depends, File, Form, Query, Request, UploadFile
from fastapi.responses import Response
from sqlalchemy.orm import Session

from app.core.deps import get_current_user, get_db
from app.core.errors import ValidationError
from app.core.rate_limit import (
    AI_GENERATION_LIMIT,
    AI_REFINEMENT_LIMIT,
    EXPORT_LIMIT,
    limiter,
)
from app.db.enums import DuplicatePolicy, ProposalStatus, ProposalTemplate
from app.db.models import User
from app.schemas.proposal import (
    BatchResponse,
    ProposalCreate,
    ProposalGenerateRequest,
    ProposalListResponse,
    ProposalRead,
    ProposalStatusUpdate,
    ProposalUpdate,
    RefineRequest,
)
from app.services import proposal_service, rfp_service
from app.services.proposal_service import BatchItemResult
from app.utils.file_upload import FileTooLargeError, attachment_response, read_upload
from app.utils.pagination import PaginationParams, get_pagination, page_meta

router = APIRouter(prefix="/proposals", tags=["proposals"])

EXPORT_MEDIA_TYPES = {
    "docx": "application/vnd.openxmlformats-officedocument.wordprocessingml.document",
    "pdf": "application/pdf",
}


# =============================================================================
# Create / generate
# =============================================================================

@router.post("", response_model=ProposalRead, status_code=201)
def create_proposal(
    body: ProposalCreate,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    proposal = proposal_service.create_proposal(
        db,
        user.id,
        title=body.title or "",
        rfp_id=body.rfp_id,
        content=body.content,
        status=body.status or ProposalStatus.DRAFT.value,
        template=body.template or ProposalTemplate.STANDARD.value,
    )
    db.commit()
    return ProposalRead.from_model(proposal)


@router.post("/generate", response_model=ProposalRead, status_code=201)
@limiter.limit(AI_GENERATION_LIMIT)
async def generate_proposal(
    request: Request,
    body: ProposalGenerateRequest,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Generate a draft proposal from a parsed RFP."""
    proposal = await proposal_service.generate_proposal(
        db, user.id, body.rfp_id, template=body.template, playbook_id=body.playbook_id
    )
    db.commit()
    return ProposalRead.from_model(proposal)


@router.post("/batch", response_model=BatchResponse)
@limiter.limit(AI_GENERATION_LIMIT)
async def generate_batch(
    request: Request,
    files: Annotated[list[UploadFile], File()],
    template: Annotated[str, Form()] = ProposalTemplate.STANDARD.value,
    on_duplicate: Annotated[str, Form()] = DuplicatePolicy.SKIP.value,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """
    Upload several RFPs and generate one proposal per file, one at a time.

    Files that cannot be read are reported as failed items alongside the
    generation results.
    """
    if len(files) > proposal_service.MAX_BATCH_FILES:
        raise ValidationError(
            f"Too many files. Maximum is {proposal_service.MAX_BATCH_FILES} files per batch"
        )
    uploads = []
    unreadable: list[BatchItemResult] = []
    for file in files:
        try:
            uploads.append(await read_upload(file, max_size_bytes=rfp_service.MAX_FILE_SIZE_BYTES))
        except (ValidationError, FileTooLargeError) as e:
            unreadable.append(BatchItemResult(file_name=file.filename or "", status="error", error=e.message))

    if uploads:
        result = await proposal_service.generate_batch(
            db, user.id, uploads, template=template, on_duplicate=on_duplicate
        )
    else:
        result = proposal_service.BatchResult()
    result.results.extend(unreadable)
    result.error_count += len(unreadable)
    return result.to_dict()


# =============================================================================
# Read / update / delete
# =============================================================================

@router.get("", response_model=ProposalListResponse)
def list_proposals(
    status: str | None = Query(None),
    pagination: PaginationParams = Depends(get_pagination),
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    proposals, total = proposal_service.list_proposals(
        db, user.id, status=status, limit=pagination.limit, offset=pagination.offset
    )
    return ProposalListResponse(
        items=[ProposalRead.from_model(p) for p in proposals],
        **page_meta(total, pagination),
    )


@router.get("/{proposal_id}", response_model=ProposalRead)
def get_proposal(proposal_id: UUID, user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    return ProposalRead.from_model(proposal_service.get_proposal(db, user.id, proposal_id))


@router.put("/{proposal_id}", response_model=ProposalRead)
def update_proposal(
    proposal_id: UUID,
    body: ProposalUpdate,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    proposal = proposal_service.update_proposal(
        db, user.id, proposal_id, title=body.title, content=body.content, status=body.status
    )
    db.commit()
    return ProposalRead.from_model(proposal)


@router.put("/{proposal_id}/status", response_model=ProposalRead)
def set_status(
    proposal_id: UUID,
    body: ProposalStatusUpdate,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    proposal = proposal_service.set_status(db, user.id, proposal_id, body.status)
    db.commit()
    return ProposalRead.from_model(proposal)


@router.put("/{proposal_id}/withdraw", response_model=ProposalRead)
def withdraw_proposal(proposal_id: UUID, user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    proposal = proposal_service.withdraw_proposal(db, user.id, proposal_id)
    db.commit()
    return ProposalRead.from_model(proposal)


@router.delete("/{proposal_id}")
def delete_proposal(proposal_id: UUID, user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    proposal_service.delete_proposal(db, user.id, proposal_id)
    db.commit()
    return {"success": True}


# =============================================================================
# AI tooling
# =============================================================================

@router.post("/{proposal_id}/refine")
@limiter.limit(AI_REFINEMENT_LIMIT)
async def refine_section(
    request: Request,
    proposal_id: UUID,
    body: RefineRequest,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    return await proposal_service.refine_section(
        db,
        user.id,
        proposal_id,
        section_name=body.section_name or "",
        current_content=body.current_content or "",
        improvement_goals=body.improvement_goals or [],
    )


@router.post("/{proposal_id}/scorecard")
@limiter.limit(AI_GENERATION_LIMIT)
async def generate_scorecard(
    request: Request,
    proposal_id: UUID,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    scorecard = await proposal_service.generate_scorecard(db, user.id, proposal_id)
    db.commit()
    return scorecard


@router.post("/{proposal_id}/slideshow")
@limiter.limit(AI_GENERATION_LIMIT)
async def generate_slideshow(
    request: Request,
    proposal_id: UUID,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    slides = await proposal_service.generate_slideshow(db, user.id, proposal_id)
    db.commit()
    return {"slides": slides}


# =============================================================================
# Timeline & exports
# =============================================================================

@router.get("/{proposal_id}/timeline")
def proposal_timeline(proposal_id: UUID, user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    return proposal_service.proposal_timeline(db, user.id, proposal_id)


@router.get("/{proposal_id}/calendar.ics")
def proposal_calendar(proposal_id: UUID, user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    ics, file_name = proposal_service.proposal_calendar(db, user.id, proposal_id)
    return Response(
        content=ics,
        media_type="text/calendar",
        headers={"Content-Disposition": f'attachment; filename="{file_name}"'},
    )


@router.get("/{proposal_id}/export/{export_format}")
@limiter.limit(EXPORT_LIMIT)
def export_proposal(
    request: Request,
    proposal_id: UUID,
    export_format: str,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Download the proposal as DOCX or PDF."""
    data, file_name = proposal_service.export_proposal(db, user.id, proposal_id, export_format)
    db.commit()
    return attachment_response(data, EXPORT_MEDIA_TYPES[export_format], file_name)
