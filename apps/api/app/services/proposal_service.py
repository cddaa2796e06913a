"""Proposal lifecycle: AI generation (single and batch), edits, status and exports."""

from __future__ import annotations

import logging
from dataclasses import asdict, dataclass, field
from datetime import datetime, timezone
from uuid import UUID

from sqlalchemy.orm import Session

from app.core.errors import AppError, NotFoundError, ValidationError
from app.db.enums import DuplicatePolicy, ProposalStatus, ProposalTemplate
from app.db.models import Document, Proposal
from app.services import (
    ai_service,
    export_service,
    profile_service,
    rfp_service,
    storage_service,
    timeline_service,
)
from app.utils.file_upload import UploadedFile
from app.utils.normalization import export_filename

logger = logging.getLogger(__name__)

MAX_BATCH_FILES = 10


# =============================================================================
# CRUD
# =============================================================================

def _validate_status(status: str) -> str:
    if not ProposalStatus.has_value(status):
        raise ValidationError(
            f"Invalid status. Must be one of: {', '.join(ProposalStatus.values())}"
        )
    return status


def _validate_template(template: str) -> str:
    if not ProposalTemplate.has_value(template):
        raise ValidationError(
            f"Invalid template. Must be one of: {', '.join(ProposalTemplate.values())}"
        )
    return template


def create_proposal(
    db: Session,
    user_id: UUID,
    *,
    title: str,
    rfp_id: UUID | None = None,
    content: dict | None = None,
    status: str = ProposalStatus.DRAFT.value,
    template: str = ProposalTemplate.STANDARD.value,
) -> Proposal:
    if not title or not title.strip():
        raise ValidationError("Title is required")
    if rfp_id is not None:
        rfp_service.get_rfp(db, user_id, rfp_id)
    proposal = Proposal(
        user_id=user_id,
        rfp_id=rfp_id,
        title=title.strip(),
        status=_validate_status(status),
        content=content or {},
        template=_validate_template(template),
        score=0,
    )
    db.add(proposal)
    db.flush()
    return proposal


def get_proposal(db: Session, user_id: UUID, proposal_id: UUID) -> Proposal:
    proposal = (
        db.query(Proposal)
        .filter(Proposal.id == proposal_id, Proposal.user_id == user_id)
        .first()
    )
    if not proposal:
        raise NotFoundError("Proposal not found")
    return proposal


def list_proposals(
    db: Session,
    user_id: UUID,
    *,
    status: str | None = None,
    limit: int = 50,
    offset: int = 0,
) -> tuple[list[Proposal], int]:
    query = db.query(Proposal).filter(Proposal.user_id == user_id)
    if status:
        query = query.filter(Proposal.status == _validate_status(status))
    total = query.count()
    proposals = query.order_by(Proposal.created_at.desc()).offset(offset).limit(limit).all()
    return proposals, total


def update_proposal(
    db: Session,
    user_id: UUID,
    proposal_id: UUID,
    *,
    title: str | None = None,
    content: dict | None = None,
    status: str | None = None,
) -> Proposal:
    """Partial update; last write wins."""
    if title is None and content is None and status is None:
        raise ValidationError("No valid fields to update")
    proposal = get_proposal(db, user_id, proposal_id)
    if title is not None:
        if not title.strip():
            raise ValidationError("Title cannot be empty")
        proposal.title = title.strip()
    if content is not None:
        proposal.content = content
    if status is not None:
        proposal.status = _validate_status(status)
    db.flush()
    return proposal


def set_status(db: Session, user_id: UUID, proposal_id: UUID, status: str) -> Proposal:
    return update_proposal(db, user_id, proposal_id, status=status)


def withdraw_proposal(db: Session, user_id: UUID, proposal_id: UUID) -> Proposal:
    return set_status(db, user_id, proposal_id, ProposalStatus.WITHDRAWN.value)


def delete_proposal(db: Session, user_id: UUID, proposal_id: UUID) -> None:
    proposal = get_proposal(db, user_id, proposal_id)
    db.delete(proposal)
    db.flush()


def _merge_content(proposal: Proposal, **sections) -> None:
    content = dict(proposal.content or {})
    content.update(sections)
    proposal.content = content


# =============================================================================
# Generation
# =============================================================================

def _document_context(db: Session, profile_id: UUID) -> list[dict]:
    documents = db.query(Document).filter(Document.profile_id == profile_id).all()
    return [{"file_type": doc.file_type, "file_name": doc.file_name} for doc in documents]


async def generate_proposal(
    db: Session,
    user_id: UUID,
    rfp_id: UUID,
    *,
    template: str = ProposalTemplate.STANDARD.value,
    playbook_id: str | None = None,
) -> Proposal:
    """
    Generate and persist a draft proposal from a parsed RFP.

    Raises:
        ProfileNotFoundError: caller has no profile
        RFPNotFoundError: RFP missing or owned by someone else
        RFPNotParsedError: RFP has no parsed data
        UpstreamFailureError / MalformedAIResponseError: AI call failed
    """
    profile = profile_service.require_profile(db, user_id, "Please create a company profile first")
    rfp = rfp_service.get_rfp(db, user_id, rfp_id)
    if not rfp.parsed_data:
        raise rfp_service.RFPNotParsedError()
    _validate_template(template)
    playbook = profile_service.find_playbook(profile, playbook_id)

    content = await ai_service.generate_proposal_content(
        rfp.parsed_data,
        profile_service.profile_context(profile),
        _document_context(db, profile.id),
        template=template,
        playbook=playbook,
    )

    title = (rfp.parsed_data or {}).get("title") or f"Proposal for {rfp.file_name}"
    proposal = Proposal(
        user_id=user_id,
        rfp_id=rfp.id,
        title=str(title)[:500],
        status=ProposalStatus.DRAFT.value,
        content=content,
        template=template,
        score=0,
    )
    db.add(proposal)
    db.flush()
    logger.info(
        "Proposal generated",
        extra={"user_id": str(user_id), "proposal_id": str(proposal.id), "rfp_id": str(rfp.id)},
    )
    return proposal


@dataclass
class BatchItemResult:
    file_name: str
    status: str  # success | error | skipped
    rfp_id: str | None = None
    proposal_id: str | None = None
    error: str | None = None


@dataclass
class BatchResult:
    success_count: int = 0
    error_count: int = 0
    skipped_count: int = 0
    results: list[BatchItemResult] = field(default_factory=list)

    def to_dict(self) -> dict:
        return asdict(self)


def _remove_replaced_file(storage_key: str) -> None:
    try:
        storage_service.delete_file(storage_key)
    except AppError as e:
        logger.warning("Could not remove replaced RFP file %s: %s", storage_key, e.message)


async def generate_batch(
    db: Session,
    user_id: UUID,
    uploads: list[UploadedFile],
    *,
    template: str = ProposalTemplate.STANDARD.value,
    on_duplicate: str = DuplicatePolicy.SKIP.value,
) -> BatchResult:
    """
    Upload and generate one proposal per file, strictly one item at a time.

    Each item commits on its own: a failure rolls back only that item's
    pending work, is recorded in the result and the loop moves on.
    """
    if not uploads:
        raise ValidationError("No files uploaded")
    if len(uploads) > MAX_BATCH_FILES:
        raise ValidationError(f"Too many files. Maximum is {MAX_BATCH_FILES} files per batch")
    if not DuplicatePolicy.has_value(on_duplicate):
        raise ValidationError("on_duplicate must be 'overwrite' or 'skip'")
    _validate_template(template)
    profile = profile_service.require_profile(db, user_id, "Please create a company profile first")
    profile_id = profile.id

    result = BatchResult()
    total = len(uploads)
    for index, upload in enumerate(uploads, start=1):
        logger.info("Processing %d of %d: %s", index, total, upload.file_name)
        item = BatchItemResult(file_name=upload.file_name, status="error")
        try:
            existing = rfp_service.find_by_file_name(db, profile_id, upload.file_name)
            if existing is not None and on_duplicate == DuplicatePolicy.SKIP.value:
                item.status = "skipped"
                item.rfp_id = str(existing.id)
                result.skipped_count += 1
                result.results.append(item)
                continue

            # The replaced RFP stays intact until its successor is committed
            rfp = await rfp_service.upload_rfp(db, user_id, upload)
            replaced_key = rfp_service.discard_rfp(db, existing) if existing is not None else None
            db.commit()
            item.rfp_id = str(rfp.id)
            if replaced_key:
                _remove_replaced_file(replaced_key)

            proposal = await generate_proposal(db, user_id, rfp.id, template=template)
            db.commit()
            item.proposal_id = str(proposal.id)
            item.status = "success"
            result.success_count += 1
        except AppError as e:
            db.rollback()
            logger.warning("Batch item %d of %d failed: %s", index, total, e.message)
            item.error = e.message
            result.error_count += 1
        except Exception as e:
            db.rollback()
            logger.exception("Batch item %d of %d failed unexpectedly", index, total)
            item.error = str(e) or type(e).__name__
            result.error_count += 1
        result.results.append(item)

    logger.info(
        "Batch generation finished: %d succeeded, %d failed, %d skipped",
        result.success_count,
        result.error_count,
        result.skipped_count,
    )
    return result


async def refine_section(
    db: Session,
    user_id: UUID,
    proposal_id: UUID,
    *,
    section_name: str,
    current_content: str,
    improvement_goals: list[str],
) -> dict:
    """AI rewrite of one section; the proposal itself is not modified."""
    if not section_name or not current_content or not improvement_goals:
        raise ValidationError("section_name, current_content and improvement_goals are required")
    get_proposal(db, user_id, proposal_id)
    return await ai_service.refine_proposal_section(section_name, current_content, improvement_goals)


async def generate_scorecard(db: Session, user_id: UUID, proposal_id: UUID) -> dict:
    """Fit scorecard; stored in content and mirrored into `score`."""
    proposal = get_proposal(db, user_id, proposal_id)
    profile = profile_service.require_profile(db, user_id, "Please create a company profile first")
    scorecard = await ai_service.generate_scorecard(
        proposal_body(proposal), profile_service.profile_context(profile), _document_context(db, profile.id)
    )
    _merge_content(proposal, scorecard=scorecard)
    proposal.score = scorecard["overallFitScore"]
    db.flush()
    return scorecard


async def generate_slideshow(db: Session, user_id: UUID, proposal_id: UUID) -> list[dict]:
    proposal = get_proposal(db, user_id, proposal_id)
    body = proposal_body(proposal)
    slides = await ai_service.generate_slideshow(body, (proposal.content or {}).get("scorecard"))
    _merge_content(proposal, slideshow=slides)
    db.flush()
    return slides


# =============================================================================
# Timeline & exports
# =============================================================================

def proposal_body(proposal: Proposal) -> dict:
    """Generated sections, unwrapping a nested `proposal` key when present."""
    content = proposal.content or {}
    body = content.get("proposal")
    return body if isinstance(body, dict) else content


def proposal_timeline(db: Session, user_id: UUID, proposal_id: UUID) -> dict:
    proposal = get_proposal(db, user_id, proposal_id)
    body = proposal_body(proposal)
    schedule = timeline_service.build_schedule(body.get("projectTimeline"), proposal.created_at.date())
    schedule["rates"] = timeline_service.summarize_rates(body.get("resources"))
    return schedule


def proposal_calendar(db: Session, user_id: UUID, proposal_id: UUID) -> tuple[str, str]:
    """(ics text, file name)."""
    proposal = get_proposal(db, user_id, proposal_id)
    body = proposal_body(proposal)
    name = body.get("projectName") or proposal.title
    return timeline_service.build_ics(body.get("calendarEvents"), name), export_filename(proposal.title, "ics")


def export_proposal(db: Session, user_id: UUID, proposal_id: UUID, export_format: str) -> tuple[bytes, str]:
    """
    Render the proposal and stamp `exported_at`.

    Returns:
        (file bytes, download file name)
    """
    proposal = get_proposal(db, user_id, proposal_id)
    profile = profile_service.get_profile_for_user(db, user_id)
    company_name = profile.company_name if profile else None
    body = proposal_body(proposal)

    if export_format == "docx":
        data = export_service.generate_docx(proposal.title, body, company_name)
    elif export_format == "pdf":
        data = export_service.generate_pdf(proposal.title, body, company_name)
    else:
        raise ValidationError("Export format must be 'docx' or 'pdf'")

    proposal.exported_at = datetime.now(timezone.utc)
    db.flush()
    return data, export_filename(proposal.title, export_format)
