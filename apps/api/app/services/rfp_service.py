"""RFP uploads: extraction, AI parsing, storage and validation."""

import logging
from uuid import UUID

from sqlalchemy.orm import Session

from app.core.errors import NotFoundError, ValidationError
from app.db.enums import RFPStatus
from app.db.models import CompanyProfile, Proposal, RFPUpload
from app.services import ai_service, profile_service, storage_service, text_extraction
from app.utils.file_upload import UploadedFile

logger = logging.getLogger(__name__)

MIN_CONTENT_CHARS = 100
MAX_EXTRACTED_TEXT = 50000
MAX_FILE_SIZE_BYTES = 50 * 1024 * 1024


class RFPNotFoundError(NotFoundError):
    def __init__(self, message: str = "RFP not found"):
        super().__init__(message)


class RFPNotParsedError(ValidationError):
    def __init__(self, message: str = "RFP not parsed. Please reparse the RFP first."):
        super().__init__(message)


def extract_rfp_text(upload: UploadedFile) -> str:
    """
    Extract text and enforce the minimum content length.

    Raises:
        UnsupportedFileTypeError, ExtractionFailedError: from the extractor
        ValidationError: fewer than MIN_CONTENT_CHARS meaningful characters
    """
    if upload.size > MAX_FILE_SIZE_BYTES:
        raise ValidationError("File size exceeds 50 MB limit")
    text = text_extraction.extract_text(upload.content, upload.mime_type)
    if len(text.strip()) < MIN_CONTENT_CHARS:
        raise ValidationError(
            "Insufficient content: could not extract enough text from the document"
        )
    return text


def find_by_file_name(db: Session, profile_id: UUID, file_name: str) -> RFPUpload | None:
    return (
        db.query(RFPUpload)
        .filter(RFPUpload.profile_id == profile_id, RFPUpload.file_name == file_name)
        .order_by(RFPUpload.created_at.desc())
        .first()
    )


async def upload_rfp(db: Session, user_id: UUID, upload: UploadedFile) -> RFPUpload:
    """
    Extract, store, parse and record an RFP.

    The parse call is the deliverable: an AI failure fails the upload. If the
    row cannot be written, the stored file is removed.
    """
    profile = profile_service.require_profile(db, user_id, "Please create a company profile first")
    text = extract_rfp_text(upload)

    storage_key = storage_service.build_storage_key(user_id, upload.file_name, folder="rfps")
    storage_service.store_file(storage_key, upload.content, upload.mime_type)
    try:
        parsed = await ai_service.parse_rfp_document(text)
        rfp = RFPUpload(
            profile_id=profile.id,
            file_name=upload.file_name,
            file_size=upload.size,
            mime_type=upload.mime_type,
            storage_path=storage_key,
            extracted_text=text[:MAX_EXTRACTED_TEXT],
            parsed_data=parsed,
            status=RFPStatus.PARSED.value,
        )
        db.add(rfp)
        db.flush()
    except Exception:
        storage_service.delete_file(storage_key)
        raise
    logger.info(
        "RFP uploaded and parsed",
        extra={"user_id": str(user_id), "rfp_id": str(rfp.id), "chars": len(text)},
    )
    return rfp


def _owned_query(db: Session, user_id: UUID):
    return db.query(RFPUpload).join(CompanyProfile, RFPUpload.profile_id == CompanyProfile.id).filter(
        CompanyProfile.user_id == user_id
    )


def list_rfps(db: Session, user_id: UUID, *, limit: int = 50, offset: int = 0) -> tuple[list[RFPUpload], int]:
    query = _owned_query(db, user_id)
    total = query.count()
    rfps = query.order_by(RFPUpload.created_at.desc()).offset(offset).limit(limit).all()
    return rfps, total


def get_rfp(db: Session, user_id: UUID, rfp_id: UUID) -> RFPUpload:
    rfp = _owned_query(db, user_id).filter(RFPUpload.id == rfp_id).first()
    if not rfp:
        raise RFPNotFoundError()
    return rfp


async def reparse_rfp(db: Session, user_id: UUID, rfp_id: UUID) -> RFPUpload:
    """Run the AI parse again on the stored text, discarding manual corrections."""
    rfp = get_rfp(db, user_id, rfp_id)
    if not rfp.extracted_text:
        raise ValidationError("No extracted text available for this RFP")
    rfp.parsed_data = await ai_service.parse_rfp_document(rfp.extracted_text)
    rfp.status = RFPStatus.PARSED.value
    db.flush()
    return rfp


def validate_rfp(db: Session, user_id: UUID, rfp_id: UUID, corrections: dict) -> RFPUpload:
    """
    Record user-reviewed parsed fields.

    Corrections are merged over the existing parsed object (top-level keys
    replace) and the RFP is marked validated.
    """
    if not isinstance(corrections, dict):
        raise ValidationError("parsed_data must be an object")
    rfp = get_rfp(db, user_id, rfp_id)
    merged = dict(rfp.parsed_data or {})
    merged.update(corrections)
    rfp.parsed_data = merged
    rfp.status = RFPStatus.VALIDATED.value
    db.flush()
    return rfp


def discard_rfp(db: Session, rfp: RFPUpload) -> str:
    """
    Drop an RFP row, unlinking proposals that reference it.

    Returns the storage key. The stored file is left in place so a rollback
    still finds it; callers delete it once the transaction commits.
    """
    storage_key = rfp.storage_path
    db.query(Proposal).filter(Proposal.rfp_id == rfp.id).update(
        {Proposal.rfp_id: None}
    )
    db.delete(rfp)
    db.flush()
    return storage_key


def delete_rfp(db: Session, user_id: UUID, rfp_id: UUID) -> str:
    return discard_rfp(db, get_rfp(db, user_id, rfp_id))


def download_rfp(db: Session, user_id: UUID, rfp_id: UUID) -> tuple[RFPUpload, bytes]:
    rfp = get_rfp(db, user_id, rfp_id)
    return rfp, storage_service.read_file(rfp.storage_path)
