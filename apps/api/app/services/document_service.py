"""Company documents: upload, listing, download and stats."""

import logging
from uuid import UUID

from sqlalchemy import func
from sqlalchemy.orm import Session

from app.core.errors import NotFoundError, ValidationError
from app.db.enums import DocumentType
from app.db.models import CompanyProfile, Document
from app.services import profile_service, storage_service
from app.utils.file_upload import UploadedFile
from app.utils.normalization import format_file_size

logger = logging.getLogger(__name__)

ALLOWED_MIME_TYPES = {
    "application/pdf",
    "application/vnd.openxmlformats-officedocument.wordprocessingml.document",
    "application/msword",
    "text/plain",
    "image/jpeg",
    "image/png",
    "image/gif",
    "image/webp",
}
MAX_FILE_SIZE_BYTES = 50 * 1024 * 1024  # 50 MB
MAX_FILES_PER_REQUEST = 10


def validate_upload(upload: UploadedFile) -> None:
    if upload.mime_type not in ALLOWED_MIME_TYPES:
        raise ValidationError(
            f"Invalid file type: {upload.mime_type}. Allowed types: PDF, DOCX, DOC, TXT, JPEG, PNG, GIF, WEBP"
        )
    if upload.size > MAX_FILE_SIZE_BYTES:
        raise ValidationError("File size exceeds 50 MB limit")


def _validate_type(file_type: str) -> str:
    if not DocumentType.has_value(file_type):
        raise ValidationError(
            f"Invalid document type. Must be one of: {', '.join(DocumentType.values())}"
        )
    return file_type


def upload_document(
    db: Session,
    user_id: UUID,
    upload: UploadedFile,
    file_type: str = DocumentType.OTHER.value,
) -> Document:
    """
    Store a file and record it against the caller's profile.

    The stored object is removed again if the row cannot be written.
    """
    profile = profile_service.require_profile(db, user_id, "Please create a company profile first")
    _validate_type(file_type)
    validate_upload(upload)

    storage_key = storage_service.build_storage_key(user_id, upload.file_name, folder="documents")
    storage_service.store_file(storage_key, upload.content, upload.mime_type)
    try:
        document = Document(
            profile_id=profile.id,
            file_name=upload.file_name,
            file_type=file_type,
            storage_path=storage_key,
            file_size=upload.size,
            mime_type=upload.mime_type,
        )
        db.add(document)
        db.flush()
    except Exception:
        storage_service.delete_file(storage_key)
        raise
    profile_service.recalculate_strength(db, profile)
    return document


def upload_documents(
    db: Session,
    user_id: UUID,
    uploads: list[UploadedFile],
    file_type: str = DocumentType.OTHER.value,
) -> tuple[list[Document], list[dict]]:
    """Upload each file independently; returns (documents, errors)."""
    if not uploads:
        raise ValidationError("No files uploaded")
    if len(uploads) > MAX_FILES_PER_REQUEST:
        raise ValidationError(f"Too many files. Maximum is {MAX_FILES_PER_REQUEST} files per upload")

    documents: list[Document] = []
    errors: list[dict] = []
    for upload in uploads:
        try:
            documents.append(upload_document(db, user_id, upload, file_type))
        except (ValidationError, NotFoundError) as e:
            errors.append({"file_name": upload.file_name, "error": e.message})
    return documents, errors


def _owned_query(db: Session, user_id: UUID):
    return db.query(Document).join(CompanyProfile, Document.profile_id == CompanyProfile.id).filter(
        CompanyProfile.user_id == user_id
    )


def list_documents(
    db: Session,
    user_id: UUID,
    *,
    file_type: str | None = None,
    limit: int = 50,
    offset: int = 0,
) -> tuple[list[Document], int]:
    query = _owned_query(db, user_id)
    if file_type:
        query = query.filter(Document.file_type == _validate_type(file_type))
    total = query.count()
    documents = query.order_by(Document.uploaded_at.desc()).offset(offset).limit(limit).all()
    return documents, total


def get_document(db: Session, user_id: UUID, document_id: UUID) -> Document:
    document = _owned_query(db, user_id).filter(Document.id == document_id).first()
    if not document:
        raise NotFoundError("Document not found")
    return document


def download_document(db: Session, user_id: UUID, document_id: UUID) -> tuple[Document, bytes]:
    document = get_document(db, user_id, document_id)
    return document, storage_service.read_file(document.storage_path)


def delete_document(db: Session, user_id: UUID, document_id: UUID) -> None:
    """Remove the stored object, then the row."""
    document = get_document(db, user_id, document_id)
    profile = document.profile
    storage_service.delete_file(document.storage_path)
    db.delete(document)
    db.flush()
    profile_service.recalculate_strength(db, profile)


def document_stats(db: Session, user_id: UUID) -> dict:
    rows = (
        _owned_query(db, user_id)
        .with_entities(Document.file_type, func.count(Document.id), func.coalesce(func.sum(Document.file_size), 0))
        .group_by(Document.file_type)
        .all()
    )
    by_type = {doc_type.value: {"count": 0, "size": 0} for doc_type in DocumentType}
    total_count = 0
    total_size = 0
    for file_type, count, size in rows:
        by_type[file_type] = {"count": count, "size": int(size)}
        total_count += count
        total_size += int(size)
    return {
        "total_documents": total_count,
        "total_size": total_size,
        "total_size_formatted": format_file_size(total_size),
        "by_type": by_type,
    }
