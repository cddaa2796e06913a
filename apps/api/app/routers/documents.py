"""Company document endpoints: uploads, listing, downloads and stats."""

from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, Depends, File, Form, Query, Request, UploadFile
from fastapi.responses import JSONResponse
from sqlalchemy.orm import Session

from app.core.deps import get_current_user, get_db
from app.core.errors import ValidationError
from app.core.rate_limit import UPLOAD_LIMIT, limiter
from app.db.enums import DocumentType
from app.db.models import User
from app.schemas.document import DocumentListResponse, DocumentRead, MultiUploadResponse, UploadError
from app.services import document_service
from app.utils.file_upload import FileTooLargeError, attachment_response, read_upload
from app.utils.pagination import PaginationParams, get_pagination, page_meta

router = APIRouter(prefix="/documents", tags=["documents"])


# =============================================================================
# Uploads
# =============================================================================

@router.post("/upload", response_model=DocumentRead, status_code=201)
@limiter.limit(UPLOAD_LIMIT)
async def upload_document(
    request: Request,
    file: Annotated[UploadFile, File()],
    file_type: Annotated[str, Form()] = DocumentType.OTHER.value,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    upload = await read_upload(file, max_size_bytes=document_service.MAX_FILE_SIZE_BYTES)
    document = document_service.upload_document(db, user.id, upload, file_type)
    db.commit()
    return DocumentRead.from_model(document)


@router.post("/upload-multiple", response_model=MultiUploadResponse)
@limiter.limit(UPLOAD_LIMIT)
async def upload_multiple(
    request: Request,
    files: Annotated[list[UploadFile], File()],
    file_type: Annotated[str, Form()] = DocumentType.OTHER.value,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """
    Upload up to 10 files; each file succeeds or fails on its own.

    201 when at least one file was stored, 400 when none were.
    """
    if len(files) > document_service.MAX_FILES_PER_REQUEST:
        raise ValidationError(
            f"Too many files. Maximum is {document_service.MAX_FILES_PER_REQUEST} files per upload"
        )
    uploads = []
    read_errors = []
    for file in files:
        try:
            uploads.append(await read_upload(file, max_size_bytes=document_service.MAX_FILE_SIZE_BYTES))
        except (ValidationError, FileTooLargeError) as e:
            read_errors.append({"file_name": file.filename or "", "error": e.message})

    documents, errors = document_service.upload_documents(db, user.id, uploads, file_type) if uploads else ([], [])
    db.commit()

    payload = MultiUploadResponse(
        documents=[DocumentRead.from_model(d) for d in documents],
        errors=[UploadError(**e) for e in read_errors + errors],
    )
    return JSONResponse(
        status_code=201 if documents else 400,
        content=payload.model_dump(mode="json"),
    )


# =============================================================================
# Reads
# =============================================================================

@router.get("", response_model=DocumentListResponse)
def list_documents(
    type: str | None = Query(None, description="Filter by document type"),
    pagination: PaginationParams = Depends(get_pagination),
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    documents, total = document_service.list_documents(
        db, user.id, file_type=type, limit=pagination.limit, offset=pagination.offset
    )
    return DocumentListResponse(
        items=[DocumentRead.from_model(d) for d in documents],
        **page_meta(total, pagination),
    )


@router.get("/stats")
def document_stats(user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    return document_service.document_stats(db, user.id)


@router.get("/{document_id}", response_model=DocumentRead)
def get_document(
    document_id: UUID,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    return DocumentRead.from_model(document_service.get_document(db, user.id, document_id))


@router.get("/{document_id}/download")
def download_document(
    document_id: UUID,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    document, content = document_service.download_document(db, user.id, document_id)
    return attachment_response(content, document.mime_type, document.file_name)


@router.delete("/{document_id}")
def delete_document(
    document_id: UUID,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    document_service.delete_document(db, user.id, document_id)
    db.commit()
    return {"success": True}
