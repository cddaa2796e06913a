"""RFP upload, parsing and validation endpoints."""

from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, Depends, File, Request, UploadFile
from sqlalchemy.orm import Session

from app.core.deps import get_current_user, get_db
from app.core.rate_limit import AI_GENERATION_LIMIT, UPLOAD_LIMIT, limiter
from app.db.models import User
from app.schemas.document import RFPDetail, RFPListResponse, RFPRead, RFPValidateRequest
from app.services import rfp_service, storage_service
from app.utils.file_upload import attachment_response, read_upload
from app.utils.pagination import PaginationParams, get_pagination, page_meta

router = APIRouter(prefix="/rfp", tags=["rfp"])


@router.post("/upload", response_model=RFPDetail, status_code=201)
@limiter.limit(UPLOAD_LIMIT)
async def upload_rfp(
    request: Request,
    file: Annotated[UploadFile, File()],
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """
    Upload an RFP, extract its text and parse it with the AI model.

    A parse failure fails the upload; nothing is stored.
    """
    upload = await read_upload(file, max_size_bytes=rfp_service.MAX_FILE_SIZE_BYTES)
    rfp = await rfp_service.upload_rfp(db, user.id, upload)
    db.commit()
    return RFPDetail.from_model(rfp)


@router.get("", response_model=RFPListResponse)
def list_rfps(
    pagination: PaginationParams = Depends(get_pagination),
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    rfps, total = rfp_service.list_rfps(db, user.id, limit=pagination.limit, offset=pagination.offset)
    return RFPListResponse(items=[RFPRead.from_model(r) for r in rfps], **page_meta(total, pagination))


@router.get("/{rfp_id}", response_model=RFPDetail)
def get_rfp(rfp_id: UUID, user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    return RFPDetail.from_model(rfp_service.get_rfp(db, user.id, rfp_id))


@router.post("/{rfp_id}/reparse", response_model=RFPDetail)
@limiter.limit(AI_GENERATION_LIMIT)
async def reparse_rfp(
    request: Request,
    rfp_id: UUID,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    rfp = await rfp_service.reparse_rfp(db, user.id, rfp_id)
    db.commit()
    return RFPDetail.from_model(rfp)


@router.put("/{rfp_id}/validate", response_model=RFPDetail)
def validate_rfp(
    rfp_id: UUID,
    body: RFPValidateRequest,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Save user-corrected parsed fields and mark the RFP validated."""
    rfp = rfp_service.validate_rfp(db, user.id, rfp_id, body.parsed_data)
    db.commit()
    return RFPDetail.from_model(rfp)


@router.delete("/{rfp_id}")
def delete_rfp(rfp_id: UUID, user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    storage_key = rfp_service.delete_rfp(db, user.id, rfp_id)
    db.commit()
    storage_service.delete_file(storage_key)
    return {"success": True}


@router.get("/{rfp_id}/download")
def download_rfp(rfp_id: UUID, user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    rfp, content = rfp_service.download_rfp(db, user.id, rfp_id)
    return attachment_response(content, rfp.mime_type, rfp.file_name)
