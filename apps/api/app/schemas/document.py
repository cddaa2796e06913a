"""Document and RFP upload schemas."""

from datetime import datetime
from typing import Any
from uuid import UUID

from pydantic import BaseModel

from app.db.models import Document, RFPUpload
from app.utils.normalization import format_file_size


class DocumentRead(BaseModel):
    id: UUID
    file_name: str
    file_type: str
    file_size: int
    file_size_formatted: str
    mime_type: str
    uploaded_at: datetime

    @classmethod
    def from_model(cls, document: Document) -> "DocumentRead":
        return cls(
            id=document.id,
            file_name=document.file_name,
            file_type=document.file_type,
            file_size=document.file_size,
            file_size_formatted=format_file_size(document.file_size),
            mime_type=document.mime_type,
            uploaded_at=document.uploaded_at,
        )


class DocumentListResponse(BaseModel):
    items: list[DocumentRead]
    total: int
    limit: int
    offset: int


class UploadError(BaseModel):
    file_name: str
    error: str


class MultiUploadResponse(BaseModel):
    documents: list[DocumentRead]
    errors: list[UploadError]


class RFPRead(BaseModel):
    """RFP metadata and parsed fields (extracted text omitted)."""
    id: UUID
    file_name: str
    file_size: int
    file_size_formatted: str
    mime_type: str
    status: str
    parsed_data: dict[str, Any] | None
    created_at: datetime
    updated_at: datetime

    @classmethod
    def from_model(cls, rfp: RFPUpload) -> "RFPRead":
        return cls(
            id=rfp.id,
            file_name=rfp.file_name,
            file_size=rfp.file_size,
            file_size_formatted=format_file_size(rfp.file_size),
            mime_type=rfp.mime_type,
            status=rfp.status,
            parsed_data=rfp.parsed_data,
            created_at=rfp.created_at,
            updated_at=rfp.updated_at,
        )


class RFPDetail(RFPRead):
    extracted_text: str | None = None

    @classmethod
    def from_model(cls, rfp: RFPUpload) -> "RFPDetail":
        return cls(**RFPRead.from_model(rfp).model_dump(), extracted_text=rfp.extracted_text)


class RFPListResponse(BaseModel):
    items: list[RFPRead]
    total: int
    limit: int
    offset: int


class RFPValidateRequest(BaseModel):
    parsed_data: dict[str, Any]
