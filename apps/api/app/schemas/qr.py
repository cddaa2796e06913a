"""QR code and lead capture schemas."""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel

from app.db.models import QRCode


class QRCodeCreate(BaseModel):
    label: str | None = None


class QRCodeUpdate(BaseModel):
    is_active: bool | None = None
    label: str | None = None


class LeadRead(BaseModel):
    id: UUID
    company_name: str
    contact_name: str
    email: str
    phone: str
    message: str | None
    invited_at: datetime | None
    created_at: datetime

    model_config = {"from_attributes": True}


class QRCodeRead(BaseModel):
    id: UUID
    unique_code: str
    label: str | None
    is_active: bool
    scan_count: int
    last_scanned_at: datetime | None
    created_at: datetime
    capture_url: str

    @classmethod
    def from_model(cls, qr_code: QRCode, capture_url: str) -> "QRCodeRead":
        return cls(
            id=qr_code.id,
            unique_code=qr_code.unique_code,
            label=qr_code.label,
            is_active=qr_code.is_active,
            scan_count=qr_code.scan_count,
            last_scanned_at=qr_code.last_scanned_at,
            created_at=qr_code.created_at,
            capture_url=capture_url,
        )


class QRCodeDetail(QRCodeRead):
    leads: list[LeadRead] = []


class LeadSubmitRequest(BaseModel):
    """All optional so missing fields are reported by the capture service."""
    company_name: str | None = None
    contact_name: str | None = None
    email: str | None = None
    phone: str | None = None
    message: str | None = None


class LeadCaptureLanding(BaseModel):
    company_name: str
    company_logo: str | None = None


class LeadSubmitResponse(BaseModel):
    success: bool
    message: str
