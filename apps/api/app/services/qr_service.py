"""QR codes owned by a company profile, and the leads captured through them."""

import base64
import os
from uuid import UUID

from sqlalchemy.orm import Session

from app.core.config import settings
from app.core.errors import NotFoundError, UpstreamFailureError
from app.db.models import CompanyProfile, Lead, QRCode
from app.services import profile_service

CODE_LENGTH = 8
MAX_CODE_ATTEMPTS = 10


def generate_code() -> str:
    """8 URL-safe characters from 6 random bytes."""
    return base64.urlsafe_b64encode(os.urandom(6)).decode("ascii")[:CODE_LENGTH]


def _unique_code(db: Session) -> str:
    for _ in range(MAX_CODE_ATTEMPTS):
        code = generate_code()
        if not db.query(QRCode.id).filter(QRCode.unique_code == code).first():
            return code
    raise UpstreamFailureError("Could not generate a unique QR code")


def capture_url(qr_code: QRCode) -> str:
    return f"{settings.FRONTEND_URL}/lead-capture/{qr_code.unique_code}"


def create_qr_code(db: Session, user_id: UUID, label: str | None = None) -> QRCode:
    profile = profile_service.require_profile(db, user_id, "Please create a company profile first")
    qr_code = QRCode(
        profile_id=profile.id,
        unique_code=_unique_code(db),
        label=(label or "").strip() or None,
        is_active=True,
        scan_count=0,
    )
    db.add(qr_code)
    db.flush()
    return qr_code


def _owned_query(db: Session, user_id: UUID):
    return db.query(QRCode).join(CompanyProfile, QRCode.profile_id == CompanyProfile.id).filter(
        CompanyProfile.user_id == user_id
    )


def list_qr_codes(db: Session, user_id: UUID) -> list[QRCode]:
    return _owned_query(db, user_id).order_by(QRCode.created_at.desc()).all()


def get_qr_code(db: Session, user_id: UUID, qr_id: UUID) -> QRCode:
    qr_code = _owned_query(db, user_id).filter(QRCode.id == qr_id).first()
    if not qr_code:
        raise NotFoundError("QR code not found")
    return qr_code


def update_qr_code(
    db: Session,
    user_id: UUID,
    qr_id: UUID,
    *,
    is_active: bool | None = None,
    label: str | None = None,
) -> QRCode:
    qr_code = get_qr_code(db, user_id, qr_id)
    if is_active is not None:
        qr_code.is_active = is_active
    if label is not None:
        qr_code.label = label.strip() or None
    db.flush()
    return qr_code


def delete_qr_code(db: Session, user_id: UUID, qr_id: UUID) -> None:
    db.delete(get_qr_code(db, user_id, qr_id))
    db.flush()


def list_leads(db: Session, user_id: UUID, qr_id: UUID) -> list[Lead]:
    qr_code = get_qr_code(db, user_id, qr_id)
    return (
        db.query(Lead)
        .filter(Lead.qr_code_id == qr_code.id)
        .order_by(Lead.created_at.desc())
        .all()
    )
