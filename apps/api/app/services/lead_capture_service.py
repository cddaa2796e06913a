"""Public QR landing page: scan counting and lead submission."""

import logging
from dataclasses import dataclass
from datetime import datetime, timezone

from sqlalchemy.orm import Session

from app.core.errors import ForbiddenError, NotFoundError, ValidationError
from app.db.models import CompanyProfile, Lead, QRCode, User
from app.services import email_service
from app.utils.normalization import is_valid_email, normalize_email

logger = logging.getLogger(__name__)

REQUIRED_FIELDS = ("company_name", "contact_name", "email", "phone")
SUCCESS_MESSAGE = "Thank you! Check your email for next steps."


@dataclass
class LeadSubmission:
    company_name: str
    contact_name: str
    email: str
    phone: str
    message: str | None = None


def validate_submission(data: dict) -> LeadSubmission:
    """
    Check required fields and email shape. Touches no database state.

    Raises:
        ValidationError: missing field or bad email
    """
    missing = [name for name in REQUIRED_FIELDS if not str(data.get(name) or "").strip()]
    if missing:
        raise ValidationError(f"Missing required fields: {', '.join(missing)}")
    if not is_valid_email(data["email"]):
        raise ValidationError("Invalid email format")
    message = data.get("message")
    return LeadSubmission(
        company_name=data["company_name"].strip(),
        contact_name=data["contact_name"].strip(),
        email=normalize_email(data["email"]),
        phone=data["phone"].strip(),
        message=message.strip() if isinstance(message, str) and message.strip() else None,
    )


def _active_qr_code(db: Session, code: str) -> QRCode:
    qr_code = db.query(QRCode).filter(QRCode.unique_code == code).first()
    if not qr_code:
        raise NotFoundError("QR code not found")
    if not qr_code.is_active:
        raise ForbiddenError("This QR code is no longer active")
    return qr_code


def record_scan(db: Session, code: str) -> dict:
    """Count a page view (every view counts) and return the public landing data."""
    qr_code = _active_qr_code(db, code)
    qr_code.scan_count = (qr_code.scan_count or 0) + 1
    qr_code.last_scanned_at = datetime.now(timezone.utc)
    db.flush()
    return {"company_name": qr_code.profile.company_name, "company_logo": None}


def submit_lead(db: Session, code: str, submission: LeadSubmission) -> tuple[Lead, CompanyProfile]:
    qr_code = _active_qr_code(db, code)
    lead = Lead(
        qr_code_id=qr_code.id,
        profile_id=qr_code.profile_id,
        company_name=submission.company_name,
        contact_name=submission.contact_name,
        email=submission.email,
        phone=submission.phone,
        message=submission.message,
        invited_at=datetime.now(timezone.utc),
    )
    db.add(lead)
    db.flush()
    logger.info("Lead captured", extra={"qr_code_id": str(qr_code.id), "lead_id": str(lead.id)})
    return lead, qr_code.profile


async def notify_lead(owner_email: str | None, profile: CompanyProfile, submission: LeadSubmission) -> None:
    """Owner notification and prospect welcome; failures are logged only."""
    if owner_email:
        ok, error = await email_service.send_lead_notification(
            owner_email,
            submission.company_name,
            submission.contact_name,
            submission.email,
            submission.phone,
            submission.message,
        )
        if not ok:
            logger.warning("Lead owner notification not sent: %s", error)
    ok, error = await email_service.send_lead_welcome(
        submission.email, submission.contact_name, profile.company_name
    )
    if not ok:
        logger.warning("Lead welcome email not sent: %s", error)


def owner_email(db: Session, profile: CompanyProfile) -> str | None:
    user = db.query(User).filter(User.id == profile.user_id).first()
    return user.email if user else None
