"""Public lead capture endpoints reached by scanning a QR code.

No authentication; rate limited by client IP via the default limits.
"""

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from app.core.deps import get_db
from app.schemas.qr import LeadCaptureLanding, LeadSubmitRequest, LeadSubmitResponse
from app.services import lead_capture_service

router = APIRouter(prefix="/lead-capture", tags=["lead-capture"])


@router.get("/{code}", response_model=LeadCaptureLanding)
def landing(code: str, db: Session = Depends(get_db)):
    """Landing page data; every view increments the scan count."""
    data = lead_capture_service.record_scan(db, code)
    db.commit()
    return data


@router.post("/{code}", response_model=LeadSubmitResponse, status_code=201)
async def submit_lead(code: str, body: LeadSubmitRequest, db: Session = Depends(get_db)):
    # Validated before any database access
    submission = lead_capture_service.validate_submission(body.model_dump())
    _, profile = lead_capture_service.submit_lead(db, code, submission)
    db.commit()

    await lead_capture_service.notify_lead(
        lead_capture_service.owner_email(db, profile), profile, submission
    )
    return LeadSubmitResponse(success=True, message=lead_capture_service.SUCCESS_MESSAGE)
