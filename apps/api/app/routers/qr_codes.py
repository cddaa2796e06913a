"""QR code management endpoints (authenticated)."""

from uuid import UUID

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from app.core.deps import get_current_user, get_db
from app.db.models import User
from app.schemas.qr import LeadRead, QRCodeCreate, QRCodeDetail, QRCodeRead, QRCodeUpdate
from app.services import qr_service

router = APIRouter(prefix="/qr-codes", tags=["qr-codes"])


def _qr_to_read(qr_code) -> QRCodeRead:
    return QRCodeRead.from_model(qr_code, qr_service.capture_url(qr_code))


@router.post("", response_model=QRCodeRead, status_code=201)
def create_qr_code(
    body: QRCodeCreate | None = None,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    qr_code = qr_service.create_qr_code(db, user.id, body.label if body else None)
    db.commit()
    return _qr_to_read(qr_code)


@router.get("", response_model=list[QRCodeRead])
def list_qr_codes(user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    return [_qr_to_read(qr) for qr in qr_service.list_qr_codes(db, user.id)]


@router.get("/{qr_id}", response_model=QRCodeDetail)
def get_qr_code(qr_id: UUID, user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    qr_code = qr_service.get_qr_code(db, user.id, qr_id)
    return QRCodeDetail(
        **_qr_to_read(qr_code).model_dump(),
        leads=[LeadRead.model_validate(lead) for lead in qr_code.leads],
    )


@router.patch("/{qr_id}", response_model=QRCodeRead)
def update_qr_code(
    qr_id: UUID,
    body: QRCodeUpdate,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    qr_code = qr_service.update_qr_code(db, user.id, qr_id, is_active=body.is_active, label=body.label)
    db.commit()
    return _qr_to_read(qr_code)


@router.delete("/{qr_id}")
def delete_qr_code(qr_id: UUID, user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    qr_service.delete_qr_code(db, user.id, qr_id)
    db.commit()
    return {"success": True}


@router.get("/{qr_id}/leads", response_model=list[LeadRead])
def list_leads(qr_id: UUID, user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    return [LeadRead.model_validate(lead) for lead in qr_service.list_leads(db, user.id, qr_id)]
