"""Tests for QR landing pages and public lead submission."""

import pytest

from app.db.models import Lead, QRCode


LEAD = {
    "company_name": "Prospect Inc",
    "contact_name": "Pat Smith",
    "email": "Pat@Prospect.com",
    "phone": "555-0100",
    "message": "Interested in a cloud assessment",
}


def _make_qr(db, user, is_active=True) -> QRCode:
    qr_code = QRCode(
        profile_id=user.profile.id,
        unique_code="AbC123xy",
        label="Trade show",
        is_active=is_active,
        scan_count=0,
    )
    db.add(qr_code)
    db.commit()
    return qr_code


@pytest.mark.asyncio
async def test_landing_counts_every_view(client, db, test_user):
    qr_code = _make_qr(db, test_user)

    first = await client.get("/api/lead-capture/AbC123xy")
    second = await client.get("/api/lead-capture/AbC123xy")

    assert first.status_code == second.status_code == 200
    assert first.json() == {"company_name": "Acme Consulting", "company_logo": None}
    db.refresh(qr_code)
    assert qr_code.scan_count == 2
    assert qr_code.last_scanned_at is not None


@pytest.mark.asyncio
async def test_submit_lead_records_contact(client, db, test_user):
    qr_code = _make_qr(db, test_user)

    response = await client.post("/api/lead-capture/AbC123xy", json=LEAD)

    assert response.status_code == 201
    assert response.json() == {
        "success": True,
        "message": "Thank you! Check your email for next steps.",
    }
    lead = db.query(Lead).one()
    assert lead.qr_code_id == qr_code.id
    assert lead.profile_id == test_user.profile.id
    assert lead.email == "pat@prospect.com"
    assert lead.invited_at is not None


@pytest.mark.asyncio
async def test_missing_fields_rejected_before_lookup(client, db):
    """Validation runs first: an unknown code still reports the missing fields."""
    response = await client.post(
        "/api/lead-capture/does-not-exist", json={"company_name": "Prospect Inc"}
    )

    assert response.status_code == 400
    assert response.json()["message"] == "Missing required fields: contact_name, email, phone"
    assert db.query(Lead).count() == 0


@pytest.mark.asyncio
async def test_invalid_email_rejected(client, db, test_user):
    _make_qr(db, test_user)

    response = await client.post(
        "/api/lead-capture/AbC123xy", json={**LEAD, "email": "pat-at-prospect"}
    )

    assert response.status_code == 400
    assert response.json()["message"] == "Invalid email format"
    assert db.query(Lead).count() == 0


@pytest.mark.asyncio
async def test_unknown_code_is_404(client, db):
    landing = await client.get("/api/lead-capture/nope1234")
    submit = await client.post("/api/lead-capture/nope1234", json=LEAD)

    assert landing.status_code == 404
    assert submit.status_code == 404


@pytest.mark.asyncio
async def test_inactive_code_is_forbidden(client, db, test_user):
    qr_code = _make_qr(db, test_user, is_active=False)

    landing = await client.get("/api/lead-capture/AbC123xy")
    submit = await client.post("/api/lead-capture/AbC123xy", json=LEAD)

    assert landing.status_code == 403
    assert landing.json()["message"] == "This QR code is no longer active"
    assert submit.status_code == 403
    db.refresh(qr_code)
    assert qr_code.scan_count == 0
    assert db.query(Lead).count() == 0


def test_validate_submission_normalizes():
    from app.services import lead_capture_service

    submission = lead_capture_service.validate_submission(
        {**LEAD, "company_name": "  Prospect Inc  ", "message": "   "}
    )

    assert submission.company_name == "Prospect Inc"
    assert submission.email == "pat@prospect.com"
    assert submission.message is None
