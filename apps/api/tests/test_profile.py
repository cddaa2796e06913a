"""Tests for company profiles, strength and the marketplace."""

import pytest

from conftest import auth_for, make_user


def _upload(file_type: str, name: str):
    return {
        "files": {"file": (name, b"%PDF-1.4 capability statement", "application/pdf")},
        "data": {"file_type": file_type},
    }


def test_strength_weights():
    from app.db.models import CompanyProfile
    from app.services import profile_service

    profile = CompanyProfile(company_name="Acme", contact_info={})
    assert profile_service.calculate_profile_strength(profile, set()) == 0
    assert profile_service.calculate_profile_strength(profile, {"capability"}) == 0
    assert profile_service.calculate_profile_strength(profile, {"capability", "resume"}) == 66

    profile.contact_info = {"smsNumber": "+15550100"}
    assert profile_service.calculate_profile_strength(profile, set()) == 34
    assert profile_service.calculate_profile_strength(profile, {"capability", "resume", "other"}) == 100


@pytest.mark.asyncio
async def test_update_profile_recomputes_strength(authed_client):
    response = await authed_client.put(
        "/api/profile",
        json={
            "company_name": "Acme Cloud",
            "industry": "Technology",
            "contact_info": {"smsNumber": "+15550100", "email": "hello@acme.test"},
        },
    )

    assert response.status_code == 200
    body = response.json()
    assert body["company_name"] == "Acme Cloud"
    assert body["industry"] == "Technology"
    assert body["profile_strength"] == 34


@pytest.mark.asyncio
async def test_documents_raise_strength(authed_client):
    await authed_client.post("/api/documents/upload", **_upload("capability", "caps.pdf"))
    partial = (await authed_client.get("/api/profile")).json()
    assert partial["profile_strength"] == 0

    await authed_client.post("/api/documents/upload", **_upload("resume", "cv.pdf"))
    full = (await authed_client.get("/api/profile")).json()
    assert full["profile_strength"] == 66


@pytest.mark.asyncio
async def test_invalid_visibility_rejected(authed_client):
    response = await authed_client.put("/api/profile", json={"visibility": "friends"})

    assert response.status_code == 400
    assert response.json()["message"] == "Visibility must be 'private' or 'public'"


@pytest.mark.asyncio
async def test_profile_recreated_after_delete_requires_name(authed_client):
    assert (await authed_client.delete("/api/profile")).status_code == 200
    assert (await authed_client.get("/api/profile")).status_code == 404

    nameless = await authed_client.put("/api/profile", json={"industry": "Technology"})
    assert nameless.status_code == 400

    created = await authed_client.put("/api/profile", json={"company_name": "Acme Reborn"})
    assert created.status_code == 200
    assert created.json()["visibility"] == "private"


@pytest.mark.asyncio
async def test_marketplace_lists_public_profiles_strongest_first(authed_client, client, db):
    weak = make_user(db, "weak@example.com", company_name="Weak Co")
    strong = make_user(db, "strong@example.com", company_name="Strong Co")
    hidden = make_user(db, "hidden@example.com", company_name="Hidden Co")

    await client.put(
        "/api/profile", json={"visibility": "public"}, headers=auth_for(weak).headers
    )
    await client.put(
        "/api/profile",
        json={"visibility": "public", "contact_info": {"smsNumber": "+15550100"}},
        headers=auth_for(strong).headers,
    )

    response = await authed_client.get("/api/profile/marketplace")

    assert response.status_code == 200
    body = response.json()
    assert body["total"] == 2
    assert [p["company_name"] for p in body["items"]] == ["Strong Co", "Weak Co"]

    search = await authed_client.get("/api/profile/marketplace", params={"search": "weak"})
    assert [p["company_name"] for p in search.json()["items"]] == ["Weak Co"]

    public = await authed_client.get(f"/api/profile/{strong.profile.id}")
    private = await authed_client.get(f"/api/profile/{hidden.profile.id}")
    assert public.status_code == 200
    assert private.status_code == 404
