"""Tests for proposal stage timing and team response analytics."""

from datetime import datetime, timedelta, timezone

import pytest

from app.db.models import ProposalTeamInvitation, ProposalTimeTracking
from conftest import auth_for, make_proposal, make_user


@pytest.mark.asyncio
async def test_track_stage_is_idempotent_while_open(authed_client, db, test_user):
    proposal = make_proposal(db, test_user)
    payload = {"proposal_id": str(proposal.id), "stage": "drafting", "metadata": {"source": "editor"}}

    created = await authed_client.post("/api/analytics/track-stage", json=payload)
    existing = await authed_client.post("/api/analytics/track-stage", json=payload)

    assert created.status_code == 201
    assert created.json()["metadata"] == {"source": "editor"}
    assert created.json()["completed_at"] is None
    assert existing.status_code == 200
    assert existing.json()["id"] == created.json()["id"]

    completed = await authed_client.put(
        f"/api/analytics/track-stage/{created.json()['id']}/complete"
    )
    assert completed.status_code == 200
    assert completed.json()["completed_at"] is not None

    restarted = await authed_client.post("/api/analytics/track-stage", json=payload)
    assert restarted.status_code == 201
    assert restarted.json()["id"] != created.json()["id"]


@pytest.mark.asyncio
async def test_track_stage_requires_stage_and_ownership(authed_client, db):
    other = make_user(db, "other@example.com")
    proposal = make_proposal(db, other)

    no_stage = await authed_client.post(
        "/api/analytics/track-stage", json={"proposal_id": str(proposal.id)}
    )
    not_owner = await authed_client.post(
        "/api/analytics/track-stage", json={"proposal_id": str(proposal.id), "stage": "review"}
    )

    assert no_stage.status_code == 400
    assert not_owner.status_code == 403


@pytest.mark.asyncio
async def test_complete_stage_owned_by_someone_else(authed_client, client, db, test_user):
    proposal = make_proposal(db, test_user)
    created = await authed_client.post(
        "/api/analytics/track-stage", json={"proposal_id": str(proposal.id), "stage": "review"}
    )
    other = make_user(db, "other@example.com")

    response = await client.put(
        f"/api/analytics/track-stage/{created.json()['id']}/complete",
        headers=auth_for(other).headers,
    )

    assert response.status_code == 403
    assert response.json()["message"] == "Not authorized to update this entry"


@pytest.mark.asyncio
async def test_proposal_times_summarize_completed_stages(authed_client, db, test_user):
    proposal = make_proposal(db, test_user)
    start = datetime.now(timezone.utc) - timedelta(hours=5)
    db.add_all([
        ProposalTimeTracking(
            proposal_id=proposal.id, user_id=test_user.id, stage="drafting",
            started_at=start, completed_at=start + timedelta(minutes=30), details={},
        ),
        ProposalTimeTracking(
            proposal_id=proposal.id, user_id=test_user.id, stage="drafting",
            started_at=start, completed_at=start + timedelta(minutes=90), details={},
        ),
        ProposalTimeTracking(
            proposal_id=proposal.id, user_id=test_user.id, stage="review",
            started_at=start, details={},
        ),
    ])
    db.commit()

    response = await authed_client.get(
        "/api/analytics/proposal-times", params={"proposal_id": str(proposal.id)}
    )

    assert response.status_code == 200
    body = response.json()
    assert body["summary"] == {"total_stages": 3, "completed_stages": 2, "average_time_minutes": 60}
    assert body["stage_stats"]["drafting"] == {
        "total_count": 2, "completed_count": 2, "total_minutes": 120, "average_minutes": 60,
    }
    assert body["stage_stats"]["review"]["completed_count"] == 0
    open_row = next(r for r in body["time_tracking"] if r["stage"] == "review")
    assert open_row["duration_minutes"] >= 299


@pytest.mark.asyncio
async def test_team_response_rates(authed_client, db, test_user):
    proposal = make_proposal(db, test_user)
    invited_at = datetime.now(timezone.utc) - timedelta(days=5)

    def invitation(email, status, responded_after=None):
        return ProposalTeamInvitation(
            proposal_id=proposal.id,
            member_email=email,
            role="Engineer",
            status=status,
            invitation_token=email.replace("@", "-").ljust(64, "0")[:64],
            invited_at=invited_at,
            responded_at=invited_at + responded_after if responded_after else None,
        )

    db.add_all([
        invitation("a@example.com", "accepted", timedelta(hours=10)),
        invitation("b@example.com", "declined", timedelta(hours=70)),
        invitation("c@example.com", "invited"),
        invitation("d@example.com", "invited"),
    ])
    db.commit()

    response = await authed_client.get("/api/analytics/team-responses")

    assert response.status_code == 200
    assert response.json() == {
        "total_invitations": 4,
        "accepted": 1,
        "declined": 1,
        "pending": 2,
        "response_rate": 50,
        "average_response_time_hours": 40.0,
        "responded_within_48_hours": 1,
        "response_rate_48_hours": 25,
    }


@pytest.mark.asyncio
async def test_team_response_rates_with_no_invitations(authed_client):
    response = await authed_client.get("/api/analytics/team-responses")

    assert response.json()["total_invitations"] == 0
    assert response.json()["response_rate"] == 0
