"""Tests for proposal team invitations."""

import pytest

from conftest import auth_for, make_proposal, make_user


def _token(invite_response) -> str:
    return invite_response.json()["invitation_link"].split("token=", 1)[1]


async def _invite(authed_client, proposal, email, role="Cloud Architect", **extra):
    return await authed_client.post(
        "/api/team/invite",
        json={"proposal_id": str(proposal.id), "member_email": email, "role": role, **extra},
    )


@pytest.mark.asyncio
async def test_invite_creates_pending_invitation(authed_client, db, test_user):
    proposal = make_proposal(db, test_user)

    response = await _invite(
        authed_client, proposal, "Member@Example.com", rate_range={"low": 90, "high": 140}
    )

    assert response.status_code == 201
    body = response.json()
    assert body["invitation"]["status"] == "invited"
    assert body["invitation"]["member_email"] == "member@example.com"
    assert body["invitation"]["rate_range"] == {"low": 90, "high": 140}
    assert body["invitation_link"].startswith("http://localhost:3000/invitations/accept?token=")
    assert len(_token(response)) == 64
    # No Resend key in tests
    assert body["email_sent"] is False


@pytest.mark.asyncio
async def test_invite_requires_fields(authed_client, db, test_user):
    proposal = make_proposal(db, test_user)

    no_role = await authed_client.post(
        "/api/team/invite", json={"proposal_id": str(proposal.id), "member_email": "a@b.co"}
    )
    bad_email = await _invite(authed_client, proposal, "not-an-email")

    assert no_role.status_code == 400
    assert no_role.json()["message"] == "proposal_id, member_email and role are required"
    assert bad_email.status_code == 400
    assert bad_email.json()["message"] == "Invalid email format"


@pytest.mark.asyncio
async def test_duplicate_pending_invite_conflicts(authed_client, db, test_user):
    proposal = make_proposal(db, test_user)

    first = await _invite(authed_client, proposal, "member@example.com")
    second = await _invite(authed_client, proposal, "member@example.com")

    assert first.status_code == 201
    assert second.status_code == 409


@pytest.mark.asyncio
async def test_only_owner_can_invite(authed_client, db):
    other = make_user(db, "other-owner@example.com")
    proposal = make_proposal(db, other)

    response = await _invite(authed_client, proposal, "member@example.com")

    assert response.status_code == 403


@pytest.mark.asyncio
async def test_accept_then_respond_again_conflicts(authed_client, client, db, test_user):
    """Accepted is terminal: any further response is rejected."""
    proposal = make_proposal(db, test_user)
    member = make_user(db, "member@example.com", company_name="Member LLC")
    member_headers = auth_for(member).headers

    invite = await _invite(authed_client, proposal, member.email)
    invitation_id = invite.json()["invitation"]["id"]

    accepted = await client.post(
        f"/api/team/invitations/{invitation_id}/accept",
        json={"token": _token(invite)},
        headers=member_headers,
    )
    assert accepted.status_code == 200
    assert accepted.json()["status"] == "accepted"
    assert accepted.json()["responded_at"] is not None
    assert accepted.json()["member_profile_id"] == str(member.profile.id)

    again = await client.post(
        f"/api/team/invitations/{invitation_id}/decline", headers=member_headers
    )
    assert again.status_code == 409
    assert again.json()["message"] == "Invitation has already been responded to"

    reinvite = await _invite(authed_client, proposal, member.email)
    assert reinvite.status_code == 409


@pytest.mark.asyncio
async def test_declined_member_can_be_reinvited(authed_client, client, db, test_user):
    proposal = make_proposal(db, test_user)
    member = make_user(db, "member@example.com")
    member_headers = auth_for(member).headers

    invite = await _invite(authed_client, proposal, member.email, role="Engineer")
    invitation_id = invite.json()["invitation"]["id"]
    declined = await client.post(
        f"/api/team/invitations/{invitation_id}/decline", headers=member_headers
    )
    assert declined.json()["status"] == "declined"

    reinvite = await _invite(authed_client, proposal, member.email, role="Lead Engineer")

    assert reinvite.status_code == 201
    body = reinvite.json()["invitation"]
    assert body["id"] == invitation_id
    assert body["status"] == "invited"
    assert body["role"] == "Lead Engineer"
    assert body["responded_at"] is None
    assert _token(reinvite) != _token(invite)


@pytest.mark.asyncio
async def test_respond_rejects_wrong_token_and_wrong_user(authed_client, client, db, test_user):
    proposal = make_proposal(db, test_user)
    member = make_user(db, "member@example.com")
    stranger = make_user(db, "stranger@example.com")

    invite = await _invite(authed_client, proposal, member.email)
    invitation_id = invite.json()["invitation"]["id"]

    wrong_token = await client.post(
        f"/api/team/invitations/{invitation_id}/accept",
        json={"token": "0" * 64},
        headers=auth_for(member).headers,
    )
    wrong_user = await client.post(
        f"/api/team/invitations/{invitation_id}/accept",
        json={"token": _token(invite)},
        headers=auth_for(stranger).headers,
    )

    assert wrong_token.status_code == 403
    assert wrong_user.status_code == 403


@pytest.mark.asyncio
async def test_team_visible_to_owner_and_accepted_members(authed_client, client, db, test_user):
    proposal = make_proposal(db, test_user)
    member = make_user(db, "member@example.com")
    stranger = make_user(db, "stranger@example.com")

    invite = await _invite(authed_client, proposal, member.email)
    invitation_id = invite.json()["invitation"]["id"]

    pending_view = await client.get(
        f"/api/team/proposal/{proposal.id}", headers=auth_for(member).headers
    )
    assert pending_view.status_code == 403

    await client.post(
        f"/api/team/invitations/{invitation_id}/accept", headers=auth_for(member).headers
    )

    owner_view = await authed_client.get(f"/api/team/proposal/{proposal.id}")
    member_view = await client.get(
        f"/api/team/proposal/{proposal.id}", headers=auth_for(member).headers
    )
    stranger_view = await client.get(
        f"/api/team/proposal/{proposal.id}", headers=auth_for(stranger).headers
    )

    assert owner_view.status_code == 200
    assert owner_view.json()["is_owner"] is True
    assert [m["member_email"] for m in owner_view.json()["members"]] == [member.email]
    assert member_view.status_code == 200
    assert member_view.json()["is_owner"] is False
    assert stranger_view.status_code == 403


@pytest.mark.asyncio
async def test_my_invitations_and_public_token_lookup(authed_client, client, db, test_user):
    proposal = make_proposal(db, test_user, title="Data Platform RFP")
    member = make_user(db, "member@example.com")

    invite = await _invite(authed_client, proposal, member.email)

    mine = await client.get("/api/team/invitations", headers=auth_for(member).headers)
    assert mine.status_code == 200
    assert [i["proposal_title"] for i in mine.json()] == ["Data Platform RFP"]

    public = await client.get(f"/api/team/invitations/token/{_token(invite)}")
    assert public.status_code == 200
    assert public.json()["member_email"] == member.email
    assert public.json()["status"] == "invited"

    missing = await client.get("/api/team/invitations/token/unknown")
    assert missing.status_code == 404


@pytest.mark.asyncio
async def test_owner_removes_member(authed_client, db, test_user):
    proposal = make_proposal(db, test_user)
    invite = await _invite(authed_client, proposal, "member@example.com")
    invitation_id = invite.json()["invitation"]["id"]

    response = await authed_client.delete(
        f"/api/team/proposal/{proposal.id}/member/{invitation_id}"
    )
    assert response.status_code == 200

    team = await authed_client.get(f"/api/team/proposal/{proposal.id}")
    assert team.json()["members"] == []

    again = await authed_client.delete(
        f"/api/team/proposal/{proposal.id}/member/{invitation_id}"
    )
    assert again.status_code == 404
