"""Tests for registration, sign-in and bearer sessions."""

import pytest

from conftest import TEST_PASSWORD


@pytest.mark.asyncio
async def test_register_creates_user_and_default_profile(client):
    response = await client.post(
        "/api/auth/register",
        json={"email": "New.User@Example.com", "password": "long-enough-password"},
    )

    assert response.status_code == 201
    body = response.json()
    assert body["token_type"] == "bearer"
    assert body["user"]["email"] == "new.user@example.com"

    me = await client.get(
        "/api/auth/me", headers={"Authorization": f"Bearer {body['access_token']}"}
    )
    assert me.status_code == 200
    profile = me.json()["profile"]
    assert profile["company_name"] == "My Company"
    assert profile["visibility"] == "private"
    assert profile["profile_strength"] == 0


@pytest.mark.asyncio
async def test_register_rejects_duplicate_email(client, test_user):
    response = await client.post(
        "/api/auth/register",
        json={"email": test_user.email.upper(), "password": "long-enough-password"},
    )

    assert response.status_code == 409
    assert response.json()["error"] == "Conflict"


@pytest.mark.asyncio
async def test_register_validates_input(client):
    bad_email = await client.post(
        "/api/auth/register", json={"email": "not-an-email", "password": "long-enough-password"}
    )
    short_password = await client.post(
        "/api/auth/register", json={"email": "ok@example.com", "password": "short"}
    )

    assert bad_email.status_code == 400
    assert bad_email.json() == {"error": "Validation error", "message": "Invalid email format"}
    assert short_password.status_code == 400
    assert "at least 8 characters" in short_password.json()["message"]


@pytest.mark.asyncio
async def test_login_returns_session(client, test_user):
    response = await client.post(
        "/api/auth/login", json={"email": test_user.email, "password": TEST_PASSWORD}
    )

    assert response.status_code == 200
    body = response.json()
    assert body["access_token"]
    assert body["refresh_token"]
    assert body["user"]["last_login_at"] is not None


@pytest.mark.asyncio
async def test_login_wrong_password_is_401(client, test_user):
    response = await client.post(
        "/api/auth/login", json={"email": test_user.email, "password": "wrong-password"}
    )

    assert response.status_code == 401
    assert response.json()["message"] == "Invalid email or password"


@pytest.mark.asyncio
async def test_sixth_login_in_window_is_rate_limited(client, test_user):
    """Auth endpoints allow 5 attempts per 15 minutes per client."""
    statuses = []
    for _ in range(6):
        response = await client.post(
            "/api/auth/login", json={"email": test_user.email, "password": "wrong-password"}
        )
        statuses.append(response.status_code)

    assert statuses == [401, 401, 401, 401, 401, 429]
    assert response.json()["error"] == "Rate limit exceeded"


@pytest.mark.asyncio
async def test_protected_endpoint_requires_token(client):
    missing = await client.get("/api/auth/me")
    garbage = await client.get("/api/auth/me", headers={"Authorization": "Bearer not-a-jwt"})

    assert missing.status_code == 401
    assert missing.json() == {"error": "Unauthorized", "message": "No token provided"}
    assert garbage.status_code == 401


@pytest.mark.asyncio
async def test_logout_revokes_outstanding_tokens(authed_client):
    assert (await authed_client.get("/api/auth/me")).status_code == 200

    response = await authed_client.post("/api/auth/logout")
    assert response.status_code == 200

    after = await authed_client.get("/api/auth/me")
    assert after.status_code == 401
    assert after.json()["message"] == "Session revoked"


@pytest.mark.asyncio
async def test_refresh_issues_new_access_token(client, test_user):
    login = await client.post(
        "/api/auth/login", json={"email": test_user.email, "password": TEST_PASSWORD}
    )
    refresh_token = login.json()["refresh_token"]

    response = await client.post("/api/auth/refresh", json={"refresh_token": refresh_token})
    assert response.status_code == 200
    new_access = response.json()["access_token"]
    me = await client.get("/api/auth/me", headers={"Authorization": f"Bearer {new_access}"})
    assert me.status_code == 200


@pytest.mark.asyncio
async def test_access_token_cannot_be_used_as_refresh_token(client, test_auth):
    response = await client.post("/api/auth/refresh", json={"refresh_token": test_auth.token})

    assert response.status_code == 401


@pytest.mark.asyncio
async def test_forgot_password_does_not_reveal_accounts(client, test_user):
    known = await client.post("/api/auth/forgot-password", json={"email": test_user.email})
    unknown = await client.post("/api/auth/forgot-password", json={"email": "nobody@example.com"})

    assert known.status_code == unknown.status_code == 200
    assert known.json() == unknown.json()


@pytest.mark.asyncio
async def test_reset_password_with_reset_token(client, db, test_user):
    from app.core.security import create_reset_token

    token = create_reset_token(test_user.id, test_user.token_version)
    response = await client.post(
        "/api/auth/reset-password",
        json={"password": "brand-new-password"},
        headers={"Authorization": f"Bearer {token}"},
    )
    assert response.status_code == 200

    old = await client.post(
        "/api/auth/login", json={"email": test_user.email, "password": TEST_PASSWORD}
    )
    new = await client.post(
        "/api/auth/login", json={"email": test_user.email, "password": "brand-new-password"}
    )
    assert old.status_code == 401
    assert new.status_code == 200

    # The reset bumped the token version, so the reset token is spent
    reuse = await client.post(
        "/api/auth/reset-password",
        json={"password": "another-password"},
        headers={"Authorization": f"Bearer {token}"},
    )
    assert reuse.status_code == 401


def test_limiter_falls_back_to_memory_when_redis_is_down(monkeypatch, caplog):
    import redis
    from slowapi import Limiter

    from app.core import rate_limit

    def unreachable(*args, **kwargs):
        raise redis.ConnectionError("connection refused")

    monkeypatch.setattr(redis, "from_url", unreachable)

    with caplog.at_level("WARNING", logger="app.core.rate_limit"):
        limiter = rate_limit.build_limiter(testing=False, redis_url="redis://redis.invalid:6379/0")

    assert isinstance(limiter, Limiter)
    record = caplog.records[-1]
    assert record.name == "app.core.rate_limit"
    assert record.getMessage() == (
        "Redis unavailable for rate limiting, using in-memory: connection refused"
    )
