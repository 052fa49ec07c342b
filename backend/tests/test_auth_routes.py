"""
MoodTrack Backend — Auth Endpoint Tests
=========================================

End-to-end through the FastAPI app with an in-memory database:
    ✅ signup → token; repeat → Conflict (400 / 40009)
    ✅ the stored password is a hash, and signin with the same plaintext works
    ✅ wrong password / unknown email → 401 / 40004
    ✅ locked account → 423 / 40006 only once the password matches
    ✅ malformed bodies → 400 / 40002
"""

from datetime import datetime, timezone

import pytest
from sqlalchemy import select, update

from moodtrack.models import User
from moodtrack.services import token_service
from moodtrack.config import settings

SIGNUP_BODY = {"email": "a@b.com", "password": "password1", "firstName": "A", "lastName": "B"}


async def signup(client, **overrides):
    return await client.post("/api/auth/signup", json={**SIGNUP_BODY, **overrides})


class TestSignup:
    @pytest.mark.asyncio
    async def test_returns_token_and_profile(self, test_client):
        response = await signup(test_client)

        assert response.status_code == 200
        body = response.json()
        assert body["success"] is True
        assert body["message"] == "User registered successfully"
        data = body["data"]
        assert data["email"] == "a@b.com"
        assert data["firstName"] == "A"
        assert data["lastName"] == "B"
        assert len(data["userId"]) == 32
        assert data["createdAt"].endswith("+00:00")

        claims = token_service.verify(data["token"], settings.auth_secret)
        assert claims.user.id.hex == data["userId"]
        assert claims.user.email == "a@b.com"

    @pytest.mark.asyncio
    async def test_password_is_stored_hashed(self, test_client, session_factory):
        await signup(test_client)

        async with session_factory() as session:
            stored = (await session.execute(select(User.password).where(User.email == "a@b.com"))).scalar_one()

        assert stored != "password1"
        assert stored.startswith("$2")

    @pytest.mark.asyncio
    async def test_duplicate_email_conflicts(self, test_client):
        assert (await signup(test_client)).status_code == 200

        response = await signup(test_client, password="different-pass", firstName="C", lastName="D")

        assert response.status_code == 400
        body = response.json()
        assert body["success"] is False
        assert body["error"] == 40009
        assert body["message"] == "Email already registered"

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "overrides",
        [
            {"email": "not-an-email"},
            {"password": "short"},
            {"password": "x" * 73},
            {"firstName": ""},
        ],
    )
    async def test_invalid_body(self, test_client, overrides):
        response = await signup(test_client, **overrides)

        assert response.status_code == 400
        body = response.json()
        assert body["error"] == 40002
        assert body["details"]

    @pytest.mark.asyncio
    async def test_response_carries_request_id(self, test_client):
        response = await test_client.post(
            "/api/auth/signup", json=SIGNUP_BODY, headers={"X-Request-ID": "trace-123"}
        )
        assert response.headers["X-Request-ID"] == "trace-123"


class TestSignin:
    @pytest.mark.asyncio
    async def test_signin_after_signup(self, test_client):
        created = (await signup(test_client)).json()["data"]

        response = await test_client.post(
            "/api/auth/signin", json={"email": "a@b.com", "password": "password1"}
        )

        assert response.status_code == 200
        body = response.json()
        assert body["message"] == "User signed in successfully"
        assert body["data"]["userId"] == created["userId"]
        assert "createdAt" not in body["data"]
        assert token_service.verify(body["data"]["token"], settings.auth_secret).user.id.hex == created["userId"]

    @pytest.mark.asyncio
    async def test_wrong_password(self, test_client):
        await signup(test_client)

        response = await test_client.post(
            "/api/auth/signin", json={"email": "a@b.com", "password": "wrong-password"}
        )

        assert response.status_code == 401
        assert response.json()["error"] == 40004

    @pytest.mark.asyncio
    async def test_unknown_email_looks_like_wrong_password(self, test_client):
        response = await test_client.post(
            "/api/auth/signin", json={"email": "nobody@b.com", "password": "password1"}
        )

        assert response.status_code == 401
        assert response.json()["error"] == 40004
        assert response.json()["message"] == "Wrong authentication credentials"

    @pytest.mark.asyncio
    async def test_locked_account(self, test_client, session_factory):
        await signup(test_client)
        async with session_factory() as session:
            await session.execute(
                update(User).where(User.email == "a@b.com").values(locked_at=datetime.now(timezone.utc))
            )
            await session.commit()

        wrong = await test_client.post("/api/auth/signin", json={"email": "a@b.com", "password": "nope-nope"})
        right = await test_client.post("/api/auth/signin", json={"email": "a@b.com", "password": "password1"})

        assert wrong.status_code == 401
        assert right.status_code == 423
        assert right.json()["error"] == 40006
