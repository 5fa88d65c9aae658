"""
BoxIT Backend — Account API Tests
==================================

What we test:
    signup creates an unverified user and queues a verification email
    duplicate emails are rejected with 409
    login is refused until the email is verified
    the verify link redirects with the right outcome and is single use
    bearer tokens gate protected routes
    password reset issues a token, accepts it once, rejects expired ones
"""

from datetime import datetime, timedelta, timezone

import pytest
from sqlalchemy import delete, update

from boxit.models import User

SIGNUP = {"email": "Carol@Example.com ", "password": "long-enough-pw", "name": "Carol"}


class TestSignup:

    @pytest.mark.asyncio
    async def test_signup_creates_unverified_user_and_sends_email(self, client, email_outbox, load_user):
        response = await client.post("/api/auth/signup", json=SIGNUP)

        assert response.status_code == 201
        body = response.json()
        assert body["user"]["email"] == "carol@example.com"
        assert body["user"]["email_verified"] is False
        assert "password" not in str(body)

        user = await load_user("carol@example.com")
        assert user.verification_token
        assert user.password_hash != SIGNUP["password"]

        assert len(email_outbox.outbox) == 1
        message = email_outbox.outbox[0]
        assert message.to == "carol@example.com"
        assert f"token={user.verification_token}" in message.html
        assert "http://boxit.test/api/auth/verify" in message.html

    @pytest.mark.asyncio
    async def test_duplicate_email_conflicts(self, client):
        await client.post("/api/auth/signup", json=SIGNUP)
        response = await client.post(
            "/api/auth/signup", json={**SIGNUP, "email": "carol@example.com"}
        )

        assert response.status_code == 409
        assert response.json()["error"] == "conflict"

    @pytest.mark.asyncio
    async def test_short_password_rejected(self, client):
        response = await client.post("/api/auth/signup", json={**SIGNUP, "password": "short"})

        assert response.status_code == 400
        assert response.json()["error"] == "invalid_input"
        assert response.json()["details"]["field"] == "password"

    @pytest.mark.asyncio
    async def test_malformed_email_is_a_validation_error(self, client):
        response = await client.post("/api/auth/signup", json={**SIGNUP, "email": "not-an-email"})

        assert response.status_code == 422
        assert response.json()["error"] == "invalid_input"


class TestVerificationAndLogin:

    @pytest.mark.asyncio
    async def test_login_before_verification_is_refused(self, client):
        await client.post("/api/auth/signup", json=SIGNUP)
        response = await client.post(
            "/api/auth/login", json={"email": SIGNUP["email"], "password": SIGNUP["password"]}
        )

        assert response.status_code == 401
        assert "verify" in response.json()["message"].lower()

    @pytest.mark.asyncio
    async def test_verify_then_login(self, client, load_user):
        await client.post("/api/auth/signup", json=SIGNUP)
        token = (await load_user("carol@example.com")).verification_token

        verify = await client.get("/api/auth/verify", params={"token": token})
        assert verify.status_code == 307
        assert verify.headers["location"] == "http://boxit.test/auth/signin?message=verified"

        login = await client.post(
            "/api/auth/login", json={"email": "carol@example.com", "password": SIGNUP["password"]}
        )
        assert login.status_code == 200
        body = login.json()
        assert body["token_type"] == "bearer"
        assert body["expires_in"] > 0
        assert body["user"]["email_verified"] is True

        me = await client.get(
            "/api/auth/me", headers={"Authorization": f"Bearer {body['access_token']}"}
        )
        assert me.status_code == 200
        assert me.json()["email"] == "carol@example.com"

    @pytest.mark.asyncio
    async def test_verification_token_is_single_use(self, client, load_user):
        await client.post("/api/auth/signup", json=SIGNUP)
        token = (await load_user("carol@example.com")).verification_token
        await client.get("/api/auth/verify", params={"token": token})

        again = await client.get("/api/auth/verify", params={"token": token})

        assert again.status_code == 307
        assert again.headers["location"].endswith("?error=invalid-token")
        assert (await load_user("carol@example.com")).verification_token is None

    @pytest.mark.asyncio
    async def test_wrong_password(self, client, alice):
        response = await client.post(
            "/api/auth/login", json={"email": "alice@example.com", "password": "nope-nope-nope"}
        )

        assert response.status_code == 401
        assert response.json()["message"] == "Invalid email or password"

    @pytest.mark.asyncio
    async def test_unknown_email_gets_the_same_answer(self, client):
        response = await client.post(
            "/api/auth/login", json={"email": "ghost@example.com", "password": "whatever-123"}
        )

        assert response.status_code == 401
        assert response.json()["message"] == "Invalid email or password"


class TestSessionGate:

    @pytest.mark.asyncio
    async def test_missing_token(self, client):
        response = await client.get("/api/storage-rooms")

        assert response.status_code == 401
        assert response.json()["error"] == "unauthorized"

    @pytest.mark.asyncio
    async def test_garbage_token(self, client):
        response = await client.get(
            "/api/storage-rooms", headers={"Authorization": "Bearer not.a.jwt"}
        )

        assert response.status_code == 401

    @pytest.mark.asyncio
    async def test_token_of_deleted_user(self, app, client, alice):
        async with app.state.database.session_factory() as db:
            await db.execute(delete(User).where(User.email == "alice@example.com"))
            await db.commit()

        response = await client.get("/api/storage-rooms", headers=alice)

        assert response.status_code == 401


class TestCheckUser:

    @pytest.mark.asyncio
    async def test_reports_existence_and_verification(self, client, alice):
        known = await client.post("/api/auth/check-user", json={"email": "ALICE@example.com"})
        unknown = await client.post("/api/auth/check-user", json={"email": "nobody@example.com"})

        assert known.json() == {"exists": True, "verified": True}
        assert unknown.json() == {"exists": False, "verified": False}


class TestPasswordReset:

    @pytest.mark.asyncio
    async def test_forgot_password_answers_identically(self, client, alice, email_outbox):
        email_outbox.outbox.clear()
        known = await client.post("/api/auth/forgot-password", json={"email": "alice@example.com"})
        unknown = await client.post("/api/auth/forgot-password", json={"email": "nobody@example.com"})

        assert known.status_code == unknown.status_code == 200
        assert known.json() == unknown.json()
        assert [m.to for m in email_outbox.outbox] == ["alice@example.com"]

    @pytest.mark.asyncio
    async def test_reset_with_token(self, client, alice, load_user):
        await client.post("/api/auth/forgot-password", json={"email": "alice@example.com"})
        token = (await load_user("alice@example.com")).password_reset_token

        reset = await client.post(
            "/api/auth/reset-password", json={"token": token, "password": "brand-new-password"}
        )
        assert reset.status_code == 200

        old = await client.post(
            "/api/auth/login", json={"email": "alice@example.com", "password": "correct-horse-battery"}
        )
        new = await client.post(
            "/api/auth/login", json={"email": "alice@example.com", "password": "brand-new-password"}
        )
        assert old.status_code == 401
        assert new.status_code == 200

        reused = await client.post(
            "/api/auth/reset-password", json={"token": token, "password": "another-password"}
        )
        assert reused.status_code == 400

    @pytest.mark.asyncio
    async def test_expired_token_rejected(self, app, client, alice, load_user):
        await client.post("/api/auth/forgot-password", json={"email": "alice@example.com"})
        token = (await load_user("alice@example.com")).password_reset_token
        async with app.state.database.session_factory() as db:
            await db.execute(
                update(User)
                .where(User.email == "alice@example.com")
                .values(password_reset_expires=datetime.now(timezone.utc) - timedelta(minutes=1))
            )
            await db.commit()

        response = await client.post(
            "/api/auth/reset-password", json={"token": token, "password": "brand-new-password"}
        )

        assert response.status_code == 400
        assert response.json()["message"] == "Invalid or expired reset token"
