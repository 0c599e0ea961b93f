"""
Integration tests for the Authentication Flow.

Verifies Signup -> Verify Email -> Login -> Me -> Logout.
"""

import pytest
from sqlalchemy import select

from bunkride.app.models.notification import Notification, NotificationType
from bunkride.app.core.jwt import create_email_verification_token

SIGNUP = {
    "email": "Priya@Thapar.edu",
    "password": "password123",
    "name": "Priya Verma",
    "phone": "9812345678",
    "year": "2nd",
}


async def verification_token(db_session, user_id):
    result = await db_session.execute(
        select(Notification).where(
            Notification.user_id == user_id,
            Notification.type == NotificationType.EMAIL_VERIFICATION,
        )
    )
    return result.scalar_one().metadata_payload["token"]


@pytest.mark.asyncio
async def test_signup_derives_college_and_starts_unverified(client, db_session):
    response = await client.post("/v1/auth/signup", json=SIGNUP)
    assert response.status_code == 201
    data = response.json()
    assert data["email"] == "priya@thapar.edu"
    assert data["college"] == "thapar"
    assert data["email_verified"] is False

    token = await verification_token(db_session, data["user_id"])
    assert token


@pytest.mark.asyncio
async def test_signup_requires_institutional_email(client):
    response = await client.post("/v1/auth/signup", json={**SIGNUP, "email": "priya@gmail.com"})
    assert response.status_code == 422
    assert response.json()["error_code"] == "ERR_VALIDATION"


@pytest.mark.asyncio
async def test_signup_rejects_short_password(client):
    response = await client.post("/v1/auth/signup", json={**SIGNUP, "password": "123"})
    assert response.status_code == 422


@pytest.mark.asyncio
async def test_duplicate_signup(client):
    assert (await client.post("/v1/auth/signup", json=SIGNUP)).status_code == 201
    response = await client.post("/v1/auth/signup", json=SIGNUP)
    assert response.status_code == 400
    assert "already registered" in response.json()["message"]


@pytest.mark.asyncio
async def test_full_auth_flow(client, db_session):
    signup = await client.post("/v1/auth/signup", json=SIGNUP)
    user_id = signup.json()["user_id"]
    credentials = {"email": SIGNUP["email"], "password": SIGNUP["password"]}

    # 1. Unverified login is refused
    response = await client.post("/v1/auth/login", json=credentials)
    assert response.status_code == 403
    assert response.json()["error_code"] == "ERR_AUTH_UNVERIFIED"

    # 2. Verify
    token = await verification_token(db_session, user_id)
    response = await client.post("/v1/auth/verify-email", json={"token": token})
    assert response.status_code == 200
    assert response.json()["email_verified"] is True

    # 3. Login
    response = await client.post("/v1/auth/login", json=credentials)
    assert response.status_code == 200
    data = response.json()
    assert data["college"] == "thapar"
    headers = {"Authorization": f"Bearer {data['access_token']}"}

    # 4. Me
    response = await client.get("/v1/auth/me", headers=headers)
    assert response.status_code == 200
    assert response.json()["name"] == "Priya Verma"

    # 5. Logout revokes the token
    response = await client.post("/v1/auth/logout", headers=headers)
    assert response.status_code == 200
    response = await client.get("/v1/auth/me", headers=headers)
    assert response.status_code == 401


@pytest.mark.asyncio
async def test_wrong_password(client, alice):
    response = await client.post("/v1/auth/login", json={"email": alice.email, "password": "nope-nope"})
    assert response.status_code == 401
    assert response.json()["error_code"] == "ERR_AUTH_001"


@pytest.mark.asyncio
async def test_verification_token_is_not_a_session(client, alice):
    token = create_email_verification_token(alice.id, alice.email)
    response = await client.get("/v1/auth/me", headers={"Authorization": f"Bearer {token}"})
    assert response.status_code == 401


@pytest.mark.asyncio
async def test_invalid_verification_token(client):
    response = await client.post("/v1/auth/verify-email", json={"token": "garbage"})
    assert response.status_code == 401


@pytest.mark.asyncio
async def test_unverified_user_cannot_use_trip_endpoints(client, make_user, headers_for):
    ghost = await make_user("ghost@thapar.edu", verified=False)
    response = await client.get("/v1/trips/joinable", headers=headers_for(ghost))
    assert response.status_code == 403


@pytest.mark.asyncio
async def test_profile_update_and_privacy_flags(client, alice, headers_for):
    response = await client.patch(
        "/v1/profile",
        json={"phone": "9000000000", "show_name": False, "show_year": False},
        headers=headers_for(alice),
    )
    assert response.status_code == 200
    data = response.json()
    assert data["phone"] == "9000000000"
    assert data["show_name"] is False
    assert data["college"] == "thapar"

    response = await client.get("/v1/profile", headers=headers_for(alice))
    assert response.json()["show_year"] is False
