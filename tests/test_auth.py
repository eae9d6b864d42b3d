"""Tests for registration, email verification and sign-in."""
from datetime import datetime, timedelta

import pytest
from httpx import AsyncClient

from cbdra.crud.user import get_user_by_email
from cbdra.models import UserRole

from conftest import TEST_PASSWORD


def registration(**overrides) -> dict:
    data = {
        "name": "Casey Community",
        "email": "casey@example.com",
        "password": "Secret!123",
        "role": "COMMUNITY_USER",
        "allergies": "None",
    }
    data.update(overrides)
    return data


@pytest.mark.asyncio
async def test_send_otp_creates_pending_user_and_emails_code(client: AsyncClient, db, outbox):
    response = await client.post("/api/auth/send-otp", json=registration())
    assert response.status_code == 200
    assert response.json() == {"message": "OTP sent successfully", "email": "casey@example.com"}

    user = await get_user_by_email(db, "casey@example.com")
    assert user.email_verified is None
    assert user.verified is False
    assert len(user.otp) == 6
    assert user.otp_expiry > datetime.utcnow()
    assert user.hashed_password != "Secret!123"

    sent = outbox.to("casey@example.com")
    assert len(sent) == 1
    assert user.otp in outbox.body(sent[0])


@pytest.mark.asyncio
async def test_send_otp_requires_name_email_password(client: AsyncClient):
    response = await client.post("/api/auth/send-otp", json={"email": "x@example.com"})
    assert response.status_code == 400
    assert "error" in response.json()


@pytest.mark.asyncio
async def test_send_otp_rejects_admin_role(client: AsyncClient):
    response = await client.post("/api/auth/send-otp", json=registration(role="ADMIN"))
    assert response.status_code == 400
    assert response.json()["error"] == "Administrator accounts cannot be self-registered"


@pytest.mark.asyncio
async def test_send_otp_conflicts_with_verified_account(client: AsyncClient, make_user):
    await make_user(UserRole.COMMUNITY_USER, email="casey@example.com")
    response = await client.post("/api/auth/send-otp", json=registration())
    assert response.status_code == 409
    assert response.json()["error"] == "User with this email already exists"


@pytest.mark.asyncio
async def test_send_otp_overwrites_unverified_account(client: AsyncClient, db, make_user):
    await make_user(UserRole.COMMUNITY_USER, email="casey@example.com", email_verified=False)
    response = await client.post("/api/auth/send-otp", json=registration(name="New Name"))
    assert response.status_code == 200

    user = await get_user_by_email(db, "casey@example.com")
    await db.refresh(user)
    assert user.name == "New Name"
    assert user.otp is not None


@pytest.mark.asyncio
async def test_send_otp_mail_failure_removes_user(client: AsyncClient, db, outbox):
    outbox.fail = True
    response = await client.post("/api/auth/send-otp", json=registration())
    assert response.status_code == 500
    assert response.json()["error"] == "Failed to send verification email. Please try again."
    assert await get_user_by_email(db, "casey@example.com") is None


@pytest.mark.asyncio
async def test_signup_enforces_password_rules(client: AsyncClient):
    response = await client.post("/api/auth/signup", json=registration(password="short!"))
    assert response.status_code == 400

    response = await client.post("/api/auth/signup", json=registration(password="longenough1"))
    assert response.status_code == 400
    assert response.json()["error"] == "Password must contain at least one special character"


@pytest.mark.asyncio
async def test_signup_requires_role_specific_fields(client: AsyncClient):
    response = await client.post(
        "/api/auth/signup",
        json=registration(role="NGO", available_resources="Boats", ngo_name="Aid Org"),
    )
    assert response.status_code == 400
    assert response.json()["error"] == "NGO Name and NGO Founder are required for NGO"

    response = await client.post(
        "/api/auth/signup",
        json=registration(role="GOVERNMENT_AGENCY", available_resources="Trucks"),
    )
    assert response.status_code == 400
    assert response.json()["error"] == "Government ID is required for Government Agency"

    response = await client.post("/api/auth/signup", json=registration(role="VOLUNTEER"))
    assert response.status_code == 400
    assert response.json()["error"] == "Available Resources is required for non-community roles"

    response = await client.post("/api/auth/signup", json=registration(allergies=None))
    assert response.status_code == 400
    assert response.json()["error"] == "Allergies is required for Community Users"


@pytest.mark.asyncio
async def test_signup_starts_verification(client: AsyncClient, outbox):
    response = await client.post(
        "/api/auth/signup",
        json=registration(role="VOLUNTEER", available_resources="First aid", email="vol@example.com"),
    )
    assert response.status_code == 200
    data = response.json()
    assert data["email"] == "vol@example.com"
    assert data["requires_verification"] is True
    assert len(outbox.to("vol@example.com")) == 1


@pytest.mark.asyncio
async def test_resend_otp(client: AsyncClient, db, make_user, outbox):
    response = await client.post("/api/auth/resend-otp", json={"email": "nobody@example.com"})
    assert response.status_code == 404

    await make_user(UserRole.COMMUNITY_USER, email="done@example.com")
    response = await client.post("/api/auth/resend-otp", json={"email": "done@example.com"})
    assert response.status_code == 400
    assert response.json()["error"] == "Email already verified"

    await client.post("/api/auth/send-otp", json=registration())
    first = (await get_user_by_email(db, "casey@example.com")).otp_expiry
    response = await client.post("/api/auth/resend-otp", json={"email": "casey@example.com"})
    assert response.status_code == 200
    user = await get_user_by_email(db, "casey@example.com")
    await db.refresh(user)
    assert user.otp_expiry >= first
    assert len(outbox.to("casey@example.com")) == 2


@pytest.mark.asyncio
async def test_verify_otp_success_clears_code(client: AsyncClient, db):
    await client.post("/api/auth/send-otp", json=registration())
    user = await get_user_by_email(db, "casey@example.com")

    response = await client.post(
        "/api/auth/verify-otp", json={"email": "casey@example.com", "otp": user.otp}
    )
    assert response.status_code == 200
    data = response.json()
    assert data["message"] == "Email verified successfully"
    assert data["user"]["email"] == "casey@example.com"
    assert data["user"]["email_verified"] is not None

    await db.refresh(user)
    assert user.email_verified is not None
    assert user.otp is None
    assert user.otp_expiry is None

    # The code cannot be replayed
    response = await client.post(
        "/api/auth/verify-otp", json={"email": "casey@example.com", "otp": "123456"}
    )
    assert response.status_code == 400
    assert response.json()["error"] == "Email already verified"


@pytest.mark.asyncio
async def test_verify_otp_rejects_wrong_code(client: AsyncClient, db):
    await client.post("/api/auth/send-otp", json=registration())
    user = await get_user_by_email(db, "casey@example.com")
    wrong = "100000" if user.otp != "100000" else "100001"

    response = await client.post("/api/auth/verify-otp", json={"email": "casey@example.com", "otp": wrong})
    assert response.status_code == 400
    assert response.json()["error"] == "Invalid OTP"


@pytest.mark.asyncio
async def test_verify_otp_rejects_expired_code(client: AsyncClient, db, make_user):
    user = await make_user(
        UserRole.COMMUNITY_USER,
        email="late@example.com",
        email_verified=False,
        otp="123456",
        otp_expiry=datetime.utcnow() - timedelta(seconds=1),
    )
    response = await client.post("/api/auth/verify-otp", json={"email": user.email, "otp": "123456"})
    assert response.status_code == 400
    assert response.json()["error"] == "OTP has expired. Please request a new one."


@pytest.mark.asyncio
async def test_verify_otp_without_code_on_file(client: AsyncClient, make_user):
    user = await make_user(UserRole.COMMUNITY_USER, email="nocode@example.com", email_verified=False)
    response = await client.post("/api/auth/verify-otp", json={"email": user.email, "otp": "123456"})
    assert response.status_code == 400
    assert response.json()["error"] == "No OTP found. Please request a new one."


@pytest.mark.asyncio
async def test_login_sets_session_cookie(client: AsyncClient, reporter):
    response = await client.post(
        "/api/auth/login", data={"username": reporter.email, "password": TEST_PASSWORD}
    )
    assert response.status_code == 200
    assert response.json()["token_type"] == "bearer"
    assert "cbdra_session" in response.cookies

    response = await client.get("/api/auth/session")
    assert response.status_code == 200
    assert response.json()["email"] == reporter.email
    assert response.json()["role"] == "COMMUNITY_USER"

    await client.post("/api/auth/logout")
    client.cookies.clear()
    response = await client.get("/api/auth/session")
    assert response.status_code == 401


@pytest.mark.asyncio
async def test_login_rejects_bad_credentials(client: AsyncClient, reporter):
    response = await client.post("/api/auth/login", data={"username": reporter.email, "password": "nope"})
    assert response.status_code == 401
    assert response.json()["error"] == "Incorrect email or password"


@pytest.mark.asyncio
async def test_login_requires_verified_email_except_admin(client: AsyncClient, make_user):
    pending = await make_user(UserRole.VOLUNTEER, email="pending@example.com", email_verified=False)
    response = await client.post("/api/auth/login", data={"username": pending.email, "password": TEST_PASSWORD})
    assert response.status_code == 403
    assert response.json()["error"] == "Please verify your email before signing in."

    admin = await make_user(UserRole.ADMIN, email="boss@example.com", email_verified=False)
    response = await client.post("/api/auth/login", data={"username": admin.email, "password": TEST_PASSWORD})
    assert response.status_code == 200


@pytest.mark.asyncio
async def test_role_is_read_from_database_not_token(client: AsyncClient, db, reporter, auth):
    headers = auth(reporter)
    response = await client.get("/api/users", headers=headers)
    assert response.status_code == 403

    reporter.role = UserRole.ADMIN
    db.add(reporter)
    await db.commit()

    response = await client.get("/api/users", headers=headers)
    assert response.status_code == 200


@pytest.mark.asyncio
async def test_requests_without_session_are_unauthorized(client: AsyncClient):
    response = await client.get("/api/incidents")
    assert response.status_code == 401
    assert response.json() == {"error": "Unauthorized"}

    response = await client.get("/api/incidents", headers={"Authorization": "Bearer not-a-token"})
    assert response.status_code == 401
