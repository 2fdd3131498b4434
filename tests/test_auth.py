"""Tests for login endpoints and role-gated access."""

from unittest.mock import MagicMock

import pytest
from httpx import AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession

from clinic_portal.core.exceptions import ConflictException
from clinic_portal.core.redis_client import RateLimiter
from clinic_portal.dependencies import get_rate_limiter
from clinic_portal.main import app
from clinic_portal.services.identity_service import IdentityService
from factories import PASSWORD, bearer, upcoming_day


@pytest.mark.asyncio
async def test_patient_login_and_profile(client: AsyncClient, patient):
    """Test a patient logs in case-insensitively and uses the token."""
    response = await client.post(
        "/api/v1/patient/login", json={"email": "PAT@Example.com", "password": PASSWORD}
    )

    assert response.status_code == 200
    data = response.json()
    assert data["role"] == "patient"
    assert data["token_type"] == "bearer"
    assert data["message"] == "Login successful."

    me = await client.get(
        "/api/v1/patient/me", headers={"Authorization": f"Bearer {data['access_token']}"}
    )
    assert me.status_code == 200
    assert me.json()["id"] == patient["id"]
    assert "password_hash" not in me.json()


@pytest.mark.asyncio
async def test_doctor_login(client: AsyncClient, doctor):
    """Test a doctor logs in with email and password."""
    response = await client.post(
        "/api/v1/doctor/login", json={"email": doctor["email"], "password": PASSWORD}
    )

    assert response.status_code == 200
    assert response.json()["role"] == "doctor"

    headers = {"Authorization": f"Bearer {response.json()['access_token']}"}
    day_view = await client.get(
        f"/api/v1/appointments/{upcoming_day().isoformat()}", headers=headers
    )
    assert day_view.status_code == 200


@pytest.mark.asyncio
async def test_admin_login_with_username(client: AsyncClient, admin):
    """Test an admin logs in with a username."""
    response = await client.post(
        "/api/v1/admin/login", json={"username": "root", "password": PASSWORD}
    )

    assert response.status_code == 200
    assert response.json()["role"] == "admin"


@pytest.mark.asyncio
@pytest.mark.parametrize(
    ("path", "payload"),
    [
        ("/api/v1/patient/login", {"email": "pat@example.com", "password": "wrong-pass"}),
        ("/api/v1/patient/login", {"email": "nobody@example.com", "password": PASSWORD}),
        ("/api/v1/doctor/login", {"email": "pat@example.com", "password": PASSWORD}),
        ("/api/v1/admin/login", {"username": "root", "password": "wrong-pass"}),
    ],
)
async def test_login_rejects_bad_credentials(client: AsyncClient, patient, admin, path, payload):
    """Test wrong passwords, unknown subjects and the wrong portal all answer 401."""
    response = await client.post(path, json=payload)

    assert response.status_code == 401
    assert response.json() == {
        "error": "UnauthorizedException",
        "message": "Invalid credentials.",
        "path": f"http://test{path}",
    }


@pytest.mark.asyncio
async def test_login_validation_error(client: AsyncClient):
    """Test a malformed login body is a 400."""
    response = await client.post(
        "/api/v1/patient/login", json={"email": "not-an-email", "password": PASSWORD}
    )

    assert response.status_code == 400
    assert response.json()["error"] == "ValidationError"


@pytest.mark.asyncio
async def test_login_rate_limited(client: AsyncClient, patient):
    """Test login attempts beyond the limit are rejected with 429."""
    mock_redis = MagicMock()
    mock_redis.get.return_value = "1000000"
    app.dependency_overrides[get_rate_limiter] = lambda: RateLimiter(mock_redis)

    response = await client.post(
        "/api/v1/patient/login", json={"email": "pat@example.com", "password": PASSWORD}
    )

    assert response.status_code == 429
    key = mock_redis.get.call_args.args[0]
    assert key.startswith("rate_limit:login:/api/v1/patient/login:")


@pytest.mark.asyncio
async def test_missing_and_garbage_tokens(client: AsyncClient, patient):
    """Test requests without a valid bearer token are unauthorized."""
    missing = await client.get("/api/v1/patient/me")
    garbage = await client.get(
        "/api/v1/patient/me", headers={"Authorization": "Bearer not-a-jwt"}
    )

    assert missing.status_code == 401
    assert garbage.status_code == 401
    assert garbage.json()["error"] == "InvalidToken"


@pytest.mark.asyncio
async def test_token_for_wrong_role(client: AsyncClient, doctor, patient_headers):
    """Test a patient token cannot reach a doctor endpoint."""
    response = await client.get(
        f"/api/v1/appointments/{upcoming_day().isoformat()}", headers=patient_headers
    )

    assert response.status_code == 401


@pytest.mark.asyncio
async def test_token_with_forged_role_claim(client: AsyncClient, patient):
    """Test a patient's email presented with a doctor role claim does not resolve."""
    response = await client.get(
        f"/api/v1/appointments/{upcoming_day().isoformat()}",
        headers=bearer(patient["email"], "doctor"),
    )

    assert response.status_code == 401
    assert response.json()["message"] == "Unauthorized or user not found."


@pytest.mark.asyncio
async def test_token_for_deleted_identity(
    client: AsyncClient, doctor, doctor_headers, admin_headers
):
    """Test a token stops working once its identity is deleted."""
    deleted = await client.delete(f"/api/v1/doctor/{doctor['id']}", headers=admin_headers)
    response = await client.get(
        f"/api/v1/appointments/{upcoming_day().isoformat()}", headers=doctor_headers
    )

    assert deleted.status_code == 200
    assert response.status_code == 401


@pytest.mark.asyncio
async def test_unknown_role_claim(client: AsyncClient, patient):
    """Test a token with a role outside the closed set."""
    response = await client.get("/api/v1/patient/me", headers=bearer(patient["email"], "nurse"))

    assert response.status_code == 401


@pytest.mark.asyncio
async def test_create_admin_twice_conflicts(db_session: AsyncSession, admin):
    """Test the admin bootstrap refuses a taken username."""
    with pytest.raises(ConflictException):
        await IdentityService().create_admin(db_session, "root", "another-pass")
