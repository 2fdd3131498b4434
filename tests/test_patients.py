"""Tests for patient registration, profile and appointment history."""

from datetime import date, datetime, time, timedelta

import pytest
from httpx import AsyncClient
from sqlalchemy import insert
from sqlalchemy.ext.asyncio import AsyncSession

from clinic_portal.models import appointments
from factories import PASSWORD, at, insert_doctor, upcoming_day

REGISTRATION = {
    "name": "Robin Park",
    "email": "Robin@Example.com",
    "phone": "5557778888",
    "address": "5 Pine Rd",
    "date_of_birth": "1990-04-12",
    "password": PASSWORD,
}


@pytest.mark.asyncio
async def test_register_patient(client: AsyncClient):
    """Test registration returns the profile without the password."""
    response = await client.post("/api/v1/patient", json=REGISTRATION)

    assert response.status_code == 201
    data = response.json()
    assert data["email"] == "robin@example.com"
    assert data["date_of_birth"] == "1990-04-12"
    assert "password" not in data and "password_hash" not in data

    login = await client.post(
        "/api/v1/patient/login", json={"email": "robin@example.com", "password": PASSWORD}
    )
    assert login.status_code == 200
    assert login.json()["role"] == "patient"


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "changes",
    [
        {"email": "pat@example.com"},
        {"phone": "5551112222"},
    ],
)
async def test_register_duplicate_patient(client: AsyncClient, patient, changes):
    """Test a taken email or phone number is a conflict."""
    response = await client.post("/api/v1/patient", json={**REGISTRATION, **changes})

    assert response.status_code == 409
    assert response.json()["message"] == "Patient with given email/phone already exists."


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "changes",
    [
        {"phone": "555-777-8888"},
        {"password": "123"},
        {"name": "Al"},
        {"date_of_birth": (date.today() + timedelta(days=1)).isoformat()},
    ],
)
async def test_register_validation(client: AsyncClient, changes):
    """Test invalid registrations are rejected with 400."""
    response = await client.post("/api/v1/patient", json={**REGISTRATION, **changes})

    assert response.status_code == 400
    assert response.json()["error"] == "ValidationError"


@pytest.mark.asyncio
async def test_me_requires_patient_token(client: AsyncClient, doctor_headers):
    """Test the profile endpoint only accepts patient tokens."""
    assert (await client.get("/api/v1/patient/me")).status_code == 401
    assert (await client.get("/api/v1/patient/me", headers=doctor_headers)).status_code == 401


@pytest.mark.asyncio
async def test_my_appointments_by_condition_and_doctor(
    client: AsyncClient, db_session: AsyncSession, doctor, patient, patient_headers
):
    """Test history filtering by status and doctor name."""
    other = await insert_doctor(
        db_session, name="Dr. Moss", email="moss@clinic.example.com", phone="5550000003"
    )
    day = upcoming_day()
    await client.post(
        "/api/v1/appointments",
        json={"doctor_id": doctor["id"], "appointment_time": at(day, 9)},
        headers=patient_headers,
    )
    await client.post(
        "/api/v1/appointments",
        json={"doctor_id": other["id"], "appointment_time": at(day, 14)},
        headers=patient_headers,
    )
    await db_session.execute(
        insert(appointments).values(
            doctor_id=doctor["id"],
            patient_id=patient["id"],
            appointment_time=datetime.combine(day - timedelta(days=30), time(9, 0)),
            status="completed",
        )
    )
    await db_session.commit()

    everything = await client.get("/api/v1/patient/appointments", headers=patient_headers)
    future = await client.get(
        "/api/v1/patient/appointments", params={"condition": "future"}, headers=patient_headers
    )
    past = await client.get(
        "/api/v1/patient/appointments", params={"condition": "PAST"}, headers=patient_headers
    )
    by_doctor = await client.get(
        "/api/v1/patient/appointments",
        params={"condition": "future", "doctor_name": "moss"},
        headers=patient_headers,
    )

    assert len(everything.json()) == 3
    assert [a["doctor_name"] for a in future.json()] == ["Dr. Lee", "Dr. Moss"]
    assert [a["status"] for a in past.json()] == ["completed"]
    assert [a["doctor_name"] for a in by_doctor.json()] == ["Dr. Moss"]


@pytest.mark.asyncio
async def test_my_appointments_only_own(
    client: AsyncClient, doctor, patient_headers, other_patient_headers
):
    """Test a patient never sees another patient's bookings."""
    await client.post(
        "/api/v1/appointments",
        json={"doctor_id": doctor["id"], "appointment_time": at(upcoming_day(), 9)},
        headers=patient_headers,
    )

    response = await client.get("/api/v1/patient/appointments", headers=other_patient_headers)

    assert response.status_code == 200
    assert response.json() == []


@pytest.mark.asyncio
async def test_my_appointments_rejects_unknown_condition(client: AsyncClient, patient_headers):
    """Test conditions other than future and past are a 400."""
    response = await client.get(
        "/api/v1/patient/appointments", params={"condition": "bogus"}, headers=patient_headers
    )

    assert response.status_code == 400
    assert response.json()["message"] == "Condition must be 'future' or 'past'."


@pytest.mark.asyncio
async def test_my_appointments_doctor_name_is_literal(
    client: AsyncClient, doctor, patient_headers
):
    """Test LIKE wildcards in the doctor name filter match nothing by themselves."""
    await client.post(
        "/api/v1/appointments",
        json={"doctor_id": doctor["id"], "appointment_time": at(upcoming_day(), 9)},
        headers=patient_headers,
    )

    for wildcard in ("%", "_"):
        response = await client.get(
            "/api/v1/patient/appointments",
            params={"doctor_name": wildcard},
            headers=patient_headers,
        )
        assert response.json() == []


@pytest.mark.asyncio
async def test_doctor_sees_patient_history_with_them(
    client: AsyncClient, db_session: AsyncSession, doctor, patient, doctor_headers, patient_headers
):
    """Test a doctor lists a patient's appointments, limited to their own."""
    other = await insert_doctor(
        db_session, name="Dr. Moss", email="moss@clinic.example.com", phone="5550000003"
    )
    day = upcoming_day()
    await client.post(
        "/api/v1/appointments",
        json={"doctor_id": doctor["id"], "appointment_time": at(day, 9)},
        headers=patient_headers,
    )
    await client.post(
        "/api/v1/appointments",
        json={"doctor_id": other["id"], "appointment_time": at(day, 14)},
        headers=patient_headers,
    )

    history = await client.get(
        f"/api/v1/patient/{patient['id']}/appointments", headers=doctor_headers
    )
    past = await client.get(
        f"/api/v1/patient/{patient['id']}/appointments",
        params={"condition": "past"},
        headers=doctor_headers,
    )

    assert history.status_code == 200
    assert [a["doctor_name"] for a in history.json()] == ["Dr. Lee"]
    assert past.json() == []


@pytest.mark.asyncio
async def test_doctor_patient_history_errors(
    client: AsyncClient, patient, doctor_headers, patient_headers
):
    """Test unknown patients, bad conditions and non-doctor tokens."""
    missing = await client.get("/api/v1/patient/999/appointments", headers=doctor_headers)
    bogus = await client.get(
        f"/api/v1/patient/{patient['id']}/appointments",
        params={"condition": "bogus"},
        headers=doctor_headers,
    )
    as_patient = await client.get(
        f"/api/v1/patient/{patient['id']}/appointments", headers=patient_headers
    )

    assert missing.status_code == 404
    assert bogus.status_code == 400
    assert as_patient.status_code == 401
