"""Tests for slot parsing and the availability calculator."""

from datetime import date, datetime, time, timedelta

import pytest
from httpx import AsyncClient
from sqlalchemy import insert
from sqlalchemy.ext.asyncio import AsyncSession

from clinic_portal.core.slots import parse_slot
from clinic_portal.models import appointments
from clinic_portal.services.availability_service import (
    AvailabilityService,
    AvailableSlots,
    parse_slots,
)
from factories import at, insert_doctor, upcoming_day


async def insert_appointment(db: AsyncSession, doctor_id: int, patient_id: int, when: datetime):
    result = await db.execute(
        insert(appointments)
        .values(doctor_id=doctor_id, patient_id=patient_id, appointment_time=when)
        .returning(appointments.c.id)
    )
    appointment_id = result.scalar_one()
    await db.commit()
    return appointment_id


def test_parse_slot_formats():
    """Test 24-hour, 12-hour and range labels."""
    assert parse_slot("09:00").start == time(9, 0)
    assert parse_slot("9:30 AM").start == time(9, 30)
    assert parse_slot("12:00 AM").start == time(0, 0)
    assert parse_slot("12:15 pm").start == time(12, 15)
    assert parse_slot("02:00 PM").start == time(14, 0)

    ranged = parse_slot("09:00 AM - 10:30 AM")
    assert (ranged.start, ranged.end) == (time(9, 0), time(10, 30))
    assert ranged.end_minute(60) == 10 * 60 + 30
    assert parse_slot("14:00").end_minute(60) == 15 * 60


@pytest.mark.parametrize("label", ["", "9", "25:00", "09:75", "13:00 PM", "10:00-09:00", "noon"])
def test_parse_slot_rejects_malformed(label):
    """Test malformed labels raise ValueError."""
    with pytest.raises(ValueError):
        parse_slot(label)


def test_parse_slots_skips_invalid_labels():
    """Test stored labels that no longer parse are ignored."""
    slots = parse_slots(["09:00", "garbage", "14:00"], doctor_id=1)

    assert [slot.label for slot in slots] == ["09:00", "14:00"]


def test_available_slots_sorted_and_labels_unchanged():
    """Test slots are yielded in time-of-day order with their configured labels."""
    available = AvailableSlots(parse_slots(["02:00 PM", "09:00 AM", "11:00"]), [], 60)

    assert list(available) == ["09:00 AM", "11:00", "02:00 PM"]


def test_available_slots_restartable():
    """Test every iteration starts over."""
    available = AvailableSlots(parse_slots(["09:00", "14:00"]), [time(14, 0)], 60)

    assert list(available) == ["09:00"]
    assert list(available) == ["09:00"]


def test_available_slots_overlap_uses_intervals():
    """Test a booking hides every slot whose interval it overlaps."""
    slots = parse_slots(["09:00", "09:30", "10:00", "10:30-11:30"])

    available = AvailableSlots(slots, [time(9, 0), time(11, 0)], 60)

    # 09:00 booked until 10:00; 11:00 booked until 12:00
    assert list(available) == ["10:00"]
    assert available.starts_at(time(10, 0))
    assert not available.starts_at(time(9, 30))


@pytest.mark.asyncio
async def test_booked_slot_removed_for_that_day_only(db_session: AsyncSession, doctor, patient):
    """Test Dr. Lee with 09:00 and 14:00 and a 14:00 booking has only 09:00 left."""
    day = upcoming_day()
    await insert_appointment(
        db_session, doctor["id"], patient["id"], datetime.combine(day, time(14, 0))
    )

    service = AvailabilityService(db_session)

    assert list(await service.get_available_slots(doctor["id"], day)) == ["09:00"]
    next_day = day + timedelta(days=1)
    assert list(await service.get_available_slots(doctor["id"], next_day)) == ["09:00", "14:00"]


@pytest.mark.asyncio
async def test_booking_at_day_boundary_stays_in_its_day(
    db_session: AsyncSession, patient
):
    """Test the day window is half-open at midnight."""
    doctor = await insert_doctor(db_session, available_times=["00:00", "23:00"])
    day = upcoming_day()
    await insert_appointment(
        db_session, doctor["id"], patient["id"], datetime.combine(day + timedelta(days=1), time())
    )

    available = await AvailabilityService(db_session).get_available_slots(doctor["id"], day)

    assert list(available) == ["00:00", "23:00"]


@pytest.mark.asyncio
async def test_excluded_appointment_is_ignored(db_session: AsyncSession, doctor, patient):
    """Test the booking being rescheduled does not block its own slot."""
    day = upcoming_day()
    appointment_id = await insert_appointment(
        db_session, doctor["id"], patient["id"], datetime.combine(day, time(9, 0))
    )

    service = AvailabilityService(db_session)
    available = await service.get_available_slots(
        doctor["id"], day, exclude_appointment_id=appointment_id
    )

    assert list(available) == ["09:00", "14:00"]


@pytest.mark.asyncio
async def test_missing_doctor_has_no_slots(db_session: AsyncSession):
    """Test an unknown doctor yields an empty sequence."""
    available = await AvailabilityService(db_session).get_available_slots(404, date(2030, 1, 1))

    assert list(available) == []


@pytest.mark.asyncio
async def test_twelve_hour_slot_booked_and_removed(
    client: AsyncClient, db_session: AsyncSession, patient_headers
):
    """Test booking a free 09:00 AM slot removes it from that date's availability."""
    doctor = await insert_doctor(db_session, available_times=["09:00 AM", "02:00 PM"])
    day = upcoming_day()
    url = f"/api/v1/doctor/availability/{doctor['id']}/{day.isoformat()}"

    before = await client.get(url, headers=patient_headers)
    booked = await client.post(
        "/api/v1/appointments",
        json={"doctor_id": doctor["id"], "appointment_time": at(day, 9)},
        headers=patient_headers,
    )
    after = await client.get(url, headers=patient_headers)

    assert before.json()["available"] == ["09:00 AM", "02:00 PM"]
    assert booked.status_code == 201
    assert after.status_code == 200
    assert after.json()["available"] == ["02:00 PM"]
    assert after.json()["message"] == "Available slots retrieved successfully."


@pytest.mark.asyncio
async def test_availability_any_role(
    client: AsyncClient, doctor, doctor_headers, admin_headers
):
    """Test doctors and admins may read availability, anonymous callers may not."""
    url = f"/api/v1/doctor/availability/{doctor['id']}/{upcoming_day().isoformat()}"

    assert (await client.get(url, headers=doctor_headers)).status_code == 200
    assert (await client.get(url, headers=admin_headers)).status_code == 200
    assert (await client.get(url)).status_code == 401


@pytest.mark.asyncio
async def test_availability_invalid_date(client: AsyncClient, doctor, patient_headers):
    """Test a malformed date is rejected."""
    response = await client.get(
        f"/api/v1/doctor/availability/{doctor['id']}/tomorrow", headers=patient_headers
    )

    assert response.status_code == 400


@pytest.mark.asyncio
async def test_availability_unknown_doctor_is_empty(client: AsyncClient, patient_headers):
    """Test an unknown doctor reports no free slots rather than an error."""
    response = await client.get(
        f"/api/v1/doctor/availability/999/{upcoming_day().isoformat()}",
        headers=patient_headers,
    )

    assert response.status_code == 200
    assert response.json()["available"] == []
    assert response.json()["message"] == "No available slots for the given date."
