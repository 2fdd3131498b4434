"""Row builders and request helpers shared by the tests."""

from datetime import UTC, date, datetime, time, timedelta

from sqlalchemy import insert
from sqlalchemy.ext.asyncio import AsyncSession

from clinic_portal.core.security import create_access_token, get_password_hash
from clinic_portal.models import doctors, patients

PASSWORD = "secret123"  # pragma: allowlist secret


def bearer(subject: str, role: str) -> dict:
    """Authorization header for a subject and role."""
    token = create_access_token(data={"sub": subject, "role": role})
    return {"Authorization": f"Bearer {token}"}


def upcoming_day(days: int = 2) -> date:
    """A date safely in the future in the clinic timezone (UTC in tests)."""
    return datetime.now(UTC).date() + timedelta(days=days)


def at(day: date, hour: int, minute: int = 0) -> str:
    """ISO wall-clock time on ``day``, as clients send it."""
    return datetime.combine(day, time(hour, minute)).isoformat()


async def insert_doctor(db: AsyncSession, **overrides) -> dict:
    values = {
        "name": "Dr. Lee",
        "email": "lee@clinic.example.com",
        "password_hash": get_password_hash(PASSWORD),
        "phone": "5550000001",
        "specialty": "Cardiology",
        "available_times": ["09:00", "14:00"],
        "years_of_experience": 12,
        "clinic_address": "1 Main St",
        "rating": 4.5,
    }
    values.update(overrides)
    result = await db.execute(insert(doctors).values(**values).returning(doctors))
    row = dict(result.mappings().first())
    await db.commit()
    return row


async def insert_patient(db: AsyncSession, **overrides) -> dict:
    values = {
        "name": "Pat Smith",
        "email": "pat@example.com",
        "password_hash": get_password_hash(PASSWORD),
        "phone": "5551112222",
        "address": "22 Elm St",
    }
    values.update(overrides)
    result = await db.execute(insert(patients).values(**values).returning(patients))
    row = dict(result.mappings().first())
    await db.commit()
    return row
