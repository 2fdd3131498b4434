"""Doctor service: profile management and the doctor filter."""

from dataclasses import dataclass

import structlog
from sqlalchemy import and_, delete, func, insert, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from clinic_portal.core.exceptions import ConflictException
from clinic_portal.core.redis_client import CacheManager
from clinic_portal.core.security import get_password_hash
from clinic_portal.models.appointments import appointments
from clinic_portal.models.doctors import doctors
from clinic_portal.schemas.auth import Role
from clinic_portal.schemas.doctors import DoctorCreate, DoctorUpdate, TimePeriod
from clinic_portal.services.availability_service import parse_slots
from clinic_portal.services.identity_service import IdentityService

logger = structlog.get_logger(__name__)


def normalize_filter(value: str | None) -> str | None:
    """Blank, ``null`` and ``-`` all mean "no filter"."""
    if value is None:
        return None
    value = value.strip()
    if not value or value.lower() == "null" or value == "-":
        return None
    return value


@dataclass(frozen=True)
class DoctorFilter:
    """
    Conjunction of three optional predicates.

    ``name`` is a case-insensitive substring, ``specialty`` a case-insensitive
    exact match, and ``period`` matches doctors with at least one slot in the
    morning (hour < 12) or afternoon (hour >= 12). No predicates match
    every doctor.
    """

    name: str | None = None
    specialty: str | None = None
    period: TimePeriod | None = None

    @classmethod
    def from_params(
        cls,
        name: str | None,
        specialty: str | None,
        period: str | None,
    ) -> "DoctorFilter":
        """Build a filter from raw path values (raises ValueError on a bad period)."""
        period = normalize_filter(period)
        return cls(
            name=normalize_filter(name),
            specialty=normalize_filter(specialty),
            period=TimePeriod(period.upper()) if period else None,
        )

    def conditions(self) -> list:
        """SQL predicates for name and specialty."""
        conditions = []
        if self.name:
            conditions.append(doctors.c.name.icontains(self.name, autoescape=True))
        if self.specialty:
            conditions.append(func.lower(doctors.c.specialty) == self.specialty.lower())
        return conditions

    def matches_period(self, doctor: dict) -> bool:
        """Whether any of the doctor's slots falls in the requested period."""
        if self.period is None:
            return True

        want_am = self.period is TimePeriod.AM
        return any(
            (slot.start.hour < 12) == want_am
            for slot in parse_slots(doctor["available_times"], doctor["id"])
        )


class DoctorService:
    """Service for doctor operations."""

    def __init__(self, cache_manager: CacheManager | None = None):
        """Initialize service; the cache backs identity lookups."""
        self.identities = IdentityService(cache_manager)

    async def create_doctor(self, db: AsyncSession, doctor_data: DoctorCreate) -> dict:
        """
        Create a new doctor profile.

        Raises:
            ConflictException: If a doctor with this email already exists
        """
        email = doctor_data.email.lower()
        if await self.identities.get_by_subject(db, Role.DOCTOR, email):
            raise ConflictException("Doctor already exists.")

        query = (
            insert(doctors)
            .values(
                name=doctor_data.name,
                email=email,
                password_hash=get_password_hash(doctor_data.password),
                phone=doctor_data.phone,
                specialty=doctor_data.specialty,
                available_times=doctor_data.available_times,
                years_of_experience=doctor_data.years_of_experience,
                clinic_address=doctor_data.clinic_address,
                rating=doctor_data.rating,
            )
            .returning(doctors)
        )

        try:
            result = await db.execute(query)
            doctor = result.mappings().first()
            await db.commit()
        except IntegrityError:
            # Lost a race with a concurrent registration of the same email
            await db.rollback()
            raise ConflictException("Doctor already exists.")

        logger.info("doctor_created", doctor_id=doctor["id"])
        return dict(doctor)

    async def get_doctor_by_id(self, db: AsyncSession, doctor_id: int) -> dict | None:
        """Get doctor by ID."""
        query = select(doctors).where(doctors.c.id == doctor_id)
        result = await db.execute(query)
        doctor = result.mappings().first()
        return dict(doctor) if doctor else None

    async def get_doctors(self, db: AsyncSession) -> list[dict]:
        """Get all doctors ordered by name."""
        return await self.filter_doctors(db, DoctorFilter())

    async def filter_doctors(self, db: AsyncSession, doctor_filter: DoctorFilter) -> list[dict]:
        """
        Get doctors matching every provided predicate.

        Args:
            db: Database session
            doctor_filter: Name, specialty and period predicates

        Returns:
            Matching doctors ordered by name
        """
        conditions = doctor_filter.conditions()
        query = (
            select(doctors)
            .where(and_(*conditions) if conditions else True)
            .order_by(doctors.c.name, doctors.c.id)
        )

        result = await db.execute(query)
        rows = [dict(row) for row in result.mappings().all()]

        return [row for row in rows if doctor_filter.matches_period(row)]

    async def update_doctor(
        self, db: AsyncSession, doctor_id: int, doctor_data: DoctorUpdate
    ) -> dict | None:
        """
        Update doctor information.

        Returns:
            Updated doctor, or None if the doctor does not exist

        Raises:
            ConflictException: If the new email belongs to another doctor
        """
        existing = await self.get_doctor_by_id(db, doctor_id)
        if not existing:
            return None

        update_values = doctor_data.model_dump(exclude_unset=True, exclude_none=True)

        password = update_values.pop("password", None)
        if password is not None:
            update_values["password_hash"] = get_password_hash(password)
        if "email" in update_values:
            update_values["email"] = update_values["email"].lower()

        if not update_values:
            return existing

        update_values["updated_at"] = func.now()

        query = (
            update(doctors)
            .where(doctors.c.id == doctor_id)
            .values(**update_values)
            .returning(doctors)
        )

        try:
            result = await db.execute(query)
            updated_doctor = result.mappings().first()
            await db.commit()
        except IntegrityError:
            await db.rollback()
            raise ConflictException("Another doctor already uses this email.")

        # Old subject must stop resolving once the email changes
        self.identities.invalidate(Role.DOCTOR, existing["email"])

        logger.info("doctor_updated", doctor_id=doctor_id, fields=sorted(update_values))
        return dict(updated_doctor) if updated_doctor else None

    async def delete_doctor(self, db: AsyncSession, doctor_id: int) -> bool:
        """
        Delete a doctor; their appointments go with them.

        Returns:
            True if the doctor existed
        """
        existing = await self.get_doctor_by_id(db, doctor_id)
        if not existing:
            return False

        await db.execute(delete(appointments).where(appointments.c.doctor_id == doctor_id))
        await db.execute(delete(doctors).where(doctors.c.id == doctor_id))
        await db.commit()

        self.identities.invalidate(Role.DOCTOR, existing["email"])

        logger.info("doctor_deleted", doctor_id=doctor_id)
        return True
