"""Patient service for registration and profile lookups."""

import structlog
from sqlalchemy import insert, or_, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from clinic_portal.core.exceptions import ConflictException
from clinic_portal.core.security import get_password_hash
from clinic_portal.models.patients import patients
from clinic_portal.schemas.patients import PatientCreate

logger = structlog.get_logger(__name__)

_DUPLICATE_MESSAGE = "Patient with given email/phone already exists."


class PatientService:
    """Service for patient operations."""

    def __init__(self, db: AsyncSession):
        """Initialize service with database session."""
        self.db = db

    async def create_patient(self, data: PatientCreate) -> dict:
        """
        Register a new patient.

        Raises:
            ConflictException: If the email or phone is already registered
        """
        email = data.email.lower()

        taken = await self.db.execute(
            select(patients.c.id)
            .where(or_(patients.c.email == email, patients.c.phone == data.phone))
            .limit(1)
        )
        if taken.first():
            raise ConflictException(_DUPLICATE_MESSAGE)

        values = data.model_dump(exclude={"password"})
        values["email"] = email
        values["password_hash"] = get_password_hash(data.password)

        try:
            result = await self.db.execute(insert(patients).values(**values).returning(patients))
            patient = result.mappings().first()
            await self.db.commit()
        except IntegrityError:
            await self.db.rollback()
            raise ConflictException(_DUPLICATE_MESSAGE)

        logger.info("patient_registered", patient_id=patient["id"])
        return dict(patient)

    async def get_patient(self, patient_id: int) -> dict | None:
        """Get patient by ID."""
        result = await self.db.execute(select(patients).where(patients.c.id == patient_id))
        patient = result.mappings().first()
        return dict(patient) if patient else None
