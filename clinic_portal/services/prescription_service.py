"""Prescription linkage: one prescription per appointment, then completion."""

import structlog
from sqlalchemy import insert, select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from clinic_portal.config import settings
from clinic_portal.core.exceptions import DuplicatePrescription
from clinic_portal.models.prescriptions import prescriptions
from clinic_portal.schemas.appointments import AppointmentResponse, AppointmentStatus
from clinic_portal.schemas.prescriptions import PrescriptionCreate, PrescriptionResponse
from clinic_portal.services.appointment_service import AppointmentService

logger = structlog.get_logger(__name__)


class PrescriptionService:
    """Service for issuing and retrieving prescriptions."""

    def __init__(self, db: AsyncSession, status_update_attempts: int | None = None):
        """Initialize service with database session."""
        self.db = db
        self.status_update_attempts = status_update_attempts or settings.status_update_attempts

    async def get_by_appointment(self, appointment_id: int) -> PrescriptionResponse | None:
        """Get the prescription of an appointment, if any."""
        result = await self.db.execute(
            select(prescriptions).where(prescriptions.c.appointment_id == appointment_id)
        )
        row = result.mappings().first()
        return PrescriptionResponse.model_validate(dict(row)) if row else None

    async def issue_prescription(
        self,
        doctor_id: int,
        appointment: AppointmentResponse,
        data: PrescriptionCreate,
    ) -> tuple[PrescriptionResponse, bool]:
        """
        Save a prescription and complete its appointment.

        The prescription write is the operation of record. Completing the
        appointment afterwards is retried and reported, but never undoes the
        prescription.

        Args:
            doctor_id: Issuing doctor
            appointment: Appointment being prescribed for
            data: Prescription content

        Returns:
            The stored prescription and whether the appointment is now completed

        Raises:
            DuplicatePrescription: If the appointment already has a prescription
        """
        if await self.get_by_appointment(appointment.id) is not None:
            raise DuplicatePrescription()

        stmt = (
            insert(prescriptions)
            .values(
                appointment_id=appointment.id,
                doctor_id=doctor_id,
                patient_name=appointment.patient_name or "",
                notes=data.notes,
                items=[item.model_dump() for item in data.items],
            )
            .returning(prescriptions)
        )

        try:
            result = await self.db.execute(stmt)
            row = result.mappings().first()
            await self.db.commit()
        except IntegrityError:
            # Concurrent issuance for the same appointment won the unique key
            await self.db.rollback()
            raise DuplicatePrescription()

        prescription = PrescriptionResponse.model_validate(dict(row))
        logger.info(
            "prescription_issued",
            prescription_id=prescription.id,
            appointment_id=appointment.id,
        )

        completed = await self._complete_appointment(appointment.id)
        return prescription, completed

    async def _complete_appointment(self, appointment_id: int) -> bool:
        """Mark the appointment completed; the overwrite is idempotent so it is retried."""
        appointment_service = AppointmentService(self.db)

        for attempt in range(1, self.status_update_attempts + 1):
            try:
                if await appointment_service.change_status(
                    appointment_id, AppointmentStatus.COMPLETED
                ):
                    return True
                # Row is gone, another attempt cannot help
                logger.warning(
                    "appointment_status_update_failed",
                    appointment_id=appointment_id,
                    reason="appointment_missing",
                )
                return False
            except SQLAlchemyError as e:
                await self.db.rollback()
                logger.warning(
                    "appointment_status_update_failed",
                    appointment_id=appointment_id,
                    attempt=attempt,
                    error=str(e),
                )

        return False
