"""Appointment scheduler: booking, rescheduling, cancellation and queries."""

from datetime import date, datetime

import structlog
from sqlalchemy import and_, delete, exists, func, insert, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from clinic_portal.core.clock import Clock
from clinic_portal.core.exceptions import (
    ConflictException,
    DoctorNotFound,
    ForbiddenException,
    NotFoundException,
    SlotUnavailable,
    ValidationException,
)
from clinic_portal.models.appointments import appointments
from clinic_portal.models.doctors import doctors
from clinic_portal.models.patients import patients
from clinic_portal.schemas.appointments import (
    AppointmentCondition,
    AppointmentCreate,
    AppointmentResponse,
    AppointmentStatus,
    AppointmentUpdate,
)
from clinic_portal.services.availability_service import AvailabilityService, day_window

logger = structlog.get_logger(__name__)


def _appointment_query():
    """Appointments joined with doctor and patient display fields."""
    return (
        select(
            appointments,
            doctors.c.name.label("doctor_name"),
            patients.c.name.label("patient_name"),
            patients.c.email.label("patient_email"),
            patients.c.phone.label("patient_phone"),
            patients.c.address.label("patient_address"),
        )
        .join(doctors, appointments.c.doctor_id == doctors.c.id)
        .join(patients, appointments.c.patient_id == patients.c.id)
    )


class AppointmentService:
    """Service for managing appointments."""

    def __init__(self, db: AsyncSession, clock: Clock | None = None):
        """Initialize service with database session and clock."""
        self.db = db
        self.clock = clock or Clock()

    async def _fetch_one(self, appointment_id: int) -> AppointmentResponse | None:
        result = await self.db.execute(
            _appointment_query().where(appointments.c.id == appointment_id)
        )
        row = result.mappings().first()
        return AppointmentResponse.model_validate(dict(row)) if row else None

    async def _check_slot(
        self,
        doctor_id: int,
        when: datetime,
        exclude_appointment_id: int | None = None,
    ) -> None:
        """
        Validate a requested time against the doctor's free slots.

        Raises:
            ValidationException: If the time is not strictly in the future
            DoctorNotFound: If the doctor does not exist
            SlotUnavailable: If no free slot starts at that time
        """
        if when <= self.clock.local_now():
            raise ValidationException("Appointment time must be in the future.")

        doctor_exists = await self.db.execute(select(exists().where(doctors.c.id == doctor_id)))
        if not doctor_exists.scalar():
            raise DoctorNotFound()

        if when.second or when.microsecond:
            raise SlotUnavailable()

        available = await AvailabilityService(self.db).get_available_slots(
            doctor_id, when.date(), exclude_appointment_id=exclude_appointment_id
        )
        if not available.starts_at(when.time()):
            raise SlotUnavailable()

    async def book_appointment(
        self,
        patient_id: int,
        data: AppointmentCreate,
    ) -> AppointmentResponse:
        """
        Book a new appointment.

        The availability check gives a friendly error; the unique constraint on
        (doctor_id, appointment_time) decides races between concurrent bookings.

        Args:
            patient_id: ID of the patient booking the appointment
            data: Appointment creation data

        Returns:
            Created appointment
        """
        when = self.clock.to_local(data.appointment_time)
        await self._check_slot(data.doctor_id, when)

        stmt = (
            insert(appointments)
            .values(
                doctor_id=data.doctor_id,
                patient_id=patient_id,
                appointment_time=when,
                status=AppointmentStatus.SCHEDULED.value,
                reason_for_visit=data.reason_for_visit,
                notes=data.notes,
            )
            .returning(appointments.c.id)
        )

        try:
            result = await self.db.execute(stmt)
            appointment_id = result.scalar_one()
            await self.db.commit()
        except IntegrityError:
            await self.db.rollback()
            logger.info(
                "appointment_booking_conflict",
                doctor_id=data.doctor_id,
                appointment_time=when.isoformat(),
            )
            raise SlotUnavailable()

        logger.info(
            "appointment_booked",
            appointment_id=appointment_id,
            doctor_id=data.doctor_id,
            patient_id=patient_id,
        )

        return await self.get_appointment(appointment_id)

    async def get_appointment(self, appointment_id: int) -> AppointmentResponse:
        """
        Get appointment by ID.

        Raises:
            NotFoundException: If appointment not found
        """
        appointment = await self._fetch_one(appointment_id)
        if appointment is None:
            raise NotFoundException("Appointment not found.")
        return appointment

    async def update_appointment(
        self,
        patient_id: int,
        data: AppointmentUpdate,
    ) -> AppointmentResponse:
        """
        Reschedule an appointment.

        Ownership is checked by the caller; this overwrites time, doctor,
        patient, status and notes after the same slot checks as booking.

        Raises:
            NotFoundException: If appointment not found
            ConflictException: If the appointment is already completed
            SlotUnavailable: If the new time is not a free slot
        """
        current = await self.get_appointment(data.id)
        if current.status is not AppointmentStatus.SCHEDULED:
            raise ConflictException("Only scheduled appointments can be changed.")

        when = self.clock.to_local(data.appointment_time)
        await self._check_slot(data.doctor_id, when, exclude_appointment_id=data.id)

        stmt = (
            update(appointments)
            .where(appointments.c.id == data.id)
            .values(
                doctor_id=data.doctor_id,
                patient_id=patient_id,
                appointment_time=when,
                status=AppointmentStatus.SCHEDULED.value,
                reason_for_visit=data.reason_for_visit,
                notes=data.notes,
                updated_at=func.now(),
            )
        )

        try:
            await self.db.execute(stmt)
            await self.db.commit()
        except IntegrityError:
            await self.db.rollback()
            raise SlotUnavailable()

        logger.info("appointment_updated", appointment_id=data.id, doctor_id=data.doctor_id)

        return await self.get_appointment(data.id)

    async def cancel_appointment(self, appointment_id: int, patient_id: int) -> None:
        """
        Cancel (delete) an appointment owned by the patient.

        Raises:
            NotFoundException: If no appointment has this ID
            ForbiddenException: If it belongs to another patient
        """
        result = await self.db.execute(
            delete(appointments).where(
                and_(
                    appointments.c.id == appointment_id,
                    appointments.c.patient_id == patient_id,
                )
            )
        )
        await self.db.commit()

        if result.rowcount > 0:
            logger.info("appointment_cancelled", appointment_id=appointment_id)
            return

        still_there = await self.db.execute(
            select(exists().where(appointments.c.id == appointment_id))
        )
        if not still_there.scalar():
            raise NotFoundException("Appointment not found.")

        raise ForbiddenException("You can only cancel your own appointment.")

    async def get_appointments_for_doctor_on_date(
        self,
        doctor_id: int,
        day: date,
        patient_name: str | None = None,
    ) -> list[AppointmentResponse]:
        """
        List a doctor's appointments on a date.

        Args:
            doctor_id: Doctor ID
            day: Calendar date (day window)
            patient_name: Optional case-insensitive substring of the patient name

        Returns:
            Appointments ordered by time
        """
        start, end = day_window(day)
        conditions = [
            appointments.c.doctor_id == doctor_id,
            appointments.c.appointment_time >= start,
            appointments.c.appointment_time < end,
        ]

        if patient_name and patient_name.strip():
            conditions.append(patients.c.name.icontains(patient_name.strip(), autoescape=True))

        result = await self.db.execute(
            _appointment_query()
            .where(and_(*conditions))
            .order_by(appointments.c.appointment_time)
        )
        return [AppointmentResponse.model_validate(dict(row)) for row in result.mappings().all()]

    async def list_patient_appointments(
        self,
        patient_id: int,
        condition: AppointmentCondition | None = None,
        doctor_name: str | None = None,
        doctor_id: int | None = None,
    ) -> list[AppointmentResponse]:
        """
        List a patient's appointments.

        Args:
            patient_id: Patient ID
            condition: ``future`` (scheduled) or ``past`` (completed)
            doctor_name: Optional case-insensitive substring of the doctor name
            doctor_id: Only appointments with this doctor

        Returns:
            Appointments ordered by time
        """
        conditions = [appointments.c.patient_id == patient_id]

        if doctor_id is not None:
            conditions.append(appointments.c.doctor_id == doctor_id)

        if condition is not None:
            conditions.append(appointments.c.status == condition.status.value)

        if doctor_name and doctor_name.strip():
            conditions.append(doctors.c.name.icontains(doctor_name.strip(), autoescape=True))

        result = await self.db.execute(
            _appointment_query()
            .where(and_(*conditions))
            .order_by(appointments.c.appointment_time)
        )
        return [AppointmentResponse.model_validate(dict(row)) for row in result.mappings().all()]

    async def change_status(self, appointment_id: int, status: AppointmentStatus) -> bool:
        """
        Overwrite an appointment's status.

        Returns:
            True if a row was updated
        """
        result = await self.db.execute(
            update(appointments)
            .where(appointments.c.id == appointment_id)
            .values(status=status.value, updated_at=func.now())
        )
        await self.db.commit()
        return result.rowcount > 0
