"""Appointment endpoints."""

from fastapi import APIRouter, status

from clinic_portal.core.exceptions import ForbiddenException
from clinic_portal.dependencies import (
    ClockDep,
    CurrentDoctor,
    CurrentPatient,
    DatabaseSession,
    parse_day,
)
from clinic_portal.schemas.appointments import (
    AppointmentCreate,
    AppointmentResponse,
    AppointmentUpdate,
)
from clinic_portal.schemas.common import MessageResponse
from clinic_portal.services.appointment_service import AppointmentService
from clinic_portal.services.doctor_service import normalize_filter

router = APIRouter()


@router.post(
    "",
    response_model=AppointmentResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Book appointment",
)
async def book_appointment(
    data: AppointmentCreate,
    patient: CurrentPatient,
    db: DatabaseSession,
    clock: ClockDep,
) -> AppointmentResponse:
    """
    Book an appointment in a free slot for the authenticated patient.

    Args:
        data: Doctor, time and optional reason/notes
        patient: Authenticated patient
        db: Database session
        clock: Clinic clock

    Returns:
        Created appointment
    """
    service = AppointmentService(db, clock=clock)
    return await service.book_appointment(patient.actor_id, data)


@router.put(
    "",
    response_model=AppointmentResponse,
    status_code=status.HTTP_200_OK,
    summary="Reschedule appointment",
)
async def update_appointment(
    data: AppointmentUpdate,
    patient: CurrentPatient,
    db: DatabaseSession,
    clock: ClockDep,
) -> AppointmentResponse:
    """
    Reschedule one of the authenticated patient's appointments.

    Raises:
        ForbiddenException: If the appointment belongs to another patient
    """
    service = AppointmentService(db, clock=clock)

    current = await service.get_appointment(data.id)
    if current.patient_id != patient.actor_id:
        raise ForbiddenException("You can only change your own appointment.")

    return await service.update_appointment(patient.actor_id, data)


@router.delete(
    "/{appointment_id}",
    response_model=MessageResponse,
    status_code=status.HTTP_200_OK,
    summary="Cancel appointment",
)
async def cancel_appointment(
    appointment_id: int,
    patient: CurrentPatient,
    db: DatabaseSession,
) -> MessageResponse:
    """Cancel one of the authenticated patient's appointments."""
    await AppointmentService(db).cancel_appointment(appointment_id, patient.actor_id)
    return MessageResponse(message="Appointment cancelled successfully.")


@router.get(
    "/{day}",
    response_model=list[AppointmentResponse],
    status_code=status.HTTP_200_OK,
    summary="Doctor's appointments on a date",
)
async def get_doctor_appointments(
    day: str,
    doctor: CurrentDoctor,
    db: DatabaseSession,
) -> list[AppointmentResponse]:
    """Get the authenticated doctor's appointments on a date."""
    service = AppointmentService(db)
    return await service.get_appointments_for_doctor_on_date(doctor.actor_id, parse_day(day))


@router.get(
    "/{day}/{name_filter}",
    response_model=list[AppointmentResponse],
    status_code=status.HTTP_200_OK,
    summary="Doctor's appointments on a date by patient name",
)
async def get_doctor_appointments_by_name(
    day: str,
    name_filter: str,
    doctor: CurrentDoctor,
    db: DatabaseSession,
) -> list[AppointmentResponse]:
    """
    Get the authenticated doctor's appointments on a date.

    ``name_filter`` narrows by patient name; ``null`` or ``-`` mean no filter.
    """
    service = AppointmentService(db)
    return await service.get_appointments_for_doctor_on_date(
        doctor.actor_id, parse_day(day), patient_name=normalize_filter(name_filter)
    )
