"""Prescription endpoints."""

import structlog
from fastapi import APIRouter, status

from clinic_portal.core.exceptions import ForbiddenException
from clinic_portal.dependencies import CurrentDoctor, DatabaseSession
from clinic_portal.schemas.prescriptions import (
    PrescriptionCreate,
    PrescriptionIssuedResponse,
    PrescriptionLookupResponse,
)
from clinic_portal.services.appointment_service import AppointmentService
from clinic_portal.services.prescription_service import PrescriptionService

logger = structlog.get_logger(__name__)

router = APIRouter()


@router.post(
    "/save",
    response_model=PrescriptionIssuedResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Issue prescription",
)
async def save_prescription(
    data: PrescriptionCreate,
    doctor: CurrentDoctor,
    db: DatabaseSession,
) -> PrescriptionIssuedResponse:
    """
    Issue the prescription of an appointment and mark it completed.

    Args:
        data: Appointment ID, notes and medication lines
        doctor: Authenticated doctor
        db: Database session

    Returns:
        Stored prescription and whether the appointment status was updated

    Raises:
        NotFoundException: If the appointment does not exist
        ForbiddenException: If the appointment belongs to another doctor
        DuplicatePrescription: If the appointment already has a prescription
    """
    appointment = await AppointmentService(db).get_appointment(data.appointment_id)
    if appointment.doctor_id != doctor.actor_id:
        raise ForbiddenException("You can only prescribe for your own appointments.")

    prescription, status_updated = await PrescriptionService(db).issue_prescription(
        doctor.actor_id, appointment, data
    )

    if status_updated:
        message = "Prescription saved successfully."
    else:
        message = "Prescription saved, but the appointment status could not be updated."

    return PrescriptionIssuedResponse(
        message=message,
        prescription=prescription,
        appointment_status_updated=status_updated,
    )


@router.get(
    "/{appointment_id}",
    response_model=PrescriptionLookupResponse,
    status_code=status.HTTP_200_OK,
    summary="Get prescription of an appointment",
)
async def get_prescription(
    appointment_id: int,
    doctor: CurrentDoctor,
    db: DatabaseSession,
) -> PrescriptionLookupResponse:
    """Get the prescription of an appointment, if one was issued."""
    prescription = await PrescriptionService(db).get_by_appointment(appointment_id)

    return PrescriptionLookupResponse(
        message=(
            "Prescription retrieved successfully."
            if prescription
            else "No prescription found for the given appointment."
        ),
        appointment_id=appointment_id,
        prescription=prescription,
    )
