"""Patient endpoints: registration, login, profile and appointment history."""

from fastapi import APIRouter, Query, status

from clinic_portal.core.exceptions import NotFoundException, ValidationException
from clinic_portal.dependencies import (
    Cache,
    CurrentDoctor,
    CurrentPatient,
    DatabaseSession,
    LoginRateLimit,
    Tokens,
)
from clinic_portal.schemas.appointments import AppointmentCondition, AppointmentResponse
from clinic_portal.schemas.auth import LoginRequest, LoginResponse, Role
from clinic_portal.schemas.patients import PatientCreate, PatientResponse
from clinic_portal.services.appointment_service import AppointmentService
from clinic_portal.services.identity_service import IdentityService
from clinic_portal.services.patient_service import PatientService

router = APIRouter()


def parse_condition(value: str | None) -> AppointmentCondition | None:
    """Map the ``condition`` query value; blank means no filter."""
    if not value or not value.strip():
        return None
    try:
        return AppointmentCondition(value.strip().lower())
    except ValueError:
        raise ValidationException("Condition must be 'future' or 'past'.")


@router.post(
    "",
    response_model=PatientResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Register patient",
)
async def register_patient(data: PatientCreate, db: DatabaseSession) -> PatientResponse:
    """
    Register a new patient account.

    Args:
        data: Profile and password
        db: Database session

    Returns:
        Created patient profile
    """
    patient = await PatientService(db).create_patient(data)
    return PatientResponse.model_validate(patient)


@router.post(
    "/login",
    response_model=LoginResponse,
    status_code=status.HTTP_200_OK,
    dependencies=[LoginRateLimit],
    summary="Patient login",
)
async def patient_login(
    credentials: LoginRequest,
    db: DatabaseSession,
    cache: Cache,
    tokens: Tokens,
) -> LoginResponse:
    """Authenticate a patient by email and password."""
    patient = await IdentityService(cache).authenticate(
        db, Role.PATIENT, credentials.email, credentials.password
    )

    return LoginResponse(
        access_token=tokens.issue(patient["email"], Role.PATIENT),
        role=Role.PATIENT,
    )


@router.get(
    "/me",
    response_model=PatientResponse,
    status_code=status.HTTP_200_OK,
    summary="Current patient profile",
)
async def get_me(patient: CurrentPatient, db: DatabaseSession) -> PatientResponse:
    """Get the authenticated patient's profile."""
    profile = await PatientService(db).get_patient(patient.actor_id)
    if not profile:
        raise NotFoundException("Patient not found.")
    return PatientResponse.model_validate(profile)


@router.get(
    "/appointments",
    response_model=list[AppointmentResponse],
    status_code=status.HTTP_200_OK,
    summary="Current patient's appointments",
)
async def list_my_appointments(
    patient: CurrentPatient,
    db: DatabaseSession,
    condition: str | None = Query(None, description="future or past"),
    doctor_name: str | None = Query(None, description="Doctor name contains"),
) -> list[AppointmentResponse]:
    """
    List the authenticated patient's appointments.

    Args:
        patient: Authenticated patient
        db: Database session
        condition: ``future`` for scheduled, ``past`` for completed
        doctor_name: Case-insensitive substring of the doctor's name

    Returns:
        Appointments ordered by time
    """
    return await AppointmentService(db).list_patient_appointments(
        patient.actor_id, condition=parse_condition(condition), doctor_name=doctor_name
    )


@router.get(
    "/{patient_id}/appointments",
    response_model=list[AppointmentResponse],
    status_code=status.HTTP_200_OK,
    summary="A patient's appointments with the current doctor",
)
async def list_patient_appointments_for_doctor(
    patient_id: int,
    doctor: CurrentDoctor,
    db: DatabaseSession,
    condition: str | None = Query(None, description="future or past"),
) -> list[AppointmentResponse]:
    """
    List a patient's history as seen from the doctor dashboard.

    Only appointments with the authenticated doctor are returned.

    Raises:
        NotFoundException: If the patient does not exist
    """
    if not await PatientService(db).get_patient(patient_id):
        raise NotFoundException("Patient not found.")

    return await AppointmentService(db).list_patient_appointments(
        patient_id, condition=parse_condition(condition), doctor_id=doctor.actor_id
    )
