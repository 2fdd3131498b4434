"""Doctor endpoints: login, directory, admin management, availability and filter."""

from fastapi import APIRouter, status

from clinic_portal.core.exceptions import DoctorNotFound, ValidationException
from clinic_portal.dependencies import (
    AnyActor,
    Cache,
    CurrentAdmin,
    DatabaseSession,
    LoginRateLimit,
    Tokens,
    parse_day,
)
from clinic_portal.schemas.auth import LoginRequest, LoginResponse, Role
from clinic_portal.schemas.common import MessageResponse
from clinic_portal.schemas.doctors import (
    AvailabilityResponse,
    DoctorCreate,
    DoctorListResponse,
    DoctorResponse,
    DoctorUpdate,
)
from clinic_portal.services.availability_service import AvailabilityService
from clinic_portal.services.doctor_service import DoctorFilter, DoctorService
from clinic_portal.services.identity_service import IdentityService

router = APIRouter()


@router.post(
    "/login",
    response_model=LoginResponse,
    status_code=status.HTTP_200_OK,
    dependencies=[LoginRateLimit],
    summary="Doctor login",
)
async def doctor_login(
    credentials: LoginRequest,
    db: DatabaseSession,
    cache: Cache,
    tokens: Tokens,
) -> LoginResponse:
    """Authenticate a doctor by email and password."""
    doctor = await IdentityService(cache).authenticate(
        db, Role.DOCTOR, credentials.email, credentials.password
    )

    return LoginResponse(
        access_token=tokens.issue(doctor["email"], Role.DOCTOR),
        role=Role.DOCTOR,
    )


@router.get(
    "",
    response_model=DoctorListResponse,
    status_code=status.HTTP_200_OK,
    summary="List doctors",
)
async def list_doctors(db: DatabaseSession) -> DoctorListResponse:
    """List every doctor ordered by name."""
    doctors = await DoctorService().get_doctors(db)
    return DoctorListResponse(doctors=[DoctorResponse.model_validate(d) for d in doctors])


@router.get(
    "/availability/{doctor_id}/{day}",
    response_model=AvailabilityResponse,
    status_code=status.HTTP_200_OK,
    summary="Free slots of a doctor on a date",
)
async def get_availability(
    doctor_id: int,
    day: str,
    actor: AnyActor,
    db: DatabaseSession,
) -> AvailabilityResponse:
    """
    Get the doctor's configured slots that are still free on a date.

    Args:
        doctor_id: Doctor ID
        day: Date as ``YYYY-MM-DD``
        actor: Authenticated admin, doctor or patient
        db: Database session

    Returns:
        Free slot labels in time-of-day order
    """
    target = parse_day(day)
    available = list(await AvailabilityService(db).get_available_slots(doctor_id, target))

    return AvailabilityResponse(
        doctor_id=doctor_id,
        date=target,
        available=available,
        message=(
            "Available slots retrieved successfully."
            if available
            else "No available slots for the given date."
        ),
    )


@router.get(
    "/filter/{name}/{period}/{specialty}",
    response_model=DoctorListResponse,
    status_code=status.HTTP_200_OK,
    summary="Filter doctors",
)
async def filter_doctors(
    name: str,
    period: str,
    specialty: str,
    db: DatabaseSession,
) -> DoctorListResponse:
    """
    Filter doctors by name, time of day and specialty.

    Any segment may be ``null`` or ``-`` to skip that filter.
    """
    try:
        doctor_filter = DoctorFilter.from_params(name=name, specialty=specialty, period=period)
    except ValueError:
        raise ValidationException("Time must be 'AM' or 'PM'.")

    doctors = await DoctorService().filter_doctors(db, doctor_filter)
    return DoctorListResponse(doctors=[DoctorResponse.model_validate(d) for d in doctors])


@router.get(
    "/{doctor_id}",
    response_model=DoctorResponse,
    status_code=status.HTTP_200_OK,
    summary="Get doctor by ID",
)
async def get_doctor(doctor_id: int, db: DatabaseSession) -> DoctorResponse:
    """Get a doctor profile."""
    doctor = await DoctorService().get_doctor_by_id(db, doctor_id)
    if not doctor:
        raise DoctorNotFound()
    return DoctorResponse.model_validate(doctor)


@router.post(
    "",
    response_model=DoctorResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create doctor",
)
async def create_doctor(
    doctor_data: DoctorCreate,
    admin: CurrentAdmin,
    db: DatabaseSession,
    cache: Cache,
) -> DoctorResponse:
    """
    Create a doctor profile (admin only).

    Args:
        doctor_data: Profile, password and slot labels
        admin: Authenticated admin
        db: Database session
        cache: Identity cache

    Returns:
        Created doctor
    """
    doctor = await DoctorService(cache).create_doctor(db, doctor_data)
    return DoctorResponse.model_validate(doctor)


@router.put(
    "/{doctor_id}",
    response_model=DoctorResponse,
    status_code=status.HTTP_200_OK,
    summary="Update doctor",
)
async def update_doctor(
    doctor_id: int,
    doctor_data: DoctorUpdate,
    admin: CurrentAdmin,
    db: DatabaseSession,
    cache: Cache,
) -> DoctorResponse:
    """Update a doctor profile (admin only)."""
    doctor = await DoctorService(cache).update_doctor(db, doctor_id, doctor_data)
    if not doctor:
        raise DoctorNotFound()
    return DoctorResponse.model_validate(doctor)


@router.delete(
    "/{doctor_id}",
    response_model=MessageResponse,
    status_code=status.HTTP_200_OK,
    summary="Delete doctor",
)
async def delete_doctor(
    doctor_id: int,
    admin: CurrentAdmin,
    db: DatabaseSession,
    cache: Cache,
) -> MessageResponse:
    """Delete a doctor and their appointments (admin only)."""
    if not await DoctorService(cache).delete_doctor(db, doctor_id):
        raise DoctorNotFound()
    return MessageResponse(message="Doctor deleted successfully.")
