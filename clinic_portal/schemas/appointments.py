"""Appointment schemas for request/response validation."""

from datetime import date, datetime, time, timedelta
from enum import Enum

from pydantic import BaseModel, Field, computed_field

from clinic_portal.config import settings


class AppointmentStatus(str, Enum):
    """Appointment status enumeration."""

    SCHEDULED = "scheduled"
    COMPLETED = "completed"


class AppointmentCondition(str, Enum):
    """Patient-side appointment filter: upcoming or finished."""

    FUTURE = "future"
    PAST = "past"

    @property
    def status(self) -> AppointmentStatus:
        if self is AppointmentCondition.FUTURE:
            return AppointmentStatus.SCHEDULED
        return AppointmentStatus.COMPLETED


class AppointmentCreate(BaseModel):
    """Schema for booking an appointment."""

    doctor_id: int = Field(..., ge=1)
    appointment_time: datetime
    reason_for_visit: str | None = Field(None, max_length=200)
    notes: str | None = Field(None, max_length=500)


class AppointmentUpdate(AppointmentCreate):
    """Schema for rescheduling an existing appointment."""

    id: int = Field(..., ge=1)


class AppointmentResponse(BaseModel):
    """Schema for appointment response."""

    id: int
    doctor_id: int
    doctor_name: str | None = None
    patient_id: int
    patient_name: str | None = None
    patient_email: str | None = None
    patient_phone: str | None = None
    patient_address: str | None = None
    appointment_time: datetime
    status: AppointmentStatus
    reason_for_visit: str | None = None
    notes: str | None = None

    model_config = {"from_attributes": True}

    @computed_field  # type: ignore[prop-decorator]
    @property
    def end_time(self) -> datetime:
        return self.appointment_time + timedelta(minutes=settings.appointment_duration_minutes)

    @computed_field  # type: ignore[prop-decorator]
    @property
    def appointment_date(self) -> date:
        return self.appointment_time.date()

    @computed_field  # type: ignore[prop-decorator]
    @property
    def appointment_time_only(self) -> time:
        return self.appointment_time.time()
