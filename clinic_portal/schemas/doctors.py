"""Doctor schemas for request/response validation."""

from datetime import date
from enum import Enum

from pydantic import BaseModel, EmailStr, Field, field_validator

from clinic_portal.core.slots import parse_slot


class TimePeriod(str, Enum):
    """Half of the day used by the doctor filter."""

    AM = "AM"
    PM = "PM"


def _validate_slots(value: list[str]) -> list[str]:
    seen: set[str] = set()
    for label in value:
        parse_slot(label)
        if label in seen:
            raise ValueError(f"duplicate slot label: {label!r}")
        seen.add(label)
    return value


# ============================================================================
# Doctor Base Schemas
# ============================================================================


class DoctorBase(BaseModel):
    """Base schema for doctor."""

    name: str = Field(..., min_length=3, max_length=100)
    email: EmailStr
    phone: str = Field(..., pattern=r"^[0-9]{10}$")
    specialty: str = Field(..., min_length=3, max_length=50)
    available_times: list[str] = Field(default_factory=list)
    years_of_experience: int | None = Field(None, ge=0, le=60)
    clinic_address: str | None = Field(None, max_length=200)
    rating: float | None = Field(None, ge=0, le=5)

    @field_validator("available_times")
    @classmethod
    def validate_available_times(cls, v: list[str]) -> list[str]:
        """Every slot label must parse and appear once."""
        return _validate_slots(v)


class DoctorCreate(DoctorBase):
    """Schema for creating a doctor."""

    password: str = Field(..., min_length=6)


class DoctorUpdate(BaseModel):
    """Schema for updating a doctor."""

    name: str | None = Field(None, min_length=3, max_length=100)
    email: EmailStr | None = None
    phone: str | None = Field(None, pattern=r"^[0-9]{10}$")
    password: str | None = Field(None, min_length=6)
    specialty: str | None = Field(None, min_length=3, max_length=50)
    available_times: list[str] | None = None
    years_of_experience: int | None = Field(None, ge=0, le=60)
    clinic_address: str | None = Field(None, max_length=200)
    rating: float | None = Field(None, ge=0, le=5)

    @field_validator("available_times")
    @classmethod
    def validate_available_times(cls, v: list[str] | None) -> list[str] | None:
        """Every slot label must parse and appear once."""
        return _validate_slots(v) if v is not None else v


class DoctorResponse(BaseModel):
    """Doctor response schema (never includes the password hash)."""

    id: int
    name: str
    email: str
    phone: str
    specialty: str
    available_times: list[str]
    years_of_experience: int | None = None
    clinic_address: str | None = None
    rating: float | None = None

    model_config = {"from_attributes": True}


class DoctorListResponse(BaseModel):
    """Doctor list wrapper."""

    doctors: list[DoctorResponse]


class AvailabilityResponse(BaseModel):
    """Free slots of a doctor on a date."""

    doctor_id: int
    date: date
    available: list[str]
    message: str
