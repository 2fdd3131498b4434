"""Patient schemas for request/response validation."""

from datetime import date

from pydantic import BaseModel, EmailStr, Field, field_validator


class PatientBase(BaseModel):
    """Base patient schema with common fields."""

    name: str = Field(..., min_length=3, max_length=100)
    email: EmailStr
    phone: str = Field(..., pattern=r"^[0-9]{10}$")
    address: str = Field(..., min_length=1, max_length=255)
    date_of_birth: date | None = None
    emergency_contact_name: str | None = Field(None, max_length=100)
    emergency_contact_phone: str | None = Field(None, pattern=r"^\+?\d{10,15}$")
    insurance_provider: str | None = Field(None, max_length=100)


class PatientCreate(PatientBase):
    """Schema for patient registration."""

    password: str = Field(..., min_length=6)

    @field_validator("date_of_birth")
    @classmethod
    def validate_date_of_birth(cls, v: date | None) -> date | None:
        """Date of birth must be in the past."""
        if v is not None and v >= date.today():
            raise ValueError("Date of birth must be in the past")
        return v


class PatientResponse(PatientBase):
    """Patient profile response (never includes the password hash)."""

    id: int
    email: str

    model_config = {"from_attributes": True}
