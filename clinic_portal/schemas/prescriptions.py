"""Prescription schemas for request/response validation."""

from datetime import datetime

from pydantic import BaseModel, Field


class PrescriptionItem(BaseModel):
    """One medication line of a prescription."""

    medication: str = Field(..., min_length=1, max_length=100)
    dosage: str = Field(..., min_length=1, max_length=50)
    frequency: str | None = Field(None, max_length=50)
    duration: str | None = Field(None, max_length=50)


class PrescriptionCreate(BaseModel):
    """Schema for issuing a prescription."""

    appointment_id: int = Field(..., ge=1)
    notes: str | None = Field(None, max_length=2000)
    items: list[PrescriptionItem] = Field(..., min_length=1)


class PrescriptionResponse(BaseModel):
    """Stored prescription."""

    id: int
    appointment_id: int
    doctor_id: int
    patient_name: str
    notes: str | None = None
    items: list[PrescriptionItem]
    created_at: datetime | None = None

    model_config = {"from_attributes": True}


class PrescriptionIssuedResponse(BaseModel):
    """Result of issuing a prescription."""

    message: str
    prescription: PrescriptionResponse
    appointment_status_updated: bool


class PrescriptionLookupResponse(BaseModel):
    """Zero or one prescription for an appointment."""

    message: str
    appointment_id: int
    prescription: PrescriptionResponse | None = None
