"""Database models."""

from clinic_portal.models.admins import admins
from clinic_portal.models.appointments import appointments
from clinic_portal.models.doctors import doctors
from clinic_portal.models.metadata import metadata
from clinic_portal.models.patients import patients
from clinic_portal.models.prescriptions import prescriptions

__all__ = [
    "admins",
    "appointments",
    "doctors",
    "metadata",
    "patients",
    "prescriptions",
]
