"""API v1 router configuration."""

from fastapi import APIRouter

from clinic_portal.api.v1.endpoints import (
    admin,
    appointments,
    doctors,
    health,
    patients,
    prescriptions,
)

api_router = APIRouter()

# Include routers
api_router.include_router(health.router, tags=["Health"])
api_router.include_router(admin.router, prefix="/admin", tags=["Admin"])
api_router.include_router(doctors.router, prefix="/doctor", tags=["Doctors"])
api_router.include_router(patients.router, prefix="/patient", tags=["Patients"])
api_router.include_router(appointments.router, prefix="/appointments", tags=["Appointments"])
api_router.include_router(prescriptions.router, prefix="/prescription", tags=["Prescriptions"])
