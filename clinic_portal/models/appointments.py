"""Appointments table model using SQLAlchemy Core."""

from sqlalchemy import (
    CheckConstraint,
    Column,
    DateTime,
    ForeignKey,
    Integer,
    String,
    Table,
    UniqueConstraint,
    func,
    text,
)

from clinic_portal.models.metadata import metadata

appointments = Table(
    "appointments",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    # Ownership / references
    Column(
        "doctor_id",
        Integer,
        ForeignKey("doctors.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    ),
    Column(
        "patient_id",
        Integer,
        ForeignKey("patients.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    ),
    # Naive clinic-local wall-clock start; the end is always start + 1 hour
    Column("appointment_time", DateTime, nullable=False),
    # Status management
    Column("status", String(20), nullable=False, server_default=text("'scheduled'")),
    # Details
    Column("reason_for_visit", String(200)),
    Column("notes", String(500)),
    # Audit fields
    Column("created_at", DateTime(timezone=True), nullable=False, server_default=func.now()),
    Column("updated_at", DateTime(timezone=True), nullable=False, server_default=func.now()),
    # Constraints
    UniqueConstraint("doctor_id", "appointment_time", name="uq_appointments_doctor_time"),
    CheckConstraint(
        "status IN ('scheduled', 'completed')",
        name="appointments_status_check",
    ),
)
