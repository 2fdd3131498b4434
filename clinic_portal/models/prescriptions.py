"""Prescriptions table model using SQLAlchemy Core.

Prescriptions are documents: the line items live in a JSON column and the
row is keyed uniquely by its appointment.
"""

from sqlalchemy import (
    JSON,
    Column,
    DateTime,
    Integer,
    String,
    Table,
    Text,
    func,
)

from clinic_portal.models.metadata import metadata

prescriptions = Table(
    "prescriptions",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    # Plain reference, no FK: the document outlives a cancelled appointment
    Column("appointment_id", Integer, nullable=False, unique=True, index=True),
    Column("doctor_id", Integer, nullable=False),
    Column("patient_name", String(100), nullable=False),
    Column("notes", Text),
    # [{"medication": ..., "dosage": ..., "frequency": ..., "duration": ...}]
    Column("items", JSON, nullable=False, default=list),
    Column("created_at", DateTime(timezone=True), nullable=False, server_default=func.now()),
)
