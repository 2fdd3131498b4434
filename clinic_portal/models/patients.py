"""Patient model definition using SQLAlchemy Core."""

from sqlalchemy import Column, Date, DateTime, Integer, String, Table, Text, func

from clinic_portal.models.metadata import metadata

patients = Table(
    "patients",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("name", String(100), nullable=False, index=True),
    Column("email", String(255), nullable=False, unique=True, index=True),
    Column("password_hash", Text, nullable=False),
    Column("phone", String(10), nullable=False, unique=True),
    Column("address", String(255), nullable=False),
    Column("date_of_birth", Date),
    # Emergency contact
    Column("emergency_contact_name", String(100)),
    Column("emergency_contact_phone", String(20)),
    # Insurance information
    Column("insurance_provider", String(100)),
    # Metadata
    Column("created_at", DateTime(timezone=True), nullable=False, server_default=func.now()),
    Column("updated_at", DateTime(timezone=True), nullable=False, server_default=func.now()),
)
