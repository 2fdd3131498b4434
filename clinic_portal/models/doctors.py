"""Doctor model definition using SQLAlchemy Core."""

from sqlalchemy import (
    JSON,
    CheckConstraint,
    Column,
    DateTime,
    Float,
    Integer,
    String,
    Table,
    Text,
    func,
)

from clinic_portal.models.metadata import metadata

doctors = Table(
    "doctors",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("name", String(100), nullable=False, index=True),
    # Stored lower-case; uniqueness is enforced here, not only by the service
    Column("email", String(255), nullable=False, unique=True, index=True),
    Column("password_hash", Text, nullable=False),
    Column("phone", String(10), nullable=False),
    # Professional details
    Column("specialty", String(50), nullable=False, index=True),
    Column("years_of_experience", Integer),
    Column("clinic_address", String(200)),
    Column("rating", Float),
    # Availability: ordered list of slot labels, e.g. ["09:00", "14:00-15:00"]
    Column("available_times", JSON, nullable=False, default=list),
    # Metadata
    Column("created_at", DateTime(timezone=True), nullable=False, server_default=func.now()),
    Column("updated_at", DateTime(timezone=True), nullable=False, server_default=func.now()),
    CheckConstraint(
        "years_of_experience IS NULL OR (years_of_experience BETWEEN 0 AND 60)",
        name="doctors_experience_check",
    ),
    CheckConstraint("rating IS NULL OR (rating BETWEEN 0 AND 5)", name="doctors_rating_check"),
)
