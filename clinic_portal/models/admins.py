"""Admin model definition using SQLAlchemy Core."""

from sqlalchemy import Column, DateTime, Integer, String, Table, Text, func

from clinic_portal.models.metadata import metadata

admins = Table(
    "admins",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    # Admins log in with a username; the token subject is the username
    Column("username", String(100), nullable=False, unique=True, index=True),
    Column("email", String(255), unique=True),
    Column("password_hash", Text, nullable=False),
    # Metadata
    Column("created_at", DateTime(timezone=True), nullable=False, server_default=func.now()),
)
