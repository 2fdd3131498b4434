"""Authentication schemas."""

from enum import Enum

from pydantic import BaseModel, EmailStr, Field


class Role(str, Enum):
    """Closed set of portal roles."""

    ADMIN = "admin"
    DOCTOR = "doctor"
    PATIENT = "patient"


class ActorContext(BaseModel):
    """Acting identity resolved from a verified token for one request."""

    actor_id: int
    role: Role
    subject: str

    model_config = {"frozen": True}


class LoginRequest(BaseModel):
    """Doctor and patient login request."""

    email: EmailStr
    password: str = Field(..., min_length=1)


class AdminLoginRequest(BaseModel):
    """Admin login request."""

    username: str = Field(..., min_length=1, max_length=100)
    password: str = Field(..., min_length=1)


class LoginResponse(BaseModel):
    """Login response with an access token."""

    message: str = "Login successful."
    access_token: str
    token_type: str = "bearer"
    role: Role
