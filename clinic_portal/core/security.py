"""Security utilities for JWT and password handling."""

from datetime import UTC, datetime, timedelta
from typing import Any

from jose import JWTError, jwt
from passlib.context import CryptContext

from clinic_portal.config import settings

# Password hashing
pwd_context = CryptContext(
    schemes=["bcrypt"],
    deprecated="auto",
    bcrypt__rounds=settings.bcrypt_rounds,
)


def verify_password(plain_password: str, hashed_password: str) -> bool:
    """Verify a password against a hash."""
    try:
        return pwd_context.verify(plain_password, hashed_password)
    except (ValueError, TypeError):
        # Malformed or unknown hash format
        return False


def get_password_hash(password: str) -> str:
    """Hash a password."""
    return pwd_context.hash(password)


def create_access_token(
    data: dict[str, Any],
    expires_delta: timedelta | None = None,
    now: datetime | None = None,
) -> str:
    """
    Create a JWT access token.

    Args:
        data: Payload data to encode
        expires_delta: Optional expiration time delta
        now: Issue time, defaults to the current UTC time

    Returns:
        Encoded JWT token
    """
    to_encode = data.copy()
    issued_at = now or datetime.now(UTC)

    if expires_delta:
        expire = issued_at + expires_delta
    else:
        expire = issued_at + timedelta(minutes=settings.access_token_expire_minutes)

    to_encode.update(
        {
            "exp": int(expire.timestamp()),
            "iat": int(issued_at.timestamp()),
            "type": "access",
        }
    )

    encoded_jwt = jwt.encode(
        to_encode,
        settings.jwt_secret_key,
        algorithm=settings.jwt_algorithm,
    )

    return encoded_jwt


def decode_access_token(token: str, now: datetime | None = None) -> dict[str, Any] | None:
    """
    Decode and validate a JWT access token.

    The signature is checked by jose; expiry is checked against ``now`` so
    that validation follows the caller's clock.

    Args:
        token: JWT token to decode
        now: Reference time for the expiry check

    Returns:
        Decoded payload or None if invalid
    """
    try:
        payload = jwt.decode(
            token,
            settings.jwt_secret_key,
            algorithms=[settings.jwt_algorithm],
            options={"verify_exp": False},
        )
    except JWTError:
        return None

    # Verify token type
    if payload.get("type") != "access":
        return None

    expires_at = payload.get("exp")
    if not isinstance(expires_at, int | float):
        return None

    reference = now or datetime.now(UTC)
    if reference.timestamp() >= expires_at:
        return None

    return payload
