"""Token service: issue and verify bearer tokens."""

from datetime import timedelta
from typing import Any

from sqlalchemy.ext.asyncio import AsyncSession

from clinic_portal.config import settings
from clinic_portal.core.clock import Clock
from clinic_portal.core.exceptions import InvalidToken
from clinic_portal.core.security import create_access_token, decode_access_token
from clinic_portal.schemas.auth import ActorContext, Role
from clinic_portal.services.identity_service import IdentityService


class TokenService:
    """Stateless JWT tokens bound to a subject and a role."""

    def __init__(self, identity_service: IdentityService, clock: Clock | None = None):
        """Initialize with the identity store used to re-resolve subjects."""
        self.identities = identity_service
        self.clock = clock or Clock()

    def issue(self, subject: str, role: Role) -> str:
        """
        Create an access token for a subject.

        Args:
            subject: Email, or username for admins
            role: Role the subject logged in as

        Returns:
            Encoded JWT
        """
        return create_access_token(
            data={"sub": subject, "role": role.value},
            expires_delta=timedelta(minutes=settings.access_token_expire_minutes),
            now=self.clock.now(),
        )

    def decode(self, token: str) -> dict[str, Any]:
        """Check signature and expiry, returning the claims."""
        payload = decode_access_token(token, now=self.clock.now())
        if payload is None:
            raise InvalidToken()

        subject = payload.get("sub")
        if not isinstance(subject, str) or not subject.strip():
            raise InvalidToken()

        return payload

    def claimed_role(self, token: str) -> Role:
        """Role claim of a valid token."""
        try:
            return Role(self.decode(token).get("role"))
        except ValueError:
            raise InvalidToken("Token carries an unknown role.")

    async def verify(self, db: AsyncSession, token: str, claimed_role: Role) -> ActorContext:
        """
        Verify a token for a claimed role and resolve the acting identity.

        Raises:
            InvalidToken: On a bad signature or expiry, a role mismatch, or when
                the subject no longer resolves to an identity of that role
        """
        payload = self.decode(token)

        if payload.get("role") != claimed_role.value:
            raise InvalidToken("Token is not valid for this role.")

        subject = payload["sub"]
        actor_id = await self.identities.resolve(db, claimed_role, subject)
        if actor_id is None:
            raise InvalidToken("Unauthorized or user not found.")

        return ActorContext(actor_id=actor_id, role=claimed_role, subject=subject)
