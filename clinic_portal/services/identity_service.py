"""Identity store: lookups and credential checks for admins, doctors and patients."""

import structlog
from sqlalchemy import Table, func, insert, or_, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from clinic_portal.config import settings
from clinic_portal.core.exceptions import ConflictException, UnauthorizedException
from clinic_portal.core.redis_client import CacheManager
from clinic_portal.core.security import get_password_hash, verify_password
from clinic_portal.models.admins import admins
from clinic_portal.models.doctors import doctors
from clinic_portal.models.patients import patients
from clinic_portal.schemas.auth import Role

logger = structlog.get_logger(__name__)

_TABLES: dict[Role, Table] = {
    Role.ADMIN: admins,
    Role.DOCTOR: doctors,
    Role.PATIENT: patients,
}


class IdentityService:
    """Service for resolving and authenticating identities by role."""

    def __init__(self, cache_manager: CacheManager | None = None, cache_ttl: int | None = None):
        """Initialize service with optional cache manager."""
        self.cache = cache_manager
        self.cache_ttl = cache_ttl or settings.identity_cache_ttl

    @staticmethod
    def _get_identity_cache_key(role: Role, subject: str) -> str:
        """Generate cache key for an identity lookup."""
        return f"identity:{role.value}:{subject.strip().lower()}"

    @staticmethod
    def _subject_condition(role: Role, subject: str):
        normalized = subject.strip().lower()
        if role is Role.ADMIN:
            # Admin tokens carry the username, but an email also resolves
            return or_(
                func.lower(admins.c.username) == normalized,
                func.lower(admins.c.email) == normalized,
            )
        return _TABLES[role].c.email == normalized

    async def get_by_subject(self, db: AsyncSession, role: Role, subject: str) -> dict | None:
        """Get the identity row for a subject (email or admin username)."""
        table = _TABLES[role]
        query = select(table).where(self._subject_condition(role, subject)).limit(1)
        result = await db.execute(query)
        row = result.mappings().first()
        return dict(row) if row else None

    async def resolve(self, db: AsyncSession, role: Role, subject: str) -> int | None:
        """
        Resolve a subject to an identity id, using the cache when possible.

        Args:
            db: Database session
            role: Role the subject must hold
            subject: Email, or username for admins

        Returns:
            Identity id or None when no such identity exists
        """
        if not subject or not subject.strip():
            return None

        cache_key = self._get_identity_cache_key(role, subject)
        if self.cache:
            cached = self.cache.get(cache_key)
            if cached:
                return int(cached)

        identity = await self.get_by_subject(db, role, subject)
        if not identity:
            return None

        if self.cache:
            self.cache.set(cache_key, str(identity["id"]), ttl=self.cache_ttl)

        return identity["id"]

    def invalidate(self, role: Role, subject: str) -> None:
        """Drop a cached identity lookup (after delete or email change)."""
        if self.cache:
            self.cache.delete(self._get_identity_cache_key(role, subject))

    async def authenticate(
        self,
        db: AsyncSession,
        role: Role,
        subject: str,
        password: str,
    ) -> dict:
        """
        Check credentials with hash-and-compare.

        Raises:
            UnauthorizedException: If the identity is unknown or the password is wrong
        """
        identity = await self.get_by_subject(db, role, subject)

        if not identity or not verify_password(password, identity["password_hash"]):
            logger.info("login_failed", role=role.value)
            raise UnauthorizedException("Invalid credentials.")

        logger.info("login_succeeded", role=role.value, identity_id=identity["id"])
        return identity

    async def create_admin(
        self,
        db: AsyncSession,
        username: str,
        password: str,
        email: str | None = None,
    ) -> dict:
        """Create an admin account."""
        query = (
            insert(admins)
            .values(
                username=username.strip(),
                email=email.strip().lower() if email else None,
                password_hash=get_password_hash(password),
            )
            .returning(admins)
        )

        try:
            result = await db.execute(query)
            admin = result.mappings().first()
            await db.commit()
        except IntegrityError:
            await db.rollback()
            raise ConflictException("Admin already exists.")

        return dict(admin)
