"""FastAPI dependencies."""

from collections.abc import Awaitable, Callable
from datetime import date
from typing import Annotated

import structlog
from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.ext.asyncio import AsyncSession

from clinic_portal.config import settings
from clinic_portal.core.clock import Clock, get_clock
from clinic_portal.core.exceptions import InvalidToken, RateLimitException, ValidationException
from clinic_portal.core.redis_client import CacheManager, RateLimiter, get_redis_client
from clinic_portal.database import get_db
from clinic_portal.schemas.auth import ActorContext, Role
from clinic_portal.services.identity_service import IdentityService
from clinic_portal.services.token_service import TokenService

logger = structlog.get_logger(__name__)

# Security
security = HTTPBearer(auto_error=False)


def parse_day(value: str) -> date:
    """Parse a `YYYY-MM-DD` path segment."""
    try:
        return date.fromisoformat(value.strip())
    except ValueError:
        raise ValidationException("Invalid date format. Use YYYY-MM-DD.")


def get_cache_manager() -> CacheManager | None:
    """Get the Redis-backed cache manager."""
    return CacheManager(get_redis_client())


def get_rate_limiter() -> RateLimiter | None:
    """Get the Redis-backed rate limiter."""
    return RateLimiter(get_redis_client())


def get_token_service(
    cache_manager: Annotated[CacheManager | None, Depends(get_cache_manager)],
    clock: Annotated[Clock, Depends(get_clock)],
) -> TokenService:
    """Get token service bound to the cached identity store."""
    return TokenService(IdentityService(cache_manager), clock=clock)


def require_roles(*roles: Role) -> Callable[..., Awaitable[ActorContext]]:
    """
    Build a dependency that authenticates the bearer token for one of ``roles``.

    Args:
        roles: Roles allowed to call the endpoint

    Returns:
        Dependency resolving the acting identity
    """

    async def _current_actor(
        credentials: Annotated[HTTPAuthorizationCredentials | None, Depends(security)],
        db: Annotated[AsyncSession, Depends(get_db)],
        token_service: Annotated[TokenService, Depends(get_token_service)],
    ) -> ActorContext:
        if credentials is None or not credentials.credentials:
            raise InvalidToken("Missing bearer token.")

        token = credentials.credentials
        claimed_role = token_service.claimed_role(token)
        if claimed_role not in roles:
            logger.info("role_rejected", role=claimed_role.value)
            raise InvalidToken("Token is not valid for this role.")

        return await token_service.verify(db, token, claimed_role)

    return _current_actor


async def enforce_login_rate_limit(
    request: Request,
    rate_limiter: Annotated[RateLimiter | None, Depends(get_rate_limiter)],
) -> None:
    """
    Limit login attempts per client address and endpoint.

    Raises:
        RateLimitException: If the client exceeded the per-minute limit
    """
    if rate_limiter is None:
        return

    client = request.client.host if request.client else "unknown"
    key = f"rate_limit:login:{request.url.path}:{client}"

    if not rate_limiter.check_rate_limit(key, settings.login_attempts_per_minute, window=60):
        logger.warning("login_rate_limited", client=client, path=request.url.path)
        raise RateLimitException("Too many login attempts. Try again later.")


# Type aliases for dependency injection
DatabaseSession = Annotated[AsyncSession, Depends(get_db)]
Cache = Annotated[CacheManager | None, Depends(get_cache_manager)]
ClockDep = Annotated[Clock, Depends(get_clock)]
Tokens = Annotated[TokenService, Depends(get_token_service)]
CurrentAdmin = Annotated[ActorContext, Depends(require_roles(Role.ADMIN))]
CurrentDoctor = Annotated[ActorContext, Depends(require_roles(Role.DOCTOR))]
CurrentPatient = Annotated[ActorContext, Depends(require_roles(Role.PATIENT))]
AnyActor = Annotated[
    ActorContext, Depends(require_roles(Role.ADMIN, Role.DOCTOR, Role.PATIENT))
]
LoginRateLimit = Depends(enforce_login_rate_limit)
