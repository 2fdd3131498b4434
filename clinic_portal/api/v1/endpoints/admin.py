"""Admin authentication endpoints."""

from fastapi import APIRouter, status

from clinic_portal.dependencies import Cache, DatabaseSession, LoginRateLimit, Tokens
from clinic_portal.schemas.auth import AdminLoginRequest, LoginResponse, Role
from clinic_portal.services.identity_service import IdentityService

router = APIRouter()


@router.post(
    "/login",
    response_model=LoginResponse,
    status_code=status.HTTP_200_OK,
    dependencies=[LoginRateLimit],
    summary="Admin login",
)
async def admin_login(
    credentials: AdminLoginRequest,
    db: DatabaseSession,
    cache: Cache,
    tokens: Tokens,
) -> LoginResponse:
    """
    Authenticate an admin by username and password.

    Args:
        credentials: Username and password
        db: Database session
        cache: Identity cache
        tokens: Token service

    Returns:
        Bearer token for the admin role
    """
    admin = await IdentityService(cache).authenticate(
        db, Role.ADMIN, credentials.username, credentials.password
    )

    return LoginResponse(
        access_token=tokens.issue(admin["username"], Role.ADMIN),
        role=Role.ADMIN,
    )
