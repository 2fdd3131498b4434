import os
from collections.abc import AsyncGenerator

import pytest
import pytest_asyncio
from dotenv import load_dotenv
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import NullPool

# Load environment variables from .env file
load_dotenv()

# Settings are read at import time; fill in what a bare checkout lacks
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///./clinic_portal_dev.db")
os.environ.setdefault("JWT_SECRET_KEY", "test-secret-key-not-for-production")
os.environ.setdefault("BCRYPT_ROUNDS", "4")
os.environ.setdefault("LOG_FORMAT", "console")
os.environ.setdefault("LOG_LEVEL", "WARNING")

from clinic_portal.database import enable_sqlite_foreign_keys, get_db  # noqa: E402
from clinic_portal.dependencies import get_cache_manager, get_rate_limiter  # noqa: E402
from clinic_portal.main import app  # noqa: E402
from clinic_portal.models import metadata  # noqa: E402
from clinic_portal.services.identity_service import IdentityService  # noqa: E402
from factories import PASSWORD, bearer, insert_doctor, insert_patient  # noqa: E402

# Set TEST_DATABASE_URL to run against PostgreSQL; it is wiped before each test
TEST_DATABASE_URL = os.getenv("TEST_DATABASE_URL")


@pytest.fixture
def test_database_url(tmp_path) -> str:
    """Database URL for one test: TEST_DATABASE_URL or a throwaway SQLite file."""
    if TEST_DATABASE_URL:
        return TEST_DATABASE_URL.replace("postgresql://", "postgresql+asyncpg://")
    return f"sqlite+aiosqlite:///{tmp_path / 'test.db'}"


@pytest_asyncio.fixture
async def db_session(test_database_url: str) -> AsyncGenerator[AsyncSession, None]:
    """Create a test database session on a fresh schema."""
    # NullPool avoids sharing connections across event loops
    test_engine = create_async_engine(test_database_url, echo=False, poolclass=NullPool)
    if test_database_url.startswith("sqlite"):
        enable_sqlite_foreign_keys(test_engine.sync_engine)

    async with test_engine.begin() as conn:
        await conn.run_sync(metadata.drop_all)
        await conn.run_sync(metadata.create_all)

    session_factory = async_sessionmaker(test_engine, class_=AsyncSession, expire_on_commit=False)
    async with session_factory() as session:
        yield session

    async with test_engine.begin() as conn:
        await conn.run_sync(metadata.drop_all)
    await test_engine.dispose()


@pytest_asyncio.fixture
async def client(db_session: AsyncSession) -> AsyncGenerator[AsyncClient, None]:
    """Create a test HTTP client without Redis."""

    async def override_get_db() -> AsyncGenerator[AsyncSession, None]:
        yield db_session

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_cache_manager] = lambda: None
    app.dependency_overrides[get_rate_limiter] = lambda: None

    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
        yield client

    app.dependency_overrides.clear()


@pytest_asyncio.fixture
async def doctor(db_session: AsyncSession) -> dict:
    """Dr. Lee with 09:00 and 14:00 slots."""
    return await insert_doctor(db_session)


@pytest_asyncio.fixture
async def patient(db_session: AsyncSession) -> dict:
    return await insert_patient(db_session)


@pytest_asyncio.fixture
async def other_patient(db_session: AsyncSession) -> dict:
    return await insert_patient(
        db_session, name="Quinn Jones", email="quinn@example.com", phone="5553334444"
    )


@pytest_asyncio.fixture
async def admin(db_session: AsyncSession) -> dict:
    return await IdentityService().create_admin(
        db_session, "root", PASSWORD, email="root@clinic.example.com"
    )


@pytest.fixture
def doctor_headers(doctor) -> dict:
    return bearer(doctor["email"], "doctor")


@pytest.fixture
def patient_headers(patient) -> dict:
    return bearer(patient["email"], "patient")


@pytest.fixture
def other_patient_headers(other_patient) -> dict:
    return bearer(other_patient["email"], "patient")


@pytest.fixture
def admin_headers(admin) -> dict:
    return bearer(admin["username"], "admin")

