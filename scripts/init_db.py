"""Script to initialize the database without Alembic (local development)."""

import asyncio

from clinic_portal.database import engine
from clinic_portal.models import metadata


async def init_db() -> None:
    """Create every table that does not exist yet."""
    async with engine.begin() as conn:
        await conn.run_sync(metadata.create_all)

    await engine.dispose()
    print("Database initialized: " + ", ".join(sorted(metadata.tables)))


if __name__ == "__main__":
    asyncio.run(init_db())
