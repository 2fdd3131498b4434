#!/usr/bin/env python3
"""
Create an admin account for the admin portal.

Run with: python scripts/create_admin.py <username> [--email EMAIL]
The password is read from ADMIN_PASSWORD or prompted for.
"""

import argparse
import asyncio
import getpass
import os
import sys

from clinic_portal.core.exceptions import ConflictException
from clinic_portal.database import AsyncSessionLocal, engine
from clinic_portal.services.identity_service import IdentityService


async def create_admin(username: str, password: str, email: str | None) -> int:
    """Insert the admin, reporting an existing username instead of failing."""
    async with AsyncSessionLocal() as session:
        try:
            admin = await IdentityService().create_admin(session, username, password, email)
        except ConflictException:
            print(f"  - Admin '{username}' already exists (skipping)")
            return 1
        finally:
            await engine.dispose()

    print(f"  Created admin '{admin['username']}' (id={admin['id']})")
    return 0


def main() -> int:
    parser = argparse.ArgumentParser(description="Create an admin account")
    parser.add_argument("username")
    parser.add_argument("--email", default=None)
    args = parser.parse_args()

    password = os.getenv("ADMIN_PASSWORD") or getpass.getpass("Admin password: ")
    if len(password) < 6:
        print("Password must be at least 6 characters.", file=sys.stderr)
        return 2

    return asyncio.run(create_admin(args.username, password, args.email))


if __name__ == "__main__":
    sys.exit(main())
