"""Script to run database migrations."""

import sys

from alembic import command
from alembic.config import Config

USAGE = "Usage: python scripts/migrate.py [upgrade [rev] | downgrade <rev> | create <message>]"


def main(argv: list[str]) -> int:
    """Dispatch to the requested Alembic command (default: upgrade head)."""
    alembic_cfg = Config("alembic.ini")
    action = argv[0] if argv else "upgrade"

    try:
        if action == "upgrade":
            revision = argv[1] if len(argv) > 1 else "head"
            print(f"Upgrading database to {revision}...")
            command.upgrade(alembic_cfg, revision)
        elif action == "downgrade" and len(argv) > 1:
            print(f"Downgrading database to {argv[1]}...")
            command.downgrade(alembic_cfg, argv[1])
        elif action == "create" and len(argv) > 1:
            message = " ".join(argv[1:])
            print(f"Creating migration: {message}")
            command.revision(alembic_cfg, message=message, autogenerate=True)
        else:
            print(USAGE)
            return 2
    except Exception as e:
        print(f"Migration command failed: {e}", file=sys.stderr)
        return 1

    print("Done.")
    return 0


if __name__ == "__main__":
    sys.exit(main(sys.argv[1:]))
