#!/usr/bin/env python3
"""
Database migration helper script.

Usage:
    python migrate.py create "description of changes"  # Autogenerate a new revision
    python migrate.py upgrade                          # Apply all pending migrations
    python migrate.py downgrade                        # Roll back one migration
    python migrate.py current                          # Show current revision
    python migrate.py history                          # Show migration history
    python migrate.py stamp <revision>                 # Mark database as being at a revision
"""

import sys

from alembic import command

from seatkeeper.core.migrations import get_alembic_config, run_migrations, stamp_database


def main():
    if len(sys.argv) < 2:
        print(__doc__)
        sys.exit(1)

    cmd = sys.argv[1].lower()
    cfg = get_alembic_config()

    if cmd == "create":
        if len(sys.argv) < 3:
            print('Usage: python migrate.py create "description of changes"')
            sys.exit(1)
        command.revision(cfg, message=sys.argv[2], autogenerate=True)
        print("Migration created; review it in alembic/versions/ before upgrading.")
    elif cmd == "upgrade":
        run_migrations()
    elif cmd == "downgrade":
        command.downgrade(cfg, "-1")
    elif cmd == "current":
        command.current(cfg)
    elif cmd == "history":
        command.history(cfg)
    elif cmd == "stamp":
        if len(sys.argv) < 3:
            print("Usage: python migrate.py stamp <revision>")
            sys.exit(1)
        stamp_database(sys.argv[2])
    else:
        print(f"Error: Unknown command '{cmd}'")
        print(__doc__)
        sys.exit(1)


if __name__ == "__main__":
    main()
