import argparse
import sys

from Song_Stats_Console.app.db import SessionLocal, init_db
from Song_Stats_Console.app.errors import DuplicateUsernameError, SongStatsError
from Song_Stats_Console.app.models import Role
from Song_Stats_Console.app.services.accounts import create_account


def seed_admin(db, username: str, password: str, role: str = Role.ADMIN.value) -> bool:
    """Creates the initial account if it does not exist. Returns True when created."""
    try:
        create_account(db, username, password, role)
    except DuplicateUsernameError:
        print(f"Account '{username}' already exists.")
        return False
    print(f"Account '{username}' created.")
    return True


def main(argv=None) -> int:
    parser = argparse.ArgumentParser(description="Create the first admin account")
    parser.add_argument("--username", required=True, help="Username")
    parser.add_argument("--password", required=True, help="Password")
    parser.add_argument("--role", default=Role.ADMIN.value, help="Account role (default=admin)")

    args = parser.parse_args(argv)
    init_db()  # make sure the tables exist
    db = SessionLocal()
    try:
        seed_admin(db, args.username, args.password, args.role)
    except SongStatsError as exc:
        print(f"[ERROR] {exc}", file=sys.stderr)
        return 1
    finally:
        db.close()
    return 0


if __name__ == "__main__":
    sys.exit(main())
