"""
Provision the first administrator account.

Usage:
    python scripts/provision_admin.py --username admin [--password ...]

Without --password the password is prompted for.
"""
import sys
import os
import argparse
import getpass

# Add parent directory to path
sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))

from permithub.db import Base, SessionLocal, engine
from permithub.errors import PermitHubError
from permithub.services.bootstrap import provision_admin
from permithub.services.entity_store import EntityStore


def main(argv=None) -> int:
    parser = argparse.ArgumentParser(description="Create the initial admin user")
    parser.add_argument("--username", required=True)
    parser.add_argument("--password", default=None)
    args = parser.parse_args(argv)

    password = args.password or getpass.getpass("Admin password: ")
    if not password:
        print("[ERROR] Password must not be empty")
        return 1

    Base.metadata.create_all(bind=engine)
    db = SessionLocal()
    try:
        user = provision_admin(EntityStore(db), args.username, password)
        print(f"[OK] Admin '{user.username}' ready (id={user.id})")
        return 0
    except PermitHubError as e:
        print(f"[ERROR] {e.detail}")
        return 1
    finally:
        db.close()


if __name__ == "__main__":
    sys.exit(main())
