#!/usr/bin/env python3
"""
Admin Bootstrap Script

Creates an admin identity (or promotes an existing one) and issues it an
API key.

USAGE:
    # From the project root with venv activated
    python scripts/create_admin.py --email admin@example.com --username admin

    # Password is prompted for when --password is omitted

The plain API key is printed once; store it securely.
"""

import argparse
import getpass
import sys
from pathlib import Path

# Add project root to Python path
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from sqlalchemy import select
from sqlalchemy.orm import Session

from app.database import SessionLocal, create_tables
from app.exceptions import DuplicateIdentity
from app.models import User, UserRole
from app.services import credentials


def promote_or_create(db: Session, username: str, email: str, password: str) -> User:
    """Return an active admin identity with this email, creating it if needed."""
    user = db.execute(select(User).where(User.email == email.lower())).scalar_one_or_none()

    if user is None:
        user = credentials.create_identity(db, username=username, email=email, password=password)
        print(f"Created identity {user.id} ({user.username})")
    else:
        print(f"Identity {user.id} ({user.username}) already exists; promoting")

    user.role = UserRole.ADMIN.value
    user.is_active = True
    db.commit()
    db.refresh(user)
    return user


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="Create or promote an admin identity")
    parser.add_argument("--email", required=True)
    parser.add_argument("--username", required=True)
    parser.add_argument("--password", help="Prompted for when omitted")
    parser.add_argument("--key-name", default="Admin Key")
    parser.add_argument("--no-key", action="store_true", help="Do not issue an API key")
    args = parser.parse_args(argv)

    password = args.password or getpass.getpass("Admin password: ")
    if len(password) < 6:
        print("Password must be at least 6 characters")
        return 1

    print("=" * 60)
    print("Bootstrapping admin identity...")
    print("=" * 60)

    # Create tables if they don't exist
    create_tables()

    db = SessionLocal()
    try:
        user = promote_or_create(db, args.username, args.email, password)

        if not args.no_key:
            issued = credentials.issue_api_key(db, user.id, args.key_name)
            print(f"\nAPI key (shown once): {issued.plaintext_key}")

        print(f"\nAdmin ready: {user.email} (id {user.id})")
    except DuplicateIdentity:
        print(f"Username '{args.username}' is taken by another identity")
        db.rollback()
        return 1
    except Exception as e:
        print(f"Error creating admin: {e}")
        db.rollback()
        raise
    finally:
        db.close()

    return 0


if __name__ == "__main__":
    sys.exit(main())
