"""Create or reset a login account from the command line.

Usage:
    python -m backend.create_admin                 # admin account
    python -m backend.create_admin --role procurement --username stock1

An existing account with the same username (case-insensitive) gets the new
password, is re-activated and moved to the requested role.
"""

from __future__ import annotations

import argparse
import getpass
import sys

from sqlalchemy import func

from backend.app.core.database import SessionLocal
from backend.app.core.permissions import Resource, get_allowed_actions
from backend.app.core.security import get_password_hash
from backend.app.models.user import RoleEnum, User


def _parse_args(argv: list[str] | None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description=__doc__.splitlines()[0])
    parser.add_argument(
        "--role",
        choices=[r.value for r in RoleEnum],
        default=RoleEnum.ADMIN.value,
    )
    parser.add_argument("--username")
    parser.add_argument("--email")
    return parser.parse_args(argv)


def _ask_password() -> str | None:
    password = getpass.getpass("Password: ")
    if not password:
        print("Error: password cannot be empty.")
        return None
    if getpass.getpass("Repeat password: ") != password:
        print("Error: passwords do not match.")
        return None
    return password


def main(argv: list[str] | None = None) -> int:
    args = _parse_args(argv)
    role = RoleEnum(args.role)
    username = args.username or input(f"Username [{role.value}]: ").strip() or role.value
    password = _ask_password()
    if password is None:
        return 1

    db = SessionLocal()
    try:
        user = db.query(User).filter(
            func.lower(User.username) == username.lower()
        ).first()
        if user is None:
            user = User(username=username, email=args.email, role=role, hashed_password="")
            db.add(user)
            verb = "created"
        else:
            verb = "reset"
        user.hashed_password = get_password_hash(password)
        user.is_active = True
        user.role = role
        if args.email:
            user.email = args.email
        db.commit()
        db.refresh(user)
    finally:
        db.close()

    print(f"User {verb}: {user.username} ({user.id})")
    print(f"  Role: {role.value}")
    actions = get_allowed_actions(role, Resource.INVENTORY)
    print(f"  Inventory access: {', '.join(a.value for a in actions) or 'none'}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
