#!/usr/bin/env python3
"""
Operator commands for the Legal Eye SQLite database.

Administrators cannot register through the API; create them here.
The reset command sets a new password hash for an existing user
without reading or revealing the old one.

Usage:
    python manage.py create-admin --name "Site Admin" --email admin@example.com
    python manage.py reset-password --email user@example.com --password "NewStrongPass!234"

If --password is omitted, you will be prompted to enter it securely.
The database defaults to DATABASE_URL; pass --db to override it.
"""

import argparse
import asyncio
import getpass
import sys

from pydantic import ValidationError

from legal_eye_api.app.core.config import Settings
from legal_eye_api.app.core.db import Database
from legal_eye_api.app.core.errors import ServiceError
from legal_eye_api.app.core.logging_config import setup_logging
from legal_eye_api.app.schemas.user import UserRegister
from legal_eye_api.app.services.user_service import UserService


def _read_password(args: argparse.Namespace) -> str:
    password = args.password or getpass.getpass("Enter NEW password: ")
    if not password:
        print("[!] Empty password is not allowed.", file=sys.stderr)
        sys.exit(1)
    return password


def create_admin(db: Database, args: argparse.Namespace) -> int:
    try:
        data = UserRegister(name=args.name, email=args.email, password=_read_password(args), phone=args.phone)
    except ValidationError as e:
        for error in e.errors():
            print(f"[!] {error['loc'][0]}: {error['msg']}", file=sys.stderr)
        return 1
    user = asyncio.run(UserService.create_user(db, data, role="admin"))
    print(f"[+] Created admin {user.email} (id {user.id})")
    return 0


def reset_password(db: Database, args: argparse.Namespace) -> int:
    asyncio.run(UserService.set_password(db, args.email.strip().lower(), _read_password(args)))
    print(f"[+] Password updated for user: {args.email}")
    return 0


def build_parser() -> argparse.ArgumentParser:
    ap = argparse.ArgumentParser(description="Legal Eye database management.")
    ap.add_argument("--db", help="Path to SQLite DB file (defaults to DATABASE_URL)")
    sub = ap.add_subparsers(dest="command", required=True)

    admin = sub.add_parser("create-admin", help="Create an administrator account")
    admin.add_argument("--name", required=True)
    admin.add_argument("--email", required=True)
    admin.add_argument("--phone")
    admin.add_argument("--password", help="If omitted, you'll be prompted securely.")
    admin.set_defaults(func=create_admin)

    reset = sub.add_parser("reset-password", help="Set a new password for a user")
    reset.add_argument("--email", required=True, help="User email to update")
    reset.add_argument("--password", help="If omitted, you'll be prompted securely.")
    reset.set_defaults(func=reset_password)
    return ap


def main(argv=None) -> int:
    args = build_parser().parse_args(argv)
    settings = Settings.from_env()
    setup_logging(settings.log_level, settings.log_file)
    db = Database(args.db or settings.database_url)
    db.init()
    try:
        return args.func(db, args)
    except ServiceError as e:
        print(f"[!] {e.message}", file=sys.stderr)
        return 2


if __name__ == "__main__":
    sys.exit(main())
