#!/usr/bin/env python3
"""
UserDesk -- command-line administration for the user store.

Works directly against DATABASE_URL, without the HTTP server running.
Use it to create the first admin on a fresh install or to inspect accounts.

Usage:
  python main.py create-user alice alice@example.com
  python main.py create-user root root@example.com --role admin
  python main.py create-user bob bob@example.com --password s3cret!
  python main.py list-users

Environment variables:
  DATABASE_URL  SQLAlchemy URL of the user database (default: auth/userdesk.db)
  SECRET_KEY    Required unless DEBUG=true (see core/config.py)
"""

import argparse
import getpass
import sys
from typing import Optional

from pydantic import ValidationError

from api.models import UserCreate
from auth.errors import AuthError
from auth.models import Role
from auth.service import AuthService
from auth.store import UserStore
from core.config import get_settings


def _read_password(given: Optional[str]) -> str:
    """Return --password if given, otherwise prompt twice without echo."""
    if given is not None:
        return given
    first = getpass.getpass("  Password: ")
    second = getpass.getpass("  Confirm password: ")
    if first != second:
        print("  [!] Passwords do not match.")
        sys.exit(1)
    return first


def create_user(service: AuthService, args: argparse.Namespace) -> int:
    password = _read_password(args.password)
    try:
        body = UserCreate(username=args.username, email=args.email, password=password, role=args.role)
    except ValidationError as e:
        for err in e.errors():
            field = ".".join(str(p) for p in err["loc"])
            print(f"  [!] {field}: {err['msg']}")
        return 1

    try:
        user = service.provision(body.username, body.email, body.password, body.role)
    except AuthError as e:
        print(f"  [!] {e.message}")
        for f in e.fields or []:
            print(f"      {f['field']}: {f['message']}")
        return 1
    print(f"  Created {user.role.value} '{user.username}' (id={user.id}).")
    return 0


def list_users(store: UserStore, args: argparse.Namespace) -> int:
    users = store.list_users()
    if not users:
        print("  No users.")
        return 0
    print(f"  {'ID':>5}  {'USERNAME':<20} {'ROLE':<6} {'EMAIL':<32} CREATED")
    print("  " + "-" * 90)
    for u in users:
        print(f"  {u.id:>5}  {u.username:<20} {u.role.value:<6} {u.email:<32} {u.created_at}")
    print(f"\n  {len(users)} user(s).")
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="userdesk",
        description="Administer UserDesk accounts.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python main.py create-user root root@example.com --role admin
  python main.py list-users
        """,
    )
    sub = parser.add_subparsers(dest="command")

    create = sub.add_parser("create-user", help="Create an account (prompts for the password)")
    create.add_argument("username", help="Login name, 1-50 characters")
    create.add_argument("email", help="Email address")
    create.add_argument(
        "--role",
        choices=[r.value for r in Role],
        default=Role.USER.value,
        help="Account role (default: user)",
    )
    create.add_argument(
        "--password",
        default=None,
        help="Password (omit to be prompted; avoids leaving it in shell history)",
    )

    sub.add_parser("list-users", help="List all accounts, newest first")
    return parser


def main(argv: Optional[list[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    if not args.command:
        parser.print_help()
        return 1

    settings = get_settings()
    store = UserStore(settings.database_url, pool_size=settings.db_pool_size)
    try:
        if args.command == "create-user":
            return create_user(AuthService.from_settings(settings, store), args)
        return list_users(store, args)
    finally:
        store.close()


if __name__ == "__main__":
    sys.exit(main())
