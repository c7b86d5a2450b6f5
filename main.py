#!/usr/bin/env python3
"""
AuthGate -- management commands.

Self-registration is not exposed over HTTP, so accounts are provisioned here.

Usage:
  python main.py create-user ada@example.com --password 's3cret-pass'
  python main.py create-user ada@example.com --password 's3cret-pass' --name "Ada Lovelace"
  python main.py purge-revoked
  python main.py serve --host 0.0.0.0 --port 8000

Environment variables:
  SECRET_KEY    Required unless DEBUG=true. At least 32 characters.
  AUTH_DB_URL   SQLAlchemy URL of the auth database (default: auth/authgate.db).
"""

from __future__ import annotations

import argparse
import sys
from typing import Optional

from sqlalchemy.exc import IntegrityError

from auth.errors import ValidationError
from auth.models import User
from auth.store import RevocationStore, UserStore
from auth.tokens import hash_password
from core.config import get_settings


def create_user(store: UserStore, email: str, password: str, name: Optional[str] = None) -> int:
    """Hash the password and insert the user. Returns the new user's id."""
    return store.create_user(User(email=email, hashed_password=hash_password(password), name=name))


def _cmd_create_user(args: argparse.Namespace) -> int:
    store = UserStore(db_url=get_settings().auth_db_url)
    try:
        user_id = create_user(store, args.email, args.password, args.name)
    except ValidationError as e:
        print(f"  [!] {e.message}")
        return 1
    except IntegrityError:
        print(f"  [!] A user with email '{args.email}' already exists.")
        return 1
    finally:
        store.close()
    print(f"  Created user {args.email.strip().lower()} (id={user_id})")
    return 0


def _cmd_purge_revoked(args: argparse.Namespace) -> int:
    revocations = RevocationStore(db_url=get_settings().auth_db_url)
    try:
        removed = revocations.purge_expired()
    finally:
        revocations.close()
    print(f"  Removed {removed} expired revocation entr{'y' if removed == 1 else 'ies'}")
    return 0


def _cmd_serve(args: argparse.Namespace) -> int:
    import uvicorn

    uvicorn.run("api.main:app", host=args.host, port=args.port, reload=args.reload)
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="authgate",
        description="AuthGate management commands.",
    )
    sub = parser.add_subparsers(dest="command", required=True)

    p_create = sub.add_parser("create-user", help="Provision a user account")
    p_create.add_argument("email", help="Login email (stored lowercased)")
    p_create.add_argument("--password", required=True, help="Initial password (max 72 bytes)")
    p_create.add_argument("--name", default=None, help="Display name")
    p_create.set_defaults(func=_cmd_create_user)

    p_purge = sub.add_parser("purge-revoked", help="Delete revocation entries for expired tokens")
    p_purge.set_defaults(func=_cmd_purge_revoked)

    p_serve = sub.add_parser("serve", help="Run the API under uvicorn")
    p_serve.add_argument("--host", default="127.0.0.1")
    p_serve.add_argument("--port", type=int, default=8000)
    p_serve.add_argument("--reload", action="store_true", help="Auto-reload on code changes (development)")
    p_serve.set_defaults(func=_cmd_serve)

    return parser


def main(argv: Optional[list[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    return args.func(args)


if __name__ == "__main__":
    sys.exit(main())
