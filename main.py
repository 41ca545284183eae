#!/usr/bin/env python3
"""
Gatehouse -- operator CLI.

Usage:
  python main.py serve
  python main.py serve --host 0.0.0.0 --port 8000
  python main.py bootstrap
  python main.py create-admin --name "Ops" --email ops@example.com --password 's3cret!'
  python main.py list-users

Environment variables:
  SECRET_KEY      Token signing key (>= 32 chars). Required unless DEBUG=true.
  DATABASE_URL    SQLAlchemy URL of the user database.
  ADMIN_EMAIL / ADMIN_PASSWORD / ADMIN_NAME
                  Credentials for the account `bootstrap` creates when no admin exists.
"""

import argparse
import getpass
import logging
import sys
from typing import Optional

from auth.errors import AccountError
from auth.models import Role
from auth.service import AccountService
from auth.store import UserStore
from auth.tokens import TokenSigner
from core.config import get_settings


def _open_service() -> AccountService:
    cfg = get_settings()
    store = UserStore(cfg.database_url)
    signer = TokenSigner(cfg.secret_key, lifetime_seconds=cfg.token_expire_seconds)
    return AccountService(store, signer, bcrypt_rounds=cfg.bcrypt_rounds)


def cmd_bootstrap(args: argparse.Namespace) -> int:
    cfg = get_settings()
    service = _open_service()
    try:
        created = service.ensure_admin(cfg.admin_name, cfg.admin_email, cfg.admin_password)
    except AccountError as e:
        print(f"  [!] Bootstrap failed: {e.message}", file=sys.stderr)
        return 1
    finally:
        service.store.close()
    if created is None:
        print("An admin account already exists. Nothing to do.")
    else:
        print(f"Admin account ready: {created.email}")
    return 0


def cmd_create_admin(args: argparse.Namespace) -> int:
    password: Optional[str] = args.password or getpass.getpass("Password: ")
    if not password:
        print("  [!] A password is required.", file=sys.stderr)
        return 1
    service = _open_service()
    try:
        user_id = service.register(args.name, args.email, password)
        service.update_user(user_id, role=Role.admin.value)
    except AccountError as e:
        print(f"  [!] {e.message}", file=sys.stderr)
        return 1
    finally:
        service.store.close()
    print(f"Created admin {args.email} (id {user_id})")
    return 0


def cmd_list_users(args: argparse.Namespace) -> int:
    service = _open_service()
    try:
        users = service.list_users()
    finally:
        service.store.close()
    if not users:
        print("No users.")
        return 0
    for u in users:
        print(f"  {u.id}  {u.role:<5}  {u.email:<32}  {u.name}")
    return 0


def cmd_serve(args: argparse.Namespace) -> int:
    import uvicorn

    uvicorn.run("asgi:app", host=args.host, port=args.port, reload=args.reload)
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="gatehouse",
        description="Account and session service -- operator commands.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python main.py serve --reload
  python main.py bootstrap
  python main.py create-admin --name Ops --email ops@example.com
  python main.py list-users
        """,
    )
    sub = parser.add_subparsers(dest="command", metavar="COMMAND")

    serve = sub.add_parser("serve", help="Run the HTTP API with uvicorn")
    serve.add_argument("--host", default="127.0.0.1", help="Bind address (default: 127.0.0.1)")
    serve.add_argument("--port", type=int, default=8000, help="Bind port (default: 8000)")
    serve.add_argument("--reload", action="store_true", help="Reload on code changes (development only)")
    serve.set_defaults(func=cmd_serve)

    bootstrap = sub.add_parser("bootstrap", help="Create the default admin if no admin exists")
    bootstrap.set_defaults(func=cmd_bootstrap)

    create = sub.add_parser("create-admin", help="Create an additional admin account")
    create.add_argument("--name", required=True)
    create.add_argument("--email", required=True)
    create.add_argument("--password", help="Prompted for when omitted")
    create.set_defaults(func=cmd_create_admin)

    users = sub.add_parser("list-users", help="Print every account (no credentials)")
    users.set_defaults(func=cmd_list_users)

    return parser


def main(argv: Optional[list[str]] = None) -> int:
    logging.basicConfig(level=logging.INFO, format="%(levelname)-5s %(name)s %(message)s")
    parser = build_parser()
    args = parser.parse_args(argv)
    if not getattr(args, "func", None):
        parser.print_help()
        return 0
    return args.func(args)


if __name__ == "__main__":
    sys.exit(main())
