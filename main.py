#!/usr/bin/env python3
"""
Shopfront -- operator CLI.

Everything here talks to the same database as the API (DATABASE_URL) and
signs tokens with the same SECRET_KEY, so a token issued from the command
line is accepted by a running server.

Usage:
  python main.py serve --port 8000
  python main.py create-user alice --role SHOP
  python main.py issue-token alice
  python main.py seed

Environment variables:
  SECRET_KEY      HS256 signing key (required unless DEBUG=true).
  DATABASE_URL    SQLAlchemy URL. Defaults to shopfront.db next to this file.
"""

import argparse
import getpass
import sys
from datetime import timedelta

from sqlalchemy.exc import IntegrityError

from auth.models import Role, User
from auth.seed import seed_demo_users
from auth.store import UserStore
from auth.tokens import get_token_service, hash_password


def _cmd_serve(args: argparse.Namespace) -> int:
    import uvicorn

    uvicorn.run("api.main:app", host=args.host, port=args.port, reload=args.reload)
    return 0


def _cmd_create_user(args: argparse.Namespace) -> int:
    password = getpass.getpass(f"Password for {args.username}: ")
    if len(password) < 6:
        print("  [!] Password must be at least 6 characters.", file=sys.stderr)
        return 1
    if password != getpass.getpass("Repeat password: "):
        print("  [!] Passwords do not match.", file=sys.stderr)
        return 1

    store = UserStore()
    try:
        user_id = store.create_user(
            User(username=args.username, role=Role(args.role), hashed_password=hash_password(password))
        )
    except IntegrityError:
        print(f"  [!] Username '{args.username}' already exists.", file=sys.stderr)
        return 1
    finally:
        store.close()
    print(f"  Created {args.role} user '{args.username}' (id {user_id}).")
    return 0


def _cmd_issue_token(args: argparse.Namespace) -> int:
    store = UserStore()
    try:
        user = store.get_by_username(args.username)
    finally:
        store.close()
    if user is None:
        print(f"  [!] No user named '{args.username}'.", file=sys.stderr)
        return 1

    tokens = get_token_service()
    ttl = timedelta(seconds=args.ttl) if args.ttl else None
    print(tokens.issue(user.identity(), ttl=ttl))
    return 0


def _cmd_seed(args: argparse.Namespace) -> int:
    store = UserStore()
    try:
        created = seed_demo_users(store)
    finally:
        store.close()
    if created:
        print(f"  Seeded {len(created)} demo users (admin/admin123, shop1/shop123).")
    else:
        print("  Users already exist; nothing seeded.")
    return 0


def main() -> None:
    parser = argparse.ArgumentParser(
        prog="shopfront",
        description="Operator commands for the Shopfront API.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python main.py serve --reload
  python main.py create-user admin --role ADMIN
  python main.py issue-token shop1 --ttl 600
  DEBUG=true python main.py seed
        """,
    )
    sub = parser.add_subparsers(dest="command", metavar="COMMAND")

    serve = sub.add_parser("serve", help="Run the API with uvicorn")
    serve.add_argument("--host", default="127.0.0.1", help="Bind address (default: 127.0.0.1)")
    serve.add_argument("--port", type=int, default=8000, help="Bind port (default: 8000)")
    serve.add_argument("--reload", action="store_true", help="Restart on code changes (development)")
    serve.set_defaults(func=_cmd_serve)

    create = sub.add_parser("create-user", help="Create a user; prompts for the password")
    create.add_argument("username")
    create.add_argument(
        "--role",
        choices=[r.value for r in Role],
        default=Role.SHOP.value,
        help="Account role (default: SHOP)",
    )
    create.set_defaults(func=_cmd_create_user)

    issue = sub.add_parser("issue-token", help="Print a bearer token for an existing user")
    issue.add_argument("username")
    issue.add_argument(
        "--ttl",
        type=int,
        default=None,
        metavar="SECONDS",
        help="Token lifetime in seconds (default: TOKEN_EXPIRE_SECONDS)",
    )
    issue.set_defaults(func=_cmd_issue_token)

    seed = sub.add_parser("seed", help="Create the demo accounts on an empty user table")
    seed.set_defaults(func=_cmd_seed)

    args = parser.parse_args()
    if not getattr(args, "func", None):
        parser.print_help()
        return
    sys.exit(args.func(args))


if __name__ == "__main__":
    main()
