#!/usr/bin/env python3
"""
manage.py -- Administrative commands for the admin panel database.

Usage:
  python manage.py init-db
  python manage.py seed
  python manage.py create-user alice@example.com s3cret1 --name "Alice" --admin

Environment variables (see core/config.py):
  DATABASE_URL          SQLAlchemy URL of the user database (default: sqlite:///adminpanel.db)
  SEED_ADMIN_EMAIL      Email of the seeded administrator   (default: admin@example.com)
  SEED_ADMIN_PASSWORD   Password of the seeded administrator (default: admin123)
  SEED_ADMIN_NAME       Display name of the seeded administrator (default: Admin User)
"""

import argparse
import logging
from typing import Optional

from sqlalchemy.exc import SQLAlchemyError

from auth.accounts import AccountError, create_account
from auth.models import Role, User
from auth.store import UserStore
from core.config import Settings, get_settings

logger = logging.getLogger("adminpanel.manage")


def init_db(db_url: str) -> None:
    """Create the users table if it does not exist yet."""
    store = UserStore(db_url=db_url)
    store.close()
    logger.info("Database schema ready at %s", db_url)


def seed_admin(store: UserStore, settings: Settings) -> Optional[User]:
    """Create the configured administrator. Idempotent.

    Returns the new User, or None when the seed email already exists.
    """
    if store.get_by_email(settings.seed_admin_email) is not None:
        logger.info("Seed administrator %s already exists", settings.seed_admin_email)
        return None
    user = create_account(
        store,
        settings.seed_admin_email,
        settings.seed_admin_password,
        name=settings.seed_admin_name,
        role=Role.ADMIN.value,
    )
    logger.info("Created administrator %s (id=%d)", user.email, user.id)
    return user


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="manage.py",
        description="Admin panel database management.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python manage.py init-db
  python manage.py seed
  python manage.py create-user bob@example.com hunter22 --name "Bob"
  DATABASE_URL=sqlite:////var/lib/adminpanel.db python manage.py seed
        """,
    )
    sub = parser.add_subparsers(dest="command", metavar="COMMAND")

    sub.add_parser("init-db", help="Create the database schema")
    sub.add_parser("seed", help="Create the default administrator account if missing")

    create = sub.add_parser("create-user", help="Create a user account")
    create.add_argument("email", help="Login email address")
    create.add_argument("password", help="Initial password (at least 6 characters)")
    create.add_argument("--name", default=None, help="Display name")
    create.add_argument(
        "--admin",
        action="store_true",
        help="Grant the ADMIN role (default: USER)",
    )
    return parser


def main(argv: Optional[list[str]] = None) -> int:
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s %(levelname)-5s %(name)s %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )
    parser = _build_parser()
    args = parser.parse_args(argv)

    if not args.command:
        parser.print_help()
        return 1

    settings = get_settings()

    if args.command == "init-db":
        init_db(settings.database_url)
        return 0

    store = UserStore(db_url=settings.database_url)
    try:
        if args.command == "seed":
            seed_admin(store, settings)
            return 0

        role = Role.ADMIN.value if args.admin else Role.USER.value
        try:
            user = create_account(store, args.email, args.password, name=args.name, role=role)
        except AccountError as e:
            print(f"  [!] {e.message}")
            return 1
        print(f"  Created {user.role.value} {user.email} (id={user.id})")
        return 0
    except SQLAlchemyError:
        logger.exception("Database error while running %s", args.command)
        return 2
    finally:
        store.close()


if __name__ == "__main__":
    raise SystemExit(main())
