"""
Change a user's role.

Usage:
    python -m scripts.set_user_role <email> <BUYER|SELLER|ADMIN>
"""
import argparse
import asyncio
import sys

from marketplace.core.config import get_settings
from marketplace.core.errors import NotFoundError
from marketplace.core.logging import setup_logging
from marketplace.db.models import UserRole
from marketplace.db.session import script_session
from marketplace.services.users import update_user_role

VALID_ROLES = [role.value for role in UserRole]


def parse_role(value: str) -> UserRole | None:
    try:
        return UserRole(value.strip().upper())
    except ValueError:
        return None


async def set_role(db, email: str, role_name: str) -> int:
    role = parse_role(role_name)
    if role is None:
        print(f"❌ Invalid role: {role_name}. Valid roles: {', '.join(VALID_ROLES)}")
        return 1

    try:
        user = await update_user_role(db, email, role)
    except NotFoundError:
        print(f"❌ User not found: {email}")
        return 1

    print(f"✅ {user.email} is now {user.role.value}")
    return 0


async def run(email: str, role_name: str) -> int:
    async with script_session() as db:
        return await set_role(db, email, role_name)


def main(argv=None) -> int:
    parser = argparse.ArgumentParser(description="Change a user's role")
    parser.add_argument("email", help="Email address of the user")
    parser.add_argument("role", help=f"New role ({', '.join(VALID_ROLES)})")
    args = parser.parse_args(argv)

    setup_logging(get_settings().LOG_LEVEL)
    return asyncio.run(run(args.email, args.role))


if __name__ == "__main__":
    sys.exit(main())
