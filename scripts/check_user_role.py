"""
Show a user's role and whether they can reach the admin area.

Usage:
    python -m scripts.check_user_role <email>
"""
import argparse
import asyncio
import sys

from marketplace.core.config import get_settings
from marketplace.core.logging import setup_logging
from marketplace.db.models import UserRole
from marketplace.db.session import script_session
from marketplace.services.users import get_user_by_email


async def check_role(db, email: str) -> int:
    user = await get_user_by_email(db, email)
    if user is None:
        print(f"❌ User not found: {email}")
        return 1

    print("User found:")
    print(f"  ID:      {user.id}")
    print(f"  Email:   {user.email}")
    print(f"  Name:    {user.name or '-'}")
    print(f"  Role:    {user.role.value}")
    print(f"  Created: {user.created_at:%Y-%m-%d %H:%M}")
    print()
    if user.role == UserRole.ADMIN:
        print("✅ User is an ADMIN")
    else:
        print(f"ℹ️  User is not an admin (role={user.role.value})")
    return 0


async def run(email: str) -> int:
    async with script_session() as db:
        return await check_role(db, email)


def main(argv=None) -> int:
    parser = argparse.ArgumentParser(description="Show a user's role")
    parser.add_argument("email", help="Email address of the user")
    args = parser.parse_args(argv)

    setup_logging(get_settings().LOG_LEVEL)
    return asyncio.run(run(args.email))


if __name__ == "__main__":
    sys.exit(main())
