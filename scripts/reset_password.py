"""
Set a new password for an identity-provider account.

Usage:
    python -m scripts.reset_password <email> [--password NEW_PASSWORD]

A random password is generated and printed when --password is omitted.
"""
import argparse
import asyncio
import secrets
import sys

from marketplace.core.config import get_settings
from marketplace.core.errors import IdentityProviderError
from marketplace.core.logging import setup_logging
from marketplace.services.identity import IdentityClient

MIN_PASSWORD_LENGTH = 8


async def reset_password(identity: IdentityClient, email: str, password: str | None) -> int:
    new_password = password or secrets.token_urlsafe(12)
    if len(new_password) < MIN_PASSWORD_LENGTH:
        print(f"❌ Password must be at least {MIN_PASSWORD_LENGTH} characters")
        return 1

    try:
        user = await identity.admin_find_user_by_email(email)
    except IdentityProviderError as e:
        print(f"❌ Could not list users: {e}")
        return 1

    if user is None:
        print(f"❌ No identity account for {email}")
        return 1

    try:
        await identity.admin_update_password(user.id, new_password)
    except IdentityProviderError as e:
        print(f"❌ Password update failed: {e}")
        return 1

    print(f"✅ Password updated for {email} (id={user.id})")
    if password is None:
        print(f"   New password: {new_password}")
    return 0


def main(argv=None) -> int:
    parser = argparse.ArgumentParser(description="Reset an account password")
    parser.add_argument("email", help="Email address of the account")
    parser.add_argument("--password", help="New password (generated when omitted)")
    args = parser.parse_args(argv)

    settings = get_settings()
    setup_logging(settings.LOG_LEVEL)
    identity = IdentityClient(settings)
    return asyncio.run(reset_password(identity, args.email, args.password))


if __name__ == "__main__":
    sys.exit(main())
