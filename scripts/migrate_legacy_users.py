"""
Give every existing purchaser a LEGACY_GRACE subscription.

Users who already have a subscription row are skipped, so the script can be
re-run safely.

Usage:
    python -m scripts.migrate_legacy_users [--grace-days N]
"""
import argparse
import asyncio
import sys

from sqlalchemy import select

from marketplace.core.config import get_settings
from marketplace.core.logging import setup_logging
from marketplace.db.models import Purchase, PurchaseStatus
from marketplace.db.session import script_session
from marketplace.services.subscriptions import create_legacy_grace_subscription


async def migrate(db, grace_days: int) -> int:
    print("Starting legacy user migration...")
    print(f"Grace period: {grace_days} days")

    result = await db.execute(
        select(Purchase.buyer_id).where(Purchase.status == PurchaseStatus.COMPLETED).distinct()
    )
    buyer_ids = [row.buyer_id for row in result]
    print(f"Found {len(buyer_ids)} users with completed purchases")

    created = skipped = errors = 0
    for buyer_id in buyer_ids:
        try:
            sub = await create_legacy_grace_subscription(db, buyer_id, grace_days)
        except Exception as e:
            await db.rollback()
            errors += 1
            print(f"  Error migrating user {buyer_id}: {e}")
            continue
        if sub is None:
            skipped += 1
            print(f"  Skipped user {buyer_id}, subscription already exists")
        else:
            created += 1
            print(f"  Created LEGACY_GRACE for user {buyer_id}, expires {sub.grace_period_end.isoformat()}")

    print("\nMigration complete:")
    print(f"  Created: {created}")
    print(f"  Skipped: {skipped}")
    print(f"  Errors:  {errors}")
    return 1 if errors else 0


async def run(grace_days: int) -> int:
    async with script_session() as db:
        return await migrate(db, grace_days)


def main(argv=None) -> int:
    settings = get_settings()
    parser = argparse.ArgumentParser(description="Create legacy grace subscriptions for purchasers")
    parser.add_argument("--grace-days", type=int, default=settings.LEGACY_GRACE_DAYS)
    args = parser.parse_args(argv)

    setup_logging(settings.LOG_LEVEL)
    return asyncio.run(run(args.grace_days))


if __name__ == "__main__":
    sys.exit(main())
