"""
Print review eligibility for a buyer/agent pair.

Usage:
    python -m scripts.check_review_eligibility [--user-id ID --agent-id ID]

Without ids the first completed purchase in the database is used.
"""
import argparse
import asyncio
import sys

from sqlalchemy import select

from marketplace.core.config import get_settings
from marketplace.core.logging import setup_logging
from marketplace.db.models import Purchase, PurchaseStatus
from marketplace.db.session import script_session
from marketplace.services.reviews import check_review_eligibility


async def report_eligibility(
    db,
    user_id: str | None,
    agent_id: str | None,
    eligibility_days: int,
    site_url: str = "http://localhost:3000",
) -> int:
    if not (user_id and agent_id):
        purchase = await db.scalar(
            select(Purchase)
            .where(Purchase.status == PurchaseStatus.COMPLETED)
            .order_by(Purchase.purchased_at.asc())
            .limit(1)
        )
        if purchase is None:
            print("No completed purchases found")
            return 1
        user_id, agent_id = purchase.buyer_id, purchase.agent_id
        print("Found purchase:")
        print(f"  Buyer: {purchase.buyer_id}")
        print(f"  Agent: {purchase.agent_id}")
        print(f"  Purchased: {purchase.purchased_at.isoformat()}")
        print(f"  Agent version: {purchase.agent_version}")

    result = await check_review_eligibility(db, user_id, agent_id, eligibility_days)

    print(f"\nIs eligible: {result.eligible}")
    if result.reason:
        print(f"Reason: {result.reason}")
    print(f"Message: {result.message}")
    if result.eligibility_date:
        print(f"Eligibility date: {result.eligibility_date.isoformat()}")
    if result.days_remaining is not None:
        print(f"Days until eligible: {result.days_remaining}")

    print("\nTest URL:")
    print(f"{site_url.rstrip('/')}/api/reviews/eligibility?userId={user_id}&agentId={agent_id}")
    return 0


async def run(user_id: str | None, agent_id: str | None) -> int:
    settings = get_settings()
    async with script_session(settings) as db:
        return await report_eligibility(
            db, user_id, agent_id, settings.REVIEW_ELIGIBILITY_DAYS, settings.SITE_URL
        )


def main(argv=None) -> int:
    parser = argparse.ArgumentParser(description="Check review eligibility")
    parser.add_argument("--user-id", help="Buyer user id")
    parser.add_argument("--agent-id", help="Agent id")
    args = parser.parse_args(argv)

    if bool(args.user_id) != bool(args.agent_id):
        parser.error("--user-id and --agent-id must be given together")

    setup_logging(get_settings().LOG_LEVEL)
    return asyncio.run(run(args.user_id, args.agent_id))


if __name__ == "__main__":
    sys.exit(main())
