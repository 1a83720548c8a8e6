"""Review eligibility shared by the eligibility endpoint and the maintenance script."""

import math
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from marketplace.db.models import Purchase, PurchaseStatus, Review

DEFAULT_ELIGIBILITY_DAYS = 14


@dataclass
class EligibilityResult:
    eligible: bool
    message: str
    reason: str | None = None  # NO_PURCHASE / ALREADY_REVIEWED / TOO_SOON
    eligibility_date: datetime | None = None
    days_remaining: int | None = None
    purchase_id: str | None = None
    agent_version: str | None = None
    purchased_at: datetime | None = None

    def to_response(self) -> dict:
        body: dict = {"eligible": self.eligible, "message": self.message}
        if self.reason:
            body["reason"] = self.reason
        if self.eligibility_date:
            body["eligibilityDate"] = self.eligibility_date.isoformat()
        if self.days_remaining is not None:
            body["daysRemaining"] = self.days_remaining
        if self.eligible:
            body["purchaseId"] = self.purchase_id
            body["agentVersion"] = self.agent_version
            body["purchasedAt"] = self.purchased_at.isoformat() if self.purchased_at else None
        return body


async def check_review_eligibility(
    db: AsyncSession,
    user_id: str,
    agent_id: str,
    eligibility_days: int = DEFAULT_ELIGIBILITY_DAYS,
    now: datetime | None = None,
) -> EligibilityResult:
    """
    A buyer may review an agent version once, and only after the waiting
    period that follows their most recent completed purchase.
    """
    result = await db.execute(
        select(Purchase)
        .where(
            Purchase.buyer_id == user_id,
            Purchase.agent_id == agent_id,
            Purchase.status == PurchaseStatus.COMPLETED,
        )
        .order_by(Purchase.purchased_at.desc())
        .limit(1)
    )
    purchase = result.scalar_one_or_none()

    if not purchase:
        return EligibilityResult(
            eligible=False,
            reason="NO_PURCHASE",
            message="You need to purchase this agent before leaving a review.",
        )

    existing = await db.scalar(
        select(Review.id).where(
            Review.agent_id == agent_id,
            Review.agent_version == purchase.agent_version,
            Review.buyer_id == user_id,
        )
    )
    if existing:
        return EligibilityResult(
            eligible=False,
            reason="ALREADY_REVIEWED",
            message="You have already reviewed this version of the agent.",
        )

    purchased_at = purchase.purchased_at
    if purchased_at.tzinfo is None:
        purchased_at = purchased_at.replace(tzinfo=timezone.utc)
    eligibility_date = purchased_at + timedelta(days=eligibility_days)
    now = now or datetime.now(timezone.utc)

    if now < eligibility_date:
        days_remaining = math.ceil((eligibility_date - now).total_seconds() / 86400)
        return EligibilityResult(
            eligible=False,
            reason="TOO_SOON",
            message=(
                "Reviews unlock after you've had time to use this agent "
                f"({days_remaining} days remaining)."
            ),
            eligibility_date=eligibility_date,
            days_remaining=days_remaining,
        )

    return EligibilityResult(
        eligible=True,
        message="You can now leave a review for this agent.",
        purchase_id=purchase.id,
        agent_version=purchase.agent_version,
        purchased_at=purchased_at,
    )
