import logging
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone

from sqlalchemy import func, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from marketplace.db.models import (
    Purchase,
    PurchaseStatus,
    Subscription,
    SubscriptionStatus,
)

log = logging.getLogger(__name__)

# Statuses that grant access unconditionally. PAST_DUE keeps access while
# the payment provider retries the charge.
ACCESS_STATUSES = {
    SubscriptionStatus.ACTIVE,
    SubscriptionStatus.TRIALING,
    SubscriptionStatus.PAST_DUE,
}


@dataclass(frozen=True)
class SubscriptionState:
    has_access: bool
    status: SubscriptionStatus | None
    is_legacy: bool
    is_trial: bool
    cancel_at_period_end: bool
    current_period_end: datetime | None
    trial_end: datetime | None

    def to_response(self) -> dict:
        return {
            "hasAccess": self.has_access,
            "status": self.status.value if self.status else None,
            "isTrial": self.is_trial,
            "isLegacy": self.is_legacy,
            "cancelAtPeriodEnd": self.cancel_at_period_end,
            "currentPeriodEnd": self.current_period_end.isoformat() if self.current_period_end else None,
            "trialEnd": self.trial_end.isoformat() if self.trial_end else None,
        }


NO_ACCESS_STATE = SubscriptionState(
    has_access=False,
    status=None,
    is_legacy=False,
    is_trial=False,
    cancel_at_period_end=False,
    current_period_end=None,
    trial_end=None,
)


def _now():
    return datetime.now(timezone.utc)


def _as_utc(value: datetime | None) -> datetime | None:
    if value is not None and value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def grants_access(sub: Subscription, now: datetime) -> bool:
    if sub.status in ACCESS_STATUSES:
        return True
    if sub.status == SubscriptionStatus.LEGACY_GRACE:
        grace_end = _as_utc(sub.grace_period_end)
        return grace_end is not None and grace_end > now
    return False


async def _get_subscription(db: AsyncSession, user_id: str) -> Subscription | None:
    res = await db.execute(select(Subscription).where(Subscription.user_id == user_id))
    return res.scalar_one_or_none()


async def has_active_subscription(db: AsyncSession, user_id: str) -> bool:
    """Primary access gate: paid, trial, past-due or unexpired legacy grace."""
    try:
        sub = await _get_subscription(db, user_id)
    except SQLAlchemyError:
        log.error("Error checking subscription user_id=%s", user_id, exc_info=True)
        return False
    if not sub:
        return False
    return grants_access(sub, _now())


async def get_subscription_state(
    db: AsyncSession,
    user_id: str,
    now: datetime | None = None,
) -> SubscriptionState:
    """
    Full subscription state for UI rendering. A missing row or a failed
    lookup both resolve to NO_ACCESS_STATE.
    """
    try:
        sub = await _get_subscription(db, user_id)
    except SQLAlchemyError:
        log.error("Error getting subscription state user_id=%s", user_id, exc_info=True)
        return NO_ACCESS_STATE

    if not sub:
        return NO_ACCESS_STATE

    return SubscriptionState(
        has_access=grants_access(sub, now or _now()),
        status=sub.status,
        is_legacy=sub.status == SubscriptionStatus.LEGACY_GRACE,
        is_trial=sub.status == SubscriptionStatus.TRIALING,
        cancel_at_period_end=bool(sub.cancel_at_period_end),
        current_period_end=_as_utc(sub.current_period_end),
        trial_end=_as_utc(sub.trial_end),
    )


async def is_legacy_user(db: AsyncSession, user_id: str) -> bool:
    """A legacy user bought at least one agent before subscriptions existed."""
    try:
        count = await db.scalar(
            select(func.count(Purchase.id)).where(
                Purchase.buyer_id == user_id,
                Purchase.status == PurchaseStatus.COMPLETED,
            )
        )
    except SQLAlchemyError:
        log.error("Error checking legacy user user_id=%s", user_id, exc_info=True)
        return False
    return (count or 0) > 0


async def create_legacy_grace_subscription(
    db: AsyncSession,
    user_id: str,
    grace_days: int = 30,
) -> Subscription | None:
    existing = await _get_subscription(db, user_id)
    if existing:
        log.info("Subscription already exists for user %s, skipping legacy creation", user_id)
        return None

    grace_period_end = _now() + timedelta(days=grace_days)
    sub = Subscription(
        user_id=user_id,
        status=SubscriptionStatus.LEGACY_GRACE,
        grace_period_end=grace_period_end,
    )
    db.add(sub)
    try:
        await db.commit()
    except Exception:
        await db.rollback()
        raise
    await db.refresh(sub)
    log.info(
        "Created legacy grace subscription for user %s, expires %s",
        user_id, grace_period_end.isoformat(),
    )
    return sub
