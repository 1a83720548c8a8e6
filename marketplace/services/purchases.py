from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from marketplace.db.models import Agent, Purchase, PurchaseStatus


async def has_purchased(db: AsyncSession, buyer_id: str, agent_id: str) -> bool:
    result = await db.execute(
        select(Purchase.id).where(
            Purchase.buyer_id == buyer_id,
            Purchase.agent_id == agent_id,
            Purchase.status == PurchaseStatus.COMPLETED,
        ).limit(1)
    )
    return result.first() is not None


async def get_buyer_purchases(db: AsyncSession, buyer_id: str) -> list[Purchase]:
    result = await db.execute(
        select(Purchase)
        .options(selectinload(Purchase.agent).selectinload(Agent.category))
        .where(
            Purchase.buyer_id == buyer_id,
            Purchase.status == PurchaseStatus.COMPLETED,
        )
        .order_by(Purchase.purchased_at.desc())
    )
    return list(result.scalars().all())
