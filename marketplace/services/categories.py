from sqlalchemy import and_, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from marketplace.db.models import Agent, AgentStatus, Category


async def list_categories(db: AsyncSession) -> list[dict]:
    result = await db.execute(
        select(Category.id, Category.name, Category.slug).order_by(Category.name.asc())
    )
    return [{"id": row.id, "name": row.name, "slug": row.slug} for row in result.all()]


async def category_agent_counts(db: AsyncSession) -> dict[str, int]:
    """Approved, latest-version agent count per category slug."""
    stmt = (
        select(Category.slug, func.count(Agent.id).label("count"))
        .outerjoin(
            Agent,
            and_(
                Agent.category_id == Category.id,
                Agent.status == AgentStatus.APPROVED,
                Agent.is_latest_version.is_(True),
            ),
        )
        .group_by(Category.id, Category.slug, Category.display_order)
        .order_by(Category.display_order.asc())
    )
    result = await db.execute(stmt)
    return {row.slug: row.count for row in result.all()}
