import logging
import re
import secrets
import string
from dataclasses import dataclass
from datetime import datetime, timezone
from decimal import Decimal, InvalidOperation

from sqlalchemy import func, or_, select, update
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from marketplace.core.errors import AgentValidationError, NotFoundError
from marketplace.db.models import AdminLog, Agent, AgentStatus, Category, User

log = logging.getLogger(__name__)

SLUG_SUFFIX_ALPHABET = string.ascii_lowercase + string.digits


@dataclass
class AgentForm:
    title: str
    category_id: str
    price: str
    setup_guide: str
    short_description: str | None = None
    workflow_overview: str | None = None
    use_case: str | None = None
    demo_video_url: str | None = None
    thumbnail_url: str | None = None


def slugify(text: str) -> str:
    text = text.lower().strip()
    text = re.sub(r"[^\w\s-]", "", text)
    text = re.sub(r"[\s_-]+", "-", text)
    return text.strip("-")


def _public_filter():
    # approved listings with a pending update are hidden until it is reviewed
    return (Agent.status == AgentStatus.APPROVED, Agent.has_active_update.is_(False))


async def list_public_agents(
    db: AsyncSession,
    *,
    page: int = 1,
    limit: int = 12,
    search: str | None = None,
    category_id: str | None = None,
    category_slug: str | None = None,
    featured: bool = False,
) -> tuple[list[Agent], int]:
    conditions = list(_public_filter())
    if search:
        pattern = f"%{search}%"
        conditions.append(
            or_(
                Agent.title.ilike(pattern),
                Agent.short_description.ilike(pattern),
                Agent.use_case.ilike(pattern),
            )
        )
    if category_id:
        conditions.append(Agent.category_id == category_id)
    if category_slug:
        conditions.append(Agent.category.has(Category.slug == category_slug))
    if featured:
        conditions.append(Agent.featured.is_(True))

    total = await db.scalar(select(func.count(Agent.id)).where(*conditions))

    result = await db.execute(
        select(Agent)
        .options(
            selectinload(Agent.category),
            selectinload(Agent.seller).selectinload(User.seller_profile),
        )
        .where(*conditions)
        .order_by(Agent.featured.desc(), Agent.created_at.desc())
        .offset((page - 1) * limit)
        .limit(limit)
    )
    return list(result.scalars().all()), total or 0


async def get_agent_by_slug(db: AsyncSession, slug: str) -> Agent | None:
    result = await db.execute(
        select(Agent)
        .options(
            selectinload(Agent.category),
            selectinload(Agent.seller).selectinload(User.seller_profile),
        )
        .where(Agent.slug == slug)
    )
    agent = result.scalar_one_or_none()
    if agent and agent.status == AgentStatus.APPROVED and agent.has_active_update:
        return None
    return agent


async def list_seller_agents(db: AsyncSession, seller_id: str) -> list[Agent]:
    result = await db.execute(
        select(Agent).where(Agent.seller_id == seller_id).order_by(Agent.created_at.desc())
    )
    return list(result.scalars().all())


async def list_agents_by_status(db: AsyncSession, status: AgentStatus) -> list[Agent]:
    result = await db.execute(
        select(Agent)
        .options(selectinload(Agent.seller), selectinload(Agent.category))
        .where(Agent.status == status)
        .order_by(Agent.created_at.asc())
    )
    return list(result.scalars().all())


def _parse_price(raw: str) -> Decimal:
    try:
        price = Decimal(str(raw).strip())
    except (InvalidOperation, ValueError):
        raise AgentValidationError("Price must be a valid number")
    if not price.is_finite() or price < 0:
        raise AgentValidationError("Price must be a valid number")
    return price.quantize(Decimal("0.01"))


def validate_agent_form(form: AgentForm) -> Decimal:
    if not form.title or len(form.title.strip()) < 3:
        raise AgentValidationError("Title must be at least 3 characters")
    if not form.category_id:
        raise AgentValidationError("Please select a category")
    price = _parse_price(form.price)
    if not form.setup_guide or len(form.setup_guide.strip()) < 10:
        raise AgentValidationError("Setup guide is required and must be at least 10 characters")
    return price


async def create_agent(db: AsyncSession, seller_id: str, form: AgentForm) -> Agent:
    price = validate_agent_form(form)

    category = await db.get(Category, form.category_id)
    if category is None:
        raise AgentValidationError("Please select a category")

    suffix = "".join(secrets.choice(SLUG_SUFFIX_ALPHABET) for _ in range(5))
    agent = Agent(
        seller_id=seller_id,
        category_id=form.category_id,
        title=form.title.strip(),
        slug=f"{slugify(form.title)}-{suffix}",
        short_description=form.short_description,
        workflow_overview=form.workflow_overview,
        use_case=form.use_case,
        setup_guide=form.setup_guide,
        price=price,
        status=AgentStatus.DRAFT,
        demo_video_url=form.demo_video_url or None,
        thumbnail_url=form.thumbnail_url or None,
    )
    db.add(agent)
    try:
        await db.commit()
    except Exception:
        await db.rollback()
        raise
    await db.refresh(agent)
    log.info("Agent created id=%s seller=%s", agent.id, seller_id)
    return agent


def apply_status_change(
    agent: Agent,
    status: AgentStatus,
    rejection_reason: str | None = None,
) -> None:
    if status == AgentStatus.REJECTED and not rejection_reason:
        raise AgentValidationError("Rejection reason required when status is REJECTED")

    agent.status = status
    if status == AgentStatus.APPROVED:
        agent.approved_at = datetime.now(timezone.utc)
        agent.rejection_reason = None
    elif status == AgentStatus.REJECTED:
        agent.rejection_reason = rejection_reason
    elif status in (AgentStatus.DRAFT, AgentStatus.UNDER_REVIEW):
        agent.rejection_reason = None


async def update_agent_status(
    db: AsyncSession,
    agent: Agent,
    status: AgentStatus,
    rejection_reason: str | None = None,
) -> Agent:
    apply_status_change(agent, status, rejection_reason)
    await db.commit()
    await db.refresh(agent)
    return agent


async def moderate_agent(
    db: AsyncSession,
    admin: User,
    agent_id: str,
    status: AgentStatus,
    reason: str | None = None,
) -> Agent | None:
    """Approve or reject an agent and record the action in the audit log."""
    agent = await db.get(Agent, agent_id)
    if agent is None:
        return None

    apply_status_change(agent, status, reason)
    db.add(
        AdminLog(
            admin_id=admin.id,
            action="APPROVE_AGENT" if status == AgentStatus.APPROVED else "REJECT_AGENT",
            entity_type="agent",
            entity_id=agent.id,
            meta={"reason": reason} if reason else None,
        )
    )
    try:
        await db.commit()
    except Exception:
        await db.rollback()
        raise
    await db.refresh(agent)
    log.info("Admin %s set agent %s to %s", admin.id, agent.id, status.value)
    return agent


async def increment_view_count(db: AsyncSession, agent_id: str) -> None:
    await db.execute(
        update(Agent).where(Agent.id == agent_id).values(view_count=Agent.view_count + 1)
    )
    await db.commit()


async def submit_for_review(db: AsyncSession, seller_id: str, agent_id: str) -> Agent:
    agent = await db.get(Agent, agent_id)
    if agent is None or agent.seller_id != seller_id:
        raise NotFoundError("Agent not found")
    if agent.status not in (AgentStatus.DRAFT, AgentStatus.REJECTED):
        raise AgentValidationError(
            f"Cannot submit agent with status: {agent.status.value}. "
            "Only DRAFT or REJECTED agents can be submitted."
        )
    await update_agent_status(db, agent, AgentStatus.UNDER_REVIEW)
    log.info("Agent %s submitted for review", agent.id)
    return agent
