import logging
import math
from urllib.parse import urlencode

from fastapi import APIRouter, Depends, Form, HTTPException
from fastapi.responses import HTMLResponse, RedirectResponse
from sqlalchemy.ext.asyncio import AsyncSession

from marketplace.core.errors import AgentValidationError, NotFoundError, SellerApplicationError
from marketplace.db.models import AgentStatus, User, UserRole
from marketplace.db.session import get_db
from marketplace.pages import views
from marketplace.services.agents import (
    AgentForm,
    create_agent,
    get_agent_by_slug,
    increment_view_count,
    list_agents_by_status,
    list_public_agents,
    list_seller_agents,
    moderate_agent,
    submit_for_review,
)
from marketplace.services.categories import category_agent_counts, list_categories
from marketplace.services.purchases import get_buyer_purchases, has_purchased
from marketplace.services.seller_applications import (
    SellerApplicationForm,
    approve_application,
    can_sell,
    get_user_application,
    list_pending_applications,
    reject_application,
    submit_application,
)
from marketplace.services.subscriptions import get_subscription_state, has_active_subscription
from marketplace.utils.auth.dependencies import get_optional_user
from marketplace.utils.auth.guards import require_admin, require_login, require_seller
from marketplace.utils.deps import safe_next_path
from marketplace.utils.video import video_embed_url

log = logging.getLogger(__name__)

router = APIRouter(tags=["pages"], default_response_class=HTMLResponse)

AGENTS_PER_PAGE = 12


@router.get("/")
async def landing(
    db: AsyncSession = Depends(get_db),
    user: User | None = Depends(get_optional_user),
):
    categories = await list_categories(db)
    counts = await category_agent_counts(db)
    return views.landing_page(categories, counts, user)


@router.get("/agents")
async def agents_listing(
    page: int = 1,
    search: str = "",
    category: str | None = None,
    db: AsyncSession = Depends(get_db),
    user: User | None = Depends(get_optional_user),
):
    page = max(page, 1)
    agents, total = await list_public_agents(
        db,
        page=page,
        limit=AGENTS_PER_PAGE,
        search=search.strip() or None,
        category_slug=category,
    )
    return views.agents_page(
        agents,
        search=search,
        category=category,
        page=page,
        total_pages=math.ceil(total / AGENTS_PER_PAGE),
        user=user,
    )


@router.get("/agents/{slug}")
async def agent_detail(
    slug: str,
    db: AsyncSession = Depends(get_db),
    user: User | None = Depends(get_optional_user),
):
    agent = await get_agent_by_slug(db, slug)
    is_owner = user is not None and agent is not None and agent.seller_id == user.id
    is_admin = user is not None and user.role == UserRole.ADMIN
    if agent is None or (agent.status != AgentStatus.APPROVED and not (is_owner or is_admin)):
        raise HTTPException(status_code=404, detail="Agent not found")

    if agent.status == AgentStatus.APPROVED:
        await increment_view_count(db, agent.id)

    can_view_guide = is_owner or is_admin
    if user is not None and not can_view_guide:
        can_view_guide = (
            await has_active_subscription(db, user.id)
            or await has_purchased(db, user.id, agent.id)
        )

    return views.agent_detail_page(
        agent,
        embed_url=video_embed_url(agent.demo_video_url),
        can_view_guide=can_view_guide,
        user=user,
    )


@router.get("/login")
async def login_form(
    next: str | None = None,
    error: str | None = None,
    message: str | None = None,
    user: User | None = Depends(get_optional_user),
):
    if user is not None:
        return RedirectResponse(safe_next_path(next, "/agents"), status_code=303)
    return views.login_page(safe_next_path(next, "") or None, error, message)


@router.get("/signup")
async def signup_form(
    error: str | None = None,
    user: User | None = Depends(get_optional_user),
):
    if user is not None:
        return RedirectResponse("/agents", status_code=303)
    return views.signup_page(error)


@router.get("/403")
async def forbidden(user: User | None = Depends(get_optional_user)):
    return HTMLResponse(views.forbidden_page(user), status_code=403)


@router.get("/become-seller")
async def become_seller(
    submitted: str | None = None,
    db: AsyncSession = Depends(get_db),
    user: User = Depends(require_login),
):
    application = await get_user_application(db, user.id)
    if can_sell(user, application):
        return RedirectResponse("/dashboard", status_code=303)
    return views.become_seller_page(user, application, submitted=submitted == "true")


@router.post("/become-seller")
async def apply_to_sell(
    full_name: str = Form(""),
    experience: str = Form(""),
    agent_ideas: str = Form(""),
    relevant_links: str | None = Form(None),
    db: AsyncSession = Depends(get_db),
    user: User = Depends(require_login),
):
    application = await get_user_application(db, user.id)
    if can_sell(user, application):
        return RedirectResponse("/dashboard", status_code=303)

    form = SellerApplicationForm(
        full_name=full_name,
        experience=experience,
        agent_ideas=agent_ideas,
        relevant_links=relevant_links,
    )
    try:
        await submit_application(db, user.id, form)
    except SellerApplicationError as e:
        application = await get_user_application(db, user.id)
        return HTMLResponse(
            views.become_seller_page(user, application, error=str(e), values=vars(form)),
            status_code=400,
        )
    return RedirectResponse("/become-seller?submitted=true", status_code=303)


@router.get("/submit-agent")
async def submit_agent_form(
    db: AsyncSession = Depends(get_db),
    user: User = Depends(require_seller),
):
    categories = await list_categories(db)
    return views.submit_agent_page(categories, user)


@router.post("/submit-agent")
async def submit_agent(
    title: str = Form(""),
    category_id: str = Form(""),
    price: str = Form(""),
    setup_guide: str = Form(""),
    short_description: str | None = Form(None),
    workflow_overview: str | None = Form(None),
    use_case: str | None = Form(None),
    demo_video_url: str | None = Form(None),
    thumbnail_url: str | None = Form(None),
    db: AsyncSession = Depends(get_db),
    user: User = Depends(require_seller),
):
    form = AgentForm(
        title=title,
        category_id=category_id,
        price=price,
        setup_guide=setup_guide,
        short_description=short_description,
        workflow_overview=workflow_overview,
        use_case=use_case,
        demo_video_url=demo_video_url,
        thumbnail_url=thumbnail_url,
    )
    try:
        await create_agent(db, user.id, form)
    except AgentValidationError as e:
        categories = await list_categories(db)
        return HTMLResponse(
            views.submit_agent_page(categories, user, error=str(e), values=vars(form)),
            status_code=400,
        )
    return RedirectResponse("/dashboard?success=created", status_code=303)


@router.get("/dashboard")
async def dashboard(
    success: str | None = None,
    error: str | None = None,
    db: AsyncSession = Depends(get_db),
    user: User = Depends(require_login),
):
    agents = await list_seller_agents(db, user.id)
    return views.dashboard_page(user, agents, success, error)


@router.post("/dashboard/agents/{agent_id}/submit")
async def dashboard_submit_for_review(
    agent_id: str,
    db: AsyncSession = Depends(get_db),
    user: User = Depends(require_seller),
):
    try:
        await submit_for_review(db, user.id, agent_id)
    except NotFoundError:
        raise HTTPException(status_code=404, detail="Agent not found")
    except AgentValidationError as e:
        return RedirectResponse(f"/dashboard?{urlencode({'error': str(e)})}", status_code=303)
    return RedirectResponse("/dashboard?success=submitted", status_code=303)


@router.get("/library")
async def library(
    subscribed: str | None = None,
    db: AsyncSession = Depends(get_db),
    user: User = Depends(require_login),
):
    purchases = await get_buyer_purchases(db, user.id)
    state = await get_subscription_state(db, user.id)
    return views.library_page(user, purchases, state, show_welcome=subscribed == "true")


@router.get("/admin")
async def admin_queue(
    message: str | None = None,
    db: AsyncSession = Depends(get_db),
    user: User = Depends(require_admin),
):
    pending = await list_agents_by_status(db, AgentStatus.UNDER_REVIEW)
    return views.admin_page(user, pending, message)


@router.post("/admin/agents/{agent_id}/approve")
async def admin_approve(
    agent_id: str,
    db: AsyncSession = Depends(get_db),
    user: User = Depends(require_admin),
):
    agent = await moderate_agent(db, user, agent_id, AgentStatus.APPROVED)
    if agent is None:
        raise HTTPException(status_code=404, detail="Agent not found")
    return RedirectResponse("/admin?message=Agent+approved", status_code=303)


@router.post("/admin/agents/{agent_id}/reject")
async def admin_reject(
    agent_id: str,
    reason: str = Form(""),
    db: AsyncSession = Depends(get_db),
    user: User = Depends(require_admin),
):
    try:
        agent = await moderate_agent(db, user, agent_id, AgentStatus.REJECTED, reason.strip() or None)
    except AgentValidationError as e:
        return RedirectResponse(f"/admin?{urlencode({'message': str(e)})}", status_code=303)
    if agent is None:
        raise HTTPException(status_code=404, detail="Agent not found")
    return RedirectResponse("/admin?message=Agent+rejected", status_code=303)


@router.get("/admin/seller-applications")
async def admin_seller_applications(
    message: str | None = None,
    db: AsyncSession = Depends(get_db),
    user: User = Depends(require_admin),
):
    pending = await list_pending_applications(db)
    return views.admin_applications_page(user, pending, message)


@router.post("/admin/seller-applications/{application_id}/approve")
async def admin_approve_application(
    application_id: str,
    db: AsyncSession = Depends(get_db),
    user: User = Depends(require_admin),
):
    try:
        await approve_application(db, user, application_id)
    except NotFoundError:
        raise HTTPException(status_code=404, detail="Application not found")
    except SellerApplicationError as e:
        return RedirectResponse(f"/admin/seller-applications?{urlencode({'message': str(e)})}", status_code=303)
    return RedirectResponse("/admin/seller-applications?message=Application+approved", status_code=303)


@router.post("/admin/seller-applications/{application_id}/reject")
async def admin_reject_application(
    application_id: str,
    reason: str = Form(""),
    db: AsyncSession = Depends(get_db),
    user: User = Depends(require_admin),
):
    try:
        await reject_application(db, user, application_id, reason)
    except NotFoundError:
        raise HTTPException(status_code=404, detail="Application not found")
    except SellerApplicationError as e:
        return RedirectResponse(f"/admin/seller-applications?{urlencode({'message': str(e)})}", status_code=303)
    return RedirectResponse("/admin/seller-applications?message=Application+rejected", status_code=303)
