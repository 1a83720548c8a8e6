"""
Seller onboarding: buyers apply, admins approve or reject.

Approval promotes the applicant to SELLER and creates a verified seller
profile in the same transaction as the audit log entry.
"""

import logging
import secrets
from dataclasses import dataclass
from datetime import datetime, timezone

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from marketplace.core.errors import NotFoundError, SellerApplicationError
from marketplace.db.models import (
    AdminLog,
    SellerApplication,
    SellerApplicationStatus,
    SellerProfile,
    User,
    UserRole,
    VerificationStatus,
)
from marketplace.services.agents import SLUG_SUFFIX_ALPHABET, slugify

log = logging.getLogger(__name__)

MIN_FULL_NAME = 2
MIN_EXPERIENCE = 50
MIN_AGENT_IDEAS = 30
MIN_REJECTION_REASON = 10


@dataclass
class SellerApplicationForm:
    full_name: str
    experience: str
    agent_ideas: str
    relevant_links: str | None = None


def validate_application_form(form: SellerApplicationForm) -> None:
    if len(form.full_name.strip()) < MIN_FULL_NAME:
        raise SellerApplicationError("Full name must be at least 2 characters")
    if len(form.experience.strip()) < MIN_EXPERIENCE:
        raise SellerApplicationError(
            "Please provide more detail about your experience (at least 50 characters)"
        )
    if len(form.agent_ideas.strip()) < MIN_AGENT_IDEAS:
        raise SellerApplicationError(
            "Please describe your agent ideas in more detail (at least 30 characters)"
        )


def can_sell(user: User, application: SellerApplication | None) -> bool:
    """Sellers, admins and approved applicants have nothing left to apply for."""
    if user.role in (UserRole.SELLER, UserRole.ADMIN):
        return True
    return application is not None and application.status == SellerApplicationStatus.APPROVED


async def get_user_application(db: AsyncSession, user_id: str) -> SellerApplication | None:
    return await db.scalar(select(SellerApplication).where(SellerApplication.user_id == user_id))


async def submit_application(
    db: AsyncSession,
    user_id: str,
    form: SellerApplicationForm,
) -> SellerApplication:
    existing = await get_user_application(db, user_id)
    if existing is not None and existing.status == SellerApplicationStatus.PENDING_REVIEW:
        raise SellerApplicationError(
            "You already have a pending application. Please wait for admin review."
        )

    validate_application_form(form)

    if existing is not None:
        # one row per user; a rejected application makes way for the new one
        await db.delete(existing)
        await db.flush()

    application = SellerApplication(
        user_id=user_id,
        full_name=form.full_name.strip(),
        experience=form.experience.strip(),
        agent_ideas=form.agent_ideas.strip(),
        relevant_links=(form.relevant_links or "").strip() or None,
    )
    db.add(application)
    try:
        await db.commit()
    except Exception:
        await db.rollback()
        log.error("Failed to save seller application for %s", user_id, exc_info=True)
        raise SellerApplicationError("Failed to submit application. Please try again.")
    log.info("Seller application %s submitted by %s", application.id, user_id)
    return application


async def list_pending_applications(db: AsyncSession) -> list[SellerApplication]:
    result = await db.scalars(
        select(SellerApplication)
        .options(selectinload(SellerApplication.user))
        .where(SellerApplication.status == SellerApplicationStatus.PENDING_REVIEW)
        .order_by(SellerApplication.created_at)
    )
    return list(result)


async def _get_pending(db: AsyncSession, application_id: str) -> SellerApplication:
    application = await db.scalar(
        select(SellerApplication)
        .options(selectinload(SellerApplication.user).selectinload(User.seller_profile))
        .where(SellerApplication.id == application_id)
    )
    if application is None:
        raise NotFoundError("Application not found")
    if application.status != SellerApplicationStatus.PENDING_REVIEW:
        raise SellerApplicationError("Application has already been reviewed")
    return application


async def _portfolio_slug(db: AsyncSession, name: str) -> str:
    slug = slugify(name) or "seller"
    taken = await db.scalar(
        select(SellerProfile.id).where(SellerProfile.portfolio_url_slug == slug)
    )
    if taken is None:
        return slug
    suffix = "".join(secrets.choice(SLUG_SUFFIX_ALPHABET) for _ in range(5))
    return f"{slug}-{suffix}"


async def approve_application(
    db: AsyncSession,
    admin: User,
    application_id: str,
) -> SellerApplication:
    application = await _get_pending(db, application_id)
    applicant = application.user

    application.status = SellerApplicationStatus.APPROVED
    application.reviewed_at = datetime.now(timezone.utc)
    application.reviewed_by = admin.id
    applicant.role = UserRole.SELLER
    if applicant.seller_profile is None:
        db.add(
            SellerProfile(
                user_id=applicant.id,
                portfolio_url_slug=await _portfolio_slug(db, applicant.name or application.full_name),
                verification_status=VerificationStatus.VERIFIED,
            )
        )
    db.add(
        AdminLog(
            admin_id=admin.id,
            action="APPROVE_SELLER_APPLICATION",
            entity_type="seller_application",
            entity_id=application.id,
            meta={"userId": applicant.id, "userEmail": applicant.email},
        )
    )
    try:
        await db.commit()
    except Exception:
        await db.rollback()
        raise
    log.info("Admin %s approved seller application %s for %s", admin.id, application.id, applicant.id)
    return application


async def reject_application(
    db: AsyncSession,
    admin: User,
    application_id: str,
    reason: str,
) -> SellerApplication:
    reason = reason.strip()
    if len(reason) < MIN_REJECTION_REASON:
        raise SellerApplicationError("Please provide a rejection reason (at least 10 characters)")

    application = await _get_pending(db, application_id)
    application.status = SellerApplicationStatus.REJECTED
    application.rejection_reason = reason
    application.reviewed_at = datetime.now(timezone.utc)
    application.reviewed_by = admin.id
    db.add(
        AdminLog(
            admin_id=admin.id,
            action="REJECT_SELLER_APPLICATION",
            entity_type="seller_application",
            entity_id=application.id,
            meta={
                "userId": application.user_id,
                "userEmail": application.user.email,
                "reason": reason,
            },
        )
    )
    try:
        await db.commit()
    except Exception:
        await db.rollback()
        raise
    log.info("Admin %s rejected seller application %s", admin.id, application.id)
    return application
