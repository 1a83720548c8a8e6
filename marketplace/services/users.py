import logging

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from marketplace.core.errors import NotFoundError
from marketplace.db.models import User, UserRole

log = logging.getLogger(__name__)


async def get_user_with_role(db: AsyncSession, user_id: str) -> User | None:
    """
    Load a user with role and seller profile. Lookup failures are logged and
    reported as "not found" so callers can branch on a single None.
    """
    try:
        result = await db.execute(
            select(User)
            .options(selectinload(User.seller_profile))
            .where(User.id == user_id)
        )
        return result.scalar_one_or_none()
    except SQLAlchemyError:
        log.error("Error fetching user with role user_id=%s", user_id, exc_info=True)
        return None


async def get_user_by_email(db: AsyncSession, email: str) -> User | None:
    result = await db.execute(select(User).where(User.email == email))
    return result.scalar_one_or_none()


async def sync_user(db: AsyncSession, identity_user) -> User:
    """
    Make sure every authenticated identity has a matching users row.
    New rows start as BUYER; email and name follow the identity provider.
    """
    existing = await db.get(User, identity_user.id)
    if existing:
        changed = False
        if identity_user.email and existing.email != identity_user.email:
            existing.email = identity_user.email
            changed = True
        if identity_user.name and existing.name != identity_user.name:
            existing.name = identity_user.name
            changed = True
        if changed:
            await db.commit()
            await db.refresh(existing)
        return existing

    user = User(
        id=identity_user.id,
        email=identity_user.email,
        name=identity_user.name,
        avatar_url=identity_user.avatar_url,
        role=UserRole.BUYER,
    )
    db.add(user)
    try:
        await db.commit()
    except IntegrityError:
        # concurrent first login for the same identity
        await db.rollback()
        existing = await db.get(User, identity_user.id)
        if existing:
            return existing
        raise
    await db.refresh(user)
    log.info("New user synced: %s", user.id)
    return user


async def update_user_role(db: AsyncSession, email: str, role: UserRole) -> User:
    user = await get_user_by_email(db, email)
    if user is None:
        raise NotFoundError(f"User not found: {email}")
    user.role = role
    await db.commit()
    await db.refresh(user)
    log.info("User %s role updated to %s", user.id, role.value)
    return user
