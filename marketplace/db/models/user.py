"""User-related database models."""

from datetime import datetime
from typing import Optional, List, TYPE_CHECKING

from sqlalchemy import String, Text, ForeignKey, DateTime, Enum
from sqlalchemy.orm import Mapped, mapped_column, relationship

from .base import Base, new_id, utcnow
from .enums import SellerApplicationStatus, UserRole, VerificationStatus

if TYPE_CHECKING:
    from .catalog import Agent
    from .billing import Subscription
    from .commerce import Purchase, Review


class User(Base):
    """
    Marketplace account. The primary key is the identity provider's user id,
    so a signed-in session maps straight onto a row here.
    """

    __tablename__ = "users"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)
    email: Mapped[str] = mapped_column(String, unique=True, nullable=False)
    name: Mapped[str | None] = mapped_column(String, nullable=True)
    avatar_url: Mapped[str | None] = mapped_column(String, nullable=True)
    role: Mapped[UserRole] = mapped_column(
        Enum(UserRole, name="user_role"),
        default=UserRole.BUYER,
        nullable=False,
    )
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=utcnow,
        onupdate=utcnow,
    )

    seller_profile: Mapped[Optional["SellerProfile"]] = relationship(
        back_populates="user",
        uselist=False,
    )
    agents: Mapped[List["Agent"]] = relationship(back_populates="seller")
    purchases: Mapped[List["Purchase"]] = relationship(back_populates="buyer")
    reviews: Mapped[List["Review"]] = relationship(back_populates="buyer")
    subscription: Mapped[Optional["Subscription"]] = relationship(
        back_populates="user",
        uselist=False,
    )
    seller_application: Mapped[Optional["SellerApplication"]] = relationship(
        back_populates="user",
        uselist=False,
        foreign_keys="SellerApplication.user_id",
    )


class SellerProfile(Base):
    """Extended account data for users allowed to list agents."""

    __tablename__ = "seller_profiles"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)
    user_id: Mapped[str] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"),
        unique=True,
        nullable=False,
    )
    portfolio_url_slug: Mapped[str] = mapped_column(String, unique=True, nullable=False)
    bio: Mapped[str | None] = mapped_column(Text, nullable=True)
    verification_status: Mapped[VerificationStatus] = mapped_column(
        Enum(VerificationStatus, name="verification_status"),
        default=VerificationStatus.PENDING,
        nullable=False,
    )
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow)

    user: Mapped["User"] = relationship(back_populates="seller_profile")


class SellerApplication(Base):
    """
    A buyer's request to start selling. One row per user; a rejected
    application is replaced when the user applies again.
    """

    __tablename__ = "seller_applications"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)
    user_id: Mapped[str] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"),
        unique=True,
        nullable=False,
    )
    full_name: Mapped[str] = mapped_column(String, nullable=False)
    experience: Mapped[str] = mapped_column(Text, nullable=False)
    agent_ideas: Mapped[str] = mapped_column(Text, nullable=False)
    relevant_links: Mapped[str | None] = mapped_column(Text, nullable=True)
    status: Mapped[SellerApplicationStatus] = mapped_column(
        Enum(SellerApplicationStatus, name="seller_application_status"),
        default=SellerApplicationStatus.PENDING_REVIEW,
        nullable=False,
        index=True,
    )
    rejection_reason: Mapped[str | None] = mapped_column(Text, nullable=True)
    reviewed_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    reviewed_by: Mapped[str | None] = mapped_column(ForeignKey("users.id"), nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow)

    user: Mapped["User"] = relationship(
        back_populates="seller_application",
        foreign_keys=[user_id],
    )
