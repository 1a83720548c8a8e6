"""Purchase and review models."""

from datetime import datetime
from decimal import Decimal
from typing import TYPE_CHECKING

from sqlalchemy import (
    Integer, String, Text, ForeignKey, DateTime, Numeric, Enum, Index, UniqueConstraint
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from .base import Base, new_id, utcnow
from .enums import PurchaseStatus

if TYPE_CHECKING:
    from .catalog import Agent
    from .user import User


class Purchase(Base):
    """Entitles a buyer to one version of an agent."""

    __tablename__ = "purchases"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)
    buyer_id: Mapped[str] = mapped_column(ForeignKey("users.id"), nullable=False, index=True)
    agent_id: Mapped[str] = mapped_column(ForeignKey("agents.id"), nullable=False, index=True)
    agent_version: Mapped[str] = mapped_column(String, nullable=False)
    amount_paid: Mapped[Decimal] = mapped_column(Numeric(10, 2), default=Decimal("0"), nullable=False)
    status: Mapped[PurchaseStatus] = mapped_column(
        Enum(PurchaseStatus, name="purchase_status"),
        default=PurchaseStatus.PENDING,
        nullable=False,
    )
    source: Mapped[str | None] = mapped_column(String, nullable=True)  # STRIPE / TEST_MODE / ADMIN
    purchased_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow)

    buyer: Mapped["User"] = relationship(back_populates="purchases")
    agent: Mapped["Agent"] = relationship()

    __table_args__ = (
        Index("ix_purchases_buyer_agent_status", "buyer_id", "agent_id", "status"),
    )


class Review(Base):
    __tablename__ = "reviews"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)
    buyer_id: Mapped[str] = mapped_column(ForeignKey("users.id"), nullable=False, index=True)
    agent_id: Mapped[str] = mapped_column(ForeignKey("agents.id"), nullable=False, index=True)
    agent_version: Mapped[str] = mapped_column(String, nullable=False)
    rating: Mapped[int] = mapped_column(Integer, nullable=False)  # 1..5
    comment: Mapped[str | None] = mapped_column(Text, nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow)

    buyer: Mapped["User"] = relationship(back_populates="reviews")

    __table_args__ = (
        UniqueConstraint("agent_id", "agent_version", "buyer_id", name="uq_review_agent_version_buyer"),
    )
