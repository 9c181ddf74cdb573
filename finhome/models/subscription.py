"""Subscription model mirroring the billing provider's state for a user."""

from __future__ import annotations

import uuid
from datetime import datetime
from typing import Optional

from sqlalchemy import CheckConstraint, DateTime, ForeignKey, String, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from finhome.models.base import Base, utcnow

SUBSCRIPTION_STATUSES = ("active", "inactive", "trialing", "past_due", "canceled", "unpaid")


class Subscription(Base):
    """Current subscription of a user. One row per user."""

    __tablename__ = "subscriptions"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    user_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, unique=True, index=True
    )
    tier: Mapped[str] = mapped_column(String(20), default="free", nullable=False)
    status: Mapped[str] = mapped_column(String(20), default="active", nullable=False)
    billing_cycle: Mapped[Optional[str]] = mapped_column(String(10), nullable=True)
    current_period_start: Mapped[Optional[datetime]] = mapped_column(DateTime, nullable=True)
    current_period_end: Mapped[Optional[datetime]] = mapped_column(DateTime, nullable=True)
    cancel_at_period_end: Mapped[bool] = mapped_column(default=False, nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, default=utcnow, onupdate=utcnow, nullable=False
    )

    __table_args__ = (
        CheckConstraint(
            "status IN ('active', 'inactive', 'trialing', 'past_due', 'canceled', 'unpaid')",
            name="check_subscription_status",
        ),
        CheckConstraint(
            "tier IN ('free', 'premium', 'professional')", name="check_subscription_tier"
        ),
    )

    def __repr__(self) -> str:
        """String representation of Subscription."""
        return f"<Subscription(user_id={self.user_id}, tier={self.tier}, status={self.status})>"
