"""Savings goal and contribution models."""

from __future__ import annotations

import uuid
from datetime import date, datetime
from decimal import Decimal
from typing import Optional

from sqlalchemy import CheckConstraint, Date, DateTime, ForeignKey, Index, Numeric, String, Text, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from finhome.models.base import Base, utcnow

GOAL_TYPES = (
    "general_savings",
    "emergency_fund",
    "vacation",
    "education",
    "buy_house",
    "buy_car",
    "other",
)
GOAL_STATUSES = ("active", "completed", "paused", "cancelled")


class Goal(Base):
    """Savings goal tracked against a target amount."""

    __tablename__ = "expense_goals"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4, index=True)
    user_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True
    )
    name: Mapped[str] = mapped_column(String(100), nullable=False)
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    goal_type: Mapped[str] = mapped_column(String(20), default="general_savings", nullable=False)
    target_amount: Mapped[Decimal] = mapped_column(Numeric(15, 2), nullable=False)
    current_amount: Mapped[Decimal] = mapped_column(
        Numeric(15, 2), default=Decimal("0"), nullable=False
    )
    monthly_target: Mapped[Optional[Decimal]] = mapped_column(Numeric(15, 2), nullable=True)
    start_date: Mapped[date] = mapped_column(Date, default=date.today, nullable=False)
    deadline: Mapped[Optional[date]] = mapped_column(Date, nullable=True)
    status: Mapped[str] = mapped_column(String(20), default="active", nullable=False, index=True)
    completed_at: Mapped[Optional[datetime]] = mapped_column(DateTime, nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, default=utcnow, onupdate=utcnow, nullable=False
    )

    __table_args__ = (
        CheckConstraint(
            "status IN ('active', 'completed', 'paused', 'cancelled')", name="check_goal_status"
        ),
        CheckConstraint("target_amount > 0", name="check_goal_target_positive"),
        CheckConstraint("current_amount >= 0", name="check_goal_current_non_negative"),
        Index("idx_expense_goals_user_status", "user_id", "status"),
    )

    def __repr__(self) -> str:
        """String representation of Goal."""
        return (
            f"<Goal(id={self.id}, name={self.name}, target={self.target_amount}, "
            f"current={self.current_amount}, status={self.status})>"
        )


class GoalContribution(Base):
    """Money moved from a wallet towards a goal."""

    __tablename__ = "goal_contributions"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    goal_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("expense_goals.id", ondelete="CASCADE"), nullable=False, index=True
    )
    wallet_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        Uuid, ForeignKey("expense_wallets.id", ondelete="SET NULL"), nullable=True
    )
    amount: Mapped[Decimal] = mapped_column(Numeric(15, 2), nullable=False)
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    contribution_date: Mapped[date] = mapped_column(Date, default=date.today, nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow, nullable=False)

    __table_args__ = (CheckConstraint("amount > 0", name="check_contribution_amount_positive"),)
