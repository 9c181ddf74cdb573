"""Financial plan, plan status history and milestone models."""

from __future__ import annotations

import uuid
from datetime import date, datetime
from decimal import Decimal
from typing import Optional

from sqlalchemy import (
    JSON,
    CheckConstraint,
    Date,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    Numeric,
    String,
    Text,
    Uuid,
)
from sqlalchemy.orm import Mapped, mapped_column

from finhome.models.base import Base, utcnow

PLAN_TYPES = ("home_purchase", "investment", "upgrade", "refinance")
PLAN_STATUSES = ("draft", "active", "completed", "archived")
MILESTONE_CATEGORIES = ("financial", "legal", "property", "admin", "personal")
MILESTONE_STATUSES = ("pending", "in_progress", "completed", "cancelled")
MILESTONE_PRIORITIES = ("low", "medium", "high")


class FinancialPlan(Base):
    """Saved home-purchase or investment scenario with cached derived metrics."""

    __tablename__ = "financial_plans"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4, index=True)
    user_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True
    )
    plan_name: Mapped[str] = mapped_column(String(255), nullable=False)
    plan_description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    plan_type: Mapped[str] = mapped_column(String(20), default="home_purchase", nullable=False)
    status: Mapped[str] = mapped_column(String(20), default="draft", nullable=False, index=True)

    purchase_price: Mapped[Decimal] = mapped_column(Numeric(15, 2), nullable=False)
    down_payment: Mapped[Decimal] = mapped_column(Numeric(15, 2), nullable=False)
    additional_costs: Mapped[Decimal] = mapped_column(
        Numeric(15, 2), default=Decimal("0"), nullable=False
    )
    monthly_income: Mapped[Decimal] = mapped_column(Numeric(15, 2), nullable=False)
    monthly_expenses: Mapped[Decimal] = mapped_column(Numeric(15, 2), nullable=False)
    current_savings: Mapped[Decimal] = mapped_column(
        Numeric(15, 2), default=Decimal("0"), nullable=False
    )
    other_debts: Mapped[Decimal] = mapped_column(
        Numeric(15, 2), default=Decimal("0"), nullable=False
    )
    expected_rental_income: Mapped[Optional[Decimal]] = mapped_column(Numeric(15, 2), nullable=True)
    expected_appreciation_rate: Mapped[Optional[Decimal]] = mapped_column(
        Numeric(5, 2), nullable=True
    )
    investment_horizon_years: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)

    is_public: Mapped[bool] = mapped_column(default=False, nullable=False)
    cached_calculations: Mapped[Optional[dict]] = mapped_column(JSON, nullable=True)
    calculations_last_updated: Mapped[Optional[datetime]] = mapped_column(DateTime, nullable=True)
    completed_at: Mapped[Optional[datetime]] = mapped_column(DateTime, nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, default=utcnow, onupdate=utcnow, nullable=False
    )

    __table_args__ = (
        CheckConstraint(
            "plan_type IN ('home_purchase', 'investment', 'upgrade', 'refinance')",
            name="check_plan_type",
        ),
        CheckConstraint(
            "status IN ('draft', 'active', 'completed', 'archived')", name="check_plan_status"
        ),
        CheckConstraint("purchase_price > 0", name="check_plan_purchase_price_positive"),
        CheckConstraint("down_payment >= 0", name="check_plan_down_payment_non_negative"),
        Index("idx_financial_plans_user_status", "user_id", "status"),
    )

    def __repr__(self) -> str:
        """String representation of FinancialPlan."""
        return (
            f"<FinancialPlan(id={self.id}, name={self.plan_name}, "
            f"type={self.plan_type}, status={self.status})>"
        )


class PlanStatusHistory(Base):
    """Audit row written on every plan status transition."""

    __tablename__ = "plan_status_history"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    plan_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("financial_plans.id", ondelete="CASCADE"), nullable=False, index=True
    )
    previous_status: Mapped[Optional[str]] = mapped_column(String(20), nullable=True)
    status: Mapped[str] = mapped_column(String(20), nullable=False)
    changed_by: Mapped[uuid.UUID] = mapped_column(Uuid, nullable=False)
    note: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    changed_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow, nullable=False)


class PlanMilestone(Base):
    """Checklist step towards completing a financial plan."""

    __tablename__ = "plan_milestones"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4, index=True)
    plan_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("financial_plans.id", ondelete="CASCADE"), nullable=False, index=True
    )
    title: Mapped[str] = mapped_column(String(200), nullable=False)
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    category: Mapped[str] = mapped_column(String(20), nullable=False)
    status: Mapped[str] = mapped_column(String(20), default="pending", nullable=False)
    priority: Mapped[str] = mapped_column(String(10), default="medium", nullable=False)
    required_amount: Mapped[Optional[Decimal]] = mapped_column(Numeric(15, 2), nullable=True)
    current_amount: Mapped[Decimal] = mapped_column(
        Numeric(15, 2), default=Decimal("0"), nullable=False
    )
    target_date: Mapped[Optional[date]] = mapped_column(Date, nullable=True)
    completed_date: Mapped[Optional[date]] = mapped_column(Date, nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, default=utcnow, onupdate=utcnow, nullable=False
    )

    __table_args__ = (
        CheckConstraint(
            "category IN ('financial', 'legal', 'property', 'admin', 'personal')",
            name="check_milestone_category",
        ),
        CheckConstraint(
            "status IN ('pending', 'in_progress', 'completed', 'cancelled')",
            name="check_milestone_status",
        ),
        CheckConstraint("priority IN ('low', 'medium', 'high')", name="check_milestone_priority"),
    )

    def __repr__(self) -> str:
        """String representation of PlanMilestone."""
        return f"<PlanMilestone(id={self.id}, title={self.title}, status={self.status})>"
