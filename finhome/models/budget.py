"""Budget model for period spending limits."""

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


class Budget(Base):
    """Budget for a period with optional per-category allocations."""

    __tablename__ = "expense_budgets"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4, index=True)
    user_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True
    )
    name: Mapped[str] = mapped_column(String(100), nullable=False)
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    budget_period: Mapped[str] = mapped_column(String(10), default="monthly", nullable=False)
    budget_method: Mapped[str] = mapped_column(String(20), default="manual", nullable=False)
    start_date: Mapped[date] = mapped_column(Date, nullable=False)
    end_date: Mapped[date] = mapped_column(Date, nullable=False)
    total_budget: Mapped[Decimal] = mapped_column(Numeric(15, 2), nullable=False)
    # Maps category id (string) to allocated amount (string decimal)
    category_budgets: Mapped[dict] = mapped_column(JSON, default=dict, nullable=False)
    alert_threshold_percentage: Mapped[int] = mapped_column(Integer, default=80, nullable=False)
    is_active: Mapped[bool] = mapped_column(default=True, nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, default=utcnow, onupdate=utcnow, nullable=False
    )

    __table_args__ = (
        CheckConstraint("end_date >= start_date", name="check_budget_end_after_start"),
        CheckConstraint("total_budget > 0", name="check_budget_total_positive"),
        CheckConstraint(
            "budget_period IN ('weekly', 'monthly', 'yearly')", name="check_budget_period"
        ),
        CheckConstraint(
            "alert_threshold_percentage BETWEEN 1 AND 100", name="check_budget_alert_threshold"
        ),
        Index("idx_expense_budgets_user_dates", "user_id", "start_date", "end_date"),
    )

    def __repr__(self) -> str:
        """String representation of Budget."""
        return (
            f"<Budget(id={self.id}, name={self.name}, total={self.total_budget}, "
            f"start={self.start_date}, end={self.end_date})>"
        )
