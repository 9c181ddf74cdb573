"""Recurring transaction template model."""

from __future__ import annotations

import uuid
from datetime import date, datetime
from decimal import Decimal
from typing import Optional

from sqlalchemy import (
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

FREQUENCIES = ("daily", "weekly", "monthly", "yearly")


class RecurringTransaction(Base):
    """Template that materializes a concrete transaction every time it falls due."""

    __tablename__ = "recurring_transactions"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4, index=True)
    user_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True
    )
    wallet_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("expense_wallets.id", ondelete="CASCADE"), nullable=False
    )
    name: Mapped[str] = mapped_column(String(100), nullable=False)
    transaction_type: Mapped[str] = mapped_column(String(10), nullable=False)
    amount: Mapped[Decimal] = mapped_column(Numeric(15, 2), nullable=False)
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    category_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        Uuid, ForeignKey("expense_categories.id", ondelete="SET NULL"), nullable=True
    )
    transfer_to_wallet_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        Uuid, ForeignKey("expense_wallets.id", ondelete="SET NULL"), nullable=True
    )
    frequency: Mapped[str] = mapped_column(String(10), nullable=False)
    frequency_interval: Mapped[int] = mapped_column(Integer, default=1, nullable=False)
    start_date: Mapped[date] = mapped_column(Date, nullable=False)
    end_date: Mapped[Optional[date]] = mapped_column(Date, nullable=True)
    max_occurrences: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    next_due_date: Mapped[date] = mapped_column(Date, nullable=False, index=True)
    occurrences_created: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    last_processed_at: Mapped[Optional[datetime]] = mapped_column(DateTime, nullable=True)
    is_active: Mapped[bool] = mapped_column(default=True, nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, default=utcnow, onupdate=utcnow, nullable=False
    )

    __table_args__ = (
        CheckConstraint(
            "transaction_type IN ('income', 'expense', 'transfer')",
            name="check_recurring_transaction_type",
        ),
        CheckConstraint(
            "frequency IN ('daily', 'weekly', 'monthly', 'yearly')", name="check_recurring_frequency"
        ),
        CheckConstraint(
            "frequency_interval BETWEEN 1 AND 365", name="check_recurring_frequency_interval"
        ),
        CheckConstraint("amount > 0", name="check_recurring_amount_positive"),
        Index("idx_recurring_transactions_active_due", "is_active", "next_due_date"),
    )

    def __repr__(self) -> str:
        """String representation of RecurringTransaction."""
        return (
            f"<RecurringTransaction(id={self.id}, name={self.name}, "
            f"frequency={self.frequency}, next_due={self.next_due_date})>"
        )
