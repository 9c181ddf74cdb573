"""Transaction model for income, expense and transfer records."""

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
    Numeric,
    String,
    Text,
    Uuid,
)
from sqlalchemy.orm import Mapped, mapped_column

from finhome.models.base import Base, utcnow

TRANSACTION_TYPES = ("income", "expense", "transfer")


class Transaction(Base):
    """A money movement on a wallet."""

    __tablename__ = "expense_transactions"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4, index=True)
    user_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True
    )
    wallet_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("expense_wallets.id", ondelete="CASCADE"), nullable=False, index=True
    )
    transaction_type: Mapped[str] = mapped_column(String(10), nullable=False)
    amount: Mapped[Decimal] = mapped_column(Numeric(15, 2), nullable=False)
    currency: Mapped[str] = mapped_column(String(3), default="VND", nullable=False)
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    notes: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    category_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        Uuid, ForeignKey("expense_categories.id", ondelete="SET NULL"), nullable=True, index=True
    )
    transfer_to_wallet_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        Uuid, ForeignKey("expense_wallets.id", ondelete="SET NULL"), nullable=True
    )
    transfer_fee: Mapped[Decimal] = mapped_column(
        Numeric(15, 2), default=Decimal("0"), nullable=False
    )
    transaction_date: Mapped[date] = mapped_column(Date, nullable=False, index=True)
    merchant_name: Mapped[Optional[str]] = mapped_column(String(200), nullable=True)
    tags: Mapped[list] = mapped_column(JSON, default=list, nullable=False)
    recurring_transaction_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        Uuid, ForeignKey("recurring_transactions.id", ondelete="SET NULL"), nullable=True
    )
    is_confirmed: Mapped[bool] = mapped_column(default=True, nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, default=utcnow, onupdate=utcnow, nullable=False
    )

    __table_args__ = (
        CheckConstraint(
            "transaction_type IN ('income', 'expense', 'transfer')",
            name="check_transaction_type",
        ),
        CheckConstraint("amount > 0", name="check_transaction_amount_positive"),
        CheckConstraint("transfer_fee >= 0", name="check_transfer_fee_non_negative"),
        Index("idx_expense_transactions_user_date", "user_id", "transaction_date"),
        Index("idx_expense_transactions_wallet_date", "wallet_id", "transaction_date"),
    )

    def __repr__(self) -> str:
        """String representation of Transaction."""
        return (
            f"<Transaction(id={self.id}, type={self.transaction_type}, "
            f"amount={self.amount}, date={self.transaction_date})>"
        )
