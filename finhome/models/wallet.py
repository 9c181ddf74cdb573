"""Wallet model: a named store of funds owned by a user."""

from __future__ import annotations

import uuid
from datetime import datetime
from decimal import Decimal
from typing import Optional

from sqlalchemy import CheckConstraint, DateTime, ForeignKey, Index, Numeric, String, Text, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from finhome.models.base import Base, utcnow

WALLET_TYPES = ("cash", "bank_account", "credit_card", "e_wallet", "investment", "other")


class Wallet(Base):
    """Wallet (cash, bank account, e-wallet...) whose balance follows its transactions."""

    __tablename__ = "expense_wallets"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4, index=True)
    user_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True
    )
    name: Mapped[str] = mapped_column(String(100), nullable=False)
    wallet_type: Mapped[str] = mapped_column(String(20), nullable=False)
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    balance: Mapped[Decimal] = mapped_column(Numeric(15, 2), default=Decimal("0"), nullable=False)
    currency: Mapped[str] = mapped_column(String(3), default="VND", nullable=False)
    icon: Mapped[str] = mapped_column(String(50), default="wallet", nullable=False)
    color: Mapped[str] = mapped_column(String(7), default="#3B82F6", nullable=False)
    bank_name: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    account_number: Mapped[Optional[str]] = mapped_column(String(50), nullable=True)
    is_default: Mapped[bool] = mapped_column(default=False, nullable=False)
    include_in_budget: Mapped[bool] = mapped_column(default=True, nullable=False)
    is_active: Mapped[bool] = mapped_column(default=True, nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, default=utcnow, onupdate=utcnow, nullable=False
    )

    __table_args__ = (
        CheckConstraint(
            "wallet_type IN ('cash', 'bank_account', 'credit_card', 'e_wallet', 'investment', 'other')",
            name="check_wallet_type",
        ),
        Index("idx_expense_wallets_user_active", "user_id", "is_active"),
    )

    def __repr__(self) -> str:
        """String representation of Wallet."""
        return f"<Wallet(id={self.id}, name={self.name}, balance={self.balance})>"
