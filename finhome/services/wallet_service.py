"""Wallet service for managing a user's wallets and their balances."""

from decimal import Decimal
from typing import List, Optional
from uuid import UUID

from sqlalchemy import and_, func, or_, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from finhome.exceptions import NotFoundError
from finhome.logging_config import get_logger
from finhome.models.transaction import Transaction
from finhome.models.user import User
from finhome.models.wallet import WALLET_TYPES, Wallet
from finhome.services.subscription_service import SubscriptionService

logger = get_logger(__name__)

UPDATABLE_FIELDS = {
    "name",
    "wallet_type",
    "description",
    "balance",
    "currency",
    "icon",
    "color",
    "bank_name",
    "account_number",
    "is_default",
    "include_in_budget",
}


class WalletService:
    """Service for wallet CRUD and balance bookkeeping."""

    def __init__(self, db: AsyncSession):
        """Initialize wallet service.

        Args:
            db: Database session
        """
        self.db = db

    async def _ensure_unique_name(
        self, user_id: UUID, name: str, exclude_id: Optional[UUID] = None
    ) -> None:
        stmt = select(Wallet.id).where(
            Wallet.user_id == user_id, Wallet.name == name, Wallet.is_active.is_(True)
        )
        if exclude_id is not None:
            stmt = stmt.where(Wallet.id != exclude_id)
        result = await self.db.execute(stmt)
        if result.first() is not None:
            raise ValueError(f"A wallet named '{name}' already exists")

    async def _clear_default(self, user_id: UUID, keep_id: Optional[UUID] = None) -> None:
        stmt = update(Wallet).where(Wallet.user_id == user_id, Wallet.is_default.is_(True))
        if keep_id is not None:
            stmt = stmt.where(Wallet.id != keep_id)
        await self.db.execute(stmt.values(is_default=False).execution_options(synchronize_session="fetch"))

    async def create_wallet(
        self,
        user: User,
        name: str,
        wallet_type: str,
        balance: Decimal = Decimal(0),
        currency: str = "VND",
        description: Optional[str] = None,
        icon: str = "wallet",
        color: str = "#3B82F6",
        bank_name: Optional[str] = None,
        account_number: Optional[str] = None,
        is_default: bool = False,
        include_in_budget: bool = True,
    ) -> Wallet:
        """Create a wallet.

        Args:
            user: Owner
            name: Wallet name, unique among the user's active wallets
            wallet_type: One of WALLET_TYPES
            balance: Opening balance

        Returns:
            Created wallet

        Raises:
            ValueError: If the name is taken, the type is unknown or the balance is negative
            LimitExceededError: If the user's tier does not allow another wallet
        """
        if wallet_type not in WALLET_TYPES:
            raise ValueError(f"Invalid wallet type: {wallet_type}")
        if balance < 0:
            raise ValueError("Opening balance cannot be negative")

        await SubscriptionService(self.db).check_wallet_limit(user)
        await self._ensure_unique_name(user.id, name)

        if is_default:
            await self._clear_default(user.id)

        wallet = Wallet(
            user_id=user.id,
            name=name,
            wallet_type=wallet_type,
            balance=balance,
            currency=currency,
            description=description,
            icon=icon,
            color=color,
            bank_name=bank_name,
            account_number=account_number,
            is_default=is_default,
            include_in_budget=include_in_budget,
        )
        self.db.add(wallet)
        await self.db.flush()
        await self.db.refresh(wallet)

        logger.info(
            "Wallet created",
            wallet_id=str(wallet.id),
            user_id=str(user.id),
            wallet_type=wallet_type,
            balance=str(balance),
        )
        return wallet

    async def get_wallet(
        self, wallet_id: UUID, user_id: UUID, active_only: bool = False
    ) -> Optional[Wallet]:
        """Get a wallet by ID.

        Returns:
            Wallet if found and owned by the user, None otherwise
        """
        stmt = select(Wallet).where(and_(Wallet.id == wallet_id, Wallet.user_id == user_id))
        if active_only:
            stmt = stmt.where(Wallet.is_active.is_(True))
        result = await self.db.execute(stmt)
        return result.scalar_one_or_none()

    async def list_wallets(self, user_id: UUID, include_inactive: bool = False) -> List[Wallet]:
        """List a user's wallets, newest first."""
        stmt = select(Wallet).where(Wallet.user_id == user_id)
        if not include_inactive:
            stmt = stmt.where(Wallet.is_active.is_(True))
        stmt = stmt.order_by(Wallet.created_at.desc())
        result = await self.db.execute(stmt)
        return list(result.scalars().all())

    async def update_wallet(self, wallet_id: UUID, user_id: UUID, **updates) -> Wallet:
        """Update wallet fields.

        Raises:
            NotFoundError: If the wallet does not exist or is not owned by the user
            ValueError: If the new name is taken or a value is invalid
        """
        wallet = await self.get_wallet(wallet_id, user_id, active_only=True)
        if not wallet:
            raise NotFoundError(f"Wallet {wallet_id} not found")

        unknown = set(updates) - UPDATABLE_FIELDS
        if unknown:
            raise ValueError(f"Cannot update fields: {', '.join(sorted(unknown))}")

        if "wallet_type" in updates and updates["wallet_type"] not in WALLET_TYPES:
            raise ValueError(f"Invalid wallet type: {updates['wallet_type']}")
        if updates.get("name") and updates["name"] != wallet.name:
            await self._ensure_unique_name(user_id, updates["name"], exclude_id=wallet.id)
        if updates.get("is_default"):
            await self._clear_default(user_id, keep_id=wallet.id)

        for field, value in updates.items():
            setattr(wallet, field, value)

        await self.db.flush()
        await self.db.refresh(wallet)

        logger.info("Wallet updated", wallet_id=str(wallet_id), fields=sorted(updates))
        return wallet

    async def delete_wallet(self, wallet_id: UUID, user_id: UUID) -> bool:
        """Delete a wallet.

        Wallets referenced by transactions are deactivated instead of removed.

        Returns:
            True if the wallet was soft-deleted, False if it was removed

        Raises:
            NotFoundError: If the wallet does not exist or is not owned by the user
        """
        wallet = await self.get_wallet(wallet_id, user_id, active_only=True)
        if not wallet:
            raise NotFoundError(f"Wallet {wallet_id} not found")

        result = await self.db.execute(
            select(func.count(Transaction.id)).where(
                or_(Transaction.wallet_id == wallet_id, Transaction.transfer_to_wallet_id == wallet_id)
            )
        )
        has_transactions = (result.scalar() or 0) > 0

        if has_transactions:
            wallet.is_active = False
            wallet.is_default = False
            await self.db.flush()
            logger.info("Wallet deactivated", wallet_id=str(wallet_id), user_id=str(user_id))
            return True

        await self.db.delete(wallet)
        await self.db.flush()
        logger.info("Wallet deleted", wallet_id=str(wallet_id), user_id=str(user_id))
        return False

    async def adjust_balance(self, wallet: Wallet, delta: Decimal) -> None:
        """Apply a signed change to a wallet balance."""
        wallet.balance = Decimal(wallet.balance) + delta
        logger.debug("Wallet balance adjusted", wallet_id=str(wallet.id), delta=str(delta))

    async def get_total_balance(self, user_id: UUID) -> Decimal:
        """Sum of balances across active wallets included in budgeting."""
        result = await self.db.execute(
            select(func.coalesce(func.sum(Wallet.balance), 0)).where(
                Wallet.user_id == user_id,
                Wallet.is_active.is_(True),
                Wallet.include_in_budget.is_(True),
            )
        )
        return Decimal(str(result.scalar() or 0))
