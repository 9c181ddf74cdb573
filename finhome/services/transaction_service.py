"""Transaction service for recording money movements and keeping wallet balances in sync."""

from datetime import date
from decimal import Decimal
from typing import List, Optional, Tuple
from uuid import UUID

from sqlalchemy import and_, func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from finhome.exceptions import NotFoundError
from finhome.logging_config import get_logger
from finhome.models.transaction import TRANSACTION_TYPES, Transaction
from finhome.models.wallet import Wallet
from finhome.services.category_service import CategoryService
from finhome.services.gamification_service import GamificationService
from finhome.services.wallet_service import WalletService

logger = get_logger(__name__)

SORT_OPTIONS = {
    "date_desc": (Transaction.transaction_date.desc(), Transaction.created_at.desc()),
    "date_asc": (Transaction.transaction_date.asc(), Transaction.created_at.asc()),
    "amount_desc": (Transaction.amount.desc(), Transaction.transaction_date.desc()),
    "amount_asc": (Transaction.amount.asc(), Transaction.transaction_date.desc()),
}

UPDATABLE_FIELDS = {
    "amount",
    "description",
    "notes",
    "category_id",
    "transaction_date",
    "merchant_name",
    "tags",
    "transfer_fee",
}
REQUIRED_FIELDS = {"amount", "transaction_date", "transfer_fee", "tags"}


class TransactionService:
    """Service for managing income, expense and transfer transactions."""

    def __init__(self, db: AsyncSession):
        """Initialize transaction service.

        Args:
            db: Database session
        """
        self.db = db
        self.wallets = WalletService(db)
        self.categories = CategoryService(db)

    @staticmethod
    def balance_effects(transaction: Transaction) -> List[Tuple[UUID, Decimal]]:
        """Signed balance changes a transaction applies to its wallets."""
        amount = Decimal(transaction.amount)
        if transaction.transaction_type == "income":
            return [(transaction.wallet_id, amount)]
        if transaction.transaction_type == "expense":
            return [(transaction.wallet_id, -amount)]
        fee = Decimal(transaction.transfer_fee or 0)
        return [
            (transaction.wallet_id, -(amount + fee)),
            (transaction.transfer_to_wallet_id, amount),
        ]

    async def _apply_effects(self, transaction: Transaction, reverse: bool = False) -> None:
        for wallet_id, delta in self.balance_effects(transaction):
            if wallet_id is None:
                continue
            wallet = await self.db.get(Wallet, wallet_id)
            if wallet is None:
                continue
            await self.wallets.adjust_balance(wallet, -delta if reverse else delta)

    async def validate_category(
        self, user_id: UUID, transaction_type: str, category_id: Optional[UUID]
    ) -> None:
        if transaction_type == "transfer":
            return
        if category_id is None:
            raise ValueError(f"A {transaction_type} category is required for {transaction_type} transactions")
        category = await self.categories.get_category(category_id, user_id)
        if category is None or category.category_type != transaction_type:
            raise ValueError(f"Invalid {transaction_type} category")

    async def create_transaction(
        self,
        user_id: UUID,
        wallet_id: UUID,
        transaction_type: str,
        amount: Decimal,
        transaction_date: Optional[date] = None,
        category_id: Optional[UUID] = None,
        transfer_to_wallet_id: Optional[UUID] = None,
        transfer_fee: Decimal = Decimal(0),
        description: Optional[str] = None,
        notes: Optional[str] = None,
        merchant_name: Optional[str] = None,
        tags: Optional[List[str]] = None,
        recurring_transaction_id: Optional[UUID] = None,
    ) -> Transaction:
        """Record a transaction and move wallet balances.

        Expenses and incomes need a category of the matching type. Transfers need a
        different destination wallet owned by the same user; the fee is charged to
        the source wallet.

        Args:
            user_id: Owner
            wallet_id: Source wallet
            transaction_type: income, expense or transfer
            amount: Positive amount
            transaction_date: Defaults to today

        Returns:
            Created transaction

        Raises:
            ValueError: If a business rule is violated
            NotFoundError: If a wallet does not belong to the user
        """
        if transaction_type not in TRANSACTION_TYPES:
            raise ValueError(f"Invalid transaction type: {transaction_type}")
        if amount <= 0:
            raise ValueError("Amount must be positive")
        if transfer_fee < 0:
            raise ValueError("Transfer fee cannot be negative")

        wallet = await self.wallets.get_wallet(wallet_id, user_id, active_only=True)
        if wallet is None:
            raise NotFoundError(f"Wallet {wallet_id} not found")

        if transaction_type == "transfer":
            if transfer_to_wallet_id is None:
                raise ValueError("Destination wallet is required for transfers")
            if transfer_to_wallet_id == wallet_id:
                raise ValueError("Cannot transfer to the same wallet")
            destination = await self.wallets.get_wallet(transfer_to_wallet_id, user_id, active_only=True)
            if destination is None:
                raise NotFoundError(f"Destination wallet {transfer_to_wallet_id} not found")
            category_id = None
        else:
            transfer_to_wallet_id = None
            transfer_fee = Decimal(0)
            await self.validate_category(user_id, transaction_type, category_id)

        transaction = Transaction(
            user_id=user_id,
            wallet_id=wallet_id,
            transaction_type=transaction_type,
            amount=amount,
            currency=wallet.currency,
            transaction_date=transaction_date or date.today(),
            category_id=category_id,
            transfer_to_wallet_id=transfer_to_wallet_id,
            transfer_fee=transfer_fee,
            description=description,
            notes=notes,
            merchant_name=merchant_name,
            tags=tags or [],
            recurring_transaction_id=recurring_transaction_id,
        )
        self.db.add(transaction)
        await self.db.flush()

        await self._apply_effects(transaction)
        await GamificationService(self.db).record_activity(
            user_id,
            activity_type="transaction",
            action="created",
            resource_type="transaction",
            resource_id=transaction.id,
            details={"transaction_type": transaction_type, "amount": str(amount)},
        )
        await self.db.flush()
        await self.db.refresh(transaction)

        logger.info(
            "Transaction created",
            transaction_id=str(transaction.id),
            user_id=str(user_id),
            transaction_type=transaction_type,
            amount=str(amount),
            wallet_id=str(wallet_id),
        )
        return transaction

    async def get_transaction(self, transaction_id: UUID, user_id: UUID) -> Optional[Transaction]:
        """Get a transaction by ID.

        Returns:
            Transaction if found and owned by the user, None otherwise
        """
        stmt = select(Transaction).where(
            and_(Transaction.id == transaction_id, Transaction.user_id == user_id)
        )
        result = await self.db.execute(stmt)
        return result.scalar_one_or_none()

    async def list_transactions(
        self,
        user_id: UUID,
        wallet_id: Optional[UUID] = None,
        transaction_type: Optional[str] = None,
        category_id: Optional[UUID] = None,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
        search: Optional[str] = None,
        sort: str = "date_desc",
        limit: int = 50,
        offset: int = 0,
    ) -> Tuple[List[Transaction], int]:
        """List transactions with filters and pagination.

        Returns:
            Tuple of (page of transactions, total matching count)

        Raises:
            ValueError: If the sort option or date range is invalid
        """
        if sort not in SORT_OPTIONS:
            raise ValueError(f"Invalid sort option: {sort}")
        if start_date and end_date and end_date < start_date:
            raise ValueError("End date must be on or after start date")

        conditions = [Transaction.user_id == user_id]
        if wallet_id:
            conditions.append(
                or_(Transaction.wallet_id == wallet_id, Transaction.transfer_to_wallet_id == wallet_id)
            )
        if transaction_type:
            conditions.append(Transaction.transaction_type == transaction_type)
        if category_id:
            conditions.append(Transaction.category_id == category_id)
        if start_date:
            conditions.append(Transaction.transaction_date >= start_date)
        if end_date:
            conditions.append(Transaction.transaction_date <= end_date)
        if search:
            pattern = f"%{search}%"
            conditions.append(
                or_(Transaction.description.ilike(pattern), Transaction.merchant_name.ilike(pattern))
            )

        count_result = await self.db.execute(
            select(func.count(Transaction.id)).where(and_(*conditions))
        )
        total = int(count_result.scalar() or 0)

        stmt = (
            select(Transaction)
            .where(and_(*conditions))
            .order_by(*SORT_OPTIONS[sort])
            .limit(limit)
            .offset(offset)
        )
        result = await self.db.execute(stmt)
        return list(result.scalars().all()), total

    async def get_recent_transactions(self, user_id: UUID, limit: int = 10) -> List[Transaction]:
        """Most recent transactions for a dashboard."""
        transactions, _ = await self.list_transactions(user_id, limit=limit)
        return transactions

    async def update_transaction(self, transaction_id: UUID, user_id: UUID, **updates) -> Transaction:
        """Update a transaction, moving wallet balances by the difference.

        Raises:
            NotFoundError: If the transaction is not found
            ValueError: If an update is invalid
        """
        transaction = await self.get_transaction(transaction_id, user_id)
        if transaction is None:
            raise NotFoundError(f"Transaction {transaction_id} not found")

        unknown = set(updates) - UPDATABLE_FIELDS
        if unknown:
            raise ValueError(f"Cannot update fields: {', '.join(sorted(unknown))}")
        cleared = sorted(field for field in REQUIRED_FIELDS if field in updates and updates[field] is None)
        if cleared:
            raise ValueError(f"Fields cannot be null: {', '.join(cleared)}")
        if "amount" in updates and updates["amount"] <= 0:
            raise ValueError("Amount must be positive")
        if "transfer_fee" in updates:
            if transaction.transaction_type != "transfer":
                raise ValueError("Only transfers can carry a fee")
            if updates["transfer_fee"] < 0:
                raise ValueError("Transfer fee cannot be negative")
        if "category_id" in updates:
            await self.validate_category(user_id, transaction.transaction_type, updates["category_id"])

        await self._apply_effects(transaction, reverse=True)
        for field, value in updates.items():
            setattr(transaction, field, value)
        await self._apply_effects(transaction)

        await self.db.flush()
        await self.db.refresh(transaction)

        logger.info("Transaction updated", transaction_id=str(transaction_id), fields=sorted(updates))
        return transaction

    async def delete_transaction(self, transaction_id: UUID, user_id: UUID) -> None:
        """Delete a transaction and undo its balance changes.

        Raises:
            NotFoundError: If the transaction is not found
        """
        transaction = await self.get_transaction(transaction_id, user_id)
        if transaction is None:
            raise NotFoundError(f"Transaction {transaction_id} not found")

        await self._apply_effects(transaction, reverse=True)
        await self.db.delete(transaction)
        await self.db.flush()

        logger.info("Transaction deleted", transaction_id=str(transaction_id), user_id=str(user_id))
