"""Recurring transaction templates and the batch processor that materializes them."""

import calendar
from dataclasses import dataclass, field
from datetime import date, datetime, timedelta
from decimal import Decimal
from typing import List, Optional, Tuple
from uuid import UUID

from sqlalchemy import and_, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from finhome.exceptions import NotFoundError
from finhome.logging_config import get_logger
from finhome.models.base import utcnow
from finhome.models.recurring import FREQUENCIES, RecurringTransaction
from finhome.models.transaction import TRANSACTION_TYPES
from finhome.services.transaction_service import TransactionService
from finhome.services.wallet_service import WalletService

logger = get_logger(__name__)

UPDATABLE_FIELDS = {
    "name",
    "amount",
    "description",
    "category_id",
    "frequency",
    "frequency_interval",
    "end_date",
    "max_occurrences",
    "next_due_date",
    "is_active",
}


def add_months(current: date, months: int) -> date:
    """Shift a date by calendar months, clamping the day to the target month's length."""
    month_index = current.month - 1 + months
    year = current.year + month_index // 12
    month = month_index % 12 + 1
    day = min(current.day, calendar.monthrange(year, month)[1])
    return date(year, month, day)


def calculate_next_due_date(current: date, frequency: str, interval: int = 1) -> date:
    """Next occurrence after ``current`` for a frequency and interval.

    Monthly and yearly steps keep the day of month where possible, so Jan 31
    monthly goes to Feb 28/29 and Feb 29 yearly goes to Feb 28.

    Raises:
        ValueError: If the frequency is unknown or the interval is not positive
    """
    if interval < 1:
        raise ValueError("Frequency interval must be at least 1")
    if frequency == "daily":
        return current + timedelta(days=interval)
    if frequency == "weekly":
        return current + timedelta(weeks=interval)
    if frequency == "monthly":
        return add_months(current, interval)
    if frequency == "yearly":
        return add_months(current, 12 * interval)
    raise ValueError(f"Invalid frequency: {frequency}")


def should_end_recurring(template: RecurringTransaction, next_due_date: date) -> bool:
    """True once the occurrence limit is reached or the next due date passes the end date."""
    if template.max_occurrences is not None and template.occurrences_created >= template.max_occurrences:
        return True
    if template.end_date is not None and next_due_date > template.end_date:
        return True
    return False


@dataclass
class ProcessedItem:
    recurring_transaction_id: UUID
    recurring_transaction_name: str
    new_transaction_id: UUID
    amount: Decimal
    transaction_type: str
    is_completed: bool


@dataclass
class ProcessingError:
    recurring_transaction_id: UUID
    recurring_transaction_name: str
    error: str


@dataclass
class ProcessingResult:
    """Outcome of one processor run."""

    processed_transactions: List[ProcessedItem] = field(default_factory=list)
    errors: List[ProcessingError] = field(default_factory=list)
    expired: List[UUID] = field(default_factory=list)
    processed_at: datetime = field(default_factory=utcnow)

    @property
    def processed_count(self) -> int:
        return len(self.processed_transactions)

    @property
    def error_count(self) -> int:
        return len(self.errors)


class RecurringService:
    """Service for recurring transaction templates."""

    def __init__(self, db: AsyncSession):
        self.db = db
        self.transactions = TransactionService(db)

    async def _validate_targets(
        self,
        user_id: UUID,
        wallet_id: UUID,
        transaction_type: str,
        category_id: Optional[UUID],
        transfer_to_wallet_id: Optional[UUID],
    ) -> None:
        wallets = WalletService(self.db)
        if await wallets.get_wallet(wallet_id, user_id, active_only=True) is None:
            raise NotFoundError(f"Wallet {wallet_id} not found")

        if transaction_type == "transfer":
            if transfer_to_wallet_id is None:
                raise ValueError("Destination wallet is required for transfers")
            if transfer_to_wallet_id == wallet_id:
                raise ValueError("Cannot transfer to the same wallet")
            if await wallets.get_wallet(transfer_to_wallet_id, user_id, active_only=True) is None:
                raise NotFoundError(f"Destination wallet {transfer_to_wallet_id} not found")
        else:
            await self.transactions.validate_category(user_id, transaction_type, category_id)

    async def create_recurring(
        self,
        user_id: UUID,
        name: str,
        wallet_id: UUID,
        transaction_type: str,
        amount: Decimal,
        frequency: str,
        start_date: date,
        frequency_interval: int = 1,
        description: Optional[str] = None,
        category_id: Optional[UUID] = None,
        transfer_to_wallet_id: Optional[UUID] = None,
        end_date: Optional[date] = None,
        max_occurrences: Optional[int] = None,
    ) -> RecurringTransaction:
        """Create a recurring template. The first occurrence is due on ``start_date``.

        Raises:
            ValueError: If the schedule or amounts are invalid
            NotFoundError: If a wallet does not belong to the user
        """
        if transaction_type not in TRANSACTION_TYPES:
            raise ValueError(f"Invalid transaction type: {transaction_type}")
        if frequency not in FREQUENCIES:
            raise ValueError(f"Invalid frequency: {frequency}")
        if not 1 <= frequency_interval <= 365:
            raise ValueError("Frequency interval must be between 1 and 365")
        if amount <= 0:
            raise ValueError("Amount must be positive")
        if end_date is not None and end_date < start_date:
            raise ValueError("End date must be on or after start date")
        if max_occurrences is not None and max_occurrences < 1:
            raise ValueError("Max occurrences must be at least 1")

        await self._validate_targets(
            user_id, wallet_id, transaction_type, category_id, transfer_to_wallet_id
        )

        template = RecurringTransaction(
            user_id=user_id,
            name=name,
            wallet_id=wallet_id,
            transaction_type=transaction_type,
            amount=amount,
            description=description,
            category_id=category_id if transaction_type != "transfer" else None,
            transfer_to_wallet_id=transfer_to_wallet_id if transaction_type == "transfer" else None,
            frequency=frequency,
            frequency_interval=frequency_interval,
            start_date=start_date,
            end_date=end_date,
            max_occurrences=max_occurrences,
            next_due_date=start_date,
        )
        self.db.add(template)
        await self.db.flush()
        await self.db.refresh(template)

        logger.info(
            "Recurring transaction created",
            recurring_id=str(template.id),
            user_id=str(user_id),
            frequency=frequency,
            interval=frequency_interval,
            next_due_date=str(start_date),
        )
        return template

    async def get_recurring(self, recurring_id: UUID, user_id: UUID) -> Optional[RecurringTransaction]:
        stmt = select(RecurringTransaction).where(
            and_(RecurringTransaction.id == recurring_id, RecurringTransaction.user_id == user_id)
        )
        result = await self.db.execute(stmt)
        return result.scalar_one_or_none()

    async def list_recurring(
        self,
        user_id: UUID,
        is_active: Optional[bool] = None,
        transaction_type: Optional[str] = None,
        limit: int = 50,
        offset: int = 0,
    ) -> Tuple[List[RecurringTransaction], int]:
        """List templates ordered by next due date."""
        conditions = [RecurringTransaction.user_id == user_id]
        if is_active is not None:
            conditions.append(RecurringTransaction.is_active.is_(is_active))
        if transaction_type:
            conditions.append(RecurringTransaction.transaction_type == transaction_type)

        count = await self.db.execute(select(func.count(RecurringTransaction.id)).where(*conditions))
        result = await self.db.execute(
            select(RecurringTransaction)
            .where(*conditions)
            .order_by(RecurringTransaction.next_due_date, RecurringTransaction.name)
            .limit(limit)
            .offset(offset)
        )
        return list(result.scalars().all()), int(count.scalar() or 0)

    async def update_recurring(self, recurring_id: UUID, user_id: UUID, **updates) -> RecurringTransaction:
        """Update a template.

        Raises:
            NotFoundError: If the template is not found
            ValueError: If an update is invalid
        """
        template = await self.get_recurring(recurring_id, user_id)
        if template is None:
            raise NotFoundError(f"Recurring transaction {recurring_id} not found")

        unknown = set(updates) - UPDATABLE_FIELDS
        if unknown:
            raise ValueError(f"Cannot update fields: {', '.join(sorted(unknown))}")
        if "frequency" in updates and updates["frequency"] not in FREQUENCIES:
            raise ValueError(f"Invalid frequency: {updates['frequency']}")
        if "frequency_interval" in updates and not 1 <= updates["frequency_interval"] <= 365:
            raise ValueError("Frequency interval must be between 1 and 365")
        if "amount" in updates and updates["amount"] <= 0:
            raise ValueError("Amount must be positive")
        if updates.get("end_date") and updates["end_date"] < template.start_date:
            raise ValueError("End date must be on or after start date")
        if "category_id" in updates:
            await self.transactions.validate_category(
                user_id, template.transaction_type, updates["category_id"]
            )

        for field_name, value in updates.items():
            setattr(template, field_name, value)

        await self.db.flush()
        await self.db.refresh(template)

        logger.info("Recurring transaction updated", recurring_id=str(recurring_id), fields=sorted(updates))
        return template

    async def delete_recurring(self, recurring_id: UUID, user_id: UUID) -> None:
        """Delete a template. Transactions it already created are kept."""
        template = await self.get_recurring(recurring_id, user_id)
        if template is None:
            raise NotFoundError(f"Recurring transaction {recurring_id} not found")
        await self.db.delete(template)
        await self.db.flush()
        logger.info("Recurring transaction deleted", recurring_id=str(recurring_id))

    async def get_due_overview(
        self, user_id: UUID, today: Optional[date] = None, upcoming_days: int = 7
    ) -> dict:
        """Active templates due now and those due within the next ``upcoming_days`` days."""
        today = today or date.today()
        horizon = today + timedelta(days=upcoming_days)

        result = await self.db.execute(
            select(RecurringTransaction)
            .where(
                RecurringTransaction.user_id == user_id,
                RecurringTransaction.is_active.is_(True),
                RecurringTransaction.next_due_date <= horizon,
            )
            .order_by(RecurringTransaction.next_due_date)
        )
        templates = list(result.scalars().all())
        due = [t for t in templates if t.next_due_date <= today]
        upcoming = [t for t in templates if t.next_due_date > today]

        return {
            "due": due,
            "upcoming": upcoming,
            "has_due_transactions": bool(due),
            "due_count": len(due),
            "upcoming_count": len(upcoming),
        }

    async def process_due(self, today: Optional[date] = None) -> ProcessingResult:
        """Materialize one transaction for every active template due on or before ``today``.

        Each template runs in its own savepoint, so a failure is recorded in the
        result and does not undo the others. Templates past their end date are
        deactivated without generating a transaction.
        """
        today = today or date.today()
        outcome = ProcessingResult()

        result = await self.db.execute(
            select(RecurringTransaction)
            .where(
                RecurringTransaction.is_active.is_(True),
                RecurringTransaction.next_due_date <= today,
            )
            .order_by(RecurringTransaction.next_due_date, RecurringTransaction.created_at)
        )
        templates = list(result.scalars().all())
        logger.info("Processing recurring transactions", due_count=len(templates), run_date=str(today))

        for template in templates:
            template_id = template.id
            template_name = template.name

            if should_end_recurring(template, template.next_due_date):
                template.is_active = False
                await self.db.flush()
                outcome.expired.append(template_id)
                logger.info("Recurring transaction expired", recurring_id=str(template_id))
                continue

            try:
                async with self.db.begin_nested():
                    transaction = await self.transactions.create_transaction(
                        user_id=template.user_id,
                        wallet_id=template.wallet_id,
                        transaction_type=template.transaction_type,
                        amount=Decimal(template.amount),
                        transaction_date=today,
                        category_id=template.category_id,
                        transfer_to_wallet_id=template.transfer_to_wallet_id,
                        description=template.description or f"Recurring: {template.name}",
                        recurring_transaction_id=template.id,
                    )

                    template.occurrences_created += 1
                    template.last_processed_at = utcnow()
                    next_due = calculate_next_due_date(
                        template.next_due_date, template.frequency, template.frequency_interval
                    )
                    completed = should_end_recurring(template, next_due)
                    if completed:
                        template.is_active = False
                    else:
                        template.next_due_date = next_due

                outcome.processed_transactions.append(
                    ProcessedItem(
                        recurring_transaction_id=template_id,
                        recurring_transaction_name=template_name,
                        new_transaction_id=transaction.id,
                        amount=Decimal(transaction.amount),
                        transaction_type=transaction.transaction_type,
                        is_completed=completed,
                    )
                )
            except Exception as e:
                logger.error(
                    "Recurring transaction processing failed",
                    recurring_id=str(template_id),
                    error=str(e),
                )
                outcome.errors.append(
                    ProcessingError(
                        recurring_transaction_id=template_id,
                        recurring_transaction_name=template_name,
                        error=str(e),
                    )
                )

        await self.db.flush()
        logger.info(
            "Recurring transactions processed",
            processed_count=outcome.processed_count,
            error_count=outcome.error_count,
            expired_count=len(outcome.expired),
        )
        return outcome
