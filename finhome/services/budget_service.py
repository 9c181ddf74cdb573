"""Budget service for creating budgets and tracking spending against them."""

from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal
from typing import Dict, List, Mapping, Optional
from uuid import UUID

from sqlalchemy import and_, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from finhome.exceptions import NotFoundError
from finhome.financial.budget_methods import (
    calculate_budget_allocation,
    calculate_category_budgets,
    default_category_mapping,
)
from finhome.logging_config import get_logger
from finhome.models.budget import Budget
from finhome.models.transaction import Transaction
from finhome.models.wallet import Wallet
from finhome.services.category_service import CategoryService
from finhome.services.gamification_service import GamificationService

logger = get_logger(__name__)

BUDGET_PERIODS = ("weekly", "monthly", "yearly")
UPDATABLE_FIELDS = {
    "name",
    "description",
    "budget_period",
    "start_date",
    "end_date",
    "total_budget",
    "category_budgets",
    "alert_threshold_percentage",
    "is_active",
}


@dataclass
class CategoryProgress:
    category_id: str
    allocated: Decimal
    spent: Decimal
    remaining: Decimal
    percent_used: float
    status: str


@dataclass
class BudgetProgress:
    """Budget progress information."""

    budget: Budget
    current_spent: Decimal
    remaining_amount: Decimal
    progress_percentage: float
    status: str
    categories: List[CategoryProgress] = field(default_factory=list)


def spending_status(percent_used: float, alert_threshold: int) -> str:
    """on_track, warning (at or above the alert threshold) or exceeded (100% or more)."""
    if percent_used >= 100:
        return "exceeded"
    if percent_used >= alert_threshold:
        return "warning"
    return "on_track"


def _percent(spent: Decimal, allocated: Decimal) -> float:
    if allocated <= 0:
        return 0.0
    return round(float(spent / allocated * 100), 2)


class BudgetService:
    """Service for managing budgets."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def _normalize_category_budgets(
        self, user_id: UUID, total_budget: Decimal, category_budgets: Optional[Mapping]
    ) -> Dict[str, str]:
        if not category_budgets:
            return {}

        categories = CategoryService(self.db)
        normalized: Dict[str, str] = {}
        allocated = Decimal(0)
        for category_id, amount in category_budgets.items():
            amount = Decimal(str(amount))
            if amount < 0:
                raise ValueError("Category budget amounts cannot be negative")
            category = await categories.get_category(UUID(str(category_id)), user_id)
            if category is None or category.category_type != "expense":
                raise ValueError(f"Invalid expense category: {category_id}")
            normalized[str(category_id)] = str(amount)
            allocated += amount

        if allocated > total_budget:
            raise ValueError(
                f"Sum of category budgets ({allocated}) exceeds total budget ({total_budget})"
            )
        return normalized

    async def create_budget(
        self,
        user_id: UUID,
        name: str,
        total_budget: Decimal,
        start_date: date,
        end_date: date,
        budget_period: str = "monthly",
        budget_method: str = "manual",
        description: Optional[str] = None,
        category_budgets: Optional[Mapping] = None,
        alert_threshold_percentage: int = 80,
    ) -> Budget:
        """Create a budget.

        Raises:
            ValueError: If the dates are inverted, the total is not positive or the
                category allocations exceed the total
        """
        if total_budget <= 0:
            raise ValueError("Total budget must be positive")
        if end_date < start_date:
            raise ValueError("End date must be on or after start date")
        if budget_period not in BUDGET_PERIODS:
            raise ValueError(f"Invalid budget period: {budget_period}")

        normalized = await self._normalize_category_budgets(user_id, total_budget, category_budgets)

        budget = Budget(
            user_id=user_id,
            name=name,
            description=description,
            budget_period=budget_period,
            budget_method=budget_method,
            start_date=start_date,
            end_date=end_date,
            total_budget=total_budget,
            category_budgets=normalized,
            alert_threshold_percentage=alert_threshold_percentage,
        )
        self.db.add(budget)
        await self.db.flush()
        await self.db.refresh(budget)

        await GamificationService(self.db).record_activity(
            user_id, "budget", "created", resource_type="budget", resource_id=budget.id
        )

        logger.info(
            "Budget created",
            budget_id=str(budget.id),
            user_id=str(user_id),
            total_budget=str(total_budget),
            method=budget_method,
        )
        return budget

    async def create_budget_from_method(
        self,
        user_id: UUID,
        name: str,
        method: str,
        income: Decimal,
        start_date: date,
        end_date: date,
        budget_period: str = "monthly",
        category_mapping: Optional[Mapping[str, str]] = None,
    ) -> tuple[Budget, Dict[str, Decimal]]:
        """Create a budget whose allocations follow a template such as 50/30/20.

        Without an explicit mapping, each expense category is assigned to a group by keyword.

        Returns:
            Tuple of (budget, allocation per group)
        """
        allocation = calculate_budget_allocation(method, income)

        if category_mapping is None:
            categories = await CategoryService(self.db).list_categories(user_id, "expense")
            category_mapping = default_category_mapping(
                method,
                [{"id": c.id, "category_key": c.category_key, "name": c.name} for c in categories],
            )

        category_budgets = calculate_category_budgets(method, income, category_mapping)
        budget = await self.create_budget(
            user_id=user_id,
            name=name,
            total_budget=income,
            start_date=start_date,
            end_date=end_date,
            budget_period=budget_period,
            budget_method=method,
            category_budgets=category_budgets,
        )
        return budget, allocation

    async def get_budget(self, budget_id: UUID, user_id: UUID) -> Optional[Budget]:
        stmt = select(Budget).where(and_(Budget.id == budget_id, Budget.user_id == user_id))
        result = await self.db.execute(stmt)
        return result.scalar_one_or_none()

    async def list_budgets(
        self, user_id: UUID, active_only: bool = False, period: Optional[str] = None
    ) -> List[Budget]:
        """List budgets, newest period first."""
        stmt = select(Budget).where(Budget.user_id == user_id)
        if active_only:
            stmt = stmt.where(Budget.is_active.is_(True))
        if period:
            stmt = stmt.where(Budget.budget_period == period)
        stmt = stmt.order_by(Budget.start_date.desc(), Budget.created_at.desc())
        result = await self.db.execute(stmt)
        return list(result.scalars().all())

    async def update_budget(self, budget_id: UUID, user_id: UUID, **updates) -> Budget:
        """Update a budget, re-validating dates and allocations.

        Raises:
            NotFoundError: If the budget is not found
            ValueError: If the result would be invalid
        """
        budget = await self.get_budget(budget_id, user_id)
        if budget is None:
            raise NotFoundError(f"Budget {budget_id} not found")

        unknown = set(updates) - UPDATABLE_FIELDS
        if unknown:
            raise ValueError(f"Cannot update fields: {', '.join(sorted(unknown))}")

        total = updates.get("total_budget", budget.total_budget)
        start = updates.get("start_date", budget.start_date)
        end = updates.get("end_date", budget.end_date)
        if total <= 0:
            raise ValueError("Total budget must be positive")
        if end < start:
            raise ValueError("End date must be on or after start date")
        if updates.get("budget_period") and updates["budget_period"] not in BUDGET_PERIODS:
            raise ValueError(f"Invalid budget period: {updates['budget_period']}")

        if "category_budgets" in updates or "total_budget" in updates:
            updates["category_budgets"] = await self._normalize_category_budgets(
                user_id, Decimal(total), updates.get("category_budgets", budget.category_budgets)
            )

        for field_name, value in updates.items():
            setattr(budget, field_name, value)

        await self.db.flush()
        await self.db.refresh(budget)

        logger.info("Budget updated", budget_id=str(budget_id), fields=sorted(updates))
        return budget

    async def delete_budget(self, budget_id: UUID, user_id: UUID) -> None:
        budget = await self.get_budget(budget_id, user_id)
        if budget is None:
            raise NotFoundError(f"Budget {budget_id} not found")
        await self.db.delete(budget)
        await self.db.flush()
        logger.info("Budget deleted", budget_id=str(budget_id), user_id=str(user_id))

    async def _spending_by_category(self, budget: Budget) -> Dict[Optional[str], Decimal]:
        stmt = (
            select(Transaction.category_id, func.sum(Transaction.amount))
            .join(Wallet, Wallet.id == Transaction.wallet_id)
            .where(
                Transaction.user_id == budget.user_id,
                Transaction.transaction_type == "expense",
                Transaction.transaction_date >= budget.start_date,
                Transaction.transaction_date <= budget.end_date,
                Wallet.include_in_budget.is_(True),
            )
            .group_by(Transaction.category_id)
        )
        result = await self.db.execute(stmt)
        return {
            (str(category_id) if category_id else None): Decimal(str(total or 0))
            for category_id, total in result.all()
        }

    async def get_budget_progress(self, budget: Budget) -> BudgetProgress:
        """Spending against a budget, overall and per allocated category."""
        spending = await self._spending_by_category(budget)
        total_budget = Decimal(budget.total_budget)
        spent = sum(spending.values(), Decimal(0))
        percent = _percent(spent, total_budget)
        threshold = budget.alert_threshold_percentage

        categories = []
        for category_id, allocated in (budget.category_budgets or {}).items():
            allocated = Decimal(str(allocated))
            category_spent = spending.get(category_id, Decimal(0))
            category_percent = _percent(category_spent, allocated)
            categories.append(
                CategoryProgress(
                    category_id=category_id,
                    allocated=allocated,
                    spent=category_spent,
                    remaining=allocated - category_spent,
                    percent_used=category_percent,
                    status=spending_status(category_percent, threshold),
                )
            )

        return BudgetProgress(
            budget=budget,
            current_spent=spent,
            remaining_amount=total_budget - spent,
            progress_percentage=percent,
            status=spending_status(percent, threshold),
            categories=categories,
        )

    async def get_alerts(self, user_id: UUID, today: Optional[date] = None) -> List[dict]:
        """Warnings for active budgets covering today that crossed their alert threshold."""
        today = today or date.today()
        stmt = select(Budget).where(
            Budget.user_id == user_id,
            Budget.is_active.is_(True),
            Budget.start_date <= today,
            Budget.end_date >= today,
        )
        result = await self.db.execute(stmt)

        alerts = []
        for budget in result.scalars().all():
            progress = await self.get_budget_progress(budget)
            if progress.status != "on_track":
                alerts.append(
                    {
                        "budget_id": budget.id,
                        "budget_name": budget.name,
                        "category_id": None,
                        "status": progress.status,
                        "percent_used": progress.progress_percentage,
                        "message": f"{progress.progress_percentage}% of budget '{budget.name}' used",
                    }
                )
            for category in progress.categories:
                if category.status != "on_track":
                    alerts.append(
                        {
                            "budget_id": budget.id,
                            "budget_name": budget.name,
                            "category_id": category.category_id,
                            "status": category.status,
                            "percent_used": category.percent_used,
                            "message": f"{category.percent_used}% of category allocation used",
                        }
                    )
        return alerts
