"""Goal service for managing savings goals and tracking progress."""

from dataclasses import dataclass
from datetime import date
from decimal import ROUND_HALF_UP, Decimal
from typing import List, Optional
from uuid import UUID

from sqlalchemy import and_, select
from sqlalchemy.ext.asyncio import AsyncSession

from finhome.exceptions import NotFoundError
from finhome.logging_config import get_logger
from finhome.models.base import utcnow
from finhome.models.goal import GOAL_STATUSES, GOAL_TYPES, Goal, GoalContribution
from finhome.models.user import User
from finhome.services.gamification_service import GamificationService
from finhome.services.wallet_service import WalletService

logger = get_logger(__name__)

UPDATABLE_FIELDS = {
    "name",
    "description",
    "goal_type",
    "target_amount",
    "monthly_target",
    "deadline",
    "status",
}


@dataclass
class GoalMetrics:
    """Derived progress figures for a goal."""

    progress_percent: float
    remaining_amount: Decimal
    months_remaining: Optional[int]
    required_monthly_savings: Optional[Decimal]
    is_on_track: bool


def months_between(start: date, end: date) -> int:
    """Whole calendar months from ``start`` to ``end``, never negative."""
    months = (end.year - start.year) * 12 + (end.month - start.month)
    if end.day < start.day:
        months -= 1
    return max(0, months)


def calculate_goal_metrics(goal: Goal, today: Optional[date] = None) -> GoalMetrics:
    """Progress, months left, required monthly saving and whether the goal is on track."""
    today = today or date.today()
    target = Decimal(goal.target_amount)
    current = Decimal(goal.current_amount)
    remaining = max(Decimal(0), target - current)
    progress = round(min(100.0, float(current / target * 100)), 2) if target > 0 else 0.0

    if goal.status == "completed" or remaining == 0:
        return GoalMetrics(progress, Decimal(0), 0 if goal.deadline else None, Decimal(0), True)

    if goal.deadline is None:
        return GoalMetrics(progress, remaining, None, None, True)

    months_left = months_between(today, goal.deadline)
    if months_left > 0:
        required = (remaining / months_left).quantize(Decimal("0.01"), rounding=ROUND_HALF_UP)
    else:
        required = remaining

    if today > goal.deadline:
        on_track = False
    else:
        total_days = (goal.deadline - goal.start_date).days
        elapsed_days = (today - goal.start_date).days
        expected = 100.0 * elapsed_days / total_days if total_days > 0 else 100.0
        on_track = progress >= expected
        if not on_track and goal.monthly_target is not None:
            on_track = Decimal(goal.monthly_target) >= required

    return GoalMetrics(progress, remaining, months_left, required, on_track)


class GoalService:
    """Service for managing savings goals and contributions."""

    def __init__(self, db: AsyncSession):
        """Initialize goal service.

        Args:
            db: Database session
        """
        self.db = db

    async def create_goal(
        self,
        user_id: UUID,
        name: str,
        target_amount: Decimal,
        goal_type: str = "general_savings",
        description: Optional[str] = None,
        monthly_target: Optional[Decimal] = None,
        deadline: Optional[date] = None,
        start_date: Optional[date] = None,
        initial_amount: Decimal = Decimal(0),
    ) -> Goal:
        """Create a new savings goal.

        Raises:
            ValueError: If amounts are invalid or the deadline precedes the start date
        """
        if target_amount <= 0:
            raise ValueError("Target amount must be positive")
        if initial_amount < 0:
            raise ValueError("Initial amount cannot be negative")
        if goal_type not in GOAL_TYPES:
            raise ValueError(f"Invalid goal type: {goal_type}")

        start_date = start_date or date.today()
        if deadline is not None and deadline < start_date:
            raise ValueError("Deadline must be on or after the start date")

        goal = Goal(
            user_id=user_id,
            name=name,
            description=description,
            goal_type=goal_type,
            target_amount=target_amount,
            current_amount=initial_amount,
            monthly_target=monthly_target,
            start_date=start_date,
            deadline=deadline,
            status="active",
        )
        if initial_amount >= target_amount:
            goal.status = "completed"
            goal.completed_at = utcnow()

        self.db.add(goal)
        await self.db.flush()
        await self.db.refresh(goal)

        await GamificationService(self.db).record_activity(
            user_id, "goal", "created", resource_type="goal", resource_id=goal.id
        )

        logger.info(
            "Goal created",
            goal_id=str(goal.id),
            user_id=str(user_id),
            goal_type=goal_type,
            target_amount=str(target_amount),
            deadline=str(deadline) if deadline else None,
        )
        return goal

    async def get_goal(self, goal_id: UUID, user_id: UUID) -> Optional[Goal]:
        """Get a goal by ID.

        Returns:
            Goal if found and belongs to user, None otherwise
        """
        stmt = select(Goal).where(and_(Goal.id == goal_id, Goal.user_id == user_id))
        result = await self.db.execute(stmt)
        return result.scalar_one_or_none()

    async def list_goals(
        self, user_id: UUID, status: Optional[str] = None, goal_type: Optional[str] = None
    ) -> List[Goal]:
        """List goals for a user, soonest deadline first."""
        stmt = select(Goal).where(Goal.user_id == user_id)
        if status:
            stmt = stmt.where(Goal.status == status)
        if goal_type:
            stmt = stmt.where(Goal.goal_type == goal_type)
        stmt = stmt.order_by(Goal.deadline.is_(None), Goal.deadline, Goal.created_at.desc())
        result = await self.db.execute(stmt)
        return list(result.scalars().all())

    async def update_goal(self, goal_id: UUID, user_id: UUID, **updates) -> Goal:
        """Update goal fields.

        Raises:
            NotFoundError: If the goal is not found
            ValueError: If an update is invalid
        """
        goal = await self.get_goal(goal_id, user_id)
        if goal is None:
            raise NotFoundError(f"Goal {goal_id} not found")

        unknown = set(updates) - UPDATABLE_FIELDS
        if unknown:
            raise ValueError(f"Cannot update fields: {', '.join(sorted(unknown))}")
        if "status" in updates and updates["status"] not in GOAL_STATUSES:
            raise ValueError(f"Invalid goal status: {updates['status']}")
        if "goal_type" in updates and updates["goal_type"] not in GOAL_TYPES:
            raise ValueError(f"Invalid goal type: {updates['goal_type']}")
        if "target_amount" in updates and updates["target_amount"] <= 0:
            raise ValueError("Target amount must be positive")
        if updates.get("deadline") and updates["deadline"] < goal.start_date:
            raise ValueError("Deadline must be on or after the start date")

        previous_status = goal.status
        for field, value in updates.items():
            setattr(goal, field, value)

        if goal.status == "completed" and previous_status != "completed":
            goal.completed_at = utcnow()
        elif goal.status != "completed":
            goal.completed_at = None

        await self.db.flush()
        await self.db.refresh(goal)

        logger.info("Goal updated", goal_id=str(goal_id), fields=sorted(updates))
        return goal

    async def delete_goal(self, goal_id: UUID, user_id: UUID) -> None:
        goal = await self.get_goal(goal_id, user_id)
        if goal is None:
            raise NotFoundError(f"Goal {goal_id} not found")
        await self.db.delete(goal)
        await self.db.flush()
        logger.info("Goal deleted", goal_id=str(goal_id), user_id=str(user_id))

    async def add_contribution(
        self,
        goal_id: UUID,
        user_id: UUID,
        amount: Decimal,
        wallet_id: Optional[UUID] = None,
        description: Optional[str] = None,
        contribution_date: Optional[date] = None,
    ) -> tuple[Goal, GoalContribution]:
        """Move money towards a goal, debiting the wallet when one is given.

        The goal is completed once the current amount reaches the target.

        Raises:
            NotFoundError: If the goal or wallet is not found
            ValueError: If the goal is not active, the amount is not positive or the
                wallet balance is insufficient
        """
        if amount <= 0:
            raise ValueError("Contribution amount must be positive")

        goal = await self.get_goal(goal_id, user_id)
        if goal is None:
            raise NotFoundError(f"Goal {goal_id} not found")
        if goal.status != "active":
            raise ValueError(f"Cannot contribute to a {goal.status} goal")

        if wallet_id is not None:
            wallets = WalletService(self.db)
            wallet = await wallets.get_wallet(wallet_id, user_id, active_only=True)
            if wallet is None:
                raise NotFoundError(f"Wallet {wallet_id} not found")
            if Decimal(wallet.balance) < amount:
                raise ValueError("Insufficient wallet balance")
            await wallets.adjust_balance(wallet, -amount)

        contribution = GoalContribution(
            goal_id=goal.id,
            wallet_id=wallet_id,
            amount=amount,
            description=description,
            contribution_date=contribution_date or date.today(),
        )
        self.db.add(contribution)

        goal.current_amount = Decimal(goal.current_amount) + amount
        completed = goal.current_amount >= Decimal(goal.target_amount)
        if completed:
            goal.status = "completed"
            goal.completed_at = utcnow()

        await self.db.flush()
        await self.db.refresh(goal)
        await self.db.refresh(contribution)

        gamification = GamificationService(self.db)
        await gamification.record_activity(
            user_id,
            "goal",
            "contribution",
            resource_type="goal",
            resource_id=goal.id,
            details={"amount": str(amount)},
        )
        if completed:
            user = await self.db.get(User, user_id)
            if user is not None:
                await gamification.check_and_award(user)

        logger.info(
            "Goal contribution added",
            goal_id=str(goal_id),
            amount=str(amount),
            current_amount=str(goal.current_amount),
            completed=completed,
        )
        return goal, contribution

    async def list_contributions(self, goal_id: UUID, user_id: UUID) -> List[GoalContribution]:
        goal = await self.get_goal(goal_id, user_id)
        if goal is None:
            raise NotFoundError(f"Goal {goal_id} not found")
        result = await self.db.execute(
            select(GoalContribution)
            .where(GoalContribution.goal_id == goal_id)
            .order_by(GoalContribution.contribution_date.desc(), GoalContribution.created_at.desc())
        )
        return list(result.scalars().all())
