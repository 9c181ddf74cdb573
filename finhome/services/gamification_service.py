"""Gamification service: activity log, streaks, achievement unlocks and levels."""

from datetime import date, timedelta
from typing import Any, Dict, List, Optional
from uuid import UUID

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from finhome.logging_config import get_logger
from finhome.models.activity import UserAchievement, UserActivity
from finhome.models.budget import Budget
from finhome.models.goal import Goal
from finhome.models.plan import FinancialPlan
from finhome.models.transaction import Transaction
from finhome.models.user import User
from finhome.services.achievement_engine import (
    ACHIEVEMENTS,
    Achievement,
    check_achievements,
    get_achievement_progress,
    get_level,
)

logger = get_logger(__name__)


class GamificationService:
    """Derives progress counters from the database and awards achievements."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def record_activity(
        self,
        user_id: UUID,
        activity_type: str,
        action: str,
        resource_type: Optional[str] = None,
        resource_id: Optional[UUID] = None,
        details: Optional[Dict[str, Any]] = None,
        activity_date: Optional[date] = None,
    ) -> UserActivity:
        """Log a user action and update the user's daily streak.

        Same day keeps the streak, the next day extends it, a gap resets it to 1.
        """
        activity = UserActivity(
            user_id=user_id,
            activity_type=activity_type,
            action=action,
            resource_type=resource_type,
            resource_id=resource_id,
            details=details or {},
        )
        self.db.add(activity)

        user = await self.db.get(User, user_id)
        if user is not None:
            today = activity_date or date.today()
            last = user.last_activity_date
            if last != today:
                if last is not None and last == today - timedelta(days=1):
                    user.current_streak += 1
                else:
                    user.current_streak = 1
                user.longest_streak = max(user.longest_streak, user.current_streak)
                user.last_activity_date = today

        await self.db.flush()
        return activity

    async def _count(self, stmt) -> int:
        result = await self.db.execute(stmt)
        return int(result.scalar() or 0)

    async def get_progress(self, user: User) -> Dict[str, Optional[float]]:
        """Counters that achievements are evaluated against."""
        plans_result = await self.db.execute(
            select(FinancialPlan.status, FinancialPlan.cached_calculations).where(
                FinancialPlan.user_id == user.id
            )
        )
        plans = plans_result.all()

        rois = []
        payoff_years = []
        for _, calculations in plans:
            if not calculations:
                continue
            if calculations.get("roi") is not None:
                rois.append(float(calculations["roi"]))
            if calculations.get("payoff_months"):
                payoff_years.append(calculations["payoff_months"] / 12)

        return {
            "plans_created": len(plans),
            "plans_completed": sum(1 for status, _ in plans if status == "completed"),
            "best_roi": max(rois) if rois else None,
            "fastest_payoff_years": min(payoff_years) if payoff_years else None,
            "total_savings_optimized": float(user.total_savings_optimized or 0),
            "exports_generated": user.exports_generated,
            "streak_days": max(user.current_streak, user.longest_streak),
            "transactions_created": await self._count(
                select(func.count(Transaction.id)).where(Transaction.user_id == user.id)
            ),
            "budgets_created": await self._count(
                select(func.count(Budget.id)).where(Budget.user_id == user.id)
            ),
            "goals_completed": await self._count(
                select(func.count(Goal.id)).where(Goal.user_id == user.id, Goal.status == "completed")
            ),
        }

    async def get_unlocked(self, user_id: UUID) -> Dict[str, UserAchievement]:
        result = await self.db.execute(
            select(UserAchievement).where(UserAchievement.user_id == user_id)
        )
        return {row.achievement_id: row for row in result.scalars().all()}

    async def check_and_award(self, user: User) -> List[Achievement]:
        """Unlock every newly satisfied achievement and add its points to the user.

        Returns:
            Achievements unlocked by this call
        """
        progress = await self.get_progress(user)
        unlocked = await self.get_unlocked(user.id)
        new_achievements = check_achievements(progress, unlocked.keys())

        if not new_achievements:
            return []

        for achievement in new_achievements:
            self.db.add(
                UserAchievement(
                    user_id=user.id, achievement_id=achievement.id, points=achievement.points
                )
            )
            user.experience_points += achievement.points

        previous_level = user.level
        user.level = get_level(user.experience_points).level
        await self.db.flush()

        logger.info(
            "Achievements unlocked",
            user_id=str(user.id),
            achievements=[a.id for a in new_achievements],
            points=user.experience_points,
            level=user.level,
            leveled_up=user.level > previous_level,
        )
        return new_achievements

    async def get_overview(self, user: User) -> Dict[str, Any]:
        """Level info and the achievement catalogue annotated with the user's progress."""
        progress = await self.get_progress(user)
        unlocked = await self.get_unlocked(user.id)

        achievements = []
        for achievement in ACHIEVEMENTS:
            row = unlocked.get(achievement.id)
            achievements.append(
                {
                    "id": achievement.id,
                    "name": achievement.name,
                    "description": achievement.description,
                    "category": achievement.category,
                    "icon": achievement.icon,
                    "points": achievement.points,
                    "unlocked": row is not None,
                    "unlocked_at": row.unlocked_at if row else None,
                    "progress_percent": 100.0 if row else get_achievement_progress(achievement, progress),
                }
            )

        return {
            "level": get_level(user.experience_points),
            "current_streak": user.current_streak,
            "longest_streak": user.longest_streak,
            "unlocked_count": len(unlocked),
            "total_count": len(ACHIEVEMENTS),
            "achievements": achievements,
        }
