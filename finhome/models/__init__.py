"""Database models package."""

from finhome.models.base import Base
from finhome.models.user import User
from finhome.models.wallet import Wallet
from finhome.models.category import Category
from finhome.models.recurring import RecurringTransaction
from finhome.models.transaction import Transaction
from finhome.models.budget import Budget
from finhome.models.goal import Goal, GoalContribution
from finhome.models.plan import FinancialPlan, PlanMilestone, PlanStatusHistory
from finhome.models.subscription import Subscription
from finhome.models.activity import UserAchievement, UserActivity

__all__ = [
    "Base",
    "User",
    "Wallet",
    "Category",
    "RecurringTransaction",
    "Transaction",
    "Budget",
    "Goal",
    "GoalContribution",
    "FinancialPlan",
    "PlanMilestone",
    "PlanStatusHistory",
    "Subscription",
    "UserAchievement",
    "UserActivity",
]
