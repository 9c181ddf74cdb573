"""Subscription tiers, limits and usage."""

from dataclasses import asdict, dataclass
from decimal import Decimal
from typing import Dict, Optional
from uuid import UUID

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from finhome.exceptions import LimitExceededError, NotFoundError
from finhome.financial.currency import format_currency
from finhome.logging_config import get_logger
from finhome.models.plan import FinancialPlan
from finhome.models.subscription import Subscription
from finhome.models.user import User
from finhome.models.wallet import Wallet

logger = get_logger(__name__)


@dataclass(frozen=True)
class TierLimits:
    """Per-tier quotas. None means unlimited."""

    max_wallets: Optional[int]
    max_active_plans: Optional[int]
    max_draft_plans: Optional[int]
    max_scenarios: Optional[int]


@dataclass(frozen=True)
class SubscriptionTier:
    key: str
    name: str
    monthly_price: Decimal
    yearly_price: Decimal
    limits: TierLimits
    features: tuple

    @property
    def yearly_savings_percent(self) -> int:
        """Discount of the yearly price compared to paying monthly for a year."""
        full_year = self.monthly_price * 12
        if full_year <= 0:
            return 0
        return int(round((full_year - self.yearly_price) / full_year * 100))


SUBSCRIPTION_TIERS: Dict[str, SubscriptionTier] = {
    "free": SubscriptionTier(
        key="free",
        name="Free",
        monthly_price=Decimal("0"),
        yearly_price=Decimal("0"),
        limits=TierLimits(max_wallets=3, max_active_plans=2, max_draft_plans=5, max_scenarios=1),
        features=("Expense tracking", "Basic budgets", "Loan calculator"),
    ),
    "premium": SubscriptionTier(
        key="premium",
        name="Premium",
        monthly_price=Decimal("299000"),
        yearly_price=Decimal("2990000"),
        limits=TierLimits(max_wallets=10, max_active_plans=None, max_draft_plans=None, max_scenarios=None),
        features=(
            "Unlimited financial plans",
            "Scenario comparison",
            "Stress testing",
            "Recurring transactions",
        ),
    ),
    "professional": SubscriptionTier(
        key="professional",
        name="Professional",
        monthly_price=Decimal("599000"),
        yearly_price=Decimal("5990000"),
        limits=TierLimits(max_wallets=50, max_active_plans=None, max_draft_plans=None, max_scenarios=None),
        features=(
            "Everything in Premium",
            "Priority support",
            "Advanced investment analysis",
        ),
    ),
}


def get_tier(tier: str) -> SubscriptionTier:
    """Look up a tier, falling back to free for unknown values."""
    return SUBSCRIPTION_TIERS.get(tier, SUBSCRIPTION_TIERS["free"])


def tier_catalogue(currency: str = "VND") -> list[dict]:
    """Tier list with display prices."""
    return [
        {
            "key": tier.key,
            "name": tier.name,
            "monthly_price": tier.monthly_price,
            "yearly_price": tier.yearly_price,
            "monthly_price_display": format_currency(tier.monthly_price, currency),
            "yearly_price_display": format_currency(tier.yearly_price, currency),
            "yearly_savings_percent": tier.yearly_savings_percent,
            "limits": asdict(tier.limits),
            "features": list(tier.features),
        }
        for tier in SUBSCRIPTION_TIERS.values()
    ]


class SubscriptionService:
    """Service for reading subscription state and enforcing tier limits."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def get_subscription(self, user_id: UUID) -> Optional[Subscription]:
        result = await self.db.execute(select(Subscription).where(Subscription.user_id == user_id))
        return result.scalar_one_or_none()

    async def _count(self, stmt) -> int:
        result = await self.db.execute(stmt)
        return int(result.scalar() or 0)

    async def count_active_wallets(self, user_id: UUID) -> int:
        return await self._count(
            select(func.count(Wallet.id)).where(Wallet.user_id == user_id, Wallet.is_active.is_(True))
        )

    async def count_plans(self, user_id: UUID, status: str) -> int:
        return await self._count(
            select(func.count(FinancialPlan.id)).where(
                FinancialPlan.user_id == user_id, FinancialPlan.status == status
            )
        )

    async def check_wallet_limit(self, user: User) -> None:
        """Raise LimitExceededError when the user cannot create another wallet."""
        limit = get_tier(user.subscription_tier).limits.max_wallets
        if limit is None:
            return
        current = await self.count_active_wallets(user.id)
        if current >= limit:
            logger.info("Wallet limit reached", user_id=str(user.id), limit=limit, current=current)
            raise LimitExceededError(
                f"Wallet limit reached for the {user.subscription_tier} plan", limit, current
            )

    async def check_plan_limit(self, user: User, status: str) -> None:
        """Raise LimitExceededError when another plan in ``status`` would exceed the tier quota."""
        limits = get_tier(user.subscription_tier).limits
        limit = {"draft": limits.max_draft_plans, "active": limits.max_active_plans}.get(status)
        if limit is None:
            return
        current = await self.count_plans(user.id, status)
        if current >= limit:
            logger.info(
                "Plan limit reached", user_id=str(user.id), status=status, limit=limit, current=current
            )
            raise LimitExceededError(
                f"Limit of {limit} {status} plans reached for the {user.subscription_tier} plan",
                limit,
                current,
            )

    def check_scenario_limit(self, user: User, requested: int) -> None:
        """Raise LimitExceededError when a comparison asks for more scenarios than the tier allows."""
        limit = get_tier(user.subscription_tier).limits.max_scenarios
        if limit is None or requested <= limit:
            return
        logger.info("Scenario limit reached", user_id=str(user.id), limit=limit, requested=requested)
        raise LimitExceededError(
            f"The {user.subscription_tier} plan allows {limit} scenario(s) per comparison",
            limit,
            requested,
        )

    async def get_usage(self, user: User) -> dict:
        """Subscription state plus current usage against the tier's limits."""
        subscription = await self.get_subscription(user.id)
        tier = get_tier(user.subscription_tier)
        return {
            "tier": tier.key,
            "tier_name": tier.name,
            "status": subscription.status if subscription else "active",
            "billing_cycle": subscription.billing_cycle if subscription else None,
            "current_period_end": subscription.current_period_end if subscription else None,
            "cancel_at_period_end": subscription.cancel_at_period_end if subscription else False,
            "limits": asdict(tier.limits),
            "usage": {
                "wallets": await self.count_active_wallets(user.id),
                "active_plans": await self.count_plans(user.id, "active"),
                "draft_plans": await self.count_plans(user.id, "draft"),
            },
        }

    async def change_tier(self, user_id: UUID, tier: str, status: str = "active") -> Subscription:
        """Move a user to another tier, creating the subscription row if missing.

        Raises:
            ValueError: If the tier is unknown
            NotFoundError: If the user does not exist
        """
        if tier not in SUBSCRIPTION_TIERS:
            raise ValueError(f"Unknown subscription tier: {tier}")

        user = await self.db.get(User, user_id)
        if user is None:
            raise NotFoundError(f"User {user_id} not found")

        subscription = await self.get_subscription(user_id)
        if subscription is None:
            subscription = Subscription(user_id=user_id)
            self.db.add(subscription)

        previous = user.subscription_tier
        subscription.tier = tier
        subscription.status = status
        user.subscription_tier = tier

        await self.db.flush()
        await self.db.refresh(subscription)

        logger.info(
            "Subscription tier changed", user_id=str(user_id), previous_tier=previous, tier=tier
        )
        return subscription
