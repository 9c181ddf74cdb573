"""Back-office operations: user management and system status."""

import time
from typing import List, Optional, Tuple
from uuid import UUID

from sqlalchemy import func, select, text
from sqlalchemy.ext.asyncio import AsyncSession

from finhome.cache import cache_manager
from finhome.exceptions import NotFoundError
from finhome.logging_config import get_logger
from finhome.models.plan import FinancialPlan
from finhome.models.recurring import RecurringTransaction
from finhome.models.transaction import Transaction
from finhome.models.user import User
from finhome.services.subscription_service import SubscriptionService

logger = get_logger(__name__)


class AdminService:
    """Service behind the admin endpoints."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def list_users(
        self, search: Optional[str] = None, limit: int = 50, offset: int = 0
    ) -> Tuple[List[User], int]:
        """Users ordered by sign-up date, optionally filtered by email or name."""
        conditions = []
        if search:
            pattern = f"%{search.lower()}%"
            conditions.append(
                func.lower(User.email).like(pattern) | func.lower(User.full_name).like(pattern)
            )

        count = await self.db.execute(select(func.count(User.id)).where(*conditions))
        result = await self.db.execute(
            select(User).where(*conditions).order_by(User.created_at.desc()).limit(limit).offset(offset)
        )
        return list(result.scalars().all()), int(count.scalar() or 0)

    async def update_user(
        self,
        user_id: UUID,
        acting_admin_id: UUID,
        subscription_tier: Optional[str] = None,
        is_active: Optional[bool] = None,
        is_admin: Optional[bool] = None,
    ) -> User:
        """Change a user's tier, activation or admin flag.

        Raises:
            NotFoundError: If the user does not exist
            ValueError: If the tier is unknown or an admin tries to lock themselves out
        """
        user = await self.db.get(User, user_id)
        if user is None:
            raise NotFoundError(f"User {user_id} not found")

        if user_id == acting_admin_id and (is_active is False or is_admin is False):
            raise ValueError("Admins cannot deactivate or demote their own account")

        if subscription_tier is not None and subscription_tier != user.subscription_tier:
            await SubscriptionService(self.db).change_tier(user_id, subscription_tier)
        if is_active is not None:
            user.is_active = is_active
        if is_admin is not None:
            user.is_admin = is_admin

        await self.db.flush()
        await self.db.refresh(user)

        logger.info(
            "User updated by admin",
            user_id=str(user_id),
            admin_id=str(acting_admin_id),
            tier=user.subscription_tier,
            is_active=user.is_active,
            is_admin=user.is_admin,
        )
        return user

    async def _count(self, stmt) -> int:
        result = await self.db.execute(stmt)
        return int(result.scalar() or 0)

    async def _database_health(self) -> dict:
        start = time.perf_counter()
        try:
            await self.db.execute(text("SELECT 1"))
        except Exception as e:
            logger.error("Database health check failed", error=str(e))
            return {"status": "unhealthy", "error": str(e)}
        return {"status": "healthy", "latency_ms": round((time.perf_counter() - start) * 1000, 2)}

    async def _redis_health(self) -> dict:
        if cache_manager.redis is None:
            return {"status": "not_configured"}
        start = time.perf_counter()
        try:
            await cache_manager.redis.ping()
        except Exception as e:
            logger.error("Redis health check failed", error=str(e))
            return {"status": "unhealthy", "error": str(e)}
        return {"status": "healthy", "latency_ms": round((time.perf_counter() - start) * 1000, 2)}

    async def get_system_status(self) -> dict:
        """Headline counts plus database and Redis health."""
        return {
            "counts": {
                "users": await self._count(select(func.count(User.id))),
                "active_users": await self._count(
                    select(func.count(User.id)).where(User.is_active.is_(True))
                ),
                "premium_users": await self._count(
                    select(func.count(User.id)).where(User.subscription_tier != "free")
                ),
                "transactions": await self._count(select(func.count(Transaction.id))),
                "plans": await self._count(select(func.count(FinancialPlan.id))),
                "active_recurring": await self._count(
                    select(func.count(RecurringTransaction.id)).where(
                        RecurringTransaction.is_active.is_(True)
                    )
                ),
            },
            "services": {
                "database": await self._database_health(),
                "redis": await self._redis_health(),
            },
        }
