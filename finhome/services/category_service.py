"""Category service for system and user-defined categories."""

import re
from typing import List, Optional
from uuid import UUID

from sqlalchemy import func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from finhome.exceptions import NotFoundError, PermissionDeniedError
from finhome.logging_config import get_logger
from finhome.models.category import Category

logger = get_logger(__name__)

# (category_key, name, icon, color)
DEFAULT_EXPENSE_CATEGORIES = [
    ("food_dining", "Food & Dining", "utensils", "#EF4444"),
    ("groceries", "Groceries", "shopping-basket", "#F97316"),
    ("transportation", "Transportation", "car", "#F59E0B"),
    ("housing", "Housing & Rent", "home", "#84CC16"),
    ("bills_utilities", "Bills & Utilities", "zap", "#10B981"),
    ("healthcare", "Healthcare", "heart-pulse", "#06B6D4"),
    ("education", "Education", "book-open", "#3B82F6"),
    ("shopping", "Shopping", "shopping-bag", "#6366F1"),
    ("entertainment", "Entertainment", "film", "#8B5CF6"),
    ("travel", "Travel", "plane", "#A855F7"),
    ("gifts_donations", "Gifts & Donations", "gift", "#EC4899"),
    ("insurance", "Insurance", "shield", "#14B8A6"),
    ("other_expense", "Other", "more-horizontal", "#6B7280"),
]

DEFAULT_INCOME_CATEGORIES = [
    ("salary", "Salary", "briefcase", "#10B981"),
    ("business", "Business", "building", "#3B82F6"),
    ("freelance", "Freelance", "laptop", "#8B5CF6"),
    ("investment", "Investment", "trending-up", "#F59E0B"),
    ("bonus", "Bonus", "award", "#EC4899"),
    ("rental_income", "Rental Income", "key", "#14B8A6"),
    ("other_income", "Other", "more-horizontal", "#6B7280"),
]

CATEGORY_TYPES = ("expense", "income")


def slugify_category(name: str) -> str:
    """Derive a category key from its display name."""
    slug = re.sub(r"[^a-z0-9]+", "_", name.lower()).strip("_")
    return slug or "custom"


async def seed_default_categories(db: AsyncSession) -> int:
    """Install the system categories if none exist yet.

    Returns:
        Number of categories created
    """
    result = await db.execute(select(func.count(Category.id)).where(Category.user_id.is_(None)))
    if (result.scalar() or 0) > 0:
        return 0

    created = 0
    for category_type, defaults in (
        ("expense", DEFAULT_EXPENSE_CATEGORIES),
        ("income", DEFAULT_INCOME_CATEGORIES),
    ):
        for order, (key, name, icon, color) in enumerate(defaults):
            db.add(
                Category(
                    user_id=None,
                    category_type=category_type,
                    category_key=key,
                    name=name,
                    icon=icon,
                    color=color,
                    sort_order=order,
                )
            )
            created += 1

    await db.flush()
    logger.info("Default categories seeded", count=created)
    return created


class CategoryService:
    """Service for listing and customizing categories."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def list_categories(self, user_id: UUID, category_type: str = "all") -> List[Category]:
        """Active system categories plus the user's own, ordered by sort order.

        Raises:
            ValueError: If the type filter is not expense, income or all
        """
        if category_type not in (*CATEGORY_TYPES, "all"):
            raise ValueError("Type must be expense, income or all")

        stmt = select(Category).where(
            Category.is_active.is_(True),
            or_(Category.user_id.is_(None), Category.user_id == user_id),
        )
        if category_type != "all":
            stmt = stmt.where(Category.category_type == category_type)
        stmt = stmt.order_by(Category.category_type, Category.sort_order, Category.name)

        result = await self.db.execute(stmt)
        return list(result.scalars().all())

    async def get_category(self, category_id: UUID, user_id: UUID) -> Optional[Category]:
        """Get an active category visible to the user (system or own)."""
        stmt = select(Category).where(
            Category.id == category_id,
            Category.is_active.is_(True),
            or_(Category.user_id.is_(None), Category.user_id == user_id),
        )
        result = await self.db.execute(stmt)
        return result.scalar_one_or_none()

    async def create_category(
        self,
        user_id: UUID,
        category_type: str,
        name: str,
        icon: str = "tag",
        color: str = "#6B7280",
        sort_order: int = 100,
    ) -> Category:
        """Create a custom category for the user.

        Raises:
            ValueError: If the type is invalid or the user already has a category with this name
        """
        if category_type not in CATEGORY_TYPES:
            raise ValueError("Category type must be expense or income")

        existing = await self.db.execute(
            select(Category.id).where(
                Category.user_id == user_id,
                Category.category_type == category_type,
                Category.name == name,
                Category.is_active.is_(True),
            )
        )
        if existing.first() is not None:
            raise ValueError(f"Category '{name}' already exists")

        category = Category(
            user_id=user_id,
            category_type=category_type,
            name=name,
            category_key=slugify_category(name),
            icon=icon,
            color=color,
            sort_order=sort_order,
        )
        self.db.add(category)
        await self.db.flush()
        await self.db.refresh(category)

        logger.info(
            "Category created",
            category_id=str(category.id),
            user_id=str(user_id),
            category_type=category_type,
        )
        return category

    async def _get_owned(self, category_id: UUID, user_id: UUID) -> Category:
        category = await self.get_category(category_id, user_id)
        if category is None:
            raise NotFoundError(f"Category {category_id} not found")
        if category.user_id is None:
            raise PermissionDeniedError("System categories cannot be modified")
        return category

    async def update_category(self, category_id: UUID, user_id: UUID, **updates) -> Category:
        """Update name, icon, color or sort order of a custom category.

        Raises:
            ValueError: If no field is provided
            NotFoundError: If the category is not visible to the user
            PermissionDeniedError: If the category is a system category
        """
        updates = {k: v for k, v in updates.items() if v is not None}
        if not updates:
            raise ValueError("At least one of name, icon, color or sort_order is required")

        category = await self._get_owned(category_id, user_id)
        for field, value in updates.items():
            setattr(category, field, value)
        if "name" in updates:
            category.category_key = slugify_category(updates["name"])

        await self.db.flush()
        await self.db.refresh(category)

        logger.info("Category updated", category_id=str(category_id), fields=sorted(updates))
        return category

    async def delete_category(self, category_id: UUID, user_id: UUID) -> None:
        """Deactivate a custom category. Existing transactions keep their reference."""
        category = await self._get_owned(category_id, user_id)
        category.is_active = False
        await self.db.flush()
        logger.info("Category deactivated", category_id=str(category_id), user_id=str(user_id))
