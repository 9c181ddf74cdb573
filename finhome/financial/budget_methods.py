"""Budget allocation templates (50/30/20 and the 6-jars method)."""

from dataclasses import dataclass
from decimal import ROUND_DOWN, Decimal
from typing import Dict, Iterable, List, Mapping, Optional

from finhome.financial.currency import format_currency


@dataclass(frozen=True)
class BudgetGroup:
    key: str
    name: str
    percentage: Decimal
    description: str


@dataclass(frozen=True)
class BudgetMethod:
    key: str
    name: str
    description: str
    groups: tuple

    def group_keys(self) -> List[str]:
        return [group.key for group in self.groups]


BUDGET_METHODS: Dict[str, BudgetMethod] = {
    "50_30_20": BudgetMethod(
        key="50_30_20",
        name="50/30/20 Rule",
        description="Half of income for needs, 30% for wants and 20% for savings",
        groups=(
            BudgetGroup("needs", "Needs", Decimal("0.50"), "Housing, food, utilities, transport"),
            BudgetGroup("wants", "Wants", Decimal("0.30"), "Entertainment, dining out, shopping"),
            BudgetGroup("savings", "Savings", Decimal("0.20"), "Savings and debt repayment"),
        ),
    ),
    "6_jars": BudgetMethod(
        key="6_jars",
        name="6 Jars",
        description="Split income into six jars with fixed purposes",
        groups=(
            BudgetGroup("necessities", "Necessities", Decimal("0.55"), "Daily living costs"),
            BudgetGroup("education", "Education", Decimal("0.10"), "Learning and self-improvement"),
            BudgetGroup("ltss", "Long-term savings", Decimal("0.10"), "Big purchases and emergencies"),
            BudgetGroup("play", "Play", Decimal("0.10"), "Fun and enjoyment"),
            BudgetGroup(
                "financial_freedom", "Financial freedom", Decimal("0.10"), "Investments"
            ),
            BudgetGroup("give", "Give", Decimal("0.05"), "Charity and gifts"),
        ),
    ),
}

# Keyword lists used to guess which group a category belongs to
_GROUP_KEYWORDS: Dict[str, Dict[str, tuple]] = {
    "50_30_20": {
        "needs": (
            "food", "grocer", "rent", "housing", "utilit", "electric", "water",
            "transport", "health", "insurance", "bill",
        ),
        "wants": ("entertain", "shopping", "dining", "travel", "beauty", "hobby", "gift"),
        "savings": ("saving", "invest", "debt", "loan"),
    },
    "6_jars": {
        "necessities": (
            "food", "grocer", "rent", "housing", "utilit", "electric", "water",
            "transport", "health", "insurance", "bill",
        ),
        "education": ("education", "book", "course", "learn"),
        "ltss": ("saving", "emergency"),
        "play": ("entertain", "shopping", "dining", "travel", "beauty", "hobby"),
        "financial_freedom": ("invest", "stock", "business"),
        "give": ("gift", "charity", "donation"),
    },
}

_DEFAULT_GROUP = {"50_30_20": "needs", "6_jars": "necessities"}


def get_budget_method(method: str) -> BudgetMethod:
    """Look up a budget method.

    Raises:
        ValueError: If the method is unknown
    """
    try:
        return BUDGET_METHODS[method]
    except KeyError:
        raise ValueError(f"Unknown budget method: {method}") from None


def calculate_budget_allocation(method: str, income: Decimal) -> Dict[str, Decimal]:
    """Split ``income`` across the groups of a method.

    Amounts are rounded down to whole units; the remainder goes to the first group
    so the allocation always sums to the income.
    """
    if income <= 0:
        raise ValueError("Income must be positive")

    budget_method = get_budget_method(method)
    allocation = {
        group.key: (income * group.percentage).quantize(Decimal("1"), rounding=ROUND_DOWN)
        for group in budget_method.groups
    }
    remainder = income - sum(allocation.values())
    first = budget_method.groups[0].key
    allocation[first] += remainder
    return allocation


def validate_category_mapping(method: str, mapping: Mapping[str, str]) -> List[str]:
    """Return validation errors for a category -> group mapping. Empty list means valid."""
    budget_method = get_budget_method(method)
    valid_groups = set(budget_method.group_keys())
    errors = []
    for category, group in mapping.items():
        if group not in valid_groups:
            errors.append(f"Category {category} is mapped to unknown group {group}")
    return errors


def default_category_mapping(method: str, categories: Iterable[Mapping[str, str]]) -> Dict[str, str]:
    """Guess a group for each category from keywords in its key or name.

    Args:
        method: Budget method key
        categories: Items with ``id`` and ``category_key`` or ``name``

    Returns:
        Map of category id to group key
    """
    get_budget_method(method)
    keywords = _GROUP_KEYWORDS[method]
    mapping: Dict[str, str] = {}
    for category in categories:
        text = f"{category.get('category_key', '')} {category.get('name', '')}".lower()
        group = next(
            (g for g, words in keywords.items() if any(word in text for word in words)),
            _DEFAULT_GROUP[method],
        )
        mapping[str(category["id"])] = group
    return mapping


def calculate_category_budgets(
    method: str, income: Decimal, mapping: Mapping[str, str]
) -> Dict[str, Decimal]:
    """Spread each group's allocation evenly across the categories mapped to it."""
    errors = validate_category_mapping(method, mapping)
    if errors:
        raise ValueError("; ".join(errors))

    allocation = calculate_budget_allocation(method, income)
    members: Dict[str, List[str]] = {}
    for category_id, group in mapping.items():
        members.setdefault(group, []).append(category_id)

    budgets: Dict[str, Decimal] = {}
    for group, category_ids in members.items():
        share = (allocation[group] / len(category_ids)).quantize(Decimal("1"), rounding=ROUND_DOWN)
        for category_id in category_ids:
            budgets[category_id] = share
    return budgets


def format_budget_summary(
    method: str, income: Decimal, currency: str = "VND", allocation: Optional[Dict[str, Decimal]] = None
) -> List[Dict[str, str]]:
    """Human readable lines describing each group of an allocation."""
    budget_method = get_budget_method(method)
    allocation = allocation or calculate_budget_allocation(method, income)
    return [
        {
            "group": group.key,
            "name": group.name,
            "percentage": f"{int(group.percentage * 100)}%",
            "amount": format_currency(allocation[group.key], currency),
            "description": group.description,
        }
        for group in budget_method.groups
    ]
