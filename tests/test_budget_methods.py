"""Tests for budget allocation templates."""

from decimal import Decimal

import pytest

from finhome.financial.budget_methods import (
    calculate_budget_allocation,
    calculate_category_budgets,
    default_category_mapping,
    format_budget_summary,
    get_budget_method,
    validate_category_mapping,
)


class TestAllocation:
    def test_50_30_20(self):
        allocation = calculate_budget_allocation("50_30_20", Decimal("10000000"))
        assert allocation == {
            "needs": Decimal("5000000"),
            "wants": Decimal("3000000"),
            "savings": Decimal("2000000"),
        }

    def test_6_jars(self):
        allocation = calculate_budget_allocation("6_jars", Decimal("10000000"))
        assert allocation["necessities"] == Decimal("5500000")
        assert allocation["give"] == Decimal("500000")
        assert sum(allocation.values()) == Decimal("10000000")

    def test_remainder_goes_to_first_group(self):
        allocation = calculate_budget_allocation("50_30_20", Decimal("10000001"))
        assert allocation["needs"] == Decimal("5000001")
        assert sum(allocation.values()) == Decimal("10000001")

    def test_invalid_income(self):
        with pytest.raises(ValueError, match="positive"):
            calculate_budget_allocation("50_30_20", Decimal("0"))

    def test_unknown_method(self):
        with pytest.raises(ValueError, match="Unknown budget method"):
            get_budget_method("envelope")


class TestCategoryMapping:
    def test_default_mapping_by_keyword(self):
        mapping = default_category_mapping(
            "50_30_20",
            [
                {"id": "a", "category_key": "food_dining", "name": "Food & Dining"},
                {"id": "b", "category_key": "entertainment", "name": "Entertainment"},
                {"id": "c", "category_key": "investment", "name": "Investment"},
                {"id": "d", "category_key": "misc", "name": "Misc"},
            ],
        )
        assert mapping == {"a": "needs", "b": "wants", "c": "savings", "d": "needs"}

    def test_validate_mapping(self):
        assert validate_category_mapping("50_30_20", {"a": "needs"}) == []
        errors = validate_category_mapping("50_30_20", {"a": "play"})
        assert len(errors) == 1

    def test_group_split_across_categories(self):
        budgets = calculate_category_budgets(
            "50_30_20", Decimal("10000000"), {"a": "needs", "b": "needs", "c": "wants"}
        )
        assert budgets == {
            "a": Decimal("2500000"),
            "b": Decimal("2500000"),
            "c": Decimal("3000000"),
        }

    def test_invalid_mapping_rejected(self):
        with pytest.raises(ValueError):
            calculate_category_budgets("6_jars", Decimal("1000000"), {"a": "needs"})

    def test_summary(self):
        summary = format_budget_summary("50_30_20", Decimal("10000000"))
        assert summary[0]["percentage"] == "50%"
        assert summary[0]["amount"] == "5,000,000 ₫"
        assert [line["group"] for line in summary] == ["needs", "wants", "savings"]
