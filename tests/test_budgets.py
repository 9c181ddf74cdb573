"""Tests for budget service and API endpoints."""

from datetime import date, timedelta
from decimal import Decimal

import pytest
from httpx import AsyncClient

from finhome.services.budget_service import BudgetService, spending_status
from finhome.services.transaction_service import TransactionService
from finhome.services.wallet_service import WalletService


def _period():
    today = date.today()
    return today - timedelta(days=5), today + timedelta(days=25)


async def _spend(db_session, user, wallet, category, amount, when=None):
    return await TransactionService(db_session).create_transaction(
        user_id=user.id,
        wallet_id=wallet.id,
        transaction_type="expense",
        amount=Decimal(amount),
        category_id=category.id,
        transaction_date=when,
    )


class TestSpendingStatus:
    def test_bands(self):
        assert spending_status(50, 80) == "on_track"
        assert spending_status(80, 80) == "warning"
        assert spending_status(99.9, 80) == "warning"
        assert spending_status(100, 80) == "exceeded"


@pytest.mark.asyncio
class TestBudgetService:
    """Test budget creation and progress tracking."""

    async def test_create_with_category_budgets(self, db_session, test_user, categories):
        start, end = _period()
        budget = await BudgetService(db_session).create_budget(
            user_id=test_user.id,
            name="Monthly",
            total_budget=Decimal("10000000"),
            start_date=start,
            end_date=end,
            category_budgets={str(categories["food_dining"].id): Decimal("3000000")},
        )

        assert budget.category_budgets == {str(categories["food_dining"].id): "3000000"}
        assert budget.budget_method == "manual"

    async def test_allocations_cannot_exceed_total(self, db_session, test_user, categories):
        start, end = _period()
        with pytest.raises(ValueError, match="exceeds total budget"):
            await BudgetService(db_session).create_budget(
                user_id=test_user.id,
                name="Monthly",
                total_budget=Decimal("1000000"),
                start_date=start,
                end_date=end,
                category_budgets={
                    str(categories["food_dining"].id): Decimal("700000"),
                    str(categories["shopping"].id): Decimal("400000"),
                },
            )

    async def test_income_category_rejected(self, db_session, test_user, categories):
        start, end = _period()
        with pytest.raises(ValueError, match="Invalid expense category"):
            await BudgetService(db_session).create_budget(
                user_id=test_user.id,
                name="Monthly",
                total_budget=Decimal("1000000"),
                start_date=start,
                end_date=end,
                category_budgets={str(categories["salary"].id): Decimal("100000")},
            )

    async def test_inverted_dates(self, db_session, test_user):
        with pytest.raises(ValueError, match="End date"):
            await BudgetService(db_session).create_budget(
                user_id=test_user.id,
                name="Monthly",
                total_budget=Decimal("1000000"),
                start_date=date(2024, 2, 1),
                end_date=date(2024, 1, 1),
            )

    async def test_progress(self, db_session, test_user, wallet, categories):
        start, end = _period()
        service = BudgetService(db_session)
        food = categories["food_dining"]
        budget = await service.create_budget(
            user_id=test_user.id,
            name="Monthly",
            total_budget=Decimal("2000000"),
            start_date=start,
            end_date=end,
            category_budgets={str(food.id): Decimal("1000000")},
        )

        await _spend(db_session, test_user, wallet, food, "850000")
        await _spend(db_session, test_user, wallet, categories["shopping"], "350000")
        # Outside the budget period
        await _spend(db_session, test_user, wallet, food, "999000", when=start - timedelta(days=1))

        progress = await service.get_budget_progress(budget)

        assert progress.current_spent == Decimal("1200000")
        assert progress.remaining_amount == Decimal("800000")
        assert progress.progress_percentage == 60.0
        assert progress.status == "on_track"

        food_progress = progress.categories[0]
        assert food_progress.spent == Decimal("850000")
        assert food_progress.percent_used == 85.0
        assert food_progress.status == "warning"

    async def test_wallets_outside_budget_are_ignored(self, db_session, test_user, categories):
        start, end = _period()
        service = BudgetService(db_session)
        business = await WalletService(db_session).create_wallet(
            test_user, name="Business", wallet_type="bank_account", balance=Decimal("5000000"), include_in_budget=False
        )
        budget = await service.create_budget(
            user_id=test_user.id, name="Monthly", total_budget=Decimal("1000000"), start_date=start, end_date=end
        )

        await _spend(db_session, test_user, business, categories["shopping"], "900000")

        progress = await service.get_budget_progress(budget)
        assert progress.current_spent == Decimal(0)

    async def test_alerts(self, db_session, test_user, wallet, categories):
        start, end = _period()
        service = BudgetService(db_session)
        food = categories["food_dining"]
        await service.create_budget(
            user_id=test_user.id,
            name="Tight",
            total_budget=Decimal("1000000"),
            start_date=start,
            end_date=end,
            category_budgets={str(food.id): Decimal("500000")},
        )
        await _spend(db_session, test_user, wallet, food, "600000")

        alerts = await service.get_alerts(test_user.id)

        statuses = {(a["category_id"], a["status"]) for a in alerts}
        assert (None, "on_track") not in statuses
        assert (str(food.id), "exceeded") in statuses

    async def test_from_method_assigns_categories(self, db_session, test_user, categories):
        start, end = _period()
        budget, allocation = await BudgetService(db_session).create_budget_from_method(
            user_id=test_user.id,
            name="50/30/20",
            method="50_30_20",
            income=Decimal("20000000"),
            start_date=start,
            end_date=end,
        )

        assert allocation["needs"] == Decimal("10000000")
        assert budget.budget_method == "50_30_20"
        assert budget.total_budget == Decimal("20000000")
        assert str(categories["entertainment"].id) in budget.category_budgets
        total_allocated = sum(Decimal(v) for v in budget.category_budgets.values())
        assert total_allocated <= Decimal("20000000")

    async def test_update_revalidates_allocations(self, db_session, test_user, categories):
        start, end = _period()
        service = BudgetService(db_session)
        budget = await service.create_budget(
            user_id=test_user.id,
            name="Monthly",
            total_budget=Decimal("1000000"),
            start_date=start,
            end_date=end,
            category_budgets={str(categories["food_dining"].id): Decimal("800000")},
        )

        with pytest.raises(ValueError, match="exceeds total budget"):
            await service.update_budget(budget.id, test_user.id, total_budget=Decimal("500000"))


@pytest.mark.asyncio
class TestBudgetRoutes:
    """Test budget API endpoints."""

    async def test_create_and_get_progress(self, client: AsyncClient, auth_headers, categories):
        start, end = _period()
        food_id = str(categories["food_dining"].id)
        response = await client.post(
            "/api/budgets",
            headers=auth_headers,
            json={
                "name": "October",
                "total_budget": "8000000",
                "start_date": start.isoformat(),
                "end_date": end.isoformat(),
                "category_budgets": {food_id: "2000000"},
            },
        )
        assert response.status_code == 201
        budget_id = response.json()["id"]

        response = await client.get(f"/api/budgets/{budget_id}", headers=auth_headers)
        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "on_track"
        assert data["categories"][0]["category_id"] == food_id

    async def test_create_invalid_dates(self, client: AsyncClient, auth_headers):
        response = await client.post(
            "/api/budgets",
            headers=auth_headers,
            json={"name": "Bad", "total_budget": "1000", "start_date": "2024-02-01", "end_date": "2024-01-01"},
        )
        assert response.status_code == 400

    async def test_from_method(self, client: AsyncClient, auth_headers, categories):
        start, end = _period()
        response = await client.post(
            "/api/budgets/from-method",
            headers=auth_headers,
            json={
                "name": "Jars",
                "method": "6_jars",
                "income": "10000000",
                "start_date": start.isoformat(),
                "end_date": end.isoformat(),
            },
        )
        assert response.status_code == 201
        data = response.json()
        assert Decimal(str(data["allocation"]["necessities"])) == Decimal("5500000")
        assert data["budget"]["budget_method"] == "6_jars"

    async def test_other_user_cannot_see_budget(self, client: AsyncClient, other_headers, db_session, test_user):
        start, end = _period()
        budget = await BudgetService(db_session).create_budget(
            user_id=test_user.id, name="Private", total_budget=Decimal("1000000"), start_date=start, end_date=end
        )

        response = await client.get(f"/api/budgets/{budget.id}", headers=other_headers)
        assert response.status_code == 404

    async def test_delete(self, client: AsyncClient, auth_headers, db_session, test_user):
        start, end = _period()
        budget = await BudgetService(db_session).create_budget(
            user_id=test_user.id, name="Old", total_budget=Decimal("1000000"), start_date=start, end_date=end
        )

        response = await client.delete(f"/api/budgets/{budget.id}", headers=auth_headers)
        assert response.status_code == 204

        response = await client.get("/api/budgets", headers=auth_headers)
        assert response.json() == []

    @pytest.mark.parametrize("field", ["total_budget", "start_date", "category_budgets", "is_active"])
    async def test_update_rejects_null(self, client: AsyncClient, auth_headers, db_session, test_user, field):
        start, end = _period()
        budget = await BudgetService(db_session).create_budget(
            user_id=test_user.id, name="Monthly", total_budget=Decimal("1000000"), start_date=start, end_date=end
        )

        response = await client.put(f"/api/budgets/{budget.id}", headers=auth_headers, json={field: None})
        assert response.status_code == 400
