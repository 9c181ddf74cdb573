"""Tests for savings goals and contributions."""

from datetime import date, timedelta
from decimal import Decimal

import pytest
from httpx import AsyncClient

from finhome.models.goal import Goal
from finhome.services.goal_service import GoalService, calculate_goal_metrics, months_between


def _goal(**fields):
    values = {
        "target_amount": Decimal("12000000"),
        "current_amount": Decimal("3000000"),
        "status": "active",
        "start_date": date(2024, 1, 1),
        "deadline": date(2024, 7, 1),
        "monthly_target": None,
    }
    values.update(fields)
    return Goal(**values)


class TestGoalMetrics:
    """Test derived goal progress."""

    def test_months_between(self):
        assert months_between(date(2024, 1, 15), date(2024, 4, 15)) == 3
        assert months_between(date(2024, 1, 15), date(2024, 4, 14)) == 2
        assert months_between(date(2024, 5, 1), date(2024, 1, 1)) == 0

    def test_behind_schedule(self):
        metrics = calculate_goal_metrics(_goal(), today=date(2024, 4, 1))

        assert metrics.progress_percent == 25.0
        assert metrics.remaining_amount == Decimal("9000000")
        assert metrics.months_remaining == 3
        assert metrics.required_monthly_savings == Decimal("3000000.00")
        assert metrics.is_on_track is False

    def test_monthly_target_keeps_goal_on_track(self):
        metrics = calculate_goal_metrics(_goal(monthly_target=Decimal("3000000")), today=date(2024, 4, 1))
        assert metrics.is_on_track is True

    def test_past_deadline(self):
        metrics = calculate_goal_metrics(_goal(), today=date(2024, 8, 1))

        assert metrics.months_remaining == 0
        assert metrics.required_monthly_savings == Decimal("9000000")
        assert metrics.is_on_track is False

    def test_no_deadline(self):
        metrics = calculate_goal_metrics(_goal(deadline=None), today=date(2024, 4, 1))

        assert metrics.months_remaining is None
        assert metrics.required_monthly_savings is None
        assert metrics.is_on_track is True

    def test_completed(self):
        metrics = calculate_goal_metrics(
            _goal(current_amount=Decimal("12000000"), status="completed"), today=date(2024, 4, 1)
        )
        assert metrics.progress_percent == 100.0
        assert metrics.remaining_amount == Decimal(0)


@pytest.mark.asyncio
class TestGoalService:
    """Test goal persistence and contributions."""

    async def test_create_goal(self, db_session, test_user):
        goal = await GoalService(db_session).create_goal(
            user_id=test_user.id,
            name="Emergency fund",
            target_amount=Decimal("60000000"),
            goal_type="emergency_fund",
            deadline=date.today() + timedelta(days=365),
        )

        assert goal.status == "active"
        assert goal.current_amount == Decimal(0)
        assert goal.start_date == date.today()

    async def test_initial_amount_can_complete(self, db_session, test_user):
        goal = await GoalService(db_session).create_goal(
            user_id=test_user.id,
            name="Phone",
            target_amount=Decimal("5000000"),
            initial_amount=Decimal("5000000"),
        )
        assert goal.status == "completed"
        assert goal.completed_at is not None

    async def test_deadline_before_start(self, db_session, test_user):
        with pytest.raises(ValueError, match="Deadline"):
            await GoalService(db_session).create_goal(
                user_id=test_user.id,
                name="Trip",
                target_amount=Decimal("5000000"),
                start_date=date(2024, 5, 1),
                deadline=date(2024, 4, 1),
            )

    async def test_contribution_debits_wallet(self, db_session, test_user, wallet):
        service = GoalService(db_session)
        goal = await service.create_goal(user_id=test_user.id, name="Trip", target_amount=Decimal("5000000"))

        goal, contribution = await service.add_contribution(
            goal.id, test_user.id, Decimal("2000000"), wallet_id=wallet.id
        )

        assert goal.current_amount == Decimal("2000000")
        assert goal.status == "active"
        assert contribution.wallet_id == wallet.id
        await db_session.refresh(wallet)
        assert wallet.balance == Decimal("8000000")

    async def test_insufficient_balance(self, db_session, test_user, wallet):
        service = GoalService(db_session)
        goal = await service.create_goal(user_id=test_user.id, name="Car", target_amount=Decimal("500000000"))

        with pytest.raises(ValueError, match="Insufficient"):
            await service.add_contribution(goal.id, test_user.id, Decimal("20000000"), wallet_id=wallet.id)

    async def test_reaching_target_completes_and_awards(self, db_session, test_user):
        service = GoalService(db_session)
        goal = await service.create_goal(user_id=test_user.id, name="Laptop", target_amount=Decimal("1000000"))

        goal, _ = await service.add_contribution(goal.id, test_user.id, Decimal("1000000"))

        assert goal.status == "completed"
        assert test_user.experience_points >= 300

        with pytest.raises(ValueError, match="completed goal"):
            await service.add_contribution(goal.id, test_user.id, Decimal("1000"))

    async def test_list_orders_by_deadline(self, db_session, test_user):
        service = GoalService(db_session)
        today = date.today()
        await service.create_goal(user_id=test_user.id, name="Open", target_amount=Decimal("1000"))
        await service.create_goal(
            user_id=test_user.id, name="Later", target_amount=Decimal("1000"), deadline=today + timedelta(days=90)
        )
        await service.create_goal(
            user_id=test_user.id, name="Soon", target_amount=Decimal("1000"), deadline=today + timedelta(days=10)
        )

        goals = await service.list_goals(test_user.id)
        assert [g.name for g in goals] == ["Soon", "Later", "Open"]


@pytest.mark.asyncio
class TestGoalRoutes:
    """Test goal API endpoints."""

    async def test_create_goal(self, client: AsyncClient, auth_headers):
        response = await client.post(
            "/api/goals",
            headers=auth_headers,
            json={
                "name": "Down payment",
                "target_amount": "600000000",
                "goal_type": "buy_house",
                "initial_amount": "150000000",
            },
        )

        assert response.status_code == 201
        data = response.json()
        assert data["progress_percent"] == 25.0
        assert Decimal(str(data["remaining_amount"])) == Decimal("450000000")

    async def test_invalid_target(self, client: AsyncClient, auth_headers):
        response = await client.post("/api/goals", headers=auth_headers, json={"name": "Bad", "target_amount": "-5"})
        assert response.status_code == 400

    async def test_contribution_endpoint(self, client: AsyncClient, auth_headers, db_session, test_user, wallet):
        goal = await GoalService(db_session).create_goal(
            user_id=test_user.id, name="Trip", target_amount=Decimal("5000000")
        )

        response = await client.post(
            f"/api/goals/{goal.id}/contributions",
            headers=auth_headers,
            json={"amount": "1000000", "wallet_id": str(wallet.id)},
        )
        assert response.status_code == 201
        assert Decimal(str(response.json()["goal"]["current_amount"])) == Decimal("1000000")

        response = await client.get(f"/api/goals/{goal.id}/contributions", headers=auth_headers)
        assert response.status_code == 200
        assert len(response.json()) == 1

    async def test_other_user_gets_404(self, client: AsyncClient, other_headers, db_session, test_user):
        goal = await GoalService(db_session).create_goal(
            user_id=test_user.id, name="Private", target_amount=Decimal("5000000")
        )
        response = await client.get(f"/api/goals/{goal.id}", headers=other_headers)
        assert response.status_code == 404

    async def test_update_rejects_null_target(self, client: AsyncClient, auth_headers, db_session, test_user):
        goal = await GoalService(db_session).create_goal(
            user_id=test_user.id, name="Trip", target_amount=Decimal("5000000")
        )

        response = await client.put(f"/api/goals/{goal.id}", headers=auth_headers, json={"target_amount": None})
        assert response.status_code == 400

        response = await client.put(f"/api/goals/{goal.id}", headers=auth_headers, json={"deadline": None})
        assert response.status_code == 200
        assert Decimal(str(response.json()["target_amount"])) == Decimal("5000000")
