"""Tests for achievements, levels and streaks."""

from datetime import date, timedelta
from decimal import Decimal

import pytest
from httpx import AsyncClient

from finhome.services.achievement_engine import (
    ACHIEVEMENTS_BY_ID,
    check_achievements,
    get_achievement_progress,
    get_level,
    get_level_progress,
    is_achieved,
)
from finhome.services.gamification_service import GamificationService
from finhome.services.transaction_service import TransactionService


class TestAchievementEngine:
    """Test the pure achievement rules."""

    def test_first_plan_unlocks_at_one(self):
        unlocked = check_achievements({"plans_created": 1})
        assert [a.id for a in unlocked] == ["first_plan"]

    def test_already_unlocked_is_skipped(self):
        assert check_achievements({"plans_created": 1}, unlocked=["first_plan"]) == []

    def test_lte_comparison(self):
        debt_destroyer = ACHIEVEMENTS_BY_ID["debt_destroyer"]
        assert is_achieved(debt_destroyer, {"fastest_payoff_years": 4.5})
        assert not is_achieved(debt_destroyer, {"fastest_payoff_years": 20})
        assert not is_achieved(debt_destroyer, {"fastest_payoff_years": None})

    def test_progress_percent(self):
        planning_expert = ACHIEVEMENTS_BY_ID["planning_expert"]
        assert get_achievement_progress(planning_expert, {"plans_created": 2}) == 40.0
        assert get_achievement_progress(planning_expert, {"plans_created": 7}) == 100.0
        assert get_achievement_progress(planning_expert, {}) == 0.0

    def test_zero_threshold_progress(self):
        smart_investor = ACHIEVEMENTS_BY_ID["smart_investor"]
        assert get_achievement_progress(smart_investor, {"best_roi": -3}) == 0.0
        assert get_achievement_progress(smart_investor, {"best_roi": 3}) == 100.0


class TestLevels:
    """Test level thresholds."""

    @pytest.mark.parametrize(
        "points,level,title",
        [(0, 1, "Beginner"), (499, 1, "Beginner"), (500, 2, "Planner"), (4000, 5, "Expert"), (25000, 7, "Legend")],
    )
    def test_level_for_points(self, points, level, title):
        info = get_level(points)
        assert info.level == level
        assert info.title == title

    def test_progress_within_level(self):
        info = get_level(750)
        assert info.next_level_points == 1000
        assert info.points_to_next == 250
        assert info.progress_percent == 50.0

    def test_max_level(self):
        info = get_level(10000)
        assert info.next_level_points is None
        assert info.points_to_next == 0
        assert get_level_progress(10000) == 100.0


@pytest.mark.asyncio
class TestGamificationService:
    """Test streaks and awarding against the database."""

    async def test_streak_extends_and_resets(self, db_session, test_user):
        service = GamificationService(db_session)
        today = date.today()

        await service.record_activity(test_user.id, "login", "visit", activity_date=today - timedelta(days=1))
        await service.record_activity(test_user.id, "login", "visit", activity_date=today)
        await service.record_activity(test_user.id, "login", "visit", activity_date=today)
        assert test_user.current_streak == 2
        assert test_user.longest_streak == 2

        await service.record_activity(test_user.id, "login", "visit", activity_date=today + timedelta(days=3))
        assert test_user.current_streak == 1
        assert test_user.longest_streak == 2

    async def test_check_and_award_first_transaction(self, db_session, test_user, wallet, categories):
        await TransactionService(db_session).create_transaction(
            user_id=test_user.id,
            wallet_id=wallet.id,
            transaction_type="expense",
            amount=Decimal("50000"),
            category_id=categories["food_dining"].id,
        )

        service = GamificationService(db_session)
        awarded = await service.check_and_award(test_user)

        assert [a.id for a in awarded] == ["first_transaction"]
        assert test_user.experience_points == 50
        assert test_user.level == 1

        # Second check awards nothing new
        assert await service.check_and_award(test_user) == []

    async def test_overview(self, db_session, test_user):
        overview = await GamificationService(db_session).get_overview(test_user)

        assert overview["unlocked_count"] == 0
        assert overview["total_count"] == len(overview["achievements"])
        assert overview["level"].level == 1
        assert all(not a["unlocked"] for a in overview["achievements"])


@pytest.mark.asyncio
class TestAchievementRoutes:
    """Test achievement endpoints."""

    async def test_get_achievements(self, client: AsyncClient, auth_headers):
        response = await client.get("/api/achievements", headers=auth_headers)

        assert response.status_code == 200
        data = response.json()
        assert data["level"]["level"] == 1
        assert data["unlocked_count"] == 0
        assert data["total_count"] == len(data["achievements"])

    async def test_check_unlocks(self, client: AsyncClient, auth_headers, db_session, test_user, wallet, categories):
        await TransactionService(db_session).create_transaction(
            user_id=test_user.id,
            wallet_id=wallet.id,
            transaction_type="income",
            amount=Decimal("20000000"),
            category_id=categories["salary"].id,
        )

        response = await client.post("/api/achievements/check", headers=auth_headers)

        assert response.status_code == 200
        data = response.json()
        assert [a["id"] for a in data["new_achievements"]] == ["first_transaction"]
        assert data["level"]["points"] == 50
