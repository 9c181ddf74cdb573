"""Tests for recurring transaction scheduling and processing."""

from datetime import date, timedelta
from decimal import Decimal

import pytest
from sqlalchemy import select

from finhome.exceptions import NotFoundError
from finhome.models.activity import UserActivity
from finhome.models.recurring import RecurringTransaction
from finhome.services.recurring_service import (
    RecurringService,
    calculate_next_due_date,
    should_end_recurring,
)
from finhome.services.wallet_service import WalletService


class TestNextDueDate:
    """Test due date arithmetic."""

    def test_daily_and_weekly(self):
        assert calculate_next_due_date(date(2024, 3, 1), "daily", 3) == date(2024, 3, 4)
        assert calculate_next_due_date(date(2024, 3, 1), "weekly", 2) == date(2024, 3, 15)

    def test_month_end_clamps(self):
        assert calculate_next_due_date(date(2024, 1, 31), "monthly") == date(2024, 2, 29)
        assert calculate_next_due_date(date(2023, 1, 31), "monthly") == date(2023, 2, 28)
        assert calculate_next_due_date(date(2024, 3, 31), "monthly") == date(2024, 4, 30)

    def test_monthly_interval_crosses_year(self):
        assert calculate_next_due_date(date(2023, 11, 30), "monthly", 13) == date(2024, 12, 30)

    def test_leap_day_yearly(self):
        assert calculate_next_due_date(date(2024, 2, 29), "yearly") == date(2025, 2, 28)
        assert calculate_next_due_date(date(2024, 2, 29), "yearly", 4) == date(2028, 2, 29)

    def test_invalid_inputs(self):
        with pytest.raises(ValueError, match="Invalid frequency"):
            calculate_next_due_date(date(2024, 1, 1), "hourly")
        with pytest.raises(ValueError):
            calculate_next_due_date(date(2024, 1, 1), "daily", 0)


class TestShouldEnd:
    def _template(self, **fields):
        values = {"max_occurrences": None, "occurrences_created": 0, "end_date": None}
        values.update(fields)
        return RecurringTransaction(**values)

    def test_open_ended_never_ends(self):
        assert not should_end_recurring(self._template(), date(2099, 1, 1))

    def test_max_occurrences_reached(self):
        template = self._template(max_occurrences=3, occurrences_created=3)
        assert should_end_recurring(template, date(2024, 1, 1))
        template.occurrences_created = 2
        assert not should_end_recurring(template, date(2024, 1, 1))

    def test_next_due_after_end_date(self):
        template = self._template(end_date=date(2024, 6, 30))
        assert should_end_recurring(template, date(2024, 7, 1))
        assert not should_end_recurring(template, date(2024, 6, 30))


async def _create_template(db_session, user, wallet, category, **fields):
    values = {
        "name": "Internet bill",
        "transaction_type": "expense",
        "amount": Decimal("300000"),
        "frequency": "monthly",
        "start_date": date.today(),
    }
    values.update(fields)
    return await RecurringService(db_session).create_recurring(
        user_id=user.id, wallet_id=wallet.id, category_id=category.id, **values
    )


@pytest.mark.asyncio
class TestRecurringService:
    """Test template CRUD and the batch processor."""

    async def test_create_sets_first_due_date(self, db_session, test_user, wallet, categories):
        template = await _create_template(
            db_session, test_user, wallet, categories["bills_utilities"], start_date=date(2024, 5, 10)
        )

        assert template.next_due_date == date(2024, 5, 10)
        assert template.occurrences_created == 0
        assert template.is_active is True

    async def test_create_validates_category_type(self, db_session, test_user, wallet, categories):
        with pytest.raises(ValueError, match="Invalid expense category"):
            await _create_template(db_session, test_user, wallet, categories["salary"])

    async def test_create_rejects_foreign_wallet(self, db_session, other_user, wallet, categories):
        with pytest.raises(NotFoundError):
            await _create_template(db_session, other_user, wallet, categories["bills_utilities"])

    async def test_create_rejects_bad_schedule(self, db_session, test_user, wallet, categories):
        with pytest.raises(ValueError, match="End date"):
            await _create_template(
                db_session,
                test_user,
                wallet,
                categories["bills_utilities"],
                start_date=date(2024, 5, 10),
                end_date=date(2024, 5, 1),
            )

    async def test_process_due_creates_transaction(self, db_session, test_user, wallet, categories):
        today = date(2024, 1, 31)
        template = await _create_template(
            db_session, test_user, wallet, categories["bills_utilities"], start_date=today
        )

        result = await RecurringService(db_session).process_due(today=today)

        assert result.processed_count == 1
        assert result.error_count == 0
        item = result.processed_transactions[0]
        assert item.recurring_transaction_id == template.id
        assert item.is_completed is False

        await db_session.refresh(template)
        assert template.occurrences_created == 1
        assert template.next_due_date == date(2024, 2, 29)
        assert template.last_processed_at is not None

        await db_session.refresh(wallet)
        assert wallet.balance == Decimal("9700000")

    async def test_process_due_logs_one_activity_per_transaction(self, db_session, test_user, wallet, categories):
        today = date(2024, 1, 31)
        await _create_template(db_session, test_user, wallet, categories["bills_utilities"], start_date=today)
        await _create_template(
            db_session, test_user, wallet, categories["bills_utilities"], name="Electricity", start_date=today
        )

        result = await RecurringService(db_session).process_due(today=today)
        assert result.processed_count == 2

        activities = (
            await db_session.execute(select(UserActivity).where(UserActivity.user_id == test_user.id))
        ).scalars().all()
        assert len(activities) == 2
        assert {a.resource_id for a in activities} == {
            item.new_transaction_id for item in result.processed_transactions
        }

    async def test_process_due_skips_future_templates(self, db_session, test_user, wallet, categories):
        today = date.today()
        await _create_template(
            db_session, test_user, wallet, categories["bills_utilities"], start_date=today + timedelta(days=1)
        )

        result = await RecurringService(db_session).process_due(today=today)
        assert result.processed_count == 0

    async def test_last_occurrence_completes_template(self, db_session, test_user, wallet, categories):
        today = date.today()
        template = await _create_template(
            db_session, test_user, wallet, categories["bills_utilities"], max_occurrences=1
        )

        result = await RecurringService(db_session).process_due(today=today)

        assert result.processed_transactions[0].is_completed is True
        await db_session.refresh(template)
        assert template.is_active is False
        assert template.occurrences_created == 1

    async def test_expired_template_is_deactivated_without_transaction(
        self, db_session, test_user, wallet, categories
    ):
        today = date.today()
        template = await _create_template(
            db_session,
            test_user,
            wallet,
            categories["bills_utilities"],
            start_date=today - timedelta(days=40),
        )
        template.end_date = today - timedelta(days=45)
        await db_session.flush()

        result = await RecurringService(db_session).process_due(today=today)

        assert result.processed_count == 0
        assert result.expired == [template.id]
        await db_session.refresh(template)
        assert template.is_active is False

        await db_session.refresh(wallet)
        assert wallet.balance == Decimal("10000000")

    async def test_failure_is_isolated(self, db_session, test_user, wallet, categories):
        today = date.today()
        savings = await WalletService(db_session).create_wallet(
            test_user, name="Cash", wallet_type="cash", balance=Decimal("1000000")
        )
        broken = await _create_template(
            db_session, test_user, wallet, categories["bills_utilities"], name="Broken"
        )
        working = await _create_template(
            db_session, test_user, savings, categories["food_dining"], name="Lunch", amount=Decimal("50000")
        )

        broken_id, working_id = broken.id, working.id
        wallet.is_active = False
        await db_session.flush()

        result = await RecurringService(db_session).process_due(today=today)

        assert result.processed_count == 1
        assert result.error_count == 1
        assert result.errors[0].recurring_transaction_id == broken_id
        assert result.errors[0].recurring_transaction_name == "Broken"
        assert result.processed_transactions[0].recurring_transaction_id == working_id

        await db_session.refresh(broken)
        assert broken.occurrences_created == 0
        assert broken.next_due_date == today

        await db_session.refresh(savings)
        assert savings.balance == Decimal("950000")

    async def test_due_overview(self, db_session, test_user, wallet, categories):
        today = date.today()
        category = categories["bills_utilities"]
        await _create_template(db_session, test_user, wallet, category, name="Due", start_date=today)
        await _create_template(
            db_session, test_user, wallet, category, name="Soon", start_date=today + timedelta(days=3)
        )
        await _create_template(
            db_session, test_user, wallet, category, name="Later", start_date=today + timedelta(days=30)
        )

        overview = await RecurringService(db_session).get_due_overview(test_user.id, today=today)

        assert [t.name for t in overview["due"]] == ["Due"]
        assert [t.name for t in overview["upcoming"]] == ["Soon"]
        assert overview["has_due_transactions"] is True

    async def test_delete_keeps_generated_transactions(self, db_session, test_user, wallet, categories):
        from sqlalchemy import func

        from finhome.models.transaction import Transaction

        today = date.today()
        service = RecurringService(db_session)
        template = await _create_template(db_session, test_user, wallet, categories["bills_utilities"])
        await service.process_due(today=today)

        await service.delete_recurring(template.id, test_user.id)

        count = await db_session.execute(select(func.count(Transaction.id)))
        assert count.scalar() == 1
        assert await service.get_recurring(template.id, test_user.id) is None
