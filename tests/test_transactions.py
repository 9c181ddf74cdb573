"""Tests for transactions and wallet balance bookkeeping."""

from datetime import date
from decimal import Decimal

import pytest
from httpx import AsyncClient

from finhome.exceptions import NotFoundError
from finhome.services.transaction_service import TransactionService
from finhome.services.wallet_service import WalletService


@pytest.fixture
async def second_wallet(db_session, test_user):
    return await WalletService(db_session).create_wallet(
        test_user, name="Cash", wallet_type="cash", balance=Decimal("500000")
    )


@pytest.mark.asyncio
class TestTransactionService:
    """Test balance effects of each transaction type."""

    async def test_income_adds_to_wallet(self, db_session, test_user, wallet, categories):
        await TransactionService(db_session).create_transaction(
            user_id=test_user.id,
            wallet_id=wallet.id,
            transaction_type="income",
            amount=Decimal("20000000"),
            category_id=categories["salary"].id,
        )

        await db_session.refresh(wallet)
        assert wallet.balance == Decimal("30000000")

    async def test_expense_subtracts_from_wallet(self, db_session, test_user, wallet, categories):
        transaction = await TransactionService(db_session).create_transaction(
            user_id=test_user.id,
            wallet_id=wallet.id,
            transaction_type="expense",
            amount=Decimal("150000"),
            category_id=categories["food_dining"].id,
            merchant_name="Pho 24",
        )

        assert transaction.transaction_date == date.today()
        assert transaction.currency == "VND"
        await db_session.refresh(wallet)
        assert wallet.balance == Decimal("9850000")

    async def test_transfer_moves_money_and_charges_fee(
        self, db_session, test_user, wallet, second_wallet
    ):
        transaction = await TransactionService(db_session).create_transaction(
            user_id=test_user.id,
            wallet_id=wallet.id,
            transaction_type="transfer",
            amount=Decimal("1000000"),
            transfer_to_wallet_id=second_wallet.id,
            transfer_fee=Decimal("3300"),
        )

        assert transaction.category_id is None
        await db_session.refresh(wallet)
        await db_session.refresh(second_wallet)
        assert wallet.balance == Decimal("8996700")
        assert second_wallet.balance == Decimal("1500000")

    async def test_category_type_must_match(self, db_session, test_user, wallet, categories):
        with pytest.raises(ValueError, match="Invalid expense category"):
            await TransactionService(db_session).create_transaction(
                user_id=test_user.id,
                wallet_id=wallet.id,
                transaction_type="expense",
                amount=Decimal("100000"),
                category_id=categories["salary"].id,
            )

    async def test_category_required(self, db_session, test_user, wallet):
        with pytest.raises(ValueError, match="category is required"):
            await TransactionService(db_session).create_transaction(
                user_id=test_user.id, wallet_id=wallet.id, transaction_type="income", amount=Decimal("1")
            )

    async def test_transfer_to_same_wallet(self, db_session, test_user, wallet):
        with pytest.raises(ValueError, match="same wallet"):
            await TransactionService(db_session).create_transaction(
                user_id=test_user.id,
                wallet_id=wallet.id,
                transaction_type="transfer",
                amount=Decimal("1000"),
                transfer_to_wallet_id=wallet.id,
            )

    async def test_foreign_wallet(self, db_session, other_user, wallet, categories):
        with pytest.raises(NotFoundError):
            await TransactionService(db_session).create_transaction(
                user_id=other_user.id,
                wallet_id=wallet.id,
                transaction_type="expense",
                amount=Decimal("1000"),
                category_id=categories["shopping"].id,
            )

    async def test_update_amount_rebalances(self, db_session, test_user, wallet, categories):
        service = TransactionService(db_session)
        transaction = await service.create_transaction(
            user_id=test_user.id,
            wallet_id=wallet.id,
            transaction_type="expense",
            amount=Decimal("200000"),
            category_id=categories["transportation"].id,
        )

        await service.update_transaction(transaction.id, test_user.id, amount=Decimal("250000"))

        await db_session.refresh(wallet)
        assert wallet.balance == Decimal("9750000")

    async def test_update_fee_only_for_transfers(self, db_session, test_user, wallet, categories):
        service = TransactionService(db_session)
        transaction = await service.create_transaction(
            user_id=test_user.id,
            wallet_id=wallet.id,
            transaction_type="expense",
            amount=Decimal("200000"),
            category_id=categories["transportation"].id,
        )

        with pytest.raises(ValueError, match="Only transfers"):
            await service.update_transaction(transaction.id, test_user.id, transfer_fee=Decimal("1000"))

    async def test_update_null_amount_leaves_balance(self, db_session, test_user, wallet, categories):
        service = TransactionService(db_session)
        transaction = await service.create_transaction(
            user_id=test_user.id,
            wallet_id=wallet.id,
            transaction_type="expense",
            amount=Decimal("200000"),
            category_id=categories["transportation"].id,
        )

        with pytest.raises(ValueError, match="cannot be null"):
            await service.update_transaction(transaction.id, test_user.id, amount=None)

        await db_session.refresh(wallet)
        assert wallet.balance == Decimal("9800000")

    async def test_delete_reverses_transfer(self, db_session, test_user, wallet, second_wallet):
        service = TransactionService(db_session)
        transaction = await service.create_transaction(
            user_id=test_user.id,
            wallet_id=wallet.id,
            transaction_type="transfer",
            amount=Decimal("1000000"),
            transfer_to_wallet_id=second_wallet.id,
            transfer_fee=Decimal("5000"),
        )

        await service.delete_transaction(transaction.id, test_user.id)

        await db_session.refresh(wallet)
        await db_session.refresh(second_wallet)
        assert wallet.balance == Decimal("10000000")
        assert second_wallet.balance == Decimal("500000")

    async def test_list_filters(self, db_session, test_user, wallet, categories):
        service = TransactionService(db_session)
        for amount, key, merchant in (
            ("50000", "food_dining", "Highlands Coffee"),
            ("700000", "groceries", "Co.opmart"),
            ("120000", "food_dining", "Pho Thin"),
        ):
            await service.create_transaction(
                user_id=test_user.id,
                wallet_id=wallet.id,
                transaction_type="expense",
                amount=Decimal(amount),
                category_id=categories[key].id,
                merchant_name=merchant,
            )

        items, total = await service.list_transactions(test_user.id, category_id=categories["food_dining"].id)
        assert total == 2

        items, total = await service.list_transactions(test_user.id, search="coop")
        assert total == 0
        items, total = await service.list_transactions(test_user.id, search="co.op")
        assert [t.merchant_name for t in items] == ["Co.opmart"]

        items, total = await service.list_transactions(test_user.id, sort="amount_desc", limit=1)
        assert total == 3
        assert items[0].amount == Decimal("700000")

    async def test_list_rejects_bad_range(self, db_session, test_user):
        with pytest.raises(ValueError):
            await TransactionService(db_session).list_transactions(
                test_user.id, start_date=date(2024, 2, 1), end_date=date(2024, 1, 1)
            )


@pytest.mark.asyncio
class TestTransactionRoutes:
    """Test transaction API endpoints."""

    async def test_create_expense(self, client: AsyncClient, auth_headers, wallet, categories):
        response = await client.post(
            "/api/transactions",
            headers=auth_headers,
            json={
                "wallet_id": str(wallet.id),
                "transaction_type": "expense",
                "amount": "85000",
                "category_id": str(categories["food_dining"].id),
                "description": "Lunch",
                "tags": ["work"],
            },
        )

        assert response.status_code == 201
        data = response.json()
        assert data["transaction_type"] == "expense"
        assert data["tags"] == ["work"]

        response = await client.get(f"/api/wallets/{wallet.id}", headers=auth_headers)
        assert Decimal(str(response.json()["balance"])) == Decimal("9915000")

    async def test_missing_category_is_validation_error(self, client: AsyncClient, auth_headers, wallet):
        response = await client.post(
            "/api/transactions",
            headers=auth_headers,
            json={"wallet_id": str(wallet.id), "transaction_type": "expense", "amount": "85000"},
        )
        assert response.status_code == 400

    async def test_non_positive_amount(self, client: AsyncClient, auth_headers, wallet, categories):
        response = await client.post(
            "/api/transactions",
            headers=auth_headers,
            json={
                "wallet_id": str(wallet.id),
                "transaction_type": "expense",
                "amount": "0",
                "category_id": str(categories["food_dining"].id),
            },
        )
        assert response.status_code == 400

    async def test_foreign_wallet_is_404(self, client: AsyncClient, other_headers, wallet, categories):
        response = await client.post(
            "/api/transactions",
            headers=other_headers,
            json={
                "wallet_id": str(wallet.id),
                "transaction_type": "expense",
                "amount": "1000",
                "category_id": str(categories["food_dining"].id),
            },
        )
        assert response.status_code == 404

    async def test_list_and_delete(self, client: AsyncClient, auth_headers, db_session, test_user, wallet, categories):
        transaction = await TransactionService(db_session).create_transaction(
            user_id=test_user.id,
            wallet_id=wallet.id,
            transaction_type="income",
            amount=Decimal("3000000"),
            category_id=categories["freelance"].id,
        )

        response = await client.get("/api/transactions", headers=auth_headers)
        assert response.status_code == 200
        data = response.json()
        assert data["pagination"]["total"] == 1
        assert data["pagination"]["has_more"] is False

        response = await client.delete(f"/api/transactions/{transaction.id}", headers=auth_headers)
        assert response.status_code == 204

        response = await client.get(f"/api/transactions/{transaction.id}", headers=auth_headers)
        assert response.status_code == 404

    @pytest.mark.parametrize(
        "payload",
        [{"amount": None}, {"transaction_date": None}, {"transfer_fee": None}, {"tags": None}],
    )
    async def test_update_rejects_null_for_required_columns(
        self, client: AsyncClient, auth_headers, db_session, test_user, wallet, categories, payload
    ):
        transaction = await TransactionService(db_session).create_transaction(
            user_id=test_user.id,
            wallet_id=wallet.id,
            transaction_type="expense",
            amount=Decimal("85000"),
            category_id=categories["food_dining"].id,
        )

        response = await client.put(
            f"/api/transactions/{transaction.id}", headers=auth_headers, json=payload
        )
        assert response.status_code == 400

        response = await client.get(f"/api/transactions/{transaction.id}", headers=auth_headers)
        assert Decimal(str(response.json()["amount"])) == Decimal("85000")
        response = await client.get(f"/api/wallets/{wallet.id}", headers=auth_headers)
        assert Decimal(str(response.json()["balance"])) == Decimal("9915000")

    async def test_update_allows_clearing_optional_text(
        self, client: AsyncClient, auth_headers, db_session, test_user, wallet, categories
    ):
        transaction = await TransactionService(db_session).create_transaction(
            user_id=test_user.id,
            wallet_id=wallet.id,
            transaction_type="expense",
            amount=Decimal("85000"),
            category_id=categories["food_dining"].id,
        )

        response = await client.put(
            f"/api/transactions/{transaction.id}",
            headers=auth_headers,
            json={"description": None, "notes": None},
        )
        assert response.status_code == 200
        assert response.json()["description"] is None
