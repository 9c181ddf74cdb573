"""Tests for wallet service and API endpoints."""

from datetime import timedelta
from decimal import Decimal

import pytest
from httpx import AsyncClient

from finhome.exceptions import LimitExceededError, NotFoundError
from finhome.models.base import utcnow
from finhome.services.transaction_service import TransactionService
from finhome.services.wallet_service import WalletService


@pytest.mark.asyncio
class TestWalletService:
    """Test wallet rules."""

    async def test_create_wallet(self, db_session, test_user):
        wallet = await WalletService(db_session).create_wallet(
            test_user, name="Momo", wallet_type="e_wallet", balance=Decimal("250000")
        )

        assert wallet.user_id == test_user.id
        assert wallet.balance == Decimal("250000")
        assert wallet.currency == "VND"
        assert wallet.is_active is True

    async def test_duplicate_name_rejected(self, db_session, test_user, wallet):
        with pytest.raises(ValueError, match="already exists"):
            await WalletService(db_session).create_wallet(test_user, name="Main Account", wallet_type="cash")

    async def test_invalid_type_and_balance(self, db_session, test_user):
        service = WalletService(db_session)
        with pytest.raises(ValueError, match="Invalid wallet type"):
            await service.create_wallet(test_user, name="Piggy", wallet_type="piggy_bank")
        with pytest.raises(ValueError, match="negative"):
            await service.create_wallet(test_user, name="Piggy", wallet_type="cash", balance=Decimal("-1"))

    async def test_free_tier_wallet_limit(self, db_session, test_user):
        service = WalletService(db_session)
        for name in ("One", "Two", "Three"):
            await service.create_wallet(test_user, name=name, wallet_type="cash")

        with pytest.raises(LimitExceededError) as exc_info:
            await service.create_wallet(test_user, name="Four", wallet_type="cash")
        assert exc_info.value.limit == 3
        assert exc_info.value.current == 3

    async def test_single_default_wallet(self, db_session, test_user):
        service = WalletService(db_session)
        first = await service.create_wallet(test_user, name="One", wallet_type="cash", is_default=True)
        second = await service.create_wallet(test_user, name="Two", wallet_type="cash", is_default=True)

        await db_session.refresh(first)
        assert first.is_default is False
        assert second.is_default is True

        wallets = await service.list_wallets(test_user.id)
        assert [w.id for w in wallets if w.is_default] == [second.id]

    async def test_list_newest_first_regardless_of_default(self, db_session, test_user):
        service = WalletService(db_session)
        oldest = await service.create_wallet(test_user, name="One", wallet_type="cash", is_default=True)
        middle = await service.create_wallet(test_user, name="Two", wallet_type="cash")
        newest = await service.create_wallet(test_user, name="Three", wallet_type="cash")

        now = utcnow()
        for age, wallet in enumerate((newest, middle, oldest)):
            wallet.created_at = now - timedelta(days=age)
        await db_session.flush()

        wallets = await service.list_wallets(test_user.id)
        assert [w.id for w in wallets] == [newest.id, middle.id, oldest.id]

    async def test_update_rejects_unknown_field(self, db_session, test_user, wallet):
        with pytest.raises(ValueError, match="Cannot update fields"):
            await WalletService(db_session).update_wallet(wallet.id, test_user.id, user_id=test_user.id)

    async def test_update_other_users_wallet(self, db_session, other_user, wallet):
        with pytest.raises(NotFoundError):
            await WalletService(db_session).update_wallet(wallet.id, other_user.id, name="Mine now")

    async def test_delete_without_transactions_removes(self, db_session, test_user, wallet):
        service = WalletService(db_session)
        assert await service.delete_wallet(wallet.id, test_user.id) is False
        assert await service.get_wallet(wallet.id, test_user.id) is None

    async def test_delete_with_transactions_deactivates(self, db_session, test_user, wallet, categories):
        await TransactionService(db_session).create_transaction(
            user_id=test_user.id,
            wallet_id=wallet.id,
            transaction_type="expense",
            amount=Decimal("100000"),
            category_id=categories["groceries"].id,
        )

        service = WalletService(db_session)
        assert await service.delete_wallet(wallet.id, test_user.id) is True

        kept = await service.get_wallet(wallet.id, test_user.id)
        assert kept is not None
        assert kept.is_active is False
        assert await service.list_wallets(test_user.id) == []

    async def test_total_balance_excludes_inactive_and_excluded(self, db_session, test_user, wallet):
        service = WalletService(db_session)
        await service.create_wallet(
            test_user, name="Savings", wallet_type="bank_account", balance=Decimal("5000000"), include_in_budget=False
        )
        cash = await service.create_wallet(test_user, name="Cash", wallet_type="cash", balance=Decimal("300000"))

        assert await service.get_total_balance(test_user.id) == Decimal("10300000")

        cash.is_active = False
        await db_session.flush()
        assert await service.get_total_balance(test_user.id) == Decimal("10000000")


@pytest.mark.asyncio
class TestWalletRoutes:
    """Test wallet API endpoints."""

    async def test_create_and_list(self, client: AsyncClient, auth_headers):
        response = await client.post(
            "/api/wallets",
            headers=auth_headers,
            json={"name": "Vietcombank", "wallet_type": "bank_account", "balance": "15000000", "bank_name": "VCB"},
        )
        assert response.status_code == 201
        created = response.json()
        assert created["name"] == "Vietcombank"
        assert Decimal(str(created["balance"])) == Decimal("15000000")

        response = await client.get("/api/wallets", headers=auth_headers)
        assert response.status_code == 200
        data = response.json()
        assert [w["id"] for w in data["wallets"]] == [created["id"]]
        assert Decimal(str(data["total_balance"])) == Decimal("15000000")

    async def test_requires_auth(self, client: AsyncClient):
        response = await client.get("/api/wallets")
        assert response.status_code == 401

    async def test_invalid_payload(self, client: AsyncClient, auth_headers):
        response = await client.post(
            "/api/wallets", headers=auth_headers, json={"name": "Bad", "wallet_type": "bank_account", "color": "blue"}
        )
        assert response.status_code == 400
        assert response.json()["error"] == "Validation error"

    async def test_duplicate_name(self, client: AsyncClient, auth_headers, wallet):
        response = await client.post(
            "/api/wallets", headers=auth_headers, json={"name": "Main Account", "wallet_type": "cash"}
        )
        assert response.status_code == 400

    async def test_limit_exceeded(self, client: AsyncClient, auth_headers, db_session, test_user):
        service = WalletService(db_session)
        for name in ("One", "Two", "Three"):
            await service.create_wallet(test_user, name=name, wallet_type="cash")

        response = await client.post(
            "/api/wallets", headers=auth_headers, json={"name": "Four", "wallet_type": "cash"}
        )
        assert response.status_code == 403
        assert response.json()["detail"]["limit"] == 3

    async def test_other_user_gets_404(self, client: AsyncClient, other_headers, wallet):
        response = await client.get(f"/api/wallets/{wallet.id}", headers=other_headers)
        assert response.status_code == 404

    async def test_update(self, client: AsyncClient, auth_headers, wallet):
        response = await client.put(
            f"/api/wallets/{wallet.id}", headers=auth_headers, json={"name": "Salary Account", "color": "#10B981"}
        )
        assert response.status_code == 200
        assert response.json()["name"] == "Salary Account"

    async def test_delete(self, client: AsyncClient, auth_headers, wallet):
        response = await client.delete(f"/api/wallets/{wallet.id}", headers=auth_headers)
        assert response.status_code == 200
        assert response.json()["soft_deleted"] is False

    @pytest.mark.parametrize("field", ["name", "balance", "currency", "is_default", "include_in_budget"])
    async def test_update_rejects_null(self, client: AsyncClient, auth_headers, wallet, field):
        response = await client.put(f"/api/wallets/{wallet.id}", headers=auth_headers, json={field: None})
        assert response.status_code == 400

        response = await client.get(f"/api/wallets/{wallet.id}", headers=auth_headers)
        assert Decimal(str(response.json()["balance"])) == Decimal("10000000")
