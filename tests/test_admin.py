"""Tests for the admin back-office endpoints."""

import pytest
from httpx import AsyncClient
from sqlalchemy import select

from finhome.models.subscription import Subscription


@pytest.mark.asyncio
class TestAdminRoutes:
    """Test user management and system status."""

    async def test_non_admin_is_forbidden(self, client: AsyncClient, auth_headers):
        for path in ("/api/admin/users", "/api/admin/status"):
            response = await client.get(path, headers=auth_headers)
            assert response.status_code == 403

    async def test_list_users(self, client: AsyncClient, admin_headers, test_user, other_user):
        response = await client.get("/api/admin/users", headers=admin_headers, params={"limit": 2})

        assert response.status_code == 200
        data = response.json()
        assert data["pagination"]["total"] == 3
        assert data["pagination"]["has_more"] is True
        assert len(data["items"]) == 2

    async def test_search_users(self, client: AsyncClient, admin_headers, test_user, other_user):
        response = await client.get("/api/admin/users", headers=admin_headers, params={"search": "OTHER"})

        assert response.status_code == 200
        emails = [u["email"] for u in response.json()["items"]]
        assert emails == ["other@example.com"]

    async def test_upgrade_tier(self, client: AsyncClient, admin_headers, db_session, test_user):
        response = await client.patch(
            f"/api/admin/users/{test_user.id}", headers=admin_headers, json={"subscription_tier": "premium"}
        )

        assert response.status_code == 200
        assert response.json()["subscription_tier"] == "premium"

        result = await db_session.execute(select(Subscription).where(Subscription.user_id == test_user.id))
        assert result.scalar_one().tier == "premium"

    async def test_deactivated_user_loses_access(
        self, client: AsyncClient, admin_headers, auth_headers, test_user
    ):
        response = await client.patch(
            f"/api/admin/users/{test_user.id}", headers=admin_headers, json={"is_active": False}
        )
        assert response.status_code == 200

        response = await client.get("/api/auth/me", headers=auth_headers)
        assert response.status_code == 403

    async def test_admin_cannot_demote_self(self, client: AsyncClient, admin_headers, admin_user):
        response = await client.patch(
            f"/api/admin/users/{admin_user.id}", headers=admin_headers, json={"is_admin": False}
        )
        assert response.status_code == 400

        response = await client.patch(
            f"/api/admin/users/{admin_user.id}", headers=admin_headers, json={"is_active": False}
        )
        assert response.status_code == 400

    async def test_unknown_user(self, client: AsyncClient, admin_headers):
        response = await client.patch(
            "/api/admin/users/00000000-0000-0000-0000-000000000000",
            headers=admin_headers,
            json={"is_active": False},
        )
        assert response.status_code == 404

    async def test_system_status(self, client: AsyncClient, admin_headers, test_user):
        response = await client.get("/api/admin/status", headers=admin_headers)

        assert response.status_code == 200
        data = response.json()
        assert data["counts"]["users"] == 2
        assert data["counts"]["premium_users"] == 1
        assert data["services"]["database"]["status"] == "healthy"
        assert data["services"]["redis"]["status"] == "not_configured"
