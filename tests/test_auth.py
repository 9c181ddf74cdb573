"""Tests for authentication service and endpoints."""

from datetime import timedelta
from unittest.mock import AsyncMock, patch
from uuid import uuid4

import pytest
from httpx import AsyncClient

from finhome.cache import cache_manager
from finhome.services.auth_service import AuthService, PasswordValidationError, TokenError

TEST_PASSWORD = "TestPassword123!@#"


class TestPasswordRules:
    """Test password validation and hashing."""

    def setup_method(self):
        self.auth_service = AuthService(None)

    @pytest.mark.parametrize(
        "password,message",
        [
            ("Short1!", "at least 12"),
            ("alllowercase123!", "uppercase"),
            ("ALLUPPERCASE123!", "lowercase"),
            ("NoDigitsHere!!ab", "number"),
            ("NoSpecials12345a", "special"),
        ],
    )
    def test_weak_passwords(self, password, message):
        with pytest.raises(PasswordValidationError, match=message):
            self.auth_service.validate_password(password)

    def test_strong_password(self):
        self.auth_service.validate_password(TEST_PASSWORD)

    def test_hash_and_verify(self):
        hashed = self.auth_service.hash_password(TEST_PASSWORD)

        assert hashed != TEST_PASSWORD
        assert self.auth_service.verify_password(TEST_PASSWORD, hashed)
        assert not self.auth_service.verify_password("WrongPassword123!", hashed)


class TestTokens:
    """Test JWT creation and verification."""

    def setup_method(self):
        self.auth_service = AuthService(None)

    def test_access_token_round_trip(self):
        user_id = uuid4()
        token = self.auth_service.create_access_token(user_id)
        assert self.auth_service.verify_token(token) == user_id

    def test_refresh_token_is_not_an_access_token(self):
        token = self.auth_service.create_refresh_token(uuid4())
        with pytest.raises(TokenError, match="Invalid token type"):
            self.auth_service.verify_token(token, token_type="access")

    def test_expired_token(self):
        token = self.auth_service.create_access_token(uuid4(), expires_delta=timedelta(seconds=-1))
        with pytest.raises(TokenError):
            self.auth_service.verify_token(token)

    def test_garbage_token(self):
        with pytest.raises(TokenError):
            self.auth_service.verify_token("not-a-jwt")


@pytest.mark.asyncio
class TestAuthRoutes:
    """Test authentication endpoints."""

    async def test_register(self, client: AsyncClient, db_session):
        response = await client.post(
            "/api/auth/register",
            json={"email": "New.User@example.com", "password": TEST_PASSWORD, "full_name": "New User"},
        )

        assert response.status_code == 201
        data = response.json()
        assert data["user"]["email"] == "new.user@example.com"
        assert data["user"]["subscription_tier"] == "free"
        assert data["user"]["preferred_currency"] == "VND"
        assert data["tokens"]["token_type"] == "bearer"

    async def test_register_duplicate_email(self, client: AsyncClient, test_user):
        response = await client.post(
            "/api/auth/register", json={"email": "test@example.com", "password": TEST_PASSWORD}
        )
        assert response.status_code == 400
        assert "already exists" in response.json()["detail"]

    async def test_register_weak_password(self, client: AsyncClient):
        response = await client.post(
            "/api/auth/register", json={"email": "weak@example.com", "password": "weakpassword1"}
        )
        assert response.status_code == 400

    async def test_login(self, client: AsyncClient, test_user):
        response = await client.post(
            "/api/auth/login", json={"email": "test@example.com", "password": TEST_PASSWORD}
        )

        assert response.status_code == 200
        assert response.json()["user"]["id"] == str(test_user.id)

    async def test_login_wrong_password(self, client: AsyncClient, test_user):
        response = await client.post(
            "/api/auth/login", json={"email": "test@example.com", "password": "WrongPassword123!"}
        )
        assert response.status_code == 401

    async def test_login_inactive_account(self, client: AsyncClient, db_session, test_user):
        test_user.is_active = False
        await db_session.flush()

        response = await client.post(
            "/api/auth/login", json={"email": "test@example.com", "password": TEST_PASSWORD}
        )
        assert response.status_code == 401
        assert response.json()["detail"] == "Account is deactivated"

    async def test_refresh(self, client: AsyncClient, test_user):
        refresh_token = AuthService(None).create_refresh_token(test_user.id)

        response = await client.post("/api/auth/refresh", json={"refresh_token": refresh_token})

        assert response.status_code == 200
        assert response.json()["access_token"]

    async def test_refresh_with_access_token(self, client: AsyncClient, test_user):
        access_token = AuthService(None).create_access_token(test_user.id)
        response = await client.post("/api/auth/refresh", json={"refresh_token": access_token})
        assert response.status_code == 401

    async def test_me(self, client: AsyncClient, auth_headers, test_user):
        response = await client.get("/api/auth/me", headers=auth_headers)

        assert response.status_code == 200
        assert response.json()["email"] == test_user.email

    async def test_me_without_token(self, client: AsyncClient):
        response = await client.get("/api/auth/me")
        assert response.status_code == 401

    async def test_update_profile(self, client: AsyncClient, auth_headers):
        response = await client.put(
            "/api/auth/profile", headers=auth_headers, json={"full_name": "Renamed", "preferred_currency": "USD"}
        )

        assert response.status_code == 200
        assert response.json()["full_name"] == "Renamed"
        assert response.json()["preferred_currency"] == "USD"

    async def test_change_password(self, client: AsyncClient, auth_headers):
        new_password = "AnotherPassword456$%"
        response = await client.post(
            "/api/auth/change-password",
            headers=auth_headers,
            json={"current_password": TEST_PASSWORD, "new_password": new_password},
        )
        assert response.status_code == 200

        response = await client.post(
            "/api/auth/login", json={"email": "test@example.com", "password": new_password}
        )
        assert response.status_code == 200

    async def test_change_password_wrong_current(self, client: AsyncClient, auth_headers):
        response = await client.post(
            "/api/auth/change-password",
            headers=auth_headers,
            json={"current_password": "WrongPassword123!", "new_password": "AnotherPassword456$%"},
        )
        assert response.status_code == 401

    async def test_logout_revokes_token(self, client: AsyncClient, auth_headers):
        revoked = {}

        async def fake_set(key, value, expire=None):
            revoked[key] = value
            return True

        async def fake_get(key):
            return revoked.get(key)

        with patch.object(cache_manager, "set", AsyncMock(side_effect=fake_set)), patch.object(
            cache_manager, "get", AsyncMock(side_effect=fake_get)
        ):
            response = await client.post("/api/auth/logout", headers=auth_headers)
            assert response.status_code == 200

            response = await client.get("/api/auth/me", headers=auth_headers)
            assert response.status_code == 401
            assert response.json()["detail"] == "Token has been revoked"
