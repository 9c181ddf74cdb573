"""Pytest configuration and fixtures."""

import os

# Settings are read at import time, so the environment must be ready first
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")
os.environ.setdefault("RATE_LIMIT_ENABLED", "false")
os.environ.setdefault("SECRET_KEY", "test-secret-key")

from decimal import Decimal  # noqa: E402
from typing import AsyncGenerator  # noqa: E402

import pytest  # noqa: E402
from httpx import ASGITransport, AsyncClient  # noqa: E402
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine  # noqa: E402
from sqlalchemy.pool import StaticPool  # noqa: E402

import finhome.models  # noqa: E402,F401
from finhome.database import enable_sqlite_savepoints, get_db  # noqa: E402
from finhome.main import app  # noqa: E402
from finhome.models.base import Base  # noqa: E402

TEST_DATABASE_URL = "sqlite+aiosqlite://"
TEST_PASSWORD = "TestPassword123!@#"


@pytest.fixture(scope="function")
async def test_engine():
    """Fresh in-memory database for each test."""
    engine = create_async_engine(
        TEST_DATABASE_URL,
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    enable_sqlite_savepoints(engine)

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    await engine.dispose()


@pytest.fixture(scope="function")
async def db_session(test_engine) -> AsyncGenerator[AsyncSession, None]:
    """Create a database session for each test."""
    session_factory = async_sessionmaker(
        test_engine, class_=AsyncSession, expire_on_commit=False, autoflush=False
    )
    async with session_factory() as session:
        yield session


@pytest.fixture(scope="function")
async def client(db_session: AsyncSession) -> AsyncGenerator[AsyncClient, None]:
    """Create test client with database session override."""

    async def override_get_db() -> AsyncGenerator[AsyncSession, None]:
        yield db_session

    app.dependency_overrides[get_db] = override_get_db

    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as test_client:
        yield test_client

    app.dependency_overrides.clear()


@pytest.fixture
async def categories(db_session: AsyncSession) -> dict:
    """Seed system categories and index them by key."""
    from finhome.models.category import Category
    from finhome.services.category_service import seed_default_categories
    from sqlalchemy import select

    await seed_default_categories(db_session)
    await db_session.flush()
    result = await db_session.execute(select(Category).where(Category.user_id.is_(None)))
    return {c.category_key: c for c in result.scalars().all()}


async def _make_user(db_session: AsyncSession, email: str, **fields):
    from finhome.models.subscription import Subscription
    from finhome.models.user import User
    from finhome.services.auth_service import AuthService

    auth_service = AuthService(db_session)
    user = User(email=email, password_hash=auth_service.hash_password(TEST_PASSWORD), **fields)
    db_session.add(user)
    await db_session.flush()
    db_session.add(Subscription(user_id=user.id, tier=user.subscription_tier or "free", status="active"))
    await db_session.flush()
    await db_session.refresh(user)
    return user


@pytest.fixture
async def test_user(db_session: AsyncSession):
    """Create a free tier test user."""
    return await _make_user(db_session, "test@example.com", full_name="Test User")


@pytest.fixture
async def other_user(db_session: AsyncSession):
    """A second user for ownership checks."""
    return await _make_user(db_session, "other@example.com", full_name="Other User")


@pytest.fixture
async def admin_user(db_session: AsyncSession):
    """Create an admin user."""
    return await _make_user(
        db_session, "admin@example.com", full_name="Admin", is_admin=True, subscription_tier="professional"
    )


def headers_for(user) -> dict:
    from finhome.services.auth_service import AuthService

    access_token = AuthService(None).create_access_token(user.id)
    return {"Authorization": f"Bearer {access_token}"}


@pytest.fixture
async def auth_headers(test_user):
    """Create authentication headers for test user."""
    return headers_for(test_user)


@pytest.fixture
async def other_headers(other_user):
    return headers_for(other_user)


@pytest.fixture
async def admin_headers(admin_user):
    return headers_for(admin_user)


@pytest.fixture
async def wallet(db_session: AsyncSession, test_user):
    """Bank account with a starting balance of 10,000,000 VND."""
    from finhome.services.wallet_service import WalletService

    return await WalletService(db_session).create_wallet(
        test_user, name="Main Account", wallet_type="bank_account", balance=Decimal("10000000")
    )
