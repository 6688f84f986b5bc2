"""
Pytest configuration and fixtures for backend tests.
"""

import os

# Settings are read at import time, so the test environment must be in place first
TEST_ENCRYPTION_KEY = "0123456789abcdef" * 4
os.environ["ENCRYPTION_KEY"] = TEST_ENCRYPTION_KEY
os.environ["DATABASE_URL"] = "sqlite+aiosqlite:///:memory:"
os.environ["SECRET_KEY"] = "test-secret-key"
os.environ["BCRYPT_ROUNDS"] = "4"
os.environ["LOG_FILE"] = ""
os.environ["LOG_LEVEL"] = "WARNING"
os.environ.pop("POLICY_ENGINE_TOKEN", None)

import pytest
from typing import AsyncGenerator
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine, async_sessionmaker
from sqlalchemy.pool import StaticPool

from main import app
from app.core.database import Base, get_db
from app.core.rate_limit import limiter
from app.models.user import User
from app.services.policy_gate import PolicyGate, get_policy_gate
from app.services.secret_cipher import SecretCipher, get_secret_cipher
from tests.factories import auth_headers_for, create_test_organization, create_test_user


# Test database URL (in-memory SQLite for testing)
TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"


@pytest.fixture
async def test_engine():
    """Fresh in-memory database per test."""
    engine = create_async_engine(
        TEST_DATABASE_URL,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    await engine.dispose()


@pytest.fixture
async def db_session(test_engine) -> AsyncGenerator[AsyncSession, None]:
    """Create a test database session."""
    session_factory = async_sessionmaker(test_engine, class_=AsyncSession, expire_on_commit=False)
    async with session_factory() as session:
        yield session


@pytest.fixture
def cipher() -> SecretCipher:
    return SecretCipher(TEST_ENCRYPTION_KEY)


@pytest.fixture
async def client(db_session: AsyncSession, cipher: SecretCipher) -> AsyncGenerator[AsyncClient, None]:
    """HTTP client bound to the app with the test database and cipher."""
    async def override_get_db():
        yield db_session

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_secret_cipher] = lambda: cipher
    app.dependency_overrides[get_policy_gate] = lambda: PolicyGate(token="")
    limiter.enabled = False

    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as test_client:
        yield test_client

    app.dependency_overrides.clear()
    limiter.enabled = True


@pytest.fixture
async def organization(db_session: AsyncSession):
    return await create_test_organization(db_session, name="Acme", slug="acme", org_code="ACME2024")


@pytest.fixture
async def other_organization(db_session: AsyncSession):
    return await create_test_organization(db_session, name="Globex", slug="globex", org_code="GLOBEX01")


@pytest.fixture
async def test_user(db_session: AsyncSession, organization) -> User:
    """Create a test user."""
    return await create_test_user(db_session, email="test@example.com", org=organization)


@pytest.fixture
async def admin_user(db_session: AsyncSession, organization) -> User:
    """Create an admin test user."""
    return await create_test_user(db_session, email="admin@example.com", role="admin", org=organization)


@pytest.fixture
async def super_admin_user(db_session: AsyncSession, organization) -> User:
    return await create_test_user(db_session, email="super@example.com", role="super_admin", org=organization)


@pytest.fixture
async def god_user(db_session: AsyncSession) -> User:
    return await create_test_user(db_session, email="god@example.com", role="god")


@pytest.fixture
def auth_headers(test_user: User) -> dict:
    """Get authentication headers for test user."""
    return auth_headers_for(test_user)


@pytest.fixture
def admin_headers(admin_user: User) -> dict:
    """Get authentication headers for admin user."""
    return auth_headers_for(admin_user)


@pytest.fixture
def super_admin_headers(super_admin_user: User) -> dict:
    return auth_headers_for(super_admin_user)


@pytest.fixture
def god_headers(god_user: User) -> dict:
    return auth_headers_for(god_user)
