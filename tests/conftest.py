"""Shared test fixtures for async database, sessions, HTTP client, users and tokens."""

from collections.abc import AsyncGenerator, Awaitable, Callable
from unittest.mock import patch

import pytest
from fastapi import FastAPI
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine

from account_api.core.config import Settings, get_settings
from account_api.core.dependencies import get_async_session
from account_api.core.security import hash_password
from account_api.models.base import Base
from account_api.models.user import User, UserRole
from account_api.services import token_service

DEFAULT_PASSWORD = "password123"


@pytest.fixture
def settings() -> Settings:
    """Test application settings."""
    return Settings(
        database_url="sqlite+aiosqlite:///:memory:",
        rate_limit_per_minute=10_000,
    )


@pytest.fixture
async def async_engine(settings: Settings) -> AsyncGenerator[AsyncEngine]:
    """Create an in-memory async SQLite engine for testing."""
    engine = create_async_engine("sqlite+aiosqlite:///:memory:", echo=False)

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)

    await engine.dispose()


@pytest.fixture
async def async_session(async_engine: AsyncEngine) -> AsyncGenerator[AsyncSession]:
    """Create a per-test async session."""
    session_factory = async_sessionmaker(async_engine, expire_on_commit=False)
    async with session_factory() as session:
        yield session


@pytest.fixture
def make_user(async_session: AsyncSession) -> Callable[..., Awaitable[User]]:
    """Factory persisting a user with a bcrypt-hashed password."""

    async def _make_user(
        email: str,
        *,
        first_name: str = "Test",
        last_name: str = "User",
        role: UserRole = UserRole.USER,
        password: str = DEFAULT_PASSWORD,
    ) -> User:
        user = User(
            first_name=first_name,
            last_name=last_name,
            email=email,
            password_hash=hash_password(password),
            role=role.value,
        )
        async_session.add(user)
        await async_session.commit()
        await async_session.refresh(user)
        return user

    return _make_user


@pytest.fixture
async def admin_user(make_user: Callable[..., Awaitable[User]]) -> User:
    """An admin account."""
    return await make_user("admin@example.com", first_name="Ada", last_name="Admin", role=UserRole.ADMIN)


@pytest.fixture
async def regular_user(make_user: Callable[..., Awaitable[User]]) -> User:
    """A non-admin account."""
    return await make_user("jane@example.com", first_name="Jane", last_name="Doe")


@pytest.fixture
async def admin_token(async_session: AsyncSession, admin_user: User) -> str:
    """A live bearer token for the admin account."""
    token = await token_service.issue(async_session, admin_user.id)
    await async_session.commit()
    return token


@pytest.fixture
async def user_token(async_session: AsyncSession, regular_user: User) -> str:
    """A live bearer token for the non-admin account."""
    token = await token_service.issue(async_session, regular_user.id)
    await async_session.commit()
    return token


@pytest.fixture
def app(settings: Settings, async_session: AsyncSession) -> FastAPI:
    """The full application wired to the in-memory test database."""
    from account_api.main import create_app

    with patch("account_api.main.get_settings", return_value=settings):
        app = create_app()
    app.dependency_overrides[get_async_session] = lambda: async_session
    app.dependency_overrides[get_settings] = lambda: settings
    return app


@pytest.fixture
def client(app: FastAPI) -> AsyncClient:
    """Create an async test client."""
    return AsyncClient(transport=ASGITransport(app=app), base_url="http://test", follow_redirects=False)
