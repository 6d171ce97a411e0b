"""Tests for the database engine, session management and store error translation."""

from unittest.mock import AsyncMock

import pytest
from sqlalchemy.exc import DBAPIError, IntegrityError, OperationalError
from sqlalchemy.exc import TimeoutError as PoolTimeoutError

import account_api.core.database as db_module
from account_api.core.database import dispose_engine, get_engine, get_session_factory, init_engine, store_errors
from account_api.core.errors import TransientStoreError


class TestGetEngine:
    """Tests for get_engine."""

    def test_raises_when_not_initialized(self) -> None:
        original_engine = db_module._engine
        db_module._engine = None
        try:
            with pytest.raises(RuntimeError, match="Database engine not initialized"):
                get_engine()
        finally:
            db_module._engine = original_engine

    @pytest.mark.asyncio
    async def test_returns_engine_when_initialized(self) -> None:
        engine = init_engine("sqlite+aiosqlite:///:memory:")
        try:
            assert get_engine() is engine
        finally:
            await dispose_engine()


class TestGetSessionFactory:
    """Tests for get_session_factory."""

    def test_raises_when_not_initialized(self) -> None:
        original_factory = db_module._session_factory
        db_module._session_factory = None
        try:
            with pytest.raises(RuntimeError, match="Session factory not initialized"):
                get_session_factory()
        finally:
            db_module._session_factory = original_factory


class TestInitEngine:
    """Tests for init_engine."""

    @pytest.mark.asyncio
    async def test_creates_engine_and_factory(self) -> None:
        engine = init_engine("sqlite+aiosqlite:///:memory:", pool_timeout=3.0)
        try:
            assert engine is not None
            assert get_session_factory() is not None
        finally:
            await dispose_engine()

    @pytest.mark.asyncio
    async def test_dispose_clears_state(self) -> None:
        init_engine("sqlite+aiosqlite:///:memory:")
        await dispose_engine()
        assert db_module._engine is None
        assert db_module._session_factory is None


class TestStoreErrors:
    """Tests for store_errors."""

    @pytest.mark.asyncio
    async def test_passes_through_on_success(self) -> None:
        session = AsyncMock()
        async with store_errors(session) as inner:
            assert inner is session
        session.rollback.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_operational_error_becomes_transient(self) -> None:
        session = AsyncMock()
        with pytest.raises(TransientStoreError):
            async with store_errors(session):
                raise OperationalError("SELECT 1", {}, Exception("connection refused"))
        session.rollback.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_pool_timeout_becomes_transient(self) -> None:
        session = AsyncMock()
        with pytest.raises(TransientStoreError) as exc_info:
            async with store_errors(session):
                raise PoolTimeoutError("QueuePool limit reached")
        assert exc_info.value.status_code == 503

    @pytest.mark.asyncio
    async def test_invalidated_connection_becomes_transient(self) -> None:
        session = AsyncMock()
        with pytest.raises(TransientStoreError):
            async with store_errors(session):
                raise DBAPIError("SELECT 1", {}, Exception("reset"), connection_invalidated=True)

    @pytest.mark.asyncio
    async def test_integrity_error_propagates_unchanged(self) -> None:
        session = AsyncMock()
        with pytest.raises(IntegrityError):
            async with store_errors(session):
                raise IntegrityError("INSERT", {}, Exception("UNIQUE constraint failed"))
        session.rollback.assert_not_awaited()
