"""Unit tests for request-scoped transaction management."""

from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from labadmin.db.session import _prepare_asyncpg_url, get_db


def _session_factory() -> tuple[MagicMock, AsyncMock]:
    session = AsyncMock()
    factory = MagicMock()
    factory.return_value.__aenter__.return_value = session
    factory.return_value.__aexit__.return_value = False
    return factory, session


class TestGetDbDependency:
    """Test get_db() commits or rolls back the request transaction."""

    @pytest.mark.asyncio
    async def test_commits_when_handler_returns(self):
        factory, session = _session_factory()

        with patch("labadmin.db.session.AsyncSessionLocal", factory):
            gen = get_db()
            assert await gen.__anext__() is session
            with pytest.raises(StopAsyncIteration):
                await gen.__anext__()

        session.commit.assert_awaited_once()
        session.rollback.assert_not_awaited()
        session.close.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_rolls_back_when_handler_raises(self):
        factory, session = _session_factory()

        with patch("labadmin.db.session.AsyncSessionLocal", factory):
            gen = get_db()
            await gen.__anext__()
            with pytest.raises(ValueError):
                await gen.athrow(ValueError("boom"))

        session.rollback.assert_awaited_once()
        session.commit.assert_not_awaited()
        session.close.assert_awaited_once()


class TestPrepareAsyncpgUrl:
    def test_sslmode_becomes_connect_arg(self):
        url, connect_args = _prepare_asyncpg_url(
            "postgresql+asyncpg://u:p@db.example.com/lab?sslmode=require&channel_binding=require"
        )

        assert url == "postgresql+asyncpg://u:p@db.example.com/lab"
        assert connect_args == {"ssl": "require"}

    def test_plain_url_is_unchanged(self):
        url, connect_args = _prepare_asyncpg_url("postgresql+asyncpg://u:p@localhost/lab")

        assert url == "postgresql+asyncpg://u:p@localhost/lab"
        assert connect_args == {}
