"""Shared fixtures for unit and feature tests."""

from __future__ import annotations

import datetime as dt
import typing as typ

import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from rpulse.store.storage import init_storage

if typ.TYPE_CHECKING:
    from pathlib import Path

FIXED_NOW = dt.datetime(2025, 3, 24, 12, 0, tzinfo=dt.UTC)


async def _setup_sqlite(tmp_path: Path) -> AsyncEngine:
    """Create a SQLite engine with every table, rollups included."""
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'rpulse_test.db'}")
    try:
        await init_storage(engine, include_rollups=True)
    except Exception:
        await engine.dispose()
        raise
    return engine


@pytest_asyncio.fixture
async def session_factory(
    tmp_path: Path,
) -> typ.AsyncIterator[async_sessionmaker[AsyncSession]]:
    """Yield a fresh async session factory backed by sqlite."""
    engine = await _setup_sqlite(tmp_path)
    factory = async_sessionmaker(engine, expire_on_commit=False)
    try:
        yield factory
    finally:
        await engine.dispose()


@pytest.fixture
def fixed_clock() -> typ.Callable[[], dt.datetime]:
    """Return a clock frozen at 2025-03-24T12:00:00Z."""
    return lambda: FIXED_NOW
