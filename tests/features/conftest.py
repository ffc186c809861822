"""Fixtures for BDD feature tests.

Step functions are synchronous and drive coroutines with ``asyncio.run``, so
the database engine uses ``NullPool`` to avoid sharing connections between
event loops.
"""

from __future__ import annotations

import asyncio
import typing as typ

import pytest
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import NullPool

from rpulse.store.storage import init_storage

if typ.TYPE_CHECKING:
    from pathlib import Path


@pytest.fixture
def sync_session_factory(
    tmp_path: Path,
) -> typ.Iterator[async_sessionmaker[AsyncSession]]:
    """Yield a session factory usable from separate ``asyncio.run`` calls."""
    engine = create_async_engine(
        f"sqlite+aiosqlite:///{tmp_path / 'rpulse_feature.db'}", poolclass=NullPool
    )
    asyncio.run(init_storage(engine, include_rollups=True))
    try:
        yield async_sessionmaker(engine, expire_on_commit=False)
    finally:
        asyncio.run(engine.dispose())
