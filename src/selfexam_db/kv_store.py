"""SqlKeyValueStore — ``KeyValueStore`` backed by the ``kv_entries`` table.

Each call opens its own short session and commits on success, so the
history store's background writes are independent transactions.  The table
is created on first use; there is only one and it never changes shape.
"""

from __future__ import annotations

import asyncio
import logging

from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker

from selfexam_db.engine import get_engine, get_session_factory
from selfexam_db.models.base import Base
from selfexam_db.repository import KeyValueRepository
from selfexam_rulesets.interfaces import KeyValueStore

logger = logging.getLogger(__name__)


class SqlKeyValueStore(KeyValueStore):
    """Async SQL persistence for string values.

    Args:
        engine: engine to use; defaults to the process-wide singleton
    """

    def __init__(self, engine: AsyncEngine | None = None) -> None:
        self._engine = engine
        self._factory: async_sessionmaker[AsyncSession] | None = None
        self._repo = KeyValueRepository()
        self._ready = False
        self._init_lock = asyncio.Lock()

    async def _session_factory(self) -> async_sessionmaker[AsyncSession]:
        """Create the table once, then hand out the session factory."""
        if self._factory is not None and self._ready:
            return self._factory
        async with self._init_lock:
            if not self._ready:
                engine = self._engine or get_engine()
                async with engine.begin() as conn:
                    await conn.run_sync(Base.metadata.create_all)
                if self._engine is None:
                    self._factory = get_session_factory()
                else:
                    self._factory = async_sessionmaker(
                        bind=engine,
                        class_=AsyncSession,
                        expire_on_commit=False,
                    )
                self._ready = True
                logger.info("kv_entries table ready")
        return self._factory

    async def get(self, key: str) -> str | None:
        factory = await self._session_factory()
        async with factory() as session:
            entry = await self._repo.get(session, key)
            return entry.value if entry is not None else None

    async def set(self, key: str, value: str) -> None:
        factory = await self._session_factory()
        async with factory() as session:
            try:
                await self._repo.upsert(session, key, value)
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    async def delete(self, key: str) -> None:
        factory = await self._session_factory()
        async with factory() as session:
            try:
                await self._repo.delete(session, key)
                await session.commit()
            except Exception:
                await session.rollback()
                raise
