"""Async CRUD repository for KeyValueEntry.

All public methods accept an ``AsyncSession`` so the caller controls
transaction boundaries; methods ``flush()`` but never ``commit()``.
"""

from datetime import datetime, timezone

from sqlalchemy import delete
from sqlalchemy.ext.asyncio import AsyncSession

from selfexam_db.models.kv import KeyValueEntry


class KeyValueRepository:
    """Async read/write operations on the ``kv_entries`` table."""

    async def get(self, db: AsyncSession, key: str) -> KeyValueEntry | None:
        """Fetch the entry for ``key``, if any."""
        return await db.get(KeyValueEntry, key)

    async def upsert(self, db: AsyncSession, key: str, value: str) -> KeyValueEntry:
        """Insert or replace the value stored under ``key``.

        The caller must ``await db.commit()`` to persist.
        """
        entry = await db.get(KeyValueEntry, key)
        if entry is None:
            entry = KeyValueEntry(key=key, value=value)
            db.add(entry)
        else:
            entry.value = value
            entry.updated_at = datetime.now(timezone.utc)
        await db.flush()
        return entry

    async def delete(self, db: AsyncSession, key: str) -> int:
        """Delete the entry for ``key``; returns the number of rows removed."""
        result = await db.execute(delete(KeyValueEntry).where(KeyValueEntry.key == key))
        await db.flush()
        return result.rowcount or 0
