"""In-memory key-value store.

Used by tests and by ephemeral runs (e.g. ``scripts/simulate_exam.py``)
where nothing should outlive the process.  The SQL-backed store lives in
``selfexam_db``.
"""

from __future__ import annotations

from selfexam_rulesets.interfaces import KeyValueStore


class MemoryKeyValueStore(KeyValueStore):
    """Dict-backed :class:`KeyValueStore`."""

    def __init__(self, initial: dict[str, str] | None = None) -> None:
        self._data: dict[str, str] = dict(initial or {})

    async def get(self, key: str) -> str | None:
        return self._data.get(key)

    async def set(self, key: str, value: str) -> None:
        self._data[key] = value

    async def delete(self, key: str) -> None:
        self._data.pop(key, None)

    def __contains__(self, key: object) -> bool:
        return key in self._data
