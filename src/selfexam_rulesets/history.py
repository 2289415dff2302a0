"""HistoryStore — append-only, most-recent-first list of assessment records.

The in-memory list is the source of truth for the UI.  Persistence is a
best-effort mirror in a :class:`KeyValueStore`:

  - ``load()`` reads the stored JSON list once; any read, decode or
    validation failure leaves the in-memory list untouched, so a failed load
    looks exactly like "no history yet".
  - ``append()`` prepends synchronously and schedules a background write of
    the *whole* list.  Writes are serialised by a lock, so concurrent appends
    in the same tick cannot lose updates; a failed write is logged and
    swallowed and never rolls back the prepend.

Failures are logged by exception type only; record contents are health data
and never reach the log.
"""

from __future__ import annotations

import asyncio
import json
import logging
from datetime import datetime

from pydantic import TypeAdapter, ValidationError

from selfexam_rulesets.interfaces import KeyValueStore
from selfexam_rulesets.models.result import AssessmentRecord, RiskAssessmentResult

logger = logging.getLogger(__name__)

_RECORDS_ADAPTER = TypeAdapter(list[AssessmentRecord])


class HistoryStore:
    """Most-recent-first list of :class:`AssessmentRecord` mirrored to storage.

    Args:
        kv: persistence backend
        key: storage key holding the serialised list
    """

    def __init__(self, kv: KeyValueStore, key: str) -> None:
        self._kv = kv
        self._key = key
        self._records: list[AssessmentRecord] = []
        self._loaded = False
        self._write_lock = asyncio.Lock()
        # Strong references so pending writes are not garbage-collected
        self._pending: set[asyncio.Task] = set()

    # ------------------------------------------------------------------
    # Read accessors
    # ------------------------------------------------------------------

    @property
    def key(self) -> str:
        return self._key

    @property
    def records(self) -> list[AssessmentRecord]:
        """Copy of the history, most recent first."""
        return list(self._records)

    @property
    def latest(self) -> AssessmentRecord | None:
        return self._records[0] if self._records else None

    @property
    def last_date(self) -> datetime | None:
        """Timestamp of the most recent record, if any."""
        return self._records[0].timestamp if self._records else None

    @property
    def last_result(self) -> RiskAssessmentResult | None:
        return self._records[0].result if self._records else None

    @property
    def is_loaded(self) -> bool:
        return self._loaded

    def __len__(self) -> int:
        return len(self._records)

    # ------------------------------------------------------------------
    # Loading
    # ------------------------------------------------------------------

    async def load(self, *, force: bool = False) -> None:
        """Read the persisted list into memory (once, unless ``force``).

        Never raises.  On failure the in-memory list keeps its prior value.
        """
        if self._loaded and not force:
            return
        self._loaded = True

        try:
            raw = await self._kv.get(self._key)
        except Exception as exc:
            logger.warning("History load failed for %s: %s", self._key, type(exc).__name__)
            return

        if not raw:
            return

        try:
            records = _RECORDS_ADAPTER.validate_python(json.loads(raw))
        except (json.JSONDecodeError, ValidationError, TypeError) as exc:
            logger.warning("Discarding unreadable history %s: %s", self._key, type(exc).__name__)
            return

        self._records = records
        logger.info("Loaded %d records from %s", len(records), self._key)

    # ------------------------------------------------------------------
    # Writing
    # ------------------------------------------------------------------

    def append(self, record: AssessmentRecord) -> asyncio.Task | None:
        """Prepend ``record`` and schedule a background write.

        Returns the write task when an event loop is running, else None (the
        caller can ``await persist()`` later).  The prepend is visible
        immediately; the write may still be in flight.
        """
        self._records.insert(0, record)
        return self._schedule_persist()

    async def clear(self) -> None:
        """Drop every record and persist the empty list."""
        self._records = []
        await self.persist()

    async def persist(self) -> bool:
        """Serialise the full list to storage.

        Writes are ordered by the lock and each one serialises the list as it
        stands when the lock is acquired, so the last write always carries
        the newest state.  Returns False if the write failed (already logged).
        """
        async with self._write_lock:
            payload = json.dumps(
                _RECORDS_ADAPTER.dump_python(self._records, mode="json"),
                ensure_ascii=False,
            )
            try:
                await self._kv.set(self._key, payload)
            except Exception as exc:
                logger.warning("History write failed for %s: %s", self._key, type(exc).__name__)
                return False
            return True

    async def flush(self) -> None:
        """Wait for every scheduled write to settle."""
        while self._pending:
            await asyncio.gather(*list(self._pending), return_exceptions=True)

    def _schedule_persist(self) -> asyncio.Task | None:
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            logger.debug("No running event loop; %s write deferred", self._key)
            return None

        task = loop.create_task(self.persist())
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)
        return task
