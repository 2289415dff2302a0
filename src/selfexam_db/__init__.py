"""selfexam_db — SQL persistence layer for assessment history.

This package provides the ORM model, async engine factory, repository and
the :class:`SqlKeyValueStore` that plugs into ``selfexam_rulesets`` as a
``KeyValueStore``.  It is consumed by the FastAPI server.
"""

from selfexam_db.engine import dispose_engine, get_engine, get_session_factory
from selfexam_db.kv_store import SqlKeyValueStore
from selfexam_db.models.kv import KeyValueEntry
from selfexam_db.repository import KeyValueRepository

__all__ = [
    "KeyValueEntry",
    "KeyValueRepository",
    "SqlKeyValueStore",
    "dispose_engine",
    "get_engine",
    "get_session_factory",
]
