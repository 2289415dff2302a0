"""ORM models for selfexam_db."""

from selfexam_db.models.base import Base
from selfexam_db.models.kv import KeyValueEntry

__all__ = ["Base", "KeyValueEntry"]
