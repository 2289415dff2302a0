"""KeyValueEntry ORM model — one row per storage key.

The history store writes its whole record list as one JSON string, so a
plain text column is enough; the database never looks inside the value.
"""

from datetime import datetime, timezone

from sqlalchemy import DateTime, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from selfexam_db.models.base import Base


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class KeyValueEntry(Base):
    """A stored string value addressed by ``key``."""

    __tablename__ = "kv_entries"

    key: Mapped[str] = mapped_column(String(255), primary_key=True)
    value: Mapped[str] = mapped_column(Text, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=_utcnow,
        onupdate=_utcnow,
    )

    def __repr__(self) -> str:
        # Values hold health data; keep them out of reprs and logs
        return f"<KeyValueEntry key={self.key!r} len={len(self.value or '')}>"
