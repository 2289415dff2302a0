"""Database configuration — reads the connection URL from environment.

``DATABASE_URL`` takes any SQLAlchemy async URL.  Without it the history
lives in a local SQLite file next to the working directory, which is all a
single-user device needs.
"""

import os

DEFAULT_DATABASE_URL = "sqlite+aiosqlite:///./selfexam.db"


def get_async_url() -> str:
    """Return the async connection URL for the SQLAlchemy engine."""
    url = os.getenv("DATABASE_URL")
    if not url:
        return DEFAULT_DATABASE_URL
    # Normalise plain driver prefixes to their async drivers
    if url.startswith("sqlite:///"):
        return url.replace("sqlite:///", "sqlite+aiosqlite:///", 1)
    if url.startswith("postgresql://"):
        return url.replace("postgresql://", "postgresql+asyncpg://", 1)
    return url
