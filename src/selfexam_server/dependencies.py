"""FastAPI dependency injection — provides the app context and catalog.

Both are built once in the lifespan handler and stashed on ``app.state``.
"""

from fastapi import Request

from selfexam_rulesets.catalog import CatalogStore
from selfexam_rulesets.context import AppContext


def get_context(request: Request) -> AppContext:
    """Return the AppContext singleton from ``app.state``."""
    return request.app.state.context


def get_catalog(request: Request) -> CatalogStore:
    """Return the CatalogStore singleton from ``app.state``."""
    return request.app.state.context.catalog
