"""Application factory and CLI entry point.

``create_app()`` builds the FastAPI application with:
  - Lifespan handler that loads the catalog, opens storage and loads history
  - CORS middleware
  - Global exception handlers (SDK ValueError → 409/404/400)
  - All API routes mounted under ``/api/v1``
  - A ``/health`` endpoint for readiness probes

The ``cli()`` function is the ``selfexam-server`` console-script entry point.
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import AsyncGenerator

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from sqlalchemy import text

from selfexam_db.engine import dispose_engine, get_engine
from selfexam_db.kv_store import SqlKeyValueStore
from selfexam_rulesets.catalog import CatalogStore
from selfexam_rulesets.context import AppContext
from selfexam_rulesets.interfaces import KeyValueStore
from selfexam_rulesets.storage import MemoryKeyValueStore

from selfexam_server.config import ServerSettings, load_settings
from selfexam_server.errors import (
    generic_error_handler,
    key_error_handler,
    value_error_handler,
)
from selfexam_server.routes import register_routes

logger = logging.getLogger(__name__)


# ------------------------------------------------------------------
# Lifespan — runs once at startup/shutdown
# ------------------------------------------------------------------

@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Initialise shared resources at startup, tear down on shutdown.

    Startup:
      1. Load YAML catalogs into a ``CatalogStore``
      2. Open the configured key-value storage
      3. Build the ``AppContext`` and load both history lists
      4. Stash it on ``app.state`` for dependency injection

    Shutdown:
      1. Wait for in-flight history writes
      2. Dispose the database engine's connection pool
    """
    settings: ServerSettings = app.state.settings

    # --- Load catalog ---
    catalog = CatalogStore(catalog_dir=settings.catalog_dir)
    catalog.load()

    # --- Storage & context ---
    kv: KeyValueStore
    if settings.storage == "memory":
        kv = MemoryKeyValueStore()
    else:
        kv = SqlKeyValueStore()

    context = AppContext.build(catalog, kv)
    await context.load_history()
    app.state.context = context

    yield

    # --- Shutdown ---
    await context.flush()
    if settings.storage == "sql":
        await dispose_engine()
        logger.info("Database engine disposed")


# ------------------------------------------------------------------
# Factory
# ------------------------------------------------------------------

def create_app(settings: ServerSettings | None = None) -> FastAPI:
    """Build and return the configured FastAPI application."""
    if settings is None:
        settings = load_settings()

    # --- Configure logging ---
    logging.basicConfig(
        level=getattr(logging, settings.log_level, logging.INFO),
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )

    app = FastAPI(
        title="Self-Exam API Server",
        description="REST API for guided breast self-examination and risk screening",
        version="0.1.0",
        lifespan=lifespan,
    )

    # Store settings so the lifespan handler can read them
    app.state.settings = settings

    # --- CORS ---
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # --- Exception handlers ---
    app.add_exception_handler(ValueError, value_error_handler)
    app.add_exception_handler(KeyError, key_error_handler)
    app.add_exception_handler(Exception, generic_error_handler)

    # --- Health check (outside /api/v1 prefix) ---
    @app.get("/health")
    async def health() -> dict:
        """Readiness probe — verifies storage connectivity."""
        if settings.storage == "memory":
            return {"status": "ok", "storage": "memory"}
        try:
            async with get_engine().connect() as conn:
                await conn.execute(text("SELECT 1"))
            return {"status": "ok", "storage": "sql"}
        except Exception as exc:
            logger.error("Health check failed: %s", type(exc).__name__)
            return {"status": "error", "storage": "sql"}

    # --- Mount all API routes ---
    register_routes(app)

    return app


# ------------------------------------------------------------------
# Module-level ASGI export (for uvicorn selfexam_server.app:app)
# ------------------------------------------------------------------
app = create_app()


# ------------------------------------------------------------------
# CLI entry point
# ------------------------------------------------------------------

def cli() -> None:
    """Console-script entry point: ``selfexam-server``."""
    import uvicorn

    settings = load_settings()
    uvicorn.run(
        "selfexam_server.app:app",
        host=settings.host,
        port=settings.port,
        log_level=settings.log_level.lower(),
        reload=False,
    )
