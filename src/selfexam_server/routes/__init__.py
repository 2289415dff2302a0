"""Route registration — mounts all routers under ``/api/v1``."""

from fastapi import FastAPI

from selfexam_server.routes.exam import router as exam_router
from selfexam_server.routes.history import router as history_router
from selfexam_server.routes.reference import router as reference_router
from selfexam_server.routes.self_check import router as self_check_router

API_PREFIX = "/api/v1"


def register_routes(app: FastAPI) -> None:
    """Include all sub-routers under the versioned API prefix."""
    app.include_router(exam_router, prefix=API_PREFIX)
    app.include_router(self_check_router, prefix=API_PREFIX)
    app.include_router(history_router, prefix=API_PREFIX)
    app.include_router(reference_router, prefix=API_PREFIX)
