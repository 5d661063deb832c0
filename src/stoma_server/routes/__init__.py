"""Route registration: mounts all routers under ``/api/v1``."""

from fastapi import FastAPI

from stoma_server.routes.history import router as history_router
from stoma_server.routes.reference import router as reference_router
from stoma_server.routes.triage import router as triage_router

API_PREFIX = "/api/v1"


def register_routes(app: FastAPI) -> None:
    """Include all sub-routers under the versioned API prefix."""
    app.include_router(triage_router, prefix=API_PREFIX)
    app.include_router(history_router, prefix=API_PREFIX)
    app.include_router(reference_router, prefix=API_PREFIX)
