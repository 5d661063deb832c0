"""Application factory and CLI entry point.

``create_app()`` builds the FastAPI application with:
  - Lifespan handler that loads and validates the triage content once
  - CORS middleware
  - Global exception handlers (NotFoundError → 404, ValueError → 400, KeyError → 404)
  - All API routes mounted under ``/api/v1``
  - A ``/health`` endpoint for readiness probes

The ``cli()`` function is the ``stoma-server`` console-script entry point.
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import AsyncGenerator

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from stoma_db.engine import dispose_database, get_database, get_session_factory
from stoma_triage.engine import TriageEngine
from stoma_triage.ruleset import TriageContentStore

from stoma_server.config import ServerSettings, load_settings
from stoma_server.errors import (
    generic_error_handler,
    key_error_handler,
    value_error_handler,
)
from stoma_server.persistence import RepositorySink
from stoma_server.routes import register_routes

logger = logging.getLogger(__name__)


# ------------------------------------------------------------------
# Lifespan: runs once at startup/shutdown
# ------------------------------------------------------------------

@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Initialise shared resources at startup, tear down on shutdown.

    Startup:
      1. Load and validate the YAML content into a ``TriageContentStore``
         (an inconsistent content graph aborts startup)
      2. Build the ``TriageEngine`` and the diagnosis sink
      3. Stash them on ``app.state`` for dependency injection

    Shutdown:
      1. Close the history database pool, if one was opened
    """
    settings: ServerSettings = app.state.settings

    store = TriageContentStore(ruleset_dir=settings.ruleset_dir)
    store.load()

    app.state.store = store
    app.state.engine = TriageEngine(store)
    app.state.diagnosis_sink = RepositorySink(get_session_factory)
    logger.info(
        "Triage content ready (persist_results=%s)", settings.persist_results,
    )

    yield

    await dispose_database()
    logger.info("History database pool closed")


# ------------------------------------------------------------------
# Factory
# ------------------------------------------------------------------

def create_app(settings: ServerSettings | None = None) -> FastAPI:
    """Build and return the configured FastAPI application."""
    if settings is None:
        settings = load_settings()

    logging.basicConfig(
        level=getattr(logging, settings.log_level, logging.INFO),
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )

    app = FastAPI(
        title="Stoma Triage API Server",
        description="REST API for the stoma self-check triage questionnaire",
        version="0.1.0",
        lifespan=lifespan,
    )

    # Read by the lifespan handler and dependencies
    app.state.settings = settings

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.add_exception_handler(ValueError, value_error_handler)
    app.add_exception_handler(KeyError, key_error_handler)
    app.add_exception_handler(Exception, generic_error_handler)

    # --- Health check (outside /api/v1 prefix) ---
    @app.get("/health")
    async def health() -> dict:
        """Readiness probe: verifies DB connectivity."""
        try:
            await get_database().ping()
        except Exception as exc:
            logger.error("Health check failed: %s", exc)
            return {"status": "error", "detail": "database unavailable"}
        return {"status": "ok"}

    register_routes(app)

    return app


# ------------------------------------------------------------------
# Module-level ASGI export (for uvicorn stoma_server.app:app)
# ------------------------------------------------------------------
app = create_app()


def cli() -> None:
    """Console-script entry point: ``stoma-server``."""
    import uvicorn

    settings = load_settings()
    uvicorn.run(
        "stoma_server.app:app",
        host=settings.host,
        port=settings.port,
        log_level=settings.log_level.lower(),
        reload=False,
    )
