"""FastAPI application factory.

Lifespan
--------
On startup the app configures logging, opens a single SQLite connection
(shared across all requests via ``request.app.state.db``) and initialises the
schema.  On shutdown it closes the connection cleanly.

Routers
-------
    /amp/v1/scannable-urls  — scannable URLs with AMP and validation state
    /health                 — liveness probe
"""

from __future__ import annotations

from contextlib import asynccontextmanager
from typing import AsyncIterator

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from ampscan.api.auth import AuthorizationError, authorization_error_handler
from ampscan.api.routers import scannable_urls as scannable_urls_router
from ampscan.config import settings, setup_logging
from ampscan.db import get_connection, init_db
from ampscan.validation.schema import REST_BASE

API_NAMESPACE = "/amp/v1"


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Open the DB on startup and close it on shutdown."""
    setup_logging(settings.log_level)
    conn = get_connection()
    init_db(conn)
    app.state.db = conn
    try:
        yield
    finally:
        conn.close()


def create_app() -> FastAPI:
    """Return a fully-configured FastAPI application instance."""
    app = FastAPI(
        title="ampscan API",
        description=(
            "Read-only interface listing the URLs of a site that should be "
            "checked for AMP validity, with their AMP URLs and the outcome "
            "and staleness of any previous validation."
        ),
        version="0.1.0",
        lifespan=lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["GET"],
        allow_headers=["*"],
    )
    app.add_exception_handler(AuthorizationError, authorization_error_handler)  # type: ignore[arg-type]

    app.include_router(
        scannable_urls_router.router,
        prefix=f"{API_NAMESPACE}/{REST_BASE}",
        tags=["validation"],
    )

    @app.get("/health")
    def health() -> dict[str, str]:
        return {"status": "ok"}

    return app


# Module-level instance used by uvicorn:
#   uvicorn ampscan.api.app:app --reload
app = create_app()
