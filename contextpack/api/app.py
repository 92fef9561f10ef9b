"""FastAPI application factory.

Lifespan
--------
On startup the app opens a single SQLite connection (shared across all
requests via ``request.app.state.db``) and initialises the schema.  On
shutdown it closes the connection cleanly.

Routers
-------
    /scan      - run a website scan and return a draft Context Pack
    /packs     - list, fetch and delete stored packs
    /health    - liveness probe

Errors
------
Every error body is ``{"error": "..."}``.  Malformed or missing request
fields (including unparsable JSON) answer 400 with an extra ``details``
list of ``{field, message}`` entries.
"""

from __future__ import annotations

from contextlib import asynccontextmanager
from pathlib import Path
from typing import Any, AsyncIterator, Optional, Union

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from contextpack.api.routers import packs as packs_router
from contextpack.api.routers import scan as scan_router
from contextpack.db import get_connection, init_db
from contextpack.errors import ScanError, ScanValidationError
from contextpack.logging_utils import configure_logging

_VALUE_ERROR_PREFIX = "Value error, "


# ---------------------------------------------------------------------------
# Error handlers
# ---------------------------------------------------------------------------

def _validation_details(exc: RequestValidationError) -> list[dict[str, str]]:
    details = []
    for error in exc.errors():
        loc = [str(part) for part in error.get("loc", ()) if part != "body"]
        message = str(error.get("msg", "Invalid value"))
        if message.startswith(_VALUE_ERROR_PREFIX):
            message = message[len(_VALUE_ERROR_PREFIX):]
        details.append({"field": ".".join(loc) or "body", "message": message})
    return details


async def _request_validation_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    return await _scan_error_handler(request, ScanValidationError(_validation_details(exc)))


async def _scan_error_handler(request: Request, exc: ScanError) -> JSONResponse:
    content: dict[str, Any] = {"error": exc.message}
    details = getattr(exc, "details", None)
    if details:
        content["details"] = details
    return JSONResponse(status_code=exc.status_code, content=content)


# ---------------------------------------------------------------------------
# Factory
# ---------------------------------------------------------------------------

def create_app(db_path: Optional[Union[Path, str]] = None) -> FastAPI:
    """Return a fully-configured FastAPI application instance.

    Args:
        db_path: Database override (``":memory:"`` in tests).  Defaults to
            the workspace database.
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        """Open the DB on startup and close it on shutdown."""
        configure_logging()
        conn = get_connection(db_path)
        init_db(conn)
        app.state.db = conn
        try:
            yield
        finally:
            conn.close()

    app = FastAPI(
        title="Context Pack API",
        description=(
            "Scans a company's public website and drafts a Context Pack: "
            "vision, mission, values, ICP, business model and product, each "
            "with a confidence score and source citations."
        ),
        version="0.1.0",
        lifespan=lifespan,
    )

    # Allow browser frontends on any origin (tighten for production).
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.add_exception_handler(RequestValidationError, _request_validation_handler)
    app.add_exception_handler(ScanError, _scan_error_handler)

    app.include_router(scan_router.router, prefix="/scan", tags=["scan"])
    app.include_router(packs_router.router, prefix="/packs", tags=["packs"])

    @app.get("/health", tags=["health"])
    def health() -> dict[str, str]:
        return {"status": "ok"}

    return app


# Module-level instance used by uvicorn:
#   uvicorn contextpack.api.app:app --reload
app = create_app()
