"""
api/main.py -- FastAPI application entry point for the admin panel.

Run with:  uvicorn asgi:app --reload

Middleware (outermost to innermost):
  1. log_requests        -- method, path, status, latency, client for every hit
  2. edge_access_filter  -- cookie-presence gate in front of page routes

Lifespan opens the user store on startup and disposes it on shutdown.
"""

from __future__ import annotations

import logging
import time
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI, HTTPException, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse, RedirectResponse
from sqlalchemy.exc import SQLAlchemyError

from api.models import APP_VERSION, ErrorResponse, HealthResponse
from api.routes.auth import router as auth_router
from api.routes.users import router as users_router
from auth.edge import edge_redirect
from auth.store import UserStore
from core.config import get_settings

# ---------------------------------------------------------------------------
# Logging
# ---------------------------------------------------------------------------

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s %(levelname)-5s %(name)s %(message)s",
    datefmt="%Y-%m-%d %H:%M:%S",
)
logger = logging.getLogger("adminpanel.api")

# ---------------------------------------------------------------------------
# Lifespan
# ---------------------------------------------------------------------------


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Open the user store on startup; dispose of its engine on shutdown."""
    settings = get_settings()
    logger.info("Admin panel starting up (app_env=%s)", settings.app_env)
    app.state.user_store = UserStore(db_url=settings.database_url)
    if not app.state.user_store.has_users():
        logger.warning("No users exist yet -- run `python manage.py seed` to create the administrator")

    yield

    app.state.user_store.close()
    logger.info("Admin panel shutdown complete")


# ---------------------------------------------------------------------------
# App instantiation
# ---------------------------------------------------------------------------

app = FastAPI(
    title="Admin Panel API",
    description="Session-authenticated user administration.",
    version=APP_VERSION,
    lifespan=lifespan,
)

# ---------------------------------------------------------------------------
# Edge access filter
#
# Registered before log_requests, so it runs inside it and redirected
# requests are still logged. Path and cookie presence only -- no DB hit.
# ---------------------------------------------------------------------------


@app.middleware("http")
async def edge_access_filter(request: Request, call_next):
    location = edge_redirect(request.url.path, request.cookies)
    if location is not None:
        return RedirectResponse(location, status_code=302)
    return await call_next(request)


@app.middleware("http")
async def log_requests(request: Request, call_next):
    start = time.perf_counter()
    response = await call_next(request)
    ms = (time.perf_counter() - start) * 1000
    logger.info(
        "%s %s %d %.1fms %s",
        request.method,
        request.url.path,
        response.status_code,
        ms,
        request.client.host if request.client else "unknown",
    )
    return response


# ---------------------------------------------------------------------------
# Router registration
# ---------------------------------------------------------------------------

app.include_router(auth_router, prefix="/api", tags=["Auth"])
app.include_router(users_router, prefix="/api", tags=["Users"])
# Web UI router is mounted by asgi.py, not here.


# ---------------------------------------------------------------------------
# Exception handlers
#
# All handlers return the ErrorResponse envelope {"error": message, "code": code}.
# ---------------------------------------------------------------------------


def _validation_summary(exc: RequestValidationError) -> str:
    """Describe each failing field by location and message only.

    The offending input is never echoed; it may be a password.
    """
    return "; ".join(
        f"{'.'.join(str(part) for part in err.get('loc', ()))}: {err.get('msg', 'invalid')}" for err in exc.errors()
    )


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    return JSONResponse(
        status_code=422,
        content=ErrorResponse(
            error="Request validation failed",
            code="validation_error",
            detail=_validation_summary(exc),
        ).model_dump(exclude_none=True),
    )


@app.exception_handler(HTTPException)
async def http_exception_handler(request: Request, exc: HTTPException) -> JSONResponse:
    """Render HTTPException in the shared envelope.

    Route handlers raise HTTPException with detail={"code": ..., "message": ...}.
    Plain string details (FastAPI's own 404/405) are wrapped with a generic code.
    """
    if isinstance(exc.detail, dict):
        content = ErrorResponse(
            error=str(exc.detail.get("message", "")),
            code=str(exc.detail.get("code", f"http_{exc.status_code}")),
        )
    else:
        content = ErrorResponse(error=str(exc.detail), code=f"http_{exc.status_code}")
    return JSONResponse(
        status_code=exc.status_code,
        content=content.model_dump(exclude_none=True),
        headers=getattr(exc, "headers", None),
    )


@app.exception_handler(Exception)
async def generic_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Catch-all for unexpected server errors.

    The traceback goes to the server log only; the client gets a generic message.
    """
    logger.exception("Unhandled exception on %s %s", request.method, request.url.path)
    return JSONResponse(
        status_code=500,
        content=ErrorResponse(error="An unexpected error occurred.", code="internal_error").model_dump(
            exclude_none=True
        ),
    )


# ---------------------------------------------------------------------------
# Health endpoint
#
# Lives under /api/ so the edge filter lets monitoring through without a cookie.
# ---------------------------------------------------------------------------


@app.get("/api/health", tags=["Health"])
def health(request: Request) -> HealthResponse:
    """Return liveness, version and database status."""
    try:
        db_status = "ok" if request.app.state.user_store.ping() else "error"
    except SQLAlchemyError:
        logger.warning("Health check database ping failed", exc_info=True)
        db_status = "error"
    return HealthResponse(
        status="healthy" if db_status == "ok" else "degraded",
        version=APP_VERSION,
        components={"app": "ok", "database": db_status},
    )
