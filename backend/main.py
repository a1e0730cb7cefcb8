# ---------------------------------------------------------------------------
# Author  : Kyle <kyle@hacking-linux.com>
# Version : 20261019v1
# ---------------------------------------------------------------------------
"""
FastAPI application factory.

Responsibilities
----------------
* Instantiate the FastAPI app.
* Register CORS, request-logging and page-guard middleware.
* Translate every error into a JSON body with an ``error`` field.
* Mount the feature routers (auth, time logs, invitations, admin, pages).
* Expose a /health endpoint for container liveness checks.

Production note
---------------
CORS origins come from ``settings.cors_origins``; set them to the exact
frontend origin before deploying.
"""

import time

from fastapi import Depends, FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, Response
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session
from starlette.exceptions import HTTPException as StarletteHTTPException
from starlette.middleware.base import BaseHTTPMiddleware

from auth.router import router as auth_router
from admin.router import router as admin_router
from core.config import settings
from core.logger import logger
from core.security import get_client_ip
from database import get_db
from invitations.router import admin_router as admin_invitations_router
from invitations.router import router as invitations_router
from pages.router import PageGuardMiddleware, router as pages_router
from timelogs.router import admin_router as admin_timelogs_router
from timelogs.router import router as timelogs_router

app = FastAPI(title="Crowlee", version="1.0.0")

# ---------------------------------------------------------------------------
# Middleware
# ---------------------------------------------------------------------------
# Starlette runs the most recently added middleware first, so the order
# below yields: request log → CORS → page guard → routes.
app.add_middleware(PageGuardMiddleware)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,  # the session rides in a cookie
    allow_methods=["GET", "POST", "PUT", "PATCH", "DELETE"],
    allow_headers=["Content-Type"],
)


# Logs every inbound request: method, path, client IP, status, latency.
# Request bodies (passwords, locations) are never echoed.
class _RequestLogMiddleware(BaseHTTPMiddleware):
    """Log method, path, client IP, response status and latency (ms)."""

    async def dispatch(self, request: Request, call_next) -> Response:
        start = time.perf_counter()
        response: Response = await call_next(request)
        elapsed_ms = (time.perf_counter() - start) * 1000

        logger.info(
            "%s %s | client=%s status=%d latency=%.1fms",
            request.method,
            request.url.path,
            get_client_ip(request),
            response.status_code,
            elapsed_ms,
        )
        return response


app.add_middleware(_RequestLogMiddleware)

# ---------------------------------------------------------------------------
# Error handlers
# ---------------------------------------------------------------------------


@app.exception_handler(StarletteHTTPException)
async def _http_error(request: Request, exc: StarletteHTTPException):
    return JSONResponse(
        status_code=exc.status_code,
        content={"error": exc.detail},
        headers=getattr(exc, "headers", None),
    )


def _validation_message(exc: RequestValidationError) -> str:
    """First problem only, e.g. ``clock_in_location.latitude: Invalid latitude``."""
    errors = exc.errors()
    if not errors:
        return "Invalid request"
    err = errors[0]
    loc = ".".join(str(part) for part in err.get("loc", ()) if part not in ("body", "query", "path"))
    msg = str(err.get("msg", "Invalid value")).removeprefix("Value error, ")
    return f"{loc}: {msg}" if loc else msg


@app.exception_handler(RequestValidationError)
async def _request_validation_error(request: Request, exc: RequestValidationError):
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={"error": _validation_message(exc)},
    )


@app.exception_handler(Exception)
async def _unhandled_error(request: Request, exc: Exception):
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"error": "Internal server error"},
    )


# ---------------------------------------------------------------------------
# Routers
# ---------------------------------------------------------------------------
app.include_router(auth_router)
app.include_router(timelogs_router)
app.include_router(invitations_router)
app.include_router(admin_router)
app.include_router(admin_timelogs_router)
app.include_router(admin_invitations_router)
app.include_router(pages_router)

# ---------------------------------------------------------------------------
# Health check
# ---------------------------------------------------------------------------


@app.on_event("startup")
async def _on_startup():
    logger.info("Crowlee service starting up (environment=%s)", settings.environment)


@app.on_event("shutdown")
async def _on_shutdown():
    logger.info("Crowlee service shutting down")


@app.get("/health")
def health(db: Session = Depends(get_db)):
    try:
        db.execute(text("SELECT 1"))
        database = "connected"
    except SQLAlchemyError as exc:
        logger.warning("health | database unreachable: %s", exc)
        database = "disconnected"
    return {"status": "ok", "database": database}
