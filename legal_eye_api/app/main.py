"""
Main entrypoint for the Legal Eye API.

``create_app`` assembles the FastAPI application: logging, the
database facade and credential service on ``app.state``, the exception
handlers producing the JSON envelope, request logging and the routers
mounted under ``/api``.  The module-level ``app`` is built from
environment settings so it can be served directly, e.g.::

    uvicorn legal_eye_api.app.main:app --reload
"""

import logging
import time
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import Optional

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from starlette.exceptions import HTTPException as StarletteHTTPException

from .api.v1.router import router as api_router
from .core.config import Settings
from .core.db import Database
from .core.errors import ServiceError
from .core.logging_config import setup_logging
from .core.responses import error_response
from .core.security import CredentialService

logger = logging.getLogger(__name__)
access_logger = logging.getLogger("legal_eye_api.access")


def _validation_errors(exc: RequestValidationError) -> list:
    """Flatten pydantic errors to ``[{"field": ..., "message": ...}]``."""
    errors = []
    for error in exc.errors():
        loc = [str(part) for part in error.get("loc", ()) if part not in ("body", "query", "path")]
        message = error.get("msg", "Invalid value")
        if message.startswith("Value error, "):
            message = message[len("Value error, "):]
        errors.append({"field": ".".join(loc), "message": message})
    return errors


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    """Create and configure a FastAPI application.

    ``settings`` defaults to :meth:`Settings.from_env`; tests pass their
    own to point the app at a temporary database.
    """
    settings = settings or Settings.from_env()
    setup_logging(settings.log_level, settings.log_file)

    db = Database(settings.database_url)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        logger.info("Starting %s %s", settings.project_name, settings.api_version)
        db.init()
        yield
        logger.info("Shutting down %s", settings.project_name)

    app = FastAPI(
        title=settings.project_name,
        version=settings.api_version,
        debug=settings.debug,
        lifespan=lifespan,
    )
    app.state.settings = settings
    app.state.db = db
    app.state.credentials = CredentialService(settings)

    @app.exception_handler(ServiceError)
    async def service_error_handler(request: Request, exc: ServiceError):
        return error_response(exc.status_code, exc.message)

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(request: Request, exc: StarletteHTTPException):
        if exc.status_code == status.HTTP_404_NOT_FOUND:
            message = "Route not found"
        else:
            message = exc.detail if isinstance(exc.detail, str) else "Request failed"
        return error_response(exc.status_code, message, headers=getattr(exc, "headers", None))

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(request: Request, exc: RequestValidationError):
        return error_response(
            status.HTTP_400_BAD_REQUEST,
            "Validation failed",
            error=_validation_errors(exc),
        )

    @app.exception_handler(Exception)
    async def unhandled_exception_handler(request: Request, exc: Exception):
        logger.exception("Unhandled error on %s %s", request.method, request.url.path)
        return error_response(
            status.HTTP_500_INTERNAL_SERVER_ERROR,
            "Internal Server Error",
            error=str(exc) if settings.debug else None,
        )

    @app.middleware("http")
    async def log_requests(request: Request, call_next):
        start = time.perf_counter()
        try:
            response = await call_next(request)
        except Exception as e:
            access_logger.error("%s %s - Error: %s", request.method, request.url.path, e)
            raise
        elapsed_ms = (time.perf_counter() - start) * 1000
        access_logger.info(
            "%s %s %s %.1fms", request.method, request.url.path, response.status_code, elapsed_ms
        )
        return response

    @app.get("/", include_in_schema=False)
    async def root():
        return {"message": "Legal Eye API Server", "version": settings.api_version, "status": "running"}

    @app.get("/api/health", tags=["health"])
    async def health():
        return {"status": "ok", "timestamp": datetime.now(timezone.utc).isoformat()}

    app.include_router(api_router, prefix="/api")

    return app


app = create_app()
