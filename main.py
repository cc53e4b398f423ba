#!/usr/bin/env python3

"""
Main application entry point for the VortexBoard task management API.

Architecture: FastAPI application over an async SQLAlchemy database.
Key Features: Lifecycle management, database health checks, error envelope, CORS configuration.
"""

import asyncio
import sys

# Add this block to switch asyncio event loop policy on Windows
if sys.platform == "win32":
    asyncio.set_event_loop_policy(asyncio.WindowsSelectorEventLoopPolicy())

import errno
from contextlib import asynccontextmanager

import uvicorn
from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.exc import IntegrityError
from starlette.exceptions import HTTPException as StarletteHTTPException

from vortexboard import __version__
from vortexboard.api.activity import router as activity_router
from vortexboard.api.analytics import router as analytics_router
from vortexboard.api.attachments import router as attachments_router
from vortexboard.api.attachments import task_attachments_router
from vortexboard.api.auth import router as auth_router
from vortexboard.api.boards import router as boards_router
from vortexboard.api.comments import router as comments_router
from vortexboard.api.comments import task_comments_router
from vortexboard.api.notifications import router as notifications_router
from vortexboard.api.tasks import board_tasks_router
from vortexboard.api.tasks import router as tasks_router
from vortexboard.config import settings
from vortexboard.db import check_db_connection, close_db, init_db, purge_expired_records
from vortexboard.errors import AppError, error_envelope
from vortexboard.models.base import utc_now
from vortexboard.utils.logger import setup_logger

logger = setup_logger("main")


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info("Application startup...")
    try:
        logger.info("Initializing database...")
        await init_db()
        logger.info("Database initialization complete.")

        logger.info("Checking database connectivity...")
        await check_db_connection()
        logger.info("Database connectivity confirmed.")
    except Exception as e:
        logger.critical(f"Startup error: {e}")
        raise SystemExit(f"Startup failed: {e}") from e

    try:
        await purge_expired_records()
    except Exception as e:
        logger.error(f"Retention purge failed at startup: {e}", exc_info=True)

    logger.info("VortexBoard API startup successful.")
    yield

    logger.info("VortexBoard API shutdown...")
    await close_db()
    logger.info("Shutdown complete.")


def _field_label(loc: tuple) -> str:
    names = [str(part) for part in loc if part not in ("body", "query", "path", "header")]
    if not names:
        return "Request body"
    return names[-1].replace("_", " ").capitalize()


def validation_messages(errors: list[dict]) -> list[str]:
    """Turn pydantic error entries into client-facing messages, in order, without repeats."""
    messages = []
    for error in errors:
        error_type = error.get("type", "")
        msg = error.get("msg", "")
        loc = tuple(error.get("loc", ()))
        if error_type == "value_error":
            message = msg.removeprefix("Value error, ")
        elif error_type == "missing":
            message = f"{_field_label(loc)} is required"
        elif error_type == "json_invalid":
            message = "Invalid JSON body"
        else:
            message = f"{_field_label(loc)}: {msg}"
        if message not in messages:
            messages.append(message)
    return messages


def create_app():
    app = FastAPI(
        title="VortexBoard API",
        version=__version__,
        docs_url="/api-docs",
        lifespan=lifespan,
    )

    @app.exception_handler(AppError)
    async def app_error_handler(request: Request, exc: AppError):
        logger.debug(f"{request.method} {request.url.path} -> {exc.status_code}: {exc.message}")
        return JSONResponse(status_code=exc.status_code, content=exc.to_response())

    @app.exception_handler(RequestValidationError)
    async def request_validation_handler(request: Request, exc: RequestValidationError):
        message = ", ".join(validation_messages(exc.errors()))
        return JSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST, content=error_envelope(message)
        )

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(request: Request, exc: StarletteHTTPException):
        if exc.status_code == status.HTTP_404_NOT_FOUND and exc.detail == "Not Found":
            message = "Route not found"
        else:
            message = str(exc.detail)
        status_code = exc.status_code
        # The bearer scheme reports missing credentials as 403.
        if status_code == status.HTTP_403_FORBIDDEN and exc.detail == "Not authenticated":
            status_code = status.HTTP_401_UNAUTHORIZED
            message = "Not authorized to access this route"
        return JSONResponse(
            status_code=status_code,
            content=error_envelope(message),
            headers=getattr(exc, "headers", None),
        )

    @app.exception_handler(IntegrityError)
    async def integrity_error_handler(request: Request, exc: IntegrityError):
        logger.warning(f"IntegrityError on {request.method} {request.url.path}: {exc.orig}")
        return JSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST,
            content=error_envelope("Duplicate field value entered"),
        )

    @app.exception_handler(OSError)
    async def oserror_exception_handler(request: Request, exc: OSError):
        logger.error(
            f"OSError caught: {exc}, errno: {exc.errno}, winerror: {getattr(exc, 'winerror', None)}"
        )
        is_timeout_or_refused = False
        if hasattr(exc, "winerror") and exc.winerror == 121:
            is_timeout_or_refused = True
        elif exc.errno in [errno.ETIMEDOUT, errno.ECONNREFUSED]:
            is_timeout_or_refused = True

        if is_timeout_or_refused:
            logger.error(
                f"Returning 503 due to DB connection issue: {settings.db_unavailable_hint}"
            )
            return JSONResponse(
                status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
                content=error_envelope(settings.db_unavailable_hint),
            )
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content=error_envelope("Server Error"),
        )

    @app.exception_handler(Exception)
    async def unhandled_exception_handler(request: Request, exc: Exception):
        logger.error(
            f"Unhandled error on {request.method} {request.url.path}: {exc}",
            exc_info=exc,
        )
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content=error_envelope("Server Error"),
        )

    @app.get("/health", tags=["Health"])
    async def health():
        return {"success": True, "status": "ok", "timestamp": utc_now().isoformat()}

    app.include_router(auth_router)
    app.include_router(boards_router)
    app.include_router(board_tasks_router)
    app.include_router(tasks_router)
    app.include_router(task_comments_router)
    app.include_router(comments_router)
    app.include_router(task_attachments_router)
    app.include_router(attachments_router)
    app.include_router(analytics_router)
    app.include_router(notifications_router)
    app.include_router(activity_router)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_allow_origins,
        allow_credentials=settings.cors_allow_credentials,
        allow_methods=settings.cors_allow_methods,
        allow_headers=settings.cors_allow_headers,
    )

    return app


app = create_app()


def main():
    port = int(settings.server_port)
    host = settings.server_host

    logger.info(f"Starting VortexBoard API server on {host}:{port}")
    logger.info("Interactive API docs available at /api-docs")

    try:
        uvicorn.run(
            "main:app" if settings.server_workers > 1 else app,
            host=host,
            port=port,
            workers=settings.server_workers,
        )
    except Exception as e:
        logger.error(f"Error starting server: {e}")
        sys.exit(1)


if __name__ == "__main__":
    main()
