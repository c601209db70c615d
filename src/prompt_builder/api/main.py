"""Prompt builder HTTP API."""

import logging
import time

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from prompt_builder.api.routers import components, content, maintenance, projects
from prompt_builder.db.infra.backup_utils import BackupManager
from prompt_builder.db.infra.core import Database
from prompt_builder.errors import (
    NotFoundError,
    PolicyError,
    PromptBuilderError,
    ValidationError,
)

logger = logging.getLogger(__name__)

# Most specific first; PromptBuilderError is the catch-all for typed failures
_STATUS_BY_ERROR = (
    (ValidationError, 400),
    (PolicyError, 403),
    (NotFoundError, 404),
    (PromptBuilderError, 500),
)


def _error_body(error: str, details=None) -> dict:
    body = {"status": "error", "error": error}
    if details is not None:
        body["details"] = details
    return body


async def prompt_builder_error_handler(request: Request, exc: PromptBuilderError) -> JSONResponse:
    status_code = next(code for cls, code in _STATUS_BY_ERROR if isinstance(exc, cls))
    if status_code >= 500:
        logger.error("Request %s %s failed: %s", request.method, request.url.path, exc)
    return JSONResponse(status_code=status_code, content=_error_body(str(exc)))


async def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    # Malformed bodies and ids are client errors like any other ValidationError
    messages = []
    for err in exc.errors():
        location = ".".join(str(part) for part in err.get("loc", ()) if part != "body")
        messages.append(f"{location}: {err.get('msg')}" if location else err.get("msg"))
    return JSONResponse(
        status_code=400,
        content=_error_body("Invalid request", details="; ".join(messages)),
    )


async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    return JSONResponse(
        status_code=500,
        content=_error_body("Internal server error", details=str(exc)),
    )


def create_app(db: Database, backups: BackupManager | None = None) -> FastAPI:
    """
    Build the API around an already migrated and seeded store.
    """
    app = FastAPI(
        title="Prompt Builder API",
        description="Project-scoped prompt components, drafts and database maintenance",
        version="0.1.0",
    )
    app.state.db = db
    app.state.backups = backups or BackupManager(db)

    app.add_exception_handler(PromptBuilderError, prompt_builder_error_handler)
    app.add_exception_handler(RequestValidationError, request_validation_handler)
    app.add_exception_handler(Exception, unhandled_error_handler)

    @app.middleware("http")
    async def log_requests(request: Request, call_next):
        start = time.time()
        response = await call_next(request)
        duration_ms = (time.time() - start) * 1000
        level = logging.WARNING if response.status_code >= 500 else logging.DEBUG
        logger.log(
            level,
            "%s %s -> %s (%.1f ms)",
            request.method,
            request.url.path,
            response.status_code,
            duration_ms,
        )
        return response

    @app.get("/api/health")
    def health() -> dict:
        with db.transaction() as conn:
            conn.execute("SELECT 1").fetchone()
        return {"status": "ok"}

    app.include_router(components.router)
    app.include_router(projects.router)
    app.include_router(content.router)
    app.include_router(maintenance.router)
    return app
