"""FastAPI HTTP service for exporting OpenAPI schemas to static documentation."""

import json
import logging
import secrets
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from contextvars import ContextVar
from datetime import UTC, datetime
from typing import Any, cast

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.types import ASGIApp, Receive, Scope, Send

from autodoc import __version__
from autodoc.config import get_settings
from autodoc.errors import AutodocError, DecodeError
from autodoc.metrics import init_metrics, shutdown_metrics
from autodoc.server.models import ErrorResponse
from autodoc.server.routes import api_router, router

REQUEST_ID_PREFIX = "req_"

logger = logging.getLogger(__name__)

request_id_ctx: ContextVar[str | None] = ContextVar("request_id", default=None)


# --- Structured JSON logging ---
class _JSONFormatter(logging.Formatter):
    """Structured JSON log formatter with required observability fields."""

    def format(self, record: logging.LogRecord) -> str:
        settings = get_settings()
        log_data: dict[str, Any] = {
            "timestamp": datetime.now(UTC).isoformat(),
            "level": record.levelname.lower(),
            "message": record.getMessage(),
            "service": settings.service_name,
            "environment": settings.service_environment,
            "logger": record.name,
        }
        if getattr(record, "request_id", None):
            log_data["requestId"] = record.request_id
        if record.exc_info and record.exc_info[0] is not None:
            log_data["exception"] = self.formatException(record.exc_info)
        return json.dumps(log_data)


class _RequestIDLogFilter(logging.Filter):
    """Attach the current request ID to every record logged while handling it."""

    def filter(self, record: logging.LogRecord) -> bool:
        if not hasattr(record, "request_id"):
            record.request_id = request_id_ctx.get()
        return True


def _configure_logging() -> None:
    """Configure structured JSON logging for the server."""
    handler = logging.StreamHandler()
    handler.setFormatter(_JSONFormatter())
    handler.addFilter(_RequestIDLogFilter())
    root = logging.getLogger()
    root.handlers.clear()
    root.addHandler(handler)
    root.setLevel(logging.INFO)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Startup: configure logging and metrics. Shutdown: flush metrics."""
    _configure_logging()
    settings = get_settings()
    init_metrics(settings)
    logger.info(
        "autodoc started (renderer=%s, storage_root=%s, cdn_url=%s)",
        settings.renderer,
        settings.storage_root.resolve(),
        settings.cdn_url or "<unset>",
    )
    yield
    shutdown_metrics()


app = FastAPI(
    title="AutoDoc API",
    description="Export OpenAPI schemas to static documentation served from a CDN.",
    version=__version__,
    lifespan=lifespan,
)

# --- CORS ---
cors_origins = get_settings().cors_origins.split(",")
# cast() needed because ty cannot match Starlette middleware classes to the
# _MiddlewareFactory[P] ParamSpec protocol used by add_middleware.
app.add_middleware(
    cast(Any, CORSMiddleware),
    allow_origins=cors_origins,
    allow_methods=["GET", "POST", "OPTIONS"],
    allow_headers=["Content-Type"],
)


# --- Request ID middleware (raw ASGI for performance) ---
class RequestIDMiddleware:
    def __init__(self, app: ASGIApp) -> None:
        self.app = app

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        request_id = f"{REQUEST_ID_PREFIX}{secrets.token_urlsafe(16)}"
        scope.setdefault("state", {})["request_id"] = request_id
        token = request_id_ctx.set(request_id)

        async def send_with_request_id(message: Any) -> None:
            if message["type"] == "http.response.start":
                headers = list(message.get("headers", []))
                headers.append((b"x-request-id", request_id.encode()))
                message["headers"] = headers
            await send(message)

        try:
            await self.app(scope, receive, send_with_request_id)
        finally:
            request_id_ctx.reset(token)


app.add_middleware(cast(Any, RequestIDMiddleware))


# --- Exception handlers ---
def _error_response(status_code: int, message: str) -> JSONResponse:
    """Build the single error shape every failure is reported with."""
    return JSONResponse(
        status_code=status_code,
        content=ErrorResponse(error=message).model_dump(by_alias=True),
    )


@app.exception_handler(AutodocError)
async def autodoc_error_handler(request: Request, exc: AutodocError) -> JSONResponse:
    logger.error("Error handling %s %s: %s", request.method, request.url.path, exc)
    return _error_response(400, exc.public_message)


@app.exception_handler(RequestValidationError)
async def request_validation_error_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    # Malformed or wrongly shaped bodies are decode failures, reported like every other error
    return await autodoc_error_handler(request, DecodeError(f"error decoding JSON: {exc.errors()}"))


@app.exception_handler(Exception)
async def generic_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("Unhandled error")
    return _error_response(500, "internal server error")


# --- Routes ---
app.include_router(router)
app.include_router(api_router)
