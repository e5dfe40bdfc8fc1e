"""FastAPI application factory: CORS, per-request log context, error envelope."""

from __future__ import annotations

import uuid
from datetime import datetime, timezone
from typing import Any

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from livetools.api import routes
from livetools.config import AppSettings
from livetools.exceptions import AllProvidersFailed, InvalidInputError
from livetools.logging import bind_request_context, get_logger

logger = get_logger(__name__)

# Chain name prefix -> user-facing error title
_FAILURE_TITLES = {
    "currency_rates": "Failed to fetch currency rates",
    "etf_quote": "Failed to fetch ETF data",
    "financial_news": "Failed to fetch financial news",
}


def error_response(status_code: int, error: str, message: str) -> JSONResponse:
    """Render the ``{error, message, timestamp}`` envelope."""
    return JSONResponse(
        status_code=status_code,
        content={
            "error": error,
            "message": message,
            "timestamp": datetime.now(timezone.utc).isoformat(),
        },
    )


async def _all_providers_failed(request: Request, exc: AllProvidersFailed) -> JSONResponse:
    title = _FAILURE_TITLES.get(exc.chain.split(":", 1)[0], "Failed to fetch data")
    logger.error(
        "request_failed",
        path=request.url.path,
        chain=exc.chain,
        providers=[f.provider for f in exc.failures],
    )
    return error_response(500, title, str(exc))


async def _invalid_input(request: Request, exc: InvalidInputError) -> JSONResponse:
    logger.info("invalid_request", path=request.url.path, error=str(exc))
    return error_response(400, "Invalid request", str(exc))


async def _validation_error(request: Request, exc: RequestValidationError) -> JSONResponse:
    detail = "; ".join(
        f"{'.'.join(str(p) for p in err.get('loc', ()))}: {err.get('msg', '')}"
        for err in exc.errors()
    )
    logger.info("invalid_request", path=request.url.path, error=detail)
    return error_response(400, "Invalid request", detail)


def create_app(settings: AppSettings | None = None, lifespan: Any = None) -> FastAPI:
    """Create and configure the FastAPI application.

    Args:
        settings: Application settings; read from the environment when None.
        lifespan: Optional async context manager for startup/shutdown.
                  Used by main.py to wire services onto app.state.

    Returns:
        Configured FastAPI application. Route handlers expect
        ``rates_service``, ``etf_service`` and ``news_service`` on app.state.
    """
    settings = settings or AppSettings()
    app = FastAPI(title="Live Tools Market Data", lifespan=lifespan)
    app.state.settings = settings

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.server.cors_origins,
        allow_methods=["GET", "POST", "OPTIONS"],
        allow_headers=["authorization", "x-client-info", "apikey", "content-type"],
        expose_headers=["X-Data-Source", "X-Timestamp"],
    )

    @app.middleware("http")
    async def request_context(request: Request, call_next):
        bind_request_context(request_id=uuid.uuid4().hex[:12], path=request.url.path)
        return await call_next(request)

    app.add_exception_handler(AllProvidersFailed, _all_providers_failed)
    app.add_exception_handler(InvalidInputError, _invalid_input)
    app.add_exception_handler(RequestValidationError, _validation_error)

    app.include_router(routes.router)
    return app
