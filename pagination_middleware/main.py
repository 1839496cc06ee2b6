"""FastAPI application factory with pagination wired in.

Creates an app with consistent error envelopes, a health check, and the
pagination middleware registered. Routers added to the returned app are
paginated according to the options passed in.

Usage:
    app = create_app({"meta": {"location": "header"}})

    @app.get("/users")
    async def list_users(request: Request):
        return paginate(request, USERS[:10], len(USERS))
"""

from collections.abc import Mapping
from typing import Any

import structlog
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from pagination_middleware.core.config import settings
from pagination_middleware.core.errors import APIError, ValidationError
from pagination_middleware.core.logging_setup import configure_logging
from pagination_middleware.core.responses import (
    ErrorDetail,
    ErrorResponse,
    error_response,
)
from pagination_middleware.core.routes import pagination_settings
from pagination_middleware.plugin import register_pagination

logger = structlog.get_logger()


def api_error_handler(_request: Request, exc: APIError) -> JSONResponse:
    """Handle API errors.

    Args:
        request: The incoming request.
        exc: The APIError that was raised.

    Returns:
        JSONResponse with error envelope and appropriate status code.
    """
    return error_response(exc)


def validation_error_handler(
    _request: Request, exc: RequestValidationError
) -> JSONResponse:
    """Render request validation failures (bad path or query values).

    Each detail names the offending field by its dotted location, in the same
    shape as invalid pagination parameters.
    """
    details = [
        {"field": ".".join(str(part) for part in error["loc"]), "message": error["msg"]}
        for error in exc.errors()
    ]
    return error_response(ValidationError("Request validation failed", details))


def internal_error_handler(request: Request, exc: Exception) -> JSONResponse:
    """Catch-all for unhandled exceptions.

    Returns 500 INTERNAL_ERROR without exposing stack traces.

    Args:
        request: The incoming request.
        exc: The unhandled exception.

    Returns:
        JSONResponse with generic error message (500).
    """
    logger.exception("Unhandled exception", exc_info=exc, path=str(request.url.path))

    return JSONResponse(
        status_code=500,
        content=ErrorResponse(
            error=ErrorDetail(
                code="INTERNAL_ERROR",
                message="An unexpected error occurred",
            )
        ).model_dump(),
    )


def create_app(options: Mapping[str, Any] | None = None) -> FastAPI:
    """Create a FastAPI application with pagination registered.

    Args:
        options: Pagination options, merged over the defaults.

    Returns:
        Configured FastAPI application instance.

    Raises:
        ConfigValidationError: If the pagination options are invalid.
    """
    configure_logging(settings.log_level)

    app = FastAPI(
        title="Pagination Middleware",
        version="1.0.0",
        description="Paginated list endpoints with links and metadata",
    )

    # Order matters: specific handlers first, then catch-all
    app.add_exception_handler(APIError, api_error_handler)
    app.add_exception_handler(RequestValidationError, validation_error_handler)
    app.add_exception_handler(Exception, internal_error_handler)

    @app.get("/health")
    @pagination_settings(enabled=False)
    def health_check() -> dict:
        """Health check endpoint for monitoring.

        Returns:
            {"status": "healthy"} if service is running.
        """
        return {"status": "healthy"}

    register_pagination(app, options)
    return app
