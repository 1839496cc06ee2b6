"""Registration of pagination on a FastAPI/Starlette application.

Usage:
    app = FastAPI()
    register_pagination(app, {"query": {"limit": {"default": 10}}})

register_pagination() must be called before the app starts serving, once
per app. The resolved configuration is owned by the installed middleware and
mirrored on ``app.state.pagination_config``; separate apps in one process
are configured independently.
"""

from collections.abc import Mapping
from typing import Any

import structlog
from fastapi import Request
from fastapi.responses import JSONResponse
from starlette.applications import Starlette

from pagination_middleware.core.errors import (
    ConfigValidationError,
    InvalidResultShapeError,
)
from pagination_middleware.core.options import PaginationConfig, resolve_config
from pagination_middleware.core.pagination_middleware import PaginationMiddleware
from pagination_middleware.core.responses import error_response

logger = structlog.get_logger()

CONFIG_STATE_KEY = "pagination_config"
"""Attribute of ``app.state`` holding the app's PaginationConfig."""


def result_shape_error_handler(
    _request: Request, exc: InvalidResultShapeError
) -> JSONResponse:
    """Render InvalidResultShapeError raised by the paginate helper.

    Args:
        request: The incoming request.
        exc: The error raised inside the handler.

    Returns:
        JSONResponse with the error envelope (500).
    """
    logger.error("pagination_result_shape_invalid", error=exc.message)
    return error_response(exc)


def _framework_paths(app: Starlette) -> frozenset[str]:
    """OpenAPI schema and docs routes FastAPI adds on its own."""
    attrs = ("openapi_url", "docs_url", "redoc_url", "swagger_ui_oauth2_redirect_url")
    return frozenset(path for path in (getattr(app, attr, None) for attr in attrs) if path)


def register_pagination(
    app: Starlette,
    options: Mapping[str, Any] | None = None,
) -> PaginationConfig:
    """Validate options and install the pagination middleware on an app.

    Args:
        app: The FastAPI (or Starlette) application.
        options: Pagination options, merged over the defaults.

    Returns:
        The resolved PaginationConfig.

    Raises:
        ConfigValidationError: If the options or any route's pagination
            settings are invalid, or pagination is already registered on
            this app.
    """
    if getattr(app.state, CONFIG_STATE_KEY, None) is not None:
        msg = "pagination is already registered on this application"
        raise ConfigValidationError("", msg)

    config = resolve_config(options, routes=app.router.routes)

    app.add_middleware(
        PaginationMiddleware,
        config=config,
        router=app.router,
        skip_paths=_framework_paths(app),
    )
    app.add_exception_handler(InvalidResultShapeError, result_shape_error_handler)
    setattr(app.state, CONFIG_STATE_KEY, config)

    logger.info(
        "pagination_registered",
        location=config.meta.location.value,
        invalid=config.query.invalid.value,
        base_uri=config.meta.base_uri,
    )
    return config
