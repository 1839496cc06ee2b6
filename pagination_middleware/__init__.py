"""Pagination middleware for FastAPI/Starlette list endpoints.

Public API:
    register_pagination(app, options) -- install on an app
    pagination_settings(...)          -- per-route settings decorator
    paginate(request, payload, total) -- handler helper
    get_pagination / set_total_count  -- per-request state access
"""

from pagination_middleware.core.context import (
    PaginationState,
    get_pagination,
    set_total_count,
)
from pagination_middleware.core.errors import (
    ConfigValidationError,
    InvalidQueryParameterError,
    InvalidResultShapeError,
)
from pagination_middleware.core.options import (
    InvalidPolicy,
    MetaLocation,
    PaginationConfig,
    RouteOverride,
    resolve_config,
)
from pagination_middleware.core.reply import paginate
from pagination_middleware.core.routes import pagination_settings
from pagination_middleware.plugin import register_pagination

__all__ = [
    "ConfigValidationError",
    "InvalidPolicy",
    "InvalidQueryParameterError",
    "InvalidResultShapeError",
    "MetaLocation",
    "PaginationConfig",
    "PaginationState",
    "RouteOverride",
    "get_pagination",
    "paginate",
    "pagination_settings",
    "register_pagination",
    "resolve_config",
    "set_total_count",
]
