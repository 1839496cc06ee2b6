"""Resolution of page, limit and the pagination flag for a request.

Precedence for every value: explicit query string > route default > global
default. Unparseable page/limit values are handled by the configured
invalid policy: fall back to the default, or reject the request with 400.
"""

import re
from collections.abc import Mapping
from dataclasses import dataclass

import structlog

from pagination_middleware.core.errors import InvalidQueryParameterError
from pagination_middleware.core.options import (
    InvalidPolicy,
    PaginationConfig,
    RouteOverride,
)
from pagination_middleware.core.querystring import RawQuery

logger = structlog.get_logger()

_FLAG_VALUES = {"true": True, "false": False}

# Leading ASCII integer; trailing text such as "5.5" or "10abc" is ignored.
_LEADING_INT = re.compile(r"\s*([+-]?[0-9]+)")


@dataclass(frozen=True)
class ResolvedParams:
    """Pagination parameters for one request. Never changes once resolved.

    Attributes:
        enabled: Whether pagination applies to this request.
        page: Requested page (1-indexed; any integer is accepted).
        limit: Page size (always positive).
    """

    enabled: bool
    page: int
    limit: int

    @property
    def offset(self) -> int:
        """Number of items to skip before this page (0 for page 1)."""
        return max(self.page - 1, 0) * self.limit


def pagination_default(override: RouteOverride | None, config: PaginationConfig) -> bool:
    """Effective pagination default: the route default, else the global one."""
    if override is not None and override.defaults.pagination is not None:
        return override.defaults.pagination
    return config.query.pagination.default


def resolve_pagination(
    query: Mapping[str, str],
    override: RouteOverride | None,
    config: PaginationConfig,
) -> bool:
    """Resolve whether pagination is enabled for this request.

    Args:
        query: Parsed query parameters.
        override: Per-route settings, if any.
        config: Pagination configuration.

    Returns:
        The query flag when present and active, else the route default,
        else the global default.
    """
    flag = config.query.pagination
    if flag.active:
        value = _FLAG_VALUES.get(query.get(flag.name, ""))
        if value is not None:
            return value

    return pagination_default(override, config)


def _resolve_int(
    query: Mapping[str, str],
    name: str,
    default: int,
    config: PaginationConfig,
    *,
    positive: bool,
) -> int:
    raw = query.get(name)
    if raw is None or raw == "":
        return default

    match = _LEADING_INT.match(raw)
    value = int(match.group(1)) if match else None
    if value is not None and (value > 0 or not positive):
        return value

    if config.query.invalid == InvalidPolicy.BAD_REQUEST:
        logger.info("pagination_parameter_invalid", parameter=name, action="reject")
        raise InvalidQueryParameterError(name, raw)

    logger.warning(
        "pagination_parameter_invalid",
        parameter=name,
        action="default",
        default=default,
    )
    return default


def resolve_page_and_limit(
    query: Mapping[str, str],
    override: RouteOverride | None,
    config: PaginationConfig,
) -> tuple[int, int]:
    """Resolve page and limit for this request.

    Args:
        query: Parsed query parameters.
        override: Per-route settings, if any.
        config: Pagination configuration.

    Returns:
        (page, limit) tuple. limit is always positive.

    Raises:
        InvalidQueryParameterError: If a value does not parse and the
            invalid policy is ``badRequest``.
    """
    defaults = override.defaults if override is not None else None
    page_default = (
        defaults.page if defaults and defaults.page is not None else config.query.page.default
    )
    limit_default = (
        defaults.limit
        if defaults and defaults.limit is not None
        else config.query.limit.default
    )

    page = _resolve_int(
        query, config.query.page.name, page_default, config, positive=False
    )
    limit = _resolve_int(
        query, config.query.limit.name, limit_default, config, positive=True
    )
    return page, limit


def resolve_params(
    query: Mapping[str, str],
    override: RouteOverride | None,
    config: PaginationConfig,
) -> ResolvedParams:
    """Resolve the flag, then page and limit when pagination is enabled.

    When pagination is disabled, page and limit are not parsed at all and
    carry the global defaults.
    """
    enabled = resolve_pagination(query, override, config)
    if not enabled:
        return ResolvedParams(
            enabled=False,
            page=config.query.page.default,
            limit=config.query.limit.default,
        )
    page, limit = resolve_page_and_limit(query, override, config)
    return ResolvedParams(enabled=True, page=page, limit=limit)


def handler_query(
    raw_query: RawQuery,
    params: ResolvedParams,
    override: RouteOverride | None,
    config: PaginationConfig,
) -> RawQuery:
    """Build the query string the downstream handler will see.

    - Pagination disabled: only the flag is touched.
    - Pagination enabled: page and limit carry the resolved values.
    - The flag is stripped when resolved true and on by default (the
      handler sees a clean parameter set), otherwise it carries the
      resolved literal. An inactive flag is left alone.
    """
    query = raw_query
    flag = config.query.pagination
    if flag.active:
        if params.enabled and pagination_default(override, config):
            query = query.remove(flag.name)
        else:
            query = query.set(flag.name, "true" if params.enabled else "false")

    if params.enabled:
        query = query.set(config.query.page.name, params.page)
        query = query.set(config.query.limit.name, params.limit)
    return query
