"""Route participation: which requests get paginated.

A request is paginated when its route's override says so, or otherwise when
it is a GET whose path template is included and not excluded. Exclusion
always wins over inclusion.

Per-route settings are attached to the endpoint with the decorator:

    @app.get("/users")
    @pagination_settings(defaults={"limit": 10})
    async def list_users(): ...

    @app.get("/health")
    @pagination_settings(enabled=False)
    async def health(): ...
"""

from collections.abc import Callable
from typing import Any, TypeVar

from starlette.routing import Match, Route, Router
from starlette.types import Scope

from pagination_middleware.core.matchers import any_match
from pagination_middleware.core.options import (
    ROUTE_SETTINGS_ATTR,
    PaginationConfig,
    RouteOverride,
    resolve_route_override,
)

F = TypeVar("F", bound=Callable[..., Any])


def pagination_settings(
    *,
    enabled: bool | None = None,
    defaults: dict[str, Any] | None = None,
) -> Callable[[F], F]:
    """Attach per-route pagination settings to an endpoint.

    Settings are validated immediately, so a malformed value fails at import
    time rather than on the first request.

    Args:
        enabled: Force pagination on or off for this route.
        defaults: Route-specific fallbacks for "page", "limit", "pagination".

    Returns:
        Decorator that stores a RouteOverride on the endpoint.

    Raises:
        ConfigValidationError: If the settings do not match the schema.
    """
    raw: dict[str, Any] = {}
    if enabled is not None:
        raw["enabled"] = enabled
    if defaults is not None:
        raw["defaults"] = defaults

    def decorator(endpoint: F) -> F:
        override = resolve_route_override(raw, f"routes[{endpoint.__name__}]")
        setattr(endpoint, ROUTE_SETTINGS_ATTR, override)
        return endpoint

    return decorator


def find_route(router: Router, scope: Scope) -> Route | None:
    """Find the endpoint route the router will dispatch this request to.

    A full match wins. Otherwise the first path-only match (method not
    allowed) is returned so that method-based rules still apply.

    Args:
        router: The app's router.
        scope: ASGI HTTP scope.

    Returns:
        The matching route, or None when no route matches the path.
    """
    partial: Route | None = None
    for route in router.routes:
        if not isinstance(route, Route):
            continue
        match, _ = route.matches(scope)
        if match == Match.FULL:
            return route
        if match == Match.PARTIAL and partial is None:
            partial = route
    return partial


def get_route_override(route: Route | None) -> RouteOverride | None:
    """Read the validated per-route settings of a route, if any.

    Settings are validated at registration and again at lifespan startup.
    A raw mapping is only seen here when the server skips the lifespan
    protocol, and is validated on the spot.
    """
    if route is None:
        return None
    raw = getattr(route.endpoint, ROUTE_SETTINGS_ATTR, None)
    if raw is None:
        return None
    return resolve_route_override(raw, f"routes[{route.path}]")


def is_paginated(
    method: str,
    path: str,
    override: RouteOverride | None,
    config: PaginationConfig,
) -> bool:
    """Decide whether a request participates in pagination.

    Args:
        method: HTTP request method.
        path: Route path template (e.g., "/users/{user_id}").
        override: Per-route settings, if any.
        config: Pagination configuration.

    Returns:
        True if the request should be paginated.
    """
    if override is not None and override.enabled is not None:
        return override.enabled

    routes = config.routes
    return (
        method.upper() == "GET"
        and (routes.include_all or any_match(routes.include, path))
        and not any_match(routes.exclude, path)
    )
