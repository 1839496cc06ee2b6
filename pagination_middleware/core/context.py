"""Per-request pagination state.

The middleware stores a PaginationState on ``request.state.pagination`` for
every HTTP request. Handlers read the resolved page/limit from it and report
the total item count through it.

Usage:
    @app.get("/users")
    async def list_users(
        pagination: PaginationState = Depends(get_pagination),
    ):
        users, total = await repo.list(
            offset=pagination.offset, limit=pagination.limit
        )
        pagination.total_count = total
        return users
"""

from dataclasses import dataclass

from fastapi import Request

from pagination_middleware.core.errors import InternalError
from pagination_middleware.core.options import PaginationConfig, RouteOverride
from pagination_middleware.core.params import ResolvedParams
from pagination_middleware.core.querystring import RawQuery

STATE_KEY = "pagination"
"""Attribute of ``request.state`` holding the PaginationState."""


@dataclass
class PaginationState:
    """Pagination context for one request.

    Attributes:
        config: Configuration of the app handling the request.
        paginated: Whether the route participates in pagination.
        raw_query: Query string exactly as the client sent it.
        override: Per-route settings, if any.
        params: Resolved parameters (None until resolved, or when the route
            is not paginated).
        total_count: Side-channel total item count reported by the handler.
    """

    config: PaginationConfig
    paginated: bool
    raw_query: RawQuery
    override: RouteOverride | None = None
    params: ResolvedParams | None = None
    total_count: int | None = None

    @property
    def enabled(self) -> bool:
        return self.paginated and self.params is not None and self.params.enabled

    @property
    def page(self) -> int:
        if self.params is None:
            return self.config.query.page.default
        return self.params.page

    @property
    def limit(self) -> int:
        if self.params is None:
            return self.config.query.limit.default
        return self.params.limit

    @property
    def offset(self) -> int:
        return max(self.page - 1, 0) * self.limit


def get_pagination(request: Request) -> PaginationState:
    """FastAPI dependency returning the request's pagination state.

    Raises:
        InternalError: If pagination is not registered on the app.
    """
    state = getattr(request.state, STATE_KEY, None)
    if state is None:
        msg = "Pagination is not registered on this application"
        raise InternalError(msg)
    return state


def set_total_count(request: Request, total_count: int | None) -> None:
    """Report the total item count for the current request."""
    get_pagination(request).total_count = total_count
