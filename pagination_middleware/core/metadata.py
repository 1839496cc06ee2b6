"""Pagination metadata: page arithmetic and navigation links.

Everything here is pure. PageWindow answers the arithmetic questions
(page count, neighbours), LinkBuilder turns page numbers into URLs, and
build_meta() assembles the configured metadata object.

Rules:
- page_count = ceil(total / limit); 0 when total is 0; None when unknown.
- previous exists only when page > 1.
- next and last exist only when the total is known and page < page_count.
- first always points at page 1; self at the current page.
"""

from dataclasses import dataclass
from typing import Any

from pagination_middleware.core.options import PaginationConfig
from pagination_middleware.core.querystring import RawQuery


@dataclass(frozen=True)
class PageWindow:
    """The current page of a collection.

    Attributes:
        page: Current page number.
        limit: Page size (positive).
        total_count: Items across all pages, or None when unknown.
        count: Items on this page.
    """

    page: int
    limit: int
    total_count: int | None
    count: int

    @property
    def page_count(self) -> int | None:
        if self.total_count is None:
            return None
        if self.total_count <= 0:
            return 0
        return -(-self.total_count // self.limit)

    @property
    def has_next(self) -> bool:
        page_count = self.page_count
        return bool(page_count) and self.page < page_count

    @property
    def has_previous(self) -> bool:
        return bool(self.page_count) and self.page > 1

    @property
    def previous_page(self) -> int | None:
        return self.page - 1 if self.page > 1 else None

    @property
    def next_page(self) -> int | None:
        return self.page + 1 if self.has_next else None

    @property
    def last_page(self) -> int | None:
        return self.page_count if self.has_next else None

    @property
    def start_index(self) -> int:
        """Zero-based index of the first item on this page."""
        return max(self.page - 1, 0) * self.limit


class LinkBuilder:
    """Builds page URLs from the request's original raw query string.

    Only the page and limit parameters (and the pagination flag) are
    rewritten; every other parameter keeps its original bytes.
    """

    def __init__(
        self,
        base_url: str,
        raw_query: RawQuery,
        limit: int,
        config: PaginationConfig,
        pagination_default: bool | None = None,
    ) -> None:
        """Initialize the builder.

        Args:
            base_url: Scheme, host and path of the request (no query).
            raw_query: The query string exactly as the client sent it.
            limit: Resolved page size, carried into every link.
            config: Pagination configuration.
            pagination_default: Effective flag default for the route, when
                it differs from the global one.
        """
        self.base_url = base_url
        self.page_name = config.query.page.name

        query = raw_query.set(config.query.limit.name, limit)
        flag = config.query.pagination
        if pagination_default is None:
            pagination_default = flag.default
        if flag.active:
            # Links carry the flag only when it is off by default.
            if pagination_default:
                query = query.remove(flag.name)
            else:
                query = query.set(flag.name, "true")
        self._query = query

    def uri_for(self, page: int | None) -> str | None:
        """URL for the given page, or None when there is no such page."""
        if not page:
            return None
        return f"{self.base_url}?{self._query.set(self.page_name, page)}"


def build_links(window: PageWindow, builder: LinkBuilder) -> dict[str, str | None]:
    """Navigation links for the window.

    Returns:
        Mapping with keys self, first, last, previous, next.
    """
    return {
        "self": builder.uri_for(window.page),
        "first": builder.uri_for(1),
        "last": builder.uri_for(window.last_page),
        "previous": builder.uri_for(window.previous_page),
        "next": builder.uri_for(window.next_page),
    }


def build_meta(
    window: PageWindow,
    links: dict[str, str | None],
    config: PaginationConfig,
) -> dict[str, Any]:
    """Assemble the metadata object. Inactive fields are omitted entirely."""
    meta_options = config.meta
    fields = (
        (meta_options.count, window.count),
        (meta_options.total_count, window.total_count),
        (meta_options.page_count, window.page_count),
        (meta_options.self_link, links["self"]),
        (meta_options.first, links["first"]),
        (meta_options.last, links["last"]),
        (meta_options.previous, links["previous"]),
        (meta_options.next, links["next"]),
        (meta_options.has_next, window.has_next),
        (meta_options.has_previous, window.has_previous),
    )

    meta: dict[str, Any] = {}
    if meta_options.page.active:
        meta[config.query.page.name] = window.page
    if meta_options.limit.active:
        meta[config.query.limit.name] = window.limit
    for option, value in fields:
        if option.active:
            meta[option.name] = value
    return meta
