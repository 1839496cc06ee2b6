"""Reshaping of handler results into paginated responses.

Body location:
    {"meta": {...}, "results": [...], ...passthrough}

Header location:
    Content-Range: 5-9/20
    Link: <url>; rel="self", <url>; rel="first", <url>; rel="last", ...
    body: [...]
"""

from dataclasses import dataclass, field
from typing import Any

from pagination_middleware.core.errors import InvalidResultShapeError
from pagination_middleware.core.metadata import PageWindow, build_meta
from pagination_middleware.core.options import MetaLocation, PaginationConfig

TOTAL_COUNT_HEADER = "total-count"
"""Side-channel header a handler may use to report the total count."""

_LINK_RELATIONS = (
    ("self", "self"),
    ("first", "first"),
    ("last", "last"),
    ("next", "next"),
    ("previous", "prev"),
)


@dataclass(frozen=True)
class HandlerResult:
    """Results, total count and passthrough fields read from a handler body.

    Attributes:
        results: The page slice.
        total_count: Items across all pages, or None when unknown.
        passthrough: Other top-level fields of an object body.
    """

    results: list[Any]
    total_count: int | None
    passthrough: dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class ShapedResponse:
    """Outbound response after pagination.

    Attributes:
        status_code: Final HTTP status.
        body: JSON-compatible body.
        headers: Headers to set (overwriting existing values).
        remove_headers: Headers to drop from the handler's response.
    """

    status_code: int
    body: Any
    headers: dict[str, str] = field(default_factory=dict)
    remove_headers: tuple[str, ...] = ()


def _check_total(value: Any) -> int | None:
    if value is None:
        return None
    if isinstance(value, bool) or not isinstance(value, int):
        msg = f"The total count must be an integer or null, got {type(value).__name__}"
        raise InvalidResultShapeError(msg)
    return value


def extract_result(
    body: Any,
    config: PaginationConfig,
    side_channel_total: int | None = None,
) -> HandlerResult:
    """Read results and total count from a decoded handler body.

    Args:
        body: Decoded JSON body produced by the handler.
        config: Pagination configuration.
        side_channel_total: Total count reported out of band, used when the
            body does not carry one.

    Returns:
        HandlerResult.

    Raises:
        InvalidResultShapeError: If the results are not an array, or the
            total count is not an integer.
    """
    if isinstance(body, list):
        return HandlerResult(results=body, total_count=_check_total(side_channel_total))

    if not isinstance(body, dict):
        msg = "The results must be an array or an object holding one"
        raise InvalidResultShapeError(msg)

    results_name = config.reply.parameters.results.name
    total_name = config.reply.parameters.total_count.name
    results = body.get(results_name)
    if not isinstance(results, list):
        msg = f"The results must be an array (field '{results_name}')"
        raise InvalidResultShapeError(msg)

    total = body[total_name] if total_name in body else side_channel_total
    passthrough = {
        key: value for key, value in body.items() if key not in (results_name, total_name)
    }
    return HandlerResult(
        results=results,
        total_count=_check_total(total),
        passthrough=passthrough,
    )


def link_header(links: dict[str, str | None]) -> str:
    """Format non-null links as an RFC 5988 Link header value."""
    return ", ".join(
        f'<{links[key]}>; rel="{rel}"' for key, rel in _LINK_RELATIONS if links[key]
    )


def shape_response(
    result: HandlerResult,
    window: PageWindow,
    links: dict[str, str | None],
    config: PaginationConfig,
    status_code: int,
) -> ShapedResponse:
    """Build the paginated response for the configured location.

    Args:
        result: Results read from the handler body.
        window: Current page window.
        links: Navigation links from build_links().
        config: Pagination configuration.
        status_code: Status the handler responded with.

    Returns:
        ShapedResponse to send instead of the handler's body.
    """
    override_status = config.meta.success_status_code

    if config.meta.location == MetaLocation.HEADER:
        total = result.total_count
        if total is None or total <= window.limit or not result.results:
            return ShapedResponse(
                status_code=status_code,
                body=result.results,
                remove_headers=(TOTAL_COUNT_HEADER,),
            )
        start = window.start_index
        end = start + len(result.results) - 1
        return ShapedResponse(
            status_code=override_status or status_code,
            body=result.results,
            headers={
                "Content-Range": f"{start}-{end}/{total}",
                "Link": link_header(links),
            },
            remove_headers=(TOTAL_COUNT_HEADER,),
        )

    meta_name = config.meta.name
    results_name = config.results.name
    envelope: dict[str, Any] = {
        meta_name: build_meta(window, links, config),
        results_name: result.results,
    }
    for key, value in result.passthrough.items():
        if key not in (meta_name, results_name):
            envelope[key] = value

    return ShapedResponse(status_code=override_status or status_code, body=envelope)
