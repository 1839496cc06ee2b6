"""ASGI middleware that paginates list endpoints.

Pre-handler phase (per HTTP request):
- Match the request to its route and read the route's pagination settings.
- Decide whether the request is paginated.
- Resolve the pagination flag, page and limit. A bad value under the
  ``badRequest`` policy short-circuits with a 400 envelope.
- Rewrite ``scope["query_string"]`` so the handler sees resolved values,
  keeping the client's original query for link generation.

Post-handler phase (paginated, enabled requests only):
- Buffer the handler's response. Anything that is not a 2xx JSON response
  is forwarded untouched, byte for byte.
- Decode the body, read results and total count, compute metadata and
  links, and re-send the body (envelope) or headers (Link/Content-Range).

Handler exceptions are never intercepted; they propagate to the host's
error handling as-is.

On lifespan startup, every route's pagination settings are validated; an
invalid setting fails startup instead of failing each request to that route.

This is a raw ASGI middleware (not BaseHTTPMiddleware) for direct access
to scope["query_string"] and the send callable.
"""

from __future__ import annotations

import json
from functools import partial
from typing import Any

import structlog
from starlette.datastructures import Headers, MutableHeaders
from starlette.requests import Request
from starlette.routing import Router
from starlette.types import ASGIApp, Message, Receive, Scope, Send

from pagination_middleware.core.context import STATE_KEY, PaginationState
from pagination_middleware.core.errors import (
    ConfigValidationError,
    InvalidQueryParameterError,
    InvalidResultShapeError,
)
from pagination_middleware.core.metadata import LinkBuilder, PageWindow, build_links
from pagination_middleware.core.options import (
    PaginationConfig,
    validate_route_settings,
)
from pagination_middleware.core.params import (
    handler_query,
    pagination_default,
    resolve_params,
)
from pagination_middleware.core.querystring import RawQuery
from pagination_middleware.core.reply import paginate
from pagination_middleware.core.responses import error_response
from pagination_middleware.core.routes import (
    find_route,
    get_route_override,
    is_paginated,
)
from pagination_middleware.core.shaping import (
    TOTAL_COUNT_HEADER,
    extract_result,
    shape_response,
)

logger = structlog.get_logger()


class PaginationMiddleware:
    """Negotiate pagination parameters and reshape list responses.

    Each instance owns one PaginationConfig, so several apps in one process
    can be configured independently.
    """

    def __init__(
        self,
        app: ASGIApp,
        config: PaginationConfig,
        router: Router,
        skip_paths: frozenset[str] = frozenset(),
    ) -> None:
        """Initialize with the next ASGI application.

        Args:
            app: The next ASGI application in the middleware chain.
            config: Validated pagination configuration.
            router: Router used to find the route a request dispatches to.
            skip_paths: Route paths that are never paginated (framework
                routes such as the OpenAPI schema and docs pages).
        """
        self.app = app
        self.config = config
        self.router = router
        self.skip_paths = skip_paths

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        """Process an ASGI connection.

        Args:
            scope: ASGI connection scope.
            receive: ASGI receive callable.
            send: ASGI send callable.
        """
        if scope["type"] == "lifespan":
            await self._lifespan(scope, receive, send)
            return

        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        request = Request(scope)
        route = find_route(self.router, scope)
        override = get_route_override(route)
        paginated = (
            route is not None
            and route.path not in self.skip_paths
            and is_paginated(scope["method"], route.path, override, self.config)
        )

        state = PaginationState(
            config=self.config,
            paginated=paginated,
            raw_query=RawQuery.parse(scope.get("query_string", b"")),
            override=override,
        )
        setattr(request.state, STATE_KEY, state)
        setattr(request.state, self.config.reply.paginate, partial(paginate, request))

        if not paginated:
            await self.app(scope, receive, send)
            return

        try:
            params = resolve_params(request.query_params, override, self.config)
        except InvalidQueryParameterError as exc:
            await error_response(exc)(scope, receive, send)
            return

        state.params = params
        scope["query_string"] = handler_query(
            state.raw_query, params, override, self.config
        ).encode()
        logger.debug(
            "pagination_resolved",
            path=scope["path"],
            enabled=params.enabled,
            page=params.page,
            limit=params.limit,
        )

        if not params.enabled:
            await self.app(scope, receive, send)
            return

        await self._paginate(scope, receive, send, request, state)

    async def _lifespan(self, scope: Scope, receive: Receive, send: Send) -> None:
        """Validate route settings on startup, then hand over to the app."""
        message = await receive()
        if message["type"] == "lifespan.startup":
            try:
                validate_route_settings(self.router.routes)
            except ConfigValidationError as exc:
                logger.error("pagination_route_settings_invalid", error=str(exc))
                await send({"type": "lifespan.startup.failed", "message": str(exc)})
                raise

        replayed = False

        async def replay_receive() -> Message:
            nonlocal replayed
            if not replayed:
                replayed = True
                return message
            return await receive()

        await self.app(scope, replay_receive, send)

    async def _paginate(
        self,
        scope: Scope,
        receive: Receive,
        send: Send,
        request: Request,
        state: PaginationState,
    ) -> None:
        """Run the handler, buffering a shapeable response for rewriting."""
        start_message: Message | None = None
        body_parts: list[bytes] = []
        bypass = False

        async def buffered_send(message: Message) -> None:
            nonlocal start_message, bypass

            if bypass:
                await send(message)
                return

            if message["type"] == "http.response.start":
                if not _is_shapeable(message):
                    bypass = True
                    await send(message)
                    return
                start_message = message
                return

            if message["type"] == "http.response.body" and start_message is not None:
                body_parts.append(message.get("body", b""))
                return

            await send(message)

        await self.app(scope, receive, buffered_send)

        if bypass or start_message is None:
            return

        try:
            await self._send_shaped(
                send, request, state, start_message, b"".join(body_parts)
            )
        except InvalidResultShapeError as exc:
            logger.error(
                "pagination_result_shape_invalid",
                path=scope["path"],
                error=exc.message,
            )
            await error_response(exc)(scope, receive, send)

    async def _send_shaped(
        self,
        send: Send,
        request: Request,
        state: PaginationState,
        start_message: Message,
        raw_body: bytes,
    ) -> None:
        config = self.config
        start_message.setdefault("headers", [])
        headers = MutableHeaders(scope=start_message)

        try:
            body = json.loads(raw_body)
        except (json.JSONDecodeError, UnicodeDecodeError):
            msg = "The response body is not valid JSON"
            raise InvalidResultShapeError(msg) from None

        result = extract_result(body, config, _side_channel_total(request, state, headers))

        window = PageWindow(
            page=state.page,
            limit=state.limit,
            total_count=result.total_count,
            count=len(result.results),
        )
        builder = LinkBuilder(
            base_url=self._base_url(request),
            raw_query=state.raw_query,
            limit=state.limit,
            config=config,
            pagination_default=pagination_default(state.override, config),
        )
        shaped = shape_response(
            result, window, build_links(window, builder), config, start_message["status"]
        )

        payload = _render(shaped.body)
        for name in shaped.remove_headers:
            del headers[name]
        for name, value in shaped.headers.items():
            headers[name] = value
        headers["content-length"] = str(len(payload))
        start_message["status"] = shaped.status_code

        await send(start_message)
        await send({"type": "http.response.body", "body": payload, "more_body": False})

    def _base_url(self, request: Request) -> str:
        """Scheme, host and path for generated links."""
        url = request.url
        origin = self.config.meta.base_uri or f"{url.scheme}://{url.netloc}"
        return f"{origin}{url.path}"


def _is_shapeable(message: Message) -> bool:
    """Check if a response start message describes a 2xx JSON response.

    Args:
        message: ASGI ``http.response.start`` message.

    Returns:
        True if the status is in [200, 300), the content type is JSON and
        the body is not content-encoded (gzip, br, ...).
    """
    status = message["status"]
    if not 200 <= status < 300:
        return False
    headers = Headers(raw=message.get("headers", []))
    if headers.get("content-encoding", "identity").strip().lower() != "identity":
        return False
    content_type = headers.get("content-type", "")
    media_type = content_type.split(";", 1)[0].strip().lower()
    return media_type == "application/json" or media_type.endswith("+json")


def _side_channel_total(
    request: Request, state: PaginationState, headers: MutableHeaders
) -> int | None:
    """Total count reported outside the body, if any.

    Sources, in order: the pagination state, a request.state attribute named
    after meta.totalCount, and the total-count response header.

    Raises:
        InvalidResultShapeError: If the total-count header is not an integer.
    """
    if state.total_count is not None:
        return state.total_count

    legacy = getattr(request.state, state.config.meta.total_count.name, None)
    if legacy is not None:
        return legacy

    header = headers.get(TOTAL_COUNT_HEADER)
    if header is None:
        return None
    try:
        return int(header)
    except ValueError:
        msg = f"The {TOTAL_COUNT_HEADER} header must be an integer"
        raise InvalidResultShapeError(msg) from None


def _render(content: Any) -> bytes:
    """Serialize like starlette.responses.JSONResponse."""
    return json.dumps(
        content,
        ensure_ascii=False,
        allow_nan=False,
        indent=None,
        separators=(",", ":"),
    ).encode("utf-8")
