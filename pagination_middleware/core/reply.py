"""Handler-facing ``paginate`` helper.

Packages a handler's payload and total count into the shape the response
shaper reads: an object with the configured results and totalCount fields,
plus any passthrough fields.

Usage:
    @app.get("/users")
    async def list_users(request: Request):
        users, total = await repo.list(...)
        return paginate(request, users, total)

    @app.get("/teams")
    async def list_teams(request: Request):
        payload = {"teams": [...], "generated_at": "..."}
        return request.state.paginate(payload, 42, key="teams")
"""

from typing import Any

from fastapi import Request
from fastapi.encoders import jsonable_encoder
from starlette.responses import JSONResponse

from pagination_middleware.core.context import get_pagination
from pagination_middleware.core.errors import InvalidResultShapeError
from pagination_middleware.core.options import MetaLocation
from pagination_middleware.core.shaping import TOTAL_COUNT_HEADER


def paginate(
    request: Request,
    payload: Any,
    total_count: int | None = None,
    *,
    key: str | None = None,
) -> JSONResponse:
    """Return a response the pagination middleware can reshape.

    Args:
        request: The current request.
        payload: Either the results sequence, or an object holding it under
            ``key``.
        total_count: Items across all pages (None when unknown).
        key: Field of ``payload`` holding the results when ``payload`` is
            not itself a sequence. The field, and any field named like
            the totalCount reply parameter, is removed from the passthrough
            fields.

    Returns:
        JSONResponse with the results, total count and passthrough fields.

    Raises:
        InvalidResultShapeError: If ``payload`` is not a sequence and no key
            is given, or if the key is absent from ``payload``.
    """
    state = get_pagination(request)
    config = state.config

    is_sequence = isinstance(payload, list | tuple)
    if not is_sequence and key is None:
        msg = "Missing results key"
        raise InvalidResultShapeError(msg)

    passthrough: dict[str, Any] = {}
    if is_sequence:
        results = list(payload)
    else:
        if not isinstance(payload, dict) or key not in payload:
            msg = f"key: {key} does not exist on response"
            raise InvalidResultShapeError(msg)
        results = payload[key]
        reserved = {key, config.reply.parameters.total_count.name}
        passthrough = {
            name: value for name, value in payload.items() if name not in reserved
        }

    state.total_count = total_count

    content: dict[str, Any] = {
        **passthrough,
        config.reply.parameters.results.name: results,
    }
    if total_count is not None:
        content[config.reply.parameters.total_count.name] = total_count

    headers = None
    if config.meta.location == MetaLocation.HEADER and total_count is not None:
        headers = {TOTAL_COUNT_HEADER: str(total_count)}

    return JSONResponse(content=jsonable_encoder(content), headers=headers)
