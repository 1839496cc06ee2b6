"""Shared fixtures for pagination tests.

build_app() creates the example app with a set of list endpoints over a
20-user source. Each endpoint exercises a different way for a handler to
report its page and total count.
"""

import gzip
import json
from collections.abc import AsyncGenerator, Mapping
from typing import Any

import pytest
from fastapi import Depends, FastAPI, HTTPException, Request
from fastapi.responses import PlainTextResponse, Response
from httpx import ASGITransport, AsyncClient

from pagination_middleware import (
    PaginationState,
    get_pagination,
    paginate,
    pagination_settings,
    set_total_count,
)
from pagination_middleware.main import create_app

USERS = [{"name": f"name{i}", "username": f"username{i}"} for i in range(20)]

BASE_URL = "http://test"


def _page(state: PaginationState) -> list[dict]:
    return USERS[state.offset : state.offset + state.limit]


def build_app(options: Mapping[str, Any] | None = None) -> FastAPI:
    """Create the example app with list endpoints over USERS.

    Args:
        options: Pagination options for register_pagination.

    Returns:
        FastAPI app with pagination registered.
    """
    app = create_app(options)

    @app.get("/users")
    async def list_users(pagination: PaginationState = Depends(get_pagination)):
        pagination.total_count = len(USERS)
        return _page(pagination)

    @app.post("/users")
    async def create_users():
        return USERS

    @app.get("/users/unknown-total")
    async def list_users_unknown_total(
        pagination: PaginationState = Depends(get_pagination),
    ):
        return _page(pagination)

    @app.get("/users/empty")
    async def list_no_users():
        return []

    @app.get("/users/helper")
    async def list_users_helper(
        request: Request, pagination: PaginationState = Depends(get_pagination)
    ):
        return paginate(request, _page(pagination), len(USERS))

    @app.get("/users/keyed")
    async def list_users_keyed(
        request: Request, pagination: PaginationState = Depends(get_pagination)
    ):
        payload = {
            "items": _page(pagination),
            "otherKey": "x",
            "meta": "clash",
            "results": "clash",
        }
        return request.state.paginate(payload, len(USERS), key="items")

    @app.get("/users/object")
    async def list_users_object(pagination: PaginationState = Depends(get_pagination)):
        return {"results": _page(pagination), "totalCount": len(USERS), "otherKey": "x"}

    @app.get("/users/side-channel")
    async def list_users_side_channel(
        request: Request, pagination: PaginationState = Depends(get_pagination)
    ):
        set_total_count(request, len(USERS))
        return _page(pagination)

    @app.get("/users/legacy-total")
    async def list_users_legacy_total(
        request: Request, pagination: PaginationState = Depends(get_pagination)
    ):
        request.state.totalCount = len(USERS)
        return _page(pagination)

    @app.get("/users/route-defaults")
    @pagination_settings(defaults={"limit": 3, "page": 2})
    async def list_users_route_defaults(
        pagination: PaginationState = Depends(get_pagination),
    ):
        pagination.total_count = len(USERS)
        return _page(pagination)

    @app.get("/users/off-by-default")
    @pagination_settings(defaults={"pagination": False})
    async def list_users_off_by_default(
        pagination: PaginationState = Depends(get_pagination),
    ):
        pagination.total_count = len(USERS)
        return _page(pagination)

    @app.post("/users/search")
    @pagination_settings(enabled=True)
    async def search_users(pagination: PaginationState = Depends(get_pagination)):
        pagination.total_count = len(USERS)
        return _page(pagination)

    @app.get("/users/forced-off")
    @pagination_settings(enabled=False)
    async def list_users_forced_off():
        return USERS

    @app.get("/users/{user_id}/echo-query")
    async def echo_query(user_id: int, request: Request):
        return {"results": [], "query": str(request.url.query), "user": user_id}

    @app.get("/users/missing")
    async def missing_user():
        raise HTTPException(status_code=404, detail="User not found")

    @app.get("/users/text")
    async def users_as_text():
        return PlainTextResponse("name0,name1")

    @app.get("/users/gzipped")
    async def users_gzipped():
        body = gzip.compress(json.dumps(USERS[:2]).encode())
        return Response(
            body, media_type="application/json", headers={"content-encoding": "gzip"}
        )

    @app.get("/users/not-a-list")
    async def users_not_a_list():
        return {"users": USERS}

    @app.get("/users/broken")
    async def users_broken():
        msg = "database unavailable"
        raise RuntimeError(msg)

    @app.get("/users/bad-helper")
    async def users_bad_helper(request: Request):
        return paginate(request, {"users": USERS}, len(USERS))

    return app


@pytest.fixture
def app() -> FastAPI:
    """Example app with default pagination options."""
    return build_app()


@pytest.fixture
async def client(app: FastAPI) -> AsyncGenerator[AsyncClient, None]:
    """Create async HTTP client for testing."""
    transport = ASGITransport(app=app, raise_app_exceptions=False)
    async with AsyncClient(transport=transport, base_url=BASE_URL) as ac:
        yield ac


async def request_json(
    app: FastAPI, url: str, method: str = "GET"
) -> tuple[int, Any, Any]:
    """Issue one request against an app and return (status, json, headers)."""
    transport = ASGITransport(app=app, raise_app_exceptions=False)
    async with AsyncClient(transport=transport, base_url=BASE_URL) as ac:
        response = await ac.request(method, url)
    return response.status_code, response.json(), response.headers
