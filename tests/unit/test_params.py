"""Tests for the FastAPI bindings: query parameters, Link header and error responses."""

from datetime import datetime
from unittest.mock import AsyncMock
from urllib.parse import parse_qs, urlparse

import asyncpg
import pytest
from fastapi import FastAPI, Request, Response
from fastapi.testclient import TestClient
from pydantic import BaseModel

from keyset.errors import register_exception_handlers
from keyset.pagination import (
    KeyType,
    PaginationQuery,
    PaginationRequest,
    PaginationResponse,
    Paginator,
    QueryBuilder,
    SortOrder,
    create_link_header,
    decode_cursor,
    get_pagination_request,
)


class Item(BaseModel):
    id: str
    created_at: datetime
    title: str


@pytest.fixture
def app(mock_settings, table_factory) -> FastAPI:
    """Small app listing 15 objects through the paginator."""
    table = table_factory(15)
    paginator = Paginator(
        ("created_at", "id"),
        key_types=(KeyType.TIMESTAMP, KeyType.STRING),
        row_factory=Item.model_validate
    )
    broken = AsyncMock()
    broken.fetch.side_effect = asyncpg.PostgresError("password authentication failed for user keyset")

    app = FastAPI()
    register_exception_handlers(app)

    @app.get("/objects", response_model=PaginationResponse[Item])
    async def list_objects(pagination: PaginationQuery, request: Request, response: Response):
        page = await paginator.paginate(
            pagination, QueryBuilder("SELECT id, created_at, title FROM objects"), executor=table
        )
        link = create_link_header(
            str(request.url.replace(query="")),
            {"limit": pagination.limit, "sort_order": pagination.sort_order},
            page.next_cursor
        )
        if link:
            response.headers["Link"] = link
        return page

    @app.get("/broken", response_model=PaginationResponse[Item])
    async def list_broken(pagination: PaginationQuery):
        return await paginator.paginate(pagination, QueryBuilder("SELECT 1"), executor=broken)

    @app.get("/crash")
    async def crash():
        raise RuntimeError("secret internals")

    return app


@pytest.fixture
def client(app: FastAPI) -> TestClient:
    return TestClient(app, raise_server_exceptions=False)


class TestGetPaginationRequest:

    def test_builds_request(self):
        request = get_pagination_request(cursor="abc", limit=5, sort_by="created_at", sort_order=SortOrder.DESC)
        assert request == PaginationRequest(cursor="abc", limit=5, sort_by="created_at", sort_order=SortOrder.DESC)

    def test_defaults(self):
        request = get_pagination_request()
        assert request.cursor is None
        assert request.limit is None
        assert request.sort_order is None
        assert request.descending is False

    def test_request_is_immutable(self):
        request = PaginationRequest(limit=5)
        with pytest.raises(Exception):
            request.limit = 10


class TestCreateLinkHeader:

    def test_no_link_on_last_page(self):
        assert create_link_header("http://testserver/objects", {"limit": 5}, None) is None

    def test_next_link(self):
        link = create_link_header(
            "http://testserver/objects",
            {"limit": 5, "sort_order": SortOrder.DESC, "sort_by": None},
            "WyJhIiwiYiJd"
        )
        assert link == '<http://testserver/objects?limit=5&sort_order=desc&cursor=WyJhIiwiYiJd>; rel="next"'

    def test_replaces_existing_cursor(self):
        link = create_link_header("http://testserver/objects", {"cursor": "old"}, "new")
        assert link == '<http://testserver/objects?cursor=new>; rel="next"'


class TestListEndpoint:
    """End-to-end paging through a FastAPI route."""

    def test_first_page(self, client):
        response = client.get("/objects")

        assert response.status_code == 200
        body = response.json()
        assert [item["id"] for item in body["data"]] == [f"obj-{i:04d}" for i in range(10)]
        assert decode_cursor(body["next_cursor"])[1] == "obj-0009"
        assert 'rel="next"' in response.headers["link"]

    def test_follow_cursor_to_last_page(self, client):
        first = client.get("/objects").json()
        second = client.get("/objects", params={"cursor": first["next_cursor"]})

        body = second.json()
        assert [item["id"] for item in body["data"]] == [f"obj-{i:04d}" for i in range(10, 15)]
        assert body["next_cursor"] is None
        assert "link" not in second.headers

    def test_follow_link_header(self, client):
        first = client.get("/objects", params={"limit": 4, "sort_order": "desc"})
        next_url = first.headers["link"].split(";")[0].strip("<>")
        query = parse_qs(urlparse(next_url).query)

        assert query["limit"] == ["4"]
        assert query["sort_order"] == ["desc"]

        second = client.get(next_url)
        assert [item["id"] for item in second.json()["data"]] == ["obj-0010", "obj-0009", "obj-0008", "obj-0007"]

    @pytest.mark.parametrize("limit", ["0", "500"])
    def test_out_of_range_limit_uses_default(self, client, limit):
        body = client.get("/objects", params={"limit": limit}).json()
        assert len(body["data"]) == 10

    def test_descending(self, client):
        body = client.get("/objects", params={"sort_order": "desc", "limit": 3}).json()
        assert [item["id"] for item in body["data"]] == ["obj-0014", "obj-0013", "obj-0012"]

    @pytest.mark.parametrize("params", [
        {"limit": "-1"},
        {"limit": "ten"},
        {"sort_order": "sideways"},
    ])
    def test_invalid_parameters(self, client, params):
        response = client.get("/objects", params=params)

        assert response.status_code == 422
        assert response.headers["content-type"] == "application/problem+json"
        assert response.json()["title"] == "Validation Error"

    def test_invalid_cursor(self, client):
        response = client.get("/objects", params={"cursor": "definitely-not-a-cursor"})

        assert response.status_code == 400
        assert response.headers["content-type"] == "application/problem+json"
        body = response.json()
        assert body["title"] == "Bad Request"
        assert body["detail"] == "invalid cursor"
        assert body["instance"] == "/objects"

    def test_empty_cursor_is_rejected(self, client):
        response = client.get("/objects?cursor=")

        assert response.status_code == 400
        assert response.json()["detail"] == "invalid cursor"


class TestErrorResponses:

    def test_storage_failure_is_opaque(self, client):
        response = client.get("/broken")

        assert response.status_code == 500
        body = response.json()
        assert body["title"] == "Internal Server Error"
        assert body["detail"] == "Internal server error"
        assert "password" not in response.text

    def test_unhandled_exception(self, client):
        response = client.get("/crash")

        assert response.status_code == 500
        assert response.json()["detail"] == "An unexpected error occurred"
        assert "secret" not in response.text

    def test_not_found(self, client):
        response = client.get("/missing")

        assert response.status_code == 404
        assert response.headers["content-type"] == "application/problem+json"
        assert response.json()["title"] == "Not Found"
