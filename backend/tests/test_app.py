"""
Trip Track Backend — Application Shell Tests
===============================================

What we test:
    ✅ GET /health reports database connectivity
    ✅ Request ids are generated or echoed
    ✅ Each error family maps to its status code and error body
    ✅ The per-request session dependency
"""

import pytest
from fastapi import APIRouter, Depends
from httpx import ASGITransport, AsyncClient
from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

from triptrack import __version__
from triptrack.database import get_db_session
from triptrack.exceptions import (
    AlreadyFollowingError,
    DatabaseError,
    InvalidCredentialsError,
    InvalidIdError,
    LastMessageUpdateError,
    NotAuthorizedError,
    RouteNotFoundError,
)
from triptrack.main import create_app

ERRORS = {
    "invalid-id": InvalidIdError("route_id", "abc"),
    "credentials": InvalidCredentialsError(),
    "forbidden": NotAuthorizedError("remove this comment"),
    "missing": RouteNotFoundError(resource_id="123"),
    "conflict": AlreadyFollowingError(),
    "database": DatabaseError(context={"query": "SELECT secret"}),
    "last-message": LastMessageUpdateError("c1", "m1"),
}


def build_app():
    app = create_app()
    router = APIRouter()

    @router.get("/raise/{name}")
    async def raise_error(name: str):
        raise ERRORS[name]

    @router.get("/crash")
    async def crash():
        raise RuntimeError("kaboom")

    @router.get("/db")
    async def db_check(db: AsyncSession = Depends(get_db_session)):
        value = (await db.execute(text("SELECT 1"))).scalar()
        return {"value": value}

    app.include_router(router)
    return app


@pytest.fixture
def app_client():
    async def _client(raise_app_exceptions=True):
        transport = ASGITransport(app=build_app(), raise_app_exceptions=raise_app_exceptions)
        return AsyncClient(transport=transport, base_url="http://test")

    return _client


class TestHealth:

    @pytest.mark.asyncio
    async def test_health(self, test_client):
        response = await test_client.get("/health")
        assert response.status_code == 200
        body = response.json()
        assert body["status"] == "healthy"
        assert body["database"] == "connected"
        assert body["version"] == __version__

    @pytest.mark.asyncio
    async def test_request_id_generated(self, test_client):
        response = await test_client.get("/health")
        assert len(response.headers["X-Request-ID"]) == 8

    @pytest.mark.asyncio
    async def test_request_id_echoed(self, test_client):
        response = await test_client.get("/health", headers={"X-Request-ID": "trace-123"})
        assert response.headers["X-Request-ID"] == "trace-123"


class TestErrorMapping:

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "name,status,error",
        [
            ("invalid-id", 400, "validation_error"),
            ("credentials", 401, "unauthorized"),
            ("forbidden", 403, "forbidden"),
            ("missing", 404, "not_found"),
            ("conflict", 409, "conflict"),
            ("database", 500, "server_error"),
            ("last-message", 500, "server_error"),
        ],
    )
    async def test_status_codes(self, app_client, name, status, error):
        async with await app_client() as client:
            response = await client.get(f"/raise/{name}", headers={"X-Request-ID": "req-1"})

        assert response.status_code == status
        body = response.json()
        assert body["error"] == error
        assert body["request_id"] == "req-1"

    @pytest.mark.asyncio
    async def test_validation_error_carries_details(self, app_client):
        async with await app_client() as client:
            response = await client.get("/raise/invalid-id")

        body = response.json()
        assert body["message"] == "Invalid route_id format"
        assert body["details"]["field"] == "route_id"

    @pytest.mark.asyncio
    async def test_error_body_shape(self, app_client):
        async with await app_client() as client:
            response = await client.get("/raise/missing", headers={"X-Request-ID": "req-2"})

        assert response.json() == {
            "error": "not_found",
            "message": "Route not found",
            "details": {"resource": "route", "resource_id": "123"},
            "request_id": "req-2",
        }

    @pytest.mark.asyncio
    async def test_server_errors_hide_context(self, app_client):
        async with await app_client() as client:
            response = await client.get("/raise/database")

        assert "details" not in response.json()
        assert "SELECT secret" not in response.text

    @pytest.mark.asyncio
    async def test_unexpected_error(self, app_client):
        async with await app_client(raise_app_exceptions=False) as client:
            response = await client.get("/crash")

        assert response.status_code == 500
        assert response.json()["error"] == "internal_server_error"
        assert "kaboom" not in response.text


class TestSessionDependency:

    @pytest.mark.asyncio
    async def test_session_is_injected(self, app_client):
        async with await app_client() as client:
            response = await client.get("/db")

        assert response.status_code == 200
        assert response.json() == {"value": 1}
