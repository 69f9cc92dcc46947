"""
Unit Tests for Request Context Middleware.

Tests request ID propagation, client identification and timing headers.
"""

import pytest
import structlog
from fastapi import FastAPI, Request
from httpx import ASGITransport, AsyncClient

from notevault.backend.core.middleware import RequestContextMiddleware


@pytest.fixture
def app() -> FastAPI:
    app = FastAPI()
    app.add_middleware(RequestContextMiddleware, log_requests=False)

    @app.get("/echo")
    async def echo(request: Request):
        return {
            "request_id": request.state.request_id,
            "client": request.state.client,
            "context": structlog.contextvars.get_contextvars(),
        }

    return app


@pytest.fixture
async def client(app: FastAPI):
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as c:
        yield c


class TestRequestContextMiddleware:
    @pytest.mark.asyncio
    async def test_generates_request_id(self, client):
        response = await client.get("/echo")

        request_id = response.headers["X-Request-ID"]
        assert request_id
        assert response.json()["request_id"] == request_id
        assert response.headers["X-Response-Time"].endswith("ms")

    @pytest.mark.asyncio
    async def test_propagates_incoming_request_id(self, client):
        response = await client.get("/echo", headers={"X-Request-ID": "abc-123"})

        assert response.headers["X-Request-ID"] == "abc-123"

    @pytest.mark.asyncio
    async def test_known_client(self, client):
        response = await client.get("/echo", headers={"X-Client-ID": "CLI"})

        assert response.json()["client"] == "cli"

    @pytest.mark.asyncio
    async def test_unknown_client(self, client):
        response = await client.get("/echo", headers={"X-Client-ID": "toaster"})

        assert response.json()["client"] == "unknown"

    @pytest.mark.asyncio
    async def test_binds_log_context(self, client):
        response = await client.get("/echo", headers={"X-Request-ID": "ctx-1"})

        context = response.json()["context"]
        assert context["request_id"] == "ctx-1"
        assert context["source"] == "api"
        assert context["path"] == "/echo"
