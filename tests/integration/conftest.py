"""
Integration Test Fixtures.

Fixtures for integration tests - uses a real database and services.
These fixtures build on the root conftest.py database fixtures.
"""

from collections.abc import AsyncGenerator
from pathlib import Path
from typing import Any

import pytest
from fastapi import FastAPI
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession

from notevault.backend.core.database import get_db_session
from notevault.backend.core.dependencies import get_store
from notevault.backend.storage.attachments import LocalAttachmentStore


# =============================================================================
# Storage Fixtures
# =============================================================================


@pytest.fixture
def attachment_store(tmp_path: Path) -> LocalAttachmentStore:
    """Attachment store rooted in a per-test temporary directory."""
    return LocalAttachmentStore(tmp_path / "attachments")


# =============================================================================
# API Client Fixtures
# =============================================================================


@pytest.fixture
def app(db_session: AsyncSession, attachment_store: LocalAttachmentStore) -> FastAPI:
    """
    Application wired to the test session and store.

    Every request shares the test session, so rows flushed by a fixture
    are visible to the endpoint and vice versa.
    """
    from notevault.backend.main import create_app

    async def override_get_db_session() -> AsyncGenerator[AsyncSession, None]:
        yield db_session

    application = create_app()
    application.dependency_overrides[get_db_session] = override_get_db_session
    application.dependency_overrides[get_store] = lambda: attachment_store
    return application


@pytest.fixture
async def client(app: FastAPI) -> AsyncGenerator[AsyncClient, None]:
    """
    Create a test client against the wired application.

    Usage:
        async def test_health_endpoint(client: AsyncClient):
            response = await client.get("/health")
            assert response.status_code == 200
    """
    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test",
    ) as test_client:
        yield test_client

    app.dependency_overrides.clear()


@pytest.fixture
async def owner_headers(owner, issue_token) -> dict[str, str]:
    return {"Authorization": f"Bearer {await issue_token(owner)}"}


@pytest.fixture
async def recipient_headers(recipient, issue_token) -> dict[str, str]:
    return {"Authorization": f"Bearer {await issue_token(recipient)}"}


@pytest.fixture
async def stranger_headers(stranger, issue_token) -> dict[str, str]:
    return {"Authorization": f"Bearer {await issue_token(stranger)}"}


# =============================================================================
# API Response Assertion Helpers
# =============================================================================


class ApiAssertions:
    """Helper class for API response assertions."""

    @staticmethod
    def assert_success(response: Any, expected_status: int = 200) -> dict[str, Any]:
        """
        Assert API response is successful.

        Args:
            response: httpx Response object
            expected_status: Expected HTTP status code

        Returns:
            Response JSON data
        """
        assert response.status_code == expected_status, (
            f"Expected status {expected_status}, got {response.status_code}: "
            f"{response.text}"
        )
        data = response.json()
        assert data.get("success") is True, f"Response not successful: {data}"
        return data

    @staticmethod
    def assert_error(
        response: Any,
        expected_status: int,
        expected_code: str | None = None,
    ) -> dict[str, Any]:
        """
        Assert API response is an error in the standard envelope.

        Args:
            response: httpx Response object
            expected_status: Expected HTTP status code
            expected_code: Expected error code (optional)

        Returns:
            Response JSON data
        """
        assert response.status_code == expected_status, (
            f"Expected status {expected_status}, got {response.status_code}: "
            f"{response.text}"
        )
        data = response.json()
        assert data.get("success") is False, f"Response should be error: {data}"
        assert data.get("error") is not None, f"Missing error details: {data}"

        if expected_code:
            actual_code = data["error"].get("code")
            assert actual_code == expected_code, (
                f"Expected error code {expected_code}, got {actual_code}"
            )

        return data

    @staticmethod
    def assert_validation_error(
        response: Any,
        field: str | None = None,
        code: str = "VAL_VALIDATION_ERROR",
    ) -> dict[str, Any]:
        """
        Assert API response is a validation error (422).

        Args:
            response: httpx Response object
            field: Field expected among details.errors (optional)
            code: VAL_VALIDATION_ERROR for domain rules,
                VAL_REQUEST_INVALID for malformed payloads

        Returns:
            Response JSON data
        """
        data = ApiAssertions.assert_error(response, 422, code)
        if field:
            fields = [e["field"] for e in data["error"]["details"]["errors"]]
            assert field in fields, f"Expected error on {field}, got {fields}"
        return data


@pytest.fixture
def api() -> ApiAssertions:
    """Provide API assertion helpers."""
    return ApiAssertions()
