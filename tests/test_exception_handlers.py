"""Tests for global exception handlers.

Validates that all exception types are handled consistently with
proper HTTP status codes, error format, and no information leakage.
"""

import asyncio
import json
from unittest.mock import AsyncMock

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from app.core.errors import (
    AppError,
    AuthenticationAppError,
    ConflictAppError,
    ForbiddenAppError,
    MalformedCacheEntryError,
    NotFoundAppError,
    StoreUnavailableError,
    ValidationAppError,
)
from app.core.exception_handlers import setup_exception_handlers, status_for


@pytest.fixture
def app_with_handlers() -> FastAPI:
    """Create FastAPI app with exception handlers registered."""
    app = FastAPI()
    setup_exception_handlers(app)
    return app


@pytest.fixture
def client(app_with_handlers: FastAPI) -> TestClient:
    """Create test client with handlers enabled."""
    return TestClient(app_with_handlers, raise_server_exceptions=False)


class TestAppErrorHandler:
    """Test handler for AppError and subclasses."""

    @pytest.mark.parametrize(
        "error_cls, expected_status",
        [
            (ValidationAppError, 400),
            (AuthenticationAppError, 401),
            (ForbiddenAppError, 403),
            (NotFoundAppError, 404),
            (ConflictAppError, 409),
            (StoreUnavailableError, 503),
        ],
    )
    def test_error_maps_to_status(
        self, client: TestClient, app_with_handlers: FastAPI, error_cls, expected_status: int
    ):
        """Verify each domain error maps to its HTTP status."""
        @app_with_handlers.get("/test-error")
        async def test_endpoint():
            raise error_cls(code="test_code", message="Test error")

        response = client.get("/test-error")

        assert response.status_code == expected_status
        data = response.json()
        assert data["error"]["code"] == "test_code"
        assert data["error"]["message"] == "Test error"
        assert "request_id" in data["error"]

    def test_error_includes_details(self, client: TestClient, app_with_handlers: FastAPI):
        """Verify details are included when provided."""
        @app_with_handlers.get("/test-details")
        async def test_endpoint():
            raise NotFoundAppError(
                code="todo_not_found",
                message="Todo not found",
                details={"resource": "todo", "resource_id": 7},
            )

        response = client.get("/test-details")

        assert response.status_code == 404
        assert response.json()["error"]["details"] == {"resource": "todo", "resource_id": 7}

    def test_unmapped_app_error_is_500(self):
        """Internal-only errors never map to a client status."""
        assert status_for(MalformedCacheEntryError(code="x", message="y")) == 500
        assert status_for(AppError(code="x", message="y")) == 500


class TestGeneralExceptionHandler:
    """Test fallback handler for unexpected exceptions."""

    def test_unexpected_exception_returns_generic_500(
        self, client: TestClient, app_with_handlers: FastAPI
    ):
        @app_with_handlers.get("/boom")
        async def test_endpoint():
            raise RuntimeError("connection string redis://secret@host")

        response = client.get("/boom")

        assert response.status_code == 500
        assert response.json()["error"]["code"] == "internal_server_error"
        assert "secret" not in response.text

    def test_general_exception_handler_never_leaks_stack_trace(self):
        """Verify stack traces are never included in response."""
        from app.core.exception_handlers import general_exception_handler

        request = AsyncMock()
        request.url.path = "/test"
        request.method = "GET"

        exc = ValueError("Test error with details")
        response = asyncio.run(general_exception_handler(request, exc))

        response_text = bytes(response.body).decode()
        data = json.loads(response_text)
        assert response.status_code == 500
        assert "request_id" in data["error"]
        assert "Traceback" not in response_text
        assert "ValueError" not in response_text


class TestErrorHandlerIntegration:
    """Integration tests for exception handler setup."""

    def test_setup_exception_handlers_registers_handlers(self, app_with_handlers: FastAPI):
        assert AppError in app_with_handlers.exception_handlers
        assert Exception in app_with_handlers.exception_handlers

    def test_multiple_handler_setups_does_not_fail(self):
        """Verify calling setup_exception_handlers multiple times is safe."""
        app = FastAPI()

        setup_exception_handlers(app)
        setup_exception_handlers(app)

        assert AppError in app.exception_handlers
