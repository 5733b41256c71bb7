"""Tests for global exception handlers.

Validates that exception types are mapped to the right HTTP status codes,
that every error body carries a string ``error`` field, and that nothing
internal leaks.
"""

import asyncio
import json
from unittest.mock import MagicMock

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from app.core.errors import (
    AppError,
    ErrorDetails,
    LLMAppError,
    NotFoundAppError,
    RateLimitAppError,
    ValidationAppError,
)
from app.core.exception_handlers import general_exception_handler, setup_exception_handlers
from app.core.middleware import request_id_middleware
from app.core.rate_limit import enforce_rate_limit
from app.utils.api_helpers import validate_api_response


@pytest.fixture
def app_with_handlers() -> FastAPI:
    app = FastAPI()
    setup_exception_handlers(app)
    return app


@pytest.fixture
def client(app_with_handlers: FastAPI) -> TestClient:
    return TestClient(app_with_handlers)


class TestAppErrorHandler:
    def test_validation_error_returns_400(self, client: TestClient, app_with_handlers: FastAPI):
        @app_with_handlers.get("/test-validation")
        async def endpoint():
            raise ValidationAppError(code="test_validation", message="Test validation error")

        response = client.get("/test-validation", headers={"X-Request-ID": "req-400"})

        assert response.status_code == 400
        data = response.json()
        assert data["error"] == "Test validation error"
        assert data["code"] == "test_validation"
        assert data["request_id"] == "req-400"
        assert validate_api_response(data) is False

    def test_details_are_included_when_present(self, client: TestClient, app_with_handlers: FastAPI):
        @app_with_handlers.get("/test-details")
        async def endpoint():
            raise ValidationAppError(
                code="audio_too_large",
                message="Audio too large. Max 10MB",
                details={"max_value": 10485760},
            )

        data = client.get("/test-details").json()

        assert data["details"] == {"max_value": 10485760}

    def test_not_found_error_returns_404(self, client: TestClient, app_with_handlers: FastAPI):
        @app_with_handlers.get("/test-not-found")
        async def endpoint():
            raise NotFoundAppError(code="not_found", message="Not found")

        response = client.get("/test-not-found")

        assert response.status_code == 404
        assert response.json()["error"] == "Not found"

    def test_llm_error_returns_500(self, client: TestClient, app_with_handlers: FastAPI):
        @app_with_handlers.get("/test-llm")
        async def endpoint():
            raise LLMAppError(code="llm_unavailable", message="LLM service returned an error")

        response = client.get("/test-llm")

        assert response.status_code == 500
        assert response.json()["code"] == "llm_unavailable"


class TestRateLimitHandler:
    def test_returns_429_with_headers(self, client: TestClient, app_with_handlers: FastAPI):
        @app_with_handlers.get("/test-throttle")
        async def endpoint():
            raise RateLimitAppError(
                code="rate_limit_exceeded",
                message="Rate limit exceeded. Please try again later.",
                details={"retry_after": 3600, "limit": 15, "remaining": 0, "reset_ms": 3_600_000},
            )

        response = client.get("/test-throttle")

        assert response.status_code == 429
        assert response.json() == {"error": "Rate limit exceeded. Please try again later."}
        assert response.headers["Retry-After"] == "3600"
        assert response.headers["X-RateLimit-Limit"] == "15"
        assert response.headers["X-RateLimit-Remaining"] == "0"
        assert response.headers["X-RateLimit-Reset"] == "3600"

    def test_limiter_details_use_declared_keys(self, monkeypatch: pytest.MonkeyPatch):
        monkeypatch.setenv("SERVER_MAX_REQUESTS", "1")
        request = MagicMock()
        request.headers = {"x-forwarded-for": "198.51.100.20"}

        asyncio.run(enforce_rate_limit(request))
        with pytest.raises(RateLimitAppError) as exc_info:
            asyncio.run(enforce_rate_limit(request))

        details = exc_info.value.details
        assert set(details) <= ErrorDetails.__optional_keys__
        assert details == {"retry_after": 3600, "limit": 1, "remaining": 0, "reset_ms": 3_600_000}


class TestGeneralExceptionHandler:
    def test_handler_registered(self, app_with_handlers: FastAPI):
        assert Exception in app_with_handlers.exception_handlers

    def test_generic_body_without_internal_details(self):
        request = MagicMock()
        request.url.path = "/test"
        request.method = "GET"
        request.headers = {}

        exc = RuntimeError("Unexpected error: upstream socket closed")
        response = asyncio.run(general_exception_handler(request, exc))

        data = json.loads(bytes(response.body).decode())
        assert response.status_code == 500
        assert data["code"] == "internal_server_error"
        assert "socket" not in data["error"]
        assert "RuntimeError" not in json.dumps(data)
        assert "Traceback" not in json.dumps(data)
        assert "request_id" not in data

    def test_request_id_falls_back_to_incoming_header(self):
        request = MagicMock()
        request.url.path = "/test"
        request.method = "GET"
        request.headers = {"X-Request-ID": "abc-123"}

        response = asyncio.run(general_exception_handler(request, RuntimeError("x")))

        assert json.loads(bytes(response.body).decode())["request_id"] == "abc-123"

    def test_unhandled_error_behind_middleware_keeps_request_id(self):
        app = FastAPI()
        app.middleware("http")(request_id_middleware)
        setup_exception_handlers(app)

        @app.get("/boom")
        async def boom():
            raise RuntimeError("kaput")

        client = TestClient(app, raise_server_exceptions=False)

        with_header = client.get("/boom", headers={"X-Request-ID": "req-500"})
        without_header = client.get("/boom")

        assert with_header.status_code == 500
        assert with_header.json()["request_id"] == "req-500"
        assert without_header.status_code == 500
        assert "request_id" not in without_header.json()


class TestErrorHandlerIntegration:
    def test_setup_registers_handlers(self, app_with_handlers: FastAPI):
        assert RateLimitAppError in app_with_handlers.exception_handlers
        assert AppError in app_with_handlers.exception_handlers
        assert Exception in app_with_handlers.exception_handlers

    def test_multiple_setups_do_not_fail(self):
        app = FastAPI()

        setup_exception_handlers(app)
        setup_exception_handlers(app)

        assert AppError in app.exception_handlers
