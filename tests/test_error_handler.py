"""Tests for error handler middleware."""
import json
from typing import Any
from unittest.mock import Mock

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from callback_gate.exceptions import (
    BodyReadError,
    CallbackError,
    ConfigurationError,
    InvalidMerchantCodeError,
    InvalidSignatureError,
    MissingHeaderError,
    PayloadTooLargeError,
)
from callback_gate.middleware.error_handler import ErrorHandlerMiddleware


class TestErrorHandlerMiddleware:
    """Test error handler middleware error responses."""

    @pytest.fixture
    def middleware(self) -> Any:
        """Create middleware instance."""
        return ErrorHandlerMiddleware(app=Mock())

    @pytest.mark.parametrize(
        "exc, status_code, code",
        [
            (MissingHeaderError("x-sign"), 400, "MISSING_HEADER"),
            (BodyReadError(), 400, "BODY_READ_ERROR"),
            (InvalidMerchantCodeError("M2"), 401, "INVALID_MERCHANT_CODE"),
            (InvalidSignatureError("ab" * 32), 401, "INVALID_SIGNATURE"),
            (PayloadTooLargeError(1024), 413, "PAYLOAD_TOO_LARGE"),
            (ConfigurationError(), 500, "CONFIGURATION_ERROR"),
        ],
    )
    def test_callback_error_status(self, middleware, exc, status_code, code) -> None:
        response = middleware._handle_callback_error(exc, "test-request-123")

        assert response.status_code == status_code
        body = json.loads(response.body.decode())
        assert body["error"]["code"] == code
        assert body["error"]["message"] == exc.message
        assert body["error"]["request_id"] == "test-request-123"

    def test_unknown_callback_error_defaults_to_500(self, middleware) -> None:
        exc = CallbackError(code="CUSTOM", message="custom failure")

        response = middleware._handle_callback_error(exc, None)

        assert response.status_code == 500
        body = json.loads(response.body.decode())
        assert body["error"]["code"] == "CUSTOM"

    def test_computed_sign_logged_not_returned(self, middleware, caplog) -> None:
        computed = "ab" * 32

        with caplog.at_level("WARNING", logger="callback_gate.middleware.error_handler"):
            response = middleware._handle_callback_error(InvalidSignatureError(computed), None)

        assert computed not in response.body.decode()
        assert any(getattr(r, "computed_sign", None) == computed for r in caplog.records)

    def test_unhandled_exception(self, middleware) -> None:
        response = middleware._handle_unhandled_exception(RuntimeError("boom"), "req-1")

        assert response.status_code == 500
        body = json.loads(response.body.decode())
        assert body["error"]["code"] == "INTERNAL_SERVER_ERROR"
        assert "boom" not in body["error"]["message"]

    def test_dispatch_catches_route_errors(self) -> None:
        app = FastAPI()
        app.add_middleware(ErrorHandlerMiddleware)

        @app.get("/fails")
        async def fails() -> None:
            raise RuntimeError("boom")

        @app.get("/rejects")
        async def rejects() -> None:
            raise MissingHeaderError("x-nonce")

        client = TestClient(app)

        assert client.get("/fails").status_code == 500
        response = client.get("/rejects")
        assert response.status_code == 400
        assert response.json()["error"]["details"] == [
            {"field": "x-nonce", "issue": "missing or blank"}
        ]
