"""Shared test configuration and fixtures."""
import hashlib
import hmac
import os
from typing import Annotated, Any, Callable

import pytest
from fastapi import Depends, FastAPI, Request
from fastapi.testclient import TestClient

# Set up test environment variables before any imports
os.environ.setdefault("MERCHANT_CODE", "M1")
os.environ.setdefault("MERCHANT_SECRET", "topsecret")
os.environ.setdefault("LOG_LEVEL", "ERROR")

from callback_gate.config.merchant_config import (  # noqa: E402
    MerchantConfig,
    MerchantCredential,
    load_merchant_config,
)
from callback_gate.dependencies import get_buffered_request  # noqa: E402
from callback_gate.middleware.error_handler import ErrorHandlerMiddleware  # noqa: E402
from callback_gate.middleware.signature import SignatureMiddleware  # noqa: E402
from callback_gate.services.body_buffer import BufferedRequest  # noqa: E402

SECRET = "topsecret"
MERCHANT_CODE = "M1"
CALLBACK_PATH = "/callback/agGame/bet"


def make_sign(
    merchant_code: str,
    timestamp: str,
    nonce: str,
    content_processing_type: str,
    body: bytes,
    secret: str = SECRET,
) -> str:
    """Sign a callback the way the partner does."""
    message = (merchant_code + timestamp + nonce + content_processing_type).encode("utf-8") + body
    return hmac.new(secret.encode("utf-8"), message, hashlib.sha256).hexdigest()


@pytest.fixture
def merchant_config() -> MerchantConfig:
    """Create merchant config for testing."""
    return load_merchant_config(
        MERCHANT_CODE=MERCHANT_CODE,
        MERCHANT_SECRET=SECRET,
        CALLBACK_MAX_BODY_BYTES=1024,
        LOG_LEVEL="ERROR",
    )


@pytest.fixture
def credential(merchant_config) -> MerchantCredential:
    return merchant_config.credential()


@pytest.fixture
def signed_headers() -> Callable[..., dict[str, str]]:
    """Factory for a complete, correctly signed header set."""

    def _build(body: bytes, **overrides: str) -> dict[str, str]:
        fields = {
            "merchant_code": MERCHANT_CODE,
            "timestamp": "1700000000",
            "nonce": "abc123",
            "content_processing_type": "json",
        }
        fields.update({k: v for k, v in overrides.items() if k != "sign"})
        sign = overrides.get("sign") or make_sign(body=body, **fields)
        return {
            "x-merchant-code": fields["merchant_code"],
            "x-sign": sign,
            "x-timestamp": fields["timestamp"],
            "x-nonce": fields["nonce"],
            "x-content-processing-type": fields["content_processing_type"],
        }

    return _build


@pytest.fixture
def callback_app(merchant_config) -> FastAPI:
    """Create FastAPI app with signature and error handler middleware."""
    app = FastAPI()
    app.add_middleware(SignatureMiddleware, config=merchant_config)
    app.add_middleware(ErrorHandlerMiddleware)

    @app.post("/callback/agGame/{action}")
    async def callback(
        action: str,
        request: Request,
        body: Annotated[BufferedRequest, Depends(get_buffered_request)],
    ) -> dict[str, Any]:
        raw = await request.body()
        return {
            "action": action,
            "raw": raw.decode("utf-8"),
            "first_read": body.stream().read().decode("utf-8"),
            "second_read": body.stream().read().decode("utf-8"),
            "text": body.text(),
        }

    @app.post("/public/echo")
    async def public_echo(request: Request) -> dict[str, Any]:
        raw = await request.body()
        return {"raw": raw.decode("utf-8"), "verified": hasattr(request.state, "callback_body")}

    return app


@pytest.fixture
def client(callback_app) -> TestClient:
    return TestClient(callback_app)
