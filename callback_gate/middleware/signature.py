"""ASGI middleware verifying signed partner callbacks."""
import logging
from typing import Mapping, Optional

from starlette.datastructures import Headers
from starlette.types import ASGIApp, Receive, Scope, Send

from callback_gate.config.merchant_config import (
    MerchantConfig,
    MerchantCredential,
    load_merchant_config,
)
from callback_gate.exceptions import MissingHeaderError
from callback_gate.services.body_buffer import parse_content_length, read_body
from callback_gate.services.signature_verifier import SignatureContext, SignatureVerifier

logger = logging.getLogger(__name__)

MERCHANT_CODE_HEADER = "x-merchant-code"
SIGN_HEADER = "x-sign"
TIMESTAMP_HEADER = "x-timestamp"
NONCE_HEADER = "x-nonce"
CONTENT_PROCESSING_TYPE_HEADER = "x-content-processing-type"

REQUIRED_HEADERS = (
    MERCHANT_CODE_HEADER,
    SIGN_HEADER,
    TIMESTAMP_HEADER,
    NONCE_HEADER,
    CONTENT_PROCESSING_TYPE_HEADER,
)

# Key under scope["state"]; downstream handlers read it as request.state.callback_body
CALLBACK_BODY_STATE_KEY = "callback_body"


class PathGate:
    """Decides which request paths require a signature."""

    def __init__(self, prefix: str):
        self.prefix = prefix

    def requires_verification(self, path: str) -> bool:
        return path.startswith(self.prefix)


def extract_required_headers(headers: Mapping[str, str]) -> dict[str, str]:
    """
    Return trimmed values of all required callback headers.

    Raises:
        MissingHeaderError: On the first header that is absent or blank
    """
    values: dict[str, str] = {}
    for name in REQUIRED_HEADERS:
        value = headers.get(name)
        if value is None or not value.strip():
            raise MissingHeaderError(name)
        values[name] = value.strip()
    return values


class SignatureMiddleware:
    """
    Verifies partner callbacks before they reach the application.

    Requests under the callback prefix must carry the signature headers;
    their body is buffered, verified, and replayed downstream. All other
    requests pass through untouched. Failures raise a ``CallbackError``
    for the error handler middleware to translate.
    """

    def __init__(
        self,
        app: ASGIApp,
        credential: Optional[MerchantCredential] = None,
        config: Optional[MerchantConfig] = None,
    ) -> None:
        self.app = app
        self.config = config or load_merchant_config()
        self.credential = credential or self.config.credential()
        self.path_gate = PathGate(self.config.callback_path_prefix)
        self.verifier = SignatureVerifier(self.credential)

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] != "http" or not self.path_gate.requires_verification(scope["path"]):
            await self.app(scope, receive, send)
            return

        headers = Headers(scope=scope)
        fields = extract_required_headers(headers)

        buffered = await read_body(
            receive,
            max_body_bytes=self.config.max_body_bytes,
            content_length=parse_content_length(headers.get("content-length")),
        )

        context = SignatureContext(
            merchant_code=fields[MERCHANT_CODE_HEADER],
            sign=fields[SIGN_HEADER],
            timestamp=fields[TIMESTAMP_HEADER],
            nonce=fields[NONCE_HEADER],
            content_processing_type=fields[CONTENT_PROCESSING_TYPE_HEADER],
            body=buffered.body,
        )
        self.verifier.verify(context)

        logger.debug(
            "Forwarding verified callback",
            extra={"path": scope["path"], "body_bytes": len(buffered.body)},
        )
        scope.setdefault("state", {})[CALLBACK_BODY_STATE_KEY] = buffered
        await self.app(scope, buffered.receive(), send)
