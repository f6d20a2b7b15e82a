"""
Callback Signature Verifier

Verifies partner callback signatures using HMAC-SHA256 over the
delimiter-free concatenation of merchant code, timestamp, nonce,
content processing type and body text.
"""

import hashlib
import hmac
import logging
from dataclasses import dataclass, field

from callback_gate.config.merchant_config import MerchantCredential
from callback_gate.exceptions import InvalidMerchantCodeError, InvalidSignatureError
from callback_gate.services.body_buffer import BODY_ENCODING

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SignatureContext:
    """Signed fields of a single callback request."""

    merchant_code: str
    sign: str
    timestamp: str
    nonce: str
    content_processing_type: str
    body: bytes = field(repr=False)

    @property
    def body_text(self) -> str:
        # surrogateescape keeps undecodable bytes distinct so they round-trip into the digest
        return self.body.decode(BODY_ENCODING, errors="surrogateescape")


def build_signing_string(context: SignatureContext) -> str:
    """Concatenate the signed fields in wire order, without delimiters."""
    return (
        context.merchant_code
        + context.timestamp
        + context.nonce
        + context.content_processing_type
        + context.body_text
    )


def compute_sign(secret_key: bytes, message: str) -> str:
    """Return the lowercase hex HMAC-SHA256 of ``message`` under ``secret_key``."""
    # hmac.new builds a new digest context per call, so nothing is shared between threads
    data = message.encode(BODY_ENCODING, errors="surrogateescape")
    return hmac.new(secret_key, data, hashlib.sha256).hexdigest()


class SignatureVerifier:
    """Service for verifying partner callback signatures."""

    def __init__(self, credential: MerchantCredential):
        """
        Initialize signature verifier.

        Args:
            credential: Configured merchant code and secret key
        """
        self.credential = credential

    def verify(self, context: SignatureContext) -> str:
        """
        Verify merchant code and signature of a callback.

        Args:
            context: Header fields and buffered body of the request

        Returns:
            The computed signature

        Raises:
            InvalidMerchantCodeError: Merchant code does not match configuration
            InvalidSignatureError: Computed signature does not match ``context.sign``
        """
        if context.merchant_code != self.credential.code:
            logger.warning(
                "Callback merchant code mismatch",
                extra={"merchant_code": context.merchant_code},
            )
            raise InvalidMerchantCodeError(context.merchant_code)

        computed = compute_sign(self.credential.secret_key, build_signing_string(context))

        # Exact match on bytes: hex case matters and non-ASCII input cannot raise
        if not hmac.compare_digest(computed.encode("utf-8"), context.sign.encode("utf-8")):
            logger.warning(
                "Callback signature verification failed",
                extra={
                    "merchant_code": context.merchant_code,
                    "timestamp": context.timestamp,
                    "nonce": context.nonce,
                    "computed_sign": computed,
                },
            )
            raise InvalidSignatureError(computed)

        logger.info(
            "sign verify success",
            extra={
                "merchant_code": context.merchant_code,
                "timestamp": context.timestamp,
                "nonce": context.nonce,
            },
        )
        return computed
