"""Custom exceptions raised by the callback signature gate."""


class CallbackError(Exception):
    """Base exception for all callback verification errors."""

    def __init__(
        self,
        code: str,
        message: str,
        details: list[dict[str, str]] | None = None,
    ):
        """
        Initialize callback error.

        Args:
            code: Error code (e.g., "INVALID_SIGNATURE")
            message: Human-readable error message
            details: Optional list of field-specific error details
        """
        self.code = code
        self.message = message
        self.details = details or []
        super().__init__(self.message)


class ConfigurationError(CallbackError):
    """Raised when merchant code or secret is missing or malformed at startup."""

    def __init__(
        self,
        message: str = "Merchant configuration is invalid",
        details: list[dict[str, str]] | None = None,
    ):
        super().__init__(
            code="CONFIGURATION_ERROR",
            message=message,
            details=details,
        )


class MissingHeaderError(CallbackError):
    """Raised when a required header is absent or blank (400)."""

    def __init__(self, header_name: str):
        super().__init__(
            code="MISSING_HEADER",
            message=f"header {header_name} is required",
            details=[{"field": header_name, "issue": "missing or blank"}],
        )
        self.header_name = header_name


class InvalidMerchantCodeError(CallbackError):
    """Raised when the supplied merchant code is not the configured one (401)."""

    def __init__(self, supplied_code: str):
        super().__init__(
            code="INVALID_MERCHANT_CODE",
            message=f"merchant code is invalid: {supplied_code}",
        )
        self.supplied_code = supplied_code


class InvalidSignatureError(CallbackError):
    """
    Raised when the computed signature differs from the supplied one (401).

    The computed value is kept on the exception for logging only; it is
    never part of the message returned to the caller.
    """

    def __init__(self, computed_sign: str):
        super().__init__(
            code="INVALID_SIGNATURE",
            message="sign is invalid",
        )
        self.computed_sign = computed_sign


class BodyReadError(CallbackError):
    """Raised when the request body cannot be read from the transport (400)."""

    def __init__(self, message: str = "Failed to read request body"):
        super().__init__(
            code="BODY_READ_ERROR",
            message=message,
        )


class PayloadTooLargeError(CallbackError):
    """Raised when the request body exceeds the buffering limit (413)."""

    def __init__(self, limit: int):
        super().__init__(
            code="PAYLOAD_TOO_LARGE",
            message=f"Request body exceeds {limit} bytes",
        )
        self.limit = limit
