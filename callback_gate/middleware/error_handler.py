"""Error handler middleware for consistent callback error responses."""
import logging
from typing import Any, Awaitable, Callable, Dict, Optional

from fastapi import Request, status
from fastapi.responses import JSONResponse, Response
from starlette.middleware.base import BaseHTTPMiddleware

from callback_gate.exceptions import (
    BodyReadError,
    CallbackError,
    ConfigurationError,
    InvalidMerchantCodeError,
    InvalidSignatureError,
    MissingHeaderError,
    PayloadTooLargeError,
)

logger = logging.getLogger(__name__)

REQUEST_ID_HEADER = "X-Request-ID"


class ErrorHandlerMiddleware(BaseHTTPMiddleware):
    """
    Middleware to handle exceptions and return consistent error responses.

    Maps exceptions to HTTP status codes:
    - MissingHeaderError → 400
    - BodyReadError → 400
    - InvalidMerchantCodeError → 401
    - InvalidSignatureError → 401
    - PayloadTooLargeError → 413
    - ConfigurationError / unhandled → 500 (logs full trace, returns generic message)
    """

    status_code_map = {
        MissingHeaderError: status.HTTP_400_BAD_REQUEST,
        BodyReadError: status.HTTP_400_BAD_REQUEST,
        InvalidMerchantCodeError: status.HTTP_401_UNAUTHORIZED,
        InvalidSignatureError: status.HTTP_401_UNAUTHORIZED,
        PayloadTooLargeError: 413,
        ConfigurationError: status.HTTP_500_INTERNAL_SERVER_ERROR,
    }

    async def dispatch(
        self, request: Request, call_next: Callable[[Request], Awaitable[Response]]
    ) -> Response:
        """Process request and handle exceptions."""
        try:
            return await call_next(request)
        except Exception as exc:
            request_id = request.headers.get(REQUEST_ID_HEADER)
            if isinstance(exc, CallbackError):
                return self._handle_callback_error(exc, request_id)
            return self._handle_unhandled_exception(exc, request_id)

    def _handle_callback_error(
        self,
        exc: CallbackError,
        request_id: Optional[str],
    ) -> JSONResponse:
        """
        Handle callback verification errors.

        Client errors (4xx) are never converted to 500; only unknown
        CallbackError types default to 500.
        """
        status_code = self.status_code_map.get(type(exc), status.HTTP_500_INTERNAL_SERVER_ERROR)

        error_response: Dict[str, Any] = {
            "error": {
                "code": exc.code,
                "message": exc.message,
                "details": exc.details,
                "request_id": request_id,
            }
        }

        extra: Dict[str, Any] = {"request_id": request_id, "error_code": exc.code}
        if isinstance(exc, InvalidSignatureError):
            extra["computed_sign"] = exc.computed_sign

        log_level = logging.WARNING if status_code < 500 else logging.ERROR
        logger.log(
            log_level,
            f"{exc.code} [request_id={request_id}]: {exc.message}",
            extra=extra,
        )

        return JSONResponse(
            status_code=status_code,
            content=error_response,
        )

    def _handle_unhandled_exception(
        self,
        exc: Exception,
        request_id: Optional[str],
    ) -> JSONResponse:
        """Handle unhandled exceptions (500 errors)."""
        logger.error(
            f"Unhandled exception [request_id={request_id}]: {type(exc).__name__}: {str(exc)}",
            exc_info=True,
            extra={"request_id": request_id},
        )

        error_response: Dict[str, Any] = {
            "error": {
                "code": "INTERNAL_SERVER_ERROR",
                "message": "An unexpected error occurred",
                "details": [],
                "request_id": request_id,
            }
        }

        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content=error_response,
        )
