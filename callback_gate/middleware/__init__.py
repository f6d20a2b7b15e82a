"""Middleware package for the callback gate."""
from .error_handler import ErrorHandlerMiddleware
from .signature import PathGate, SignatureMiddleware, extract_required_headers

__all__ = [
    "ErrorHandlerMiddleware",
    "PathGate",
    "SignatureMiddleware",
    "extract_required_headers",
]
