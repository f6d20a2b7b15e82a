"""Services package for callback verification."""
from .body_buffer import BufferedRequest, read_body
from .signature_verifier import SignatureContext, SignatureVerifier, build_signing_string, compute_sign

__all__ = [
    "BufferedRequest",
    "read_body",
    "SignatureContext",
    "SignatureVerifier",
    "build_signing_string",
    "compute_sign",
]
