"""Signature verification gate for AG partner callbacks."""

__version__ = "1.0.0"
