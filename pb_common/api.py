"""Public API surface for pb_common."""

from pb_common.errors import (
    ConfigurationError,
    InvocationError,
    LedgerError,
    LoadError,
    ParseError,
    PBError,
    SolverTimeoutError,
    error_to_payload,
    normalize_context,
)
from pb_common.logging import configure_logging

__all__ = [
    "configure_logging",
    "ConfigurationError",
    "InvocationError",
    "LedgerError",
    "LoadError",
    "ParseError",
    "PBError",
    "SolverTimeoutError",
    "error_to_payload",
    "normalize_context",
]
