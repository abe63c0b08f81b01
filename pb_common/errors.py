"""Error types raised by the harness.

Every failure the harness reports on purpose derives from ``PBError`` and
carries a context mapping (case id, file path, ledger path and similar) that
is kept JSON-friendly so it can go straight into structured log lines.
"""

from __future__ import annotations

from pathlib import PurePath
from typing import Any, Mapping

_SCALARS = (str, int, float, bool, type(None))


def normalize_context(context: Mapping[str, Any]) -> dict[str, Any]:
    """Copy ``context`` replacing paths and other objects with strings."""
    return {str(key): _plain(value) for key, value in context.items()}


def _plain(value: Any) -> Any:
    if isinstance(value, _SCALARS):
        return value
    if isinstance(value, PurePath):
        return value.as_posix()
    if isinstance(value, Mapping):
        return normalize_context(value)
    if isinstance(value, (list, tuple, set, frozenset)):
        return [_plain(item) for item in value]
    return str(value)


class PBError(Exception):
    """Base class for expected harness failures."""

    def __init__(
        self,
        message: str,
        *,
        context: Mapping[str, Any] | None = None,
        cause: BaseException | None = None,
    ) -> None:
        super().__init__(message)
        self.context = normalize_context(context or {})
        if cause is not None:
            self.__cause__ = cause

    @property
    def error_type(self) -> str:
        return type(self).__name__

    def with_context(self, **extra: Any) -> "PBError":
        """Add context keys that are not set yet; returns ``self``."""
        for key, value in normalize_context(extra).items():
            self.context.setdefault(key, value)
        return self

    def describe(self) -> str:
        return f"{self.error_type}: {self}"

    def to_dict(self) -> dict[str, Any]:
        return {"type": self.error_type, "message": str(self), "context": self.context}


class LoadError(PBError):
    """A case path or case file could not be loaded."""


class InvocationError(PBError):
    """The solver artifact cannot be invoked at all."""


class SolverTimeoutError(PBError):
    """A solver run exceeded its wall-clock budget."""


class ParseError(PBError):
    """Solver output did not contain a recognizable result."""


class LedgerError(PBError):
    """The output ledger could not be opened or written."""


class ConfigurationError(PBError):
    """Settings, flags or generator options are invalid."""


def error_to_payload(error: PBError) -> dict[str, Any]:
    """Flatten ``error`` into ``error_*`` keys for a log record."""
    return {
        "error_type": error.error_type,
        "error": str(error),
        "error_context": error.context,
    }
