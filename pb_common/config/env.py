"""Read PB_* settings from the process environment.

Unset or blank variables read as ``None``. A value that does not parse is
logged and ignored, so a typo in PB_WORKERS falls back to the configured
worker count instead of aborting the batch.
"""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Callable, Mapping, Optional, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")

_TRUTHY = frozenset({"1", "true", "yes", "on"})


def _raw(name: str, environ: Optional[Mapping[str, str]]) -> str | None:
    value = (os.environ if environ is None else environ).get(name)
    if value is None or not value.strip():
        return None
    return value.strip()


def _convert(name: str, environ: Optional[Mapping[str, str]], cast: Callable[[str], T]) -> T | None:
    value = _raw(name, environ)
    if value is None:
        return None
    try:
        return cast(value)
    except ValueError:
        logger.warning("Ignoring %s=%r: not a valid %s", name, value, cast.__name__)
        return None


def env_flag(name: str, environ: Optional[Mapping[str, str]] = None) -> bool | None:
    value = _raw(name, environ)
    if value is None:
        return None
    return value.lower() in _TRUTHY


def env_int(name: str, environ: Optional[Mapping[str, str]] = None) -> int | None:
    return _convert(name, environ, int)


def env_float(name: str, environ: Optional[Mapping[str, str]] = None) -> float | None:
    return _convert(name, environ, float)


def env_path(name: str, environ: Optional[Mapping[str, str]] = None) -> Path | None:
    value = _raw(name, environ)
    return Path(value).expanduser() if value is not None else None
