"""Shared helpers for packt-bench."""

from pb_common.api import PBError, configure_logging

__all__ = ["configure_logging", "PBError"]
