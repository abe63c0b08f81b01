"""Stable UI API surface."""

from __future__ import annotations

from pb_ui.cli import app, main
from pb_ui.ui.console import THEME, ConsoleUIAdapter

__all__ = ["app", "main", "ConsoleUIAdapter", "THEME"]
