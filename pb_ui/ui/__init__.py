"""
Console renderers for the CLI.
"""

from pb_ui.ui.console import THEME, ConsoleUIAdapter

__all__ = ["ConsoleUIAdapter", "THEME"]
