"""Console front end (Typer CLI and Rich output) for packt-bench."""

from pb_ui.api import ConsoleUIAdapter, app, main

__all__ = ["app", "main", "ConsoleUIAdapter"]
