"""Rich-based console adapter used for all TTY output."""

from __future__ import annotations

import sys
from typing import IO, Sequence

from rich.console import Console
from rich.table import Table
from rich.theme import Theme

from pb_runner.models.events import CaseEvent
from pb_runner.models.results import BatchSummary
from pb_ui.presenters.progress import case_line, case_style
from pb_ui.presenters.summary import summary_details, summary_rows

THEME = Theme(
    {
        "info": "cyan",
        "warning": "yellow",
        "error": "red",
        "success": "green",
        "accent": "#3ea6ff",
        "case.match": "green",
        "case.better": "bold yellow",
        "case.worse": "cyan",
        "case.unknown": "dim cyan",
        "case.failed": "bold red",
    }
)


class ConsoleUIAdapter:
    """Progress lines and tables on stdout; logs stay on stderr."""

    def __init__(self, stream: IO[str] | None = None):
        self.console = Console(
            theme=THEME,
            file=stream or sys.stdout,
            highlight=False,
            soft_wrap=True,
        )

    def show_info(self, message: str) -> None:
        self.console.print(message, style="info", markup=False)

    def show_warning(self, message: str) -> None:
        self.console.print(message, style="warning", markup=False)

    def show_error(self, message: str) -> None:
        self.console.print(message, style="error", markup=False)

    def show_success(self, message: str) -> None:
        self.console.print(message, style="success", markup=False)

    def show_table(self, title: str, columns: Sequence[str], rows: list[Sequence[str]]) -> None:
        table = Table(
            title=f"[b]{title}[/b]",
            border_style="accent",
            header_style="bold white",
            row_styles=("", "dim"),
        )
        for column in columns:
            table.add_column(column, overflow="fold")
        for row in rows:
            table.add_row(*[str(cell) for cell in row])
        self.console.print(table)

    def show_case(self, event: CaseEvent) -> None:
        """One line per finished case, plus the rerun command on failure."""
        self.console.print(case_line(event), style=case_style(event), markup=False)
        if event.rerun_command:
            self.console.print(f"  rerun: {event.rerun_command}", style="dim", markup=False)

    def show_summary(self, summary: BatchSummary) -> None:
        self.show_table("Batch summary", ["Classification", "Cases"], summary_rows(summary))
        for line in summary_details(summary):
            self.show_info(line)
        if summary.interrupted:
            self.show_warning("Batch interrupted; rows for completed cases were kept.")
