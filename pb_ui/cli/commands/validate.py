from __future__ import annotations

from pathlib import Path
from typing import Optional

import typer

from pb_common.api import PBError
from pb_runner.api import CaseLoader, HarnessConfig
from pb_runner.models.results import format_number
from pb_ui.ui.console import ConsoleUIAdapter


def register_validate_command(app: typer.Typer) -> None:
    """Register the load-only dry run on the given Typer app."""

    @app.command("validate")
    def validate(
        cases: Path = typer.Argument(..., help="Case file or directory of case files."),
        baseline: Optional[Path] = typer.Option(
            None, "--baseline", "-b", help="CSV table of case,optimal values."
        ),
        config: Optional[Path] = typer.Option(
            None, "--config", "-c", help="JSON harness config to load."
        ),
    ) -> None:
        """Load cases without running anything; exit 1 when any case fails to load."""
        ui = ConsoleUIAdapter()
        try:
            cfg = HarnessConfig.load(config) if config else HarnessConfig()
            report = CaseLoader(cfg, baseline=baseline).load(cases)
        except PBError as exc:
            ui.show_error(exc.describe())
            raise typer.Exit(1)

        rows = [
            [
                case.case_id,
                str(len(case.problem.rectangles)),
                str(case.problem.variant),
                "yes" if case.problem.allow_rotation else "no",
                format_number(case.known_optimal) or "-",
            ]
            for case in report.cases
        ]
        ui.show_table(
            f"Cases in {cases}",
            ["Case", "Rectangles", "Height", "Rotation", "Optimal"],
            rows,
        )
        for error in report.errors:
            ui.show_error(f"Load error: {error}")
        if report.errors:
            raise typer.Exit(1)
        ui.show_success(f"{len(report.cases)} case(s) loaded")
