from __future__ import annotations

from pathlib import Path
from typing import Optional

import typer

from pb_common.api import PBError
from pb_runner.api import Rectangle, generate_problem
from pb_ui.ui.console import ConsoleUIAdapter


def _parse_container(value: Optional[str]) -> Optional[Rectangle]:
    if value is None:
        return None
    try:
        width, height = (int(part) for part in value.lower().split("x"))
    except ValueError:
        raise typer.BadParameter("expected WIDTHxHEIGHT, e.g. 20x15", param_hint="--container")
    if width < 1 or height < 1:
        raise typer.BadParameter("sides must be positive", param_hint="--container")
    return Rectangle(width, height)


def register_generate_command(app: typer.Typer) -> None:
    """Register the instance generator on the given Typer app."""

    @app.command("generate")
    def generate(
        output: Optional[Path] = typer.Argument(None, help="Output file, stdout if omitted."),
        count: int = typer.Option(..., "--count", "-n", help="Number of rectangles."),
        fixed: Optional[bool] = typer.Option(
            None, "--fixed/--free", help="Fix the container height (random when omitted)."
        ),
        rotation: Optional[bool] = typer.Option(
            None, "--rotation/--no-rotation", help="Allow rotations (random when omitted)."
        ),
        container: Optional[str] = typer.Option(
            None, "--container", help="Container size as WIDTHxHEIGHT."
        ),
        seed: Optional[int] = typer.Option(None, "--seed", help="Seed for reproducible output."),
    ) -> None:
        """Generate a case whose optimal area is known."""
        box = _parse_container(container)
        try:
            problem = generate_problem(
                count, container=box, fixed=fixed, rotation=rotation, seed=seed
            )
        except PBError as exc:
            ConsoleUIAdapter().show_error(str(exc))
            raise typer.Exit(1)

        if output is None:
            typer.echo(problem.digest(), nl=False)
            return
        output.write_text(problem.digest(), encoding="utf-8")
        ConsoleUIAdapter().show_success(
            f"Wrote {count} rectangles to {output} (optimal area {problem.bounding_box.area})"
        )
