"""
Command-line interface for packt-bench.

Runs a packing solver artifact over a set of cases and records every run in
an append-only CSV ledger.
"""

from __future__ import annotations

import typer

from pb_common.api import configure_logging
from pb_ui.cli.commands.generate import register_generate_command
from pb_ui.cli.commands.run import register_run_command
from pb_ui.cli.commands.validate import register_validate_command

app = typer.Typer(
    help="Benchmark a packing solver against cases with known optima.",
    no_args_is_help=True,
)


@app.callback()
def entry() -> None:
    """Global entry point."""
    configure_logging(force=True)


register_run_command(app)
register_generate_command(app)
register_validate_command(app)


def main() -> None:
    """Console script entrypoint (Typer app)."""
    app()


if __name__ == "__main__":
    main()
