from __future__ import annotations

import logging
import shlex
from pathlib import Path
from typing import Optional

import typer

from pb_common.api import LedgerError, PBError, configure_logging, error_to_payload
from pb_common.config.env import env_path
from pb_runner.api import (
    BatchRunner,
    CaseLoader,
    HarnessConfig,
    ObjectiveSense,
    SolverArtifactRef,
    StopToken,
    check_writable,
)
from pb_ui.ui.console import ConsoleUIAdapter

logger = logging.getLogger(__name__)

EXIT_INTERRUPTED = 130


def build_config(
    config: Optional[Path],
    *,
    timeout: Optional[float] = None,
    workers: Optional[int] = None,
    launcher: Optional[str] = None,
    payload_mode: Optional[str] = None,
    maximize: bool = False,
) -> HarnessConfig:
    """Defaults < config file < environment < command-line flags."""
    cfg = HarnessConfig.load(config) if config else HarnessConfig()
    return cfg.with_env_overrides().with_overrides(
        timeout_seconds=timeout,
        workers=workers,
        launcher=shlex.split(launcher) if launcher else None,
        payload_mode=payload_mode,
        objective_sense=ObjectiveSense.MAXIMIZE if maximize else None,
    )


def register_run_command(app: typer.Typer) -> None:
    """Register the run command on the given Typer app."""

    @app.command("run")
    def run(
        artifact: Path = typer.Argument(..., help="Solver artifact (jar or executable)."),
        cases: Path = typer.Argument(..., help="Case file or directory of case files."),
        ledger: Path = typer.Argument(..., help="CSV ledger to append results to."),
        timeout: Optional[float] = typer.Option(
            None, "--timeout", "-t", help="Per-case wall-clock budget in seconds (default 300)."
        ),
        workers: Optional[int] = typer.Option(
            None, "--workers", "-w", help="Concurrent solver runs (default 1)."
        ),
        baseline: Optional[Path] = typer.Option(
            None, "--baseline", "-b", help="CSV table of case,optimal values."
        ),
        launcher: Optional[str] = typer.Option(
            None,
            "--launcher",
            help="Launcher template, e.g. 'java -Xmx2g -jar {artifact}'.",
        ),
        payload_mode: Optional[str] = typer.Option(
            None, "--payload-mode", help="Pass the case on 'stdin' or as an 'argument'."
        ),
        maximize: bool = typer.Option(
            False, "--maximize", help="Treat higher objective values as better."
        ),
        config: Optional[Path] = typer.Option(
            None, "--config", "-c", help="JSON harness config to load."
        ),
        stop_file: Optional[Path] = typer.Option(
            None,
            "--stop-file",
            help="Path to a stop sentinel file; when created, the batch stops gracefully.",
        ),
        debug: bool = typer.Option(False, "--debug", help="Enable verbose debug logging."),
    ) -> None:
        """Run every case against the solver and append the results to the ledger."""
        ui = ConsoleUIAdapter()
        if debug:
            configure_logging(debug=True, force=True)
            ui.show_info("Debug logging enabled")

        stop_file_resolved = stop_file or env_path("PB_STOP_FILE")

        try:
            cfg = build_config(
                config,
                timeout=timeout,
                workers=workers,
                launcher=launcher,
                payload_mode=payload_mode,
                maximize=maximize,
            )
            solver = SolverArtifactRef.resolve(artifact, cfg.launcher)
            check_writable(ledger)
            report = CaseLoader(cfg, baseline=baseline, exclude=[ledger]).load(cases)
        except PBError as exc:
            logger.debug("Setup failed: %s", error_to_payload(exc))
            ui.show_error(exc.describe())
            raise typer.Exit(1)

        for error in report.errors:
            ui.show_warning(f"Load error: {error}")
        if not report.cases:
            ui.show_warning(f"No cases to run in {cases}")

        with StopToken(stop_file=stop_file_resolved) as token:
            runner = BatchRunner(
                solver, cfg, ledger, stop_token=token, progress_callback=ui.show_case
            )
            try:
                summary = runner.run(report.cases, load_errors=len(report.errors))
            except LedgerError as exc:
                ui.show_error(exc.describe())
                raise typer.Exit(1)

        ui.show_summary(summary)
        if summary.interrupted:
            raise typer.Exit(EXIT_INTERRUPTED)
