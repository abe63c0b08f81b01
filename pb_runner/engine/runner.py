"""
Batch runner coordinating invocation, reconciliation and the ledger.

Cases are executed by a bounded thread pool; every worker owns at most one
solver process. Records reach the ledger through a single writer thread in
submission order, whatever order the workers finish in.
"""

from __future__ import annotations

import logging
import time
from concurrent.futures import FIRST_COMPLETED, Future, ThreadPoolExecutor, wait
from pathlib import Path
from typing import Callable, Optional, Sequence

from pb_common.errors import LedgerError
from pb_runner.engine.invoker import SolverInvoker
from pb_runner.engine.parser import build_run_result
from pb_runner.engine.progress import RunProgressEmitter
from pb_runner.engine.reconcile import reconcile, summarize
from pb_runner.engine.stop_token import StopToken
from pb_runner.models.case import SolverArtifactRef, TestCase
from pb_runner.models.config import HarnessConfig
from pb_runner.models.events import CaseEvent
from pb_runner.models.results import BatchSummary, RunResult, RunStatus
from pb_runner.services.ledger import LedgerWriter, OrderedLedgerWriter

logger = logging.getLogger(__name__)

_POLL_INTERVAL = 0.2


class BatchRunner:
    """Run every case against one solver artifact and append the results."""

    def __init__(
        self,
        artifact: SolverArtifactRef,
        config: HarnessConfig,
        ledger_path: Path,
        stop_token: StopToken | None = None,
        progress_callback: Optional[Callable[[CaseEvent], None]] = None,
    ) -> None:
        self.artifact = artifact
        self.config = config
        self.ledger_path = Path(ledger_path)
        self.stop_token = stop_token or StopToken(enable_signals=False)
        self.progress_callback = progress_callback

    @property
    def payload_argument(self) -> bool:
        return self.config.payload_mode == "argument"

    def run(self, cases: Sequence[TestCase], load_errors: int = 0) -> BatchSummary:
        """Execute the batch and return its summary.

        Raises LedgerError when the ledger cannot be opened or a row cannot be
        persisted; in the latter case scheduling stops and in-flight solvers
        are terminated before the error propagates.
        """
        writer = LedgerWriter(self.ledger_path).open()
        ordered = OrderedLedgerWriter(writer, on_error=self._on_ledger_error).start()
        invoker = SolverInvoker(self.artifact, self.config, stop_token=self.stop_token)
        progress = RunProgressEmitter(total=len(cases), callback=self.progress_callback)

        logger.info(
            "Running %d case(s) with %s (%d worker(s), timeout %ss)",
            len(cases),
            self.artifact.name,
            self.config.workers,
            self.config.timeout_seconds,
        )
        start = time.monotonic()
        try:
            with ThreadPoolExecutor(
                max_workers=self.config.workers, thread_name_prefix="pb-worker"
            ) as pool:
                futures = [
                    pool.submit(self._run_case, invoker, ordered, progress, index, case)
                    for index, case in enumerate(cases)
                ]
                self._wait(futures)
            self._log_failures(futures)
        finally:
            ordered.close()
            writer.close()
        wall_clock = time.monotonic() - start

        if ordered.error is not None:
            raise ordered.error

        interrupted = self.stop_token.should_stop()
        if interrupted:
            logger.warning(
                "Batch interrupted: %d of %d case(s) recorded", len(ordered.written), len(cases)
            )
        return summarize(
            ordered.written,
            wall_clock_seconds=wall_clock,
            load_errors=load_errors,
            interrupted=interrupted,
        )

    def _wait(self, futures: list[Future]) -> None:
        """Block until all work is done, polling the stop token meanwhile."""
        pending = set(futures)
        while pending:
            if self.stop_token.should_stop():
                cancelled = sum(1 for future in pending if future.cancel())
                if cancelled:
                    logger.info("Skipping %d case(s) not yet started", cancelled)
                wait(pending)
                return
            _, pending = wait(pending, timeout=_POLL_INTERVAL, return_when=FIRST_COMPLETED)

    @staticmethod
    def _log_failures(futures: list[Future]) -> None:
        for future in futures:
            if future.cancelled():
                continue
            exc = future.exception()
            if exc is not None:
                logger.error("Worker failed: %s", exc, exc_info=exc)

    def _on_ledger_error(self, error: LedgerError) -> None:
        logger.error("Ledger write failed, stopping batch")
        self.stop_token.request_stop()

    def _run_case(
        self,
        invoker: SolverInvoker,
        ordered: OrderedLedgerWriter,
        progress: RunProgressEmitter,
        index: int,
        case: TestCase,
    ) -> None:
        if self.stop_token.should_stop():
            ordered.submit(index, None)
            return
        try:
            outcome = invoker.invoke(case)
            if outcome.cancelled:
                logger.info("Case %s cancelled", case.case_id)
                ordered.submit(index, None)
                return
            result = build_run_result(case.case_id, outcome)
        except Exception as exc:
            logger.exception("Unexpected failure running case %s", case.case_id)
            result = RunResult(
                case_id=case.case_id,
                status=RunStatus.CRASH,
                elapsed_seconds=0.0,
                message=f"harness error: {exc}",
            )

        try:
            record = reconcile(result, case, self.artifact.name, self.config.objective_sense)
        except Exception as exc:
            logger.exception("Cannot reconcile case %s", case.case_id)
            result = RunResult(
                case_id=case.case_id,
                status=RunStatus.CRASH,
                elapsed_seconds=result.elapsed_seconds,
                message=f"harness error: {exc}",
            )
            record = reconcile(result, case, self.artifact.name, self.config.objective_sense)
        ordered.submit(index, record)
        rerun = ""
        if result.status.failed:
            rerun = self.artifact.rerun_hint(case, payload_argument=self.payload_argument)
        progress.emit(record, message=result.message, rerun_command=rerun)
