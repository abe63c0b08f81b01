"""Run the solver artifact as one isolated subprocess per case."""

from __future__ import annotations

import logging
import os
import signal
import subprocess
import threading
import time
from dataclasses import dataclass
from typing import Any

from pb_common.errors import SolverTimeoutError
from pb_runner.engine.stop_token import StopToken
from pb_runner.models.case import SolverArtifactRef, TestCase
from pb_runner.models.config import HarnessConfig

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ProcessOutcome:
    """Raw capture of one solver process, before any output parsing."""

    command: list[str]
    elapsed_seconds: float
    exit_code: int | None = None
    stdout: str = ""
    stderr: str = ""
    timed_out: bool = False
    cancelled: bool = False
    launch_error: str | None = None


class SolverInvoker:
    """Spawn, race completion against the timeout, terminate, then report.

    The invoker is shared by all workers; the artifact reference is read-only
    and the only mutable state is the set of live processes, which is kept
    so a stop request can terminate every in-flight run.
    """

    def __init__(
        self,
        artifact: SolverArtifactRef,
        config: HarnessConfig,
        stop_token: StopToken | None = None,
    ) -> None:
        self.artifact = artifact
        self.config = config
        self.stop_token = stop_token
        self._lock = threading.Lock()
        self._live: set[subprocess.Popen[str]] = set()
        self._stopped: set[subprocess.Popen[str]] = set()
        if stop_token is not None:
            stop_token.on_stop(self.terminate_all)

    @property
    def payload_argument(self) -> bool:
        return self.config.payload_mode == "argument"

    def _popen_kwargs(self) -> dict[str, Any]:
        kwargs: dict[str, Any] = {
            "stdin": subprocess.DEVNULL if self.payload_argument else subprocess.PIPE,
            "stdout": subprocess.PIPE,
            "stderr": subprocess.PIPE,
            "text": True,
            "encoding": "utf-8",
            "errors": "replace",
        }
        if os.name == "posix":
            # Own process group so termination reaches helpers the solver spawned.
            kwargs["start_new_session"] = True
        return kwargs

    def invoke(self, case: TestCase) -> ProcessOutcome:
        cmd = self.artifact.command(case, payload_argument=self.payload_argument)
        timeout = self.config.timeout_seconds

        if self.stop_token is not None and self.stop_token.should_stop():
            return ProcessOutcome(command=cmd, elapsed_seconds=0.0, cancelled=True)

        logger.debug("Running %s for case %s", cmd[0], case.case_id)
        start = time.monotonic()
        try:
            proc = subprocess.Popen(cmd, **self._popen_kwargs())
        except OSError as exc:
            logger.error("Failed to launch solver for %s: %s", case.case_id, exc)
            return ProcessOutcome(
                command=cmd,
                elapsed_seconds=time.monotonic() - start,
                launch_error=f"failed to launch {cmd[0]}: {exc}",
            )

        self._track(proc)
        timed_out = False
        try:
            if self.stop_token is not None and self.stop_token.should_stop():
                with self._lock:
                    self._stopped.add(proc)
                self._terminate(proc)
            stdin_payload = None if self.payload_argument else case.payload
            try:
                stdout, stderr = proc.communicate(input=stdin_payload, timeout=timeout)
            except subprocess.TimeoutExpired:
                error = SolverTimeoutError(
                    f"{case.case_id} timed out after {timeout}s",
                    context={"case": case.case_id, "timeout_seconds": timeout},
                )
                logger.error("%s. Terminating process.", error)
                self._terminate(proc)
                stdout, stderr = proc.communicate()
                timed_out = True
        finally:
            stopped = self._untrack(proc)

        return ProcessOutcome(
            command=cmd,
            elapsed_seconds=timeout if timed_out else min(time.monotonic() - start, timeout),
            exit_code=None if timed_out else proc.returncode,
            stdout=stdout or "",
            stderr=stderr or "",
            timed_out=timed_out,
            cancelled=stopped,
        )

    def terminate_all(self) -> None:
        """Terminate every in-flight solver process (stop request)."""
        with self._lock:
            live = list(self._live)
            self._stopped.update(live)
        if live:
            logger.warning("Terminating %d in-flight solver process(es)", len(live))
        for proc in live:
            self._terminate(proc)

    def _track(self, proc: subprocess.Popen[str]) -> None:
        with self._lock:
            self._live.add(proc)

    def _untrack(self, proc: subprocess.Popen[str]) -> bool:
        """Forget ``proc``; returns whether a stop request terminated it."""
        with self._lock:
            self._live.discard(proc)
            stopped = proc in self._stopped
            self._stopped.discard(proc)
        return stopped

    def _signal(self, proc: subprocess.Popen[str], sig: int) -> None:
        try:
            if os.name == "posix":
                os.killpg(proc.pid, sig)
            elif sig == signal.SIGTERM:
                proc.terminate()
            else:
                proc.kill()
        except ProcessLookupError:
            pass

    def _terminate(self, proc: subprocess.Popen[str]) -> None:
        if proc.poll() is not None:
            return
        logger.info("Terminating solver process %s", proc.pid)
        self._signal(proc, signal.SIGTERM)
        try:
            proc.wait(timeout=self.config.kill_grace_seconds)
        except subprocess.TimeoutExpired:
            logger.warning("Force killing solver process %s", proc.pid)
            self._signal(proc, getattr(signal, "SIGKILL", signal.SIGTERM))
            proc.wait()
