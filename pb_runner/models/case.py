"""Test cases and the solver artifact reference shared by every run."""

from __future__ import annotations

import os
import shlex
import shutil
from dataclasses import dataclass
from decimal import Decimal
from pathlib import Path
from typing import Sequence

from pb_common.errors import InvocationError
from pb_runner.models.problem import Problem


@dataclass(frozen=True)
class TestCase:
    """One packing instance plus its known optimum, if any."""

    __test__ = False  # keep pytest from collecting this class

    case_id: str
    source: Path
    problem: Problem
    known_optimal: Decimal | None = None

    @property
    def payload(self) -> str:
        return self.problem.to_text()

    @property
    def has_baseline(self) -> bool:
        return self.known_optimal is not None


@dataclass(frozen=True)
class SolverArtifactRef:
    """Validated artifact path and the launcher used to start it."""

    path: Path
    launcher: tuple[str, ...]

    @property
    def name(self) -> str:
        return self.path.name

    @classmethod
    def resolve(cls, path: Path, launcher: Sequence[str]) -> "SolverArtifactRef":
        """Validate the artifact and launcher before any case runs."""
        resolved = Path(path).expanduser().resolve()
        context = {"artifact": resolved}
        if not resolved.exists():
            raise InvocationError(f"Solver artifact not found: {resolved}", context=context)
        if not resolved.is_file():
            raise InvocationError(f"Solver artifact is not a file: {resolved}", context=context)
        if not os.access(resolved, os.R_OK):
            raise InvocationError(f"Solver artifact is not readable: {resolved}", context=context)
        if not launcher:
            raise InvocationError("Launcher command is empty", context=context)

        program = launcher[0]
        if program == "{artifact}":
            if not os.access(resolved, os.X_OK):
                raise InvocationError(
                    f"Solver artifact is not executable: {resolved}", context=context
                )
        elif shutil.which(program) is None:
            raise InvocationError(
                f"Launcher program not found in PATH: {program}",
                context={**context, "launcher": list(launcher)},
            )
        return cls(path=resolved, launcher=tuple(launcher))

    def command(self, case: TestCase, *, payload_argument: bool = False) -> list[str]:
        """Render the launcher template for one case."""
        cmd = [
            part.replace("{artifact}", str(self.path)).replace("{case}", str(case.source))
            for part in self.launcher
        ]
        if payload_argument:
            cmd.append(case.payload)
        return cmd

    def rerun_hint(self, case: TestCase, *, payload_argument: bool = False) -> str:
        """Shell line that reproduces one run by hand."""
        payload = f"grep -v '^bounding box:' {shlex.quote(str(case.source))}"
        if payload_argument:
            return f'{shlex.join(self.command(case))} "$({payload})"'
        return f"{payload} | {shlex.join(self.command(case))}"
