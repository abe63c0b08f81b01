import logging
import sys
import textwrap
from collections import Counter, defaultdict
from pathlib import Path
from typing import Callable, Sequence

import pytest
from rich.console import Console
from rich.table import Table

from pb_runner.models.case import SolverArtifactRef

PYTHON_LAUNCHER = [sys.executable, "{artifact}"]

# Places every rectangle side by side on the x axis and echoes the problem,
# the way a real solver answers.
ROW_SOLVER = """
import sys
lines = [line.strip() for line in sys.stdin if line.strip()]
header, rects = lines[:3], [tuple(map(int, line.split())) for line in lines[3:]]
rotation = header[1].endswith("yes")
print("\\n".join(lines))
print("placement of rectangles")
x = 0
for w, h in rects:
    print(("no " if rotation else "") + f"{x} 0")
    x += w
"""


def case_text(
    rects: Sequence[tuple[int, int]],
    fixed: int | None = None,
    rotation: bool = False,
    bounding_box: tuple[int, int] | None = None,
) -> str:
    lines = [
        f"container height: {'free' if fixed is None else f'fixed {fixed}'}",
        f"rotations allowed: {'yes' if rotation else 'no'}",
        f"number of rectangles: {len(rects)}",
    ]
    if bounding_box is not None:
        lines.append(f"bounding box: {bounding_box[0]} {bounding_box[1]}")
    lines.extend(f"{w} {h}" for w, h in rects)
    return "\n".join(lines) + "\n"


@pytest.fixture(autouse=True)
def _restore_root_logger():
    """CLI invocations reconfigure logging against short-lived streams."""
    root = logging.getLogger()
    handlers, level = list(root.handlers), root.level
    yield
    for handler in list(root.handlers):
        if handler not in handlers:
            root.removeHandler(handler)
            handler.close()
    root.setLevel(level)


@pytest.fixture
def write_case(tmp_path: Path) -> Callable[..., Path]:
    cases_dir = tmp_path / "cases"
    cases_dir.mkdir(exist_ok=True)

    def _write(name: str, rects: Sequence[tuple[int, int]] = ((2, 3),), **kwargs) -> Path:
        path = cases_dir / name
        path.write_text(case_text(rects, **kwargs), encoding="utf-8")
        return path

    return _write


@pytest.fixture
def make_solver(tmp_path: Path) -> Callable[[str], SolverArtifactRef]:
    """Write a Python script and wrap it as a solver artifact."""
    solvers_dir = tmp_path / "solvers"
    solvers_dir.mkdir(exist_ok=True)
    counter = {"n": 0}

    def _make(source: str) -> SolverArtifactRef:
        counter["n"] += 1
        path = solvers_dir / f"solver_{counter['n']}.py"
        path.write_text(textwrap.dedent(source), encoding="utf-8")
        return SolverArtifactRef.resolve(path, PYTHON_LAUNCHER)

    return _make


@pytest.fixture
def row_solver(make_solver: Callable[[str], SolverArtifactRef]) -> SolverArtifactRef:
    return make_solver(ROW_SOLVER)


_SUMMARY_MARKERS = ("unit_common", "unit_runner", "unit_ui", "inter_generic", "slow")
_OUTCOMES = ("passed", "failed", "skipped")


def _counted(report) -> bool:
    return report.when == "call" or (report.when == "setup" and report.skipped)


def pytest_terminal_summary(terminalreporter, exitstatus, config):
    """Print a per-marker outcome table after the run."""
    _ = (exitstatus, config)
    counts: dict[str, Counter] = defaultdict(Counter)
    durations: dict[str, float] = defaultdict(float)
    for outcome in _OUTCOMES:
        for report in terminalreporter.stats.get(outcome, []):
            if not _counted(report):
                continue
            for marker in _SUMMARY_MARKERS:
                if marker in report.keywords:
                    counts[marker][outcome] += 1
                    durations[marker] += getattr(report, "duration", 0.0)
    if not counts:
        return

    table = Table(title="packt-bench tests by marker", header_style="bold")
    table.add_column("Marker", style="cyan")
    for outcome, style in zip(_OUTCOMES, ("green", "red", "yellow")):
        table.add_column(outcome.capitalize(), justify="right", style=style)
    table.add_column("Seconds", justify="right")
    for marker in _SUMMARY_MARKERS:
        if marker in counts:
            row = [str(counts[marker][outcome]) for outcome in _OUTCOMES]
            table.add_row(marker, *row, f"{durations[marker]:.2f}")
    Console().print(table)
