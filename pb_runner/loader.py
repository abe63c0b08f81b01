"""Discover case files and attach their known optima."""

from __future__ import annotations

import csv
import logging
from dataclasses import dataclass, field
from decimal import Decimal
from pathlib import Path
from typing import Dict, Iterable, List, Optional

from pb_common.errors import LoadError
from pb_runner.models.case import TestCase
from pb_runner.models.config import HarnessConfig
from pb_runner.models.problem import Problem
from pb_runner.models.results import parse_decimal

logger = logging.getLogger(__name__)


@dataclass
class LoadReport:
    """Loaded cases in traversal order plus per-case failures."""

    root: Path
    cases: List[TestCase] = field(default_factory=list)
    errors: List[LoadError] = field(default_factory=list)
    baseline_path: Optional[Path] = None


def read_baseline(path: Path) -> tuple[Dict[str, Decimal], List[LoadError]]:
    """Read a ``case,optimal`` table.

    The header row is optional; blank rows and rows starting with ``#`` are
    skipped. Malformed rows are returned as errors, the rest is still used.
    """
    table: Dict[str, Decimal] = {}
    errors: List[LoadError] = []
    try:
        handle = path.open(newline="", encoding="utf-8")
    except OSError as exc:
        raise LoadError(
            f"Cannot read baseline table {path}", context={"baseline": path}, cause=exc
        ) from exc
    try:
        with handle:
            for row_no, row in enumerate(csv.reader(handle), start=1):
                cells = [cell.strip() for cell in row]
                if not cells or not any(cells) or cells[0].startswith("#"):
                    continue
                if row_no == 1 and len(cells) >= 2 and cells[1].lower() == "optimal":
                    continue
                if len(cells) < 2 or not cells[0]:
                    errors.append(
                        LoadError(
                            f"Malformed baseline row {row_no}: {row!r}",
                            context={"baseline": path, "row": row_no},
                        )
                    )
                    continue
                try:
                    table[cells[0]] = parse_decimal(cells[1])
                except ValueError as exc:
                    errors.append(
                        LoadError(
                            f"Non-numeric optimal value for {cells[0]!r} in baseline row {row_no}",
                            context={"baseline": path, "row": row_no, "case": cells[0]},
                            cause=exc,
                        )
                    )
    except (UnicodeDecodeError, csv.Error) as exc:
        raise LoadError(
            f"Cannot read baseline table {path}: {exc}", context={"baseline": path}, cause=exc
        ) from exc
    return table, errors


class CaseLoader:
    """Turn a case path (file or directory) into an ordered list of TestCase."""

    def __init__(
        self,
        config: HarnessConfig | None = None,
        baseline: Path | None = None,
        exclude: Iterable[Path] = (),
    ) -> None:
        self.config = config or HarnessConfig()
        self.baseline = baseline
        self._exclude = {Path(path).resolve() for path in exclude}
        if baseline is not None:
            self._exclude.add(Path(baseline).resolve())

    def discover(self, root: Path) -> List[Path]:
        """Case files under ``root`` in lexicographic file-name order."""
        if root.is_file():
            return [root]
        files = [
            path
            for path in root.glob(self.config.case_pattern)
            if path.is_file()
            and not path.name.startswith(".")
            and path.name != self.config.baseline_name
            and path.resolve() not in self._exclude
        ]
        return sorted(files, key=lambda path: path.name)

    def load(self, root: Path) -> LoadReport:
        root = Path(root)
        if not root.exists():
            raise LoadError(f"Case path does not exist: {root}", context={"path": root})

        report = LoadReport(root=root)
        files = self.discover(root)
        baseline_path = self._baseline_path(root)
        table: Dict[str, Decimal] = {}
        if baseline_path is not None:
            report.baseline_path = baseline_path
            table, baseline_errors = read_baseline(baseline_path)
            report.errors.extend(baseline_errors)

        for path in files:
            try:
                report.cases.append(self._load_case(root, path, table))
            except LoadError as exc:
                exc.with_context(case=self._case_id(root, path))
                report.errors.append(exc)

        if root.is_dir():
            known = {self._case_id(root, path) for path in files} | {path.stem for path in files}
            for key in table:
                if key not in known:
                    report.errors.append(
                        LoadError(
                            f"Baseline references unknown case {key!r}",
                            context={"case": key, "baseline": baseline_path},
                        )
                    )

        for error in report.errors:
            logger.warning("Load error: %s", error)
        logger.info(
            "Loaded %d case(s) from %s (%d load error(s))",
            len(report.cases),
            root,
            len(report.errors),
        )
        return report

    def _baseline_path(self, root: Path) -> Path | None:
        if self.baseline is not None:
            if not self.baseline.exists():
                raise LoadError(
                    f"Baseline table does not exist: {self.baseline}",
                    context={"baseline": self.baseline},
                )
            return self.baseline
        if root.is_dir():
            candidate = root / self.config.baseline_name
            if candidate.is_file():
                return candidate
        return None

    @staticmethod
    def _case_id(root: Path, path: Path) -> str:
        return path.name if root.is_file() else path.relative_to(root).as_posix()

    def _load_case(self, root: Path, path: Path, table: Dict[str, Decimal]) -> TestCase:
        try:
            text = path.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as exc:
            raise LoadError(f"Cannot read case file {path}: {exc}", cause=exc) from exc
        try:
            problem = Problem.parse(text)
        except LoadError as exc:
            raise LoadError(
                f"{path.name}: {exc}",
                context={**exc.context, "path": path},
                cause=exc,
            ) from exc

        case_id = self._case_id(root, path)
        optimal = table.get(case_id, table.get(path.stem))
        if optimal is None and problem.bounding_box is not None:
            optimal = Decimal(problem.bounding_box.area)
        return TestCase(case_id=case_id, source=path, problem=problem, known_optimal=optimal)
