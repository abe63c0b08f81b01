"""Run outcomes, reconciliation records and batch summaries."""

from __future__ import annotations

from dataclasses import dataclass, field
from decimal import Decimal, InvalidOperation, localcontext
from enum import Enum
from typing import Any

from pb_runner.models.solution import Evaluation


class RunStatus(str, Enum):
    OK = "ok"
    TIMEOUT = "timeout"
    CRASH = "crash"
    PARSE_ERROR = "parse-error"
    INFEASIBLE = "infeasible"

    @property
    def failed(self) -> bool:
        return self is not RunStatus.OK


class Classification(str, Enum):
    MATCH = "match"
    BETTER = "better"
    WORSE = "worse"
    NO_BASELINE = "no-baseline"
    FAILED = "failed"


class ObjectiveSense(str, Enum):
    MINIMIZE = "minimize"
    MAXIMIZE = "maximize"


def parse_decimal(value: str) -> Decimal:
    """Parse a locale-invariant number ('.' decimal separator, optional exponent)."""
    try:
        number = Decimal(value.strip())
    except InvalidOperation as exc:
        raise ValueError(f"not a number: {value!r}") from exc
    if not number.is_finite():
        raise ValueError(f"not a finite number: {value!r}")
    return number


def exact_precision(*values: Decimal) -> int:
    """Context precision large enough to add, subtract or rescale ``values`` exactly."""
    precision = 28
    for value in values:
        _, digits, exponent = value.as_tuple()
        if isinstance(exponent, int):
            precision = max(precision, len(digits) + abs(exponent) + 1)
    return precision + len(values)


def exact_difference(left: Decimal, right: Decimal) -> Decimal:
    with localcontext() as ctx:
        ctx.prec = exact_precision(left, right)
        return left - right


def format_number(value: Decimal | None) -> str:
    """Render a decimal for the ledger: integral values without a fraction.

    Works at whatever precision ``value`` needs, so objectives longer than the
    default 28 digits are written unrounded.
    """
    if value is None:
        return ""
    with localcontext() as ctx:
        ctx.prec = exact_precision(value)
        if value == value.to_integral_value():
            return str(value.quantize(Decimal(1)))
        return format(value.normalize(), "f")


@dataclass(frozen=True)
class RunResult:
    """Outcome of one solver invocation for one case."""

    case_id: str
    status: RunStatus
    elapsed_seconds: float
    exit_code: int | None = None
    objective: Decimal | None = None
    feasible: bool | None = None
    stdout: str = ""
    stderr: str = ""
    message: str = ""
    evaluation: Evaluation | None = None


@dataclass(frozen=True)
class ReconciliationRecord:
    """One ledger row: a run compared with its baseline."""

    case_id: str
    artifact: str
    status: RunStatus
    objective: Decimal | None
    optimal: Decimal | None
    delta: Decimal | None
    classification: Classification
    elapsed_seconds: float

    def to_row(self) -> dict[str, str]:
        return {
            "case": self.case_id,
            "artifact": self.artifact,
            "status": self.status.value,
            "objective": format_number(self.objective),
            "optimal": format_number(self.optimal),
            "delta": format_number(self.delta),
            "classification": self.classification.value,
            "elapsed_seconds": f"{self.elapsed_seconds:.3f}",
        }


@dataclass
class BatchSummary:
    """Aggregates computed once the batch has finished."""

    total: int = 0
    counts: dict[Classification, int] = field(
        default_factory=lambda: {c: 0 for c in Classification}
    )
    worse_delta_sum: Decimal = Decimal(0)
    wall_clock_seconds: float = 0.0
    better_cases: list[str] = field(default_factory=list)
    failed_cases: list[str] = field(default_factory=list)
    load_errors: int = 0
    interrupted: bool = False

    @property
    def worse_delta_mean(self) -> Decimal | None:
        worse = self.counts[Classification.WORSE]
        if not worse:
            return None
        return self.worse_delta_sum / worse

    def to_dict(self) -> dict[str, Any]:
        mean = self.worse_delta_mean
        return {
            "total": self.total,
            "counts": {c.value: n for c, n in self.counts.items()},
            "worse_delta_sum": format_number(self.worse_delta_sum),
            "worse_delta_mean": None if mean is None else f"{mean:.3f}",
            "wall_clock_seconds": round(self.wall_clock_seconds, 3),
            "better_cases": list(self.better_cases),
            "failed_cases": list(self.failed_cases),
            "load_errors": self.load_errors,
            "interrupted": self.interrupted,
        }
