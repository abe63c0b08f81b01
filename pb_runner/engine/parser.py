"""Extract objective and feasibility from raw solver output."""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from decimal import Decimal

from pb_common.errors import ParseError
from pb_runner.engine.invoker import ProcessOutcome
from pb_runner.models.results import RunResult, RunStatus, parse_decimal
from pb_runner.models.solution import Evaluation, Solution

logger = logging.getLogger(__name__)

# Example result lines:
#   objective: 42
#   Objective = 1.5e3 feasible
#   result: 17 infeasible
RESULT_LINE = re.compile(
    r"^(?:objective|result)\s*[:=]\s*"
    r"(?P<value>[-+]?(?:\d+(?:\.\d*)?|\.\d+)(?:[eE][-+]?\d+)?)"
    r"(?:\s+(?P<flag>feasible|infeasible|valid|invalid))?$",
    re.IGNORECASE,
)
_FEASIBLE_FLAGS = {"feasible": True, "valid": True, "infeasible": False, "invalid": False}
_TAIL_CHARS = 500


@dataclass(frozen=True)
class ParsedOutput:
    objective: Decimal | None
    feasible: bool | None
    evaluation: Evaluation | None = None


def find_result_line(output: str) -> ParsedOutput | None:
    """Return the last recognized result line; every other line is noise."""
    parsed = None
    for raw in output.splitlines():
        match = RESULT_LINE.match(raw.strip())
        if not match:
            continue
        try:
            objective = parse_decimal(match.group("value"))
        except ValueError:
            continue
        flag = match.group("flag")
        feasible = _FEASIBLE_FLAGS[flag.lower()] if flag else None
        parsed = ParsedOutput(objective=objective, feasible=feasible)
    return parsed


def parse_output(output: str) -> ParsedOutput:
    """Parse solver stdout.

    A result line wins over a solution block. Raises ParseError when neither
    is present or the solution block is malformed.
    """
    parsed = find_result_line(output)
    if parsed is not None:
        return parsed

    solution = Solution.find(output)
    if solution is None:
        raise ParseError("No result line or solution block in solver output")
    evaluation = solution.evaluate()
    objective = Decimal(evaluation.area) if evaluation.area is not None else None
    return ParsedOutput(objective=objective, feasible=evaluation.feasible, evaluation=evaluation)


def _tail(text: str) -> str:
    text = text.strip()
    return text if len(text) <= _TAIL_CHARS else "..." + text[-_TAIL_CHARS:]


def build_run_result(case_id: str, outcome: ProcessOutcome) -> RunResult:
    """Classify a finished process into a RunResult."""
    common = dict(
        case_id=case_id,
        elapsed_seconds=outcome.elapsed_seconds,
        exit_code=outcome.exit_code,
        stdout=outcome.stdout,
        stderr=outcome.stderr,
    )
    if outcome.timed_out:
        return RunResult(
            status=RunStatus.TIMEOUT,
            message=f"timed out after {outcome.elapsed_seconds:g}s",
            **common,
        )
    if outcome.launch_error is not None:
        return RunResult(status=RunStatus.CRASH, message=outcome.launch_error, **common)
    if outcome.exit_code != 0:
        detail = _tail(outcome.stderr) or _tail(outcome.stdout)
        message = f"exit code {outcome.exit_code}"
        if detail:
            message += f": {detail}"
        return RunResult(status=RunStatus.CRASH, message=message, **common)

    try:
        parsed = parse_output(outcome.stdout)
    except ParseError as exc:
        logger.debug("Unparseable output for %s: %s", case_id, exc)
        return RunResult(status=RunStatus.PARSE_ERROR, message=str(exc), **common)

    if parsed.feasible is False:
        reason = parsed.evaluation.violation if parsed.evaluation else "solver reported infeasible"
        return RunResult(
            status=RunStatus.INFEASIBLE,
            objective=parsed.objective,
            feasible=False,
            message=reason or "infeasible",
            evaluation=parsed.evaluation,
            **common,
        )
    return RunResult(
        status=RunStatus.OK,
        objective=parsed.objective,
        feasible=parsed.feasible,
        message=parsed.evaluation.describe() if parsed.evaluation else "",
        evaluation=parsed.evaluation,
        **common,
    )
