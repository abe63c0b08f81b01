"""Compare run results with known optima and aggregate the batch."""

from __future__ import annotations

import logging
from decimal import Decimal, localcontext
from typing import Iterable

from pb_runner.models.case import TestCase
from pb_runner.models.results import (
    BatchSummary,
    Classification,
    ObjectiveSense,
    ReconciliationRecord,
    RunResult,
    exact_difference,
    exact_precision,
    format_number,
)

logger = logging.getLogger(__name__)


def classify_objective(
    objective: Decimal,
    optimal: Decimal,
    sense: ObjectiveSense = ObjectiveSense.MINIMIZE,
) -> Classification:
    """Exact comparison; no tolerance is applied."""
    if objective == optimal:
        return Classification.MATCH
    improved = objective < optimal if sense is ObjectiveSense.MINIMIZE else objective > optimal
    return Classification.BETTER if improved else Classification.WORSE


def reconcile(
    result: RunResult,
    case: TestCase,
    artifact: str,
    sense: ObjectiveSense = ObjectiveSense.MINIMIZE,
) -> ReconciliationRecord:
    """Build the ledger record for one finished run.

    A failed run is classified ``failed`` even when the case has no baseline.
    ``delta`` is ``objective - optimal`` and is only set when both are known
    and the run succeeded.
    """
    optimal = case.known_optimal
    delta: Decimal | None = None
    if result.status.failed or result.objective is None:
        classification = Classification.FAILED
    elif optimal is None:
        classification = Classification.NO_BASELINE
    else:
        classification = classify_objective(result.objective, optimal, sense)
        delta = exact_difference(result.objective, optimal)

    if classification is Classification.BETTER:
        # A solver beating the recorded optimum means the baseline is suspect.
        logger.warning(
            "Case %s beat its known optimum: objective %s, optimal %s",
            case.case_id,
            format_number(result.objective),
            format_number(optimal),
        )

    return ReconciliationRecord(
        case_id=case.case_id,
        artifact=artifact,
        status=result.status,
        objective=result.objective,
        optimal=optimal,
        delta=delta,
        classification=classification,
        elapsed_seconds=result.elapsed_seconds,
    )


def summarize(
    records: Iterable[ReconciliationRecord],
    wall_clock_seconds: float = 0.0,
    load_errors: int = 0,
    interrupted: bool = False,
) -> BatchSummary:
    summary = BatchSummary(
        wall_clock_seconds=wall_clock_seconds,
        load_errors=load_errors,
        interrupted=interrupted,
    )
    for record in records:
        summary.total += 1
        summary.counts[record.classification] += 1
        if record.classification is Classification.WORSE and record.delta is not None:
            with localcontext() as ctx:
                ctx.prec = exact_precision(summary.worse_delta_sum, record.delta)
                summary.worse_delta_sum += record.delta
        elif record.classification is Classification.BETTER:
            summary.better_cases.append(record.case_id)
        elif record.classification is Classification.FAILED:
            summary.failed_cases.append(record.case_id)
    return summary
