"""Per-case progress line formatting."""

from __future__ import annotations

from pb_runner.models.events import CaseEvent
from pb_runner.models.results import Classification, format_number

_STYLES = {
    Classification.MATCH: "case.match",
    Classification.BETTER: "case.better",
    Classification.WORSE: "case.worse",
    Classification.NO_BASELINE: "case.unknown",
    Classification.FAILED: "case.failed",
}


def case_style(event: CaseEvent) -> str:
    return _STYLES[event.record.classification]


def case_line(event: CaseEvent) -> str:
    record = event.record
    width = len(str(event.total))
    prefix = f"[{event.index:>{width}}/{event.total}] {record.case_id}"
    elapsed = f"{record.elapsed_seconds:.3f}s"
    if record.classification is Classification.FAILED:
        detail = f" ({event.message})" if event.message else ""
        return f"{prefix} FAILED {record.status.value}{detail} {elapsed}"

    parts = [prefix, record.classification.value, f"objective={format_number(record.objective)}"]
    if record.optimal is not None:
        parts.append(f"optimal={format_number(record.optimal)}")
    if record.delta is not None:
        parts.append(f"delta={format_number(record.delta)}")
    parts.append(elapsed)
    return " ".join(parts)
