"""Summary rendering helpers."""

from __future__ import annotations

from typing import List

from pb_runner.models.results import BatchSummary, Classification, format_number


def summary_rows(summary: BatchSummary) -> List[List[str]]:
    rows = [[c.value, str(summary.counts[c])] for c in Classification]
    rows.append(["total", str(summary.total)])
    return rows


def summary_details(summary: BatchSummary) -> List[str]:
    lines: List[str] = []
    mean = summary.worse_delta_mean
    if mean is not None:
        lines.append(
            f"Worse delta: sum {format_number(summary.worse_delta_sum)}, mean {mean:.3f}"
        )
    lines.append(f"Wall clock: {summary.wall_clock_seconds:.3f}s")
    if summary.load_errors:
        lines.append(f"Load errors: {summary.load_errors}")
    if summary.better_cases:
        lines.append("Better than known optimum: " + ", ".join(summary.better_cases))
    if summary.failed_cases:
        lines.append("Failed: " + ", ".join(summary.failed_cases))
    return lines
