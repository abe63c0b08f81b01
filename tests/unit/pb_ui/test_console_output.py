"""Tests for progress and summary rendering."""

from __future__ import annotations

import io
from decimal import Decimal

import pytest

from pb_runner.models.events import CaseEvent
from pb_runner.models.results import (
    BatchSummary,
    Classification,
    ReconciliationRecord,
    RunStatus,
)
from pb_ui.presenters.progress import case_line, case_style
from pb_ui.presenters.summary import summary_details, summary_rows
from pb_ui.ui.console import ConsoleUIAdapter


pytestmark = pytest.mark.unit_ui


def _record(classification: Classification, status: RunStatus = RunStatus.OK) -> ReconciliationRecord:
    failed = classification is Classification.FAILED
    return ReconciliationRecord(
        case_id="case07.txt",
        artifact="solver.jar",
        status=status,
        objective=None if failed else Decimal(45),
        optimal=Decimal(42),
        delta=None if failed else Decimal(3),
        classification=classification,
        elapsed_seconds=1.23456,
    )


def test_case_line_for_success() -> None:
    event = CaseEvent(index=3, total=12, record=_record(Classification.WORSE))
    assert case_line(event) == "[ 3/12] case07.txt worse objective=45 optimal=42 delta=3 1.235s"
    assert case_style(event) == "case.worse"


def test_case_line_for_failure() -> None:
    event = CaseEvent(
        index=1,
        total=1,
        record=_record(Classification.FAILED, RunStatus.TIMEOUT),
        message="timed out after 300s",
        rerun_command="grep -v '^bounding box:' c | java -jar s.jar",
    )
    assert case_line(event) == "[1/1] case07.txt FAILED timeout (timed out after 300s) 1.235s"
    assert case_style(event) == "case.failed"


def test_console_prints_rerun_command() -> None:
    stream = io.StringIO()
    event = CaseEvent(
        index=1,
        total=1,
        record=_record(Classification.FAILED, RunStatus.CRASH),
        rerun_command="grep -v '^bounding box:' c | java -jar s.jar",
    )
    ConsoleUIAdapter(stream).show_case(event)
    output = stream.getvalue()
    assert "FAILED crash" in output
    assert "rerun: grep -v '^bounding box:' c | java -jar s.jar" in output


def test_summary_rendering() -> None:
    summary = BatchSummary(total=3, wall_clock_seconds=2.0, load_errors=1)
    summary.counts[Classification.WORSE] = 2
    summary.counts[Classification.FAILED] = 1
    summary.worse_delta_sum = Decimal(5)
    summary.failed_cases = ["x"]

    rows = summary_rows(summary)
    assert ["worse", "2"] in rows
    assert rows[-1] == ["total", "3"]
    details = summary_details(summary)
    assert "Worse delta: sum 5, mean 2.500" in details
    assert "Load errors: 1" in details
    assert "Failed: x" in details

    stream = io.StringIO()
    ConsoleUIAdapter(stream).show_summary(summary)
    assert "Batch summary" in stream.getvalue()
