"""Tests for the append-only CSV ledger."""

from __future__ import annotations

import csv
from decimal import Decimal
from pathlib import Path

import pytest

from pb_common.errors import LedgerError
from pb_runner.models.results import (
    Classification,
    ReconciliationRecord,
    RunStatus,
    exact_difference,
    format_number,
)
from pb_runner.services.ledger import (
    LEDGER_COLUMNS,
    LedgerWriter,
    OrderedLedgerWriter,
    check_writable,
)


pytestmark = pytest.mark.unit_runner

HEADER = ",".join(LEDGER_COLUMNS) + "\n"


def _record(case_id: str, objective: Decimal | None = Decimal(45)) -> ReconciliationRecord:
    return ReconciliationRecord(
        case_id=case_id,
        artifact="solver.jar",
        status=RunStatus.OK,
        objective=objective,
        optimal=Decimal(42),
        delta=None if objective is None else exact_difference(objective, Decimal(42)),
        classification=Classification.WORSE,
        elapsed_seconds=1.5,
    )


def test_new_ledger_gets_header_and_rows(tmp_path: Path) -> None:
    path = tmp_path / "ledger.csv"
    with LedgerWriter(path) as writer:
        writer.write(_record("a"))
    assert path.read_text() == HEADER + "a,solver.jar,ok,45,42,3,worse,1.500\n"


def test_append_preserves_prior_rows(tmp_path: Path) -> None:
    path = tmp_path / "ledger.csv"
    with LedgerWriter(path) as writer:
        writer.write(_record("a"))
    before = path.read_text()
    with LedgerWriter(path) as writer:
        writer.write(_record("b"))
    after = path.read_text()
    assert after.startswith(before)
    assert after.count(HEADER) == 1
    rows = list(csv.DictReader(path.open()))
    assert [row["case"] for row in rows] == ["a", "b"]


def test_empty_file_gets_header(tmp_path: Path) -> None:
    path = tmp_path / "ledger.csv"
    path.write_text("")
    with LedgerWriter(path) as writer:
        writer.write(_record("a"))
    assert path.read_text().startswith(HEADER)


def test_missing_trailing_newline_is_repaired(tmp_path: Path) -> None:
    path = tmp_path / "ledger.csv"
    path.write_text(HEADER + "a,solver.jar,ok,45,42,3,worse,1.500")
    with LedgerWriter(path) as writer:
        writer.write(_record("b"))
    assert path.read_text().splitlines()[-1].startswith("b,")
    assert len(path.read_text().splitlines()) == 3


def test_fractional_values_are_written_canonically(tmp_path: Path) -> None:
    path = tmp_path / "ledger.csv"
    with LedgerWriter(path) as writer:
        writer.write(_record("a", Decimal("42.50")))
    row = path.read_text().splitlines()[1]
    assert row == "a,solver.jar,ok,42.5,42,0.5,worse,1.500"


def test_check_writable_rejects_foreign_csv(tmp_path: Path) -> None:
    path = tmp_path / "other.csv"
    path.write_text("name,value\n")
    with pytest.raises(LedgerError, match="unexpected columns"):
        check_writable(path)


def test_check_writable_rejects_missing_directory(tmp_path: Path) -> None:
    with pytest.raises(LedgerError, match="does not exist"):
        check_writable(tmp_path / "nope" / "ledger.csv")


def test_ordered_writer_restores_submission_order(tmp_path: Path) -> None:
    path = tmp_path / "ledger.csv"
    with LedgerWriter(path) as writer:
        ordered = OrderedLedgerWriter(writer).start()
        ordered.submit(2, _record("c"))
        ordered.submit(0, _record("a"))
        ordered.submit(1, _record("b"))
        ordered.close()
    rows = list(csv.DictReader(path.open()))
    assert [row["case"] for row in rows] == ["a", "b", "c"]
    assert [record.case_id for record in ordered.written] == ["a", "b", "c"]


def test_ordered_writer_skips_gaps_on_close(tmp_path: Path) -> None:
    path = tmp_path / "ledger.csv"
    with LedgerWriter(path) as writer:
        ordered = OrderedLedgerWriter(writer).start()
        ordered.submit(0, _record("a"))
        ordered.submit(1, None)
        ordered.submit(3, _record("d"))
        ordered.close()
    rows = list(csv.DictReader(path.open()))
    assert [row["case"] for row in rows] == ["a", "d"]


class _BrokenWriter:
    def write(self, record: ReconciliationRecord) -> None:
        raise LedgerError("disk full")


def test_ordered_writer_reports_failures() -> None:
    seen: list[LedgerError] = []
    ordered = OrderedLedgerWriter(_BrokenWriter(), on_error=seen.append).start()
    ordered.submit(0, _record("a"))
    ordered.submit(1, _record("b"))
    ordered.close()
    assert ordered.written == []
    assert isinstance(ordered.error, LedgerError)
    assert len(seen) == 1


class _ExplodingWriter:
    path = Path("ledger.csv")

    def write(self, record: ReconciliationRecord) -> None:
        raise ValueError("row cannot be rendered")


def test_unexpected_write_errors_become_ledger_errors() -> None:
    seen: list[LedgerError] = []
    ordered = OrderedLedgerWriter(_ExplodingWriter(), on_error=seen.append).start()
    ordered.submit(0, _record("a"))
    ordered.submit(1, _record("b"))
    ordered.close()
    assert ordered.written == []
    assert isinstance(ordered.error, LedgerError)
    assert "case a" in str(ordered.error)
    assert isinstance(ordered.error.__cause__, ValueError)
    assert seen == [ordered.error]


@pytest.mark.parametrize(
    "value, expected",
    [
        ("12345678901234567890123456789", "12345678901234567890123456789"),
        ("1e30", "1" + "0" * 30),
        ("42.000", "42"),
        ("1.234567890123456789012345678901", "1.234567890123456789012345678901"),
    ],
)
def test_format_number_keeps_every_digit(value: str, expected: str) -> None:
    assert format_number(Decimal(value)) == expected


def test_long_objectives_are_written(tmp_path: Path) -> None:
    ledger = tmp_path / "ledger.csv"
    objective = Decimal("12345678901234567890123456789")
    with LedgerWriter(ledger) as writer:
        writer.write(_record("a.txt", objective))
    row = next(csv.DictReader(ledger.read_text().splitlines()))
    assert row["objective"] == "12345678901234567890123456789"
    assert row["delta"] == "12345678901234567890123456747"
