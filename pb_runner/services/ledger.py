"""Append-only CSV ledger of reconciliation records."""

from __future__ import annotations

import csv
import logging
import os
import queue
import threading
from pathlib import Path
from typing import IO, Callable, Dict, List, Optional, Tuple

from pb_common.errors import LedgerError
from pb_runner.models.results import ReconciliationRecord

logger = logging.getLogger(__name__)

LEDGER_COLUMNS: Tuple[str, ...] = (
    "case",
    "artifact",
    "status",
    "objective",
    "optimal",
    "delta",
    "classification",
    "elapsed_seconds",
)
_HEADER_LINE = ",".join(LEDGER_COLUMNS)


def _read_header(path: Path) -> str:
    with path.open("r", encoding="utf-8", newline="") as handle:
        return handle.readline().strip()


def check_writable(path: Path) -> None:
    """Fail fast when the ledger cannot be appended to."""
    path = Path(path)
    if not path.parent.is_dir():
        raise LedgerError(
            f"Ledger directory does not exist: {path.parent}", context={"ledger": path}
        )
    if path.exists():
        if not path.is_file():
            raise LedgerError(f"Ledger path is not a file: {path}", context={"ledger": path})
        if not os.access(path, os.W_OK):
            raise LedgerError(f"Ledger is not writable: {path}", context={"ledger": path})
        try:
            header = _read_header(path)
        except (OSError, UnicodeDecodeError) as exc:
            raise LedgerError(
                f"Cannot read ledger {path}", context={"ledger": path}, cause=exc
            ) from exc
        if header and header != _HEADER_LINE:
            raise LedgerError(
                f"Ledger {path} has unexpected columns: {header}",
                context={"ledger": path, "expected": _HEADER_LINE},
            )
    elif not os.access(path.parent, os.W_OK):
        raise LedgerError(
            f"Ledger directory is not writable: {path.parent}", context={"ledger": path}
        )


class LedgerWriter:
    """Append rows to the ledger, one durable write per record.

    Existing content is never rewritten: the file is opened in append mode and
    the header is only emitted when the file is new or empty.
    """

    def __init__(self, path: Path) -> None:
        self.path = Path(path)
        self._handle: Optional[IO[str]] = None
        self._writer: Optional[csv.DictWriter] = None

    def open(self) -> "LedgerWriter":
        check_writable(self.path)
        try:
            needs_header = not self.path.exists() or self.path.stat().st_size == 0
            missing_newline = not needs_header and not self._ends_with_newline()
            self._handle = self.path.open("a", encoding="utf-8", newline="")
            if missing_newline:
                self._handle.write("\n")
            self._writer = csv.DictWriter(
                self._handle, fieldnames=list(LEDGER_COLUMNS), lineterminator="\n"
            )
            if needs_header:
                self._writer.writeheader()
                self._sync()
        except OSError as exc:
            raise LedgerError(
                f"Cannot open ledger {self.path}", context={"ledger": self.path}, cause=exc
            ) from exc
        return self

    def _ends_with_newline(self) -> bool:
        with self.path.open("rb") as handle:
            handle.seek(-1, os.SEEK_END)
            return handle.read(1) == b"\n"

    def _sync(self) -> None:
        assert self._handle is not None
        self._handle.flush()
        os.fsync(self._handle.fileno())

    def write(self, record: ReconciliationRecord) -> None:
        if self._writer is None:
            raise LedgerError("Ledger is not open", context={"ledger": self.path})
        try:
            self._writer.writerow(record.to_row())
            self._sync()
        except OSError as exc:
            raise LedgerError(
                f"Failed to append {record.case_id} to ledger {self.path}",
                context={"ledger": self.path, "case": record.case_id},
                cause=exc,
            ) from exc

    def close(self) -> None:
        if self._handle is not None:
            self._handle.close()
        self._handle = None
        self._writer = None

    def __enter__(self) -> "LedgerWriter":
        return self.open()

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()


_SENTINEL = object()


class OrderedLedgerWriter:
    """Single writer thread that persists records in submission order.

    Workers finish in any order; each calls ``submit(index, record)``. The
    thread keeps out-of-order completions in a buffer and writes whatever
    prefix of indices is complete. ``None`` marks a case that produced no row
    (cancelled) so later records are not held back behind it. On ``close``
    any remaining buffered records are written in index order.
    """

    def __init__(
        self,
        writer: LedgerWriter,
        on_error: Callable[[LedgerError], None] | None = None,
    ) -> None:
        self.writer = writer
        self.on_error = on_error
        self.written: List[ReconciliationRecord] = []
        self.error: LedgerError | None = None
        self._queue: queue.Queue = queue.Queue()
        self._pending: Dict[int, Optional[ReconciliationRecord]] = {}
        self._next_index = 0
        self._thread = threading.Thread(target=self._run, name="pb-ledger-writer", daemon=True)

    def start(self) -> "OrderedLedgerWriter":
        self._thread.start()
        return self

    def submit(self, index: int, record: ReconciliationRecord | None) -> None:
        self._queue.put((index, record))

    def close(self) -> None:
        """Drain the queue, write the remaining records and join the thread."""
        self._queue.put(_SENTINEL)
        self._thread.join()

    def _run(self) -> None:
        while True:
            item = self._queue.get()
            try:
                if item is _SENTINEL:
                    self._drain()
                    return
                index, record = item
                self._pending[index] = record
                self._flush_ready()
            finally:
                self._queue.task_done()

    def _flush_ready(self) -> None:
        while self._next_index in self._pending:
            self._write(self._pending.pop(self._next_index))
            self._next_index += 1

    def _drain(self) -> None:
        for index in sorted(self._pending):
            self._write(self._pending.pop(index))

    def _write(self, record: ReconciliationRecord | None) -> None:
        if record is None or self.error is not None:
            return
        try:
            self.writer.write(record)
        except Exception as exc:
            error = exc if isinstance(exc, LedgerError) else LedgerError(
                f"Cannot write ledger row for case {record.case_id}: {exc}",
                context={"case": record.case_id, "ledger": self.writer.path},
                cause=exc,
            )
            logger.error("%s", error)
            self.error = error
            if self.on_error is not None:
                self.on_error(error)
            return
        self.written.append(record)
