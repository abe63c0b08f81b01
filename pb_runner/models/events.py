"""Structured events for per-case progress reporting."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from pb_runner.models.results import ReconciliationRecord


@dataclass(frozen=True)
class CaseEvent:
    """Emitted once per case as soon as its record is known."""

    index: int
    total: int
    record: ReconciliationRecord
    message: str = ""
    rerun_command: str = ""
    timestamp: float = 0.0

    @property
    def failed(self) -> bool:
        return self.record.status.failed

    def to_dict(self) -> dict[str, Any]:
        data = self.record.to_row()
        data.update(
            index=self.index,
            total=self.total,
            message=self.message,
            rerun_command=self.rerun_command,
            timestamp=self.timestamp,
        )
        return data
