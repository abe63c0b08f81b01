"""Helpers for emitting per-case progress events."""

from __future__ import annotations

import logging
import threading
import time
from typing import Callable

from pb_runner.models.events import CaseEvent
from pb_runner.models.results import ReconciliationRecord

logger = logging.getLogger(__name__)


class RunProgressEmitter:
    """Forward case events to a callback, one at a time.

    Workers complete concurrently; the lock keeps progress lines whole.
    """

    def __init__(self, total: int, callback: Callable[[CaseEvent], None] | None = None) -> None:
        self.total = total
        self._callback = callback
        self._lock = threading.Lock()
        self._completed = 0

    @property
    def completed(self) -> int:
        return self._completed

    def emit(
        self,
        record: ReconciliationRecord,
        message: str = "",
        rerun_command: str = "",
    ) -> None:
        with self._lock:
            self._completed += 1
            event = CaseEvent(
                index=self._completed,
                total=self.total,
                record=record,
                message=message,
                rerun_command=rerun_command,
                timestamp=time.time(),
            )
            if self._callback is None:
                return
            try:
                self._callback(event)
            except Exception as exc:
                logger.debug("Progress callback failed: %s", exc)
