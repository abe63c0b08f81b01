"""Stop token helpers for graceful interruption and file-based cancellation."""

from __future__ import annotations

import logging
import signal
import threading
from pathlib import Path
from typing import Callable, Dict, List, Optional

logger = logging.getLogger(__name__)


class StopToken:
    """
    Lightweight cooperative stop controller.

    It can be tripped by signals (SIGINT/SIGTERM), by the presence of a stop
    file on disk, or programmatically. Consumers poll `should_stop()` between
    units of work; callbacks registered with `on_stop()` run once when the
    token trips so blocked work (running subprocesses) can be interrupted.
    """

    def __init__(
        self,
        stop_file: Optional[Path] = None,
        enable_signals: bool = True,
    ) -> None:
        self.stop_file = stop_file
        self._event = threading.Event()
        self._lock = threading.RLock()
        self._callbacks: List[Callable[[], None]] = []
        self._prev_handlers: Dict[int, Callable] = {}
        if enable_signals:
            self._install_signal_handlers()

    def _install_signal_handlers(self) -> None:
        """Capture SIGINT/SIGTERM and mark the token as stopped."""
        if threading.current_thread() is not threading.main_thread():
            return
        for sig in (signal.SIGINT, signal.SIGTERM):
            self._prev_handlers[sig] = signal.getsignal(sig)
            signal.signal(sig, self._handle_signal)

    def _handle_signal(self, signum: int, frame) -> None:
        logger.warning("Received signal %s, stopping batch", signal.Signals(signum).name)
        self.request_stop()

    def on_stop(self, callback: Callable[[], None]) -> None:
        """Register a callback; it runs immediately if the token already tripped."""
        with self._lock:
            if not self._event.is_set():
                self._callbacks.append(callback)
                return
        callback()

    def request_stop(self) -> None:
        """Mark the token as stopped and run callbacks once."""
        with self._lock:
            if self._event.is_set():
                return
            self._event.set()
            callbacks, self._callbacks = self._callbacks, []
        for callback in callbacks:
            try:
                callback()
            except Exception:
                logger.exception("Stop callback failed")

    def should_stop(self) -> bool:
        """Return True when stop was requested or the stop file exists."""
        if self._event.is_set():
            return True
        if self.stop_file and self.stop_file.exists():
            logger.warning("Stop file %s found, stopping batch", self.stop_file)
            self.request_stop()
            return True
        return False

    def restore(self) -> None:
        """Restore original signal handlers."""
        for sig, handler in self._prev_handlers.items():
            signal.signal(sig, handler)
        self._prev_handlers.clear()

    def __enter__(self) -> "StopToken":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.restore()
