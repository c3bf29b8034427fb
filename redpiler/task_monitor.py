"""Thread-safe progress and cancellation state for a compile task."""

from __future__ import annotations

import threading
from typing import Optional


class TaskMonitor:
    """Shared between a running compile and whoever watches or cancels it."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._cancelled = False
        self._progress = 0
        self._max_progress = 0
        self._message: Optional[str] = None

    def cancel(self) -> None:
        with self._lock:
            self._cancelled = True

    @property
    def cancelled(self) -> bool:
        with self._lock:
            return self._cancelled

    def inc_progress(self) -> None:
        with self._lock:
            self._progress += 1

    @property
    def progress(self) -> int:
        with self._lock:
            return self._progress

    @progress.setter
    def progress(self, value: int) -> None:
        with self._lock:
            self._progress = value

    @property
    def max_progress(self) -> int:
        with self._lock:
            return self._max_progress

    @max_progress.setter
    def max_progress(self, value: int) -> None:
        with self._lock:
            self._max_progress = value

    @property
    def message(self) -> Optional[str]:
        with self._lock:
            return self._message

    @message.setter
    def message(self, value: str) -> None:
        with self._lock:
            self._message = value