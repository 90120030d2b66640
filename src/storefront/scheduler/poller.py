"""Background scheduler responsible for refreshing the catalog snapshot."""
from __future__ import annotations

import logging
import threading
from collections.abc import Callable

logger = logging.getLogger(__name__)


class PollingScheduler:
    """A lightweight scheduler for periodic refresh tasks."""

    def __init__(self, interval_seconds: float, task: Callable[[], None]) -> None:
        self._interval = interval_seconds
        self._task = task
        self._timer: threading.Timer | None = None
        self._lock = threading.Lock()
        self._running = False

    def start(self) -> None:
        """Start scheduling refresh runs."""

        with self._lock:
            if self._running:
                return
            self._running = True
            self._schedule_next()

    def stop(self) -> None:
        """Stop the scheduler."""

        with self._lock:
            self._running = False
            if self._timer is not None:
                self._timer.cancel()
                self._timer = None

    def _schedule_next(self) -> None:
        if not self._running:
            return
        self._timer = threading.Timer(self._interval, self._run_task)
        self._timer.daemon = True
        self._timer.start()

    def _run_task(self) -> None:
        try:
            logger.debug("Running scheduled refresh task")
            self._task()
        except Exception:
            logger.exception("Scheduled refresh task failed")
        finally:
            with self._lock:
                self._schedule_next()
