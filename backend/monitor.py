"""
Background error-volume monitor.

Checks the number of ERROR events in a recent lookback on a fixed interval
and logs an alert above the threshold. Runs on its own daemon thread and
never blocks request serving; a failed check is logged and the loop goes on.
"""

from __future__ import annotations

import logging
import threading
from datetime import timedelta
from typing import Optional

from src.core.config import MonitorConfig, config
from src.data.normalizers import ERROR
from src.store.adapter import LogStore

logger = logging.getLogger("backend.monitor")


class ErrorRateMonitor:
    def __init__(self, store: LogStore, settings: Optional[MonitorConfig] = None) -> None:
        self.store = store
        self.settings = settings or config.monitor
        self._stop = threading.Event()
        self._thread: Optional[threading.Thread] = None

    def check_once(self) -> Optional[int]:
        """
        Run one check.

        Returns:
            The error count, or None when the store query failed.
        """
        lookback = timedelta(minutes=self.settings.lookback_minutes)
        try:
            errors = self.store.count_since(ERROR, lookback)
        except Exception as exc:
            logger.error("Error checking error rate: %s", exc)
            return None

        if errors > self.settings.error_threshold:
            logger.warning(
                "ALERT: High error rate detected! %d errors in last %d minutes",
                errors, self.settings.lookback_minutes,
            )
        return errors

    def run(self) -> None:
        logger.info("Error monitor started (interval=%ss)", self.settings.interval_seconds)
        while not self._stop.wait(self.settings.interval_seconds):
            self.check_once()
        logger.info("Error monitor stopped")

    def start(self) -> threading.Thread:
        if self._thread is not None and self._thread.is_alive():
            return self._thread
        self._stop.clear()
        self._thread = threading.Thread(target=self.run, name="error-monitor", daemon=True)
        self._thread.start()
        return self._thread

    def stop(self, timeout: Optional[float] = None) -> None:
        self._stop.set()
        if self._thread is not None:
            self._thread.join(timeout)
