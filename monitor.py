import logging
from collections import Counter, deque
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Callable, Optional

logger = logging.getLogger("gresources.monitor")


@dataclass(frozen=True)
class StoreFailure:
    operation: str
    path: str
    error: str
    occurred_at: datetime

    def describe(self) -> str:
        return f"{self.operation} {self.path} ({self.error})"


class Monitor:
    def __init__(self, failure_threshold: int, window_seconds: int = 60, alert_handler: Optional[Callable[[str], None]] = None):
        """
        Watch resource store outcomes and alert when failures pile up.

        Args:
            failure_threshold: Store failures within the window that trigger an alert
            window_seconds: Length of the sliding window in seconds
            alert_handler: Receives the alert text. Defaults to a CRITICAL log record
        """
        if failure_threshold <= 0:
            raise ValueError("Failure threshold must be positive")
        if window_seconds <= 0:
            raise ValueError("Window seconds must be positive")

        self._failure_threshold = failure_threshold
        self._window = timedelta(seconds=window_seconds)
        self._alert_handler = alert_handler or logger.critical
        self._passes_by_operation = Counter()
        self._failures_by_operation = Counter()
        self._recent_failures = deque()

    def _expire(self) -> None:
        cutoff = datetime.now() - self._window
        while self._recent_failures and self._recent_failures[0].occurred_at < cutoff:
            self._recent_failures.popleft()

    def pass_(self, operation: str) -> None:
        """Record a store operation that completed without a storage error."""
        self._passes_by_operation[operation] += 1
        self._expire()

    def fail(self, operation: str, path: str, error: Exception) -> None:
        """Record a storage error; alert once the window holds ``failure_threshold`` of them."""
        failure = StoreFailure(operation, path, str(error), datetime.now())
        self._recent_failures.append(failure)
        self._failures_by_operation[operation] += 1
        self._expire()

        if len(self._recent_failures) == self._failure_threshold:
            affected = "; ".join(f.describe() for f in self._recent_failures)
            self._alert_handler(
                f"Alert: {self._failure_threshold} store failures within "
                f"{int(self._window.total_seconds())}s: {affected}"
            )

    @property
    def recent_failures(self) -> list:
        self._expire()
        return list(self._recent_failures)

    @property
    def stats(self) -> dict:
        """Counters per store operation plus the failures still inside the window."""
        self._expire()
        last = self._recent_failures[-1] if self._recent_failures else None
        return {
            'passes': dict(self._passes_by_operation),
            'failures': dict(self._failures_by_operation),
            'failures_in_window': len(self._recent_failures),
            'failing_paths': sorted({f.path for f in self._recent_failures}),
            'last_failure': last.describe() if last else None,
            'window_seconds': int(self._window.total_seconds()),
        }
