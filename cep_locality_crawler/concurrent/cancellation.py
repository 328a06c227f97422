"""
Cancellation scope shared by every session of one crawl batch.
"""

import threading
import time
from typing import Optional

from cep_locality_crawler.utils.errors import (
    LocalityCrawlerError,
    CrawlCancelledError,
    DeadlineExceededError
)


class CancellationToken:
    """
    Batch-wide deadline plus an explicit cancel switch.

    Sessions only read the token. The orchestrator (or an external caller)
    cancels it; expiry of the deadline counts as cancellation too.
    """

    def __init__(self, timeout_seconds: Optional[float] = None):
        """
        Args:
            timeout_seconds: Seconds until the deadline, None for no deadline
        """
        self.timeout_seconds = timeout_seconds
        self._deadline = time.monotonic() + timeout_seconds if timeout_seconds is not None else None
        self._event = threading.Event()
        self._lock = threading.Lock()
        self._reason: Optional[BaseException] = None

    def cancel(self, reason: Optional[BaseException] = None) -> bool:
        """
        Cancel the scope. The first reason wins.

        Returns:
            True if this call performed the cancellation
        """
        with self._lock:
            if self._event.is_set():
                return False
            self._reason = reason
            self._event.set()
            return True

    @property
    def reason(self) -> Optional[BaseException]:
        return self._reason

    def deadline_passed(self) -> bool:
        return self._deadline is not None and time.monotonic() >= self._deadline

    def is_cancelled(self) -> bool:
        return self._event.is_set() or self.deadline_passed()

    def remaining(self) -> Optional[float]:
        """Seconds left before the deadline, None if there is no deadline."""
        if self._deadline is None:
            return None
        return max(0.0, self._deadline - time.monotonic())

    def clamp(self, seconds: float) -> float:
        """Limit a wait to the time left before the deadline."""
        remaining = self.remaining()
        if remaining is None:
            return seconds
        return min(seconds, remaining)

    def error(self) -> LocalityCrawlerError:
        """Exception describing why the scope is cancelled."""
        if isinstance(self._reason, DeadlineExceededError):
            return self._reason
        if not self._event.is_set() and self.deadline_passed():
            return DeadlineExceededError(
                f"Crawl deadline of {self.timeout_seconds}s exceeded",
                {"deadline_seconds": self.timeout_seconds}
            )
        details = {}
        if self._reason is not None:
            details["reason"] = f"{type(self._reason).__name__}: {self._reason}"
        return CrawlCancelledError("Crawl batch cancelled", details)

    def raise_if_cancelled(self) -> None:
        if self.is_cancelled():
            raise self.error()

    def sleep(self, seconds: float) -> None:
        """
        Wait for the given time unless the scope is cancelled first.

        Raises:
            DeadlineExceededError: If the deadline elapses during the wait
            CrawlCancelledError: If the scope is cancelled during the wait
        """
        self.raise_if_cancelled()
        self._event.wait(self.clamp(seconds))
        self.raise_if_cancelled()
