"""
Tests for the batch cancellation scope.
"""

import threading
import time

import pytest
from hypothesis import given, strategies as st

from cep_locality_crawler.concurrent.cancellation import CancellationToken
from cep_locality_crawler.utils.errors import (
    CrawlCancelledError,
    CrawlerError,
    DeadlineExceededError
)


class TestCancellationToken:
    """Deadline and explicit cancellation."""

    def test_fresh_token_is_not_cancelled(self):
        token = CancellationToken(10.0)

        assert not token.is_cancelled()
        assert token.reason is None
        token.raise_if_cancelled()

    def test_without_deadline(self):
        token = CancellationToken()

        assert token.remaining() is None
        assert token.clamp(123.0) == 123.0
        assert not token.deadline_passed()

    def test_first_reason_wins(self):
        token = CancellationToken(10.0)
        first = CrawlerError("first")

        assert token.cancel(first) is True
        assert token.cancel(CrawlerError("second")) is False
        assert token.reason is first

    def test_cancel_raises_cancelled_error_with_reason(self):
        token = CancellationToken(10.0)
        token.cancel(CrawlerError("boom"))

        with pytest.raises(CrawlCancelledError) as excinfo:
            token.raise_if_cancelled()

        assert "boom" in excinfo.value.details["reason"]

    def test_deadline_cancels_scope(self):
        token = CancellationToken(0.05)
        time.sleep(0.1)

        assert token.is_cancelled()
        assert token.remaining() == 0.0
        with pytest.raises(DeadlineExceededError):
            token.raise_if_cancelled()

    def test_deadline_reason_is_reported_as_deadline(self):
        token = CancellationToken(10.0)
        reason = DeadlineExceededError("deadline")
        token.cancel(reason)

        assert token.error() is reason

    @given(timeout=st.floats(min_value=1.0, max_value=100.0), wait=st.floats(min_value=0.0, max_value=200.0))
    def test_clamp_never_exceeds_remaining(self, timeout, wait):
        token = CancellationToken(timeout)

        clamped = token.clamp(wait)

        assert clamped <= wait
        assert clamped <= timeout

    def test_sleep_is_interrupted_by_cancel(self):
        token = CancellationToken(10.0)
        threading.Timer(0.1, token.cancel).start()

        started = time.monotonic()
        with pytest.raises(CrawlCancelledError):
            token.sleep(5.0)

        assert time.monotonic() - started < 2.0

    def test_sleep_stops_at_deadline(self):
        token = CancellationToken(0.1)

        started = time.monotonic()
        with pytest.raises(DeadlineExceededError):
            token.sleep(5.0)

        assert time.monotonic() - started < 2.0

    def test_sleep_zero_returns_immediately(self):
        token = CancellationToken(10.0)

        token.sleep(0.0)

        assert not token.is_cancelled()
