"""
Thread-safe counters used to track browser usage across worker threads.
"""

import threading


class ThreadSafeCounter:
    """Thread-safe counter with atomic operations."""

    def __init__(self, initial_value: int = 0):
        """
        Initialize counter with initial value.

        Args:
            initial_value: Starting value for the counter
        """
        self._value = initial_value
        self._lock = threading.Lock()

    def increment(self, amount: int = 1) -> int:
        """
        Atomically increment counter and return new value.

        Args:
            amount: Amount to increment by (default: 1)

        Returns:
            New counter value after increment
        """
        with self._lock:
            self._value += amount
            return self._value

    def decrement(self, amount: int = 1) -> int:
        """
        Atomically decrement counter and return new value.

        Args:
            amount: Amount to decrement by (default: 1)

        Returns:
            New counter value after decrement
        """
        with self._lock:
            self._value -= amount
            return self._value

    def get_value(self) -> int:
        with self._lock:
            return self._value

    def reset(self) -> int:
        """
        Reset counter to zero and return previous value.
        """
        with self._lock:
            old_value = self._value
            self._value = 0
            return old_value

    def __repr__(self) -> str:
        return f"ThreadSafeCounter(value={self.get_value()})"


class ThreadSafeGauge(ThreadSafeCounter):
    """Counter that also remembers the highest value it reached."""

    def __init__(self, initial_value: int = 0):
        super().__init__(initial_value)
        self._peak = initial_value

    def increment(self, amount: int = 1) -> int:
        with self._lock:
            self._value += amount
            self._peak = max(self._peak, self._value)
            return self._value

    def get_peak(self) -> int:
        with self._lock:
            return self._peak

    def __repr__(self) -> str:
        return f"ThreadSafeGauge(value={self.get_value()}, peak={self.get_peak()})"
