"""
security/rate_limiter.py
-------------------------
Rate limiting to prevent API abuse.
Limits the number of messages a sender can send within a time window.
"""

import threading
import time
from collections import defaultdict
from typing import Callable

from utils.logger import get_logger

logger = get_logger(__name__)


class RateLimiter:
    """
    Sliding-window limiter keyed by sender. Safe to share between threads.

    Args:
        max_messages: Max messages per window.
        window_seconds: Window duration in seconds.
        clock: Time source, in seconds.
    """

    def __init__(self, max_messages: int, window_seconds: int, clock: Callable[[], float] = time.time):
        self.max_messages = max_messages
        self.window_seconds = window_seconds
        self.clock = clock
        # {sender: [timestamp1, timestamp2, ...]}
        self._timestamps: dict[str, list[float]] = defaultdict(list)
        self._lock = threading.Lock()

    def _cleanup(self, now: float) -> None:
        """Drop expired timestamps, and senders left with none. Caller holds the lock."""
        cutoff = now - self.window_seconds
        for key in list(self._timestamps):
            recent = [t for t in self._timestamps[key] if t > cutoff]
            if recent:
                self._timestamps[key] = recent
            else:
                del self._timestamps[key]

    def allow(self, key: str) -> bool:
        """
        Record one message from `key` if it fits in the window.

        Returns:
            False when the sender is over the limit (the message is not recorded).
        """
        with self._lock:
            now = self.clock()
            self._cleanup(now)
            if len(self._timestamps[key]) >= self.max_messages:
                logger.warning(f"Rate limit hit for sender {key}")
                return False
            self._timestamps[key].append(now)
            return True

    def tracked_senders(self) -> int:
        """Number of senders currently tracked."""
        with self._lock:
            return len(self._timestamps)
