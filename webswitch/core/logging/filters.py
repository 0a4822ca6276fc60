# webswitch/core/logging/filters.py
from __future__ import annotations
import logging
import threading
import time
from collections import defaultdict, deque

__all__ = ["RecurringSuppressFilter"]

# Upper bound for normalized message keys
MAX_KEY_LEN = 512



class RecurringSuppressFilter(logging.Filter):
    """
    Suppresses identical log messages after `maxPerWindow` occurrences within a
    sliding `windowSeconds`. When the window slides and the message is let through
    again, a single summary line reports how many copies were dropped.

    Key = (logger name, levelno, whitespace-squashed message)
    Keys with nothing inside the window are dropped by a sweep that runs at most
    once per window, along with any summary still pending for them.

    Useful when the same status poll (e.g. hashing a missing content folder)
    would otherwise flood the log.
    """
    def __init__(
            self,
            *,
            windowSeconds: int = 60,
            maxPerWindow: int = 5,
            summaryLevel: int = logging.INFO,
    ):
        super().__init__()
        self.windowSeconds = max(1, int(windowSeconds))
        self.maxPerWindow = max(1, int(maxPerWindow))
        self.summaryLevel = int(summaryLevel)

        self._buckets: dict[tuple[str, int, str], deque[float]] = defaultdict(deque)
        self._suppressedCounts: dict[tuple[str, int, str], int] = defaultdict(int)
        self._lock = threading.Lock()
        self._lastSweep = time.monotonic()

    def _keyOf(self, record: logging.LogRecord) -> tuple[str, int, str]:
        norm = " ".join(record.getMessage().split())
        if len(norm) > MAX_KEY_LEN:
            norm = norm[:MAX_KEY_LEN] + "..."
        return (record.name, record.levelno, norm)

    def _emitSummary(self, key: tuple[str, int, str]) -> None:
        suppressedCount = self._suppressedCounts.pop(key, 0)
        if suppressedCount <= 0:
            return
        loggerName, _levelno, normMessage = key
        logging.getLogger(loggerName).log(
            self.summaryLevel,
            "Suppressed %d repeated logs: %s",
            suppressedCount,
            normMessage,
            extra={"_noRecurringSuppress": True},
        )

    def _evictStale(self, now: float) -> None:
        """Drops keys with no occurrence inside the window. Caller holds the lock."""
        limit = now - self.windowSeconds
        staleKeys = [key for key, dq in self._buckets.items() if not dq or dq[-1] < limit]
        for key in staleKeys:
            del self._buckets[key]
            self._suppressedCounts.pop(key, None)
        self._lastSweep = now

    def filter(self, record: logging.LogRecord) -> bool:
        # Summaries always pass
        if getattr(record, "_noRecurringSuppress", False):
            return True

        now = time.monotonic()
        key = self._keyOf(record)
        emitSummary = False

        with self._lock:
            if now - self._lastSweep >= self.windowSeconds:
                self._evictStale(now)

            dq = self._buckets[key]
            limit = now - self.windowSeconds
            while dq and dq[0] < limit:
                dq.popleft()

            dq.append(now)
            if len(dq) > self.maxPerWindow:
                self._suppressedCounts[key] += 1
                return False
            emitSummary = self._suppressedCounts.get(key, 0) > 0

        # Emitted outside the lock, the summary record re-enters this filter
        if emitSummary:
            self._emitSummary(key)
        return True
