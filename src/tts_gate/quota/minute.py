"""
Minute Quota Tracker.

An in-memory counter paired with a countdown. The countdown is driven by
tick() once per second (see clock.Ticker) and restarts as soon as it
expires:

    (0, 60) -> tick -> (0, 59) ... (n, 1) -> tick -> (0, 60)

The window is anchored to when the previous window ended, not to
wall-clock minutes, and it does not slide. A burst of requests just
before a reset followed by another just after is therefore allowed.

The state is never persisted; a restarted process starts at (0, 60).
"""
from __future__ import annotations

import threading
from dataclasses import dataclass

from tts_gate.core.config import Defaults
from tts_gate.core.logging import get_logger, verbose

_LOG = get_logger("tts-gate.minute")


@dataclass(frozen=True)
class MinuteWindowState:
    """Consistent view of the minute window."""
    count: int
    seconds_until_reset: int


class MinuteQuotaTracker:
    """
    Counter of requests in the current minute window.

    count stays within [0, limit] and seconds_until_reset within
    [1, window_seconds]. All mutation happens under one lock, so a reader
    never sees a half-applied reset.
    """

    def __init__(
        self,
        limit: int = Defaults.QUOTA_MINUTE_LIMIT,
        window_seconds: int = Defaults.QUOTA_WINDOW_SECONDS,
    ):
        if limit <= 0:
            raise ValueError(f"limit must be positive, got {limit}")
        if window_seconds <= 0:
            raise ValueError(f"window_seconds must be positive, got {window_seconds}")
        self._limit = limit
        self._window = window_seconds
        self._count = 0
        self._seconds = window_seconds
        self._lock = threading.Lock()

    @property
    def limit(self) -> int:
        return self._limit

    @property
    def window_seconds(self) -> int:
        return self._window

    @property
    def count(self) -> int:
        with self._lock:
            return self._count

    @property
    def seconds_until_reset(self) -> int:
        with self._lock:
            return self._seconds

    @property
    def remaining(self) -> int:
        with self._lock:
            return self._limit - self._count

    @property
    def is_full(self) -> bool:
        with self._lock:
            return self._count >= self._limit

    def snapshot(self) -> MinuteWindowState:
        with self._lock:
            return MinuteWindowState(count=self._count, seconds_until_reset=self._seconds)

    def increment(self) -> int:
        """Record one request, saturating at the limit. Returns the new count."""
        with self._lock:
            if self._count < self._limit:
                self._count += 1
            return self._count

    def tick(self) -> MinuteWindowState:
        """
        Advance the countdown by one second.

        When the countdown would drop below 1, the count and countdown
        are reset together in this same tick.
        """
        with self._lock:
            if self._seconds <= 1:
                used = self._count
                self._count = 0
                self._seconds = self._window
                state = MinuteWindowState(count=0, seconds_until_reset=self._window)
            else:
                used = None
                self._seconds -= 1
                state = MinuteWindowState(count=self._count, seconds_until_reset=self._seconds)

        if used is not None:
            verbose(_LOG, "minute_window_reset", used=used, window_seconds=self._window)
        return state

    def reset(self) -> None:
        """Restore the initial state (0, window_seconds)."""
        with self._lock:
            self._count = 0
            self._seconds = self._window
