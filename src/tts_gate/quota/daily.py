"""
Daily Quota Store.

Counts successful generations per local calendar date. Each date has its
own record under "<prefix><YYYY-MM-DD>", stored as a decimal string:

    gemini_tts_usage_2025-01-15 -> "12"

The store never decides what "today" is. Callers pass the date key each
time, so a process that stays up across midnight starts reading the new
day's record (0) without any rollover job. Past days are left in place.
"""
from __future__ import annotations

import threading
from datetime import date

from tts_gate.core.config import Defaults
from tts_gate.core.logging import debug, get_logger, warn

from .storage import KeyValueStorage

_LOG = get_logger("tts-gate.daily")


def date_key(day: date) -> str:
    """Format a calendar date as its record key suffix (ISO YYYY-MM-DD)."""
    return day.isoformat()


class DailyQuotaStore:
    """
    Per-date request counter over a KeyValueStorage.

    Reading an unseen date returns 0 and does not create a record; the
    record appears on the first increment().
    """

    def __init__(self, storage: KeyValueStorage, key_prefix: str = Defaults.STORAGE_KEY_PREFIX):
        self._storage = storage
        self._prefix = key_prefix
        self._lock = threading.Lock()

    @property
    def storage(self) -> KeyValueStorage:
        return self._storage

    def storage_key(self, day_key: str) -> str:
        return f"{self._prefix}{day_key}"

    def _read(self, day_key: str) -> int:
        raw = self._storage.read(self.storage_key(day_key))
        if raw is None:
            return 0
        try:
            value = int(raw)
        except (TypeError, ValueError):
            warn(_LOG, "daily_record_corrupt", key=self.storage_key(day_key), value=raw)
            return 0
        return max(value, 0)

    def get(self, day_key: str) -> int:
        """Return the count for a date key (0 if never recorded)."""
        with self._lock:
            return self._read(day_key)

    def increment(self, day_key: str) -> int:
        """Add one request to a date's record and return the new count."""
        with self._lock:
            count = self._read(day_key) + 1
            self._storage.write(self.storage_key(day_key), str(count))
        debug(_LOG, "daily_incremented", date_key=day_key, count=count)
        return count

    def clear(self, day_key: str) -> None:
        """Delete a date's record so it reads 0 again."""
        with self._lock:
            self._storage.delete(self.storage_key(day_key))
        debug(_LOG, "daily_cleared", date_key=day_key)
