"""
Quota tracking for tts-gate.

    - storage.py: Key/value persistence (memory, JSON file)
    - daily.py: Per-date request counter
    - minute.py: Minute window counter + countdown
    - clock.py: Background heartbeat driving the countdown
    - admission.py: Pre-request admission verdict
"""
from .admission import AdmissionVerdict, DenialReason, check_admission
from .clock import Ticker
from .daily import DailyQuotaStore, date_key
from .minute import MinuteQuotaTracker, MinuteWindowState
from .storage import JsonFileStorage, KeyValueStorage, MemoryStorage, create_storage

__all__ = [
    "AdmissionVerdict",
    "DenialReason",
    "check_admission",
    "Ticker",
    "DailyQuotaStore",
    "date_key",
    "MinuteQuotaTracker",
    "MinuteWindowState",
    "KeyValueStorage",
    "MemoryStorage",
    "JsonFileStorage",
    "create_storage",
]
