"""
Admission Guard.

Decides, before any network call, whether a generate request may go out.
Checks run in a fixed order and the first failure wins:

    1. EMPTY_INPUT          text is empty after stripping whitespace
    2. DAILY_LIMIT_REACHED  daily_count >= daily_limit
    3. MINUTE_LIMIT_REACHED minute_count >= minute_limit

Pure function of its arguments; nothing is read or written.
"""
from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Optional

from tts_gate.core.config import Defaults


class DenialReason(str, Enum):
    EMPTY_INPUT = "EMPTY_INPUT"
    DAILY_LIMIT_REACHED = "DAILY_LIMIT_REACHED"
    MINUTE_LIMIT_REACHED = "MINUTE_LIMIT_REACHED"


@dataclass(frozen=True)
class AdmissionVerdict:
    allowed: bool
    reason: Optional[DenialReason] = None

    @classmethod
    def allow(cls) -> "AdmissionVerdict":
        return cls(allowed=True)

    @classmethod
    def deny(cls, reason: DenialReason) -> "AdmissionVerdict":
        return cls(allowed=False, reason=reason)

    def __bool__(self) -> bool:
        return self.allowed


def check_admission(
    text: str,
    daily_count: int,
    minute_count: int,
    daily_limit: int = Defaults.QUOTA_DAILY_LIMIT,
    minute_limit: int = Defaults.QUOTA_MINUTE_LIMIT,
) -> AdmissionVerdict:
    """
    Evaluate a request against the input rule and both quota windows.

    Args:
        text: Request text.
        daily_count: Requests already counted for today.
        minute_count: Requests already counted in the current minute window.
        daily_limit: Daily cap.
        minute_limit: Minute cap.

    Returns:
        AdmissionVerdict, allowed or denied with the first failing reason.
    """
    if not (text or "").strip():
        return AdmissionVerdict.deny(DenialReason.EMPTY_INPUT)
    if daily_count >= daily_limit:
        return AdmissionVerdict.deny(DenialReason.DAILY_LIMIT_REACHED)
    if minute_count >= minute_limit:
        return AdmissionVerdict.deny(DenialReason.MINUTE_LIMIT_REACHED)
    return AdmissionVerdict.allow()
