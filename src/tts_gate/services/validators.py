"""
Input Validation for Generate Requests.

Rejects requests that could never succeed before the quota check runs,
so a typo in a voice id never shows up as a quota denial.

Validation Rules:
    - Voice: must be a catalog id (see synth/voices.py)
    - Target duration: optional, positive finite number of minutes

Empty text is not handled here; the admission guard reports it as
EMPTY_INPUT.

Error codes:
    - VOICE_UNKNOWN
    - TARGET_DURATION_INVALID
"""
from __future__ import annotations

import math
from typing import Optional

from tts_gate.core.logging import debug, get_logger
from tts_gate.synth.voices import VoiceOption, get_voice, voice_ids

_LOG = get_logger("tts-gate.validators")


class ValidationError(Exception):
    """
    Raised when a request field is invalid.

    Attributes:
        message: Human-readable error description.
        code: Machine-readable error code.
        field: Name of the offending field.
    """

    def __init__(self, message: str, code: str = "VALIDATION_ERROR", field: Optional[str] = None):
        self.message = message
        self.code = code
        self.field = field
        super().__init__(message)


def validate_voice_id(voice_id: str) -> VoiceOption:
    """
    Resolve a catalog voice id.

    Raises:
        ValidationError: If the id is not in the catalog.
    """
    voice = get_voice(voice_id)
    if voice is None:
        debug(_LOG, "voice_unknown", voice_id=voice_id)
        raise ValidationError(
            f"Unknown voice '{voice_id}'. Available: {', '.join(voice_ids())}",
            "VOICE_UNKNOWN",
            field="voice_id",
        )
    return voice


def validate_target_duration(minutes: Optional[float]) -> Optional[float]:
    """
    Validate the advisory target duration.

    Returns:
        The duration as float, or None if not given.

    Raises:
        ValidationError: If the value is not a positive finite number.
    """
    if minutes is None:
        return None
    try:
        value = float(minutes)
    except (TypeError, ValueError):
        raise ValidationError(
            "Target duration must be a number of minutes",
            "TARGET_DURATION_INVALID",
            field="target_duration_minutes",
        )
    if not math.isfinite(value) or value <= 0:
        raise ValidationError(
            f"Target duration must be positive, got {minutes}",
            "TARGET_DURATION_INVALID",
            field="target_duration_minutes",
        )
    return value
