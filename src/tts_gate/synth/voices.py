"""
Voice Catalog.

Catalog ids are what callers send; provider_voice is the Gemini prebuilt
voice name actually requested. Two catalog entries may share a provider
voice (both male presets use Charon).
"""
from __future__ import annotations

from dataclasses import asdict, dataclass
from typing import Dict, List, Optional

from tts_gate.core.config import Defaults


@dataclass(frozen=True)
class VoiceOption:
    id: str
    name: str
    gender: str
    description: str
    provider_voice: str

    def to_dict(self) -> Dict[str, str]:
        return asdict(self)


VOICES: List[VoiceOption] = [
    VoiceOption(
        id="Aoede",
        name="Aoede",
        gender="Female",
        description="Experienced, professional, and confident.",
        provider_voice="Aoede",
    ),
    VoiceOption(
        id="Kore",
        name="Kore",
        gender="Female",
        description="Calm, reassuring, and soothing.",
        provider_voice="Kore",
    ),
    VoiceOption(
        id="Male_7",
        name="Charles (Formal)",
        gender="Male",
        description="Formal, precise, business-oriented.",
        provider_voice="Charon",
    ),
    VoiceOption(
        id="Male_10",
        name="Chris (Calm)",
        gender="Male",
        description="Steady, low-pitch, relaxing.",
        provider_voice="Charon",
    ),
]

_BY_ID: Dict[str, VoiceOption] = {v.id: v for v in VOICES}


def get_voice(voice_id: str) -> Optional[VoiceOption]:
    """Look up a catalog voice by id (case-sensitive)."""
    return _BY_ID.get(voice_id)


def default_voice_id(preferred: str = Defaults.SYNTH_DEFAULT_VOICE) -> str:
    """Return the preferred voice id if cataloged, else the first entry."""
    if preferred in _BY_ID:
        return preferred
    return VOICES[0].id


def voice_ids() -> List[str]:
    return [v.id for v in VOICES]
