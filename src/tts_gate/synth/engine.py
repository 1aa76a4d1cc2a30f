"""
Synthesizer Base Class and Factory.

This module provides:
    - AudioArtifact: Playable result of one synthesis call
    - BaseSynthesizer: Interface every speech backend implements
    - get_synthesizer(): Factory returning the process-wide synthesizer

Engine Selection:
    The engine is chosen by TTS_GATE_ENGINE or settings.synth.engine:
        - gemini: Google Gemini TTS over the network (google-genai)
        - tone: Offline sine-tone generator for dry runs and tests

Implementing a New Engine:
    1. Create synth/<name>.py
    2. Inherit from BaseSynthesizer
    3. Implement synthesize() (and set_api_key() if it uses credentials)
    4. Register in _create_synthesizer()
"""
from __future__ import annotations

import base64
import threading
from dataclasses import dataclass
from typing import Optional

from tts_gate.core.config import Settings
from tts_gate.core.logging import get_logger, info
from tts_gate.utils.audio import wav_data_url


@dataclass(frozen=True)
class AudioArtifact:
    """
    Result of a successful synthesis.

    Attributes:
        wav_bytes: Complete WAV file (PCM-16 mono).
        sample_rate: Sample rate of the audio.
        duration_seconds: Playback length.
        voice_id: Catalog voice id the caller asked for.
        provider_voice: Voice name sent to the provider.
    """
    wav_bytes: bytes
    sample_rate: int
    duration_seconds: float
    voice_id: str
    provider_voice: str

    @property
    def base64_audio(self) -> str:
        return base64.b64encode(self.wav_bytes).decode("ascii")

    @property
    def data_url(self) -> str:
        return wav_data_url(self.wav_bytes)


class BaseSynthesizer:
    """
    Abstract speech backend.

    synthesize() may raise whatever the provider raises; the orchestrator
    classifies those errors, so subclasses should not wrap or translate
    provider exceptions.
    """
    name: str = "base"

    def __init__(self, settings: Settings):
        self.settings = settings
        self.logger = get_logger(f"tts-gate.synth.{self.name}")
        self._api_key: Optional[str] = None

    @property
    def has_api_key(self) -> bool:
        return bool(self._api_key)

    def set_api_key(self, api_key: str) -> None:
        """
        Replace the credential used for subsequent calls.

        Raises:
            ValueError: If the key is empty.
        """
        if not api_key or not api_key.strip():
            raise ValueError("api_key must be a non-empty string")
        self._api_key = api_key.strip()

    def synthesize(self, text: str, voice: str) -> AudioArtifact:
        """
        Turn text into audio with the given provider voice.

        Raises:
            NotImplementedError: If not overridden.
        """
        raise NotImplementedError


# =============================================================================
# Synthesizer Factory (Singleton Pattern)
# =============================================================================

_SYNTH: Optional[BaseSynthesizer] = None
_SYNTH_TYPE: Optional[str] = None
_SYNTH_LOCK = threading.Lock()


def _create_synthesizer(engine_type: str, settings: Settings) -> BaseSynthesizer:
    """
    Create a synthesizer instance.

    Imports are lazy so the tone engine never loads google-genai.

    Raises:
        ValueError: If engine_type is unknown.
    """
    if engine_type == "gemini":
        from tts_gate.synth.gemini import GeminiSynthesizer
        return GeminiSynthesizer(settings)

    if engine_type == "tone":
        from tts_gate.synth.tone import ToneSynthesizer
        return ToneSynthesizer(settings)

    raise ValueError(f"Unknown engine type: {engine_type}")


def get_synthesizer(settings: Settings) -> BaseSynthesizer:
    """
    Get or create the global synthesizer.

    If the configured engine type changes, a new synthesizer replaces
    the old one.
    """
    global _SYNTH
    global _SYNTH_TYPE

    engine_type = settings.engine_type

    if _SYNTH is None or _SYNTH_TYPE != engine_type:
        with _SYNTH_LOCK:
            if _SYNTH is None or _SYNTH_TYPE != engine_type:
                _SYNTH = _create_synthesizer(engine_type, settings)
                _SYNTH_TYPE = engine_type
                info(get_logger("tts-gate.synth"), "synthesizer_created", engine=engine_type)

    return _SYNTH


def reset_synthesizer() -> None:
    """Drop the global synthesizer (used by tests)."""
    global _SYNTH
    global _SYNTH_TYPE
    with _SYNTH_LOCK:
        _SYNTH = None
        _SYNTH_TYPE = None
