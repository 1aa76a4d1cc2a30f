"""
Gemini TTS Synthesizer.

Calls the Gemini speech model through the google-genai SDK and wraps
the returned audio in a WAV container.

Wire Format:
    The model answers with one inline audio part: headerless PCM-16
    little-endian mono, with a mime type like
    "audio/L16;codec=pcm;rate=24000". The rate from the mime type wins
    over settings.synth.sample_rate when present.

Errors:
    SDK errors (including 429 RESOURCE_EXHAUSTED) propagate unchanged so
    the orchestrator can classify them. A missing API key raises
    RuntimeError at call time, not at construction.

settings.yaml:
    synth:
      engine: gemini
      model: gemini-2.5-flash-preview-tts
      api_key_env: GEMINI_API_KEY
      sample_rate: 24000
      timeout_s: 60
"""
from __future__ import annotations

import re
import threading
from typing import Optional

from google import genai
from google.genai import types

from tts_gate.core.config import Defaults, Settings
from tts_gate.core.logging import debug, info
from tts_gate.synth.engine import AudioArtifact, BaseSynthesizer
from tts_gate.utils.audio import wav_bytes_from_pcm16, wav_duration_seconds
from tts_gate.utils.timeit import timeit

_RATE_RE = re.compile(r"rate=(\d+)")


def _speech_config(voice: str) -> types.SpeechConfig:
    return types.SpeechConfig(
        voice_config=types.VoiceConfig(
            prebuilt_voice_config=types.PrebuiltVoiceConfig(voice_name=voice)
        )
    )


def sample_rate_from_mime(mime_type: Optional[str], fallback: int) -> int:
    """Extract rate=N from an audio/L16 mime type."""
    if mime_type:
        m = _RATE_RE.search(mime_type)
        if m:
            return int(m.group(1))
    return fallback


class GeminiSynthesizer(BaseSynthesizer):
    """Google Gemini prebuilt-voice TTS."""

    name = "gemini"

    def __init__(self, settings: Settings):
        super().__init__(settings)
        synth = settings.raw.get("synth", {}) or {}
        self.model = str(synth.get("model", Defaults.SYNTH_MODEL))
        self.sample_rate = int(synth.get("sample_rate", Defaults.SYNTH_SAMPLE_RATE))
        self.timeout_s = float(synth.get("timeout_s", Defaults.SYNTH_TIMEOUT_S))
        self._client: Optional[genai.Client] = None
        self._client_lock = threading.Lock()

        api_key = settings.api_key()
        if api_key:
            self.set_api_key(api_key)

    def _build_client(self, api_key: str) -> genai.Client:
        return genai.Client(
            api_key=api_key,
            http_options=types.HttpOptions(timeout=int(self.timeout_s * 1000)),
        )

    def set_api_key(self, api_key: str) -> None:
        super().set_api_key(api_key)
        client = self._build_client(self._api_key)
        with self._client_lock:
            self._client = client
        info(self.logger, "gemini_client_ready", model=self.model)

    def _get_client(self) -> genai.Client:
        with self._client_lock:
            client = self._client
        if client is None:
            raise RuntimeError(
                "Gemini API key is not set. Export GEMINI_API_KEY or rotate in a key."
            )
        return client

    def synthesize(self, text: str, voice: str) -> AudioArtifact:
        client = self._get_client()
        config = types.GenerateContentConfig(
            response_modalities=["AUDIO"],
            speech_config=_speech_config(voice),
        )

        with timeit("gemini_generate") as t:
            response = client.models.generate_content(
                model=self.model,
                contents=text,
                config=config,
            )
        debug(self.logger, "gemini_response", seconds=t.seconds, voice=voice)

        try:
            blob = response.candidates[0].content.parts[0].inline_data
        except (AttributeError, IndexError, TypeError):
            blob = None
        if blob is None or not blob.data:
            raise RuntimeError("Gemini returned no audio data")

        sample_rate = sample_rate_from_mime(getattr(blob, "mime_type", None), self.sample_rate)
        wav = wav_bytes_from_pcm16(blob.data, sample_rate)
        return AudioArtifact(
            wav_bytes=wav,
            sample_rate=sample_rate,
            duration_seconds=wav_duration_seconds(wav),
            voice_id=voice,
            provider_voice=voice,
        )
