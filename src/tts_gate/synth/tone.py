"""
Offline Tone Synthesizer.

Produces a soft sine tone instead of speech. Length grows with the
number of words (0.4 s per word, at least 0.5 s) and the pitch depends on
the provider voice, so different voices are audibly different.

Used for --dry-run style checks, demos without an API key, and tests.
"""
from __future__ import annotations

import zlib

import numpy as np

from tts_gate.core.config import Settings
from tts_gate.synth.engine import AudioArtifact, BaseSynthesizer
from tts_gate.utils.audio import wav_bytes_from_float32

SECONDS_PER_WORD = 0.4
MIN_SECONDS = 0.5
FADE_SECONDS = 0.02


class ToneSynthesizer(BaseSynthesizer):
    name = "tone"

    def __init__(self, settings: Settings):
        super().__init__(settings)
        self.sample_rate = settings.sample_rate

    def _frequency(self, voice: str) -> float:
        # Stable across runs, unlike hash()
        return 180.0 + float(zlib.crc32(voice.encode("utf-8")) % 160)

    def synthesize(self, text: str, voice: str) -> AudioArtifact:
        words = len(text.split())
        seconds = max(MIN_SECONDS, words * SECONDS_PER_WORD)
        n = int(seconds * self.sample_rate)

        t = np.arange(n, dtype=np.float32) / float(self.sample_rate)
        wave = 0.3 * np.sin(2.0 * np.pi * self._frequency(voice) * t)

        fade = min(int(FADE_SECONDS * self.sample_rate), n // 2)
        if fade > 0:
            ramp = np.linspace(0.0, 1.0, fade, dtype=np.float32)
            wave[:fade] *= ramp
            wave[-fade:] *= ramp[::-1]

        return AudioArtifact(
            wav_bytes=wav_bytes_from_float32(wave.astype(np.float32), self.sample_rate),
            sample_rate=self.sample_rate,
            duration_seconds=n / float(self.sample_rate),
            voice_id=voice,
            provider_voice=voice,
        )
