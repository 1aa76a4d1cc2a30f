"""Shared fixtures: fake synthesizer, in-memory stores, movable clock."""
from __future__ import annotations

from datetime import date
from typing import List, Optional, Tuple

import pytest

from tts_gate.core.config import Settings
from tts_gate.core.metrics import GateMetrics
from tts_gate.quota.daily import DailyQuotaStore
from tts_gate.quota.minute import MinuteQuotaTracker
from tts_gate.quota.storage import MemoryStorage
from tts_gate.services.orchestrator import GenerationOrchestrator
from tts_gate.synth.engine import AudioArtifact, BaseSynthesizer
from tts_gate.utils.audio import wav_bytes_from_pcm16


class FakeSynthesizer(BaseSynthesizer):
    """Records calls; returns 0.1 s of silence or raises fail_with."""
    name = "fake"

    def __init__(self, fail_with: Optional[BaseException] = None):
        super().__init__(Settings(raw={}))
        self.fail_with = fail_with
        self.calls: List[Tuple[str, str]] = []
        self.keys: List[str] = []

    def set_api_key(self, api_key: str) -> None:
        super().set_api_key(api_key)
        self.keys.append(self._api_key)

    def synthesize(self, text: str, voice: str) -> AudioArtifact:
        self.calls.append((text, voice))
        if self.fail_with is not None:
            raise self.fail_with
        wav = wav_bytes_from_pcm16(b"\x00\x00" * 2400, 24000)
        return AudioArtifact(
            wav_bytes=wav,
            sample_rate=24000,
            duration_seconds=0.1,
            voice_id=voice,
            provider_voice=voice,
        )


class MovableClock:
    """today() provider the test can advance."""

    def __init__(self, day: date = date(2025, 1, 15)):
        self.day = day

    def __call__(self) -> date:
        return self.day


@pytest.fixture
def fake_synth() -> FakeSynthesizer:
    return FakeSynthesizer()


@pytest.fixture
def storage() -> MemoryStorage:
    return MemoryStorage()


@pytest.fixture
def daily_store(storage) -> DailyQuotaStore:
    return DailyQuotaStore(storage)


@pytest.fixture
def minute_tracker() -> MinuteQuotaTracker:
    return MinuteQuotaTracker()


@pytest.fixture
def clock() -> MovableClock:
    return MovableClock()


@pytest.fixture
def gate_metrics() -> GateMetrics:
    return GateMetrics()


@pytest.fixture
def orchestrator(fake_synth, daily_store, minute_tracker, clock, gate_metrics) -> GenerationOrchestrator:
    return GenerationOrchestrator(
        synthesizer=fake_synth,
        daily_store=daily_store,
        minute_tracker=minute_tracker,
        today=clock,
        metrics=gate_metrics,
    )
