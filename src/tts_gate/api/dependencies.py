"""
FastAPI Dependency Injection Providers.

Architecture:
    1. get_settings() - Loads and caches application configuration
    2. get_generation_orchestrator() - Singleton GenerationOrchestrator
    3. get_ticker() - Singleton Ticker driving the minute window

All three are process-wide singletons: the quota counters only mean
something if every request sees the same ones.

Lifecycle:
    1. Application startup (main.py)
       └── start_ticker() builds the orchestrator and starts the heartbeat
    2. Request handling
       └── Route handlers receive the orchestrator via Depends()
    3. Application shutdown
       └── stop_ticker() stops the heartbeat thread
"""
from __future__ import annotations

import threading
from functools import lru_cache
from typing import Optional

from tts_gate.core.config import Settings, load_settings, settings_path
from tts_gate.quota.clock import Ticker
from tts_gate.services.orchestrator import GenerationOrchestrator, get_orchestrator


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """
    Load and cache application settings.

    Reads TTS_GATE_SETTINGS, defaulting to config/settings.yaml.
    """
    return load_settings(settings_path())


def get_generation_orchestrator() -> GenerationOrchestrator:
    """Get the singleton GenerationOrchestrator."""
    return get_orchestrator(get_settings())


_ticker: Optional[Ticker] = None
_ticker_lock = threading.Lock()


def get_ticker() -> Ticker:
    """Get the singleton Ticker wired to the orchestrator's tick()."""
    global _ticker
    if _ticker is None:
        with _ticker_lock:
            if _ticker is None:
                config = get_settings().get_gate_config()
                orchestrator = get_generation_orchestrator()
                _ticker = Ticker(config.quota.tick_seconds, [orchestrator.tick])
    return _ticker


def start_ticker() -> None:
    get_ticker().start()


def stop_ticker() -> None:
    global _ticker
    with _ticker_lock:
        ticker, _ticker = _ticker, None
    if ticker is not None:
        ticker.stop()
