"""
Configuration Management for tts-gate.

This module provides centralized configuration handling with:
    - Default values (Defaults class)
    - Dataclass-based configuration sections
    - YAML file loading with environment variable overrides
    - Validation with meaningful error messages

Configuration Hierarchy (highest priority first):
    1. Environment variables (TTS_GATE_ENGINE, TTS_GATE_STORAGE_PATH, ...)
    2. YAML config file (config/settings.yaml)
    3. Defaults class values

Example settings.yaml:
    quota:
      daily_limit: 1500
      minute_limit: 15

    storage:
      backend: json
      path: ./storage/usage.json

    synth:
      engine: gemini
      default_voice: Kore
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Optional

import yaml


class ConfigValidationError(Exception):
    """
    Raised when configuration validation fails.

    Thrown when a configuration value is outside acceptable bounds
    or names an unknown backend.
    """
    pass


class Defaults:
    """
    Centralized default configuration values.

    The quota figures are the Gemini free-tier limits for the TTS model.
    Everything else has a value that works out of the box for a single
    local user.
    """

    # ─────────────────────────────────────────────────────────────────────────
    # Quota Limits
    # ─────────────────────────────────────────────────────────────────────────
    QUOTA_DAILY_LIMIT = 1500        # Requests per local calendar date
    QUOTA_MINUTE_LIMIT = 15         # Requests per minute window (RPM)
    QUOTA_WINDOW_SECONDS = 60       # Length of the minute window
    QUOTA_TICK_SECONDS = 1.0        # Countdown heartbeat interval

    # ─────────────────────────────────────────────────────────────────────────
    # Usage Storage (daily counters)
    # ─────────────────────────────────────────────────────────────────────────
    STORAGE_BACKEND = "json"                    # json | memory
    STORAGE_PATH = "./storage/usage.json"
    STORAGE_KEY_PREFIX = "gemini_tts_usage_"

    # ─────────────────────────────────────────────────────────────────────────
    # Synthesis
    # ─────────────────────────────────────────────────────────────────────────
    SYNTH_ENGINE = "gemini"                     # gemini | tone
    SYNTH_MODEL = "gemini-2.5-flash-preview-tts"
    SYNTH_API_KEY_ENV = "GEMINI_API_KEY"
    SYNTH_DEFAULT_VOICE = "Kore"
    SYNTH_SAMPLE_RATE = 24000                   # Gemini returns 24kHz PCM
    SYNTH_TIMEOUT_S = 60.0

    # ─────────────────────────────────────────────────────────────────────────
    # Logging
    # ─────────────────────────────────────────────────────────────────────────
    LOGGING_TEXT_PREVIEW_CHARS = 80
    LOGGING_LEVEL = 2                           # 1=MINIMAL .. 4=DEBUG


STORAGE_BACKENDS = ("json", "memory")
SYNTH_ENGINES = ("gemini", "tone")


@dataclass
class QuotaConfig:
    """
    Client-side quota limits.

    The minute window is a fixed-origin countdown: it restarts from
    whenever the previous window ended, not on wall-clock minutes.
    """
    daily_limit: int = Defaults.QUOTA_DAILY_LIMIT
    minute_limit: int = Defaults.QUOTA_MINUTE_LIMIT
    window_seconds: int = Defaults.QUOTA_WINDOW_SECONDS
    tick_seconds: float = Defaults.QUOTA_TICK_SECONDS


@dataclass
class StorageConfig:
    """Where daily usage counters are persisted."""
    backend: str = Defaults.STORAGE_BACKEND
    path: str = Defaults.STORAGE_PATH
    key_prefix: str = Defaults.STORAGE_KEY_PREFIX


@dataclass
class SynthConfig:
    """
    Speech synthesis configuration.

    The API key itself is never stored in settings; api_key_env names
    the environment variable that holds it.
    """
    engine: str = Defaults.SYNTH_ENGINE
    model: str = Defaults.SYNTH_MODEL
    api_key_env: str = Defaults.SYNTH_API_KEY_ENV
    default_voice: str = Defaults.SYNTH_DEFAULT_VOICE
    sample_rate: int = Defaults.SYNTH_SAMPLE_RATE
    timeout_s: float = Defaults.SYNTH_TIMEOUT_S


@dataclass
class LoggingConfig:
    """
    Logging configuration.

    Log levels:
        1 = MINIMAL: Startup, shutdown, critical errors only
        2 = NORMAL: Generation lifecycle, denials (default)
        3 = VERBOSE: Quota ticks around resets, timings
        4 = DEBUG: Internal state, full tracing
    """
    text_preview_chars: int = Defaults.LOGGING_TEXT_PREVIEW_CHARS
    level: int = Defaults.LOGGING_LEVEL


@dataclass
class GateConfig:
    """
    Validated configuration for the generation orchestrator.

    Usage:
        settings = load_settings("config/settings.yaml")
        config = GateConfig.from_settings(settings)
        print(config.quota.daily_limit)
    """
    quota: QuotaConfig = field(default_factory=QuotaConfig)
    storage: StorageConfig = field(default_factory=StorageConfig)
    synth: SynthConfig = field(default_factory=SynthConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)

    @classmethod
    def from_settings(cls, settings: "Settings") -> "GateConfig":
        """
        Create GateConfig from Settings with validation.

        Args:
            settings: Raw Settings object loaded from YAML.

        Returns:
            Validated GateConfig instance.

        Raises:
            ConfigValidationError: If any value fails validation.
        """
        raw = settings.raw

        # ─────────────────────────────────────────────────────────────────────
        # Quota limits
        # ─────────────────────────────────────────────────────────────────────
        quota_raw = raw.get("quota", {}) or {}
        quota = QuotaConfig(
            daily_limit=int(quota_raw.get("daily_limit", Defaults.QUOTA_DAILY_LIMIT)),
            minute_limit=int(quota_raw.get("minute_limit", Defaults.QUOTA_MINUTE_LIMIT)),
            window_seconds=int(quota_raw.get("window_seconds", Defaults.QUOTA_WINDOW_SECONDS)),
            tick_seconds=float(quota_raw.get("tick_seconds", Defaults.QUOTA_TICK_SECONDS)),
        )
        cls._validate_positive("quota.daily_limit", quota.daily_limit)
        cls._validate_positive("quota.minute_limit", quota.minute_limit)
        cls._validate_positive("quota.window_seconds", quota.window_seconds)
        cls._validate_positive("quota.tick_seconds", quota.tick_seconds)

        # ─────────────────────────────────────────────────────────────────────
        # Usage storage (env override for the file path)
        # ─────────────────────────────────────────────────────────────────────
        storage_raw = raw.get("storage", {}) or {}
        storage = StorageConfig(
            backend=str(storage_raw.get("backend", Defaults.STORAGE_BACKEND)).strip().lower(),
            path=os.getenv("TTS_GATE_STORAGE_PATH") or str(storage_raw.get("path", Defaults.STORAGE_PATH)),
            key_prefix=str(storage_raw.get("key_prefix", Defaults.STORAGE_KEY_PREFIX)),
        )
        cls._validate_choice("storage.backend", storage.backend, STORAGE_BACKENDS)

        # ─────────────────────────────────────────────────────────────────────
        # Synthesis
        # ─────────────────────────────────────────────────────────────────────
        synth_raw = raw.get("synth", {}) or {}
        synth = SynthConfig(
            engine=settings.engine_type,
            model=str(synth_raw.get("model", Defaults.SYNTH_MODEL)),
            api_key_env=str(synth_raw.get("api_key_env", Defaults.SYNTH_API_KEY_ENV)),
            default_voice=str(synth_raw.get("default_voice", Defaults.SYNTH_DEFAULT_VOICE)),
            sample_rate=int(synth_raw.get("sample_rate", Defaults.SYNTH_SAMPLE_RATE)),
            timeout_s=float(synth_raw.get("timeout_s", Defaults.SYNTH_TIMEOUT_S)),
        )
        cls._validate_choice("synth.engine", synth.engine, SYNTH_ENGINES)
        cls._validate_positive("synth.sample_rate", synth.sample_rate)
        cls._validate_positive("synth.timeout_s", synth.timeout_s)

        # ─────────────────────────────────────────────────────────────────────
        # Logging
        # ─────────────────────────────────────────────────────────────────────
        logging_raw = raw.get("logging", {}) or {}
        log_level_raw = logging_raw.get("level", Defaults.LOGGING_LEVEL)

        # Handle string log levels (e.g., "INFO", "DEBUG")
        if isinstance(log_level_raw, str):
            level_map = {
                "MINIMAL": 1, "1": 1,
                "NORMAL": 2, "INFO": 2, "2": 2,
                "VERBOSE": 3, "3": 3,
                "DEBUG": 4, "TRACE": 4, "4": 4,
            }
            log_level = level_map.get(log_level_raw.upper(), Defaults.LOGGING_LEVEL)
        else:
            log_level = int(log_level_raw)

        logging_cfg = LoggingConfig(
            text_preview_chars=int(logging_raw.get("text_preview_chars", Defaults.LOGGING_TEXT_PREVIEW_CHARS)),
            level=log_level,
        )
        cls._validate_non_negative("logging.text_preview_chars", logging_cfg.text_preview_chars)
        cls._validate_range("logging.level", logging_cfg.level, 1, 4)

        return cls(quota=quota, storage=storage, synth=synth, logging=logging_cfg)

    @staticmethod
    def _validate_positive(name: str, value: int | float) -> None:
        """Validate that a value is positive (> 0)."""
        if value <= 0:
            raise ConfigValidationError(f"{name} must be positive, got {value}")

    @staticmethod
    def _validate_non_negative(name: str, value: int | float) -> None:
        """Validate that a value is non-negative (>= 0)."""
        if value < 0:
            raise ConfigValidationError(f"{name} must be non-negative, got {value}")

    @staticmethod
    def _validate_range(name: str, value: int | float, min_val: int | float, max_val: int | float) -> None:
        """Validate that a value is within a range [min_val, max_val]."""
        if not (min_val <= value <= max_val):
            raise ConfigValidationError(f"{name} must be between {min_val} and {max_val}, got {value}")

    @staticmethod
    def _validate_choice(name: str, value: str, choices: tuple[str, ...]) -> None:
        """Validate that a value is one of the known choices."""
        if value not in choices:
            raise ConfigValidationError(f"{name} must be one of {', '.join(choices)}, got {value!r}")


@dataclass(frozen=True)
class Settings:
    """
    Immutable settings container loaded from YAML.

    This is the raw settings object before validation. Use
    get_gate_config() to get a validated GateConfig.

    Attributes:
        raw: Dictionary of raw configuration values.
    """
    raw: Dict[str, Any]

    @property
    def engine_type(self) -> str:
        """Get the synthesis engine name (gemini, tone)."""
        env = os.getenv("TTS_GATE_ENGINE")
        if env:
            return env.strip().lower()
        return str((self.raw.get("synth") or {}).get("engine", Defaults.SYNTH_ENGINE)).strip().lower()

    @property
    def default_voice(self) -> str:
        """Get the default catalog voice id."""
        return str((self.raw.get("synth") or {}).get("default_voice", Defaults.SYNTH_DEFAULT_VOICE))

    @property
    def sample_rate(self) -> int:
        """Get the output audio sample rate."""
        return int((self.raw.get("synth") or {}).get("sample_rate", Defaults.SYNTH_SAMPLE_RATE))

    def api_key(self) -> Optional[str]:
        """Read the provider API key from the configured environment variable."""
        env_name = (self.raw.get("synth") or {}).get("api_key_env", Defaults.SYNTH_API_KEY_ENV)
        return os.getenv(str(env_name)) or None

    def get_gate_config(self) -> GateConfig:
        """
        Get validated GateConfig from these settings.

        Raises:
            ConfigValidationError: If validation fails.
        """
        return GateConfig.from_settings(self)


def settings_path() -> str:
    """Resolve the settings file path (TTS_GATE_SETTINGS overrides the default)."""
    return os.getenv("TTS_GATE_SETTINGS", "config/settings.yaml")


def load_settings(path: Optional[str] = None) -> Settings:
    """
    Load settings from a YAML configuration file.

    Args:
        path: Path to the YAML configuration file. Defaults to
            TTS_GATE_SETTINGS or config/settings.yaml.

    Returns:
        Settings object with loaded configuration.

    Raises:
        FileNotFoundError: If the settings file doesn't exist.
    """
    p = Path(path or settings_path())
    if not p.exists():
        raise FileNotFoundError(f"settings file not found: {p.resolve()}")

    with p.open("r", encoding="utf-8") as f:
        raw: Dict[str, Any] = yaml.safe_load(f) or {}

    return Settings(raw=raw)
