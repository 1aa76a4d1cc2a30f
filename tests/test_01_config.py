"""
Tests for configuration validation and defaults.

Tests cover:
- GateConfig.from_settings() - all sections
- Defaults class values
- ConfigValidationError on invalid values
- String log level coercion ("DEBUG" -> 4)
- Environment overrides for engine and storage path
- Missing sections use defaults
- Settings properties and load_settings()
"""

from pathlib import Path

import pytest

from tts_gate.core.config import (
    ConfigValidationError,
    Defaults,
    GateConfig,
    LoggingConfig,
    QuotaConfig,
    Settings,
    StorageConfig,
    load_settings,
    settings_path,
)

REPO_ROOT = Path(__file__).resolve().parents[1]


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for name in ("TTS_GATE_ENGINE", "TTS_GATE_STORAGE_PATH", "TTS_GATE_SETTINGS"):
        monkeypatch.delenv(name, raising=False)


class TestDefaults:
    """Tests for Defaults class values."""

    def test_quota_defaults(self):
        """Defaults match the Gemini free-tier limits."""
        assert Defaults.QUOTA_DAILY_LIMIT == 1500
        assert Defaults.QUOTA_MINUTE_LIMIT == 15
        assert Defaults.QUOTA_WINDOW_SECONDS == 60

    def test_storage_defaults(self):
        assert Defaults.STORAGE_BACKEND == "json"
        assert Defaults.STORAGE_KEY_PREFIX == "gemini_tts_usage_"

    def test_synth_defaults(self):
        assert Defaults.SYNTH_ENGINE == "gemini"
        assert Defaults.SYNTH_DEFAULT_VOICE == "Kore"
        assert Defaults.SYNTH_SAMPLE_RATE == 24000

    def test_logging_defaults(self):
        assert Defaults.LOGGING_TEXT_PREVIEW_CHARS == 80
        assert Defaults.LOGGING_LEVEL == 2


class TestGateConfigFromSettings:
    """Tests for GateConfig.from_settings()."""

    def test_empty_settings_uses_defaults(self):
        """Missing sections fall back to Defaults."""
        config = GateConfig.from_settings(Settings(raw={}))

        assert config.quota == QuotaConfig()
        assert config.storage == StorageConfig()
        assert config.logging == LoggingConfig()
        assert config.synth.engine == "gemini"
        assert config.synth.api_key_env == "GEMINI_API_KEY"

    def test_custom_values(self):
        raw = {
            "quota": {"daily_limit": 100, "minute_limit": 5, "window_seconds": 30},
            "storage": {"backend": "MEMORY", "key_prefix": "usage_"},
            "synth": {"engine": "tone", "default_voice": "Aoede", "timeout_s": 10},
            "logging": {"level": 3},
        }
        config = Settings(raw=raw).get_gate_config()

        assert config.quota.daily_limit == 100
        assert config.quota.minute_limit == 5
        assert config.quota.window_seconds == 30
        assert config.storage.backend == "memory"
        assert config.storage.key_prefix == "usage_"
        assert config.synth.engine == "tone"
        assert config.synth.default_voice == "Aoede"
        assert config.synth.timeout_s == 10.0
        assert config.logging.level == 3

    def test_null_sections_use_defaults(self):
        config = GateConfig.from_settings(Settings(raw={"quota": None, "storage": None}))
        assert config.quota.daily_limit == 1500
        assert config.storage.backend == "json"


class TestValidation:
    """ConfigValidationError on out-of-range values."""

    @pytest.mark.parametrize("section,key,value", [
        ("quota", "daily_limit", 0),
        ("quota", "minute_limit", -1),
        ("quota", "window_seconds", 0),
        ("quota", "tick_seconds", 0),
        ("synth", "sample_rate", 0),
        ("synth", "timeout_s", -5),
        ("logging", "text_preview_chars", -1),
    ])
    def test_rejects_bad_numbers(self, section, key, value):
        with pytest.raises(ConfigValidationError, match=f"{section}.{key}"):
            GateConfig.from_settings(Settings(raw={section: {key: value}}))

    def test_rejects_unknown_backend(self):
        with pytest.raises(ConfigValidationError, match="storage.backend"):
            GateConfig.from_settings(Settings(raw={"storage": {"backend": "redis"}}))

    def test_rejects_unknown_engine(self):
        with pytest.raises(ConfigValidationError, match="synth.engine"):
            GateConfig.from_settings(Settings(raw={"synth": {"engine": "espeak"}}))

    @pytest.mark.parametrize("level", [0, 5])
    def test_logging_level_range(self, level):
        with pytest.raises(ConfigValidationError, match="logging.level"):
            GateConfig.from_settings(Settings(raw={"logging": {"level": level}}))


class TestStringLogLevel:

    @pytest.mark.parametrize("name,expected", [
        ("DEBUG", 4), ("verbose", 3), ("INFO", 2), ("minimal", 1), ("bogus", 2),
    ])
    def test_string_levels(self, name, expected):
        config = GateConfig.from_settings(Settings(raw={"logging": {"level": name}}))
        assert config.logging.level == expected


class TestEnvOverrides:

    def test_engine_env(self, monkeypatch):
        monkeypatch.setenv("TTS_GATE_ENGINE", " Tone ")
        settings = Settings(raw={"synth": {"engine": "gemini"}})
        assert settings.engine_type == "tone"
        assert settings.get_gate_config().synth.engine == "tone"

    def test_storage_path_env(self, monkeypatch, tmp_path):
        target = str(tmp_path / "usage.json")
        monkeypatch.setenv("TTS_GATE_STORAGE_PATH", target)
        config = GateConfig.from_settings(Settings(raw={"storage": {"path": "./elsewhere.json"}}))
        assert config.storage.path == target

    def test_settings_path_env(self, monkeypatch):
        assert settings_path() == "config/settings.yaml"
        monkeypatch.setenv("TTS_GATE_SETTINGS", "/etc/tts-gate.yaml")
        assert settings_path() == "/etc/tts-gate.yaml"


class TestSettingsProperties:

    def test_api_key_from_named_env(self, monkeypatch):
        monkeypatch.setenv("MY_GEMINI_KEY", "secret")
        settings = Settings(raw={"synth": {"api_key_env": "MY_GEMINI_KEY"}})
        assert settings.api_key() == "secret"

    def test_api_key_missing(self, monkeypatch):
        monkeypatch.setenv("MY_GEMINI_KEY", "")
        settings = Settings(raw={"synth": {"api_key_env": "MY_GEMINI_KEY"}})
        assert settings.api_key() is None

    def test_null_synth_section(self, monkeypatch):
        """A bare `synth:` key in YAML loads as None and falls back to Defaults."""
        monkeypatch.delenv("GEMINI_API_KEY", raising=False)
        settings = Settings(raw={"synth": None})
        assert settings.engine_type == "gemini"
        assert settings.default_voice == "Kore"
        assert settings.sample_rate == 24000
        assert settings.api_key() is None
        assert settings.get_gate_config().synth.model == Defaults.SYNTH_MODEL

    def test_voice_and_rate(self):
        settings = Settings(raw={"synth": {"default_voice": "Male_7", "sample_rate": 16000}})
        assert settings.default_voice == "Male_7"
        assert settings.sample_rate == 16000


class TestLoadSettings:

    def test_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            load_settings(str(tmp_path / "nope.yaml"))

    def test_empty_file(self, tmp_path):
        path = tmp_path / "settings.yaml"
        path.write_text("", encoding="utf-8")
        assert load_settings(str(path)).raw == {}

    def test_repo_settings_are_valid(self):
        config = load_settings(str(REPO_ROOT / "config" / "settings.yaml")).get_gate_config()
        assert config.quota.daily_limit == 1500
        assert config.quota.minute_limit == 15
        assert config.synth.default_voice == "Kore"
