"""
Request Context and Configuration State for Logging.

The request id lives in a ContextVar so it follows a generation through
threads started with copied contexts and through async handlers. The
remaining state (level, configured flag, resolved config) is process-wide.

Environment Variables:
    - TTS_GATE_LOG_LEVEL: Override log level (1-4 or name)
    - TTS_GATE_LOG_DIR: Directory for the JSONL log
    - TTS_GATE_JSONL_FILE: JSONL filename
    - TTS_GATE_LOG_ROTATE_BYTES: Max log file size before rotation
    - TTS_GATE_LOG_ROTATE_BACKUP: Number of rotated files to keep
"""
from __future__ import annotations

import os
from contextvars import ContextVar
from typing import Any, Dict

import yaml

from .levels import LEVEL_NAMES, LogLevel

_request_id: ContextVar[str] = ContextVar("request_id", default="-")

_configured: bool = False
_log_config: Dict[str, Any] = {}
_current_level: LogLevel = LogLevel.NORMAL


def get_request_id() -> str:
    """Get the request id for the current context ("-" outside a request)."""
    return _request_id.get()


def set_request_id(rid: str) -> None:
    """Set the request id used to correlate log lines."""
    _request_id.set(rid)


def get_level() -> LogLevel:
    return _current_level


def set_level(level: LogLevel) -> None:
    global _current_level
    _current_level = level


def get_level_name() -> str:
    return LEVEL_NAMES.get(_current_level, "NORMAL")


def is_configured() -> bool:
    return _configured


def set_configured(value: bool) -> None:
    global _configured
    _configured = value


def get_log_config() -> Dict[str, Any]:
    return _log_config


def set_log_config(config: Dict[str, Any]) -> None:
    global _log_config
    _log_config = config


def read_logging_config() -> Dict[str, Any]:
    """
    Read logging configuration from the settings file and environment.

    Environment variables take precedence over the `logging` section of
    settings.yaml. A missing or unreadable settings file leaves defaults.

    Returns:
        Dictionary with resolved logging configuration.
    """
    cfg: Dict[str, Any] = {}

    try:
        from tts_gate.core.config import load_settings
        settings = load_settings()
        cfg.update(settings.raw.get("logging", {}) or {})
    except (OSError, ValueError, yaml.YAMLError):
        pass

    if os.getenv("TTS_GATE_LOG_LEVEL"):
        cfg["level"] = os.environ["TTS_GATE_LOG_LEVEL"]
    if os.getenv("TTS_GATE_LOG_DIR"):
        cfg["log_dir"] = os.environ["TTS_GATE_LOG_DIR"]
    if os.getenv("TTS_GATE_JSONL_FILE"):
        cfg["jsonl_file"] = os.environ["TTS_GATE_JSONL_FILE"]
    for env_name, key in (
        ("TTS_GATE_LOG_ROTATE_BYTES", "rotate_max_bytes"),
        ("TTS_GATE_LOG_ROTATE_BACKUP", "rotate_backup_count"),
    ):
        value = os.getenv(env_name)
        if value:
            try:
                cfg[key] = int(value)
            except ValueError:
                pass  # ignore junk, keep the default

    return cfg
