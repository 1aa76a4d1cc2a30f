"""
tts-gate Structured Logging Module.

A thin layer over the standard logging package with:
    - Numeric log levels (1-4) for simplified configuration
    - Colored console output for human readability
    - JSONL file output for machine parsing
    - Request id correlation across a generation cycle

Log Levels:
    1 = MINIMAL  - Startup, shutdown, failures
    2 = NORMAL   - Generation lifecycle, denials (default)
    3 = VERBOSE  - Window resets, stage timings
    4 = DEBUG    - Internal state

Configuration:
    export TTS_GATE_LOG_LEVEL=3   # VERBOSE
    export TTS_GATE_LOG_DIR=logs  # enable JSONL file output
    export TTS_GATE_NO_COLOR=1

Usage:
    from tts_gate.core.logging import get_logger, info, warn, deny

    log = get_logger("tts-gate.mymodule")
    info(log, "generate_request", chars=150, voice="Kore")
    deny(log, "admission_denied", reason="MINUTE_LIMIT_REACHED")
    verbose(log, "minute_window_reset", window_seconds=60)
"""
from __future__ import annotations

import logging
import sys
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Any, Optional

from .levels import LEVEL_MAP, LEVEL_NAMES, LogLevel, coerce_level
from .colors import Colors, colorize, get_tag_color, supports_color
from .context import (
    get_level,
    get_level_name,
    get_log_config,
    get_request_id,
    is_configured,
    read_logging_config,
    set_configured,
    set_level,
    set_log_config,
    set_request_id,
)
from .formatters import ColoredConsoleFormatter, JsonlFormatter


def configure_logging(level: Optional[int | str | LogLevel] = None, force: bool = False) -> None:
    """
    Configure the root logger once per process.

    Args:
        level: Log level (1-4, level name, or LogLevel enum). Defaults to
            the resolved config / TTS_GATE_LOG_LEVEL.
        force: Reconfigure even if already configured.
    """
    from . import colors

    if is_configured() and not force:
        return

    colors.USE_COLORS = supports_color()

    log_config = read_logging_config()
    set_log_config(log_config)

    current_level = coerce_level(level or log_config.get("level", LogLevel.NORMAL))
    set_level(current_level)

    root = logging.getLogger()
    root.setLevel(logging.DEBUG - 10)  # filter in handlers
    root.handlers = []

    console = logging.StreamHandler(sys.stdout)
    console.setLevel(LEVEL_MAP.get(current_level, logging.INFO))
    console.setFormatter(ColoredConsoleFormatter())
    root.addHandler(console)

    log_dir = log_config.get("log_dir")
    if log_dir:
        Path(log_dir).mkdir(parents=True, exist_ok=True)
        file_handler = RotatingFileHandler(
            Path(log_dir) / str(log_config.get("jsonl_file", "tts-gate.jsonl")),
            maxBytes=int(log_config.get("rotate_max_bytes", 10 * 1024 * 1024)),
            backupCount=int(log_config.get("rotate_backup_count", 5)),
            encoding="utf-8",
            delay=True,
        )
        file_handler.setLevel(logging.DEBUG - 10)
        file_handler.setFormatter(JsonlFormatter())
        root.addHandler(file_handler)

    set_configured(True)


def _log(
    logger: logging.Logger,
    level: int,
    tag: str,
    msg: str,
    numeric_level: int = 2,
    **fields: Any
) -> None:
    if numeric_level > get_level():
        return

    event = fields.pop("event", None)
    seconds = fields.pop("seconds", None)
    logger.log(
        level,
        msg,
        extra={
            "tag": tag,
            "request_id": get_request_id(),
            "event": event,
            "seconds": seconds,
            "extra_data": fields or None,
            "numeric_level": numeric_level,
        },
    )


def get_logger(name: str = "tts-gate") -> logging.Logger:
    """Get a logger instance, configuring logging if needed."""
    configure_logging()
    return logging.getLogger(name)


def info(logger: logging.Logger, msg: str, **fields: Any) -> None:
    """Log an info message (level 2 = NORMAL)."""
    _log(logger, logging.INFO, "INFO", msg, numeric_level=2, **fields)


def warn(logger: logging.Logger, msg: str, **fields: Any) -> None:
    """Log a warning message (level 2 = NORMAL)."""
    _log(logger, logging.WARNING, "WARN", msg, numeric_level=2, **fields)


def deny(logger: logging.Logger, msg: str, **fields: Any) -> None:
    """Log a local quota/input denial (level 2 = NORMAL)."""
    _log(logger, logging.WARNING, "DENY", msg, numeric_level=2, **fields)


def error(logger: logging.Logger, msg: str, **fields: Any) -> None:
    """Log an error message (level 1 = MINIMAL)."""
    _log(logger, logging.ERROR, "ERROR", msg, numeric_level=1, **fields)


def success(logger: logging.Logger, msg: str, **fields: Any) -> None:
    """Log a success message (level 2 = NORMAL)."""
    _log(logger, logging.INFO, "SUCCESS", msg, numeric_level=2, **fields)


def fail(logger: logging.Logger, msg: str, **fields: Any) -> None:
    """Log a failure message (level 1 = MINIMAL)."""
    _log(logger, logging.ERROR, "FAIL", msg, numeric_level=1, **fields)


def verbose(logger: logging.Logger, msg: str, **fields: Any) -> None:
    """Log a verbose message (level 3 = VERBOSE)."""
    _log(logger, logging.DEBUG, "INFO", msg, numeric_level=3, **fields)


def debug(logger: logging.Logger, msg: str, **fields: Any) -> None:
    """Log a debug message (level 4 = DEBUG)."""
    _log(logger, logging.DEBUG - 5, "DEBUG", msg, numeric_level=4, **fields)


__all__ = [
    "LogLevel",
    "LEVEL_MAP",
    "LEVEL_NAMES",
    "coerce_level",
    "Colors",
    "supports_color",
    "colorize",
    "get_tag_color",
    "get_request_id",
    "set_request_id",
    "get_level",
    "get_level_name",
    "get_log_config",
    "JsonlFormatter",
    "ColoredConsoleFormatter",
    "configure_logging",
    "get_logger",
    "info",
    "warn",
    "deny",
    "error",
    "success",
    "fail",
    "verbose",
    "debug",
]
