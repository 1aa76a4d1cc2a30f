"""Tests for the numeric logging level system."""
from __future__ import annotations

import io
import logging
import os
from unittest.mock import patch


class TestLogLevelEnum:
    """Test LogLevel enum values."""

    def test_level_enum_values(self):
        from tts_gate.core.logging import LogLevel

        assert LogLevel.MINIMAL == 1
        assert LogLevel.NORMAL == 2
        assert LogLevel.VERBOSE == 3
        assert LogLevel.DEBUG == 4

    def test_level_map(self):
        from tts_gate.core.logging import LEVEL_MAP, LogLevel

        assert LEVEL_MAP[LogLevel.MINIMAL] == logging.WARNING
        assert LEVEL_MAP[LogLevel.NORMAL] == logging.INFO
        assert LEVEL_MAP[LogLevel.VERBOSE] == logging.DEBUG


class TestLevelCoercion:
    """Test level coercion from various input types."""

    def test_level_from_int(self):
        from tts_gate.core.logging import LogLevel, coerce_level

        assert coerce_level(1) == LogLevel.MINIMAL
        assert coerce_level(4) == LogLevel.DEBUG

    def test_level_from_names(self):
        from tts_gate.core.logging import LogLevel, coerce_level

        assert coerce_level("verbose") == LogLevel.VERBOSE
        assert coerce_level("INFO") == LogLevel.NORMAL
        assert coerce_level("WARNING") == LogLevel.MINIMAL
        assert coerce_level("3") == LogLevel.VERBOSE

    def test_invalid_level_defaults_to_normal(self):
        from tts_gate.core.logging import LogLevel, coerce_level

        assert coerce_level("invalid") == LogLevel.NORMAL
        assert coerce_level(None) == LogLevel.NORMAL
        assert coerce_level(30) == LogLevel.MINIMAL


class TestLevelFiltering:
    """Messages are filtered by the configured level."""

    def test_level_filtering_minimal(self):
        from tts_gate.core.logging import configure_logging, debug, error, get_logger, info

        captured = io.StringIO()
        with patch("sys.stdout", captured):
            configure_logging(level=1, force=True)
            log = get_logger("test_minimal")

            info(log, "info message")
            error(log, "error message")
            debug(log, "debug message")

        output = captured.getvalue()
        assert "error message" in output
        assert "info message" not in output
        assert "debug message" not in output

    def test_level_filtering_normal(self):
        from tts_gate.core.logging import configure_logging, deny, get_logger, info, verbose

        captured = io.StringIO()
        with patch("sys.stdout", captured):
            configure_logging(level=2, force=True)
            log = get_logger("test_normal")

            info(log, "info message")
            deny(log, "deny message", reason="MINUTE_LIMIT_REACHED")
            verbose(log, "verbose message")

        output = captured.getvalue()
        assert "info message" in output
        assert "deny message" in output
        assert "reason=MINUTE_LIMIT_REACHED" in output
        assert "verbose message" not in output

    def test_level_filtering_debug(self):
        from tts_gate.core.logging import configure_logging, debug, get_logger, verbose

        captured = io.StringIO()
        with patch("sys.stdout", captured):
            configure_logging(level=4, force=True)
            log = get_logger("test_debug")

            verbose(log, "verbose message")
            debug(log, "debug message")

        output = captured.getvalue()
        assert "verbose message" in output
        assert "debug message" in output


class TestRequestIdPropagation:
    """request_id is included in logs."""

    def test_request_id_in_log_output(self):
        from tts_gate.core.logging import configure_logging, get_logger, info, set_request_id

        captured = io.StringIO()
        with patch("sys.stdout", captured):
            configure_logging(level=2, force=True)
            set_request_id("test-rid-123")
            log = get_logger("test_rid")
            info(log, "message with rid")
        set_request_id("-")

        assert "test-rid-123" in captured.getvalue()


class TestEnvOverride:

    def test_env_override_log_level(self):
        from tts_gate.core.logging import LogLevel, configure_logging, get_level

        with patch.dict(os.environ, {"TTS_GATE_LOG_LEVEL": "3"}):
            configure_logging(force=True)
            assert get_level() == LogLevel.VERBOSE
        configure_logging(level=2, force=True)
