"""
Log Formatters for JSON and Console Output.

    JsonlFormatter: one JSON object per line, for files and log shippers
    ColoredConsoleFormatter: human-readable, colored terminal lines

Output Examples:
    JSONL (file):
        {"ts":"2025-01-15T14:30:05+03:00","level":2,"tag":"SUCCESS","message":"generated","request_id":"abc123","extra":{"daily_remaining":1499}}

    Console (colored):
        14:30:05 [SUCCESS] (abc123) generated 1.204s daily_remaining=1499 minute_remaining=14

Quota fields are colored by how much capacity is left so an operator
can spot an approaching limit at a glance.
"""
from __future__ import annotations

import json
import logging
from datetime import datetime
from typing import Any, Dict

from . import colors
from .colors import Colors, get_tag_color


def _paint(text: str, color: str) -> str:
    # Read the flag at call time so configure_logging()/tests can toggle it
    if not colors.USE_COLORS:
        return text
    return f"{color}{text}{Colors.RESET}"


class JsonlFormatter(logging.Formatter):
    """
    Format log records as JSON Lines.

    Output Format:
        {
            "ts": "2025-01-15T14:30:05+03:00",
            "level": 2,
            "tag": "INFO",
            "message": "generate_request",
            "request_id": "abc123",
            "event": "synth",          # optional
            "seconds": 0.5,            # optional
            "extra": {"key": "value"}  # optional
        }
    """

    def format(self, record: logging.LogRecord) -> str:
        ts = datetime.fromtimestamp(record.created).astimezone().isoformat()

        payload: Dict[str, Any] = {
            "ts": ts,
            "level": getattr(record, "numeric_level", 2),
            "tag": getattr(record, "tag", record.levelname),
            "message": record.getMessage(),
            "request_id": getattr(record, "request_id", "-"),
        }

        event = getattr(record, "event", None)
        if event:
            payload["event"] = event

        seconds = getattr(record, "seconds", None)
        if seconds is not None:
            payload["seconds"] = seconds

        extra_data = getattr(record, "extra_data", None)
        if extra_data:
            payload["extra"] = extra_data

        return json.dumps(payload, ensure_ascii=False, default=str)


class ColoredConsoleFormatter(logging.Formatter):
    """
    Format log records with ANSI colors for console output.

    Output Format:
        HH:MM:SS [ TAG   ] (rid) message event=... 0.123s key=value
    """

    def format(self, record: logging.LogRecord) -> str:
        ts = datetime.fromtimestamp(record.created).strftime("%H:%M:%S")
        tag = getattr(record, "tag", record.levelname)
        rid = getattr(record, "request_id", "-")

        parts = [_paint(ts, Colors.DIM), _paint(f"[{tag:^7}]", get_tag_color(tag))]
        if rid != "-":
            parts.append(_paint(f"({rid})", Colors.DIM + Colors.CYAN))
        parts.append(record.getMessage())

        event = getattr(record, "event", None)
        if event:
            parts.append(_paint(f"event={event}", Colors.BLUE))

        seconds = getattr(record, "seconds", None)
        if seconds is not None:
            if seconds < 1.0:
                time_color = Colors.GREEN
            elif seconds < 5.0:
                time_color = Colors.YELLOW
            else:
                time_color = Colors.RED
            parts.append(_paint(f"{seconds:.3f}s", time_color))

        extra_data = getattr(record, "extra_data", None)
        if extra_data:
            for k, v in extra_data.items():
                parts.append(_paint(f"{k}={v}", self._field_color(k, v)))

        return " ".join(parts)

    def _field_color(self, key: str, value: Any) -> str:
        """
        Pick a color for a structured field.

        Remaining-capacity fields go red at zero, yellow when low:
            - daily_remaining: yellow below 100 (matches the UI warning)
            - minute_remaining: yellow at 3 or fewer
        """
        if key == "daily_remaining" and isinstance(value, (int, float)):
            if value <= 0:
                return Colors.RED
            return Colors.YELLOW if value < 100 else Colors.GREEN

        if key == "minute_remaining" and isinstance(value, (int, float)):
            if value <= 0:
                return Colors.RED
            return Colors.YELLOW if value <= 3 else Colors.CYAN

        if key in ("reason", "error_code"):
            return Colors.YELLOW

        return Colors.DIM
