"""
ANSI Color Utilities for Console Output.

Colors are disabled when stdout is not a TTY, when NO_COLOR is set
(https://no-color.org/), or when TTS_GATE_NO_COLOR=1.
"""
from __future__ import annotations

import os
import sys


class Colors:
    """ANSI escape code constants. Always close with RESET."""
    RESET = "\033[0m"
    BOLD = "\033[1m"
    DIM = "\033[2m"

    RED = "\033[31m"
    GREEN = "\033[32m"
    YELLOW = "\033[33m"
    BLUE = "\033[34m"
    MAGENTA = "\033[35m"
    CYAN = "\033[36m"
    WHITE = "\033[37m"
    GRAY = "\033[90m"

    BRIGHT_RED = "\033[91m"
    BRIGHT_GREEN = "\033[92m"
    BRIGHT_YELLOW = "\033[93m"
    BRIGHT_CYAN = "\033[96m"


def supports_color() -> bool:
    """Check whether ANSI colors should be emitted on stdout."""
    if os.getenv("TTS_GATE_NO_COLOR", "0") == "1":
        return False
    if os.getenv("NO_COLOR"):
        return False
    if not hasattr(sys.stdout, "isatty") or not sys.stdout.isatty():
        return False

    if sys.platform == "win32":
        try:
            import ctypes
            kernel32 = ctypes.windll.kernel32
            # ENABLE_VIRTUAL_TERMINAL_PROCESSING on STD_OUTPUT_HANDLE
            kernel32.SetConsoleMode(kernel32.GetStdHandle(-11), 7)
            return True
        except Exception:
            return False

    return True


# Re-evaluated by configure_logging(); tests may flip it directly.
USE_COLORS = supports_color()


def colorize(text: str, color: str) -> str:
    """Wrap text in a color code if colors are enabled."""
    if not USE_COLORS:
        return text
    return f"{color}{text}{Colors.RESET}"


def get_tag_color(tag: str) -> str:
    """Get the color for a log tag (SUCCESS, FAIL, WARN, ...)."""
    tag_colors = {
        "SUCCESS": Colors.BRIGHT_GREEN,
        "FAIL": Colors.BRIGHT_RED,
        "ERROR": Colors.BRIGHT_RED,
        "WARN": Colors.BRIGHT_YELLOW,
        "DENY": Colors.BRIGHT_YELLOW,
        "INFO": Colors.BRIGHT_CYAN,
        "DEBUG": Colors.GRAY,
    }
    return tag_colors.get(tag.upper(), Colors.WHITE)
