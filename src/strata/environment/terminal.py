"""ANSI styling for error messages.

Whether to style is decided once, at import: ``FORCE_COLOR`` turns styling
on, otherwise ``NO_COLOR`` turns it off, otherwise it follows whether
stdout is a terminal.
"""

from __future__ import annotations

import os
import re
import sys
from typing import Literal

Style = Literal["bold", "dim", "cyan", "yellow", "green", "bright_red", "bright_green"]

_SGR: dict[str, int] = {
    "bold": 1,
    "dim": 2,
    "green": 32,
    "yellow": 33,
    "cyan": 36,
    "bright_red": 91,
    "bright_green": 92,
}
_RESET = "\033[0m"
_ANSI_SEQUENCE = re.compile(r"\x1b\[[0-9;]*[A-Za-z]")


def _should_use_colors() -> bool:
    if os.environ.get("FORCE_COLOR"):
        return True
    if os.environ.get("NO_COLOR"):
        return False
    return sys.stdout.isatty()


_USE_COLORS = _should_use_colors()


def supports_color() -> bool:
    return _USE_COLORS


def colorize(text: str, *styles: Style) -> str:
    """Wrap ``text`` in the given styles; plain text when styling is off."""
    if not (_USE_COLORS and styles):
        return text
    codes = ";".join(str(_SGR[style]) for style in styles)
    return f"\033[{codes}m{text}{_RESET}"


def strip_colors(text: str) -> str:
    return _ANSI_SEQUENCE.sub("", text)


# Roles used by the exception formatters


def location(text: str) -> str:
    return colorize(text, "cyan")


def hint(text: str) -> str:
    return colorize(text, "green")


def suggestion(text: str) -> str:
    return colorize(text, "bold", "bright_green")


def dim_text(text: str) -> str:
    return colorize(text, "dim")


def format_source_line(lineno: int, content: str, is_error: bool = False) -> str:
    """``> 12 | content`` for the failing line, ``  11 | content`` around it."""
    gutter = colorize(f"{'>' if is_error else ' '}{lineno:>3}", "yellow")
    body = colorize(content, "bright_red") if is_error else dim_text(content)
    return f"{gutter} | {body}"
