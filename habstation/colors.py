"""ANSI colours for console output."""

from __future__ import annotations

import sys
from enum import Enum


class Color(Enum):
    """ANSI escape sequences used on the console."""

    BLACK = "\033[1;30m"
    RED = "\033[1;31m"
    GREEN = "\033[1;32m"
    BROWN = "\033[1;33m"
    BLUE = "\033[1;34m"
    MAGENTA = "\033[1;35m"
    CYAN = "\033[1;36m"
    LIGHTGREY = "\033[1;37m"
    OFF = "\033[0m"
    CLEAR = "\033[2K"

    def __str__(self) -> str:
        return self.value


def paint(text: str, color: Color, enabled: bool | None = None) -> str:
    """Wrap ``text`` in ``color`` and a reset sequence.

    Colours are used only on Linux unless ``enabled`` says otherwise.
    """
    if enabled is None:
        enabled = sys.platform.startswith("linux")
    if not enabled:
        return text
    return f"{color.value}{text}{Color.OFF.value}"