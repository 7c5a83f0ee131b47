"""Byte-level key codes and escape-sequence key recognition.

The line editor reads at most three bytes at a time, which covers every
cursor-key sequence recognised here in both its CSI (``ESC [``) and SS3
(``ESC O``) forms.
"""

from __future__ import annotations

import sys
from enum import IntEnum

# Longest recognised key sequence, in bytes
READ_SIZE = 3


class KeyCode(IntEnum):
    """Single-byte key codes as delivered by a terminal in raw mode."""

    SIGINT = 3
    EOT = 4
    WIN_BACKSPACE = 8
    TAB = 9
    ENTER = 13
    ESCAPE = 27
    SPACE = 32
    BACKSPACE = 127


class Key:
    """Named keys produced by :func:`parse_sequence`."""

    up = "up"
    down = "down"
    left = "left"
    right = "right"
    home = "home"
    end = "end"


KEY_SEQUENCES: dict[str, str] = {
    "\x1b[A": Key.up,
    "\x1b[B": Key.down,
    "\x1b[C": Key.right,
    "\x1b[D": Key.left,
    "\x1b[H": Key.home,
    "\x1b[F": Key.end,
    "\x1bOA": Key.up,
    "\x1bOB": Key.down,
    "\x1bOC": Key.right,
    "\x1bOD": Key.left,
    "\x1bOH": Key.home,
    "\x1bOF": Key.end,
}


def parse_sequence(data: str) -> str | None:
    """Return the key name for a recognised escape sequence, else ``None``."""
    return KEY_SEQUENCES.get(data)


def is_backspace(code: int, platform: str | None = None) -> bool:
    """DEL (127) everywhere; BS (8) is also backspace on Windows consoles."""
    if code == KeyCode.BACKSPACE:
        return True
    platform = sys.platform if platform is None else platform
    return platform == "win32" and code == KeyCode.WIN_BACKSPACE


def is_printable(code: int) -> bool:
    """True for bytes in the printable ASCII range (space through tilde)."""
    return KeyCode.SPACE <= code < KeyCode.BACKSPACE


def normalize_key_code(key: int | str) -> int:
    """Accept a byte value or a one-character string and return the byte value."""
    if isinstance(key, str):
        if len(key) != 1:
            raise ValueError(f"expected a single character, got {key!r}")
        key = ord(key)
    if not 0 <= key <= 255:
        raise ValueError(f"key code {key} is outside the byte range 0..255")
    return int(key)
