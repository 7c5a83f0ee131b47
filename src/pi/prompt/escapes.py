"""ANSI escape sequences for cursor movement and line/screen erasure.

Every builder returns an :class:`EscapeSequence` carrying the sequence body
(``raw``, without the leading ESC) and the full ``escaped`` form. Sequences
are joined with plain strings through :func:`concat` so a whole redraw goes
out in a single write.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Union

from pi.prompt.utils import strip_control

ESC = "\x1b"

# ---------------------------------------------------------------------------
# Final bytes
# ---------------------------------------------------------------------------

_ERASE_LINE = "K"
_ERASE_DISPLAY = "J"
_MOVE_TO_COLUMN = "G"
_MOVE_TO_ROW_COLUMN = "H"
_SAVE_CURSOR = "s"
_RESTORE_CURSOR = "u"
_DEVICE_STATUS_REPORT = "6n"

_CURSOR_REPORT_RE = re.compile(r"\x1b\[(\d+);(\d+)R")
# A CSI or SS3 sequence cut off before its final byte, at the end of a read
_INCOMPLETE_SEQUENCE_RE = re.compile(r"\x1b(?:\[[0-?]*[ -/]*|O)?\Z")
# Longest unfinished sequence worth holding on to
MAX_PENDING_SEQUENCE = 16


class Direction(str, Enum):
    """Cursor movement directions, valued by their CSI final byte."""

    UP = "A"
    DOWN = "B"
    RIGHT = "C"
    LEFT = "D"


class LineErasureMethod(str, Enum):
    """Parameter of the ``EL`` (erase in line) sequence."""

    CURSOR_TO_END = ""
    BEGINNING_TO_CURSOR = "1"
    ENTIRE = "2"


@dataclass(frozen=True)
class EscapeSequence:
    """A single escape sequence, e.g. ``raw="[3D"`` for *move left 3*."""

    raw: str

    @property
    def escaped(self) -> str:
        return ESC + self.raw

    def exec(self, write: Callable[[str], None]) -> None:
        """Write the sequence through *write*."""
        write(self.escaped)

    def __str__(self) -> str:
        return self.escaped


Part = Union[EscapeSequence, str]


def move(direction: Direction, count: int | None = None) -> EscapeSequence:
    """Move the cursor *count* cells in *direction*; the count is omitted when <= 1."""
    n = str(count) if count is not None and count > 1 else ""
    return EscapeSequence(f"[{n}{Direction(direction).value}")


def erase_line(
    method: LineErasureMethod = LineErasureMethod.CURSOR_TO_END,
) -> EscapeSequence:
    return EscapeSequence(f"[{LineErasureMethod(method).value}{_ERASE_LINE}")


def erase_display() -> EscapeSequence:
    """Erase from the cursor to the end of the screen."""
    return EscapeSequence(f"[{_ERASE_DISPLAY}")


def move_to_column(n: int) -> EscapeSequence:
    return EscapeSequence(f"[{max(n, 1)}{_MOVE_TO_COLUMN}")


def move_to_row_column(row: int, col: int) -> EscapeSequence:
    return EscapeSequence(f"[{max(row, 1)};{max(col, 1)}{_MOVE_TO_ROW_COLUMN}")


def save_cursor() -> EscapeSequence:
    return EscapeSequence(f"[{_SAVE_CURSOR}")


def restore_cursor() -> EscapeSequence:
    return EscapeSequence(f"[{_RESTORE_CURSOR}")


def request_cursor_position() -> EscapeSequence:
    """Ask the terminal to report its cursor as ``ESC[<row>;<col>R``."""
    return EscapeSequence(f"[{_DEVICE_STATUS_REPORT}")


def parse_cursor_position_report(text: str) -> tuple[int, int] | None:
    """Extract ``(row, col)`` from a cursor position report, or ``None``."""
    match = _CURSOR_REPORT_RE.search(text)
    if match is None:
        return None
    return int(match.group(1)), int(match.group(2))


def concat(*parts: Part) -> str:
    """Join plain strings and escape sequences into one output string."""
    return "".join(
        part if isinstance(part, str) else part.escaped for part in parts
    )


def strip_sequences(text: str) -> str:
    """Drop escape sequences, NUL and other control bytes from raw input."""
    return strip_control(text)


def split_incomplete_sequence(text: str) -> tuple[str, str]:
    """Split off a trailing escape sequence that is still missing its final byte.

    Returns ``(complete, pending)``. Keys like Ctrl-Right (``ESC[1;5C``) are
    longer than one read and arrive in pieces; the pending part is meant to
    be prefixed to the next read.
    """
    match = _INCOMPLETE_SEQUENCE_RE.search(text)
    if match is None or len(match.group()) > MAX_PENDING_SEQUENCE:
        return text, ""
    return text[: match.start()], match.group()
