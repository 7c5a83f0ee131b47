"""Virtual terminal for testing -- implements the TerminalIO protocol in-memory.

This module provides a ``VirtualTerminal`` class that satisfies the
``pi.prompt.terminal.TerminalIO`` protocol without performing any real I/O.
Reads are played back from a script, every write is recorded, and the
writes are also applied to a small VT100 screen model so tests can assert
on what the user would actually see and where the cursor ends up.
"""

from __future__ import annotations

import re
from collections import deque
from typing import Iterable, Union

from pi.prompt.utils import visible_width

_CSI_RE = re.compile(r"\x1b\[([0-9;?]*)([@-~])")

ScriptItem = Union[str, bytes, int]


def script(*items: ScriptItem) -> list[bytes]:
    """Build a list of reads.

    Strings are typed one character per read, ints are single key codes and
    bytes objects are delivered as one read (escape sequences, pastes).
    """
    reads: list[bytes] = []
    for item in items:
        if isinstance(item, int):
            reads.append(bytes([item]))
        elif isinstance(item, bytes):
            reads.append(item)
        else:
            reads.extend(ch.encode("utf-8") for ch in item)
    return reads


class VirtualTerminal:
    """In-memory terminal that records all writes for test inspection.

    Parameters
    ----------
    rows:
        Number of terminal rows (height).
    columns:
        Number of terminal columns (width).
    inputs:
        Byte chunks returned by successive ``read_bytes`` calls.
    start_row, start_col:
        Where the cursor sits when the prompt starts.
    cursor_report:
        When ``False`` the cursor position query gets no answer.
    """

    def __init__(
        self,
        rows: int = 24,
        columns: int = 80,
        inputs: Iterable[bytes] = (),
        start_row: int = 1,
        start_col: int = 1,
        raw: bool = False,
        cursor_report: bool = True,
    ) -> None:
        self._rows = rows
        self._columns = columns
        self._inputs: deque[bytes] = deque(inputs)
        self._buffer: list[str] = []
        self.screen: list[list[str]] = [[" "] * columns for _ in range(rows)]
        self.cursor_row = start_row
        self.cursor_col = start_col
        self._pending_wrap = False
        self._saved: tuple[int, int] | None = None
        self.scrolled = 0
        self.raw = raw
        self.raw_calls: list[bool] = []
        self.is_open = False
        self.open_count = 0
        self.close_count = 0
        self.cursor_report = cursor_report

    # -- TerminalIO protocol: properties ------------------------------------

    @property
    def rows(self) -> int:
        return self._rows

    @property
    def columns(self) -> int:
        return self._columns

    # -- TerminalIO protocol: device ----------------------------------------

    def open_blocking(self) -> int:
        self.is_open = True
        self.open_count += 1
        return 3

    def close(self, handle: int) -> None:
        self.is_open = False
        self.close_count += 1

    def is_raw_mode(self, handle: int) -> bool:
        return self.raw

    def set_raw_mode(self, handle: int, enabled: bool) -> None:
        self.raw_calls.append(enabled)
        self.raw = enabled

    def read_bytes(self, handle: int, max_len: int) -> bytes:
        """Return the next scripted read, or ``b""`` once the script is spent."""
        if not self._inputs:
            return b""
        chunk = self._inputs.popleft()
        if len(chunk) > max_len:
            self._inputs.appendleft(chunk[max_len:])
            chunk = chunk[:max_len]
        return chunk

    def query_cursor_position(self, handle: int) -> tuple[int, int] | None:
        if not self.cursor_report:
            return None
        return self.cursor_row, self.cursor_col

    # -- TerminalIO protocol: output ----------------------------------------

    def write(self, data: str) -> None:
        """Append *data* to the internal buffer and apply it to the screen."""
        self._buffer.append(data)
        self._apply(data)

    # -- Test helpers -------------------------------------------------------

    @property
    def output(self) -> str:
        """Return everything written to the terminal as a single string."""
        return "".join(self._buffer)

    @property
    def write_count(self) -> int:
        """Return the number of individual ``write`` calls made."""
        return len(self._buffer)

    @property
    def writes(self) -> list[str]:
        return list(self._buffer)

    def clear_buffer(self) -> None:
        """Discard all recorded output (the screen is kept)."""
        self._buffer.clear()

    @property
    def cursor(self) -> tuple[int, int]:
        return self.cursor_row, self.cursor_col

    def line(self, row: int) -> str:
        """Text of screen *row* (1-based) with trailing blanks removed."""
        return "".join(self.screen[row - 1]).rstrip()

    def screen_lines(self) -> list[str]:
        return [self.line(row) for row in range(1, self._rows + 1)]

    # -- Screen model -------------------------------------------------------

    def _apply(self, data: str) -> None:
        i = 0
        while i < len(data):
            ch = data[i]
            if ch == "\x1b":
                match = _CSI_RE.match(data, i)
                if match:
                    self._csi(match.group(1), match.group(2))
                    i = match.end()
                else:
                    i += 2
                continue

            if ch == "\r":
                self.cursor_col = 1
                self._pending_wrap = False
            elif ch == "\n":
                # Output post-processing turns LF into CR LF
                self.cursor_col = 1
                self._pending_wrap = False
                self._line_feed()
            elif ch == "\t":
                self._pending_wrap = False
                self.cursor_col = min((self.cursor_col - 1) // 8 * 8 + 9, self._columns)
            elif ch == "\b":
                self._pending_wrap = False
                self.cursor_col = max(self.cursor_col - 1, 1)
            elif ord(ch) >= 0x20:
                self._put(ch)
            i += 1

    def _put(self, ch: str) -> None:
        width = visible_width(ch)
        if width == 0:
            return
        if self._pending_wrap:
            self._pending_wrap = False
            self.cursor_col = 1
            self._line_feed()
        if width == 2 and self.cursor_col == self._columns:
            self.cursor_col = 1
            self._line_feed()

        row = self.screen[self.cursor_row - 1]
        row[self.cursor_col - 1] = ch
        if width == 2:
            row[self.cursor_col] = ""

        if self.cursor_col + width - 1 >= self._columns:
            self.cursor_col = self._columns
            self._pending_wrap = True
        else:
            self.cursor_col += width

    def _line_feed(self) -> None:
        if self.cursor_row >= self._rows:
            self.screen.pop(0)
            self.screen.append([" "] * self._columns)
            self.scrolled += 1
        else:
            self.cursor_row += 1

    def _csi(self, params: str, final: str) -> None:
        args = [int(p) if p.isdigit() else 0 for p in params.split(";")] if params else []
        n = args[0] if args and args[0] > 0 else 1

        if final in "Hf":
            row = args[0] if len(args) > 0 and args[0] > 0 else 1
            col = args[1] if len(args) > 1 and args[1] > 0 else 1
            self.cursor_row = min(row, self._rows)
            self.cursor_col = min(col, self._columns)
        elif final == "A":
            self.cursor_row = max(self.cursor_row - n, 1)
        elif final == "B":
            self.cursor_row = min(self.cursor_row + n, self._rows)
        elif final == "C":
            self.cursor_col = min(self.cursor_col + n, self._columns)
        elif final == "D":
            self.cursor_col = max(self.cursor_col - n, 1)
        elif final == "G":
            self.cursor_col = min(n, self._columns)
        elif final == "K":
            self._erase_line(args[0] if args else 0)
        elif final == "J":
            self._erase_display(args[0] if args else 0)
        elif final == "s":
            self._saved = (self.cursor_row, self.cursor_col)
        elif final == "u":
            if self._saved is not None:
                self.cursor_row, self.cursor_col = self._saved
        else:
            # Device status report requests and anything else leave the screen alone
            return
        self._pending_wrap = False

    def _erase_line(self, mode: int) -> None:
        row = self.screen[self.cursor_row - 1]
        if mode == 0:
            cols = range(self.cursor_col - 1, self._columns)
        elif mode == 1:
            cols = range(0, self.cursor_col)
        else:
            cols = range(self._columns)
        for c in cols:
            row[c] = " "

    def _erase_display(self, mode: int) -> None:
        if mode == 0:
            self._erase_line(0)
            rows = range(self.cursor_row, self._rows)
        elif mode == 1:
            self._erase_line(1)
            rows = range(0, self.cursor_row - 1)
        else:
            rows = range(self._rows)
        for r in rows:
            self.screen[r] = [" "] * self._columns
