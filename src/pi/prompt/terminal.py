"""Blocking terminal device access.

Provides a ``TerminalIO`` protocol and a concrete ``TtyTerminal`` that
reads keystrokes straight from the controlling terminal (``/dev/tty``), so
prompting works even when stdin is a pipe. Output goes to ``sys.stdout``.

Raw mode here turns off echo, line buffering and signal generation, but
keeps output post-processing on so a written ``\\n`` still returns the
carriage.
"""

from __future__ import annotations

import logging
import os
import sys
import termios
from typing import Protocol

from pi.prompt.escapes import parse_cursor_position_report, request_cursor_position

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------

DEFAULT_DEVICE = "/dev/tty"
_DEFAULT_COLUMNS = 80
_DEFAULT_ROWS = 24
# Upper bound on a cursor position report (ESC [ row ; col R)
_MAX_REPORT_BYTES = 32

# termios attribute list indices
_IFLAG, _CFLAG, _LFLAG, _CC = 0, 2, 3, 6


# ---------------------------------------------------------------------------
# TerminalIO protocol
# ---------------------------------------------------------------------------


class TerminalIO(Protocol):
    """Interface the line editor uses to talk to the terminal."""

    def open_blocking(self) -> int: ...

    def is_raw_mode(self, handle: int) -> bool: ...

    def set_raw_mode(self, handle: int, enabled: bool) -> None: ...

    def read_bytes(self, handle: int, max_len: int) -> bytes: ...

    def query_cursor_position(self, handle: int) -> tuple[int, int] | None: ...

    def close(self, handle: int) -> None: ...

    def write(self, data: str) -> None: ...

    @property
    def columns(self) -> int: ...

    @property
    def rows(self) -> int: ...


# ---------------------------------------------------------------------------
# TtyTerminal implementation
# ---------------------------------------------------------------------------


class TtyTerminal:
    """POSIX terminal backed by the controlling tty device and ``sys.stdout``."""

    def __init__(self, device: str = DEFAULT_DEVICE) -> None:
        self.device = device
        self._original_attrs: list | None = None
        self._write_log_path: str = os.environ.get("PI_PROMPT_WRITE_LOG", "")

    # -- properties ---------------------------------------------------------

    @property
    def columns(self) -> int:
        try:
            return os.get_terminal_size(sys.stdout.fileno()).columns
        except (ValueError, OSError):
            return _DEFAULT_COLUMNS

    @property
    def rows(self) -> int:
        try:
            return os.get_terminal_size(sys.stdout.fileno()).lines
        except (ValueError, OSError):
            return _DEFAULT_ROWS

    # -- device -------------------------------------------------------------

    def open_blocking(self) -> int:
        handle = os.open(self.device, os.O_RDWR | os.O_NOCTTY)
        logger.debug("Opened %s as fd %d", self.device, handle)
        return handle

    def close(self, handle: int) -> None:
        os.close(handle)

    def read_bytes(self, handle: int, max_len: int) -> bytes:
        return os.read(handle, max_len)

    # -- raw mode -----------------------------------------------------------

    def is_raw_mode(self, handle: int) -> bool:
        return _is_raw_mode(handle)

    def set_raw_mode(self, handle: int, enabled: bool) -> None:
        """Enter raw mode, or restore the attributes saved when entering it.

        Every enable saves the attributes current at that moment, so a
        later disable never restores a state the caller has since changed.
        """
        if enabled:
            attrs = termios.tcgetattr(handle)
            self._original_attrs = attrs
            termios.tcsetattr(handle, termios.TCSADRAIN, _make_raw(attrs))
        elif self._original_attrs is not None:
            termios.tcsetattr(handle, termios.TCSADRAIN, self._original_attrs)
            self._original_attrs = None

    # -- cursor -------------------------------------------------------------

    def query_cursor_position(self, handle: int) -> tuple[int, int] | None:
        """Ask the terminal where the cursor is; ``None`` if it cannot answer.

        Must be called in raw mode, otherwise the report is line buffered
        and echoed.
        """
        if not sys.stdout.isatty():
            return None

        self.write(request_cursor_position().escaped)
        reply = b""
        while len(reply) < _MAX_REPORT_BYTES:
            chunk = os.read(handle, 1)
            if not chunk:
                break
            reply += chunk
            if chunk == b"R":
                break
        return parse_cursor_position_report(reply.decode("ascii", errors="replace"))

    # -- write --------------------------------------------------------------

    def write(self, data: str) -> None:
        """Write data to stdout and optionally to the write log."""
        sys.stdout.write(data)
        sys.stdout.flush()

        if self._write_log_path:
            try:
                with open(self._write_log_path, "a") as f:
                    f.write(data)
            except OSError:
                pass


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _is_raw_mode(fd: int) -> bool:
    """Heuristic check for whether the terminal fd is already in raw mode.

    Raw mode is characterised by the absence of ICANON and ECHO in the
    local-mode flags.
    """
    try:
        attrs = termios.tcgetattr(fd)
        lflag = attrs[_LFLAG]
        return not bool(lflag & (termios.ICANON | termios.ECHO))
    except termios.error:
        return False


def _make_raw(attrs: list) -> list:
    """Return a raw-mode copy of *attrs* that leaves output flags alone."""
    raw = list(attrs)
    raw[_IFLAG] &= ~(
        termios.BRKINT | termios.ICRNL | termios.INPCK | termios.ISTRIP | termios.IXON
    )
    raw[_CFLAG] |= termios.CS8
    raw[_LFLAG] &= ~(termios.ECHO | termios.ICANON | termios.IEXTEN | termios.ISIG)
    cc = list(raw[_CC])
    cc[termios.VMIN] = 1
    cc[termios.VTIME] = 0
    raw[_CC] = cc
    return raw
