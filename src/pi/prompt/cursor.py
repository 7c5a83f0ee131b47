"""Internal model of the terminal cursor for one prompt session.

The tracker knows where the cursor is without asking the terminal. Asking
needs a blocking round trip through the input stream, and that would
interleave with the keystrokes being read. The only query happens once,
when the session starts, to learn where the prompt begins.

Coordinates are 1-based ``(row, col)`` like the terminal's own. A rendered
length that fills its last row exactly leaves the cursor on the last
column (the terminal defers the wrap until the next character), so the
end of input is modelled that way too.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass, replace
from typing import Callable

from pi.prompt.escapes import Direction, move_to_row_column
from pi.prompt.utils import visible_width

logger = logging.getLogger(__name__)


@dataclass(frozen=True, order=True)
class CursorPosition:
    row: int
    col: int


class CursorTracker:
    """Tracks ``initial``, ``position`` and ``input_end`` for a session.

    ``position`` always stays within ``[initial, input_end]``. Moves that
    would leave that range are clamped and never raise.
    """

    def __init__(
        self,
        write: Callable[[str], None],
        initial: CursorPosition,
        columns: int,
        rows: int,
    ) -> None:
        self._write = write
        self.columns = max(columns, 1)
        self.rows = max(rows, 1)
        self.initial = initial
        self.position = initial
        self.input_end = initial

    # -- geometry -----------------------------------------------------------

    def cell_position(self, offset: int) -> CursorPosition:
        """Position of the cell *offset* cells after ``initial``."""
        total = self.initial.col - 1 + max(offset, 0)
        return CursorPosition(
            self.initial.row + total // self.columns,
            total % self.columns + 1,
        )

    def end_position(self, length: int) -> CursorPosition:
        """Where the cursor rests after printing *length* cells from ``initial``."""
        total = self.initial.col - 1 + max(length, 0)
        row_count = max(math.ceil(total / self.columns), 1)
        remainder = total % self.columns
        col = remainder + 1 if remainder or total == 0 else self.columns
        return CursorPosition(self.initial.row + row_count - 1, col)

    def recompute_input_end_position(
        self,
        prompt_length: int,
        buffer_length: int,
        echo_width: int = 1,
    ) -> CursorPosition:
        """Recompute ``input_end`` after the rendered input changed length.

        If the end lands below the last screen row the terminal has
        scrolled, so every tracked row moves up by the overflow.
        """
        end = self.end_position(prompt_length + buffer_length * echo_width)
        overflow = end.row - self.rows
        if overflow > 0:
            self.scroll(overflow)
            end = replace(end, row=end.row - overflow)
        self.input_end = end
        return end

    def recompute_insert_position(self, prompt_length: int, text: str) -> int:
        """Convert ``position`` back into an index into *text*."""
        if self.position >= self.input_end:
            return len(text)

        offset = (
            (self.position.row - self.initial.row) * self.columns
            + (self.position.col - self.initial.col)
            - prompt_length
        )
        if offset <= 0:
            return 0

        used = 0
        for index, ch in enumerate(text):
            width = visible_width(ch)
            if used + width > offset:
                return index
            used += width
        return len(text)

    def scroll(self, lines: int) -> None:
        """Shift every tracked row up after the screen scrolled *lines* rows."""
        if lines <= 0:
            return
        logger.debug("Screen scrolled by %d row(s)", lines)
        self.initial = replace(self.initial, row=self.initial.row - lines)
        self.position = replace(self.position, row=self.position.row - lines)
        self.input_end = replace(self.input_end, row=self.input_end.row - lines)

    # -- movement -----------------------------------------------------------

    def move_once(self, direction: Direction) -> bool:
        """Apply a single step in *direction*; return whether the cursor moved."""
        row, col = self.position.row, self.position.col
        initial, end = self.initial, self.input_end

        if direction is Direction.LEFT:
            if col == 1:
                if row - 1 < initial.row:
                    return False
                row, col = row - 1, self.columns
            else:
                if row == initial.row and col <= initial.col:
                    return False
                col -= 1
        elif direction is Direction.RIGHT:
            if row >= end.row:
                if col >= end.col:
                    return False
                col += 1
            elif col >= self.columns:
                row, col = row + 1, 1
            else:
                col += 1
        elif direction is Direction.UP:
            if row <= initial.row:
                return False
            row -= 1
            if row == initial.row:
                col = max(col, initial.col)
        elif direction is Direction.DOWN:
            if row >= end.row:
                return False
            row += 1
            if row == end.row:
                col = min(col, end.col)

        self.position = CursorPosition(row, col)
        return True

    def move_by(self, direction: Direction, n: int = 1) -> bool:
        """Move up to *n* steps, stopping at a bound, then write the result once."""
        moved = False
        for _ in range(n):
            if not self.move_once(direction):
                break
            moved = True

        if moved:
            self._write(move_to_row_column(self.position.row, self.position.col).escaped)
        return moved

    def move_to(self, target: CursorPosition) -> bool:
        """Clamp *target* into the input range and put the cursor there."""
        if target < self.initial:
            target = self.initial
        elif target > self.input_end:
            target = self.input_end

        if target == self.position:
            return False

        self.position = target
        self._write(move_to_row_column(target.row, target.col).escaped)
        return True

    def sync(self, position: CursorPosition) -> None:
        """Record where a write has already left the terminal cursor."""
        self.position = position
