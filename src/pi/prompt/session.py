"""Per-call editing state.

A :class:`PromptSession` is created when a prompt starts reading and is
thrown away when it returns. Nothing in it outlives the call; history is
the only state kept across calls and it belongs to the history provider.
"""

from __future__ import annotations

from dataclasses import dataclass, field

from pi.prompt.autocomplete import CycleState
from pi.prompt.cursor import CursorTracker
from pi.prompt.utils import visible_width


@dataclass
class PromptSession:
    prompt: str
    prompt_width: int
    tracker: CursorTracker
    buffer: str = ""
    insert_position: int = 0
    saved_buffer: str = ""
    saved_insert_position: int = 0
    cycle: CycleState = field(default_factory=CycleState)
    num_rows_to_clear: int = 0
    # Input display as last written, used to diff the next redraw
    last_render: str = ""

    # -- buffer edits -------------------------------------------------------

    def set_buffer(self, text: str, insert_position: int | None = None) -> None:
        """Replace the whole buffer; the insert point defaults to the end."""
        self.buffer = text
        if insert_position is None:
            insert_position = len(text)
        self.insert_position = max(0, min(insert_position, len(text)))

    def insert(self, text: str) -> None:
        """Insert *text* at the insert point and move the point past it."""
        if not text:
            return
        i = self.insert_position
        self.buffer = self.buffer[:i] + text + self.buffer[i:]
        self.insert_position = i + len(text)

    def delete_before(self) -> bool:
        """Delete the character before the insert point; ``False`` at index 0."""
        i = self.insert_position
        if i == 0:
            return False
        self.buffer = self.buffer[: i - 1] + self.buffer[i:]
        self.insert_position = i - 1
        return True

    def snapshot(self) -> None:
        self.saved_buffer = self.buffer
        self.saved_insert_position = self.insert_position

    def restore_snapshot(self) -> None:
        self.set_buffer(self.saved_buffer, self.saved_insert_position)

    # -- display ------------------------------------------------------------

    def display(self, echo: str | None) -> str:
        """What the terminal shows for the buffer: itself, or the mask per character."""
        if echo is None:
            return self.buffer
        return echo * len(self.buffer)

    def display_prefix(self, echo: str | None, length: int) -> str:
        if echo is None:
            return self.buffer[:length]
        return echo * length

    def insert_offset(self, echo: str | None) -> int:
        """Cell offset of the insert point from the start of the prompt line."""
        return self.prompt_width + visible_width(
            self.display_prefix(echo, self.insert_position)
        )
