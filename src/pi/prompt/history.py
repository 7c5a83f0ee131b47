"""History navigation for the line editor.

A :class:`HistoryProvider` owns the entries and a pointer into them. The
:class:`HistoryNavigator` turns UP/DOWN presses into buffer changes and
keeps a snapshot of the line the user was typing before they started
scrolling, so that scrolling back down past the newest entry restores it.
"""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from pi.prompt.session import PromptSession

logger = logging.getLogger(__name__)

DEFAULT_HISTORY_FILE = "~/.prompt_hist.txt"
DEFAULT_MAX_ENTRIES = 100


@runtime_checkable
class HistoryProvider(Protocol):
    """Stateful history with a pointer that starts just past the newest entry."""

    def at_start(self) -> bool: ...

    def at_penultimate(self) -> bool: ...

    def past_end(self) -> bool: ...

    def at_end(self) -> bool: ...

    def prev(self) -> str: ...

    def next(self) -> str: ...

    def reset(self) -> None: ...

    def push(self, line: str) -> None: ...

    def save(self) -> None: ...


# ---------------------------------------------------------------------------
# File-backed provider
# ---------------------------------------------------------------------------


class FileHistory:
    """History kept in memory and persisted as one entry per line.

    The file is read once on construction. :meth:`save` writes back only
    the newest *max_entries* entries.
    """

    def __init__(
        self,
        path: str | os.PathLike[str] | None = None,
        max_entries: int = DEFAULT_MAX_ENTRIES,
    ) -> None:
        self.path = Path(path if path is not None else DEFAULT_HISTORY_FILE).expanduser()
        self.max_entries = max_entries
        self._entries: list[str] = []
        if self.path.is_file():
            text = self.path.read_text(encoding="utf-8")
            self._entries = [line for line in text.split("\n") if line]
        self._index = len(self._entries)

    @property
    def entries(self) -> list[str]:
        return list(self._entries)

    def at_start(self) -> bool:
        return self._index <= 0

    def at_penultimate(self) -> bool:
        return self._index == len(self._entries) - 1

    def past_end(self) -> bool:
        return self._index >= len(self._entries)

    def at_end(self) -> bool:
        return self._index == len(self._entries)

    def prev(self) -> str:
        self._index = max(self._index - 1, 0)
        return self._entries[self._index] if self._entries else ""

    def next(self) -> str:
        self._index = min(self._index + 1, len(self._entries))
        if self._index < len(self._entries):
            return self._entries[self._index]
        return ""

    def reset(self) -> None:
        self._index = len(self._entries)

    def push(self, line: str) -> None:
        self._entries.append(line)

    def save(self) -> None:
        kept = self._entries[-self.max_entries :] if self.max_entries > 0 else []
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self.path.write_text("".join(f"{line}\n" for line in kept), encoding="utf-8")
        logger.debug("Saved %d history entries to %s", len(kept), self.path)


# ---------------------------------------------------------------------------
# Navigator
# ---------------------------------------------------------------------------


class HistoryNavigator:
    def __init__(self, provider: HistoryProvider) -> None:
        self.provider = provider

    def scroll_up(self, session: PromptSession) -> bool:
        """Replace the buffer with the previous entry; ``False`` at the oldest."""
        if self.provider.at_start():
            return False
        if self.provider.at_end():
            session.snapshot()
        session.set_buffer(self.provider.prev())
        return True

    def scroll_down(self, session: PromptSession) -> bool:
        """Move towards the newest entry, then back to the line being typed."""
        if self.provider.past_end():
            return False
        if self.provider.at_penultimate():
            self.provider.next()
            session.restore_snapshot()
        else:
            session.set_buffer(self.provider.next())
        return True

    def accept(self, line: str, masked: bool) -> None:
        """Record an accepted line; masked and empty lines are never stored."""
        if line and not masked:
            self.provider.push(line)
            logger.debug("Pushed line to history")
        self.provider.reset()
