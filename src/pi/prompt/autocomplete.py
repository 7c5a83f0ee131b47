"""Autocomplete behaviors: cycle, suggest and hybrid.

The engine decides what the buffer becomes and what should be shown; the
line editor does the actual terminal writes. Search functions are plain
synchronous callables ``(query) -> list of candidates``.

- **cycle** replaces the buffer with each result in turn. Results come from
  the buffer as it was on the first trigger of the run, so repeated
  triggers walk a stable list.
- **suggest** searches the live buffer and lists the matches in a table
  below the input, optionally filling in their common prefix.
- **hybrid** cycles like *cycle* and shows the table like *suggest*.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass, field
from enum import Enum
from typing import Callable, Sequence

logger = logging.getLogger(__name__)

SearchFn = Callable[[str], Sequence[str]]
# Rows free below the input when the buffer holds the given text
RoomFn = Callable[[str], int]


class AutocompleteBehavior(str, Enum):
    CYCLE = "cycle"
    SUGGEST = "suggest"
    HYBRID = "hybrid"


class CompletionAction(str, Enum):
    """What the editor should do with a :class:`Completion`."""

    # Nothing matched: echo a tab, leave the buffer alone
    EMIT_TAB = "emit_tab"
    # Redraw the input line with the new buffer, no table
    REDRAW = "redraw"
    # Redraw the input line and draw the suggestion table below it
    SHOW_TABLE = "show_table"


# ---------------------------------------------------------------------------
# Shared helpers
# ---------------------------------------------------------------------------


def common_starting_substring(items: Sequence[str]) -> str | None:
    """Longest prefix shared by every string in *items*.

    Only the lexicographically first and last entries are compared: any
    prefix they share is shared by everything sorted between them.
    """
    if not items:
        return None
    if len(items) == 1:
        return items[0]

    ordered = sorted(items)
    first, last = ordered[0], ordered[-1]
    i = 0
    limit = min(len(first), len(last))
    while i < limit and first[i] == last[i]:
        i += 1
    return first[:i] or None


@dataclass
class SuggestionTable:
    """Result cells laid out in rows of equal length."""

    rows: list[list[str]] = field(default_factory=list)
    # Number of real results in the table; the "N more…" slot is not one
    shown: int = 0
    omitted: int = 0

    @property
    def row_count(self) -> int:
        return len(self.rows)


def more_indicator(omitted: int) -> str:
    return f"{omitted} more…"


def layout_results(
    results: Sequence[str],
    col_count: int,
    max_rows: int | None = None,
) -> SuggestionTable:
    """Partition *results* into rows of *col_count* cells.

    The last row is padded with empty cells. If the table needs more than
    *max_rows* rows, it keeps ``max_rows * col_count - 1`` results and puts
    an ``"<N> more…"`` indicator in the last visible slot.
    """
    col_count = max(col_count, 1)
    if not results:
        return SuggestionTable()
    if max_rows is not None and max_rows <= 0:
        return SuggestionTable(omitted=len(results))

    cells = list(results)
    omitted = 0
    if max_rows is not None and math.ceil(len(cells) / col_count) > max_rows:
        keep = max_rows * col_count - 1
        omitted = len(cells) - keep
        cells = cells[:keep] + [more_indicator(omitted)]

    shown = len(results) - omitted
    rows = [cells[i : i + col_count] for i in range(0, len(cells), col_count)]
    rows[-1].extend([""] * (col_count - len(rows[-1])))
    return SuggestionTable(rows=rows, shown=shown, omitted=omitted)


# ---------------------------------------------------------------------------
# Engine
# ---------------------------------------------------------------------------


@dataclass
class CycleState:
    """Position within a run of consecutive triggers."""

    index: int = 0
    search_term: str | None = None

    def reset(self) -> None:
        self.index = 0
        self.search_term = None


@dataclass
class Completion:
    action: CompletionAction
    buffer: str
    table: SuggestionTable | None = None
    # Full result list behind ``table``, for re-layout when room changes
    results: list[str] = field(default_factory=list)


class AutocompleteEngine:
    def __init__(
        self,
        search_fn: SearchFn,
        behavior: AutocompleteBehavior = AutocompleteBehavior.CYCLE,
        *,
        fill: bool = False,
        sticky: bool = False,
        col_count: int = 3,
    ) -> None:
        self.search_fn = search_fn
        self.behavior = AutocompleteBehavior(behavior)
        self.fill = fill
        self.sticky = sticky
        self.col_count = max(col_count, 1)

    @property
    def is_sticky(self) -> bool:
        """Sticky triggering only has a meaning for the suggest behavior."""
        return self.sticky and self.behavior is AutocompleteBehavior.SUGGEST

    def complete(
        self,
        buffer: str,
        state: CycleState,
        *,
        is_backspace: bool = False,
        max_rows: int | None = None,
        room_for: RoomFn | None = None,
    ) -> Completion:
        if self.behavior is AutocompleteBehavior.CYCLE:
            return self.cycle(buffer, state)
        if self.behavior is AutocompleteBehavior.SUGGEST:
            return self.suggest(buffer, is_backspace=is_backspace, max_rows=max_rows)
        return self.hybrid(buffer, state, max_rows=max_rows, room_for=room_for)

    def search(self, term: str) -> list[str]:
        results = list(self.search_fn(term))
        logger.debug("Autocomplete search %r returned %d result(s)", term, len(results))
        return results

    # -- behaviors ----------------------------------------------------------

    def cycle(self, buffer: str, state: CycleState) -> Completion:
        if state.search_term is None:
            state.search_term = buffer

        results = self.search(state.search_term)
        if not results:
            return Completion(CompletionAction.EMIT_TAB, buffer)

        selected = results[state.index % len(results)]
        state.index = (state.index + 1) % len(results)
        return Completion(CompletionAction.REDRAW, selected)

    def suggest(
        self,
        buffer: str,
        *,
        is_backspace: bool = False,
        max_rows: int | None = None,
    ) -> Completion:
        results = self.search(buffer)
        if not results:
            if self.sticky:
                return Completion(CompletionAction.REDRAW, buffer)
            return Completion(CompletionAction.EMIT_TAB, buffer)

        if len(results) == 1 and not is_backspace:
            return Completion(CompletionAction.REDRAW, results[0])

        if self.fill and not is_backspace:
            common = common_starting_substring(results)
            if common is not None and len(common) > len(buffer):
                buffer = common

        table = layout_results(results, self.col_count, max_rows)
        return Completion(CompletionAction.SHOW_TABLE, buffer, table, results)

    def hybrid(
        self,
        buffer: str,
        state: CycleState,
        *,
        max_rows: int | None = None,
        room_for: RoomFn | None = None,
    ) -> Completion:
        """Cycle over the results shown in the table.

        With *room_for*, the table is sized so that it still fits below the
        input whichever shown result is selected. Long results shrink the
        table until every result left in it passes that check.
        """
        if state.search_term is None:
            state.search_term = buffer

        results = self.search(state.search_term)
        if not results:
            return Completion(CompletionAction.EMIT_TAB, buffer)
        if len(results) == 1:
            return Completion(CompletionAction.REDRAW, results[0])

        if room_for is not None:
            max_rows = room_for(state.search_term)
        table = layout_results(results, self.col_count, max_rows)
        if room_for is not None:
            while table.shown:
                fit = min(room_for(result) for result in results[: table.shown])
                if fit >= table.row_count:
                    break
                table = layout_results(results, self.col_count, fit)
        modulus = table.shown or 1
        selected = results[state.index % modulus]
        state.index = (state.index + 1) % modulus
        return Completion(CompletionAction.SHOW_TABLE, selected, table, results)
