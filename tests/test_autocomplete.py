"""Tests for pi.prompt.autocomplete -- the three completion behaviors."""

from __future__ import annotations

import pytest

from pi.prompt.autocomplete import (
    AutocompleteBehavior,
    AutocompleteEngine,
    CompletionAction,
    CycleState,
    common_starting_substring,
    layout_results,
)

INTER = [
    "interspecies",
    "interstelar",
    "interstate",
    "interesting",
    "interoperating",
    "intolerant",
]


def prefix_search(words: list[str]):
    return lambda query: [w for w in words if w.startswith(query)]


# ---------------------------------------------------------------------------
# common_starting_substring
# ---------------------------------------------------------------------------


class TestCommonStartingSubstring:
    def test_empty_list(self) -> None:
        assert common_starting_substring([]) is None

    def test_single_item(self) -> None:
        assert common_starting_substring(["solo"]) == "solo"

    def test_identical_items(self) -> None:
        assert common_starting_substring(["hello", "hello"]) == "hello"

    def test_no_shared_prefix(self) -> None:
        assert common_starting_substring(["abc", "def"]) is None

    def test_shared_prefix(self) -> None:
        assert common_starting_substring(INTER) == "int"
        assert common_starting_substring(INTER[:5]) == "inter"

    @pytest.mark.parametrize(
        "items",
        [
            ["flow", "flower", "flight"],
            ["b", "ab", "abc"],
            ["prefix", "pre", "prelude", "present"],
        ],
    )
    def test_matches_prefix_of_sorted_extremes(self, items: list[str]) -> None:
        low, high = min(items), max(items)
        n = 0
        while n < min(len(low), len(high)) and low[n] == high[n]:
            n += 1
        assert common_starting_substring(items) == (low[:n] or None)


# ---------------------------------------------------------------------------
# layout_results
# ---------------------------------------------------------------------------


class TestLayoutResults:
    def test_empty_results(self) -> None:
        table = layout_results([], 3)
        assert table.row_count == 0

    def test_last_row_is_padded(self) -> None:
        table = layout_results(["a", "b", "c", "d"], 3)
        assert table.rows == [["a", "b", "c"], ["d", "", ""]]
        assert table.shown == 4

    def test_truncation_adds_more_indicator(self) -> None:
        table = layout_results([str(i) for i in range(10)], 3, max_rows=2)
        assert table.rows == [["0", "1", "2"], ["3", "4", "5 more…"]]
        assert table.omitted == 5
        assert table.shown == 5

    def test_fits_exactly_without_indicator(self) -> None:
        table = layout_results([str(i) for i in range(6)], 3, max_rows=2)
        assert table.omitted == 0
        assert table.row_count == 2

    def test_no_room_gives_empty_table(self) -> None:
        table = layout_results(["a", "b"], 3, max_rows=0)
        assert table.row_count == 0
        assert table.omitted == 2


# ---------------------------------------------------------------------------
# CYCLE
# ---------------------------------------------------------------------------


class TestCycle:
    """Replace the buffer with each result in turn."""

    def test_wraps_after_every_result(self) -> None:
        engine = AutocompleteEngine(
            prefix_search(["CAT", "CRANBERRY", "FOO", "BAR", "CORE"]),
            AutocompleteBehavior.CYCLE,
        )
        state = CycleState()
        buffer = "C"
        seen = []
        for _ in range(4):
            completion = engine.complete(buffer, state)
            assert completion.action is CompletionAction.REDRAW
            buffer = completion.buffer
            seen.append(buffer)
        assert seen == ["CAT", "CRANBERRY", "CORE", "CAT"]

    def test_searches_the_first_buffer_of_the_run(self) -> None:
        queries: list[str] = []

        def search(query: str) -> list[str]:
            queries.append(query)
            return ["CAT", "CORE"]

        engine = AutocompleteEngine(search, AutocompleteBehavior.CYCLE)
        state = CycleState()
        first = engine.complete("C", state)
        engine.complete(first.buffer, state)
        assert queries == ["C", "C"]
        assert state.search_term == "C"

    def test_single_match_is_stable(self) -> None:
        engine = AutocompleteEngine(prefix_search(["CAT", "BAT", "MAT"]))
        state = CycleState()
        results = [engine.complete("C", state).buffer for _ in range(4)]
        assert results == ["CAT"] * 4

    def test_no_match_emits_tab(self) -> None:
        engine = AutocompleteEngine(prefix_search(["abc"]))
        completion = engine.complete("C", CycleState())
        assert completion.action is CompletionAction.EMIT_TAB
        assert completion.buffer == "C"

    def test_reset_starts_a_new_run(self) -> None:
        state = CycleState(index=2, search_term="x")
        state.reset()
        assert state == CycleState()


# ---------------------------------------------------------------------------
# SUGGEST
# ---------------------------------------------------------------------------


class TestSuggest:
    """List matches below the input, optionally filling their common prefix."""

    def test_single_match_fills_buffer(self) -> None:
        engine = AutocompleteEngine(prefix_search(INTER), AutocompleteBehavior.SUGGEST)
        completion = engine.complete("into", CycleState())
        assert completion.action is CompletionAction.REDRAW
        assert completion.buffer == "intolerant"
        assert completion.table is None

    def test_single_match_not_filled_on_backspace(self) -> None:
        engine = AutocompleteEngine(prefix_search(INTER), AutocompleteBehavior.SUGGEST)
        completion = engine.complete("into", CycleState(), is_backspace=True)
        assert completion.action is CompletionAction.SHOW_TABLE
        assert completion.buffer == "into"

    def test_multiple_matches_show_table_without_fill(self) -> None:
        engine = AutocompleteEngine(
            prefix_search(["CAT", "CRANBERRY", "FOO", "BAR", "CORE"]),
            AutocompleteBehavior.SUGGEST,
        )
        completion = engine.complete("C", CycleState())
        assert completion.action is CompletionAction.SHOW_TABLE
        assert completion.buffer == "C"
        assert completion.table.rows == [["CAT", "CRANBERRY", "CORE"]]

    def test_fill_uses_live_buffer(self) -> None:
        engine = AutocompleteEngine(
            prefix_search(INTER), AutocompleteBehavior.SUGGEST, fill=True
        )
        state = CycleState()
        first = engine.complete("i", state)
        assert first.buffer == "int"
        assert first.table.row_count == 2
        second = engine.complete(first.buffer + "e", state)
        assert second.buffer == "inter"
        assert second.table.rows[1] == ["interesting", "interoperating", ""]

    def test_fill_skipped_on_backspace(self) -> None:
        engine = AutocompleteEngine(
            prefix_search(INTER), AutocompleteBehavior.SUGGEST, fill=True
        )
        completion = engine.complete("i", CycleState(), is_backspace=True)
        assert completion.buffer == "i"

    def test_no_match_emits_tab(self) -> None:
        engine = AutocompleteEngine(prefix_search(INTER), AutocompleteBehavior.SUGGEST)
        assert engine.complete("x", CycleState()).action is CompletionAction.EMIT_TAB

    def test_no_match_when_sticky_redraws(self) -> None:
        engine = AutocompleteEngine(
            prefix_search(INTER), AutocompleteBehavior.SUGGEST, sticky=True
        )
        completion = engine.complete("x", CycleState())
        assert completion.action is CompletionAction.REDRAW
        assert completion.buffer == "x"

    def test_table_respects_row_limit(self) -> None:
        engine = AutocompleteEngine(
            prefix_search(INTER), AutocompleteBehavior.SUGGEST, col_count=2
        )
        completion = engine.complete("i", CycleState(), max_rows=2)
        assert completion.table.rows[-1][-1] == "3 more…"
        assert completion.results == INTER


class TestSticky:
    def test_sticky_only_applies_to_suggest(self) -> None:
        search = prefix_search(INTER)
        assert AutocompleteEngine(search, "suggest", sticky=True).is_sticky
        assert not AutocompleteEngine(search, "cycle", sticky=True).is_sticky
        assert not AutocompleteEngine(search, "hybrid", sticky=True).is_sticky


# ---------------------------------------------------------------------------
# HYBRID
# ---------------------------------------------------------------------------


class TestHybrid:
    """Cycle through results while showing the table."""

    def test_cycles_and_shows_table(self) -> None:
        engine = AutocompleteEngine(prefix_search(INTER), AutocompleteBehavior.HYBRID)
        state = CycleState()
        buffer = "i"
        seen = []
        for _ in range(3):
            completion = engine.complete(buffer, state)
            assert completion.action is CompletionAction.SHOW_TABLE
            assert completion.table.row_count == 2
            buffer = completion.buffer
            seen.append(buffer)
        assert seen == ["interspecies", "interstelar", "interstate"]

    def test_wraps_over_shown_results_only(self) -> None:
        engine = AutocompleteEngine(
            prefix_search(INTER), AutocompleteBehavior.HYBRID, col_count=2
        )
        state = CycleState()
        picks = [engine.complete("i", state, max_rows=2).buffer for _ in range(4)]
        # Two rows of two hold three results and the "more" slot
        assert picks == ["interspecies", "interstelar", "interstate", "interspecies"]

    def test_single_match_fills_without_table(self) -> None:
        engine = AutocompleteEngine(prefix_search(INTER), AutocompleteBehavior.HYBRID)
        completion = engine.complete("into", CycleState())
        assert completion.action is CompletionAction.REDRAW
        assert completion.buffer == "intolerant"

    def test_no_match_emits_tab(self) -> None:
        engine = AutocompleteEngine(prefix_search(INTER), AutocompleteBehavior.HYBRID)
        assert engine.complete("zz", CycleState()).action is CompletionAction.EMIT_TAB

    def test_table_shrinks_to_fit_longest_selectable_result(self) -> None:
        words = ["ia", "ib", "icxxxxxxxxxxxxxx", "id", "ie", "if"]
        engine = AutocompleteEngine(
            prefix_search(words), AutocompleteBehavior.HYBRID, col_count=1
        )

        def room_for(buffer: str) -> int:
            return 3 if len(buffer) > 10 else 4

        state = CycleState()
        picks = []
        for _ in range(3):
            completion = engine.complete("i", state, room_for=room_for)
            assert completion.table.row_count <= room_for(completion.buffer)
            picks.append(completion.buffer)
        assert completion.table.rows == [["ia"], ["ib"], ["4 more…"]]
        assert picks == ["ia", "ib", "ia"]

    def test_room_for_ignored_by_cycle(self) -> None:
        engine = AutocompleteEngine(prefix_search(INTER), AutocompleteBehavior.CYCLE)
        completion = engine.complete("i", CycleState(), room_for=lambda _: 0)
        assert completion.buffer == "interspecies"
