"""Line editor: the blocking read loop behind every prompt call.

Each iteration reads up to :data:`~pi.prompt.keys.READ_SIZE` bytes and
dispatches them:

- anything longer than one byte, or a lone non-ASCII byte, is an escape
  sequence (cursor keys) or pasted text. A sequence cut off by the read
  size is held back and completed by the following read;
- single bytes are, in priority order, SIGINT, EOT, ENTER, backspace,
  ignored control bytes, autocomplete triggers and plain characters.

Output goes through two render paths. The diff render rewrites only the
changed tail of the input and is used for ordinary typing. The full redraw
starts over from the prompt's first cell and is used for history,
autocomplete and the cases the diff render cannot handle. Both send their
whole output in one ``write`` call.

Cursor positions come from :class:`~pi.prompt.cursor.CursorTracker`; the
terminal is only asked where the cursor is once, before the prompt is
written.
"""

from __future__ import annotations

import codecs
import logging
import sys
from enum import Enum

from pi.prompt.autocomplete import (
    AutocompleteEngine,
    Completion,
    CompletionAction,
    layout_results,
)
from pi.prompt.config import PromptConfig
from pi.prompt.cursor import CursorPosition, CursorTracker
from pi.prompt.escapes import (
    Direction,
    LineErasureMethod,
    concat,
    erase_display,
    erase_line,
    move_to_row_column,
    restore_cursor,
    save_cursor,
    split_incomplete_sequence,
    strip_sequences,
)
from pi.prompt.history import HistoryNavigator
from pi.prompt.keys import (
    READ_SIZE,
    Key,
    KeyCode,
    is_backspace,
    is_printable,
    parse_sequence,
)
from pi.prompt.session import PromptSession
from pi.prompt.table import ColumnTableRenderer, TableRenderer
from pi.prompt.terminal import TerminalIO
from pi.prompt.utils import diff_index, fit_to_width, visible_width

logger = logging.getLogger(__name__)

EXIT_SUCCESS = 0
EXIT_SIGINT = 130


class EditorState(Enum):
    READING = "reading"
    ACCEPT = "accept"
    INTERRUPTED = "interrupted"
    TERMINATE_PROCESS = "terminate_process"


def _cup(position: CursorPosition) -> str:
    return move_to_row_column(position.row, position.col).escaped


class LineEditor:
    """Reads one line from *terminal* for *question*.

    *config* must already be merged with the defaults. One editor serves
    one call to :meth:`run`.
    """

    def __init__(
        self,
        terminal: TerminalIO,
        question: str,
        config: PromptConfig,
        table_renderer: TableRenderer | None = None,
    ) -> None:
        self.terminal = terminal
        self.question = question
        self.config = config
        self.table_renderer = table_renderer or ColumnTableRenderer()
        self.echo = config.echo
        self.masked = config.masked
        self.state = EditorState.READING
        self.session: PromptSession | None = None

        autocomplete = config.autocomplete
        self.engine: AutocompleteEngine | None = None
        self.trigger_key = int(KeyCode.TAB)
        if autocomplete is not None:
            if autocomplete.trigger_key is not None:
                self.trigger_key = autocomplete.trigger_key
            if autocomplete.search_fn is not None:
                self.engine = AutocompleteEngine(
                    autocomplete.search_fn,
                    autocomplete.behavior or "cycle",
                    fill=bool(autocomplete.fill),
                    sticky=bool(autocomplete.sticky),
                    col_count=autocomplete.suggest_col_count or 3,
                )

        self.history = (
            HistoryNavigator(config.history) if config.history is not None else None
        )
        self._decoder = codecs.getincrementaldecoder("utf-8")(errors="replace")
        # Start of an escape sequence whose remaining bytes are in the next read
        self._pending_sequence = ""

    # -- lifecycle ----------------------------------------------------------

    def run(self) -> str | None:
        """Block until the line is accepted or interrupted.

        Returns the raw buffer on ENTER and ``None`` on SIGINT. Exits the
        process with status 130 on SIGINT when ``sigint`` is set, and with
        status 0 on EOT when ``eot`` is set. The terminal is restored and
        closed before any of these happen.
        """
        handle = self.terminal.open_blocking()
        was_raw = self.terminal.is_raw_mode(handle)
        try:
            self.terminal.set_raw_mode(handle, True)
            self._start(handle)
            while self.state is EditorState.READING:
                data = self.terminal.read_bytes(handle, READ_SIZE)
                if not data:
                    raise EOFError("terminal input closed while reading a line")
                self.feed(data)
        finally:
            try:
                self.terminal.set_raw_mode(handle, was_raw)
            finally:
                self.terminal.close(handle)

        if self.state is EditorState.INTERRUPTED:
            if self.config.sigint:
                logger.debug("Prompt interrupted, exiting with status %d", EXIT_SIGINT)
                sys.exit(EXIT_SIGINT)
            logger.debug("Prompt interrupted")
            return None
        if self.state is EditorState.TERMINATE_PROCESS:
            logger.debug("End of transmission on empty line, exiting")
            sys.exit(EXIT_SUCCESS)
        return self.session.buffer if self.session is not None else ""

    def _start(self, handle: int) -> None:
        head, newline, prompt = self.question.rpartition("\n")
        if newline:
            self.terminal.write(head + newline)

        reported = self.terminal.query_cursor_position(handle)
        if reported is None:
            logger.warning("Cursor position query got no usable reply; assuming 1;1")
            reported = (1, 1)
        row, col = reported

        columns, rows = self.terminal.columns, self.terminal.rows
        tracker = CursorTracker(
            self.terminal.write, CursorPosition(row, col), columns, rows
        )
        self.session = PromptSession(
            prompt=prompt,
            prompt_width=visible_width(prompt),
            tracker=tracker,
        )
        logger.debug(
            "Prompt session started at %d;%d on a %dx%d terminal",
            row, col, columns, rows,
        )

        self.terminal.write(prompt)
        tracker.sync(self._recompute_end())

    def feed(self, data: bytes) -> None:
        """Process one read's worth of bytes."""
        if self._pending_sequence and len(data) == 1 and not is_printable(data[0]):
            self._pending_sequence = ""
        if self._pending_sequence or len(data) > 1 or data[0] >= 0x80:
            self._handle_sequence(data)
        else:
            self._handle_key(data[0])

        if self.state is EditorState.ACCEPT:
            self._finish_line()

    def _finish_line(self) -> None:
        tracker = self.session.tracker
        out: list[str] = []
        if tracker.position != tracker.input_end:
            out.append(_cup(tracker.input_end))
        out.append("\n")
        self.terminal.write("".join(out))

    # -- dispatch -----------------------------------------------------------

    def _handle_sequence(self, data: bytes) -> None:
        text = self._pending_sequence + self._decoder.decode(data)
        self._pending_sequence = ""
        if not text:
            return

        key = parse_sequence(text)
        if key is not None:
            if not self.masked:
                self._navigate(key)
            return

        text, self._pending_sequence = split_incomplete_sequence(text)
        pasted = strip_sequences(text)
        if not pasted:
            return
        session = self.session
        session.cycle.reset()
        self._clear_table()
        session.insert(pasted)
        self._render()

    def _handle_key(self, code: int) -> None:
        session = self.session

        if code == KeyCode.SIGINT:
            self.terminal.write("^C\n")
            self.state = EditorState.INTERRUPTED
            return

        if code == KeyCode.EOT and not session.buffer and self.config.eot:
            self.terminal.write("exit\n")
            self.state = EditorState.TERMINATE_PROCESS
            return

        if code == KeyCode.ENTER:
            self._clear_table()
            if self.history is not None:
                self.history.accept(session.buffer, self.masked)
            self.state = EditorState.ACCEPT
            return

        backspace = is_backspace(code)
        is_trigger = self.engine is not None and code == self.trigger_key

        if backspace:
            if not session.delete_before():
                return
        elif not is_trigger and not is_printable(code):
            return

        engine = self.engine
        if engine is not None and (is_trigger or engine.is_sticky):
            if not is_trigger:
                if not backspace:
                    session.insert(chr(code))
                self._clear_table()

            if not session.buffer:
                self._render()
                return

            completion = engine.complete(
                session.buffer,
                session.cycle,
                is_backspace=backspace,
                max_rows=self._table_room(),
                room_for=self._table_room,
            )
            self._apply_completion(completion)
            return

        session.cycle.reset()
        self._clear_table()
        if not backspace:
            session.insert(chr(code))
        self._render()

    def _navigate(self, key: str) -> None:
        session = self.session
        tracker = session.tracker

        if key in (Key.up, Key.down):
            if self.history is not None:
                if key == Key.up:
                    moved = self.history.scroll_up(session)
                else:
                    moved = self.history.scroll_down(session)
                if moved:
                    session.cycle.reset()
                    self._redraw()
                return

            direction = Direction.UP if key == Key.up else Direction.DOWN
            if tracker.move_by(direction):
                session.insert_position = tracker.recompute_insert_position(
                    session.prompt_width, session.buffer
                )
                tracker.move_to(self._insert_cell())
            return

        if key == Key.left:
            session.insert_position = max(session.insert_position - 1, 0)
        elif key == Key.right:
            session.insert_position = min(session.insert_position + 1, len(session.buffer))
        elif key == Key.home:
            session.insert_position = 0
        elif key == Key.end:
            session.insert_position = len(session.buffer)
        tracker.move_to(self._insert_cell())

    # -- geometry -----------------------------------------------------------

    def _display(self) -> str:
        return self.session.display(self.echo)

    def _recompute_end(self) -> CursorPosition:
        session = self.session
        return session.tracker.recompute_input_end_position(
            session.prompt_width, visible_width(self._display())
        )

    def _insert_cell(self) -> CursorPosition:
        session = self.session
        if session.insert_position >= len(session.buffer):
            return session.tracker.input_end
        return session.tracker.cell_position(session.insert_offset(self.echo))

    def _starts_row(self, offset: int) -> bool:
        """True if the cell *offset* cells after the prompt start is in column 1."""
        tracker = self.session.tracker
        total = tracker.initial.col - 1 + offset
        return total > 0 and total % tracker.columns == 0

    def _table_room(self, buffer: str | None = None) -> int:
        """Rows left below the input for a suggestion table.

        Measured for *buffer* when given, otherwise for the current input.
        """
        session = self.session
        tracker = session.tracker
        if buffer is None:
            display = self._display()
        else:
            display = buffer if self.echo is None else self.echo * len(buffer)
        end = tracker.end_position(session.prompt_width + visible_width(display))
        input_height = end.row - tracker.initial.row + 1
        return max(tracker.rows - input_height, 0)

    # -- rendering ----------------------------------------------------------

    def _render(self) -> None:
        """Rewrite the changed tail of the input and resync the cursor."""
        session = self.session
        tracker = session.tracker
        display = self._display()
        previous = session.last_render
        index = diff_index(previous, display)

        if index == len(previous) == len(display):
            tracker.move_to(self._insert_cell())
            return

        prompt_width = session.prompt_width
        out: list[str] = []
        previous_end_offset = prompt_width + visible_width(previous)

        if (
            index == len(previous)
            and tracker.position == tracker.input_end
            and not self._starts_row(previous_end_offset)
        ):
            out.append(display[index:])
        else:
            start = index
            offset = prompt_width + visible_width(display[:start])
            if self._starts_row(offset):
                if start == 0:
                    self._redraw()
                    return
                # Rewrite the last cell of the row above so the terminal wraps itself
                start -= 1
                offset = prompt_width + visible_width(display[:start])
            out.append(_cup(tracker.cell_position(offset)))
            out.append(erase_display().escaped)
            out.append(display[start:])

        self.terminal.write("".join(out))
        session.last_render = display
        tracker.sync(self._recompute_end())
        tracker.move_to(self._insert_cell())

    def _redraw(self, table_lines: list[str] | None = None) -> None:
        """Redraw prompt, input and an optional table from the prompt's first cell."""
        session = self.session
        tracker = session.tracker
        display = self._display()

        out = [_cup(tracker.initial), erase_display().escaped, session.prompt, display]
        end = self._recompute_end()

        if table_lines:
            out.append("\r\n")
            out.append("\r\n".join(table_lines))
            tracker.scroll(end.row + len(table_lines) - tracker.rows)
            session.num_rows_to_clear = len(table_lines)
        else:
            session.num_rows_to_clear = 0

        target = self._insert_cell()
        out.append(_cup(target))
        self.terminal.write("".join(out))
        session.last_render = display
        tracker.sync(target)

    def _clear_table(self) -> None:
        """Erase the rows of the last suggestion table, keeping the cursor put."""
        session = self.session
        count = session.num_rows_to_clear
        if not count:
            return

        row = session.tracker.input_end.row
        parts: list = [save_cursor()]
        for i in range(1, count + 1):
            parts.append(move_to_row_column(row + i, 1))
            parts.append(erase_line(LineErasureMethod.ENTIRE))
        parts.append(restore_cursor())
        self.terminal.write(concat(*parts))
        session.num_rows_to_clear = 0

    def _apply_completion(self, completion: Completion) -> None:
        session = self.session
        tracker = session.tracker

        if completion.action is CompletionAction.EMIT_TAB:
            self.terminal.write("\t" + _cup(tracker.position))
            return

        session.set_buffer(completion.buffer)
        if completion.action is CompletionAction.REDRAW or completion.table is None:
            self._redraw()
            return

        table = completion.table
        room = self._table_room()
        if table.row_count > room:
            table = layout_results(completion.results, self.engine.col_count, room)

        lines: list[str] = []
        if table.row_count:
            rendered = self.table_renderer.render(table.rows)
            lines = [fit_to_width(line, tracker.columns) for line in rendered.split("\n")]
        self._redraw(lines)
