"""Column table rendering for autocomplete suggestions."""

from __future__ import annotations

from typing import Protocol, Sequence

from pi.prompt.utils import visible_width


class TableRenderer(Protocol):
    """Turns rows of cells into printable text, rows joined by ``\\n``."""

    def render(self, cells: Sequence[Sequence[str]]) -> str: ...


class ColumnTableRenderer:
    """Borderless table with every column as wide as its widest cell.

    Each cell gets *padding* spaces on both sides, so two adjacent cells
    are separated by at least ``2 * padding`` spaces.
    """

    def __init__(self, padding: int = 2) -> None:
        if padding < 0:
            raise ValueError(f"padding must be >= 0, got {padding}")
        self.padding = padding

    def render(self, cells: Sequence[Sequence[str]]) -> str:
        if not cells:
            return ""

        col_count = max(len(row) for row in cells)
        widths = [0] * col_count
        for row in cells:
            for i, cell in enumerate(row):
                widths[i] = max(widths[i], visible_width(cell))

        pad = " " * self.padding
        lines: list[str] = []
        for row in cells:
            parts: list[str] = []
            for i in range(col_count):
                cell = row[i] if i < len(row) else ""
                fill = " " * (widths[i] - visible_width(cell))
                parts.append(f"{pad}{cell}{fill}{pad}")
            lines.append("".join(parts))
        return "\n".join(lines)
