"""Terminal text utilities: ANSI stripping, display width, render diffing.

Widths are measured per grapheme cluster so that combining marks count as
zero cells and East Asian wide characters and emoji count as two.
"""

from __future__ import annotations

import re
import unicodedata

import grapheme
import wcwidth as _wcwidth

# ---------------------------------------------------------------------------
# Regex patterns for ANSI sequences
# ---------------------------------------------------------------------------

# CSI sequences (ESC [ params intermediates final), OSC strings, SS3 and
# two-byte escapes. A CSI sequence cut short by a read boundary still matches.
_ANSI_RE = re.compile(
    r"\x1b\[[0-9;?<>=]*[ -/]*[@-~]?"
    r"|\x1b\][^\x07\x1b]*(?:\x07|\x1b\\)?"
    r"|\x1bO.?"
    r"|\x1b."
    r"|\x1b"
)

_CONTROL_RE = re.compile(r"[\x00-\x1f\x7f]")

# ---------------------------------------------------------------------------
# Width cache (capped at 512 entries)
# ---------------------------------------------------------------------------

_width_cache: dict[str, int] = {}
_WIDTH_CACHE_MAX = 512


def strip_ansi(text: str) -> str:
    """Remove ANSI escape sequences from *text*."""
    return _ANSI_RE.sub("", text)


def strip_control(text: str) -> str:
    """Remove ANSI escape sequences and C0 control bytes (NUL included)."""
    return _CONTROL_RE.sub("", strip_ansi(text))


def grapheme_width(g: str) -> int:
    """Return the number of terminal cells a single grapheme cluster occupies."""
    if not g:
        return 0

    cp = ord(g[0])
    if cp < 0x20 or 0x7F <= cp <= 0x9F:
        return 0

    if len(g) > 1:
        # VS16, ZWJ sequences, skin tones and flags render as wide emoji
        for ch in g[1:]:
            o = ord(ch)
            if o in (0xFE0F, 0x200D) or 0x1F3FB <= o <= 0x1F3FF:
                return 2
        if 0x1F1E6 <= cp <= 0x1F1FF:
            return 2
        if unicodedata.category(g[0]) in ("Mn", "Me", "Cf"):
            return 0

    return max(_wcwidth.wcwidth(g[0]), 0)


def visible_width(text: str) -> int:
    """Calculate the number of terminal cells *text* occupies once printed.

    ANSI escape sequences are ignored. ASCII input takes a fast path; other
    strings are measured per grapheme cluster and cached.
    """
    if not text:
        return 0

    stripped = strip_ansi(text)
    if stripped.isascii() and stripped.isprintable():
        return len(stripped)

    cached = _width_cache.get(stripped)
    if cached is not None:
        return cached

    total = sum(grapheme_width(g) for g in grapheme.graphemes(stripped))

    if len(_width_cache) >= _WIDTH_CACHE_MAX:
        _width_cache.clear()
    _width_cache[stripped] = total
    return total


def fit_to_width(text: str, width: int) -> str:
    """Cut plain *text* so it occupies at most *width* cells."""
    if visible_width(text) <= width:
        return text

    out: list[str] = []
    used = 0
    for g in grapheme.graphemes(text):
        w = grapheme_width(g)
        if used + w > width:
            break
        out.append(g)
        used += w
    return "".join(out)


def diff_index(previous: str, current: str) -> int:
    """Return the first index at which *previous* and *current* differ.

    When one string is a prefix of the other, the length of the shorter one
    is returned; identical strings return their common length.
    """
    limit = min(len(previous), len(current))
    for i in range(limit):
        if previous[i] != current[i]:
            return i
    return limit
