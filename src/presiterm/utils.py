"""Terminal text utilities: display width and escape-sequence scanning.

Widths are measured per grapheme cluster so that combining marks, emoji and
East Asian wide characters occupy the same number of columns the terminal
will give them.
"""

from __future__ import annotations

import re
import unicodedata

import grapheme
import wcwidth as _wcwidth

TAB_WIDTH = 4

# CSI SGR, OSC (BEL or ST terminated) and APC sequences
_STRIP_RE = re.compile(
    r"\x1b\[[0-9;]*[A-Za-z]"
    r"|\x1b\][^\x07\x1b]*(?:\x07|\x1b\\)"
    r"|\x1b_[^\x07\x1b]*(?:\x07|\x1b\\)"
)

_width_cache: dict[str, int] = {}
_WIDTH_CACHE_MAX = 512


def _cache_width(key: str, value: int) -> int:
    if len(_width_cache) >= _WIDTH_CACHE_MAX:
        _width_cache.clear()
    _width_cache[key] = value
    return value


def grapheme_width(g: str) -> int:
    """Return the number of terminal columns a single grapheme cluster occupies.

    Control characters and lone combining marks are zero width. Emoji
    sequences (VS16, ZWJ, skin tones, regional indicators) are two columns.
    Everything else defers to wcwidth on the first codepoint.
    """
    if not g:
        return 0

    if len(g) == 1:
        cp = ord(g)
        if cp < 0x20 or 0x7F <= cp <= 0x9F:
            return 0
        return max(_wcwidth.wcwidth(g), 0)

    for ch in g:
        cp = ord(ch)
        if cp in (0xFE0F, 0x200D) or 0x1F3FB <= cp <= 0x1F3FF or 0x1F1E6 <= cp <= 0x1F1FF:
            return 2

    first = ord(g[0])
    if first >= 0x1F000 or 0x2600 <= first <= 0x27BF:
        return 2

    cat = unicodedata.category(g[0])
    if cat.startswith("M") or cat == "Cf":
        return 0
    return max(_wcwidth.wcwidth(g[0]), 0)


def strip_ansi(text: str) -> str:
    return _STRIP_RE.sub("", text)


def visible_width(text: str) -> int:
    """Display width of *text* in columns, ignoring escape sequences.

    Tabs count as ``TAB_WIDTH`` columns.
    """
    if not text:
        return 0

    stripped = strip_ansi(text).replace("\t", " " * TAB_WIDTH)
    if not stripped:
        return 0

    if stripped.isascii() and stripped.isprintable():
        return len(stripped)

    cached = _width_cache.get(stripped)
    if cached is not None:
        return cached

    total = sum(grapheme_width(g) for g in grapheme.graphemes(stripped))
    return _cache_width(stripped, total)


def split_graphemes(text: str) -> list[tuple[str, int]]:
    """Split plain *text* into ``(grapheme, width)`` pairs."""
    return [(g, grapheme_width(g)) for g in grapheme.graphemes(text)]


def extract_ansi_code(text: str, pos: int) -> tuple[str, int] | None:
    """Return ``(sequence, length)`` for an escape sequence starting at *pos*.

    Recognises CSI (``ESC [`` ... final byte), OSC and APC sequences.
    Returns ``None`` if *pos* does not start a complete sequence.
    """
    if pos >= len(text) or text[pos] != "\x1b" or pos + 1 >= len(text):
        return None

    kind = text[pos + 1]

    if kind == "[":
        i = pos + 2
        while i < len(text):
            code = ord(text[i])
            if 0x40 <= code <= 0x7E:
                return text[pos : i + 1], i + 1 - pos
            if not (0x20 <= code <= 0x3F):
                break
            i += 1
        return None

    if kind in ("]", "_"):
        i = pos + 2
        while i < len(text):
            if text[i] == "\x07":
                return text[pos : i + 1], i + 1 - pos
            if text[i] == "\x1b" and i + 1 < len(text) and text[i + 1] == "\\":
                return text[pos : i + 2], i + 2 - pos
            i += 1
        return None

    return None
