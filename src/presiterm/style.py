"""Cell styles and SGR (Select Graphic Rendition) handling.

A :class:`Style` is the immutable style context carried by every screen
cell. Styles are built either directly (the syntax highlighter does this)
or by folding SGR escape sequences found in pre-styled text, which is how
the markdown renderer talks to the screen buffer.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, replace

from presiterm.utils import extract_ansi_code, split_graphemes, visible_width

RESET = "\x1b[0m"

_WORD_RE = re.compile(r"\s+|\S+")


@dataclass(frozen=True)
class Style:
    """Foreground/background colors plus text attributes.

    Colors are stored as SGR parameter strings (``"31"``, ``"38;5;208"``,
    ``"38;2;10;20;30"``) so any color form the terminal understands
    round-trips unchanged.
    """

    fg: str | None = None
    bg: str | None = None
    bold: bool = False
    dim: bool = False
    italic: bool = False
    underline: bool = False
    inverse: bool = False
    strikethrough: bool = False

    @property
    def is_default(self) -> bool:
        return self == DEFAULT_STYLE

    def sgr_params(self) -> list[str]:
        params: list[str] = []
        if self.bold:
            params.append("1")
        if self.dim:
            params.append("2")
        if self.italic:
            params.append("3")
        if self.underline:
            params.append("4")
        if self.inverse:
            params.append("7")
        if self.strikethrough:
            params.append("9")
        if self.fg is not None:
            params.append(self.fg)
        if self.bg is not None:
            params.append(self.bg)
        return params

    def to_sgr(self) -> str:
        """Full sequence that switches the terminal from any state to this style."""
        params = self.sgr_params()
        if not params:
            return RESET
        return f"\x1b[0;{';'.join(params)}m"

    def apply(self, params: list[str]) -> Style:  # noqa: C901
        """Return a new style with an SGR parameter list folded in."""
        if not params:
            return DEFAULT_STYLE

        style = self
        i = 0
        while i < len(params):
            p = params[i]
            val = int(p) if p.isdigit() else 0

            if val == 0:
                style = DEFAULT_STYLE
            elif val == 1:
                style = replace(style, bold=True)
            elif val == 2:
                style = replace(style, dim=True)
            elif val == 3:
                style = replace(style, italic=True)
            elif val == 4:
                style = replace(style, underline=True)
            elif val == 7:
                style = replace(style, inverse=True)
            elif val == 9:
                style = replace(style, strikethrough=True)
            elif val == 22:
                style = replace(style, bold=False, dim=False)
            elif val == 23:
                style = replace(style, italic=False)
            elif val == 24:
                style = replace(style, underline=False)
            elif val == 27:
                style = replace(style, inverse=False)
            elif val == 29:
                style = replace(style, strikethrough=False)
            elif 30 <= val <= 37 or 90 <= val <= 97:
                style = replace(style, fg=str(val))
            elif 40 <= val <= 47 or 100 <= val <= 107:
                style = replace(style, bg=str(val))
            elif val == 39:
                style = replace(style, fg=None)
            elif val == 49:
                style = replace(style, bg=None)
            elif val in (38, 48) and i + 1 < len(params):
                mode = params[i + 1]
                if mode == "5" and i + 2 < len(params):
                    color = f"{val};5;{params[i + 2]}"
                    i += 2
                elif mode == "2" and i + 4 < len(params):
                    color = f"{val};2;{';'.join(params[i + 2 : i + 5])}"
                    i += 4
                else:
                    color = None
                    i += 1
                if color is not None:
                    style = replace(style, fg=color) if val == 38 else replace(style, bg=color)

            i += 1

        return style


DEFAULT_STYLE = Style()


def rgb_fg(r: int, g: int, b: int) -> str:
    return f"38;2;{r};{g};{b}"


def rgb_bg(r: int, g: int, b: int) -> str:
    return f"48;2;{r};{g};{b}"


def parse_ansi(text: str, base: Style = DEFAULT_STYLE) -> tuple[list[tuple[Style, str]], Style]:
    """Split SGR-styled *text* into ``(style, plain_text)`` spans.

    Non-SGR escape sequences are dropped. Returns the spans and the style
    active at the end of the text so callers can carry it across lines.
    """
    spans: list[tuple[Style, str]] = []
    style = base
    chunk: list[str] = []

    i = 0
    while i < len(text):
        extracted = extract_ansi_code(text, i)
        if extracted is None:
            chunk.append(text[i])
            i += 1
            continue

        code, length = extracted
        i += length
        if not code.endswith("m") or not code.startswith("\x1b["):
            continue

        if chunk:
            spans.append((style, "".join(chunk)))
            chunk = []
        body = code[2:-1]
        style = style.apply(body.split(";") if body else [])

    if chunk:
        spans.append((style, "".join(chunk)))

    return spans, style


def spans_to_ansi(spans: list[tuple[Style, str]]) -> str:
    """Inverse of :func:`parse_ansi`: emit minimal SGR switches between spans."""
    out: list[str] = []
    current = DEFAULT_STYLE
    for style, text in spans:
        if not text:
            continue
        if style != current:
            out.append(style.to_sgr())
            current = style
        out.append(text)
    if current != DEFAULT_STYLE:
        out.append(RESET)
    return "".join(out)


def _split_words(spans: list[tuple[Style, str]]) -> list[tuple[Style, str, bool]]:
    """Break spans into ``(style, piece, is_space)`` runs of words and whitespace."""
    pieces: list[tuple[Style, str, bool]] = []
    for style, text in spans:
        for match in _WORD_RE.finditer(text):
            piece = match.group(0)
            pieces.append((style, piece, piece.isspace()))
    return pieces


def wrap_ansi(text: str, width: int) -> list[str]:
    """Word-wrap SGR-styled *text* to *width* columns.

    Styles carry across wrapped and physical lines. Every output line is
    self-contained: it starts from the default style and ends reset.
    Leading indentation survives; whitespace at a wrap point is dropped.
    Words longer than *width* are split at grapheme boundaries.
    """
    if width <= 0:
        return [text]

    result: list[str] = []
    style = DEFAULT_STYLE
    for physical in text.split("\n"):
        spans, style = parse_ansi(physical, style)
        if not spans:
            result.append("")
            continue

        line: list[tuple[Style, str]] = []
        used = 0
        wrapped = False

        def finish() -> None:
            nonlocal line, used, wrapped
            while line and line[-1][1].isspace():
                line.pop()
            result.append(spans_to_ansi(line))
            line, used, wrapped = [], 0, True

        for piece_style, piece, is_space in _split_words(spans):
            w = visible_width(piece)
            if is_space:
                if used == 0 and wrapped:
                    continue
                if used + w > width:
                    finish()
                    continue
            elif used + w > width:
                if w <= width:
                    finish()
                else:
                    for g, gw in split_graphemes(piece):
                        if used + gw > width and used > 0:
                            finish()
                        line.append((piece_style, g))
                        used += gw
                    continue
            line.append((piece_style, piece))
            used += w

        while line and line[-1][1].isspace():
            line.pop()
        result.append(spans_to_ansi(line))

    return result
