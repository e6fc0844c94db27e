"""Syntax highlighting backed by Pygments.

The highlighter is created once and handed to renderers through the render
context. Pygments lexers and the theme are looked up lazily and cached,
so constructing a :class:`PygmentsHighlighter` is cheap even when the deck
has no code slides.
"""

from __future__ import annotations

import logging
from typing import Protocol

from pygments.lexer import Lexer
from pygments.lexers import get_lexer_by_name, get_lexer_for_filename
from pygments.style import StyleMeta
from pygments.styles import get_style_by_name
from pygments.token import _TokenType
from pygments.util import ClassNotFound

from presiterm.errors import RenderError
from presiterm.style import DEFAULT_STYLE, Style, rgb_bg, rgb_fg

logger = logging.getLogger(__name__)

StyledSpan = tuple[Style, str]

DEFAULT_THEME = "solarized-light"


class Highlighter(Protocol):
    def highlight(self, line: str, language: str) -> list[StyledSpan]: ...

    def highlight_lines(self, text: str, language: str) -> list[list[StyledSpan]]: ...


def _hex_to_rgb(value: str) -> tuple[int, int, int]:
    value = value.lstrip("#")
    return int(value[0:2], 16), int(value[2:4], 16), int(value[4:6], 16)


class PygmentsHighlighter:
    """Highlights source text into styled spans, one list per line.

    ``language`` is a file extension (``"py"``, ``"rs"``) or a Pygments
    alias (``"python"``). An unknown language raises :class:`RenderError`
    instead of falling back to plain text.
    """

    def __init__(self, theme: str = DEFAULT_THEME, with_background: bool = False) -> None:
        self._theme_name = theme
        self._with_background = with_background
        self._theme: StyleMeta | None = None
        self._lexers: dict[str, Lexer] = {}
        self._token_styles: dict[_TokenType, Style] = {}

    @property
    def theme(self) -> StyleMeta:
        if self._theme is None:
            try:
                self._theme = get_style_by_name(self._theme_name)
            except ClassNotFound as exc:
                raise RenderError(f"unknown highlighting theme {self._theme_name!r}") from exc
            logger.debug("loaded highlighting theme %s", self._theme_name)
        return self._theme

    def lexer_for(self, language: str) -> Lexer:
        lexer = self._lexers.get(language)
        if lexer is not None:
            return lexer

        tag = language.lstrip(".")
        options = {"stripnl": False, "ensurenl": False}
        try:
            lexer = get_lexer_for_filename(f"source.{tag}", **options)
        except ClassNotFound:
            try:
                lexer = get_lexer_by_name(tag, **options)
            except ClassNotFound as exc:
                raise RenderError(f"unknown language {language!r}") from exc

        self._lexers[language] = lexer
        return lexer

    def style_for(self, token_type: _TokenType) -> Style:
        cached = self._token_styles.get(token_type)
        if cached is not None:
            return cached

        spec = self.theme.style_for_token(token_type)
        style = Style(
            fg=rgb_fg(*_hex_to_rgb(spec["color"])) if spec["color"] else None,
            bg=rgb_bg(*_hex_to_rgb(spec["bgcolor"])) if self._with_background and spec["bgcolor"] else None,
            bold=bool(spec["bold"]),
            italic=bool(spec["italic"]),
            underline=bool(spec["underline"]),
        )
        self._token_styles[token_type] = style
        return style

    def highlight_lines(self, text: str, language: str) -> list[list[StyledSpan]]:
        """Highlight a whole file, keeping lexer state across lines."""
        lexer = self.lexer_for(language)
        lines: list[list[StyledSpan]] = [[]]
        for token_type, value in lexer.get_tokens(text):
            style = self.style_for(token_type)
            for i, part in enumerate(value.split("\n")):
                if i > 0:
                    lines.append([])
                if part:
                    lines[-1].append((style, part))
        if text.endswith("\n") and not lines[-1]:
            lines.pop()
        return lines

    def highlight(self, line: str, language: str) -> list[StyledSpan]:
        rows = self.highlight_lines(line.rstrip("\n"), language)
        return rows[0] if rows else [(DEFAULT_STYLE, "")]
