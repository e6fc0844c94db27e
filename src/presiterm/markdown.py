"""Markdown rendering into a rectangular screen area.

Parses with ``markdown-it-py`` and walks the flat open/close token stream:

- ``heading_open`` / ``paragraph_open`` are followed by an ``inline`` token
  whose ``children`` hold the text runs and emphasis markers.
- Code fences are single ``fence`` tokens with the language in ``info``.
- Lists, blockquotes and tables are delimited by matching ``*_open`` /
  ``*_close`` pairs and are rendered recursively.

Each block becomes a list of SGR-styled lines wrapped to the area width.
:meth:`TerminalMarkdown.render` then writes them into the screen buffer
top to bottom and clips at the area's height.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from typing import TYPE_CHECKING, Protocol

from markdown_it import MarkdownIt
from markdown_it.token import Token

from presiterm.errors import RenderError
from presiterm.style import RESET, spans_to_ansi, wrap_ansi
from presiterm.utils import visible_width

if TYPE_CHECKING:
    from presiterm.highlight import Highlighter
    from presiterm.layout import Rect
    from presiterm.screen import ScreenBuffer

logger = logging.getLogger(__name__)

_BOLD = "\x1b[1m"
_DIM = "\x1b[2m"
_ITALIC = "\x1b[3m"
_UNDERLINE = "\x1b[4m"
_STRIKETHROUGH = "\x1b[9m"


class MarkdownRenderer(Protocol):
    def render(self, text: str, area: Rect, screen: ScreenBuffer) -> None: ...


@dataclass
class MarkdownTheme:
    """SGR sequences used for each markdown element. Empty means unstyled."""

    heading_color: str = "\x1b[36m"
    code_fg: str = "\x1b[33m"
    inline_code_fg: str = "\x1b[33m"
    link_color: str = "\x1b[34m"
    quote_color: str = "\x1b[2m"
    rule_color: str = "\x1b[2m"
    bullet_color: str = "\x1b[36m"


@dataclass
class _InlineState:
    bold: bool = False
    italic: bool = False
    strikethrough: bool = False
    link_href: str | None = None


# CommonMark plus the GFM table and strikethrough rules
_md_parser = MarkdownIt("commonmark").enable(["table", "strikethrough"])


class TerminalMarkdown:
    """Renders markdown to styled terminal lines.

    Fenced code with a language tag is highlighted when a highlighter is
    given. An unknown fence language is shown as plain code: inside a
    markdown slide the code block is decoration, not the slide's subject.
    """

    def __init__(
        self,
        theme: MarkdownTheme | None = None,
        highlighter: Highlighter | None = None,
    ) -> None:
        self._theme = theme or MarkdownTheme()
        self._highlighter = highlighter

    # -- collaborator entry point -------------------------------------------

    def render(self, text: str, area: Rect, screen: ScreenBuffer) -> None:
        lines = self.render_lines(text, area.width)
        if len(lines) > area.height:
            logger.debug("markdown clipped: %d lines into %d rows", len(lines), area.height)
        for row, line in enumerate(lines[: area.height]):
            screen.set_cursor(area.x, area.y + row)
            screen.write_ansi(line)

    def render_lines(self, text: str, width: int) -> list[str]:
        if not text.strip() or width <= 0:
            return []
        try:
            tokens = _md_parser.parse(text)
        except Exception as exc:
            raise RenderError(f"markdown parse failed: {exc}") from exc
        lines = self._render_blocks(tokens, width)
        while lines and lines[-1] == "":
            lines.pop()
        return lines

    # -- block level ----------------------------------------------------------

    def _render_blocks(self, tokens: list[Token], width: int) -> list[str]:  # noqa: C901
        lines: list[str] = []
        i = 0
        n = len(tokens)

        while i < n:
            tok = tokens[i]
            t = tok.type

            if t == "heading_open":
                level = int(tok.tag[1]) if tok.tag.startswith("h") else 1
                lines.extend(self._render_heading(self._inline_at(tokens, i + 1), level, width))
                i = _find_close(tokens, i) + 1
                continue

            if t == "paragraph_open":
                lines.extend(wrap_ansi(self._inline_at(tokens, i + 1), width))
                lines.append("")
                i = _find_close(tokens, i) + 1
                continue

            if t in ("fence", "code_block"):
                lang = tok.info.strip().split(" ")[0] if tok.info else ""
                lines.extend(self._render_code(tok.content.rstrip("\n"), lang, width))
                i += 1
                continue

            if t in ("bullet_list_open", "ordered_list_open"):
                close = _find_close(tokens, i)
                start = int(tok.attrs.get("start", 1) or 1)
                lines.extend(
                    self._render_list(tokens[i + 1 : close], t == "ordered_list_open", start, width)
                )
                lines.append("")
                i = close + 1
                continue

            if t == "blockquote_open":
                close = _find_close(tokens, i)
                lines.extend(self._render_quote(tokens[i + 1 : close], width))
                i = close + 1
                continue

            if t == "table_open":
                close = _find_close(tokens, i)
                lines.extend(self._render_table(tokens[i + 1 : close], width))
                lines.append("")
                i = close + 1
                continue

            if t == "hr":
                lines.append(f"{self._theme.rule_color}{'─' * width}{RESET}")
                lines.append("")
                i += 1
                continue

            if t == "html_block":
                for raw in tok.content.rstrip("\n").split("\n"):
                    lines.extend(wrap_ansi(raw, width))
                lines.append("")
                i += 1
                continue

            if t == "inline":
                lines.extend(wrap_ansi(self._render_inline(tok), width))
                i += 1
                continue

            i += 1

        return lines

    def _render_heading(self, text: str, level: int, width: int) -> list[str]:
        color = self._theme.heading_color
        if level == 1:
            styled = f"{color}{_BOLD}{_UNDERLINE}{text}{RESET}"
        elif level == 2:
            styled = f"{color}{_BOLD}{text}{RESET}"
        else:
            styled = f"{_DIM}{'#' * level}{RESET} {color}{_BOLD}{text}{RESET}"
        return [*wrap_ansi(styled, width), ""]

    def _render_code(self, code: str, lang: str, width: int) -> list[str]:
        lines: list[str] = []
        highlighted: list[str] | None = None
        if lang and self._highlighter is not None:
            try:
                rows = self._highlighter.highlight_lines(code, lang)
                highlighted = [spans_to_ansi(row) for row in rows]
            except RenderError:
                logger.debug("no highlighter for fence language %r", lang)

        if highlighted is None:
            highlighted = [f"{self._theme.code_fg}{line}{RESET}" for line in code.split("\n")]

        for line in highlighted:
            lines.extend(wrap_ansi("  " + line.replace("\t", "    "), width))
        lines.append("")
        return lines

    def _render_list(self, tokens: list[Token], ordered: bool, start: int, width: int) -> list[str]:
        lines: list[str] = []
        number = start
        i = 0
        while i < len(tokens):
            if tokens[i].type != "list_item_open":
                i += 1
                continue
            close = _find_close(tokens, i)
            marker = f"{number}. " if ordered else "• "
            indent = " " * visible_width(marker)
            body = self._render_blocks(tokens[i + 1 : close], max(1, width - len(indent)))
            while body and body[-1] == "":
                body.pop()
            for j, line in enumerate(body or [""]):
                prefix = f"{self._theme.bullet_color}{marker}{RESET}" if j == 0 else indent
                lines.append(prefix + line)
            number += 1
            i = close + 1
        return lines

    def _render_quote(self, tokens: list[Token], width: int) -> list[str]:
        body = self._render_blocks(tokens, max(1, width - 2))
        while body and body[-1] == "":
            body.pop()
        bar = f"{self._theme.quote_color}│{RESET} "
        return [bar + line for line in body] + [""]

    def _render_table(self, tokens: list[Token], width: int) -> list[str]:
        rows: list[list[str]] = []
        header_rows = 0
        in_head = False
        for tok in tokens:
            if tok.type == "thead_open":
                in_head = True
            elif tok.type == "thead_close":
                in_head = False
            elif tok.type == "tr_open":
                rows.append([])
                if in_head:
                    header_rows += 1
            elif tok.type == "inline" and rows:
                rows[-1].append(self._render_inline(tok))

        if not rows:
            return []

        columns = max(len(r) for r in rows)
        widths = [
            max((visible_width(r[c]) for r in rows if c < len(r)), default=0) for c in range(columns)
        ]

        lines: list[str] = []
        for index, row in enumerate(rows):
            cells = [
                (row[c] if c < len(row) else "") + " " * (widths[c] - visible_width(row[c] if c < len(row) else ""))
                for c in range(columns)
            ]
            text = " │ ".join(cells)
            if index < header_rows:
                text = f"{_BOLD}{text}{RESET}"
            lines.extend(wrap_ansi(text, width))
            if index == header_rows - 1:
                lines.append("─┼─".join("─" * w for w in widths)[:width])
        return lines

    # -- inline level ---------------------------------------------------------

    def _inline_at(self, tokens: list[Token], index: int) -> str:
        if index < len(tokens) and tokens[index].type == "inline":
            return self._render_inline(tokens[index])
        return ""

    def _render_inline(self, tok: Token) -> str:  # noqa: C901
        if not tok.children:
            return tok.content

        parts: list[str] = []
        state = _InlineState()

        for child in tok.children:
            ct = child.type
            if ct == "text":
                parts.append(self._styled(child.content, state))
            elif ct == "softbreak":
                parts.append(" ")
            elif ct == "hardbreak":
                parts.append("\n")
            elif ct in ("strong_open", "strong_close"):
                state.bold = ct == "strong_open"
            elif ct in ("em_open", "em_close"):
                state.italic = ct == "em_open"
            elif ct in ("s_open", "s_close"):
                state.strikethrough = ct == "s_open"
            elif ct == "code_inline":
                parts.append(f"{RESET}{self._theme.inline_code_fg}{child.content}{RESET}")
            elif ct == "link_open":
                href = child.attrs.get("href")
                state.link_href = str(href) if href else None
            elif ct == "link_close":
                state.link_href = None
            elif ct == "image":
                parts.append(self._styled(f"[{child.content or 'image'}]", state))
            elif ct == "html_inline":
                stripped = re.sub(r"<[^>]+>", "", child.content)
                if stripped:
                    parts.append(self._styled(stripped, state))
            elif child.content:
                parts.append(self._styled(child.content, state))

        return "".join(parts)

    def _styled(self, text: str, state: _InlineState) -> str:
        if not text:
            return ""
        prefix: list[str] = []
        if state.link_href:
            prefix.append(self._theme.link_color + _UNDERLINE)
        if state.bold:
            prefix.append(_BOLD)
        if state.italic:
            prefix.append(_ITALIC)
        if state.strikethrough:
            prefix.append(_STRIKETHROUGH)
        if not prefix:
            return text
        return "".join(prefix) + text + RESET


def _find_close(tokens: list[Token], open_index: int) -> int:
    """Index of the token closing ``tokens[open_index]`` (matched by nesting level)."""
    opener = tokens[open_index]
    target = opener.type[: -len("_open")] + "_close"
    depth = 0
    for i in range(open_index, len(tokens)):
        tok = tokens[i]
        if tok.type == opener.type:
            depth += 1
        elif tok.type == target:
            depth -= 1
            if depth == 0:
                return i
    return len(tokens) - 1
