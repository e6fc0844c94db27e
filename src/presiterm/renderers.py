"""Slide renderers.

Each slide kind has one renderer implementing :class:`SlideRenderer`. The
event loop looks a renderer up with :func:`renderer_for` and hands it the
screen buffer for one call. Collaborators (highlighter, markdown renderer,
image decoder, process runner) travel in :class:`RenderContext`.
"""

from __future__ import annotations

import logging
import sys
from dataclasses import dataclass, field
from pathlib import Path
from typing import IO, Protocol

from presiterm.deck import CodeSlide, CommandSlide, ImageSlide, MarkdownSlide, Slide, TextSlide
from presiterm.errors import RenderError
from presiterm.highlight import Highlighter, PygmentsHighlighter
from presiterm.images import HeaderImageDecoder, ImageDecoder
from presiterm.layout import Rect, bounded_area, center_block, center_lines, text_extent
from presiterm.markdown import MarkdownRenderer, TerminalMarkdown
from presiterm.process import ProcessRunner, SubprocessRunner
from presiterm.screen import ScreenBuffer
from presiterm.style import DEFAULT_STYLE

logger = logging.getLogger(__name__)


def _default_markdown() -> MarkdownRenderer:
    return TerminalMarkdown(highlighter=PygmentsHighlighter())


@dataclass
class RenderContext:
    margin: int = 2
    highlighter: Highlighter = field(default_factory=PygmentsHighlighter)
    markdown: MarkdownRenderer = field(default_factory=_default_markdown)
    image_decoder: ImageDecoder = field(default_factory=HeaderImageDecoder)
    process_runner: ProcessRunner = field(default_factory=SubprocessRunner)
    image_size: tuple[int, int] = (35, 35)
    # Command output is written here directly, not through the screen buffer
    stdout: IO[str] = field(default_factory=lambda: sys.stdout)


class SlideRenderer(Protocol):
    def render(self, screen: ScreenBuffer, ctx: RenderContext) -> None: ...


def _read_text(path: str) -> str:
    try:
        return Path(path).read_text(encoding="utf-8")
    except OSError as exc:
        raise RenderError(f"cannot read {path}: {exc.strerror or exc}") from exc
    except UnicodeDecodeError as exc:
        raise RenderError(f"{path} is not valid UTF-8") from exc


def _read_bytes(path: str) -> bytes:
    try:
        return Path(path).read_bytes()
    except OSError as exc:
        raise RenderError(f"cannot read {path}: {exc.strerror or exc}") from exc


class TextRenderer:
    def __init__(self, slide: TextSlide) -> None:
        self.slide = slide

    def render(self, screen: ScreenBuffer, ctx: RenderContext) -> None:
        screen.clear()
        screen.set_cursor_visible(False)
        for x, y, line in center_lines(self.slide.content, screen.dimensions()):
            screen.set_cursor(x, y)
            screen.write(line)


class MarkdownSlideRenderer:
    """Markdown file rendered into a centered area at most half the screen tall."""

    def __init__(self, slide: MarkdownSlide) -> None:
        self.slide = slide

    def render(self, screen: ScreenBuffer, ctx: RenderContext) -> None:
        text = _read_text(self.slide.path)
        width, _ = text_extent(text)
        area = bounded_area(width, ctx.margin, screen.dimensions())
        ctx.markdown.render(text, area, screen)


class ImageRenderer:
    def __init__(self, slide: ImageSlide) -> None:
        self.slide = slide

    def render(self, screen: ScreenBuffer, ctx: RenderContext) -> None:
        raw = _read_bytes(self.slide.path)
        try:
            texture = ctx.image_decoder.decode(raw)
        except RenderError as exc:
            raise RenderError(f"{self.slide.path}: {exc}") from exc
        columns, rows = ctx.image_size
        screen.draw_image(Rect(0, 0, columns, rows), texture)


class CodeRenderer:
    """Highlighted source file, centered as a block.

    Each source line starts at the block's left edge, so indentation
    stays aligned. An unknown language tag is an error.
    """

    def __init__(self, slide: CodeSlide) -> None:
        self.slide = slide

    def render(self, screen: ScreenBuffer, ctx: RenderContext) -> None:
        code = _read_text(self.slide.path)
        x, y = center_block(text_extent(code), screen.dimensions())
        rows = ctx.highlighter.highlight_lines(code, self.slide.language)
        for offset, spans in enumerate(rows):
            screen.set_cursor(x, y + offset)
            for style, text in spans:
                screen.set_style(style)
                screen.write(text)
        screen.set_style(DEFAULT_STYLE)


class CommandRenderer:
    """Runs the command and prints its stdout.

    The output goes straight to ``ctx.stdout`` from the top-left of a cleared
    screen. It does not pass through the screen buffer, so it is neither laid
    out nor diffed. The buffer is marked so the next frame clears it.
    """

    def __init__(self, slide: CommandSlide) -> None:
        self.slide = slide

    def render(self, screen: ScreenBuffer, ctx: RenderContext) -> None:
        output = ctx.process_runner.run(self.slide.argv)
        text = output.decode("utf-8", errors="replace")
        logger.debug("command %r produced %d bytes", self.slide.argv, len(output))
        screen.clear()
        screen.invalidate()
        screen.flush()
        ctx.stdout.write(text)
        ctx.stdout.flush()
        screen.mark_external_output()


_RENDERERS: dict[type, type] = {
    TextSlide: TextRenderer,
    MarkdownSlide: MarkdownSlideRenderer,
    ImageSlide: ImageRenderer,
    CodeSlide: CodeRenderer,
    CommandSlide: CommandRenderer,
}


def renderer_for(slide: Slide) -> SlideRenderer:
    try:
        renderer_cls = _RENDERERS[type(slide)]
    except KeyError:
        raise RenderError(f"no renderer for slide type {type(slide).__name__}") from None
    return renderer_cls(slide)
