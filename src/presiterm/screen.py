"""Differential screen buffer.

:class:`ScreenBuffer` keeps two grids of :class:`Cell`: the logical grid
that renderers draw into, and a copy of what the last :meth:`flush` put on
the physical terminal. Flushing compares the two and writes only the cells
that differ, positioning the cursor once per run of changed cells and
switching SGR state only when the style actually changes.

Images are a cell payload, not characters. The top-left cell of an image
region anchors an :class:`ImagePlacement`. Every other cell of the region
is a covered placeholder. Text is flushed first and images second, so an
image always ends up on top of whatever the text pass repainted beneath it.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

from presiterm.images import (
    TerminalCapabilities,
    Texture,
    delete_all_kitty_images,
    get_capabilities,
    image_fallback,
    image_sequence,
)
from presiterm.layout import Rect, clip_rect
from presiterm.style import DEFAULT_STYLE, RESET, Style, parse_ansi
from presiterm.terminal import CLEAR_SCREEN, HIDE_CURSOR, SHOW_CURSOR, Terminal
from presiterm.utils import TAB_WIDTH, split_graphemes

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ImagePlacement:
    texture: Texture
    columns: int
    rows: int


@dataclass(frozen=True)
class Cell:
    """One terminal cell.

    ``width`` is 2 for the leading half of a wide glyph and 0 for its
    trailing continuation cell, which carries an empty ``char``.
    """

    char: str = " "
    style: Style = DEFAULT_STYLE
    width: int = 1
    image: ImagePlacement | None = None
    covered: bool = False


BLANK = Cell()
_COVERED = Cell(char="", width=0, covered=True)

Grid = list[list[Cell]]


def _blank_grid(width: int, height: int) -> Grid:
    return [[BLANK] * width for _ in range(height)]


def _cup(x: int, y: int) -> str:
    return f"\x1b[{y + 1};{x + 1}H"


class ScreenBuffer:
    """A logical grid of styled cells plus the last flushed grid.

    Renderers get the buffer for the duration of a single render call and
    must not keep a reference to it afterwards.
    """

    def __init__(
        self,
        terminal: Terminal,
        width: int | None = None,
        height: int | None = None,
        capabilities: TerminalCapabilities | None = None,
    ) -> None:
        self.terminal = terminal
        self._width = max(0, terminal.columns if width is None else width)
        self._height = max(0, terminal.rows if height is None else height)
        self._capabilities = capabilities

        self._cells: Grid = _blank_grid(self._width, self._height)
        # None means the physical screen is unknown and needs a full redraw
        self._previous: Grid | None = None

        self._cursor_x = 0
        self._cursor_y = 0
        self._style = DEFAULT_STYLE

        self._cursor_visible = True
        self._emitted_cursor_visible: bool | None = None

        self._full_redraw_count = 0
        self._last_flush_writes = 0
        # Set when something wrote to the terminal behind the grid's back
        self._external_output = False

    # ------------------------------------------------------------------
    # Accessors
    # ------------------------------------------------------------------

    def dimensions(self) -> tuple[int, int]:
        return self._width, self._height

    @property
    def cursor(self) -> tuple[int, int]:
        return self._cursor_x, self._cursor_y

    @property
    def style(self) -> Style:
        return self._style

    @property
    def full_redraws(self) -> int:
        return self._full_redraw_count

    @property
    def last_flush_writes(self) -> int:
        """Number of terminal commands the most recent flush emitted."""
        return self._last_flush_writes

    @property
    def external_output(self) -> bool:
        return self._external_output

    def cell(self, x: int, y: int) -> Cell:
        return self._cells[y][x]

    def row_text(self, y: int) -> str:
        """Plain characters of row *y* (test and debug helper)."""
        return "".join(c.char for c in self._cells[y])

    @property
    def capabilities(self) -> TerminalCapabilities:
        return self._capabilities or get_capabilities()

    # ------------------------------------------------------------------
    # Mutation
    # ------------------------------------------------------------------

    def resize(self, width: int, height: int) -> None:
        """Reallocate the grids. The next flush repaints everything."""
        self._width = max(0, width)
        self._height = max(0, height)
        self._cells = _blank_grid(self._width, self._height)
        self._previous = None
        self._cursor_x = self._cursor_y = 0

    def invalidate(self) -> None:
        """Forget what the terminal shows. The next flush clears and repaints."""
        self._previous = None
        self._external_output = False

    def mark_external_output(self) -> None:
        """Record that text reached the terminal without going through the grid.

        The current frame keeps that text on screen. Whoever starts the next
        frame is expected to check :attr:`external_output` and invalidate.
        """
        self._external_output = True

    def clear(self) -> None:
        """Blank every cell and home the cursor. The style context resets too."""
        self._cells = _blank_grid(self._width, self._height)
        self._cursor_x = self._cursor_y = 0
        self._style = DEFAULT_STYLE

    def set_cursor(self, x: int, y: int) -> None:
        self._cursor_x = max(0, x)
        self._cursor_y = max(0, y)

    def set_style(self, style: Style) -> None:
        self._style = style

    def set_cursor_visible(self, visible: bool) -> None:
        self._cursor_visible = visible

    def write(self, text: str) -> None:
        """Write *text* at the cursor in the current style.

        A newline moves to the next row at the column the write started
        from. Anything past the right or bottom edge is clipped.
        """
        left = self._cursor_x
        for row, line in enumerate(text.split("\n")):
            if row > 0:
                self._cursor_x = left
                self._cursor_y += 1
            self._write_line(line)

    def write_ansi(self, text: str) -> None:
        """Write text carrying embedded SGR sequences, updating the style context."""
        spans, end_style = parse_ansi(text, self._style)
        for style, chunk in spans:
            self._style = style
            self.write(chunk)
        self._style = end_style

    def draw_image(self, region: Rect, texture: Texture) -> None:
        """Attach *texture* to *region*, clipped to the screen."""
        area = clip_rect(region, (self._width, self._height))
        if area.width == 0 or area.height == 0:
            return

        for y in range(area.y, area.bottom):
            row = self._cells[y]
            for x in range(area.x, area.right):
                row[x] = _COVERED
        self._cells[area.y][area.x] = Cell(
            char="",
            width=0,
            image=ImagePlacement(texture, area.width, area.height),
            covered=True,
        )

    def _write_line(self, line: str) -> None:
        y = self._cursor_y
        if y >= self._height:
            return

        row = self._cells[y]
        x = self._cursor_x
        for g, w in split_graphemes(line):
            if g == "\t":
                for _ in range(TAB_WIDTH - x % TAB_WIDTH):
                    if x < self._width:
                        self._put(row, x, Cell(" ", self._style))
                    x += 1
                continue
            if w == 0:
                continue
            if x + w > self._width:
                x += w
                break
            self._put(row, x, Cell(g, self._style, width=w))
            if w == 2:
                self._put(row, x + 1, Cell("", self._style, width=0))
            x += w
        self._cursor_x = x

    def _put(self, row: list[Cell], x: int, cell: Cell) -> None:
        old = row[x]
        # Keep wide glyphs whole: overwriting either half blanks the other
        if old.width == 0 and not old.covered and x > 0 and row[x - 1].width == 2:
            row[x - 1] = Cell(" ", row[x - 1].style)
        if old.width == 2 and cell.width != 2 and x + 1 < len(row):
            row[x + 1] = Cell(" ", old.style)
        row[x] = cell

    # ------------------------------------------------------------------
    # Flush
    # ------------------------------------------------------------------

    def flush(self) -> None:
        """Bring the physical terminal in line with the logical grid.

        Emits nothing when nothing changed since the previous flush.
        """
        out: list[str] = []
        caps = self.capabilities

        full = self._previous is None
        previous = self._previous if self._previous is not None else _blank_grid(self._width, self._height)
        if full:
            self._full_redraw_count += 1
            out.append(RESET)
            out.append(CLEAR_SCREEN)
            if caps.images == "kitty":
                out.append(delete_all_kitty_images())

        # Kitty placements survive text overwrites: if any image went away
        # or moved, delete them all and re-send every current one.
        resend_images = False
        if not full and caps.images == "kitty":
            for y in range(self._height):
                for old, new in zip(previous[y], self._cells[y]):
                    if old.image is not None and old != new:
                        resend_images = True
                        break
                if resend_images:
                    out.append(delete_all_kitty_images())
                    break

        if self._cursor_visible != self._emitted_cursor_visible:
            out.append(SHOW_CURSOR if self._cursor_visible else HIDE_CURSOR)
            self._emitted_cursor_visible = self._cursor_visible

        # -- text pass ---------------------------------------------------
        term_style = DEFAULT_STYLE
        anchors: list[tuple[int, int, ImagePlacement]] = []
        for y in range(self._height):
            term_x: int | None = None
            old_row = previous[y]
            for x, cell in enumerate(self._cells[y]):
                if cell.image is not None and (full or resend_images or cell != old_row[x]):
                    anchors.append((x, y, cell.image))
                if cell == old_row[x]:
                    continue
                if cell.width == 0 and not cell.covered:
                    continue
                if term_x != x:
                    out.append(_cup(x, y))
                if cell.covered:
                    char, style, advance = " ", DEFAULT_STYLE, 1
                else:
                    char, style, advance = cell.char, cell.style, cell.width
                if style != term_style:
                    out.append(style.to_sgr())
                    term_style = style
                out.append(char)
                term_x = x + advance

        if term_style != DEFAULT_STYLE:
            out.append(RESET)

        # -- image pass --------------------------------------------------
        for x, y, placement in anchors:
            out.append(_cup(x, y))
            seq = image_sequence(placement.texture, placement.columns, placement.rows, caps)
            if seq is None:
                seq = image_fallback(placement.texture)[: placement.columns]
            out.append(seq)

        self._previous = [list(row) for row in self._cells]
        self._last_flush_writes = len(out)

        if out:
            logger.debug(
                "flush: %d commands (%s)", len(out), "full" if full else "diff"
            )
            self.terminal.write("".join(out))
