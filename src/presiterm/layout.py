"""Placement of text and media blocks inside a terminal viewport.

Every function here is pure. Arithmetic saturates at zero: content larger
than the viewport is pinned to the top-left corner instead of being placed
at a negative offset.
"""

from __future__ import annotations

from dataclasses import dataclass

from presiterm.utils import visible_width

Extent = tuple[int, int]
Viewport = tuple[int, int]


@dataclass(frozen=True)
class Rect:
    x: int
    y: int
    width: int
    height: int

    @property
    def right(self) -> int:
        return self.x + self.width

    @property
    def bottom(self) -> int:
        return self.y + self.height


def sat_sub(a: int, b: int) -> int:
    return a - b if a > b else 0


def text_lines(content: str) -> list[str]:
    """Split like a line iterator: a trailing newline does not add a line."""
    return content.splitlines()


def text_extent(content: str) -> Extent:
    """Return ``(width, height)`` of a text block.

    The width is one more than the widest line so that content placed flush
    right never lands in the terminal's last column.
    """
    lines = text_lines(content)
    widest = max((visible_width(line) for line in lines), default=0)
    return 1 + widest, len(lines)


def center_block(extent: Extent, viewport: Viewport) -> tuple[int, int]:
    ew, eh = extent
    vw, vh = viewport
    return sat_sub(vw, ew) // 2, sat_sub(vh, eh) // 2


def center_lines(content: str, viewport: Viewport) -> list[tuple[int, int, str]]:
    """Place each line of *content* centered on its own width.

    The block is vertically centered by its line count. Horizontally each
    line is centered independently, so a short line sits further right than
    a long one.
    """
    vw, vh = viewport
    lines = text_lines(content)
    top = sat_sub(vh, len(lines)) // 2
    return [
        (sat_sub(vw, visible_width(line)) // 2, top + row, line)
        for row, line in enumerate(lines)
    ]


def bounded_area(desired_width: int, margin: int, viewport: Viewport) -> Rect:
    """Rectangle at most ``viewport_width - 2 * margin`` wide and half the
    viewport tall, centered in the viewport."""
    vw, vh = viewport
    width = min(desired_width, sat_sub(vw, 2 * margin))
    height = vh // 2
    return Rect(sat_sub(vw, width) // 2, sat_sub(vh, height) // 2, width, height)


def clip_rect(rect: Rect, viewport: Viewport) -> Rect:
    """Intersect *rect* with the viewport anchored at the origin."""
    vw, vh = viewport
    x = min(rect.x, vw)
    y = min(rect.y, vh)
    return Rect(x, y, min(rect.width, sat_sub(vw, x)), min(rect.height, sat_sub(vh, y)))
