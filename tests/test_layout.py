"""Tests for presiterm.layout -- extents, centering and bounded areas."""

from __future__ import annotations

from presiterm.layout import (
    Rect,
    bounded_area,
    center_block,
    center_lines,
    clip_rect,
    sat_sub,
    text_extent,
)


class TestTextExtent:
    def test_width_is_widest_line_plus_one(self):
        assert text_extent("ab\nabc") == (4, 2)

    def test_empty_text(self):
        assert text_extent("") == (1, 0)

    def test_trailing_newline_adds_no_line(self):
        assert text_extent("abc\n") == (4, 1)

    def test_wide_characters_count_double(self):
        assert text_extent("日本") == (5, 1)

    def test_escape_sequences_ignored(self):
        assert text_extent("\x1b[1mbold\x1b[0m") == (5, 1)


class TestCenterBlock:
    def test_centers_in_viewport(self):
        assert center_block((4, 2), (80, 24)) == (38, 11)

    def test_oversized_pins_to_origin(self):
        assert center_block((100, 50), (80, 24)) == (0, 0)

    def test_sat_sub_never_negative(self):
        assert sat_sub(3, 5) == 0
        assert sat_sub(5, 3) == 2


class TestCenterLines:
    def test_each_line_centered_on_its_own_width(self):
        placed = center_lines("a\nbb\nccc", (10, 9))
        assert placed == [(4, 3, "a"), (4, 4, "bb"), (3, 5, "ccc")]

    def test_single_line(self):
        assert center_lines("Hello", (11, 3)) == [(3, 1, "Hello")]

    def test_line_wider_than_viewport_starts_at_zero(self):
        assert center_lines("abcdef", (4, 1)) == [(0, 0, "abcdef")]

    def test_empty_content(self):
        assert center_lines("", (80, 24)) == []


class TestBoundedArea:
    def test_width_clamped_to_margins(self):
        assert bounded_area(100, 2, (80, 24)) == Rect(2, 6, 76, 12)

    def test_narrow_content_is_centered(self):
        area = bounded_area(10, 2, (80, 24))
        assert area == Rect(35, 6, 10, 12)

    def test_height_is_half_viewport(self):
        assert bounded_area(10, 0, (40, 9)).height == 4

    def test_margin_larger_than_viewport(self):
        area = bounded_area(10, 50, (80, 24))
        assert area.width == 0
        assert area.x == 40


class TestClipRect:
    def test_clips_to_viewport(self):
        assert clip_rect(Rect(0, 0, 35, 35), (80, 24)) == Rect(0, 0, 35, 24)

    def test_rect_inside_unchanged(self):
        assert clip_rect(Rect(1, 2, 3, 4), (80, 24)) == Rect(1, 2, 3, 4)

    def test_rect_outside_is_empty(self):
        clipped = clip_rect(Rect(90, 30, 5, 5), (80, 24))
        assert clipped.width == 0
        assert clipped.height == 0

    def test_right_and_bottom(self):
        rect = Rect(2, 3, 10, 5)
        assert rect.right == 12
        assert rect.bottom == 8
