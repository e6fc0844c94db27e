"""Tests for presiterm.style -- SGR tracking and ANSI-aware wrapping."""

from __future__ import annotations

from presiterm.style import (
    DEFAULT_STYLE,
    RESET,
    Style,
    parse_ansi,
    spans_to_ansi,
    wrap_ansi,
)


# ---------------------------------------------------------------------------
# Style
# ---------------------------------------------------------------------------


class TestStyleSgr:
    def test_default_is_reset(self):
        assert DEFAULT_STYLE.to_sgr() == RESET
        assert DEFAULT_STYLE.is_default

    def test_attributes_and_color(self):
        assert Style(fg="31", bold=True).to_sgr() == "\x1b[0;1;31m"

    def test_all_attributes_order(self):
        style = Style(bold=True, dim=True, italic=True, underline=True, inverse=True, strikethrough=True)
        assert style.sgr_params() == ["1", "2", "3", "4", "7", "9"]


class TestStyleApply:
    def test_empty_params_reset(self):
        assert Style(bold=True).apply([]) == DEFAULT_STYLE

    def test_basic_colors(self):
        style = DEFAULT_STYLE.apply(["31", "44"])
        assert style.fg == "31"
        assert style.bg == "44"

    def test_256_color(self):
        assert DEFAULT_STYLE.apply(["38", "5", "208"]).fg == "38;5;208"

    def test_truecolor(self):
        assert DEFAULT_STYLE.apply(["48", "2", "1", "2", "3"]).bg == "48;2;1;2;3"

    def test_attribute_off_codes(self):
        style = DEFAULT_STYLE.apply(["1", "3", "4"]).apply(["22", "23", "24"])
        assert style == DEFAULT_STYLE

    def test_default_fg(self):
        assert DEFAULT_STYLE.apply(["31"]).apply(["39"]).fg is None

    def test_params_after_extended_color_apply(self):
        style = DEFAULT_STYLE.apply(["38", "5", "1", "1"])
        assert style.fg == "38;5;1"
        assert style.bold


# ---------------------------------------------------------------------------
# parse_ansi / spans_to_ansi
# ---------------------------------------------------------------------------


class TestParseAnsi:
    def test_spans(self):
        spans, end = parse_ansi("\x1b[31mred\x1b[0m plain")
        assert spans == [(Style(fg="31"), "red"), (DEFAULT_STYLE, " plain")]
        assert end == DEFAULT_STYLE

    def test_unterminated_style_carries(self):
        _, end = parse_ansi("\x1b[1mbold")
        assert end == Style(bold=True)

    def test_base_style(self):
        spans, _ = parse_ansi("x", Style(italic=True))
        assert spans == [(Style(italic=True), "x")]

    def test_non_sgr_sequences_dropped(self):
        spans, _ = parse_ansi("a\x1b]8;;http://x\x07b")
        assert "".join(text for _, text in spans) == "ab"


class TestSpansToAnsi:
    def test_minimal_switches(self):
        out = spans_to_ansi([(Style(bold=True), "a"), (DEFAULT_STYLE, "b")])
        assert out == "\x1b[0;1ma\x1b[0mb"

    def test_trailing_reset(self):
        assert spans_to_ansi([(Style(fg="32"), "ok")]) == "\x1b[0;32mok\x1b[0m"

    def test_same_style_merged(self):
        out = spans_to_ansi([(Style(bold=True), "a"), (Style(bold=True), "b")])
        assert out == "\x1b[0;1mab\x1b[0m"


# ---------------------------------------------------------------------------
# wrap_ansi
# ---------------------------------------------------------------------------


class TestWrapAnsi:
    def test_fits(self):
        assert wrap_ansi("hello", 10) == ["hello"]

    def test_word_wrap(self):
        assert wrap_ansi("hello world foo", 11) == ["hello world", "foo"]

    def test_leading_indent_kept(self):
        assert wrap_ansi("  indented", 20) == ["  indented"]

    def test_long_word_split(self):
        assert wrap_ansi("abcdefghij", 4) == ["abcd", "efgh", "ij"]

    def test_blank_lines_preserved(self):
        assert wrap_ansi("a\n\nb", 10) == ["a", "", "b"]

    def test_style_carried_across_wrap(self):
        lines = wrap_ansi("\x1b[1mbold words\x1b[0m", 5)
        assert lines == ["\x1b[0;1mbold\x1b[0m", "\x1b[0;1mwords\x1b[0m"]

    def test_zero_width_returns_input(self):
        assert wrap_ansi("abc", 0) == ["abc"]
