import unittest
from datetime import datetime, timedelta, timezone
from decimal import Decimal

from invoice_service.formatting import (
    ellipsize_line,
    fmt_date,
    fmt_money,
    fmt_qty,
    fmt_timestamp_utc,
    round_rect,
    split_lines,
    truncate_text,
    wrap_columns,
    wrap_text,
)


class FixedWidthFonts:
    """Every character is 5 points wide."""

    def text_width(self, text: str, size: int, bold: bool = False) -> float:
        return 5.0 * len(text)


class FormattingTests(unittest.TestCase):
    def test_fmt_date_formats_datetimes_and_date_strings(self) -> None:
        self.assertEqual(fmt_date(datetime(2026, 1, 15, 9, 30, tzinfo=timezone.utc)), "2026-01-15")
        self.assertEqual(fmt_date("Jan 15, 2026"), "2026-01-15")

    def test_fmt_date_returns_original_for_invalid_input(self) -> None:
        raw = "not-a-date"
        self.assertEqual(fmt_date(raw), raw)
        self.assertEqual(fmt_date(None), "")

    def test_fmt_money_uses_two_decimals_and_grouping(self) -> None:
        self.assertEqual(fmt_money(Decimal("1234.5"), "$"), "$1,234.50")
        self.assertEqual(fmt_money(Decimal("0"), "€"), "€0.00")

    def test_fmt_qty_handles_integer_and_float_values(self) -> None:
        self.assertEqual(fmt_qty(3), "3")
        self.assertEqual(fmt_qty(2.5), "2.5")

    def test_fmt_timestamp_utc_converts_offsets(self) -> None:
        value = datetime(2026, 1, 15, 12, 0, tzinfo=timezone(timedelta(hours=2)))
        self.assertEqual(fmt_timestamp_utc(value), "2026-01-15 10:00:00 UTC")

    def test_truncate_text_ends_with_ellipsis(self) -> None:
        self.assertEqual(truncate_text("short", 35), "short")
        self.assertEqual(truncate_text("a" * 40, 35), "a" * 32 + "...")
        self.assertEqual(len(truncate_text("b" * 100, 35)), 35)

    def test_ellipsize_line_keeps_length_and_marks_short_lines(self) -> None:
        self.assertEqual(ellipsize_line("a" * 20), "a" * 17 + "...")
        self.assertEqual(ellipsize_line("abcd"), "a...")
        for line in ("abc", "ab", "a", ""):
            with self.subTest(line=line):
                self.assertTrue(ellipsize_line(line).endswith("..."))
                self.assertTrue(ellipsize_line(line).startswith(line))

    def test_wrap_columns_breaks_on_words(self) -> None:
        lines = wrap_columns("123 Main St, New York, NY 10001", 15)

        self.assertEqual(lines, ["123 Main St,", "New York, NY", "10001"])
        self.assertEqual(wrap_columns("", 10), [])

    def test_split_lines_ignores_blank_lines(self) -> None:
        self.assertEqual(split_lines("a\n\n b \n"), ["a", " b "])

    def test_wrap_text_respects_width(self) -> None:
        lines = wrap_text(FixedWidthFonts(), "one two three four", 50, 10)

        self.assertEqual(lines, ["one two", "three four"])
        for line in lines:
            self.assertLessEqual(len(line) * 5.0, 50)

    def test_wrap_text_splits_words_longer_than_the_line(self) -> None:
        lines = wrap_text(FixedWidthFonts(), "abcdefghijkl", 25, 10)

        self.assertEqual(lines, ["abcde", "fghij", "kl"])


class RecordingCanvas:
    k = 1.0
    h = 792.0

    def __init__(self) -> None:
        self.ops = []
        self.rects = []

    def rect(self, x: float, y: float, width: float, height: float, style: str) -> None:
        self.rects.append((x, y, width, height, style))

    def _out(self, value: str) -> None:
        self.ops.append(value)


class RoundRectTests(unittest.TestCase):
    def test_draws_closed_path_with_four_curves(self) -> None:
        canvas = RecordingCanvas()

        round_rect(canvas, 50, 100, 200, 40, 6, fill=True)

        self.assertEqual(canvas.ops[0], "56.00 692.00 m")
        self.assertEqual(sum(1 for op in canvas.ops if op.endswith(" c")), 4)
        self.assertEqual(canvas.ops[-1], "B")

    def test_zero_radius_falls_back_to_plain_rect(self) -> None:
        canvas = RecordingCanvas()

        round_rect(canvas, 0, 0, 10, 10, 0, fill=False)

        self.assertEqual(canvas.rects, [(0, 0, 10, 10, "D")])
        self.assertEqual(canvas.ops, [])


if __name__ == "__main__":
    unittest.main()
