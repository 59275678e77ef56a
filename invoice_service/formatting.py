"""Formatting and drawing utility helpers."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Callable, List, Protocol, Union

from dateutil import parser as dateutil_parser

ELLIPSIS = "..."


class TextWidthProvider(Protocol):
    def text_width(self, text: str, size: int, bold: bool = False) -> float:
        ...


class PdfPathCanvas(Protocol):
    k: float
    h: float

    def rect(self, x: float, y: float, width: float, height: float, style: str) -> None:
        ...

    def _out(self, value: str) -> None:
        ...


def fmt_money(amount: Any, symbol: str) -> str:
    return f"{symbol}{amount:,.2f}"


def fmt_qty(qty: Any) -> str:
    try:
        quantity = float(qty)
        if quantity.is_integer():
            return str(int(quantity))
        return str(quantity)
    except Exception:
        return str(qty)


def fmt_date(value: Union[datetime, str, None]) -> str:
    """Format a timestamp (or a parseable date string) as 'YYYY-MM-DD'."""
    if value is None:
        return ""
    if isinstance(value, datetime):
        return value.strftime("%Y-%m-%d")
    raw = value.strip()
    if not raw:
        return raw
    try:
        return dateutil_parser.parse(raw).strftime("%Y-%m-%d")
    except (ValueError, OverflowError):
        return raw


def fmt_timestamp_utc(value: datetime) -> str:
    if value.tzinfo is not None:
        value = value.astimezone(timezone.utc)
    return value.strftime("%Y-%m-%d %H:%M:%S UTC")


def truncate_text(text: str, max_chars: int) -> str:
    """Cut text to ``max_chars`` characters, ending in an ellipsis when shortened."""
    if not text or len(text) <= max_chars:
        return text
    if max_chars <= len(ELLIPSIS):
        return text[:max_chars]
    return text[: max_chars - len(ELLIPSIS)] + ELLIPSIS


def ellipsize_line(line: str) -> str:
    """Mark a line as cut off, keeping its length unless it is too short to hold the ellipsis."""
    if len(line) <= len(ELLIPSIS):
        return line + ELLIPSIS
    return line[: len(line) - len(ELLIPSIS)] + ELLIPSIS


def wrap_columns(text: str, max_chars: int) -> List[str]:
    """Greedy word wrap on a character budget; a single long word keeps its own line."""
    lines: List[str] = []
    if not text:
        return lines

    current = ""
    for word in text.split():
        candidate = word if not current else f"{current} {word}"
        if len(candidate) <= max_chars:
            current = candidate
            continue
        if current:
            lines.append(current)
        current = word

    if current:
        lines.append(current)
    return lines


def split_lines(text: str) -> List[str]:
    if not text:
        return []
    return [line for line in text.split("\n") if line.strip() != ""]


def _break_word(word: str, fits: Callable[[str], bool]) -> List[str]:
    pieces: List[str] = []
    chunk = ""
    for char in word:
        if chunk and not fits(chunk + char):
            pieces.append(chunk)
            chunk = char
        else:
            chunk += char
    if chunk:
        pieces.append(chunk)
    return pieces


def wrap_text(
    fonts_obj: TextWidthProvider,
    text: str,
    max_width: float,
    font_size: int,
    bold: bool = False,
) -> List[str]:
    """Word-wrap each non-blank line of ``text`` to ``max_width`` points.

    Words wider than a whole line are broken between characters.
    """

    def fits(value: str) -> bool:
        return fonts_obj.text_width(value, font_size, bold=bold) <= max_width

    lines: List[str] = []
    for paragraph in split_lines(text):
        current = ""
        for word in paragraph.split():
            candidate = f"{current} {word}" if current else word
            if fits(candidate):
                current = candidate
                continue
            if current:
                lines.append(current)
            if fits(word):
                current = word
                continue
            *complete, current = _break_word(word, fits)
            lines.extend(complete)
        if current:
            lines.append(current)
    return lines


# Bezier control-point ratio for approximating a quarter circle.
KAPPA = 0.5522847498307936


def round_rect(
    pdf: PdfPathCanvas,
    x: float,
    y: float,
    width: float,
    height: float,
    radius: float,
    fill: bool = True,
) -> None:
    """Draw a rounded rectangle with the current colors; filled and stroked when ``fill``."""
    radius = max(0.0, min(radius, width / 2.0, height / 2.0))
    if radius == 0:
        pdf.rect(x, y, width, height, "DF" if fill else "D")
        return

    def point(px: float, py: float) -> str:
        return f"{px * pdf.k:.2f} {(pdf.h - py) * pdf.k:.2f}"

    right = x + width
    bottom = y + height
    inset = radius * (1 - KAPPA)
    # Clockwise from the top edge: each side ends where its corner curve starts.
    sides = [
        ((right - radius, y), ((right - inset, y), (right, y + inset), (right, y + radius))),
        ((right, bottom - radius), ((right, bottom - inset), (right - inset, bottom), (right - radius, bottom))),
        ((x + radius, bottom), ((x + inset, bottom), (x, bottom - inset), (x, bottom - radius))),
        ((x, y + radius), ((x, y + inset), (x + inset, y), (x + radius, y))),
    ]

    pdf._out(f"{point(x + radius, y)} m")
    for line_end, curve in sides:
        pdf._out(f"{point(*line_end)} l")
        pdf._out(" ".join(point(*control) for control in curve) + " c")
    pdf._out("B" if fill else "S")
