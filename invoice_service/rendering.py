"""Invoice PDF rendering logic."""

from __future__ import annotations

from datetime import datetime
from typing import List, Optional, Sequence

from fpdf import FPDF  # type: ignore

from .fonts import FontManager
from .formatting import (
    ellipsize_line,
    fmt_date,
    fmt_money,
    fmt_qty,
    fmt_timestamp_utc,
    round_rect,
    truncate_text,
    wrap_columns,
    wrap_text,
)
from .logging_config import get_logger
from .models import Invoice, InvoiceItem, utcnow
from .pagination import item_capacity, table_top
from .pdf_constants import (
    ADDR_LINE_H,
    ADDRESS_WRAP_CHARS,
    BAR_RADIUS,
    BILL_TO_ADDR_Y,
    BILL_TO_EMAIL_Y,
    BILL_TO_LABEL_Y,
    BILL_TO_NAME_Y,
    BILL_TO_X,
    BOX_RADIUS,
    COLOR_BAR,
    COLOR_BAR_TEXT,
    COLOR_BORDER,
    COLOR_BOX,
    COLOR_FOOTER,
    COLOR_INVOICE_NUM,
    COLOR_LABEL,
    COLOR_ROW_ALT,
    COLOR_TEXT,
    COLOR_TITLE,
    COLOR_TOTAL_BOX,
    CONTENT_W,
    DESCRIPTION_LABEL_Y,
    DESCRIPTION_LINE_H,
    DESCRIPTION_MAX_LINES,
    DESCRIPTION_TEXT_Y,
    FONT_SIZE_HEADER,
    FONT_SIZE_NORMAL,
    FONT_SIZE_SMALL,
    FONT_SIZE_TITLE,
    FOOTER_THANKS,
    FOOTER_Y,
    INFO_BOX_H,
    INFO_BOX_Y,
    INFO_FIRST_LINE_Y,
    INFO_LINE_H,
    INFO_TEXT_X,
    ITEM_DESCRIPTION_MAX_CHARS,
    MARGIN,
    NUMBER_Y,
    RIGHT_EDGE,
    TABLE_COLUMN_WIDTHS,
    TABLE_ROW_H,
    TABLE_TEXT_OFFSET_X,
    TABLE_TEXT_OFFSET_Y,
    TITLE_Y,
    TOTAL_BOX_GAP,
    TOTAL_BOX_H,
    TOTAL_BOX_W,
    TOTAL_BOX_X,
    TOTAL_LABEL_OFFSET_Y,
    TOTAL_VALUE_OFFSET_Y,
)

logger = get_logger(__name__)

DEFAULT_CURRENCY_SYMBOL = "$"


def column_positions() -> List[float]:
    positions = [float(MARGIN)]
    for width in TABLE_COLUMN_WIDTHS[:-1]:
        positions.append(positions[-1] + width)
    return positions


class InvoiceRenderer:
    """Draws one invoice on a single fixed-layout page.

    Item lists longer than the page can hold are drawn anyway and overlap
    the total box and footer; only a warning is logged.
    """

    def __init__(
        self,
        invoice: Invoice,
        items: Sequence[InvoiceItem],
        rendered_at: Optional[datetime] = None,
        currency_symbol: str = DEFAULT_CURRENCY_SYMBOL,
    ) -> None:
        self.invoice = invoice
        self.items = list(items)
        self.rendered_at = rendered_at or utcnow()
        self.symbol = currency_symbol

        self.pdf = FPDF(unit="pt", format="letter")
        self.pdf.set_auto_page_break(False)
        self.pdf.add_page()

        self.fonts = FontManager(self.pdf)
        self.columns = column_positions()

    def _draw_header(self) -> None:
        self.fonts.draw_text(MARGIN, TITLE_Y, "INVOICE", FONT_SIZE_TITLE, COLOR_TITLE, bold=True)
        self.fonts.draw_text_right(
            RIGHT_EDGE,
            NUMBER_Y,
            f"#{self.invoice.invoice_number}",
            FONT_SIZE_HEADER + 2,
            COLOR_INVOICE_NUM,
            bold=True,
        )

    def _draw_info_box(self) -> None:
        self.pdf.set_draw_color(*COLOR_BORDER)
        self.pdf.set_fill_color(*COLOR_BOX)
        self.pdf.set_line_width(1)
        self.pdf.rect(MARGIN, INFO_BOX_Y, CONTENT_W, INFO_BOX_H, "DF")

        details = [
            f"Invoice Date: {fmt_date(self.invoice.invoice_date)}",
            f"Due Date: {fmt_date(self.invoice.due_date)}",
            f"Status: {self.invoice.status.value}",
        ]
        for index, line in enumerate(details):
            self.fonts.draw_text(
                INFO_TEXT_X,
                INFO_FIRST_LINE_Y + index * INFO_LINE_H,
                line,
                FONT_SIZE_NORMAL,
                COLOR_TEXT,
            )

        self.fonts.draw_text(BILL_TO_X, BILL_TO_LABEL_Y, "Bill To:", FONT_SIZE_HEADER, COLOR_LABEL, bold=True)
        self.fonts.draw_text(BILL_TO_X, BILL_TO_NAME_Y, self.invoice.customer_name, FONT_SIZE_NORMAL, COLOR_TEXT)
        self.fonts.draw_text(BILL_TO_X, BILL_TO_EMAIL_Y, self.invoice.customer_email, FONT_SIZE_NORMAL, COLOR_TEXT)
        for index, line in enumerate(wrap_columns(self.invoice.customer_address, ADDRESS_WRAP_CHARS)):
            self.fonts.draw_text(
                BILL_TO_X,
                BILL_TO_ADDR_Y + index * ADDR_LINE_H,
                line,
                FONT_SIZE_NORMAL,
                COLOR_TEXT,
            )

    def _draw_description(self) -> None:
        description = self.invoice.description.strip()
        if not description:
            return

        self.fonts.draw_text(MARGIN, DESCRIPTION_LABEL_Y, "Description:", FONT_SIZE_HEADER, COLOR_LABEL, bold=True)
        lines = wrap_text(self.fonts, description, CONTENT_W, FONT_SIZE_NORMAL)
        if len(lines) > DESCRIPTION_MAX_LINES:
            lines = lines[:DESCRIPTION_MAX_LINES]
            lines[-1] = ellipsize_line(lines[-1])
        for index, line in enumerate(lines):
            self.fonts.draw_text(
                MARGIN,
                DESCRIPTION_TEXT_Y + index * DESCRIPTION_LINE_H,
                line,
                FONT_SIZE_NORMAL,
                COLOR_TEXT,
            )

    def _draw_table_header(self, bar_y: float) -> None:
        self.pdf.set_fill_color(*COLOR_BAR)
        self.pdf.set_draw_color(*COLOR_BAR)
        round_rect(self.pdf, MARGIN, bar_y, CONTENT_W, TABLE_ROW_H, BAR_RADIUS, fill=True)

        text_y = bar_y + TABLE_TEXT_OFFSET_Y
        for x, label in zip(self.columns, ("Description", "Qty", "Unit Price", "Total")):
            self.fonts.draw_text(
                x + TABLE_TEXT_OFFSET_X,
                text_y,
                label,
                FONT_SIZE_NORMAL,
                COLOR_BAR_TEXT,
                bold=True,
            )

    def _draw_items(self, start_y: float) -> float:
        y = start_y
        self.pdf.set_draw_color(*COLOR_BORDER)
        self.pdf.set_line_width(0.5)

        for index, item in enumerate(self.items):
            if index % 2 == 0:
                self.pdf.set_fill_color(*COLOR_ROW_ALT)
                self.pdf.rect(MARGIN, y, CONTENT_W, TABLE_ROW_H, "DF")
            else:
                self.pdf.rect(MARGIN, y, CONTENT_W, TABLE_ROW_H, "D")

            cells = (
                truncate_text(item.description, ITEM_DESCRIPTION_MAX_CHARS),
                fmt_qty(item.quantity),
                fmt_money(item.unit_price, self.symbol),
                fmt_money(item.total_price, self.symbol),
            )
            for x, text in zip(self.columns, cells):
                self.fonts.draw_text(
                    x + TABLE_TEXT_OFFSET_X,
                    y + TABLE_TEXT_OFFSET_Y,
                    text,
                    FONT_SIZE_NORMAL,
                    COLOR_TEXT,
                )

            y += TABLE_ROW_H

        return y

    def _draw_total(self, items_end_y: float) -> None:
        box_y = items_end_y + TOTAL_BOX_GAP
        self.pdf.set_fill_color(*COLOR_TOTAL_BOX)
        self.pdf.set_draw_color(*COLOR_BORDER)
        self.pdf.set_line_width(1)
        round_rect(self.pdf, TOTAL_BOX_X, box_y, TOTAL_BOX_W, TOTAL_BOX_H, BOX_RADIUS, fill=True)

        self.fonts.draw_text(
            TOTAL_BOX_X + 10,
            box_y + TOTAL_LABEL_OFFSET_Y,
            "Total Amount:",
            FONT_SIZE_HEADER,
            COLOR_TITLE,
            bold=True,
        )
        self.fonts.draw_text(
            TOTAL_BOX_X + 10,
            box_y + TOTAL_VALUE_OFFSET_Y,
            fmt_money(self.invoice.total_amount, self.symbol),
            FONT_SIZE_HEADER,
            COLOR_TITLE,
            bold=True,
        )

    def _draw_footer(self) -> None:
        generated = f"Generated on {fmt_timestamp_utc(self.rendered_at)}"
        self.fonts.draw_text(MARGIN, FOOTER_Y, generated, FONT_SIZE_SMALL, COLOR_FOOTER)
        self.fonts.draw_text_right(RIGHT_EDGE, FOOTER_Y, FOOTER_THANKS, FONT_SIZE_SMALL, COLOR_FOOTER)

    def render(self) -> bytes:
        has_description = bool(self.invoice.description.strip())
        capacity = item_capacity(has_description)
        if len(self.items) > capacity:
            logger.warning(
                "Invoice %s has %d items; only %d fit on the page, the rest will overdraw the footer",
                self.invoice.invoice_number,
                len(self.items),
                capacity,
            )

        self._draw_header()
        self._draw_info_box()
        self._draw_description()

        bar_y = table_top(has_description)
        self._draw_table_header(bar_y)
        items_end_y = self._draw_items(bar_y + TABLE_ROW_H)
        self._draw_total(items_end_y)
        self._draw_footer()

        pdf_blob = self.pdf.output()
        if isinstance(pdf_blob, (bytes, bytearray)):
            return bytes(pdf_blob)
        if isinstance(pdf_blob, str):
            try:
                return pdf_blob.encode("latin-1")
            except UnicodeEncodeError as exc:
                raise RuntimeError(
                    "PDF serialization failed due to non-Latin-1 content. "
                    "Check Unicode font configuration (INVOICE_FONT_PATH/INVOICE_FONT_BOLD_PATH)."
                ) from exc
        raise RuntimeError(f"Unexpected PDF output type: {type(pdf_blob).__name__}")


def render_invoice(
    invoice: Invoice,
    items: Sequence[InvoiceItem],
    rendered_at: Optional[datetime] = None,
    currency_symbol: str = DEFAULT_CURRENCY_SYMBOL,
) -> bytes:
    return InvoiceRenderer(invoice, items, rendered_at, currency_symbol).render()
