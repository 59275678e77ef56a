"""Capacity checks for the fixed single-page layout.

Invoices are never paginated; these helpers only tell the renderer when a
long item list is going to run into the total box and footer.
"""

from __future__ import annotations

from .pdf_constants import (
    FOOTER_GAP,
    FOOTER_Y,
    TABLE_ROW_H,
    TABLE_Y,
    TABLE_Y_WITH_DESCRIPTION,
    TOTAL_BOX_GAP,
    TOTAL_BOX_H,
)


def table_top(has_description: bool) -> float:
    return TABLE_Y_WITH_DESCRIPTION if has_description else TABLE_Y


def item_capacity(has_description: bool) -> int:
    first_row_y = table_top(has_description) + TABLE_ROW_H
    rows_limit_y = FOOTER_Y - FOOTER_GAP - TOTAL_BOX_H - TOTAL_BOX_GAP
    return max(0, int((rows_limit_y - first_row_y) // TABLE_ROW_H))


def overflows_page(item_count: int, has_description: bool) -> bool:
    return item_count > item_capacity(has_description)
