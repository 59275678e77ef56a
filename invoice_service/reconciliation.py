"""Recomputes invoice totals from their line items."""

from __future__ import annotations

from dataclasses import replace
from datetime import datetime
from decimal import Decimal
from typing import TYPE_CHECKING, Callable, Optional

from .logging_config import get_logger
from .models import utcnow

if TYPE_CHECKING:
    from .repository import InvoiceRepository

logger = get_logger(__name__)


class TotalReconciler:
    """Keeps ``Invoice.total_amount`` equal to the sum of its items' totals.

    Item mutations only know the invoice number, so the invoice is located
    with a ``RowKey`` scan across every customer partition. That is O(n) in
    the number of invoices per item change.

    Two overlapping item mutations on the same invoice each sum their own
    snapshot of the items and then overwrite the invoice; the last write
    wins, so a stale total can survive until the next mutation. There is no
    optimistic concurrency token on the invoice write.
    """

    def __init__(
        self,
        repository: "InvoiceRepository",
        clock: Callable[[], datetime] = utcnow,
    ) -> None:
        self.repository = repository
        self.clock = clock

    def compute_total(self, invoice_number: str) -> Decimal:
        total = Decimal("0.00")
        for item in self.repository.list_invoice_items(invoice_number):
            total += item.total_price
        return total

    def recalculate(self, invoice_number: str) -> Optional[Decimal]:
        """Overwrite the stored invoice total; returns it, or None if no invoice matches."""
        total = self.compute_total(invoice_number)

        invoice = self.repository.find_invoice_by_row_key(invoice_number)
        if invoice is None:
            logger.warning("No invoice %s to reconcile; computed total %s discarded", invoice_number, total)
            return None

        updated = replace(invoice, total_amount=total, updated_at=self.clock())
        self.repository.invoices.upsert(updated.partition_key, updated.row_key, updated.to_entity())
        logger.debug("Reconciled invoice %s total to %s", invoice_number, total)
        return total
