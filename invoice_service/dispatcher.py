"""Places render requests on the PDF queue."""

from __future__ import annotations

from typing import Optional

from .logging_config import get_logger
from .messages import RenderRequest
from .repository import InvoiceRepository
from .storage import MessageQueue

logger = get_logger(__name__)

DEFAULT_RENDER_QUEUE = "pdf-generation"


class RenderDispatcher:
    def __init__(
        self,
        repository: InvoiceRepository,
        queue: MessageQueue,
        queue_name: str = DEFAULT_RENDER_QUEUE,
    ) -> None:
        self.repository = repository
        self.queue = queue
        self.queue_name = queue_name

    def enqueue_render(self, invoice_number: str, customer_name: Optional[str] = None) -> bool:
        """Queue a render request; returns False when the invoice cannot be resolved.

        With a customer name the request is sent as-is. Without one the invoice
        is looked up by number first (a full scan) to recover its customer.
        """
        if customer_name:
            self._send(RenderRequest(invoice_number=invoice_number, customer_name=customer_name))
            logger.info("Queued invoice %s for PDF generation", invoice_number)
            return True

        invoice = self.repository.get_invoice_by_number(invoice_number)
        if invoice is None:
            logger.warning("Invoice %s not found for PDF generation", invoice_number)
            return False

        self._send(RenderRequest(invoice_number=invoice_number, customer_name=invoice.customer_name))
        logger.info(
            "Queued invoice %s for PDF generation (customer: %s)",
            invoice_number,
            invoice.customer_name,
        )
        return True

    def _send(self, request: RenderRequest) -> None:
        self.queue.send(self.queue_name, request.encode())
