"""Queue-driven PDF rendering: resolve, render, store, list and fetch artifacts.

Artifacts are named ``{InvoiceNumber}_{yyyyMMddHHmmss}.pdf`` and never
overwritten on purpose, so every render of an invoice adds a new blob. Two
renders of the same invoice within one second share a name; the later write
wins.
"""

from __future__ import annotations

import io
import threading
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import BinaryIO, Callable, Dict, List, Optional, Sequence

from .errors import DependencyError, MalformedRequest
from .logging_config import get_logger
from .messages import RenderRequest, decode_render_request
from .models import Invoice, InvoiceItem, utcnow
from .repository import InvoiceRepository
from .storage import BlobStore

logger = get_logger(__name__)

DEFAULT_PDF_CONTAINER = "invoice-pdfs"
ARTIFACT_TIMESTAMP_FORMAT = "%Y%m%d%H%M%S"
ARTIFACT_SUFFIX = ".pdf"
UNKNOWN_INVOICE_NUMBER = "Unknown"

Renderer = Callable[[Invoice, Sequence[InvoiceItem], datetime], bytes]


def artifact_name(invoice_number: str, rendered_at: datetime) -> str:
    if rendered_at.tzinfo is not None:
        rendered_at = rendered_at.astimezone(timezone.utc)
    return f"{invoice_number}_{rendered_at.strftime(ARTIFACT_TIMESTAMP_FORMAT)}{ARTIFACT_SUFFIX}"


def extract_invoice_number(file_name: str) -> str:
    """Best-effort invoice number from an artifact name; 'Unknown' when absent."""
    head = file_name.split("_")[0]
    return head if head else UNKNOWN_INVOICE_NUMBER


def extract_date(file_name: str) -> Optional[datetime]:
    """Best-effort render timestamp from an artifact name; None when it does not parse."""
    parts = file_name.split("_")
    if len(parts) < 2:
        return None
    raw = parts[1].replace(ARTIFACT_SUFFIX, "")
    try:
        return datetime.strptime(raw, ARTIFACT_TIMESTAMP_FORMAT).replace(tzinfo=timezone.utc)
    except ValueError:
        return None


@dataclass(frozen=True)
class PdfInfo:
    file_name: str
    invoice_number: str
    generated_at: Optional[datetime]

    @classmethod
    def from_name(cls, file_name: str) -> "PdfInfo":
        return cls(
            file_name=file_name,
            invoice_number=extract_invoice_number(file_name),
            generated_at=extract_date(file_name),
        )


class PipelineStats:
    """Thread-safe counters for render outcomes."""

    FIELDS = ("rendered", "malformed_dropped", "missing_invoice", "failed")

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._counts: Dict[str, int] = {name: 0 for name in self.FIELDS}

    def increment(self, name: str) -> None:
        with self._lock:
            self._counts[name] += 1

    def snapshot(self) -> Dict[str, int]:
        with self._lock:
            return dict(self._counts)


def load_render_invoice():
    try:
        from .rendering import render_invoice
    except ModuleNotFoundError as exc:
        if exc.name == "fpdf":
            raise DependencyError(
                "Missing dependency 'fpdf'. Install project dependencies with "
                "'pip install -e .'."
            ) from exc
        raise
    return render_invoice


def default_renderer(currency_symbol: str = "$") -> Renderer:
    render_invoice = load_render_invoice()

    def render(invoice: Invoice, items: Sequence[InvoiceItem], rendered_at: datetime) -> bytes:
        return render_invoice(invoice, items, rendered_at, currency_symbol)

    return render


class RenderPipeline:
    def __init__(
        self,
        repository: InvoiceRepository,
        blobs: BlobStore,
        container: str = DEFAULT_PDF_CONTAINER,
        renderer: Optional[Renderer] = None,
        clock: Callable[[], datetime] = utcnow,
    ) -> None:
        self.repository = repository
        self.blobs = blobs
        self.container = container
        self.renderer = renderer or default_renderer()
        self.clock = clock
        self.stats = PipelineStats()

    def handle_message(self, body: bytes) -> Optional[str]:
        """Process one queue message; returns the stored blob name, if any.

        Malformed payloads and unknown invoices are logged, counted and
        acknowledged. Anything else propagates so the queue can redeliver.
        """
        try:
            request = decode_render_request(body)
        except MalformedRequest as exc:
            self.stats.increment("malformed_dropped")
            logger.warning("Dropping malformed render request (%s): %s", exc.error, exc.detail)
            return None

        try:
            return self.render(request)
        except Exception:
            self.stats.increment("failed")
            logger.exception("Error generating PDF for invoice %s", request.invoice_number)
            raise

    def resolve_invoice(self, request: RenderRequest) -> Optional[Invoice]:
        invoice = None
        if request.customer_name:
            invoice = self.repository.get_invoice(request.customer_name, request.invoice_number)
        if invoice is None:
            invoice = self.repository.get_invoice_by_number(request.invoice_number)
        return invoice

    def render(self, request: RenderRequest) -> Optional[str]:
        invoice = self.resolve_invoice(request)
        if invoice is None:
            self.stats.increment("missing_invoice")
            logger.warning(
                "Invoice %s (customer %r) not found; no PDF generated",
                request.invoice_number,
                request.customer_name,
            )
            return None

        items = self.repository.list_invoice_items(invoice.invoice_number)
        rendered_at = self.clock()
        logger.info("Generating PDF for invoice %s (%d items)", invoice.invoice_number, len(items))
        pdf_bytes = self.renderer(invoice, items, rendered_at)

        blob_name = artifact_name(invoice.invoice_number, rendered_at)
        self.blobs.put(self.container, blob_name, pdf_bytes)
        self.stats.increment("rendered")
        logger.info("PDF generated and stored: %s", blob_name)
        return blob_name

    def list_pdfs(self, invoice_number_filter: Optional[str] = None) -> List[str]:
        names = self.blobs.list(self.container)
        if invoice_number_filter:
            names = [name for name in names if name.startswith(invoice_number_filter)]
        return sorted(names, reverse=True)

    def describe_pdfs(self, invoice_number_filter: Optional[str] = None) -> List[PdfInfo]:
        return [PdfInfo.from_name(name) for name in self.list_pdfs(invoice_number_filter)]

    def get_pdf(self, blob_name: str) -> Optional[BinaryIO]:
        """Open a stored PDF; the caller must read and close the returned stream."""
        data = self.blobs.get(self.container, blob_name)
        if data is None:
            return None
        return io.BytesIO(data)
