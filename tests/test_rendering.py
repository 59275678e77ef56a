import unittest
from datetime import datetime, timezone
from decimal import Decimal
from importlib import util as importlib_util

from invoice_service.models import Invoice, InvoiceItem, InvoiceStatus

FPDF_AVAILABLE = importlib_util.find_spec("fpdf") is not None
if FPDF_AVAILABLE:
    from invoice_service.rendering import column_positions, render_invoice


def sample_invoice(description: str = "Web Development Services") -> Invoice:
    return Invoice(
        invoice_number="INV-001",
        customer_name="John Doe",
        customer_email="john@example.com",
        customer_address="123 Main St, New York, NY 10001",
        invoice_date=datetime(2026, 1, 15, tzinfo=timezone.utc),
        status=InvoiceStatus.SENT,
        total_amount=Decimal("2500.00"),
        description=description,
    )


def sample_items(count: int = 2):
    return [
        InvoiceItem(
            description=f"Line {index}",
            quantity=index + 1,
            unit_price=Decimal("25.00"),
            total_price=Decimal("25.00") * (index + 1),
        )
        for index in range(count)
    ]


@unittest.skipUnless(FPDF_AVAILABLE, "fpdf is not installed")
class RenderingTests(unittest.TestCase):
    rendered_at = datetime(2026, 1, 20, 8, 0, tzinfo=timezone.utc)

    def test_render_invoice_returns_pdf_bytes(self) -> None:
        pdf = render_invoice(sample_invoice(), sample_items(), self.rendered_at)

        self.assertIsInstance(pdf, bytes)
        self.assertTrue(pdf.startswith(b"%PDF"))
        self.assertGreater(len(pdf), 100)

    def test_renders_without_items_or_description(self) -> None:
        pdf = render_invoice(sample_invoice(description=""), [], self.rendered_at)

        self.assertTrue(pdf.startswith(b"%PDF"))

    def test_long_description_and_non_latin_text_render(self) -> None:
        invoice = sample_invoice(description="Résumé review ✓ " * 60)
        items = [InvoiceItem(description="Ünïcödé consulting " * 5, quantity=1, unit_price=Decimal("1"))]

        pdf = render_invoice(invoice, items, self.rendered_at, currency_symbol="€")

        self.assertTrue(pdf.startswith(b"%PDF"))

    def test_too_many_items_still_render_on_one_page_with_warning(self) -> None:
        with self.assertLogs("invoice_service.rendering", level="WARNING") as logs:
            pdf = render_invoice(sample_invoice(), sample_items(30), self.rendered_at)

        self.assertTrue(pdf.startswith(b"%PDF"))
        self.assertTrue(any("30 items" in line for line in logs.output))

    def test_column_positions_start_at_margin(self) -> None:
        positions = column_positions()

        self.assertEqual(len(positions), 4)
        self.assertEqual(positions[0], 50.0)
        self.assertEqual(positions, sorted(positions))


if __name__ == "__main__":
    unittest.main()
