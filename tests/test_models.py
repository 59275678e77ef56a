import unittest
from datetime import datetime, timedelta, timezone
from decimal import Decimal

from invoice_service.models import (
    CUSTOMER_PARTITION,
    Customer,
    Invoice,
    InvoiceItem,
    InvoiceStatus,
    to_datetime,
    to_decimal,
    to_int,
)


class InvoiceStatusTests(unittest.TestCase):
    def test_parse_is_case_insensitive(self) -> None:
        self.assertIs(InvoiceStatus.parse("paid"), InvoiceStatus.PAID)
        self.assertIs(InvoiceStatus.parse(" Overdue "), InvoiceStatus.OVERDUE)
        self.assertIs(InvoiceStatus.parse(InvoiceStatus.SENT), InvoiceStatus.SENT)

    def test_parse_rejects_unknown_values(self) -> None:
        with self.assertRaises(ValueError):
            InvoiceStatus.parse("Cancelled")


class ConverterTests(unittest.TestCase):
    def test_to_decimal_keeps_exact_amounts(self) -> None:
        self.assertEqual(to_decimal("35.50"), Decimal("35.50"))
        self.assertEqual(to_decimal(5.5), Decimal("5.5"))
        with self.assertRaises(ValueError):
            to_decimal("ten")

    def test_to_int_rejects_fractions_and_booleans(self) -> None:
        self.assertEqual(to_int("3"), 3)
        self.assertEqual(to_int(4.0), 4)
        with self.assertRaises(ValueError):
            to_int(2.5)
        with self.assertRaises(ValueError):
            to_int(True)

    def test_to_datetime_normalizes_to_utc(self) -> None:
        naive = to_datetime("2026-01-15T10:00:00")
        offset = to_datetime("2026-01-15T12:00:00+02:00")

        self.assertEqual(naive.tzinfo, timezone.utc)
        self.assertEqual(naive, offset)
        with self.assertRaises(ValueError):
            to_datetime("not a date")


class EntityMappingTests(unittest.TestCase):
    def test_invoice_due_date_defaults_to_thirty_days(self) -> None:
        issued = datetime(2026, 1, 1, tzinfo=timezone.utc)
        invoice = Invoice(invoice_number="INV-1", invoice_date=issued)

        self.assertEqual(invoice.due_date, issued + timedelta(days=30))
        self.assertEqual(invoice.total_amount, Decimal("0.00"))
        self.assertIs(invoice.status, InvoiceStatus.DRAFT)

    def test_invoice_entity_round_trip_keeps_extra_properties(self) -> None:
        entity = {
            "PartitionKey": "Jane Smith",
            "RowKey": "INV-9",
            "Timestamp": datetime(2026, 1, 1, tzinfo=timezone.utc),
            "InvoiceNumber": "INV-9",
            "CustomerName": "Jane Smith",
            "TotalAmount": Decimal("12.30"),
            "Status": "Paid",
            "PurchaseOrder": "PO-77",
            "Priority": 2,
        }

        invoice = Invoice.from_entity(entity)
        stored = invoice.to_entity()

        self.assertEqual(invoice.partition_key, "Jane Smith")
        self.assertIs(invoice.status, InvoiceStatus.PAID)
        self.assertEqual(invoice.extra, {"PurchaseOrder": "PO-77", "Priority": 2})
        self.assertEqual(stored["PurchaseOrder"], "PO-77")
        self.assertEqual(stored["Status"], "Paid")
        self.assertNotIn("Timestamp", invoice.extra)

    def test_from_payload_accepts_camel_and_pascal_case(self) -> None:
        camel = Invoice.from_payload({"customerName": "Jane", "status": "sent", "totalAmount": "5.50"})
        pascal = Invoice.from_payload({"CustomerName": "Jane", "Status": "Sent", "TotalAmount": 5.5})

        self.assertEqual(camel.customer_name, pascal.customer_name)
        self.assertIs(camel.status, pascal.status)
        self.assertEqual(camel.total_amount, pascal.total_amount)

    def test_to_dict_uses_camel_case(self) -> None:
        item = InvoiceItem(
            description="Widget",
            quantity=2,
            unit_price=Decimal("1.25"),
            partition_key="INV-1",
            row_key="abc",
        )

        data = item.to_dict()

        self.assertEqual(data["partitionKey"], "INV-1")
        self.assertEqual(data["unitPrice"], Decimal("1.25"))
        self.assertNotIn("extra", data)
        self.assertEqual(item.invoice_number, "INV-1")
        self.assertEqual(item.item_id, "abc")

    def test_customer_defaults_to_customer_partition(self) -> None:
        self.assertEqual(Customer(name="Bob").partition_key, CUSTOMER_PARTITION)


if __name__ == "__main__":
    unittest.main()
