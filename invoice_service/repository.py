"""CRUD and query operations over customers, invoices and invoice items.

Key scheme:

- ``Customer``: partition ``"Customer"``, row = generated id.
- ``Invoice``: partition = customer name at creation, row = invoice number.
- ``InvoiceItem``: partition = invoice number, row = generated id.

Point lookups need both keys. When only the invoice number is known the
repository falls back to a filtered scan across all partitions, which costs
O(n) in the number of invoices.
"""

from __future__ import annotations

import uuid
from dataclasses import replace
from datetime import datetime
from typing import Callable, Dict, List, Optional

from .logging_config import get_logger
from .models import CUSTOMER_PARTITION, Customer, Invoice, InvoiceItem, utcnow
from .reconciliation import TotalReconciler
from .storage import PARTITION_KEY, ROW_KEY, Entity, Filter, KeyValueStore

logger = get_logger(__name__)

INVOICE_NUMBER_FIELD = "InvoiceNumber"


def new_entity_id() -> str:
    return str(uuid.uuid4())


def generate_invoice_number(now: datetime) -> str:
    return f"INV-{now:%Y%m%d}-{uuid.uuid4().hex[:8].upper()}"


# Characters a table row key may not contain.
INVALID_KEY_CHARS = frozenset("/\\#?")


def validate_key(value: str, label: str) -> None:
    for char in value:
        if char in INVALID_KEY_CHARS or ord(char) < 0x20 or 0x7F <= ord(char) <= 0x9F:
            raise ValueError(f"{label} {value!r} contains a character not allowed in keys: {char!r}")


class InvoiceRepository:
    def __init__(
        self,
        invoices: KeyValueStore,
        items: KeyValueStore,
        customers: KeyValueStore,
        clock: Callable[[], datetime] = utcnow,
    ) -> None:
        self.invoices = invoices
        self.items = items
        self.customers = customers
        self.clock = clock
        self.reconciler = TotalReconciler(self, clock=clock)

    # -------- Invoices --------

    def create_invoice(self, invoice: Invoice) -> Invoice:
        """Store a new invoice; an existing invoice with the same keys is silently replaced."""
        now = self.clock()
        invoice_number = invoice.invoice_number or generate_invoice_number(now)
        validate_key(invoice_number, "Invoice number")
        stored = replace(
            invoice,
            invoice_number=invoice_number,
            partition_key=invoice.customer_name,
            row_key=invoice_number,
            created_at=now,
            updated_at=now,
        )
        self.invoices.upsert(stored.partition_key, stored.row_key, stored.to_entity())
        logger.info("Created invoice %s for %s", stored.invoice_number, stored.customer_name)
        return stored

    def get_invoice(self, customer_name: str, invoice_number: str) -> Optional[Invoice]:
        entity = self.invoices.get(customer_name, invoice_number)
        return Invoice.from_entity(entity) if entity is not None else None

    def get_invoice_by_number(self, invoice_number: str) -> Optional[Invoice]:
        """Fallback lookup by the ``InvoiceNumber`` field across every partition (O(n))."""
        for entity in self.invoices.query(Filter(INVOICE_NUMBER_FIELD, invoice_number)):
            return Invoice.from_entity(entity)
        return None

    def find_invoice_by_row_key(self, invoice_number: str) -> Optional[Invoice]:
        """Fallback lookup by ``RowKey`` across every partition (O(n))."""
        for entity in self.invoices.query(Filter(ROW_KEY, invoice_number)):
            return Invoice.from_entity(entity)
        return None

    def list_invoices(self, customer_name: Optional[str] = None) -> List[Invoice]:
        query = Filter(PARTITION_KEY, customer_name) if customer_name else None
        invoices = [Invoice.from_entity(entity) for entity in self.invoices.query(query)]
        return sorted(invoices, key=lambda invoice: invoice.created_at, reverse=True)

    def update_invoice(self, invoice: Invoice) -> Invoice:
        """Upsert an invoice under its existing keys; no existence check is made."""
        if not invoice.row_key:
            raise ValueError("Invoice row key (invoice number) is required for updates.")
        if not invoice.partition_key:
            raise ValueError("Invoice partition key (customer name) is required for updates.")
        if invoice.invoice_number and invoice.invoice_number != invoice.row_key:
            raise ValueError(
                f"Invoice number {invoice.invoice_number!r} does not match row key {invoice.row_key!r}."
            )
        stored = replace(invoice, invoice_number=invoice.row_key, updated_at=self.clock())
        self.invoices.upsert(stored.partition_key, stored.row_key, stored.to_entity())
        logger.info("Updated invoice %s", stored.row_key)
        return stored

    def delete_invoice(self, customer_name: str, invoice_number: str) -> None:
        self.invoices.delete(customer_name, invoice_number)
        logger.info("Deleted invoice %s", invoice_number)

    # -------- Invoice items --------

    def list_invoice_items(self, invoice_number: str) -> List[InvoiceItem]:
        entities = self.items.query(Filter(PARTITION_KEY, invoice_number))
        items = [InvoiceItem.from_entity(entity) for entity in entities]
        return sorted(items, key=lambda item: item.created_at)

    def add_invoice_item(self, invoice_number: str, item: InvoiceItem) -> InvoiceItem:
        stored = replace(
            item,
            partition_key=invoice_number,
            row_key=new_entity_id(),
            total_price=item.quantity * item.unit_price,
            created_at=self.clock(),
        )
        self.items.upsert(stored.partition_key, stored.row_key, stored.to_entity())
        logger.info("Added item to invoice %s: %s", invoice_number, stored.description)

        self.reconciler.recalculate(invoice_number)
        return stored

    def delete_invoice_item(self, invoice_number: str, item_id: str) -> None:
        self.items.delete(invoice_number, item_id)
        logger.info("Deleted item %s from invoice %s", item_id, invoice_number)

        self.reconciler.recalculate(invoice_number)

    # -------- Customers --------

    def create_customer(self, customer: Customer) -> Customer:
        now = self.clock()
        stored = replace(
            customer,
            partition_key=CUSTOMER_PARTITION,
            row_key=new_entity_id(),
            created_at=now,
            updated_at=now,
        )
        self.customers.upsert(stored.partition_key, stored.row_key, stored.to_entity())
        logger.info("Created customer %s", stored.name)
        return stored

    def list_customers(self) -> List[Customer]:
        customers = [Customer.from_entity(entity) for entity in self.customers.query()]
        return sorted(customers, key=lambda customer: customer.name)

    # -------- Diagnostics --------

    def table_names(self) -> List[str]:
        return [self.invoices.name, self.items.name, self.customers.name]

    def snapshot(self) -> Dict[str, List[Entity]]:
        """Return every stored entity, grouped by table name."""
        return {
            table.name: table.query()
            for table in (self.invoices, self.items, self.customers)
        }
