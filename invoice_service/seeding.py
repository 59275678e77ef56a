"""Sample data for local development stores."""

from __future__ import annotations

from datetime import timedelta
from decimal import Decimal

from .logging_config import get_logger
from .models import Customer, Invoice, InvoiceItem, InvoiceStatus
from .repository import InvoiceRepository

logger = get_logger(__name__)

SAMPLE_CUSTOMERS = [
    {
        "name": "John Doe",
        "email": "john@example.com",
        "phone": "+1234567890",
        "address": "123 Main St, New York, NY 10001",
        "city": "New York",
        "postal_code": "10001",
        "country": "USA",
    },
    {
        "name": "Jane Smith",
        "email": "jane@example.com",
        "phone": "+1987654321",
        "address": "456 Oak Ave, Los Angeles, CA 90210",
        "city": "Los Angeles",
        "postal_code": "90210",
        "country": "USA",
    },
    {
        "name": "Bob Johnson",
        "email": "bob@example.com",
        "phone": "+1555123456",
        "address": "789 Pine Rd, Chicago, IL 60601",
        "city": "Chicago",
        "postal_code": "60601",
        "country": "USA",
    },
]

# (number, customer, description, status, invoice date offset in days, due date offset in days, items)
SAMPLE_INVOICES = [
    (
        "INV-001",
        "John Doe",
        "Web Development Services",
        InvoiceStatus.SENT,
        -10,
        20,
        [("Frontend Development", 80, "25.00"), ("Backend API Development", 20, "25.00")],
    ),
    (
        "INV-002",
        "Jane Smith",
        "Mobile App Development",
        InvoiceStatus.DRAFT,
        -5,
        25,
        [("iOS App Development", 60, "40.00"), ("Android App Development", 60, "40.00")],
    ),
    (
        "INV-003",
        "Bob Johnson",
        "Consulting Services",
        InvoiceStatus.PAID,
        -30,
        0,
        [("Architecture Consultation", 12, "100.00"), ("Code Review Sessions", 6, "100.00")],
    ),
    (
        "INV-004",
        "John Doe",
        "Database Design & Implementation",
        InvoiceStatus.OVERDUE,
        -45,
        -15,
        [
            ("Database Schema Design", 24, "75.00"),
            ("Data Migration Scripts", 16, "75.00"),
            ("Performance Optimization", 8, "75.00"),
        ],
    ),
]


def seed_development_data(repository: InvoiceRepository) -> bool:
    """Populate empty stores with sample customers, invoices and items.

    Returns False without writing anything when invoices already exist.
    """
    if repository.list_invoices():
        logger.info("Invoice table is not empty; skipping development seed data")
        return False

    customers = {}
    for fields in SAMPLE_CUSTOMERS:
        customer = repository.create_customer(Customer(**fields))
        customers[customer.name] = customer
    logger.info("Seeded %d customers", len(customers))

    now = repository.clock()
    item_count = 0
    for number, customer_name, description, status, issued, due, items in SAMPLE_INVOICES:
        customer = customers[customer_name]
        repository.create_invoice(
            Invoice(
                invoice_number=number,
                customer_name=customer.name,
                customer_email=customer.email,
                customer_address=customer.address,
                description=description,
                status=status,
                invoice_date=now + timedelta(days=issued),
                due_date=now + timedelta(days=due),
            )
        )
        for item_description, quantity, unit_price in items:
            repository.add_invoice_item(
                number,
                InvoiceItem(description=item_description, quantity=quantity, unit_price=Decimal(unit_price)),
            )
            item_count += 1

    logger.info("Seeded %d invoices with %d items", len(SAMPLE_INVOICES), item_count)
    return True
