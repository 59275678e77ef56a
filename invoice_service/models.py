"""Entity types stored in the invoice tables.

Each entity maps to a flat property dict in its table. Known attributes use
PascalCase property names (``InvoiceNumber``, ``CreatedAt`` ...); any other
property found in the store is kept in ``extra`` and written back unchanged.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime, timedelta, timezone
from decimal import Decimal, InvalidOperation
from enum import Enum
from typing import Any, Callable, ClassVar, Dict, Mapping, Optional, Tuple, Type, TypeVar, Union

from dateutil import parser as dateutil_parser

from .storage import PARTITION_KEY, ROW_KEY, TIMESTAMP, Entity

CUSTOMER_PARTITION = "Customer"
DEFAULT_PAYMENT_TERMS = timedelta(days=30)

ExtraValue = Union[str, int, float, bool, datetime]

E = TypeVar("E", bound="TableEntity")


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class InvoiceStatus(str, Enum):
    """Invoice lifecycle label. Any status may replace any other."""

    DRAFT = "Draft"
    SENT = "Sent"
    PAID = "Paid"
    OVERDUE = "Overdue"

    @classmethod
    def parse(cls, value: Any) -> "InvoiceStatus":
        if isinstance(value, cls):
            return value
        text = str(value).strip()
        for status in cls:
            if status.value.lower() == text.lower():
                return status
        allowed = ", ".join(status.value for status in cls)
        raise ValueError(f"Invalid status {text!r}; expected one of: {allowed}")


def to_text(value: Any) -> str:
    return "" if value is None else str(value)


def to_decimal(value: Any) -> Decimal:
    if value is None or value == "":
        return Decimal("0")
    if isinstance(value, bool):
        raise ValueError(f"Invalid amount: {value!r}")
    try:
        return Decimal(str(value))
    except InvalidOperation as exc:
        raise ValueError(f"Invalid amount: {value!r}") from exc


def to_int(value: Any) -> int:
    if isinstance(value, bool):
        raise ValueError(f"Invalid integer: {value!r}")
    if isinstance(value, int):
        return value
    try:
        number = Decimal(str(value))
    except InvalidOperation as exc:
        raise ValueError(f"Invalid integer: {value!r}") from exc
    if number != number.to_integral_value():
        raise ValueError(f"Invalid integer: {value!r}")
    return int(number)


def to_datetime(value: Any) -> datetime:
    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, date):
        parsed = datetime(value.year, value.month, value.day)
    else:
        try:
            parsed = dateutil_parser.parse(str(value))
        except (ValueError, OverflowError) as exc:
            raise ValueError(f"Invalid timestamp: {value!r}") from exc
    if parsed.tzinfo is None:
        return parsed.replace(tzinfo=timezone.utc)
    return parsed.astimezone(timezone.utc)


def to_extra_value(value: Any) -> ExtraValue:
    if isinstance(value, (str, bool, int, float, datetime)):
        return value
    if isinstance(value, Decimal):
        return float(value)
    if isinstance(value, date):
        return to_datetime(value)
    return str(value)


@dataclass
class TableEntity:
    """Common (de)serialization for entities stored as flat property dicts.

    ``FIELDS`` lists ``(attribute, property name, converter)`` for every known
    attribute other than the two keys.
    """

    FIELDS: ClassVar[Tuple[Tuple[str, str, Callable[[Any], Any]], ...]] = ()
    METADATA: ClassVar[Tuple[str, ...]] = (PARTITION_KEY, ROW_KEY, TIMESTAMP, "odata.etag", "ETag")

    def _key_values(self) -> Tuple[str, str]:
        return getattr(self, "partition_key"), getattr(self, "row_key")

    def to_entity(self) -> Entity:
        entity: Entity = dict(getattr(self, "extra"))
        partition_key, row_key = self._key_values()
        entity[PARTITION_KEY] = partition_key
        entity[ROW_KEY] = row_key
        for attr, prop, _ in self.FIELDS:
            value = getattr(self, attr)
            entity[prop] = value.value if isinstance(value, Enum) else value
        return entity

    @classmethod
    def from_entity(cls: Type[E], entity: Mapping[str, Any]) -> E:
        known = {prop for _, prop, _ in cls.FIELDS}
        kwargs: Dict[str, Any] = {
            "partition_key": to_text(entity.get(PARTITION_KEY)),
            "row_key": to_text(entity.get(ROW_KEY)),
        }
        for attr, prop, convert in cls.FIELDS:
            if prop in entity and entity[prop] is not None:
                kwargs[attr] = convert(entity[prop])
        kwargs["extra"] = {
            name: to_extra_value(value)
            for name, value in entity.items()
            if name not in known and name not in cls.METADATA and value is not None
        }
        return cls(**kwargs)

    @classmethod
    def from_payload(cls: Type[E], payload: Mapping[str, Any]) -> E:
        """Build an entity from a JSON request body, matching keys case-insensitively."""
        lowered = {str(key).lower(): value for key, value in payload.items()}
        kwargs: Dict[str, Any] = {}
        for attr, prop in (("partition_key", PARTITION_KEY), ("row_key", ROW_KEY)):
            if lowered.get(prop.lower()) is not None:
                kwargs[attr] = to_text(lowered[prop.lower()])
        for attr, prop, convert in cls.FIELDS:
            value = lowered.get(prop.lower())
            if value is not None:
                kwargs[attr] = convert(value)
        return cls(**kwargs)

    def to_dict(self) -> Dict[str, Any]:
        partition_key, row_key = self._key_values()
        data: Dict[str, Any] = {"partitionKey": partition_key, "rowKey": row_key}
        for attr, prop, _ in self.FIELDS:
            value = getattr(self, attr)
            data[prop[0].lower() + prop[1:]] = value.value if isinstance(value, Enum) else value
        extra = getattr(self, "extra")
        if extra:
            data["extra"] = dict(extra)
        return data


@dataclass
class Customer(TableEntity):
    name: str = ""
    email: str = ""
    phone: str = ""
    address: str = ""
    city: str = ""
    postal_code: str = ""
    country: str = ""
    created_at: datetime = field(default_factory=utcnow)
    updated_at: datetime = field(default_factory=utcnow)
    partition_key: str = CUSTOMER_PARTITION
    row_key: str = ""
    extra: Dict[str, ExtraValue] = field(default_factory=dict)

    FIELDS: ClassVar[Tuple[Tuple[str, str, Callable[[Any], Any]], ...]] = (
        ("name", "Name", to_text),
        ("email", "Email", to_text),
        ("phone", "Phone", to_text),
        ("address", "Address", to_text),
        ("city", "City", to_text),
        ("postal_code", "PostalCode", to_text),
        ("country", "Country", to_text),
        ("created_at", "CreatedAt", to_datetime),
        ("updated_at", "UpdatedAt", to_datetime),
    )


@dataclass
class Invoice(TableEntity):
    """An invoice, partitioned by the customer name it was created under.

    The customer fields are a snapshot taken at creation; editing the customer
    later does not touch existing invoices.
    """

    invoice_number: str = ""
    customer_name: str = ""
    customer_email: str = ""
    customer_address: str = ""
    invoice_date: datetime = field(default_factory=utcnow)
    due_date: Optional[datetime] = None
    total_amount: Decimal = Decimal("0.00")
    status: InvoiceStatus = InvoiceStatus.DRAFT
    description: str = ""
    created_at: datetime = field(default_factory=utcnow)
    updated_at: datetime = field(default_factory=utcnow)
    partition_key: str = ""
    row_key: str = ""
    extra: Dict[str, ExtraValue] = field(default_factory=dict)

    FIELDS: ClassVar[Tuple[Tuple[str, str, Callable[[Any], Any]], ...]] = (
        ("invoice_number", "InvoiceNumber", to_text),
        ("customer_name", "CustomerName", to_text),
        ("customer_email", "CustomerEmail", to_text),
        ("customer_address", "CustomerAddress", to_text),
        ("invoice_date", "InvoiceDate", to_datetime),
        ("due_date", "DueDate", to_datetime),
        ("total_amount", "TotalAmount", to_decimal),
        ("status", "Status", InvoiceStatus.parse),
        ("description", "Description", to_text),
        ("created_at", "CreatedAt", to_datetime),
        ("updated_at", "UpdatedAt", to_datetime),
    )

    def __post_init__(self) -> None:
        if self.due_date is None:
            self.due_date = self.invoice_date + DEFAULT_PAYMENT_TERMS


@dataclass
class InvoiceItem(TableEntity):
    description: str = ""
    quantity: int = 1
    unit_price: Decimal = Decimal("0.00")
    total_price: Decimal = Decimal("0.00")
    created_at: datetime = field(default_factory=utcnow)
    partition_key: str = ""
    row_key: str = ""
    extra: Dict[str, ExtraValue] = field(default_factory=dict)

    FIELDS: ClassVar[Tuple[Tuple[str, str, Callable[[Any], Any]], ...]] = (
        ("description", "Description", to_text),
        ("quantity", "Quantity", to_int),
        ("unit_price", "UnitPrice", to_decimal),
        ("total_price", "TotalPrice", to_decimal),
        ("created_at", "CreatedAt", to_datetime),
    )

    @property
    def invoice_number(self) -> str:
        return self.partition_key

    @property
    def item_id(self) -> str:
        return self.row_key
