"""Exception types shared across the invoice service."""

from __future__ import annotations


class InvoiceServiceError(Exception):
    """Base class for errors raised by the invoice service."""


class StorageUnavailable(InvoiceServiceError):
    """Raised when a table, blob or queue backend cannot be reached."""


class EntityNotFound(InvoiceServiceError, LookupError):
    """Raised when a point delete targets an entity that does not exist."""

    def __init__(self, partition_key: str, row_key: str) -> None:
        super().__init__(f"Entity not found: {partition_key}/{row_key}")
        self.partition_key = partition_key
        self.row_key = row_key


class MalformedRequest(InvoiceServiceError, ValueError):
    """Raised when a render queue payload cannot be decoded."""

    def __init__(self, error: str, detail: str) -> None:
        super().__init__(detail)
        self.error = error
        self.detail = detail


class DependencyError(InvoiceServiceError, RuntimeError):
    """Raised when a required runtime dependency is missing."""
