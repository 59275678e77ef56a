"""Runtime configuration loaded from environment variables."""

from __future__ import annotations

import os
from dataclasses import dataclass
from functools import lru_cache
from typing import Optional


def env_int(name: str, default: int, minimum: int = 1) -> int:
    raw = os.getenv(name)
    if raw is None:
        return default
    try:
        value = int(raw)
    except ValueError:
        return default
    return value if value >= minimum else default


def env_str(name: str, default: str) -> str:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    return raw.strip()


def env_bool(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    return raw.strip().lower() in ("1", "true", "yes", "on")


@dataclass(frozen=True)
class Settings:
    host: str = "0.0.0.0"
    port: int = 8080
    log_level: str = "INFO"
    invoices_table: str = "invoices"
    items_table: str = "invoiceitems"
    customers_table: str = "customers"
    pdf_container: str = "invoice-pdfs"
    render_queue: str = "pdf-generation"
    blob_dir: Optional[str] = None
    worker_threads: int = 2
    max_dequeue_count: int = 5
    visibility_timeout_ms: int = 30000
    poll_interval_ms: int = 500
    max_body_bytes: int = 1024 * 1024
    seed_data: bool = True
    currency_symbol: str = "$"

    @property
    def poison_queue(self) -> str:
        return f"{self.render_queue}-poison"


def load_settings() -> Settings:
    return Settings(
        host=env_str("INVOICE_HOST", "0.0.0.0"),
        port=env_int("INVOICE_PORT", 8080, minimum=0),
        log_level=env_str("INVOICE_LOG_LEVEL", "INFO"),
        invoices_table=env_str("INVOICE_TABLE_INVOICES", "invoices"),
        items_table=env_str("INVOICE_TABLE_ITEMS", "invoiceitems"),
        customers_table=env_str("INVOICE_TABLE_CUSTOMERS", "customers"),
        pdf_container=env_str("INVOICE_PDF_CONTAINER", "invoice-pdfs"),
        render_queue=env_str("INVOICE_RENDER_QUEUE", "pdf-generation"),
        blob_dir=os.getenv("INVOICE_BLOB_DIR") or None,
        worker_threads=env_int("INVOICE_WORKER_THREADS", 2, minimum=1),
        max_dequeue_count=env_int("INVOICE_MAX_DEQUEUE_COUNT", 5, minimum=1),
        visibility_timeout_ms=env_int("INVOICE_VISIBILITY_TIMEOUT_MS", 30000, minimum=1000),
        poll_interval_ms=env_int("INVOICE_POLL_INTERVAL_MS", 500, minimum=10),
        max_body_bytes=env_int("INVOICE_MAX_BODY_BYTES", 1024 * 1024, minimum=1024),
        seed_data=env_bool("INVOICE_SEED_DATA", True),
        currency_symbol=env_str("INVOICE_CURRENCY_SYMBOL", "$"),
    )


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return load_settings()
