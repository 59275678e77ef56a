"""Public package API for the invoice service."""

from __future__ import annotations

from datetime import datetime
from typing import TYPE_CHECKING, Optional, Sequence

if TYPE_CHECKING:
    from .app import InvoiceApp
    from .models import Invoice, InvoiceItem


def render_invoice(
    invoice: "Invoice",
    items: Sequence["InvoiceItem"],
    rendered_at: Optional[datetime] = None,
    currency_symbol: str = "$",
) -> bytes:
    from .pipeline import load_render_invoice

    return load_render_invoice()(invoice, items, rendered_at, currency_symbol)


def build_app(**kwargs) -> "InvoiceApp":
    from .app import build_app as _build_app

    return _build_app(**kwargs)


def run() -> None:
    from .app import build_app as _build_app
    from .server import run as _run

    _run(_build_app())


__all__ = ["build_app", "render_invoice", "run"]
