"""Wire format for render requests placed on the PDF queue."""

from __future__ import annotations

import json
from dataclasses import dataclass

from .errors import MalformedRequest

REQUEST_FIELDS = ("CustomerName", "InvoiceNumber")


@dataclass(frozen=True)
class RenderRequest:
    invoice_number: str
    customer_name: str = ""

    def encode(self) -> bytes:
        return encode_render_request(self)


def encode_render_request(request: RenderRequest) -> bytes:
    payload = {
        "CustomerName": request.customer_name,
        "InvoiceNumber": request.invoice_number,
    }
    return json.dumps(payload).encode("utf-8")


def decode_render_request(body: bytes) -> RenderRequest:
    """Parse a queue message body, raising ``MalformedRequest`` when it is not usable."""
    try:
        payload = json.loads(body.decode("utf-8"))
    except UnicodeDecodeError as exc:
        raise MalformedRequest("invalid_encoding", "Message body must be UTF-8 encoded JSON.") from exc
    except json.JSONDecodeError as exc:
        raise MalformedRequest(
            "invalid_json",
            f"{exc.msg} (line {exc.lineno}, column {exc.colno})",
        ) from exc

    if not isinstance(payload, dict):
        raise MalformedRequest("invalid_payload", "JSON root must be an object.")

    unexpected = sorted(set(payload) - set(REQUEST_FIELDS))
    if unexpected:
        raise MalformedRequest("invalid_payload", f"Unexpected fields: {', '.join(unexpected)}.")

    customer_name = payload.get("CustomerName", "")
    if customer_name is None:
        customer_name = ""
    if not isinstance(customer_name, str):
        raise MalformedRequest("invalid_payload", "'CustomerName' must be a string.")

    invoice_number = payload.get("InvoiceNumber")
    if not isinstance(invoice_number, str):
        raise MalformedRequest("invalid_payload", "'InvoiceNumber' must be a string.")
    if not invoice_number.strip():
        raise MalformedRequest("invalid_payload", "'InvoiceNumber' cannot be empty.")

    return RenderRequest(invoice_number=invoice_number, customer_name=customer_name)
