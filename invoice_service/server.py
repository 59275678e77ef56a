"""HTTP API over the repository, render dispatcher and render pipeline."""

from __future__ import annotations

import json
import re
from dataclasses import replace
from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from http.server import BaseHTTPRequestHandler, ThreadingHTTPServer
from typing import TYPE_CHECKING, Any, Callable, Dict, List, Optional, Tuple
from urllib.parse import parse_qs, quote, unquote, urlsplit

from .errors import EntityNotFound, MalformedRequest, StorageUnavailable
from .logging_config import get_logger
from .models import Customer, Invoice, InvoiceItem
from .net import content_disposition, is_client_disconnect

if TYPE_CHECKING:
    from .app import InvoiceApp

logger = get_logger(__name__)

ValidationError = Tuple[int, Dict[str, Any]]
Query = Dict[str, str]

LISTEN_BACKLOG = 128


def json_default(value: Any) -> Any:
    if isinstance(value, Decimal):
        return float(value)
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, bytes):
        return value.decode("utf-8", "replace")
    raise TypeError(f"Object of type {type(value).__name__} is not JSON serializable")


def to_json(payload: Any) -> bytes:
    return json.dumps(payload, default=json_default).encode("utf-8")


def parse_json_object(body: bytes) -> Tuple[Optional[Dict[str, Any]], Optional[ValidationError]]:
    try:
        payload = json.loads(body.decode("utf-8"))
    except UnicodeDecodeError:
        return None, (
            400,
            {"error": "invalid_encoding", "detail": "Body must be UTF-8 encoded JSON."},
        )
    except json.JSONDecodeError as exc:
        return None, (
            400,
            {
                "error": "invalid_json",
                "detail": f"{exc.msg} (line {exc.lineno}, column {exc.colno})",
            },
        )

    if not isinstance(payload, dict):
        return None, (
            400,
            {"error": "invalid_payload", "detail": "JSON root must be an object."},
        )
    return payload, None


def parse_query(raw: str) -> Query:
    return {name: values[0] for name, values in parse_qs(raw).items() if values}


def invoice_from_payload(payload: Dict[str, Any]) -> Invoice:
    invoice = Invoice.from_payload(payload)
    if not invoice.customer_name.strip():
        raise ValueError("'customerName' is required.")
    return invoice


def merge_invoice_update(existing: Invoice, payload: Dict[str, Any]) -> Invoice:
    """Apply the fields present in ``payload`` to ``existing``; keys never move."""
    merged = {**existing.to_dict(), **payload}
    updated = Invoice.from_payload(merged)
    return replace(
        updated,
        invoice_number=existing.invoice_number,
        partition_key=existing.partition_key,
        row_key=existing.row_key,
        created_at=existing.created_at,
        extra=existing.extra,
    )


def item_from_payload(payload: Dict[str, Any]) -> InvoiceItem:
    item = InvoiceItem.from_payload(payload)
    if not item.description.strip():
        raise ValueError("'description' is required.")
    if item.quantity <= 0:
        raise ValueError("'quantity' must be a positive integer.")
    if item.unit_price < 0:
        raise ValueError("'unitPrice' cannot be negative.")
    return item


def customer_from_payload(payload: Dict[str, Any]) -> Customer:
    customer = Customer.from_payload(payload)
    if not customer.name.strip():
        raise ValueError("'name' is required.")
    return customer


class InvoiceHandler(BaseHTTPRequestHandler):
    server: "InvoiceHTTPServer"

    ROUTES: List[Tuple[str, "re.Pattern[str]", str]] = [
        ("GET", re.compile(r"^/(?:health|healthz)?$"), "get_health"),
        ("GET", re.compile(r"^/api/invoices$"), "list_invoices"),
        ("POST", re.compile(r"^/api/invoices$"), "create_invoice"),
        ("GET", re.compile(r"^/api/invoices/([^/]+)$"), "get_invoice"),
        ("PUT", re.compile(r"^/api/invoices/([^/]+)$"), "update_invoice"),
        ("DELETE", re.compile(r"^/api/invoices/([^/]+)$"), "delete_invoice"),
        ("GET", re.compile(r"^/api/invoices/([^/]+)/items$"), "list_items"),
        ("POST", re.compile(r"^/api/invoices/([^/]+)/items$"), "add_item"),
        ("DELETE", re.compile(r"^/api/invoices/([^/]+)/items/([^/]+)$"), "delete_item"),
        ("POST", re.compile(r"^/api/invoices/([^/]+)/pdf$"), "enqueue_pdf"),
        ("GET", re.compile(r"^/api/customers$"), "list_customers"),
        ("POST", re.compile(r"^/api/customers$"), "create_customer"),
        ("GET", re.compile(r"^/api/pdfs$"), "list_pdfs"),
        ("GET", re.compile(r"^/api/pdfs/([^/]+)/(view|download)$"), "get_pdf"),
        ("GET", re.compile(r"^/api/entities$"), "list_entities"),
        ("GET", re.compile(r"^/api/stats$"), "get_stats"),
    ]

    @property
    def app(self) -> "InvoiceApp":
        return self.server.app

    # -------- Response plumbing --------

    def _write_response(
        self,
        status: int,
        content_type: str,
        body: bytes,
        headers: Optional[Dict[str, str]] = None,
    ) -> bool:
        try:
            self.send_response(status)
            self.send_header("Content-Type", content_type)
            self.send_header("Content-Length", str(len(body)))
            for name, value in (headers or {}).items():
                self.send_header(name, value)
            self.end_headers()
            self.wfile.write(body)
            return True
        except Exception as exc:
            if is_client_disconnect(exc):
                return False
            raise

    def _send_json(self, status: int, payload: Any) -> bool:
        return self._write_response(status, "application/json", to_json(payload))

    def _send_error(self, status: int, error: str, detail: str) -> bool:
        return self._send_json(status, {"error": error, "detail": detail})

    def _read_body(self) -> Optional[bytes]:
        header = self.headers.get("Content-Length")
        if header is None:
            self._send_error(411, "missing_content_length", "Content-Length header is required.")
            return None

        try:
            content_length = int(header)
        except ValueError:
            self._send_error(400, "invalid_content_length", "Content-Length must be an integer.")
            return None

        if content_length <= 0:
            self._send_error(400, "empty_body", "Request body cannot be empty.")
            return None

        max_body_bytes = self.app.settings.max_body_bytes
        if content_length > max_body_bytes:
            self._send_error(413, "payload_too_large", f"Body exceeds {max_body_bytes} bytes.")
            return None

        try:
            return self.rfile.read(content_length)
        except Exception as exc:
            if is_client_disconnect(exc):
                return None
            raise

    def _read_json(self) -> Optional[Dict[str, Any]]:
        body = self._read_body()
        if body is None:
            return None
        payload, validation_error = parse_json_object(body)
        if validation_error is not None:
            status, error_body = validation_error
            self._send_json(status, error_body)
            return None
        return payload

    # -------- Dispatch --------

    def _dispatch(self, method: str) -> None:
        parts = urlsplit(self.path)
        query = parse_query(parts.query)

        path_matched = False
        for route_method, pattern, name in self.ROUTES:
            match = pattern.match(parts.path)
            if match is None:
                continue
            path_matched = True
            if route_method != method:
                continue
            args = [unquote(group) for group in match.groups()]
            self._invoke(getattr(self, name), args, query)
            return

        if path_matched:
            self._send_error(405, "method_not_allowed", f"{method} is not supported here.")
        else:
            self._send_error(404, "not_found", "Unsupported endpoint.")

    def _invoke(self, route: Callable[..., None], args: List[str], query: Query) -> None:
        try:
            route(*args, query=query)
        except EntityNotFound as exc:
            self._send_error(404, "not_found", str(exc))
        except MalformedRequest as exc:
            self._send_error(400, exc.error, exc.detail)
        except ValueError as exc:
            self._send_error(400, "invalid_payload", str(exc))
        except StorageUnavailable as exc:
            logger.error("Storage unavailable while handling %s %s: %s", self.command, self.path, exc)
            self._send_error(500, "storage_unavailable", str(exc))
        except Exception as exc:
            if is_client_disconnect(exc):
                return
            logger.exception("Unhandled error for %s %s", self.command, self.path)
            self._send_error(500, "internal_error", str(exc))

    def do_GET(self) -> None:
        self._dispatch("GET")

    def do_POST(self) -> None:
        self._dispatch("POST")

    def do_PUT(self) -> None:
        self._dispatch("PUT")

    def do_DELETE(self) -> None:
        self._dispatch("DELETE")

    def handle_one_request(self) -> None:
        try:
            super().handle_one_request()
        except Exception as exc:
            if is_client_disconnect(exc):
                return
            raise

    def log_message(self, format: str, *args: Any) -> None:
        logger.debug("%s - %s", self.address_string(), format % args)

    # -------- Routes --------

    def get_health(self, query: Query) -> None:
        self._send_json(200, {"status": "ok"})

    def list_invoices(self, query: Query) -> None:
        invoices = self.app.repository.list_invoices(query.get("customer"))
        self._send_json(200, [invoice.to_dict() for invoice in invoices])

    def create_invoice(self, query: Query) -> None:
        payload = self._read_json()
        if payload is None:
            return
        invoice = self.app.repository.create_invoice(invoice_from_payload(payload))
        self._send_json(201, invoice.to_dict())

    def _find_invoice(self, invoice_number: str, customer: Optional[str]) -> Optional[Invoice]:
        if customer:
            return self.app.repository.get_invoice(customer, invoice_number)
        return self.app.repository.get_invoice_by_number(invoice_number)

    def _require_customer(self, query: Query) -> Optional[str]:
        customer = query.get("customer")
        if not customer:
            self._send_error(400, "missing_customer", "Query parameter 'customer' is required.")
            return None
        return customer

    def get_invoice(self, invoice_number: str, query: Query) -> None:
        invoice = self._find_invoice(invoice_number, query.get("customer"))
        if invoice is None:
            self._send_error(404, "not_found", f"Invoice {invoice_number} not found.")
            return
        self._send_json(200, invoice.to_dict())

    def update_invoice(self, invoice_number: str, query: Query) -> None:
        customer = self._require_customer(query)
        if customer is None:
            return
        payload = self._read_json()
        if payload is None:
            return
        existing = self.app.repository.get_invoice(customer, invoice_number)
        if existing is None:
            self._send_error(404, "not_found", f"Invoice {invoice_number} not found.")
            return
        updated = self.app.repository.update_invoice(merge_invoice_update(existing, payload))
        self._send_json(200, updated.to_dict())

    def delete_invoice(self, invoice_number: str, query: Query) -> None:
        customer = self._require_customer(query)
        if customer is None:
            return
        self.app.repository.delete_invoice(customer, invoice_number)
        self._write_response(204, "application/json", b"")

    def list_items(self, invoice_number: str, query: Query) -> None:
        items = self.app.repository.list_invoice_items(invoice_number)
        self._send_json(200, [item.to_dict() for item in items])

    def add_item(self, invoice_number: str, query: Query) -> None:
        payload = self._read_json()
        if payload is None:
            return
        item = self.app.repository.add_invoice_item(invoice_number, item_from_payload(payload))
        self._send_json(201, item.to_dict())

    def delete_item(self, invoice_number: str, item_id: str, query: Query) -> None:
        self.app.repository.delete_invoice_item(invoice_number, item_id)
        self._write_response(204, "application/json", b"")

    def enqueue_pdf(self, invoice_number: str, query: Query) -> None:
        if not self.app.dispatcher.enqueue_render(invoice_number, query.get("customer")):
            self._send_error(404, "not_found", f"Invoice {invoice_number} not found.")
            return
        self._send_json(202, {"status": "queued", "invoiceNumber": invoice_number})

    def list_customers(self, query: Query) -> None:
        customers = self.app.repository.list_customers()
        self._send_json(200, [customer.to_dict() for customer in customers])

    def create_customer(self, query: Query) -> None:
        payload = self._read_json()
        if payload is None:
            return
        customer = self.app.repository.create_customer(customer_from_payload(payload))
        self._send_json(201, customer.to_dict())

    def _base_url(self) -> str:
        host = self.headers.get("Host")
        if not host:
            address, port = self.server.server_address[:2]
            host = f"{address}:{port}"
        return f"http://{host}"

    def list_pdfs(self, query: Query) -> None:
        pdfs = self.app.pipeline.describe_pdfs(query.get("invoiceNumber"))
        base_url = self._base_url()
        entries = []
        for info in pdfs:
            link = f"{base_url}/api/pdfs/{quote(info.file_name, safe='')}"
            entries.append(
                {
                    "fileName": info.file_name,
                    "invoiceNumber": info.invoice_number,
                    "generatedAt": info.generated_at,
                    "viewUrl": f"{link}/view",
                    "downloadUrl": f"{link}/download",
                }
            )
        self._send_json(200, {"pdfs": entries, "count": len(entries)})

    def get_pdf(self, file_name: str, mode: str, query: Query) -> None:
        stream = self.app.pipeline.get_pdf(file_name)
        if stream is None:
            self._send_error(404, "not_found", f"PDF {file_name} not found.")
            return
        with stream:
            data = stream.read()
        self._write_response(
            200,
            "application/pdf",
            data,
            headers={"Content-Disposition": content_disposition(file_name, attachment=mode == "download")},
        )

    def list_entities(self, query: Query) -> None:
        action = query.get("action", "list")
        if action == "tables":
            names = self.app.repository.table_names()
            self._send_json(200, {"tables": names, "count": len(names)})
        elif action == "list":
            snapshot = self.app.repository.snapshot()
            tables = {name: {"entities": rows, "count": len(rows)} for name, rows in snapshot.items()}
            self._send_json(
                200,
                {
                    "tables": tables,
                    "totalEntities": sum(len(rows) for rows in snapshot.values()),
                    "tableCount": len(tables),
                },
            )
        else:
            self._send_error(400, "invalid_action", "Action must be 'list' or 'tables'.")

    def get_stats(self, query: Query) -> None:
        self._send_json(200, self.app.stats())


class InvoiceHTTPServer(ThreadingHTTPServer):
    daemon_threads = True
    allow_reuse_address = True
    request_queue_size = LISTEN_BACKLOG

    def __init__(self, address: Tuple[str, int], app: "InvoiceApp") -> None:
        self.app = app
        super().__init__(address, InvoiceHandler)


def run(app: "InvoiceApp") -> None:
    settings = app.settings
    server = InvoiceHTTPServer((settings.host, settings.port), app)
    app.start()
    logger.info("Invoice API server listening on http://%s:%d", settings.host, settings.port)
    try:
        server.serve_forever()
    except KeyboardInterrupt:
        logger.info("Shutting down")
    finally:
        server.server_close()
        app.stop()
