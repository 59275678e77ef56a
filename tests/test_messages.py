import json
import unittest

from invoice_service.errors import MalformedRequest
from invoice_service.messages import RenderRequest, decode_render_request, encode_render_request


class RenderRequestCodecTests(unittest.TestCase):
    def _json_bytes(self, payload: object) -> bytes:
        return json.dumps(payload).encode("utf-8")

    def test_encodes_both_fields(self) -> None:
        body = encode_render_request(RenderRequest(invoice_number="INV-001", customer_name="John Doe"))

        self.assertEqual(json.loads(body), {"CustomerName": "John Doe", "InvoiceNumber": "INV-001"})

    def test_decodes_valid_payload(self) -> None:
        request = decode_render_request(
            self._json_bytes({"CustomerName": "Jane Smith", "InvoiceNumber": "INV-002"})
        )

        self.assertEqual(request, RenderRequest(invoice_number="INV-002", customer_name="Jane Smith"))

    def test_customer_name_may_be_empty_or_missing(self) -> None:
        self.assertEqual(decode_render_request(self._json_bytes({"InvoiceNumber": "INV-3"})).customer_name, "")
        self.assertEqual(
            decode_render_request(self._json_bytes({"CustomerName": None, "InvoiceNumber": "INV-3"})).customer_name,
            "",
        )

    def test_rejects_invalid_utf8(self) -> None:
        with self.assertRaises(MalformedRequest) as ctx:
            decode_render_request(b"\xff")
        self.assertEqual(ctx.exception.error, "invalid_encoding")

    def test_rejects_invalid_json(self) -> None:
        with self.assertRaises(MalformedRequest) as ctx:
            decode_render_request(b'{"InvoiceNumber":')
        self.assertEqual(ctx.exception.error, "invalid_json")

    def test_rejects_bad_shapes(self) -> None:
        bad_payloads = [
            ["INV-1"],
            {"CustomerName": "Jane"},
            {"InvoiceNumber": ""},
            {"InvoiceNumber": 42},
            {"InvoiceNumber": "INV-1", "CustomerName": 7},
            {"InvoiceNumber": "INV-1", "Priority": "high"},
        ]
        for payload in bad_payloads:
            with self.subTest(payload=payload):
                with self.assertRaises(MalformedRequest) as ctx:
                    decode_render_request(self._json_bytes(payload))
                self.assertEqual(ctx.exception.error, "invalid_payload")

    def test_malformed_request_is_a_value_error(self) -> None:
        with self.assertRaises(ValueError):
            decode_render_request(b"null")


if __name__ == "__main__":
    unittest.main()
