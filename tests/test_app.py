import os
import tempfile
import unittest
from decimal import Decimal
from unittest.mock import patch

from invoice_service.app import build_app
from invoice_service.config import Settings, env_bool, env_int, load_settings
from invoice_service.logging_config import get_logger, setup_logging
from invoice_service.seeding import seed_development_data
from invoice_service.storage import LocalBlobStore, MemoryBlobStore


def fake_renderer(invoice, items, rendered_at) -> bytes:
    return b"%PDF-fake"


class ConfigTests(unittest.TestCase):
    def test_env_int_falls_back_on_invalid_values(self) -> None:
        with patch.dict(os.environ, {"X_INT": "abc", "Y_INT": "0", "Z_INT": "42"}):
            self.assertEqual(env_int("X_INT", 5), 5)
            self.assertEqual(env_int("Y_INT", 5), 5)
            self.assertEqual(env_int("Z_INT", 5), 42)
            self.assertEqual(env_int("MISSING_INT", 5), 5)

    def test_env_bool(self) -> None:
        with patch.dict(os.environ, {"FLAG_ON": "yes", "FLAG_OFF": "0"}):
            self.assertTrue(env_bool("FLAG_ON", False))
            self.assertFalse(env_bool("FLAG_OFF", True))
            self.assertTrue(env_bool("FLAG_MISSING", True))

    def test_load_settings_reads_environment(self) -> None:
        env = {
            "INVOICE_PORT": "9090",
            "INVOICE_RENDER_QUEUE": "renders",
            "INVOICE_SEED_DATA": "false",
            "INVOICE_VISIBILITY_TIMEOUT_MS": "10",
        }
        with patch.dict(os.environ, env):
            settings = load_settings()

        self.assertEqual(settings.port, 9090)
        self.assertEqual(settings.render_queue, "renders")
        self.assertEqual(settings.poison_queue, "renders-poison")
        self.assertFalse(settings.seed_data)
        self.assertEqual(settings.visibility_timeout_ms, 30000)


class LoggingTests(unittest.TestCase):
    def test_loggers_share_package_namespace(self) -> None:
        self.assertEqual(get_logger("invoice_service.worker").name, "invoice_service.worker")
        self.assertEqual(get_logger("scripts").name, "invoice_service.scripts")

    def test_setup_logging_is_idempotent(self) -> None:
        logger = setup_logging("debug")
        self.addCleanup(logger.setLevel, 0)
        self.addCleanup(logger.handlers.clear)
        setup_logging("warning")

        self.assertEqual(len(logger.handlers), 1)
        self.assertEqual(logger.level, 30)


class SeedingTests(unittest.TestCase):
    def test_build_app_seeds_sample_data_once(self) -> None:
        app = build_app(settings=Settings(), renderer=fake_renderer)
        repository = app.repository

        self.assertEqual(len(repository.list_customers()), 3)
        totals = {invoice.invoice_number: invoice.total_amount for invoice in repository.list_invoices()}
        self.assertEqual(
            totals,
            {
                "INV-001": Decimal("2500.00"),
                "INV-002": Decimal("4800.00"),
                "INV-003": Decimal("1800.00"),
                "INV-004": Decimal("3600.00"),
            },
        )
        self.assertEqual(repository.get_invoice("Jane Smith", "INV-002").customer_email, "jane@example.com")

        self.assertFalse(seed_development_data(repository))
        self.assertEqual(len(repository.list_invoices()), 4)

    def test_seeding_can_be_disabled(self) -> None:
        app = build_app(settings=Settings(seed_data=False), renderer=fake_renderer)

        self.assertEqual(app.repository.list_invoices(), [])

    def test_seeding_failure_does_not_abort_start_up(self) -> None:
        with patch("invoice_service.app.seed_development_data", side_effect=RuntimeError("boom")):
            with self.assertLogs("invoice_service.app", level="WARNING"):
                app = build_app(settings=Settings(), renderer=fake_renderer)

        self.assertIsNotNone(app.repository)


class BuildAppTests(unittest.TestCase):
    def test_blob_store_follows_blob_dir(self) -> None:
        self.assertIsInstance(build_app(settings=Settings(seed_data=False), renderer=fake_renderer).blobs, MemoryBlobStore)

        with tempfile.TemporaryDirectory() as root:
            app = build_app(settings=Settings(seed_data=False, blob_dir=root), renderer=fake_renderer)
            self.assertIsInstance(app.blobs, LocalBlobStore)

    def test_worker_uses_configured_queues(self) -> None:
        app = build_app(
            settings=Settings(seed_data=False, render_queue="renders", max_dequeue_count=2),
            renderer=fake_renderer,
        )

        self.assertEqual(app.worker.queue_name, "renders")
        self.assertEqual(app.worker.poison_queue_name, "renders-poison")
        self.assertEqual(app.worker.max_dequeue_count, 2)
        self.assertEqual(app.dispatcher.queue_name, "renders")


if __name__ == "__main__":
    unittest.main()
