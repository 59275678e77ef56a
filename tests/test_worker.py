import threading
import unittest

from invoice_service.storage import MemoryQueue
from invoice_service.worker import QueueWorker


class FlakyHandler:
    """Fails the first ``failures`` calls, then succeeds."""

    def __init__(self, failures: int) -> None:
        self.failures = failures
        self.calls = 0
        self.bodies = []

    def __call__(self, body: bytes) -> None:
        self.calls += 1
        if self.calls <= self.failures:
            raise RuntimeError("transient")
        self.bodies.append(body)


class QueueWorkerTests(unittest.TestCase):
    def setUp(self) -> None:
        self.queue = MemoryQueue()

    def _worker(self, handler, max_dequeue_count: int = 3) -> QueueWorker:
        return QueueWorker(
            self.queue,
            "pdf-generation",
            handler,
            max_dequeue_count=max_dequeue_count,
            visibility_timeout=30.0,
            poll_interval=0.01,
        )

    def test_run_once_on_empty_queue(self) -> None:
        self.assertFalse(self._worker(FlakyHandler(0)).run_once())

    def test_success_deletes_message(self) -> None:
        handler = FlakyHandler(0)
        self.queue.send("pdf-generation", b"job")

        self.assertTrue(self._worker(handler).run_once())

        self.assertEqual(handler.bodies, [b"job"])
        self.assertEqual(self.queue.depth("pdf-generation"), 0)

    def test_failure_is_redelivered_until_it_succeeds(self) -> None:
        handler = FlakyHandler(2)
        worker = self._worker(handler)
        self.queue.send("pdf-generation", b"job")

        with self.assertLogs("invoice_service.worker", level="WARNING"):
            processed = worker.drain()

        self.assertEqual(processed, 3)
        self.assertEqual(handler.bodies, [b"job"])
        self.assertEqual(self.queue.depth("pdf-generation"), 0)
        self.assertEqual(self.queue.depth(worker.poison_queue_name), 0)

    def test_repeated_failure_moves_to_poison_queue(self) -> None:
        handler = FlakyHandler(100)
        worker = self._worker(handler, max_dequeue_count=3)
        self.queue.send("pdf-generation", b"job")

        with self.assertLogs("invoice_service.worker", level="ERROR"):
            worker.drain()

        self.assertEqual(handler.calls, 3)
        self.assertEqual(worker.poison_queue_name, "pdf-generation-poison")
        self.assertEqual(self.queue.depth("pdf-generation"), 0)
        self.assertEqual(self.queue.peek_bodies("pdf-generation-poison"), [b"job"])

    def test_start_and_stop_background_threads(self) -> None:
        done = threading.Event()

        def handler(body: bytes) -> None:
            done.set()

        worker = self._worker(handler)
        worker.start()
        try:
            self.queue.send("pdf-generation", b"job")
            self.assertTrue(done.wait(2.0))
        finally:
            worker.stop(timeout=2.0)

        self.assertEqual(worker._threads, [])


if __name__ == "__main__":
    unittest.main()
