"""At-least-once queue consumer that drives the render pipeline.

A message is deleted only after its handler returns. A handler exception
releases the message for redelivery until it has been dequeued
``max_dequeue_count`` times, after which it is moved to the poison queue.
"""

from __future__ import annotations

import threading
from typing import Any, Callable, List, Optional

from .logging_config import get_logger
from .storage import MessageQueue, QueueMessage

logger = get_logger(__name__)

Handler = Callable[[bytes], Any]


class QueueWorker:
    def __init__(
        self,
        queue: MessageQueue,
        queue_name: str,
        handler: Handler,
        max_dequeue_count: int = 5,
        visibility_timeout: float = 30.0,
        poll_interval: float = 0.5,
        threads: int = 1,
        poison_queue_name: Optional[str] = None,
    ) -> None:
        self.queue = queue
        self.queue_name = queue_name
        self.handler = handler
        self.max_dequeue_count = max_dequeue_count
        self.visibility_timeout = visibility_timeout
        self.poll_interval = poll_interval
        self.threads = threads
        self.poison_queue_name = poison_queue_name or f"{queue_name}-poison"
        self._stop = threading.Event()
        self._threads: List[threading.Thread] = []

    def run_once(self) -> bool:
        """Process at most one message; returns False when the queue was empty."""
        message = self.queue.receive(self.queue_name, self.visibility_timeout)
        if message is None:
            return False

        try:
            self.handler(message.body)
        except Exception:
            self._handle_failure(message)
        else:
            self.queue.delete(message)
        return True

    def drain(self, limit: int = 1000) -> int:
        """Process messages until the queue is empty or ``limit`` is reached."""
        processed = 0
        while processed < limit and self.run_once():
            processed += 1
        return processed

    def _handle_failure(self, message: QueueMessage) -> None:
        if message.dequeue_count >= self.max_dequeue_count:
            logger.error(
                "Message %s failed %d times; moving to %s",
                message.message_id,
                message.dequeue_count,
                self.poison_queue_name,
                exc_info=True,
            )
            self.queue.send(self.poison_queue_name, message.body)
            self.queue.delete(message)
            return

        logger.warning(
            "Message %s failed (attempt %d of %d); releasing for redelivery",
            message.message_id,
            message.dequeue_count,
            self.max_dequeue_count,
            exc_info=True,
        )
        self.queue.release(message)

    def _loop(self) -> None:
        while not self._stop.is_set():
            try:
                processed = self.run_once()
            except Exception:
                logger.exception("Queue %s is unavailable; retrying", self.queue_name)
                processed = False
            if not processed:
                self._stop.wait(self.poll_interval)

    def start(self) -> None:
        if self._threads:
            return
        self._stop.clear()
        for index in range(self.threads):
            thread = threading.Thread(
                target=self._loop,
                name=f"{self.queue_name}-worker-{index}",
                daemon=True,
            )
            thread.start()
            self._threads.append(thread)
        logger.info("Started %d worker(s) on queue %s", self.threads, self.queue_name)

    def stop(self, timeout: Optional[float] = None) -> None:
        self._stop.set()
        for thread in self._threads:
            thread.join(timeout)
        self._threads = []
