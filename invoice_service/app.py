"""Builds the service graph from settings."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Optional

from .config import Settings, get_settings
from .dispatcher import RenderDispatcher
from .logging_config import get_logger
from .pipeline import Renderer, RenderPipeline, default_renderer
from .repository import InvoiceRepository
from .seeding import seed_development_data
from .storage import BlobStore, LocalBlobStore, MemoryBlobStore, MemoryQueue, MemoryTableStore
from .worker import QueueWorker

logger = get_logger(__name__)


@dataclass
class InvoiceApp:
    settings: Settings
    repository: InvoiceRepository
    blobs: BlobStore
    queue: MemoryQueue
    dispatcher: RenderDispatcher
    pipeline: RenderPipeline
    worker: QueueWorker

    def start(self) -> None:
        self.worker.start()

    def stop(self) -> None:
        self.worker.stop(timeout=5.0)

    def stats(self) -> Dict[str, Any]:
        return {
            "pipeline": self.pipeline.stats.snapshot(),
            "queue": {
                "name": self.settings.render_queue,
                "depth": self.queue.depth(self.settings.render_queue),
                "poisonDepth": self.queue.depth(self.settings.poison_queue),
            },
            "tables": {name: len(rows) for name, rows in self.repository.snapshot().items()},
        }


def build_blob_store(settings: Settings) -> BlobStore:
    if settings.blob_dir:
        logger.info("Storing PDFs under %s", settings.blob_dir)
        return LocalBlobStore(settings.blob_dir)
    return MemoryBlobStore()


def build_app(
    settings: Optional[Settings] = None,
    renderer: Optional[Renderer] = None,
    seed: Optional[bool] = None,
) -> InvoiceApp:
    settings = settings or get_settings()
    repository = InvoiceRepository(
        invoices=MemoryTableStore(settings.invoices_table),
        items=MemoryTableStore(settings.items_table),
        customers=MemoryTableStore(settings.customers_table),
    )
    blobs = build_blob_store(settings)
    queue = MemoryQueue()
    dispatcher = RenderDispatcher(repository, queue, settings.render_queue)
    pipeline = RenderPipeline(
        repository,
        blobs,
        container=settings.pdf_container,
        renderer=renderer or default_renderer(settings.currency_symbol),
    )
    worker = QueueWorker(
        queue,
        settings.render_queue,
        pipeline.handle_message,
        max_dequeue_count=settings.max_dequeue_count,
        visibility_timeout=settings.visibility_timeout_ms / 1000.0,
        poll_interval=settings.poll_interval_ms / 1000.0,
        threads=settings.worker_threads,
        poison_queue_name=settings.poison_queue,
    )

    if settings.seed_data if seed is None else seed:
        try:
            seed_development_data(repository)
        except Exception:
            logger.warning("Development data seeding failed; continuing with empty stores", exc_info=True)

    return InvoiceApp(
        settings=settings,
        repository=repository,
        blobs=blobs,
        queue=queue,
        dispatcher=dispatcher,
        pipeline=pipeline,
        worker=worker,
    )
