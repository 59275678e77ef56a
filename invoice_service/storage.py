"""Storage capabilities: partitioned tables, blob containers and work queues.

The service only talks to these through the Protocols below. The in-memory
implementations back local runs and tests; ``LocalBlobStore`` keeps rendered
PDFs on disk between runs.
"""

from __future__ import annotations

import os
import tempfile
import threading
import time
import uuid
from collections import deque
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Deque, Dict, List, Optional, Protocol, Tuple

from .errors import EntityNotFound, StorageUnavailable

Entity = Dict[str, Any]

PARTITION_KEY = "PartitionKey"
ROW_KEY = "RowKey"
TIMESTAMP = "Timestamp"


@dataclass(frozen=True)
class Filter:
    """Single-clause equality predicate on one entity property."""

    field: str
    value: str

    def matches(self, entity: Entity) -> bool:
        return entity.get(self.field) == self.value

    def __str__(self) -> str:
        escaped = self.value.replace("'", "''")
        return f"{self.field} eq '{escaped}'"


class KeyValueStore(Protocol):
    name: str

    def upsert(self, partition_key: str, row_key: str, entity: Entity) -> None:
        ...

    def get(self, partition_key: str, row_key: str) -> Optional[Entity]:
        ...

    def query(self, filter: Optional[Filter] = None) -> List[Entity]:
        ...

    def delete(self, partition_key: str, row_key: str) -> None:
        ...


class BlobStore(Protocol):
    def put(self, container: str, name: str, data: bytes) -> None:
        ...

    def get(self, container: str, name: str) -> Optional[bytes]:
        ...

    def list(self, container: str) -> List[str]:
        ...


@dataclass
class QueueMessage:
    queue_name: str
    body: bytes
    message_id: str = field(default_factory=lambda: uuid.uuid4().hex)
    dequeue_count: int = 0
    pop_receipt: Optional[str] = None


class MessageQueue(Protocol):
    def send(self, queue_name: str, body: bytes) -> None:
        ...

    def receive(self, queue_name: str, visibility_timeout: float) -> Optional[QueueMessage]:
        ...

    def delete(self, message: QueueMessage) -> None:
        ...

    def release(self, message: QueueMessage) -> None:
        ...


class MemoryTableStore:
    """Thread-safe in-memory table keyed by (PartitionKey, RowKey).

    Reads return copies so callers can never mutate stored state without
    going through ``upsert``. Writes are last-write-wins.
    """

    def __init__(self, name: str) -> None:
        self.name = name
        self._lock = threading.Lock()
        self._rows: Dict[Tuple[str, str], Entity] = {}

    def upsert(self, partition_key: str, row_key: str, entity: Entity) -> None:
        stored = dict(entity)
        stored[PARTITION_KEY] = partition_key
        stored[ROW_KEY] = row_key
        stored[TIMESTAMP] = datetime.now(timezone.utc)
        with self._lock:
            self._rows[(partition_key, row_key)] = stored

    def get(self, partition_key: str, row_key: str) -> Optional[Entity]:
        with self._lock:
            entity = self._rows.get((partition_key, row_key))
            return dict(entity) if entity is not None else None

    def query(self, filter: Optional[Filter] = None) -> List[Entity]:
        with self._lock:
            rows = list(self._rows.values())
        return [dict(row) for row in rows if filter is None or filter.matches(row)]

    def delete(self, partition_key: str, row_key: str) -> None:
        with self._lock:
            if (partition_key, row_key) not in self._rows:
                raise EntityNotFound(partition_key, row_key)
            del self._rows[(partition_key, row_key)]

    def __len__(self) -> int:
        with self._lock:
            return len(self._rows)


class MemoryBlobStore:
    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._containers: Dict[str, Dict[str, bytes]] = {}

    def put(self, container: str, name: str, data: bytes) -> None:
        with self._lock:
            self._containers.setdefault(container, {})[name] = bytes(data)

    def get(self, container: str, name: str) -> Optional[bytes]:
        with self._lock:
            return self._containers.get(container, {}).get(name)

    def list(self, container: str) -> List[str]:
        with self._lock:
            return list(self._containers.get(container, {}))


class LocalBlobStore:
    """Blob containers mapped to sub-directories of ``root``."""

    def __init__(self, root: str) -> None:
        self.root = Path(root)

    def _container_path(self, container: str) -> Path:
        return self.root / container

    def _blob_path(self, container: str, name: str) -> Path:
        if not name or "/" in name or "\\" in name or name in (".", ".."):
            raise ValueError(f"Invalid blob name: {name!r}")
        return self._container_path(container) / name

    def put(self, container: str, name: str, data: bytes) -> None:
        """Each write goes through its own temp file; the last rename wins."""
        path = self._blob_path(container, name)
        tmp_path: Optional[Path] = None
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            with tempfile.NamedTemporaryFile(
                dir=path.parent,
                prefix=f".{path.name}.",
                suffix=".tmp",
                delete=False,
            ) as handle:
                tmp_path = Path(handle.name)
                handle.write(data)
            os.replace(tmp_path, path)
        except OSError as exc:
            if tmp_path is not None and tmp_path.exists():
                tmp_path.unlink()
            raise StorageUnavailable(f"Unable to write blob {container}/{name}: {exc}") from exc

    def get(self, container: str, name: str) -> Optional[bytes]:
        path = self._blob_path(container, name)
        try:
            return path.read_bytes()
        except FileNotFoundError:
            return None
        except OSError as exc:
            raise StorageUnavailable(f"Unable to read blob {container}/{name}: {exc}") from exc

    def list(self, container: str) -> List[str]:
        path = self._container_path(container)
        if not path.exists():
            return []
        try:
            return [
                entry.name
                for entry in path.iterdir()
                if entry.is_file() and not entry.name.startswith(".")
            ]
        except OSError as exc:
            raise StorageUnavailable(f"Unable to list container {container}: {exc}") from exc


class MemoryQueue:
    """In-memory queues with visibility timeouts and dequeue counts.

    A received message stays invisible until it is deleted, released, or its
    visibility timeout lapses; after that it is delivered again.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._visible: Dict[str, Deque[QueueMessage]] = {}
        self._invisible: Dict[str, Tuple[QueueMessage, float]] = {}

    def send(self, queue_name: str, body: bytes) -> None:
        message = QueueMessage(queue_name=queue_name, body=bytes(body))
        with self._lock:
            self._visible.setdefault(queue_name, deque()).append(message)

    def _restore_expired(self, now: float) -> None:
        expired = [
            message_id
            for message_id, (_, deadline) in self._invisible.items()
            if deadline <= now
        ]
        for message_id in expired:
            message, _ = self._invisible.pop(message_id)
            message.pop_receipt = None
            self._visible.setdefault(message.queue_name, deque()).append(message)

    def receive(self, queue_name: str, visibility_timeout: float) -> Optional[QueueMessage]:
        now = time.monotonic()
        with self._lock:
            self._restore_expired(now)
            pending = self._visible.get(queue_name)
            if not pending:
                return None
            message = pending.popleft()
            message.dequeue_count += 1
            message.pop_receipt = uuid.uuid4().hex
            self._invisible[message.message_id] = (message, now + visibility_timeout)
            return QueueMessage(
                queue_name=message.queue_name,
                body=message.body,
                message_id=message.message_id,
                dequeue_count=message.dequeue_count,
                pop_receipt=message.pop_receipt,
            )

    def _take_invisible(self, message: QueueMessage) -> Optional[QueueMessage]:
        entry = self._invisible.get(message.message_id)
        if entry is None or entry[0].pop_receipt != message.pop_receipt:
            return None
        del self._invisible[message.message_id]
        return entry[0]

    def delete(self, message: QueueMessage) -> None:
        with self._lock:
            self._take_invisible(message)

    def release(self, message: QueueMessage) -> None:
        with self._lock:
            stored = self._take_invisible(message)
            if stored is not None:
                stored.pop_receipt = None
                self._visible.setdefault(stored.queue_name, deque()).appendleft(stored)

    def peek_bodies(self, queue_name: str) -> List[bytes]:
        with self._lock:
            return [message.body for message in self._visible.get(queue_name, ())]

    def depth(self, queue_name: str) -> int:
        with self._lock:
            visible = len(self._visible.get(queue_name, ()))
            hidden = sum(1 for message, _ in self._invisible.values() if message.queue_name == queue_name)
            return visible + hidden
