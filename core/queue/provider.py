from __future__ import annotations

from typing import Any, Protocol

from core.queue.types import QueueJobResult, QueueTaskKey


class QueueProvider(Protocol):
    """Publishes a registered task for a worker to run later.

    ``enqueue`` is blocking I/O against the broker; async callers push it
    onto a thread.
    """

    backend_name: str

    def enqueue(self, task_key: QueueTaskKey, payload: dict[str, Any]) -> QueueJobResult:
        ...
