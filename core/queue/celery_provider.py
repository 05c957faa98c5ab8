from __future__ import annotations

from typing import Any

from core.queue.types import QueueJobResult, QueueTaskKey

RUN_ASYNC_TASK_NAME = "celery_worker.run_async_task"


class CeleryQueueProvider:
    backend_name = "celery"

    def __init__(self, celery_app: Any) -> None:
        self._celery_app = celery_app

    def enqueue(self, task_key: QueueTaskKey, payload: dict[str, Any]) -> QueueJobResult:
        # Every registered task goes through the one worker entry point, keyed by name.
        async_result = self._celery_app.send_task(RUN_ASYNC_TASK_NAME, args=[str(task_key), payload])
        return QueueJobResult(task_id=async_result.id, backend=self.backend_name)
