from __future__ import annotations

from threading import Lock
from typing import Any

from core.queue.provider import QueueProvider
from core.queue.types import QueueJobResult, QueueTaskKey


class QueueManager:
    """Process-wide handle on the configured queue provider."""

    _instance: "QueueManager | None" = None
    _lock = Lock()

    def __init__(self, provider: QueueProvider) -> None:
        self.provider = provider

    @classmethod
    def configure(cls, provider: QueueProvider) -> "QueueManager":
        with cls._lock:
            cls._instance = cls(provider)
        return cls._instance

    @classmethod
    def reset(cls) -> None:
        with cls._lock:
            cls._instance = None

    @classmethod
    def get_instance(cls) -> "QueueManager":
        instance = cls._instance
        if instance is None:
            raise RuntimeError("QueueManager is not configured; call QueueManager.configure() at startup")
        return instance

    def enqueue(self, task_key: str, **payload: Any) -> QueueJobResult:
        return self.provider.enqueue(QueueTaskKey(task_key), payload)
