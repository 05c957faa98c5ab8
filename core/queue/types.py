from __future__ import annotations

from dataclasses import dataclass
from typing import NewType

QueueTaskKey = NewType("QueueTaskKey", str)


@dataclass(frozen=True)
class QueueJobResult:
    """Receipt for a job handed to the broker; the job itself may not have run yet."""

    task_id: str
    backend: str
    status: str = "queued"
