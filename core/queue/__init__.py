from core.queue.manager import QueueManager
from core.queue.tasks import run_task, task
from core.queue.types import QueueJobResult

__all__ = [
    "QueueJobResult",
    "QueueManager",
    "run_task",
    "task",
]
