import asyncio

from celery import Celery

from core import task as _task_registration  # noqa: F401
from core.logging_config import configure_logging
from core.queue.celery_provider import RUN_ASYNC_TASK_NAME
from core.queue.tasks import run_task
from core.settings import get_settings

settings = get_settings()

celery_app = Celery(
    "places_worker",
    broker=settings.celery_broker_url,
    backend=settings.celery_result_backend,
)
celery_app.conf.update(task_track_started=True, worker_hijack_root_logger=False)
configure_logging(settings.log_level)


@celery_app.task(name=RUN_ASYNC_TASK_NAME)
def run_async_task(task_key: str, kwargs: dict):
    return asyncio.run(run_task(task_key=task_key, payload=kwargs))
