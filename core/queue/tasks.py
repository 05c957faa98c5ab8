"""Coroutines the worker can run, looked up by task key."""

from __future__ import annotations

from typing import Any, Awaitable, Callable

from core.logger import get_logger

TaskFunc = Callable[..., Awaitable[Any]]

logger = get_logger(__name__)

_registry: dict[str, TaskFunc] = {}


def task(task_key: str) -> Callable[[TaskFunc], TaskFunc]:
    def decorator(func: TaskFunc) -> TaskFunc:
        if task_key in _registry:
            raise ValueError(f"Duplicate task key '{task_key}'")
        _registry[task_key] = func
        return func

    return decorator


async def run_task(task_key: str, payload: dict[str, Any]) -> Any:
    try:
        func = _registry[task_key]
    except KeyError as err:
        known = ", ".join(sorted(_registry)) or "none"
        raise ValueError(f"Unknown task key '{task_key}' (registered: {known})") from err

    logger.info("Running task %s", task_key)
    return await func(**payload)
