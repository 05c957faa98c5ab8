"""Shared logger factory.

Every module asks for its logger here so records carry one consistent format
whether the app runs under uvicorn or inside the Celery worker.
"""

import logging
import sys


def get_logger(name: str) -> logging.Logger:
    """Return a logger that writes to stdout.

    Args:
        name: logger name, normally ``__name__``.

    Returns:
        The configured logger.
    """
    logger = logging.getLogger(name)

    if not logger.handlers and not logging.getLogger().handlers:
        logger.setLevel(logging.INFO)

        handler = logging.StreamHandler(sys.stdout)
        handler.setLevel(logging.INFO)

        formatter = logging.Formatter(
            "[%(asctime)s] %(levelname)s [%(name)s] %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
        )
        handler.setFormatter(formatter)
        logger.addHandler(handler)
        logger.propagate = False

    return logger
