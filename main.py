from __future__ import annotations

import time
import uuid
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from pathlib import Path

import redis
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.staticfiles import StaticFiles
from starlette.middleware.base import BaseHTTPMiddleware

from celery_worker import celery_app
from core.database import close_client as close_mongo_client
from core.database import ping as mongo_ping
from core.exception_handlers import install_exception_handlers
from core.logger import get_logger
from core.logging_config import configure_logging
from core.queue.celery_provider import CeleryQueueProvider
from core.queue.manager import QueueManager
from core.settings import get_settings
from core.storage.manager import FileStorageManager
from services.place_service import wait_for_image_cleanups

settings = get_settings()
configure_logging(settings.log_level)
logger = get_logger(__name__)

redis_client = redis.Redis.from_url(settings.redis_url, socket_connect_timeout=2, decode_responses=True)


class RequestIdMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next):
        request_id = request.headers.get("X-Request-ID") or str(uuid.uuid4())
        request.state.request_id = request_id
        response = await call_next(request)
        response.headers["X-Request-ID"] = request_id
        return response


class RequestTimingMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next):
        start_time = time.time()
        response = await call_next(request)
        elapsed = time.time() - start_time
        response.headers["X-Process-Time"] = str(elapsed)
        logger.info("%s %s -> %s in %.3fs", request.method, request.url.path, response.status_code, elapsed)
        return response


@asynccontextmanager
async def lifespan(app: FastAPI):
    QueueManager.configure(CeleryQueueProvider(celery_app=celery_app))
    FileStorageManager.configure_from_settings()
    logger.info("Places API started (storage=%s, db=%s)", settings.storage_backend, settings.db_name)

    try:
        yield
    finally:
        await wait_for_image_cleanups()
        await close_mongo_client()
        logger.info("Places API stopped")


app = FastAPI(lifespan=lifespan, title="Places API")
app.add_middleware(RequestIdMiddleware)
app.add_middleware(RequestTimingMiddleware)
app.add_middleware(
    CORSMiddleware,
    allow_origins=list(settings.cors_origins) if settings.cors_origins else ["http://localhost:3000"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)
install_exception_handlers(
    app,
    include_error_details=settings.debug_include_error_details and not settings.is_production,
)

if settings.storage_backend == "local":
    upload_root = Path(settings.storage_local_root)
    upload_root.mkdir(parents=True, exist_ok=True)
    # Stored image paths start with the upload root, so they resolve as URLs too.
    app.mount("/" + upload_root.as_posix().lstrip("/"), StaticFiles(directory=str(upload_root)), name="uploads")


@app.get("/health", tags=["Health"])
async def health_check():
    services: dict[str, dict[str, str | float]] = {}
    overall_status = "healthy"

    start = time.perf_counter()
    try:
        await mongo_ping()
        services["mongo"] = {
            "status": "healthy",
            "latency_ms": round((time.perf_counter() - start) * 1000, 2),
            "message": "MongoDB ping successful",
        }
    except Exception as exc:
        overall_status = "degraded"
        services["mongo"] = {
            "status": "unhealthy",
            "latency_ms": round((time.perf_counter() - start) * 1000, 2),
            "message": str(exc),
        }

    start = time.perf_counter()
    try:
        redis_client.ping()
        services["redis"] = {
            "status": "healthy",
            "latency_ms": round((time.perf_counter() - start) * 1000, 2),
            "message": "Redis ping successful",
        }
    except Exception as exc:
        overall_status = "degraded"
        services["redis"] = {
            "status": "unhealthy",
            "latency_ms": round((time.perf_counter() - start) * 1000, 2),
            "message": str(exc),
        }

    return {
        "status": overall_status,
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "services": services,
    }


from api.v1.place_route import router as v1_place_route_router

app.include_router(v1_place_route_router, prefix="/v1")

