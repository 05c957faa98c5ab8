from __future__ import annotations

import os
from dataclasses import dataclass
from functools import lru_cache

from dotenv import load_dotenv

load_dotenv()

SUPPORTED_STORAGE_BACKENDS = {"local", "s3"}
SUPPORTED_LOG_LEVELS = {"CRITICAL", "ERROR", "WARNING", "INFO", "DEBUG"}
DEFAULT_GEOCODE_CACHE_TTL_SECONDS = 60 * 60 * 24 * 15


def _split_csv(value: str | None) -> tuple[str, ...]:
    if not value:
        return tuple()
    return tuple(item.strip() for item in value.split(",") if item.strip())


def _env(name: str) -> str | None:
    raw_value = os.getenv(name)
    if raw_value is None:
        return None
    normalized = raw_value.strip()
    return normalized or None


def collect_missing_required_env_vars() -> list[str]:
    missing: list[str] = []

    always_required = (
        "SECRET_KEY",
        "MONGO_URL",
        "DB_NAME",
        "GOOGLE_MAPS_API_KEY",
        "CELERY_BROKER_URL",
        "CELERY_RESULT_BACKEND",
    )
    for var_name in always_required:
        if _env(var_name) is None:
            missing.append(var_name)

    storage_backend = (_env("STORAGE_BACKEND") or "local").lower()
    if storage_backend == "s3" and _env("S3_BUCKET_NAME") is None:
        missing.append("S3_BUCKET_NAME")

    return sorted(set(missing))


def collect_invalid_env_values() -> list[str]:
    invalid_values: list[str] = []

    storage_backend = (_env("STORAGE_BACKEND") or "local").lower()
    if storage_backend not in SUPPORTED_STORAGE_BACKENDS:
        invalid_values.append("STORAGE_BACKEND must be one of: local, s3")

    log_level = (_env("LOG_LEVEL") or "INFO").upper()
    if log_level not in SUPPORTED_LOG_LEVELS:
        invalid_values.append("LOG_LEVEL must be one of: CRITICAL, ERROR, WARNING, INFO, DEBUG")

    cache_ttl = _env("GEOCODE_CACHE_TTL_SECONDS")
    if cache_ttl is not None:
        try:
            parsed_ttl = int(cache_ttl)
            if parsed_ttl <= 0:
                raise ValueError("must be positive")
        except ValueError:
            invalid_values.append("GEOCODE_CACHE_TTL_SECONDS must be a positive integer")

    return invalid_values


def validate_required_environment() -> None:
    missing_vars = collect_missing_required_env_vars()
    invalid_values = collect_invalid_env_values()
    if not missing_vars and not invalid_values:
        return

    message_lines = ["Application startup blocked by invalid environment configuration."]
    if missing_vars:
        message_lines.append("")
        message_lines.append("Missing required environment variables:")
        message_lines.extend(f"- {name}" for name in missing_vars)
    if invalid_values:
        message_lines.append("")
        message_lines.append("Invalid environment values:")
        message_lines.extend(f"- {message}" for message in invalid_values)
    raise RuntimeError("\n".join(message_lines))


@dataclass(frozen=True)
class Settings:
    env: str
    secret_key: str
    cors_origins: tuple[str, ...]
    debug_include_error_details: bool
    mongo_url: str
    db_name: str
    redis_url: str
    celery_broker_url: str
    celery_result_backend: str
    storage_backend: str
    storage_local_root: str
    s3_bucket_name: str | None
    s3_region: str | None
    s3_endpoint_url: str | None
    log_level: str
    geocode_cache_ttl_seconds: int

    @property
    def is_production(self) -> bool:
        return self.env.lower() == "production"


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    validate_required_environment()

    default_redis = (
        os.getenv("REDIS_URL")
        or os.getenv("CELERY_BROKER_URL")
        or f"redis://{os.getenv('REDIS_HOST', '127.0.0.1')}:{os.getenv('REDIS_PORT', '6379')}/0"
    )

    settings = Settings(
        env=os.getenv("ENV", "development"),
        secret_key=os.getenv("SECRET_KEY", ""),
        cors_origins=_split_csv(os.getenv("CORS_ORIGINS")),
        debug_include_error_details=os.getenv("DEBUG_INCLUDE_ERROR_DETAILS", "false").lower()
        in {"1", "true", "yes"},
        mongo_url=os.getenv("MONGO_URL", ""),
        db_name=os.getenv("DB_NAME", ""),
        redis_url=default_redis,
        celery_broker_url=os.getenv("CELERY_BROKER_URL", ""),
        celery_result_backend=os.getenv("CELERY_RESULT_BACKEND", ""),
        storage_backend=os.getenv("STORAGE_BACKEND", "local").lower(),
        storage_local_root=os.getenv("STORAGE_LOCAL_ROOT", "uploads"),
        s3_bucket_name=os.getenv("S3_BUCKET_NAME"),
        s3_region=os.getenv("S3_REGION"),
        s3_endpoint_url=os.getenv("S3_ENDPOINT_URL"),
        log_level=os.getenv("LOG_LEVEL", "INFO").upper(),
        geocode_cache_ttl_seconds=int(
            os.getenv("GEOCODE_CACHE_TTL_SECONDS", str(DEFAULT_GEOCODE_CACHE_TTL_SECONDS))
        ),
    )

    if settings.is_production and len(settings.secret_key) < 16:
        raise RuntimeError("SECRET_KEY must be at least 16 characters when ENV=production")

    return settings
