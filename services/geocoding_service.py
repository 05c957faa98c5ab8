from __future__ import annotations

import json
import os
from typing import Any

import httpx

from core.errors import AppException, ErrorCode
from core.logger import get_logger
from core.redis_cache import cache_db
from core.settings import get_settings
from schemas.imports import Location

GOOGLE_GEOCODE_URL = "https://maps.googleapis.com/maps/api/geocode/json"

UNRESOLVABLE_ADDRESS_MESSAGE = "Could not find location for the specified address."

logger = get_logger(__name__)


def _require_google_maps_api_key() -> str:
    api_key = os.getenv("GOOGLE_MAPS_API_KEY", "").strip()
    if not api_key:
        raise AppException(
            status_code=503,
            code=ErrorCode.GEOCODING_FAILED,
            message="Google Maps API key is not configured",
        )
    return api_key


def _normalize_address(address: str) -> str:
    normalized = " ".join(address.strip().split())
    if not normalized:
        raise AppException(
            status_code=422,
            code=ErrorCode.VALIDATION_FAILED,
            message="Address is required",
            details={"field": "address"},
        )
    return normalized


def _geocode_cache_key(address: str) -> str:
    return f"geocode:{address.lower()}"


def _cache_get_json(cache_key: str) -> Any | None:
    try:
        raw = cache_db.get(cache_key)
    except Exception:
        logger.warning("Geocode cache read failed for %s", cache_key)
        return None

    if not raw:
        return None

    try:
        return json.loads(raw)
    except json.JSONDecodeError:
        return None


def _cache_set_json(cache_key: str, payload: Any) -> None:
    ttl_seconds = get_settings().geocode_cache_ttl_seconds
    try:
        cache_db.setex(cache_key, ttl_seconds, json.dumps(payload))
    except Exception:
        logger.warning("Geocode cache write failed for %s", cache_key)


def _raise_provider_status_error(*, status_value: str, error_message: str | None = None) -> None:
    normalized_status = (status_value or "").upper()
    details: dict[str, Any] = {"providerStatus": normalized_status}
    if error_message:
        details["providerMessage"] = error_message

    if normalized_status == "INVALID_REQUEST":
        raise AppException(
            status_code=422,
            code=ErrorCode.GEOCODING_FAILED,
            message=UNRESOLVABLE_ADDRESS_MESSAGE,
            details=details,
        )
    if normalized_status == "OVER_QUERY_LIMIT":
        raise AppException(
            status_code=429,
            code=ErrorCode.GEOCODING_FAILED,
            message="Geocoding provider quota exceeded",
            details=details,
        )
    if normalized_status == "REQUEST_DENIED":
        raise AppException(
            status_code=503,
            code=ErrorCode.GEOCODING_FAILED,
            message="Geocoding provider denied the request",
            details=details,
        )

    raise AppException(
        status_code=502,
        code=ErrorCode.GEOCODING_FAILED,
        message="Geocoding provider returned an unexpected status",
        details=details,
    )


async def _google_get_json(url: str, params: dict[str, Any]) -> dict[str, Any]:
    request_params = dict(params)
    request_params["key"] = _require_google_maps_api_key()

    try:
        async with httpx.AsyncClient(timeout=10.0) as client:
            response = await client.get(url, params=request_params)
            response.raise_for_status()
    except httpx.HTTPStatusError as err:
        logger.error("Geocoding provider HTTP %s", err.response.status_code)
        raise AppException(
            status_code=502,
            code=ErrorCode.GEOCODING_FAILED,
            message="Geocoding provider HTTP error",
            details={"status_code": err.response.status_code},
        ) from err
    except httpx.HTTPError as err:
        logger.error("Geocoding provider request failed: %s", err)
        raise AppException(
            status_code=502,
            code=ErrorCode.GEOCODING_FAILED,
            message="Geocoding provider request failed",
        ) from err

    try:
        payload = response.json()
    except ValueError as err:
        raise AppException(
            status_code=502,
            code=ErrorCode.GEOCODING_FAILED,
            message="Geocoding provider returned invalid JSON",
        ) from err

    if not isinstance(payload, dict):
        raise AppException(
            status_code=502,
            code=ErrorCode.GEOCODING_FAILED,
            message="Geocoding provider response shape is invalid",
        )
    return payload


def _location_from_result(result: Any) -> Location:
    geometry = result.get("geometry") if isinstance(result, dict) else None
    location = geometry.get("location") if isinstance(geometry, dict) else None
    if not isinstance(location, dict) or location.get("lat") is None or location.get("lng") is None:
        raise AppException(
            status_code=502,
            code=ErrorCode.GEOCODING_FAILED,
            message="Geocoding provider returned incomplete coordinates",
        )
    return Location(latitude=float(location["lat"]), longitude=float(location["lng"]))


async def resolve_address(address: str) -> Location:
    """Resolve a postal address to coordinates.

    Raises ``AppException`` with a ``GEOCODING_FAILED`` code when the address
    cannot be resolved (422) or the provider misbehaves (429/502/503). Callers
    forward the exception unchanged.
    """
    normalized_address = _normalize_address(address)

    cache_key = _geocode_cache_key(normalized_address)
    cached = _cache_get_json(cache_key)
    if isinstance(cached, dict):
        try:
            return Location.model_validate(cached)
        except ValueError:
            pass

    payload = await _google_get_json(GOOGLE_GEOCODE_URL, {"address": normalized_address})
    status_value = str(payload.get("status") or "")
    if status_value.upper() == "ZERO_RESULTS":
        logger.info("Address could not be resolved: %s", normalized_address)
        raise AppException(
            status_code=422,
            code=ErrorCode.GEOCODING_FAILED,
            message=UNRESOLVABLE_ADDRESS_MESSAGE,
            details={"address": normalized_address},
        )
    if status_value.upper() != "OK":
        _raise_provider_status_error(
            status_value=status_value,
            error_message=payload.get("error_message"),
        )

    results = payload.get("results")
    if not isinstance(results, list) or not results:
        raise AppException(
            status_code=422,
            code=ErrorCode.GEOCODING_FAILED,
            message=UNRESOLVABLE_ADDRESS_MESSAGE,
            details={"address": normalized_address},
        )

    location = _location_from_result(results[0])
    _cache_set_json(cache_key, location.model_dump())
    return location
