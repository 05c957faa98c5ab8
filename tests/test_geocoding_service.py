from __future__ import annotations

import json

import httpx
import pytest

from core.errors import AppException, ErrorCode
from core.settings import get_settings
from services import geocoding_service


class _FakeCache:
    def __init__(self) -> None:
        self._rows: dict[str, str] = {}
        self.ttls: dict[str, int] = {}

    def get(self, key: str) -> str | None:
        return self._rows.get(key)

    def setex(self, key: str, ttl: int, value: str) -> None:
        self.ttls[key] = ttl
        self._rows[key] = value


class _BrokenCache:
    def get(self, key: str):
        raise ConnectionError("redis down")

    def setex(self, key: str, ttl: int, value: str):
        raise ConnectionError("redis down")


def _geocode_payload(lat: float = 40.7128, lng: float = -74.006) -> dict:
    return {
        "status": "OK",
        "results": [
            {
                "formatted_address": "1 Main St, New York, NY, USA",
                "geometry": {"location": {"lat": lat, "lng": lng}},
            }
        ],
    }


@pytest.mark.asyncio
async def test_resolve_address_fetches_and_caches(monkeypatch: pytest.MonkeyPatch):
    fake_cache = _FakeCache()
    monkeypatch.setattr(geocoding_service, "cache_db", fake_cache)

    async def _stub_google_get_json(url: str, params: dict):
        assert url == geocoding_service.GOOGLE_GEOCODE_URL
        assert params == {"address": "1 Main St"}
        return _geocode_payload()

    monkeypatch.setattr(geocoding_service, "_google_get_json", _stub_google_get_json)

    location = await geocoding_service.resolve_address("  1   Main St ")

    assert location.latitude == 40.7128
    assert location.longitude == -74.006
    assert geocoding_service._geocode_cache_key("1 Main St") in fake_cache._rows


@pytest.mark.asyncio
async def test_resolve_address_uses_cache_before_provider(monkeypatch: pytest.MonkeyPatch):
    fake_cache = _FakeCache()
    monkeypatch.setattr(geocoding_service, "cache_db", fake_cache)
    fake_cache._rows[geocoding_service._geocode_cache_key("1 Main St")] = json.dumps(
        {"latitude": 1.0, "longitude": 2.0}
    )

    async def _stub_google_get_json(url: str, params: dict):  # pragma: no cover
        raise AssertionError(f"Provider should not be called for cached result: {url} {params}")

    monkeypatch.setattr(geocoding_service, "_google_get_json", _stub_google_get_json)

    location = await geocoding_service.resolve_address("1 main st")
    assert (location.latitude, location.longitude) == (1.0, 2.0)


@pytest.mark.asyncio
async def test_resolve_address_works_when_cache_is_down(monkeypatch: pytest.MonkeyPatch):
    monkeypatch.setattr(geocoding_service, "cache_db", _BrokenCache())

    async def _stub_google_get_json(url: str, params: dict):
        return _geocode_payload(lat=6.5, lng=3.3)

    monkeypatch.setattr(geocoding_service, "_google_get_json", _stub_google_get_json)

    location = await geocoding_service.resolve_address("Lagos")
    assert location.latitude == 6.5


@pytest.mark.asyncio
async def test_resolve_address_zero_results_is_unresolvable(monkeypatch: pytest.MonkeyPatch):
    monkeypatch.setattr(geocoding_service, "cache_db", _FakeCache())

    async def _stub_google_get_json(url: str, params: dict):
        return {"status": "ZERO_RESULTS", "results": []}

    monkeypatch.setattr(geocoding_service, "_google_get_json", _stub_google_get_json)

    with pytest.raises(AppException) as exc_info:
        await geocoding_service.resolve_address("nowhere at all")

    exc = exc_info.value
    assert exc.status_code == 422
    assert exc.detail["code"] == ErrorCode.GEOCODING_FAILED.value
    assert exc.message == "Could not find location for the specified address."


@pytest.mark.asyncio
async def test_resolve_address_quota_error_maps_to_429(monkeypatch: pytest.MonkeyPatch):
    monkeypatch.setattr(geocoding_service, "cache_db", _FakeCache())

    async def _stub_google_get_json(url: str, params: dict):
        return {"status": "OVER_QUERY_LIMIT", "error_message": "slow down"}

    monkeypatch.setattr(geocoding_service, "_google_get_json", _stub_google_get_json)

    with pytest.raises(AppException) as exc_info:
        await geocoding_service.resolve_address("1 Main St")

    assert exc_info.value.status_code == 429
    assert exc_info.value.detail["details"]["providerMessage"] == "slow down"


@pytest.mark.asyncio
async def test_resolve_address_rejects_blank_address():
    with pytest.raises(AppException) as exc_info:
        await geocoding_service.resolve_address("   ")

    assert exc_info.value.status_code == 422
    assert exc_info.value.detail["code"] == ErrorCode.VALIDATION_FAILED.value


@pytest.mark.asyncio
async def test_google_get_json_requires_api_key(monkeypatch: pytest.MonkeyPatch):
    monkeypatch.delenv("GOOGLE_MAPS_API_KEY", raising=False)

    with pytest.raises(AppException) as exc_info:
        await geocoding_service._google_get_json(geocoding_service.GOOGLE_GEOCODE_URL, {"address": "x"})

    assert exc_info.value.status_code == 503


@pytest.mark.asyncio
async def test_google_get_json_wraps_transport_errors(monkeypatch: pytest.MonkeyPatch):
    monkeypatch.setenv("GOOGLE_MAPS_API_KEY", "test-key")

    def _handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    original_client = httpx.AsyncClient

    def _client_factory(*args, **kwargs):
        kwargs["transport"] = httpx.MockTransport(_handler)
        return original_client(*args, **kwargs)

    monkeypatch.setattr(geocoding_service.httpx, "AsyncClient", _client_factory)

    with pytest.raises(AppException) as exc_info:
        await geocoding_service._google_get_json(geocoding_service.GOOGLE_GEOCODE_URL, {"address": "x"})

    assert exc_info.value.status_code == 502
    assert exc_info.value.detail["code"] == ErrorCode.GEOCODING_FAILED.value


@pytest.mark.asyncio
async def test_resolve_address_caches_for_configured_ttl(monkeypatch: pytest.MonkeyPatch):
    monkeypatch.setenv("GEOCODE_CACHE_TTL_SECONDS", "120")
    get_settings.cache_clear()
    fake_cache = _FakeCache()
    monkeypatch.setattr(geocoding_service, "cache_db", fake_cache)

    async def _stub_google_get_json(url: str, params: dict):
        return _geocode_payload()

    monkeypatch.setattr(geocoding_service, "_google_get_json", _stub_google_get_json)

    await geocoding_service.resolve_address("1 Main St")

    assert fake_cache.ttls == {geocoding_service._geocode_cache_key("1 Main St"): 120}
