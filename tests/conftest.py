from __future__ import annotations

import copy
import threading
from contextlib import asynccontextmanager

import pytest
from bson import ObjectId

from core.queue import QueueJobResult, QueueManager
from core.settings import get_settings
from core.storage import FileStorageManager, ImageUpload, StorageBackend, StoredImage
from schemas.imports import Location
from schemas.place import PlaceCreate, PlaceOut
from schemas.user import UserOut, UserWithPlacesOut
from services import place_service


class FakeStore:
    """In-memory stand-in for the places/users collections.

    ``start_transaction`` snapshots both collections and restores them when
    the block raises, which is how a MongoDB transaction abort looks to the
    service.
    """

    def __init__(self) -> None:
        self.places: dict[str, dict] = {}
        self.users: dict[str, dict] = {}
        self.transactions_started = 0

    def add_user(self, user_id: str | None = None, *, name: str = "Test User") -> str:
        user_id = user_id or str(ObjectId())
        self.users[user_id] = {"_id": user_id, "name": name, "email": f"{name}@example.com", "places": []}
        return user_id

    def add_place(self, creator: str, **overrides) -> str:
        place_id = str(ObjectId())
        row = {
            "_id": place_id,
            "title": "Stored place",
            "description": "A place already in the store",
            "address": "10 Market Rd",
            "location": {"latitude": 1.5, "longitude": 2.5},
            "image": f"uploads/images/{place_id}.png",
            "creator": creator,
        }
        row.update(overrides)
        self.places[place_id] = row
        self.users[creator]["places"].append(place_id)
        return place_id

    @asynccontextmanager
    async def start_transaction(self):
        self.transactions_started += 1
        snapshot = copy.deepcopy((self.places, self.users))
        try:
            yield object()
        except BaseException:
            self.places, self.users = snapshot
            raise

    async def get_place(self, place_id: str, *, session=None) -> PlaceOut | None:
        row = self.places.get(place_id)
        return PlaceOut(**copy.deepcopy(row)) if row else None

    async def insert_place(self, place: PlaceCreate, *, session=None) -> PlaceOut:
        place_id = str(ObjectId())
        row = place.model_dump()
        row["_id"] = place_id
        self.places[place_id] = row
        return PlaceOut(**copy.deepcopy(row))

    async def update_place_fields(self, place_id: str, update_dict: dict, *, session=None) -> PlaceOut | None:
        row = self.places.get(place_id)
        if row is None:
            return None
        row.update(update_dict)
        return PlaceOut(**copy.deepcopy(row))

    async def delete_place(self, place_id: str, *, session=None) -> bool:
        return self.places.pop(place_id, None) is not None

    async def get_user_by_id(self, user_id: str, *, expand_places: bool = False):
        row = self.users.get(user_id)
        if row is None:
            return None
        user = UserOut(**copy.deepcopy(row))
        if not expand_places:
            return user
        places = [PlaceOut(**copy.deepcopy(self.places[pid])) for pid in user.places if pid in self.places]
        return UserWithPlacesOut(_id=user.id, name=user.name, email=user.email, places=places)

    async def append_place_to_user(self, user_id: str, place_id: str, *, session=None) -> bool:
        row = self.users.get(user_id)
        if row is None:
            return False
        row["places"].append(place_id)
        return True

    async def remove_place_from_user(self, user_id: str, place_id: str, *, session=None) -> bool:
        row = self.users.get(user_id)
        if row is None:
            return False
        row["places"] = [pid for pid in row["places"] if pid != place_id]
        return True


class MemoryStorage:
    backend_name = "memory"

    def __init__(self) -> None:
        self.saved: dict[str, bytes] = {}
        self.deleted: list[str] = []

    def save_image(self, *, object_key: str, upload: ImageUpload) -> StoredImage:
        path = f"uploads/{object_key}"
        self.saved[path] = upload.payload
        return StoredImage(path=path, backend=StorageBackend.LOCAL, content_type=upload.content_type, size=upload.size)

    def delete_object(self, *, path: str) -> None:
        self.deleted.append(path)
        self.saved.pop(path, None)


class RecordingQueue:
    backend_name = "memory"

    def __init__(self) -> None:
        self.jobs: list[tuple[str, dict]] = []

    def enqueue(self, task_key, payload: dict) -> QueueJobResult:
        self.jobs.append((str(task_key), payload))
        return QueueJobResult(task_id=f"job-{len(self.jobs)}", backend=self.backend_name, status="queued")


class FailingQueue(RecordingQueue):
    def enqueue(self, task_key, payload: dict) -> QueueJobResult:
        raise ConnectionError("broker unavailable")


class StalledQueue(RecordingQueue):
    """Blocks every publish until ``release()``, like a broker that is retrying a dead connection."""

    def __init__(self) -> None:
        super().__init__()
        self._released = threading.Event()

    def release(self) -> None:
        self._released.set()

    def enqueue(self, task_key, payload: dict) -> QueueJobResult:
        self._released.wait(timeout=5)
        return super().enqueue(task_key, payload)


@pytest.fixture(autouse=True)
def app_environment(monkeypatch: pytest.MonkeyPatch):
    values = {
        "SECRET_KEY": "test-secret-key-0123456789",
        "MONGO_URL": "mongodb://127.0.0.1:27017",
        "DB_NAME": "places_test",
        "GOOGLE_MAPS_API_KEY": "maps-key",
        "CELERY_BROKER_URL": "redis://127.0.0.1:6379/0",
        "CELERY_RESULT_BACKEND": "redis://127.0.0.1:6379/0",
    }
    for key, value in values.items():
        monkeypatch.setenv(key, value)
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture
def store(monkeypatch: pytest.MonkeyPatch) -> FakeStore:
    fake = FakeStore()
    monkeypatch.setattr(place_service, "start_transaction", fake.start_transaction)
    monkeypatch.setattr(place_service, "get_place", fake.get_place)
    monkeypatch.setattr(place_service, "insert_place", fake.insert_place)
    monkeypatch.setattr(place_service, "update_place_fields", fake.update_place_fields)
    monkeypatch.setattr(place_service, "delete_place", fake.delete_place)
    monkeypatch.setattr(place_service, "get_user_by_id", fake.get_user_by_id)
    monkeypatch.setattr(place_service, "append_place_to_user", fake.append_place_to_user)
    monkeypatch.setattr(place_service, "remove_place_from_user", fake.remove_place_from_user)
    return fake


@pytest.fixture
def resolved_addresses(monkeypatch: pytest.MonkeyPatch) -> list[str]:
    calls: list[str] = []

    async def _stub_resolve_address(address: str) -> Location:
        calls.append(address)
        return Location(latitude=40.7128, longitude=-74.006)

    monkeypatch.setattr(place_service, "resolve_address", _stub_resolve_address)
    return calls


@pytest.fixture
def storage() -> MemoryStorage:
    provider = MemoryStorage()
    FileStorageManager.configure(provider)
    return provider


@pytest.fixture
def queue():
    provider = RecordingQueue()
    QueueManager.configure(provider)
    yield provider
    QueueManager.reset()


@pytest.fixture
def failing_queue():
    provider = FailingQueue()
    QueueManager.configure(provider)
    yield provider
    QueueManager.reset()


@pytest.fixture
def stalled_queue():
    provider = StalledQueue()
    QueueManager.configure(provider)
    yield provider
    provider.release()
    QueueManager.reset()
