from __future__ import annotations

from typing import Protocol

from core.storage.types import ImageUpload, StoredImage


class FileStorageProvider(Protocol):
    backend_name: str

    def save_image(self, *, object_key: str, upload: ImageUpload) -> StoredImage:
        ...

    def delete_object(self, *, path: str) -> None:
        ...
