from __future__ import annotations

from pathlib import Path

from core.storage.provider import FileStorageProvider
from core.storage.types import ImageUpload, StorageBackend, StoredImage


class LocalStorageProvider(FileStorageProvider):
    backend_name = StorageBackend.LOCAL.value

    def __init__(self, root_dir: str) -> None:
        self._root = Path(root_dir)
        self._root.mkdir(parents=True, exist_ok=True)

    def save_image(self, *, object_key: str, upload: ImageUpload) -> StoredImage:
        file_path = self._root / object_key
        file_path.parent.mkdir(parents=True, exist_ok=True)
        file_path.write_bytes(upload.payload)
        # Stored paths stay relative to the working directory, which is also
        # where the static mount serves them from.
        return StoredImage(
            path=file_path.as_posix(),
            backend=StorageBackend.LOCAL,
            content_type=upload.content_type,
            size=file_path.stat().st_size,
        )

    def delete_object(self, *, path: str) -> None:
        file_path = Path(path)
        if not file_path.exists():
            raise FileNotFoundError(path)
        file_path.unlink()
