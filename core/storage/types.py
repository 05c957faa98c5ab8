from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


class StorageBackend(str, Enum):
    LOCAL = "local"
    S3 = "s3"


@dataclass(frozen=True)
class ImageUpload:
    file_name: str
    content_type: str
    payload: bytes

    @property
    def size(self) -> int:
        return len(self.payload)


@dataclass(frozen=True)
class StoredImage:
    path: str
    backend: StorageBackend
    content_type: str
    size: int
