from core.storage.manager import FileStorageManager
from core.storage.types import ImageUpload, StorageBackend, StoredImage

__all__ = [
    "FileStorageManager",
    "ImageUpload",
    "StorageBackend",
    "StoredImage",
]
