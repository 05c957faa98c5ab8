from __future__ import annotations

from core.storage.provider import FileStorageProvider
from core.storage.types import ImageUpload, StorageBackend, StoredImage


class S3StorageProvider(FileStorageProvider):
    backend_name = StorageBackend.S3.value

    def __init__(self, *, bucket_name: str, region: str | None = None, endpoint_url: str | None = None) -> None:
        try:
            import boto3
        except ModuleNotFoundError as err:
            raise RuntimeError("boto3 is required for S3 storage provider") from err

        self._bucket = bucket_name
        self._client = boto3.client("s3", region_name=region, endpoint_url=endpoint_url)

    def save_image(self, *, object_key: str, upload: ImageUpload) -> StoredImage:
        self._client.put_object(
            Bucket=self._bucket,
            Key=object_key,
            Body=upload.payload,
            ContentType=upload.content_type,
        )
        return StoredImage(
            path=object_key,
            backend=StorageBackend.S3,
            content_type=upload.content_type,
            size=upload.size,
        )

    def delete_object(self, *, path: str) -> None:
        self._client.delete_object(Bucket=self._bucket, Key=path)
