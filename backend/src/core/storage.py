"""Object storage for original media and thumbnails (S3-compatible, via boto3)."""
import asyncio
import logging
from typing import TYPE_CHECKING, Any, Protocol

import boto3
from botocore.config import Config
from botocore.exceptions import BotoCoreError, ClientError

if TYPE_CHECKING:
    from core.config import Settings

logger = logging.getLogger(__name__)


class StorageError(Exception):
    """Raised when an object storage call fails."""

    def __init__(self, operation: str, path: str, cause: Exception) -> None:
        self.operation = operation
        self.path = path
        super().__init__(f"Storage {operation} failed for {path}: {cause}")


class ObjectStorage(Protocol):
    """Object store keyed by opaque path strings."""

    async def issue_upload_url(self, path: str, content_type: str, ttl: int) -> str:
        ...

    async def issue_download_url(self, path: str, ttl: int) -> str:
        ...

    async def put(self, path: str, data: bytes, content_type: str) -> None:
        ...

    async def get(self, path: str) -> bytes:
        ...

    async def delete(self, path: str) -> None:
        ...

    async def exists(self, path: str) -> bool:
        ...


class S3ObjectStorage:
    """
    ObjectStorage backed by an S3 bucket.

    Presigned URLs are computed locally by botocore. Calls that hit the
    network are blocking in boto3 and run in a worker thread.
    """

    def __init__(self, client: Any, bucket_name: str) -> None:
        self._client = client
        self._bucket = bucket_name

    @classmethod
    def from_settings(cls, settings: "Settings") -> "S3ObjectStorage":
        """Build the boto3 client once from application settings."""
        client = boto3.client(
            "s3",
            region_name=settings.s3_region,
            endpoint_url=settings.s3_endpoint_url,
            aws_access_key_id=settings.aws_access_key_id,
            aws_secret_access_key=settings.aws_secret_access_key,
            config=Config(signature_version="s3v4"),
        )
        logger.info("S3 client initialized bucket=%s", settings.s3_bucket_name)
        return cls(client, settings.s3_bucket_name)

    @property
    def bucket_name(self) -> str:
        return self._bucket

    async def issue_upload_url(self, path: str, content_type: str, ttl: int) -> str:
        """Presigned PUT URL; the client must send the same Content-Type."""
        try:
            return self._client.generate_presigned_url(
                "put_object",
                Params={"Bucket": self._bucket, "Key": path, "ContentType": content_type},
                ExpiresIn=ttl,
            )
        except (BotoCoreError, ClientError) as e:
            raise StorageError("issue_upload_url", path, e) from e

    async def issue_download_url(self, path: str, ttl: int) -> str:
        """Presigned GET URL."""
        try:
            return self._client.generate_presigned_url(
                "get_object",
                Params={"Bucket": self._bucket, "Key": path},
                ExpiresIn=ttl,
            )
        except (BotoCoreError, ClientError) as e:
            raise StorageError("issue_download_url", path, e) from e

    async def put(self, path: str, data: bytes, content_type: str) -> None:
        try:
            await asyncio.to_thread(
                self._client.put_object,
                Bucket=self._bucket,
                Key=path,
                Body=data,
                ContentType=content_type,
                CacheControl="public, max-age=31536000",
            )
        except (BotoCoreError, ClientError) as e:
            raise StorageError("put", path, e) from e
        logger.info("S3 put path=%s bytes=%s", path, len(data))

    async def get(self, path: str) -> bytes:
        try:
            response = await asyncio.to_thread(
                self._client.get_object, Bucket=self._bucket, Key=path,
            )
            return await asyncio.to_thread(response["Body"].read)
        except (BotoCoreError, ClientError) as e:
            raise StorageError("get", path, e) from e

    async def delete(self, path: str) -> None:
        # boto3 does not want a leading slash in keys
        key = path.lstrip("/")
        try:
            await asyncio.to_thread(self._client.delete_object, Bucket=self._bucket, Key=key)
        except (BotoCoreError, ClientError) as e:
            raise StorageError("delete", path, e) from e
        logger.info("S3 delete path=%s", path)

    async def exists(self, path: str) -> bool:
        try:
            await asyncio.to_thread(self._client.head_object, Bucket=self._bucket, Key=path)
        except ClientError as e:
            code = e.response.get("Error", {}).get("Code")
            if code in ("404", "NoSuchKey", "NotFound"):
                return False
            raise StorageError("exists", path, e) from e
        except BotoCoreError as e:
            raise StorageError("exists", path, e) from e
        return True


# Global storage instance (set during app startup)
_storage: ObjectStorage | None = None


def get_storage() -> ObjectStorage:
    """
    Get the global object storage instance.

    Raises:
        RuntimeError: If called before application startup configured it.
    """
    if _storage is None:
        raise RuntimeError("Object storage is not initialized")
    return _storage


def set_storage(storage: ObjectStorage | None) -> None:
    """Set the global object storage instance."""
    global _storage  # noqa: PLW0603
    _storage = storage
