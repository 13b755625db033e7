import io
import logging

import urllib3
from minio import Minio
from minio.error import S3Error
from urllib3.exceptions import HTTPError, MaxRetryError, TimeoutError as Urllib3TimeoutError

from .config import Settings

logger = logging.getLogger("sharein")

_MISSING_CODES = {"NoSuchKey", "NoSuchObject"}


class StorageError(Exception):
    def __init__(self, message: str, retryable: bool = False):
        super().__init__(message)
        self.retryable = retryable


def _is_timeout(exc: Exception) -> bool:
    if isinstance(exc, Urllib3TimeoutError):
        return True
    return isinstance(exc, MaxRetryError) and isinstance(exc.reason, Urllib3TimeoutError)


class ObjectStorage:
    """Thin adapter over an S3-compatible bucket.

    Calls are blocking; route handlers run them in the threadpool.
    """

    def __init__(self, settings: Settings, client: Minio | None = None):
        self.bucket = settings.S3_BUCKET
        if client is None:
            http_client = urllib3.PoolManager(
                timeout=urllib3.Timeout(connect=settings.STORAGE_TIMEOUT_SECONDS, read=settings.STORAGE_TIMEOUT_SECONDS),
                retries=urllib3.Retry(total=0),
            )
            client = Minio(
                settings.S3_ENDPOINT,
                access_key=settings.S3_ACCESS_KEY,
                secret_key=settings.S3_SECRET_KEY,
                region=settings.S3_REGION,
                secure=settings.S3_SECURE,
                http_client=http_client,
            )
        self.client = client
        scheme = "https" if settings.S3_SECURE else "http"
        self._public_base = (settings.S3_PUBLIC_URL or f"{scheme}://{settings.S3_ENDPOINT}/{self.bucket}").rstrip("/")

    def initialize_bucket(self) -> None:
        try:
            if not self.client.bucket_exists(self.bucket):
                self.client.make_bucket(self.bucket)
                logger.info(f"Bucket '{self.bucket}' created successfully")
            else:
                logger.info(f"Bucket '{self.bucket}' already exists")
        except S3Error as e:
            logger.error(f"Object store error: {e}")
            raise RuntimeError(f"Failed to initialize bucket: {e}")

    def public_url(self, key: str) -> str:
        return f"{self._public_base}/{key}"

    def upload(self, key: str, data: bytes, content_type: str) -> str:
        """Store ``data`` under ``key`` and return its retrieval URL."""
        try:
            self.client.put_object(
                self.bucket,
                key,
                io.BytesIO(data),
                length=len(data),
                content_type=content_type or "application/octet-stream",
            )
        except (S3Error, HTTPError) as e:
            raise StorageError(f"upload of {key} failed: {e}", retryable=_is_timeout(e)) from e
        return self.public_url(key)

    def delete(self, key: str) -> None:
        """Remove ``key``; an already missing object is not an error."""
        try:
            self.client.remove_object(self.bucket, key)
        except S3Error as e:
            if e.code in _MISSING_CODES:
                logger.info("Object %s already missing", key)
                return
            raise StorageError(f"delete of {key} failed: {e}") from e
        except HTTPError as e:
            raise StorageError(f"delete of {key} failed: {e}", retryable=_is_timeout(e)) from e

    def ping(self) -> None:
        self.client.bucket_exists(self.bucket)
