"""
MinIO storage provider.

Implements the StorageProvider contract over any S3-compatible endpoint
reachable with the MinIO client (MinIO itself, or SeaweedFS through its
S3 gateway). Backend failures are wrapped in BackendError with the
original exception kept as the cause.
"""

from __future__ import annotations

import io
from contextlib import contextmanager
from datetime import timedelta
from typing import BinaryIO, Iterator

from loguru import logger
from minio import Minio
from minio.error import S3Error
from urllib3.exceptions import HTTPError

from docstore_core.domain.models import StorageObjectInfo, utcnow
from docstore_core.runtime.errors import BackendError

USER_METADATA_PREFIX = "x-amz-meta-"
MISSING_CODES = {"NoSuchKey", "NoSuchBucket", "NoSuchObject", "ResourceNotFound", "NotFound"}


@contextmanager
def _backend_call(operation: str, bucket: str, key: str | None = None) -> Iterator[None]:
    try:
        yield
    except (S3Error, HTTPError) as e:
        target = f"{bucket}/{key}" if key else bucket
        raise BackendError(
            f"Storage backend failed to {operation}",
            message_debug=f"{operation} {target}: {e}",
            cause=e,
        ) from e


def _user_metadata(headers) -> dict[str, str]:
    """Extract user metadata from S3 response headers, prefix stripped, keys lowercased."""
    metadata: dict[str, str] = {}
    if not headers:
        return metadata
    for name, value in headers.items():
        lowered = name.lower()
        if lowered.startswith(USER_METADATA_PREFIX):
            metadata[lowered[len(USER_METADATA_PREFIX):]] = value
    return metadata


class MinioStorageProvider:
    """
    S3-compatible storage provider backed by a MinIO client.

    Usage:
        provider = MinioStorageProvider(create_minio_client(...))
        info = provider.upload("docs", "a.txt", b"hello", "text/plain")
        stream = provider.download("docs", "a.txt")
    """

    def __init__(self, client: Minio):
        self._client = client

    def upload(
        self,
        bucket: str,
        key: str,
        content: bytes,
        content_type: str,
        metadata: dict[str, str] | None = None,
    ) -> StorageObjectInfo:
        self.ensure_bucket_exists(bucket)

        with _backend_call("upload", bucket, key):
            result = self._client.put_object(
                bucket_name=bucket,
                object_name=key,
                data=io.BytesIO(content),
                length=len(content),
                content_type=content_type,
                metadata=dict(metadata) if metadata else None,
            )

        logger.info(f"Uploaded object {key} to bucket {bucket} ({len(content)} bytes)")

        return StorageObjectInfo(
            bucket=bucket,
            key=key,
            size=len(content),
            content_type=content_type,
            etag=getattr(result, "etag", None),
            last_modified=getattr(result, "last_modified", None) or utcnow(),
            metadata=dict(metadata or {}),
        )

    def download(
        self, bucket: str, key: str, info: StorageObjectInfo | None = None
    ) -> BinaryIO:
        with _backend_call("download", bucket, key):
            response = self._client.get_object(bucket_name=bucket, object_name=key)
            try:
                content = response.read()
            finally:
                response.close()
                response.release_conn()

        logger.info(f"Downloaded object {key} from bucket {bucket}")
        return io.BytesIO(content)

    def delete(self, bucket: str, key: str) -> None:
        with _backend_call("delete", bucket, key):
            self._client.remove_object(bucket_name=bucket, object_name=key)

        logger.info(f"Deleted object {key} from bucket {bucket}")

    def get_metadata(self, bucket: str, key: str) -> StorageObjectInfo:
        with _backend_call("read metadata of", bucket, key):
            stat = self._client.stat_object(bucket_name=bucket, object_name=key)

        return StorageObjectInfo(
            bucket=bucket,
            key=key,
            size=stat.size or 0,
            content_type=stat.content_type or "",
            etag=stat.etag,
            last_modified=stat.last_modified or utcnow(),
            metadata=_user_metadata(stat.metadata),
        )

    def exists(self, bucket: str, key: str) -> bool:
        try:
            self._client.stat_object(bucket_name=bucket, object_name=key)
            return True
        except S3Error as e:
            if e.code in MISSING_CODES:
                return False
            raise BackendError(
                "Storage backend failed to check existence",
                message_debug=f"exists {bucket}/{key}: {e}",
                cause=e,
            ) from e
        except HTTPError as e:
            raise BackendError(
                "Storage backend failed to check existence",
                message_debug=f"exists {bucket}/{key}: {e}",
                cause=e,
            ) from e

    def list(self, bucket: str, prefix: str | None = None) -> list[StorageObjectInfo]:
        results: list[StorageObjectInfo] = []

        with _backend_call("list", bucket):
            for item in self._client.list_objects(
                bucket_name=bucket, prefix=prefix or None, recursive=True
            ):
                if item.is_dir:
                    continue
                results.append(
                    StorageObjectInfo(
                        bucket=bucket,
                        key=item.object_name,
                        size=item.size or 0,
                        content_type="",
                        etag=item.etag,
                        last_modified=item.last_modified or utcnow(),
                    )
                )

        logger.info(f"Listed {len(results)} objects in bucket {bucket} with prefix '{prefix or ''}'")
        return results

    def get_presigned_url(self, bucket: str, key: str, expiry: timedelta) -> str:
        with _backend_call("presign", bucket, key):
            url = self._client.presigned_get_object(
                bucket_name=bucket, object_name=key, expires=expiry
            )

        logger.info(f"Generated presigned URL for {key} in bucket {bucket} (expires in {expiry})")
        return url

    def ensure_bucket_exists(self, bucket: str) -> None:
        with _backend_call("ensure", bucket):
            if not self._client.bucket_exists(bucket_name=bucket):
                self._client.make_bucket(bucket_name=bucket)
                logger.info(f"Created bucket '{bucket}'")
