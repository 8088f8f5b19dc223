"""
Local filesystem storage provider.

This implementation stores objects on the local filesystem, useful for
development and testing without MinIO. Objects live at
<base>/<bucket>/<key>; their content type, etag and user metadata live in
a JSON sidecar under <base>/.metadata/<bucket>/<key>.json.
"""

from __future__ import annotations

import hashlib
import io
import json
from contextlib import contextmanager
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import BinaryIO, Iterator

from loguru import logger

from docstore_core.domain.models import StorageObjectInfo
from docstore_core.runtime.errors import BackendError, ErrorCode, NotFoundError, ValidationError

METADATA_DIR = ".metadata"
SIDECAR_SUFFIX = ".json"


@contextmanager
def _filesystem_call(operation: str, bucket: str, key: str | None = None) -> Iterator[None]:
    try:
        yield
    except OSError as e:
        target = f"{bucket}/{key}" if key else bucket
        raise BackendError(
            f"Local storage failed to {operation}",
            message_debug=f"{operation} {target}: {e}",
            cause=e,
        ) from e


class LocalStorageProvider:
    """
    File-system based storage for local development.

    Usage:
        provider = LocalStorageProvider(base_path="/tmp/docstore-storage")
        provider.upload("docs", "reports/a.txt", b"hello", "text/plain")
        stream = provider.download("docs", "reports/a.txt")
    """

    def __init__(self, base_path: str | Path = "/tmp/docstore-storage"):
        self.base_path = Path(base_path).resolve()
        self.base_path.mkdir(parents=True, exist_ok=True)
        logger.info(f"LocalStorageProvider initialized at {self.base_path}")

    def _bucket_dir(self, bucket: str) -> Path:
        if bucket.startswith(".") or "/" in bucket or "\\" in bucket:
            raise ValidationError(f"Invalid bucket name: {bucket}", code=ErrorCode.INVALID_BUCKET)
        return self.base_path / bucket

    def _object_path(self, bucket: str, key: str) -> Path:
        bucket_dir = self._bucket_dir(bucket)
        target = (bucket_dir / key).resolve()
        if bucket_dir.resolve() not in target.parents:
            raise ValidationError(f"Invalid object key: {key}", code=ErrorCode.INVALID_KEY)
        return target

    def _sidecar_path(self, bucket: str, key: str) -> Path:
        return self.base_path / METADATA_DIR / bucket / f"{key}{SIDECAR_SUFFIX}"

    def _read_sidecar(self, bucket: str, key: str) -> dict:
        sidecar = self._sidecar_path(bucket, key)
        if not sidecar.exists():
            return {}
        return json.loads(sidecar.read_text(encoding="utf-8"))

    def _info(self, bucket: str, key: str, path: Path, sidecar: dict) -> StorageObjectInfo:
        stat = path.stat()
        return StorageObjectInfo(
            bucket=bucket,
            key=key,
            size=stat.st_size,
            content_type=sidecar.get("content_type", ""),
            etag=sidecar.get("etag"),
            last_modified=datetime.fromtimestamp(stat.st_mtime, tz=timezone.utc),
            metadata=sidecar.get("metadata", {}),
        )

    def upload(
        self,
        bucket: str,
        key: str,
        content: bytes,
        content_type: str,
        metadata: dict[str, str] | None = None,
    ) -> StorageObjectInfo:
        target = self._object_path(bucket, key)
        sidecar = {
            "content_type": content_type,
            "etag": hashlib.md5(content, usedforsecurity=False).hexdigest(),
            "metadata": dict(metadata or {}),
        }

        with _filesystem_call("upload", bucket, key):
            target.parent.mkdir(parents=True, exist_ok=True)
            target.write_bytes(content)
            sidecar_path = self._sidecar_path(bucket, key)
            sidecar_path.parent.mkdir(parents=True, exist_ok=True)
            sidecar_path.write_text(json.dumps(sidecar), encoding="utf-8")
            info = self._info(bucket, key, target, sidecar)

        logger.info(f"Uploaded {bucket}/{key} ({len(content)} bytes)")
        return info

    def download(
        self, bucket: str, key: str, info: StorageObjectInfo | None = None
    ) -> BinaryIO:
        target = self._object_path(bucket, key)
        if not target.is_file():
            raise NotFoundError(f"Object not found: {bucket}/{key}")

        with _filesystem_call("download", bucket, key):
            content = target.read_bytes()

        logger.info(f"Downloaded {bucket}/{key}")
        return io.BytesIO(content)

    def delete(self, bucket: str, key: str) -> None:
        target = self._object_path(bucket, key)

        with _filesystem_call("delete", bucket, key):
            if target.is_file():
                target.unlink()
                self._sidecar_path(bucket, key).unlink(missing_ok=True)
                logger.info(f"Deleted {bucket}/{key}")
            else:
                logger.warning(f"File not found for deletion: {bucket}/{key}")

    def get_metadata(self, bucket: str, key: str) -> StorageObjectInfo:
        target = self._object_path(bucket, key)
        if not target.is_file():
            raise NotFoundError(f"Object not found: {bucket}/{key}")

        with _filesystem_call("read metadata of", bucket, key):
            return self._info(bucket, key, target, self._read_sidecar(bucket, key))

    def exists(self, bucket: str, key: str) -> bool:
        return self._object_path(bucket, key).is_file()

    def list(self, bucket: str, prefix: str | None = None) -> list[StorageObjectInfo]:
        bucket_dir = self._bucket_dir(bucket)
        results: list[StorageObjectInfo] = []
        if not bucket_dir.is_dir():
            return results

        with _filesystem_call("list", bucket):
            for path in sorted(bucket_dir.rglob("*")):
                if not path.is_file():
                    continue
                key = path.relative_to(bucket_dir).as_posix()
                if prefix and not key.startswith(prefix):
                    continue
                results.append(self._info(bucket, key, path, self._read_sidecar(bucket, key)))

        logger.info(f"Listed {len(results)} objects in bucket {bucket} with prefix '{prefix or ''}'")
        return results

    def get_presigned_url(self, bucket: str, key: str, expiry: timedelta) -> str:
        # The filesystem has no credentials to sign; the URI is only useful on this host.
        target = self._object_path(bucket, key)
        logger.debug(f"Returning file URI for {bucket}/{key}; expiry {expiry} is not enforced")
        return target.as_uri()

    def ensure_bucket_exists(self, bucket: str) -> None:
        bucket_dir = self._bucket_dir(bucket)
        with _filesystem_call("ensure", bucket):
            if not bucket_dir.is_dir():
                bucket_dir.mkdir(parents=True)
                logger.info(f"Created bucket directory '{bucket}'")
