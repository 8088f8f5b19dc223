"""
Unit tests for MinioStorageProvider.

The MinIO client is mocked; these tests check the calls the provider makes
and how backend failures are reported.
"""

from datetime import datetime, timedelta, timezone
from unittest.mock import MagicMock

import pytest
from minio.error import S3Error
from urllib3.exceptions import MaxRetryError

from app.documents.services.minio_provider import MinioStorageProvider
from docstore_core.runtime.errors import BackendError


class TestMinioUpload:
    """Tests for upload()."""

    def test_upload_puts_object_with_metadata(self, provider, mock_client):
        info = provider.upload("docs", "a.txt", b"hello", "text/plain", {"owner": "bob"})

        mock_client.put_object.assert_called_once()
        call_kwargs = mock_client.put_object.call_args[1]
        assert call_kwargs["bucket_name"] == "docs"
        assert call_kwargs["object_name"] == "a.txt"
        assert call_kwargs["length"] == 5
        assert call_kwargs["content_type"] == "text/plain"
        assert call_kwargs["metadata"] == {"owner": "bob"}
        assert call_kwargs["data"].read() == b"hello"

        assert info.size == 5
        assert info.etag == "etag-1"
        assert info.metadata == {"owner": "bob"}

    def test_upload_creates_missing_bucket(self, provider, mock_client):
        mock_client.bucket_exists.return_value = False

        provider.upload("docs", "a.txt", b"hello", "text/plain")

        mock_client.make_bucket.assert_called_once_with(bucket_name="docs")

    def test_upload_wraps_s3_errors(self, provider, mock_client):
        mock_client.put_object.side_effect = _s3_error("AccessDenied")

        with pytest.raises(BackendError) as exc_info:
            provider.upload("docs", "a.txt", b"hello", "text/plain")

        assert isinstance(exc_info.value.cause, S3Error)


class TestMinioDownload:
    """Tests for download()."""

    def test_download_reads_and_releases_response(self, provider, mock_client):
        response = MagicMock()
        response.read.return_value = b"hello"
        mock_client.get_object.return_value = response

        stream = provider.download("docs", "a.txt")

        assert stream.read() == b"hello"
        response.close.assert_called_once()
        response.release_conn.assert_called_once()

    def test_download_wraps_connection_errors(self, provider, mock_client):
        mock_client.get_object.side_effect = MaxRetryError(None, "/docs/a.txt")

        with pytest.raises(BackendError):
            provider.download("docs", "a.txt")


class TestMinioMetadata:
    """Tests for get_metadata() and exists()."""

    def test_get_metadata_extracts_user_metadata(self, provider, mock_client):
        mock_client.stat_object.return_value = _stat(
            {"X-Amz-Meta-X-Encrypted": "true", "Content-Type": "text/plain"}
        )

        info = provider.get_metadata("docs", "a.txt")

        assert info.size == 33
        assert info.content_type == "text/plain"
        assert info.metadata == {"x-encrypted": "true"}
        assert info.is_encrypted is True

    def test_exists_true(self, provider, mock_client):
        mock_client.stat_object.return_value = _stat({})

        assert provider.exists("docs", "a.txt") is True

    @pytest.mark.parametrize("code", ["NoSuchKey", "NoSuchBucket"])
    def test_exists_false_for_missing(self, provider, mock_client, code):
        mock_client.stat_object.side_effect = _s3_error(code)

        assert provider.exists("docs", "a.txt") is False

    def test_exists_raises_for_other_errors(self, provider, mock_client):
        mock_client.stat_object.side_effect = _s3_error("AccessDenied")

        with pytest.raises(BackendError):
            provider.exists("docs", "a.txt")


class TestMinioListAndPresign:
    """Tests for list(), get_presigned_url() and ensure_bucket_exists()."""

    def test_list_is_recursive_and_skips_directories(self, provider, mock_client):
        mock_client.list_objects.return_value = [
            _listed("reports/a.txt"),
            _listed("reports/sub/", is_dir=True),
            _listed("reports/b.txt"),
        ]

        objects = provider.list("docs", "reports/")

        mock_client.list_objects.assert_called_once_with(
            bucket_name="docs", prefix="reports/", recursive=True
        )
        assert [o.key for o in objects] == ["reports/a.txt", "reports/b.txt"]

    def test_presigned_url_passes_expiry(self, provider, mock_client):
        mock_client.presigned_get_object.return_value = "http://minio/docs/a.txt?sig"

        url = provider.get_presigned_url("docs", "a.txt", timedelta(minutes=15))

        assert url == "http://minio/docs/a.txt?sig"
        call_kwargs = mock_client.presigned_get_object.call_args[1]
        assert call_kwargs["expires"] == timedelta(minutes=15)

    def test_ensure_bucket_is_noop_when_present(self, provider, mock_client):
        mock_client.bucket_exists.return_value = True

        provider.ensure_bucket_exists("docs")

        mock_client.make_bucket.assert_not_called()

    def test_delete_removes_object(self, provider, mock_client):
        provider.delete("docs", "a.txt")

        mock_client.remove_object.assert_called_once_with(bucket_name="docs", object_name="a.txt")


def _s3_error(code: str) -> S3Error:
    return S3Error(
        code=code,
        message=code,
        resource="/docs/a.txt",
        request_id="req",
        host_id="host",
        response=MagicMock(),
    )


def _stat(metadata: dict) -> MagicMock:
    stat = MagicMock()
    stat.size = 33
    stat.content_type = "text/plain"
    stat.etag = "etag-1"
    stat.last_modified = datetime(2024, 1, 1, tzinfo=timezone.utc)
    stat.metadata = metadata
    return stat


def _listed(name: str, is_dir: bool = False) -> MagicMock:
    item = MagicMock()
    item.object_name = name
    item.is_dir = is_dir
    item.size = 5
    item.etag = "etag"
    item.last_modified = datetime(2024, 1, 1, tzinfo=timezone.utc)
    return item


# --- Fixtures ---


@pytest.fixture
def mock_client():
    client = MagicMock()
    client.bucket_exists.return_value = True
    result = MagicMock()
    result.etag = "etag-1"
    result.last_modified = None
    client.put_object.return_value = result
    return client


@pytest.fixture
def provider(mock_client):
    return MinioStorageProvider(mock_client)
