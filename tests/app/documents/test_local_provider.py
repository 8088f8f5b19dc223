"""Unit tests for LocalStorageProvider, run against a temporary directory."""

from datetime import timedelta

import pytest

from app.documents.services.local_provider import LocalStorageProvider
from docstore_core.runtime.errors import ErrorCode, NotFoundError, ValidationError


class TestLocalUploadDownload:
    """Tests for upload() and download()."""

    def test_round_trip(self, provider):
        provider.upload("docs", "reports/a.txt", b"hello", "text/plain")

        assert provider.download("docs", "reports/a.txt").read() == b"hello"

    def test_upload_reports_stored_object(self, provider):
        info = provider.upload("docs", "a.txt", b"hello", "text/plain", {"owner": "bob"})

        assert info.bucket == "docs"
        assert info.size == 5
        assert info.content_type == "text/plain"
        assert info.etag == "5d41402abc4b2a76b9719d911017c592"
        assert info.metadata == {"owner": "bob"}

    def test_overwrite_replaces_content(self, provider):
        provider.upload("docs", "a.txt", b"one", "text/plain")
        provider.upload("docs", "a.txt", b"second", "text/plain")

        assert provider.download("docs", "a.txt").read() == b"second"

    def test_download_missing_raises_not_found(self, provider):
        with pytest.raises(NotFoundError):
            provider.download("docs", "missing.txt")

    def test_key_escaping_bucket_is_rejected(self, provider):
        with pytest.raises(ValidationError) as exc_info:
            provider.upload("docs", "../outside.txt", b"x", "text/plain")

        assert exc_info.value.code == ErrorCode.INVALID_KEY

    def test_hidden_bucket_is_rejected(self, provider):
        with pytest.raises(ValidationError) as exc_info:
            provider.upload(".metadata", "a.txt", b"x", "text/plain")

        assert exc_info.value.code == ErrorCode.INVALID_BUCKET


class TestLocalMetadata:
    """Tests for get_metadata(), exists() and delete()."""

    def test_metadata_survives_in_sidecar(self, provider):
        provider.upload("docs", "a.txt", b"hello", "text/plain", {"x-encrypted": "true"})

        info = provider.get_metadata("docs", "a.txt")

        assert info.content_type == "text/plain"
        assert info.is_encrypted is True

    def test_exists(self, provider):
        provider.upload("docs", "a.txt", b"hello", "text/plain")

        assert provider.exists("docs", "a.txt") is True
        assert provider.exists("docs", "b.txt") is False

    def test_delete_removes_object_and_sidecar(self, provider, tmp_path):
        provider.upload("docs", "a.txt", b"hello", "text/plain")

        provider.delete("docs", "a.txt")

        assert provider.exists("docs", "a.txt") is False
        assert not (tmp_path / ".metadata" / "docs" / "a.txt.json").exists()

    def test_delete_missing_is_noop(self, provider):
        provider.delete("docs", "missing.txt")


class TestLocalListing:
    """Tests for list(), presigned URLs and buckets."""

    def test_list_filters_by_prefix(self, provider):
        provider.upload("docs", "reports/a.txt", b"a", "text/plain")
        provider.upload("docs", "reports/b.txt", b"b", "text/plain")
        provider.upload("docs", "invoices/c.txt", b"c", "text/plain")

        keys = [o.key for o in provider.list("docs", "reports/")]

        assert keys == ["reports/a.txt", "reports/b.txt"]

    def test_list_unknown_bucket_is_empty(self, provider):
        assert provider.list("nothing") == []

    def test_presigned_url_is_file_uri(self, provider):
        provider.upload("docs", "a.txt", b"a", "text/plain")

        url = provider.get_presigned_url("docs", "a.txt", timedelta(minutes=5))

        assert url.startswith("file://")
        assert url.endswith("/docs/a.txt")

    def test_ensure_bucket_creates_directory(self, provider, tmp_path):
        provider.ensure_bucket_exists("new-bucket")
        provider.ensure_bucket_exists("new-bucket")

        assert (tmp_path / "new-bucket").is_dir()


# --- Fixtures ---


@pytest.fixture
def provider(tmp_path):
    return LocalStorageProvider(base_path=tmp_path)
