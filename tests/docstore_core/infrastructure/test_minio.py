"""Unit tests for the MinIO client factory."""

from unittest.mock import MagicMock, patch

import pytest

from docstore_core.infrastructure.minio import create_minio_client


class TestCreateMinioClient:
    """Tests for create_minio_client()."""

    def test_returns_minio_client(self, mock_minio_module):
        client = create_minio_client("localhost:9000", "access", "secret")

        assert client is mock_minio_module.return_value

    def test_passes_connection_values(self, mock_minio_module):
        create_minio_client(
            "minio.example.com:9000", "myaccess", "mysecret", secure=True, region="eu-west-1"
        )

        mock_minio_module.assert_called_once()
        call_kwargs = mock_minio_module.call_args[1]
        assert call_kwargs["endpoint"] == "minio.example.com:9000"
        assert call_kwargs["access_key"] == "myaccess"
        assert call_kwargs["secret_key"] == "mysecret"
        assert call_kwargs["secure"] is True
        assert call_kwargs["region"] == "eu-west-1"

    def test_construction_errors_propagate(self, mock_minio_module):
        mock_minio_module.side_effect = ValueError("bad endpoint")

        with pytest.raises(ValueError):
            create_minio_client("bad endpoint", "a", "b")


# --- Fixtures ---


@pytest.fixture
def mock_minio_module():
    """Mock the Minio class from minio package."""
    with patch("docstore_core.infrastructure.minio.Minio") as mock_minio:
        mock_client = MagicMock()
        mock_minio.return_value = mock_client
        yield mock_minio
