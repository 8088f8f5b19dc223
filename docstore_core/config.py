"""
Unified configuration for the docstore gateway.

This module provides a single Settings class that consolidates all
environment variables used by the storage, encryption and indexing layers.
Values are validated when the settings are built, so a misconfigured
process fails at startup instead of on the first request.
"""

from __future__ import annotations

import base64
import binascii
from pathlib import Path

from pydantic import model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from docstore_core.domain.models import StorageProviderType

# Determine project root for .env file loading (allows running from any CWD)
PROJECT_ROOT = Path(__file__).resolve().parent.parent

ENCRYPTION_KEY_BYTES = 32


class Settings(BaseSettings):
    """
    Settings for the docstore gateway.

    Environment variables are loaded from .env file and can be overridden
    by actual environment variables.
    """

    # Service identification
    SERVICE_NAME: str = "docstore-gateway"
    LOG_LEVEL: str = "INFO"

    # App host/port
    APP_HOST: str = "0.0.0.0"
    APP_PORT: int = 8080

    # Storage backend selection
    STORAGE_PROVIDER: StorageProviderType = StorageProviderType.MINIO

    # MinIO Configuration
    MINIO_ENDPOINT: str = "localhost:9000"
    MINIO_ACCESS_KEY: str = "minioadmin"
    MINIO_SECRET_KEY: str = "minioadmin"
    MINIO_SECURE: bool = False
    MINIO_REGION: str | None = None

    # SeaweedFS is reached through its S3 gateway with the MinIO client
    SEAWEEDFS_S3_ENDPOINT: str = "localhost:8333"

    # Local filesystem backend
    LOCAL_STORAGE_PATH: str = "/tmp/docstore-storage"

    # Encryption at rest (AES-256-GCM)
    ENCRYPTION_ENABLED: bool = False
    ENCRYPTION_MASTER_KEY: str = ""  # base64 of 32 bytes

    # Document index
    INDEXING_ENABLED: bool = False
    INDEX_BACKEND: str = "postgres"  # postgres | memory
    POSTGRES_DSN: str = "host=localhost port=5432 dbname=postgres user=postgres password=postgres"
    POSTGRES_CONNECT_TIMEOUT: int = 5

    # Error catalogue (defaults to the bundled errors.json)
    ERROR_CATALOG_PATH: str | None = None

    # Limits
    MAX_UPLOAD_BYTES: int = 500 * 1024 * 1024  # 500 MB
    PRESIGNED_URL_MAX_EXPIRY_MINUTES: int = 7 * 24 * 60
    SEARCH_MAX_PAGE_SIZE: int = 500
    REQUEST_TIMEOUT_SECONDS: float = 30.0

    model_config = SettingsConfigDict(
        env_file=PROJECT_ROOT / ".env",
        extra="ignore",
        frozen=True,
    )

    @model_validator(mode="after")
    def _check_feature_requirements(self) -> "Settings":
        if self.ENCRYPTION_ENABLED:
            if not self.ENCRYPTION_MASTER_KEY:
                raise ValueError("ENCRYPTION_ENABLED is true but ENCRYPTION_MASTER_KEY is not set.")
            try:
                key = base64.b64decode(self.ENCRYPTION_MASTER_KEY, validate=True)
            except (binascii.Error, ValueError) as e:
                raise ValueError("ENCRYPTION_MASTER_KEY is not valid base64.") from e
            if len(key) != ENCRYPTION_KEY_BYTES:
                raise ValueError(
                    f"ENCRYPTION_MASTER_KEY must decode to exactly {ENCRYPTION_KEY_BYTES} bytes "
                    f"(256-bit). Got {len(key)} bytes."
                )

        if self.INDEXING_ENABLED:
            if self.INDEX_BACKEND not in ("postgres", "memory"):
                raise ValueError(
                    f"Invalid INDEX_BACKEND value: '{self.INDEX_BACKEND}'. Expected: postgres or memory."
                )
            if self.INDEX_BACKEND == "postgres" and not self.POSTGRES_DSN:
                raise ValueError("INDEXING_ENABLED is true but POSTGRES_DSN is not set.")

        return self


# Global settings instance
settings = Settings()  # type: ignore
