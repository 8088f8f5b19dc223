"""
Documents module factory.

Builds the storage provider chain, the optional document index and the
DocumentService from Settings. Everything is constructed once per process;
the route layer asks for the service through get_document_service().
"""

from __future__ import annotations

from datetime import timedelta
from functools import lru_cache

from loguru import logger

from app.documents.services.document_service import DocumentService
from app.documents.services.encrypted_provider import EncryptedStorageProvider
from app.documents.services.index_repository import PostgresDocumentIndexRepository
from app.documents.services.local_provider import LocalStorageProvider
from app.documents.services.memory_index import InMemoryDocumentIndexRepository
from app.documents.services.minio_provider import MinioStorageProvider
from docstore_core.config import Settings, settings
from docstore_core.domain.interfaces import DocumentIndexRepository, StorageProvider
from docstore_core.domain.models import StorageProviderType
from docstore_core.infrastructure.encryption import AesGcmCodec
from docstore_core.infrastructure.minio import create_minio_client
from docstore_core.runtime.catalog import ErrorCatalog


def build_storage_provider(config: Settings) -> StorageProvider:
    """
    Create the concrete backend selected by STORAGE_PROVIDER, wrapped in the
    encrypting decorator when ENCRYPTION_ENABLED is set.
    """
    provider_type = config.STORAGE_PROVIDER

    if provider_type == StorageProviderType.MINIO:
        provider: StorageProvider = MinioStorageProvider(
            create_minio_client(
                endpoint=config.MINIO_ENDPOINT,
                access_key=config.MINIO_ACCESS_KEY,
                secret_key=config.MINIO_SECRET_KEY,
                secure=config.MINIO_SECURE,
                region=config.MINIO_REGION,
            )
        )
    elif provider_type == StorageProviderType.SEAWEEDFS:
        # SeaweedFS speaks S3 through its gateway; credentials are shared with MinIO settings
        provider = MinioStorageProvider(
            create_minio_client(
                endpoint=config.SEAWEEDFS_S3_ENDPOINT,
                access_key=config.MINIO_ACCESS_KEY,
                secret_key=config.MINIO_SECRET_KEY,
                secure=config.MINIO_SECURE,
                region=config.MINIO_REGION,
            )
        )
    elif provider_type == StorageProviderType.LOCAL:
        provider = LocalStorageProvider(base_path=config.LOCAL_STORAGE_PATH)
    else:
        raise ValueError(f"Unsupported storage provider: {provider_type}")

    logger.info(f"Using {provider_type.value} storage backend")

    if config.ENCRYPTION_ENABLED:
        codec = AesGcmCodec.from_base64(config.ENCRYPTION_MASTER_KEY)
        provider = EncryptedStorageProvider(provider, codec)
        logger.info("Encryption at rest enabled (AES-256-GCM)")

    return provider


def build_index(config: Settings) -> DocumentIndexRepository | None:
    """Create the document index, or return None when indexing is disabled."""
    if not config.INDEXING_ENABLED:
        return None

    if config.INDEX_BACKEND == "memory":
        logger.info("Using in-memory document index")
        return InMemoryDocumentIndexRepository()

    repository = PostgresDocumentIndexRepository(
        dsn=config.POSTGRES_DSN,
        connect_timeout=config.POSTGRES_CONNECT_TIMEOUT,
    )
    repository.ensure_schema()
    logger.info("Using PostgreSQL document index")
    return repository


def build_document_service(config: Settings) -> DocumentService:
    """Wire provider chain, index and error catalogue into a DocumentService."""
    return DocumentService(
        provider=build_storage_provider(config),
        errors=ErrorCatalog.load_from_file(config.ERROR_CATALOG_PATH),
        index=build_index(config),
        max_upload_bytes=config.MAX_UPLOAD_BYTES,
        max_presigned_expiry=timedelta(minutes=config.PRESIGNED_URL_MAX_EXPIRY_MINUTES),
        max_page_size=config.SEARCH_MAX_PAGE_SIZE,
    )


@lru_cache()
def get_document_service() -> DocumentService:
    """Get the process-wide DocumentService instance."""
    return build_document_service(settings)
