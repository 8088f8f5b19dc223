# Document services

from .document_service import DocumentService
from .encrypted_provider import EncryptedStorageProvider
from .index_repository import PostgresDocumentIndexRepository
from .local_provider import LocalStorageProvider
from .memory_index import InMemoryDocumentIndexRepository
from .minio_provider import MinioStorageProvider

__all__ = [
    # Orchestrator
    "DocumentService",
    # Storage providers
    "MinioStorageProvider",
    "LocalStorageProvider",
    "EncryptedStorageProvider",
    # Index repositories
    "PostgresDocumentIndexRepository",
    "InMemoryDocumentIndexRepository",
]
