"""
MinIO client factory for the docstore gateway.

The client is built once at startup from explicit connection values and
shared by the storage provider; it holds a urllib3 connection pool and is
safe to use from multiple threads.
"""

from loguru import logger
from minio import Minio


def create_minio_client(
    endpoint: str,
    access_key: str,
    secret_key: str,
    secure: bool = False,
    region: str | None = None,
) -> Minio:
    """
    Create a MinIO (or any S3-compatible) client.

    Args:
        endpoint: host:port of the S3 endpoint.
        access_key: Access key ID.
        secret_key: Secret access key.
        secure: Use HTTPS.
        region: Optional region; skips the bucket-location lookup when set.

    Returns:
        Minio: The client instance.
    """
    try:
        client = Minio(
            endpoint=endpoint,
            access_key=access_key,
            secret_key=secret_key,
            secure=secure,
            region=region,
        )
    except Exception as e:
        logger.error(f"Failed to create S3 client for '{endpoint}': {e}")
        raise

    logger.info(f"Connected to object storage at '{endpoint}' (secure={secure})")
    return client
