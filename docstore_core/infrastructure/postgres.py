"""
PostgreSQL connection helper for the docstore gateway.

This module provides a simple connection function for PostgreSQL access.
Uses psycopg for the connection.
"""

import psycopg
from loguru import logger


def get_db_connection(dsn: str, connect_timeout: int | None = None) -> psycopg.Connection:
    """
    Get a PostgreSQL database connection.

    Used as a context manager, the connection commits when the block exits
    normally, rolls back when it raises, and is closed either way.

    Usage:
        with get_db_connection(dsn) as conn:
            cursor = conn.cursor()
            cursor.execute("SELECT * FROM document_indexes")

    Args:
        dsn: libpq connection string.
        connect_timeout: Optional connection timeout in seconds.

    Returns:
        psycopg.Connection: A PostgreSQL connection.
    """
    kwargs = {}
    if connect_timeout:
        kwargs["connect_timeout"] = connect_timeout

    try:
        conn = psycopg.connect(dsn, **kwargs)
        logger.debug("Connected to PostgreSQL")
        return conn
    except Exception as e:
        logger.error(f"Failed to connect to PostgreSQL: {e}")
        raise
