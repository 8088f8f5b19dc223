"""
PostgresDocumentIndexRepository: persistent document index.

Stores one row per (bucket, key) in `document_indexes`, with tags and
custom metadata as JSONB. Every method runs in a single transaction that
commits on success and rolls back on error, with the caller's remaining
deadline applied as a transaction-local statement timeout.
"""

from __future__ import annotations

import uuid
from contextlib import contextmanager
from typing import Any, Iterator

import psycopg
from loguru import logger
from psycopg.types.json import Jsonb

from docstore_core.domain.models import DocumentIndexEntry, DocumentIndexQuery, SortField
from docstore_core.infrastructure.postgres import get_db_connection
from docstore_core.runtime.context import RunContext
from docstore_core.runtime.errors import ErrorCode, IndexStoreError

TABLE = "document_indexes"

COLUMNS = (
    "id, bucket, key, file_name, content_type, size, etag, is_encrypted, "
    "uploaded_by, uploaded_at, last_modified, tags, custom_metadata"
)

SCHEMA_STATEMENTS = (
    f"""
    CREATE TABLE IF NOT EXISTS {TABLE} (
        id UUID PRIMARY KEY,
        seq BIGSERIAL NOT NULL,
        bucket VARCHAR(255) NOT NULL,
        key VARCHAR(1024) NOT NULL,
        file_name VARCHAR(512) NOT NULL,
        content_type VARCHAR(255) NOT NULL,
        size BIGINT NOT NULL DEFAULT 0,
        etag VARCHAR(255),
        is_encrypted BOOLEAN NOT NULL DEFAULT FALSE,
        uploaded_by VARCHAR(255),
        uploaded_at TIMESTAMPTZ NOT NULL,
        last_modified TIMESTAMPTZ,
        tags JSONB NOT NULL DEFAULT '{{}}'::jsonb,
        custom_metadata JSONB NOT NULL DEFAULT '{{}}'::jsonb,
        CONSTRAINT ix_document_indexes_bucket_key UNIQUE (bucket, key)
    )
    """,
    f"CREATE INDEX IF NOT EXISTS ix_document_indexes_bucket ON {TABLE} (bucket)",
    f"CREATE INDEX IF NOT EXISTS ix_document_indexes_file_name ON {TABLE} (file_name)",
    f"CREATE INDEX IF NOT EXISTS ix_document_indexes_content_type ON {TABLE} (content_type)",
    f"CREATE INDEX IF NOT EXISTS ix_document_indexes_uploaded_by ON {TABLE} (uploaded_by)",
    f"CREATE INDEX IF NOT EXISTS ix_document_indexes_uploaded_at ON {TABLE} (uploaded_at)",
    f"CREATE INDEX IF NOT EXISTS ix_document_indexes_tags ON {TABLE} USING GIN (tags)",
)

_SORT_COLUMNS = {
    SortField.FILE_NAME: "file_name",
    SortField.SIZE: "size",
    SortField.CONTENT_TYPE: "content_type",
    SortField.UPLOADED_AT: "uploaded_at",
}


def build_filters(query: DocumentIndexQuery) -> tuple[str, list[Any]]:
    """
    Translate the populated filters of `query` into a WHERE clause.

    Returns:
        tuple: (where_sql, params); where_sql is empty when nothing is filtered.
    """
    clauses: list[str] = []
    params: list[Any] = []

    if query.bucket:
        clauses.append("bucket = %s")
        params.append(query.bucket)
    if query.key_prefix:
        clauses.append("starts_with(key, %s)")
        params.append(query.key_prefix)
    if query.file_name:
        # strpos is case-sensitive and needs no LIKE escaping
        clauses.append("strpos(file_name, %s) > 0")
        params.append(query.file_name)
    if query.content_type:
        clauses.append("content_type = %s")
        params.append(query.content_type)
    if query.uploaded_by:
        clauses.append("uploaded_by = %s")
        params.append(query.uploaded_by)
    if query.uploaded_from is not None:
        clauses.append("uploaded_at >= %s")
        params.append(query.uploaded_from)
    if query.uploaded_to is not None:
        clauses.append("uploaded_at <= %s")
        params.append(query.uploaded_to)
    if query.tags:
        # JSONB containment: every given tag present with exactly that value
        clauses.append("tags @> %s")
        params.append(Jsonb(dict(query.tags)))

    if not clauses:
        return "", params
    return "WHERE " + " AND ".join(clauses), params


def build_order_by(query: DocumentIndexQuery) -> str:
    column = _SORT_COLUMNS[query.sort_field()]
    direction = "DESC" if query.sort_descending else "ASC"
    return f"ORDER BY {column} {direction}, seq ASC"


def _is_uuid(value: str | None) -> bool:
    # The id column is UUID-typed; any other text fails the cast in PostgreSQL
    try:
        uuid.UUID(str(value))
    except ValueError:
        return False
    return True


class PostgresDocumentIndexRepository:
    """
    Repository for document index entries in PostgreSQL.

    Usage:
        repo = PostgresDocumentIndexRepository(settings.POSTGRES_DSN)
        repo.ensure_schema()
        stored = repo.upsert(entry)
    """

    def __init__(self, dsn: str, connect_timeout: int | None = None):
        self._dsn = dsn
        self._connect_timeout = connect_timeout

    @contextmanager
    def _transaction(
        self,
        operation: str,
        ctx: RunContext | None = None,
        code: str = ErrorCode.INDEX_UPDATE_FAILED,
    ) -> Iterator[psycopg.Cursor]:
        if ctx is not None:
            ctx.raise_if_expired(operation)

        try:
            with get_db_connection(self._dsn, self._connect_timeout) as conn:
                cursor = conn.cursor()
                remaining = ctx.remaining_seconds() if ctx is not None else None
                if remaining is not None:
                    timeout_ms = max(1, int(remaining * 1000))
                    cursor.execute(
                        "SELECT set_config('statement_timeout', %s, true)",
                        (str(timeout_ms),),
                    )
                yield cursor
                conn.commit()
        except psycopg.Error as e:
            logger.error(f"Document index failed to {operation}: {type(e).__name__}")
            raise IndexStoreError(
                f"Document index failed to {operation}",
                code=code,
                message_debug=str(e),
                cause=e,
            ) from e

    def ensure_schema(self) -> None:
        """Create the index table and its secondary indexes if missing."""
        with self._transaction("create schema") as cursor:
            for statement in SCHEMA_STATEMENTS:
                cursor.execute(statement)

        logger.info(f"Ensured document index schema ({TABLE})")

    def get_by_id(self, entry_id: str, ctx: RunContext | None = None) -> DocumentIndexEntry | None:
        if not _is_uuid(entry_id):
            return None

        with self._transaction("look up entry", ctx, ErrorCode.INDEX_QUERY_FAILED) as cursor:
            cursor.execute(f"SELECT {COLUMNS} FROM {TABLE} WHERE id = %s", (entry_id,))
            row = cursor.fetchone()

        return self._row_to_entry(row)

    def get_by_bucket_and_key(
        self, bucket: str, key: str, ctx: RunContext | None = None
    ) -> DocumentIndexEntry | None:
        with self._transaction("look up entry", ctx, ErrorCode.INDEX_QUERY_FAILED) as cursor:
            cursor.execute(
                f"SELECT {COLUMNS} FROM {TABLE} WHERE bucket = %s AND key = %s",
                (bucket, key),
            )
            row = cursor.fetchone()

        return self._row_to_entry(row)

    def search(
        self, query: DocumentIndexQuery, ctx: RunContext | None = None
    ) -> list[DocumentIndexEntry]:
        where, params = build_filters(query)
        sql = f"SELECT {COLUMNS} FROM {TABLE} {where} {build_order_by(query)} LIMIT %s OFFSET %s"

        with self._transaction("search", ctx, ErrorCode.INDEX_QUERY_FAILED) as cursor:
            cursor.execute(sql, (*params, query.page_size, query.skip))
            rows = cursor.fetchall()

        return [self._row_to_entry(row) for row in rows]

    def count(self, query: DocumentIndexQuery, ctx: RunContext | None = None) -> int:
        where, params = build_filters(query)

        with self._transaction("count", ctx, ErrorCode.INDEX_QUERY_FAILED) as cursor:
            cursor.execute(f"SELECT COUNT(*) FROM {TABLE} {where}", tuple(params))
            row = cursor.fetchone()

        return int(row[0]) if row else 0

    def add(self, entry: DocumentIndexEntry, ctx: RunContext | None = None) -> None:
        with self._transaction("insert entry", ctx) as cursor:
            cursor.execute(
                f"INSERT INTO {TABLE} ({COLUMNS}) "
                "VALUES (%s, %s, %s, %s, %s, %s, %s, %s, %s, %s, %s, %s, %s)",
                self._entry_params(entry),
            )

        logger.info(f"Created index entry {entry.id} for {entry.bucket}/{entry.key}")

    def update(self, entry: DocumentIndexEntry, ctx: RunContext | None = None) -> None:
        entry.touch()
        with self._transaction("update entry", ctx) as cursor:
            cursor.execute(
                f"""
                UPDATE {TABLE}
                SET bucket = %s, key = %s, file_name = %s, content_type = %s,
                    size = %s, etag = %s, is_encrypted = %s, uploaded_by = %s,
                    last_modified = %s, tags = %s, custom_metadata = %s
                WHERE id = %s
                """,
                (
                    entry.bucket,
                    entry.key,
                    entry.file_name,
                    entry.content_type,
                    entry.size,
                    entry.etag,
                    entry.is_encrypted,
                    entry.uploaded_by,
                    entry.last_modified,
                    Jsonb(entry.tags),
                    Jsonb(entry.custom_metadata),
                    entry.id,
                ),
            )
            if cursor.rowcount == 0:
                raise IndexStoreError(
                    f"Index entry {entry.id} does not exist",
                    code=ErrorCode.INDEX_ENTRY_NOT_FOUND,
                )

        logger.debug(f"Updated index entry {entry.id}")

    def upsert(
        self, entry: DocumentIndexEntry, ctx: RunContext | None = None
    ) -> DocumentIndexEntry:
        with self._transaction("upsert entry", ctx) as cursor:
            cursor.execute(
                f"""
                INSERT INTO {TABLE} ({COLUMNS})
                VALUES (%s, %s, %s, %s, %s, %s, %s, %s, %s, %s, %s, %s, %s)
                ON CONFLICT (bucket, key) DO UPDATE
                SET size = EXCLUDED.size,
                    content_type = EXCLUDED.content_type,
                    etag = EXCLUDED.etag,
                    is_encrypted = EXCLUDED.is_encrypted,
                    last_modified = EXCLUDED.last_modified
                RETURNING {COLUMNS}
                """,
                self._entry_params(entry),
            )
            row = cursor.fetchone()

        stored = self._row_to_entry(row)
        if stored is None:
            raise IndexStoreError(f"Upsert of {entry.bucket}/{entry.key} returned no row")
        return stored

    def delete_by_id(self, entry_id: str, ctx: RunContext | None = None) -> None:
        if not _is_uuid(entry_id):
            return

        with self._transaction("delete entry", ctx) as cursor:
            cursor.execute(f"DELETE FROM {TABLE} WHERE id = %s", (entry_id,))

    def delete_by_bucket_and_key(
        self, bucket: str, key: str, ctx: RunContext | None = None
    ) -> None:
        with self._transaction("delete entry", ctx) as cursor:
            cursor.execute(
                f"DELETE FROM {TABLE} WHERE bucket = %s AND key = %s",
                (bucket, key),
            )

    @staticmethod
    def _entry_params(entry: DocumentIndexEntry) -> tuple:
        return (
            entry.id,
            entry.bucket,
            entry.key,
            entry.file_name,
            entry.content_type,
            entry.size,
            entry.etag,
            entry.is_encrypted,
            entry.uploaded_by,
            entry.uploaded_at,
            entry.last_modified,
            Jsonb(entry.tags),
            Jsonb(entry.custom_metadata),
        )

    @staticmethod
    def _row_to_entry(row: tuple | None) -> DocumentIndexEntry | None:
        """Convert database row to an index entry."""
        if not row:
            return None

        return DocumentIndexEntry(
            id=str(row[0]),
            bucket=row[1],
            key=row[2],
            file_name=row[3],
            content_type=row[4],
            size=row[5],
            etag=row[6],
            is_encrypted=row[7],
            uploaded_by=row[8],
            uploaded_at=row[9],
            last_modified=row[10],
            tags=row[11] or {},
            custom_metadata=row[12] or {},
        )
