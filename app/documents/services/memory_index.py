"""
In-process document index.

Implements the DocumentIndexRepository contract with plain dicts, for
development and tests. Each operation holds the store lock for its whole
duration, so writes are atomic and (bucket, key) stays unique. Entries are
returned as copies; mutating a returned entry never changes the store.
"""

from __future__ import annotations

import itertools
import threading

from loguru import logger

from docstore_core.domain.models import DocumentIndexEntry, DocumentIndexQuery, SortField
from docstore_core.runtime.context import RunContext
from docstore_core.runtime.errors import ErrorCode, IndexStoreError

_SORT_KEYS = {
    SortField.FILE_NAME: lambda e: e.file_name,
    SortField.SIZE: lambda e: e.size,
    SortField.CONTENT_TYPE: lambda e: e.content_type,
    SortField.UPLOADED_AT: lambda e: e.uploaded_at,
}


class InMemoryDocumentIndexRepository:
    """Dict-backed index store with insertion-order tie-breaking."""

    def __init__(self):
        self._lock = threading.Lock()
        self._entries: dict[str, DocumentIndexEntry] = {}
        self._by_key: dict[tuple[str, str], str] = {}
        self._seq: dict[str, int] = {}
        self._counter = itertools.count(1)

    @staticmethod
    def _check(ctx: RunContext | None, operation: str) -> None:
        if ctx is not None:
            ctx.raise_if_expired(operation)

    def _store(self, entry: DocumentIndexEntry) -> None:
        self._entries[entry.id] = entry.model_copy(deep=True)
        self._by_key[(entry.bucket, entry.key)] = entry.id
        self._seq.setdefault(entry.id, next(self._counter))

    def _matching(self, query: DocumentIndexQuery) -> list[DocumentIndexEntry]:
        return [e for e in self._entries.values() if query.matches(e)]

    def get_by_id(self, entry_id: str, ctx: RunContext | None = None) -> DocumentIndexEntry | None:
        self._check(ctx, "index lookup")
        with self._lock:
            entry = self._entries.get(entry_id)
            return entry.model_copy(deep=True) if entry else None

    def get_by_bucket_and_key(
        self, bucket: str, key: str, ctx: RunContext | None = None
    ) -> DocumentIndexEntry | None:
        self._check(ctx, "index lookup")
        with self._lock:
            entry_id = self._by_key.get((bucket, key))
            if entry_id is None:
                return None
            return self._entries[entry_id].model_copy(deep=True)

    def search(
        self, query: DocumentIndexQuery, ctx: RunContext | None = None
    ) -> list[DocumentIndexEntry]:
        self._check(ctx, "index search")
        with self._lock:
            matches = sorted(self._matching(query), key=lambda e: self._seq[e.id])
            # sorted() is stable in both directions, so ties keep insertion order
            matches.sort(key=_SORT_KEYS[query.sort_field()], reverse=query.sort_descending)
            page = matches[query.skip : query.skip + query.page_size]
            return [e.model_copy(deep=True) for e in page]

    def count(self, query: DocumentIndexQuery, ctx: RunContext | None = None) -> int:
        self._check(ctx, "index count")
        with self._lock:
            return len(self._matching(query))

    def add(self, entry: DocumentIndexEntry, ctx: RunContext | None = None) -> None:
        self._check(ctx, "index insert")
        with self._lock:
            if entry.id in self._entries:
                raise IndexStoreError(f"Index entry {entry.id} already exists")
            if (entry.bucket, entry.key) in self._by_key:
                raise IndexStoreError(
                    f"Index entry for {entry.bucket}/{entry.key} already exists"
                )
            self._store(entry)

        logger.debug(f"Indexed {entry.bucket}/{entry.key} as {entry.id}")

    def update(self, entry: DocumentIndexEntry, ctx: RunContext | None = None) -> None:
        self._check(ctx, "index update")
        with self._lock:
            current = self._entries.get(entry.id)
            if current is None:
                raise IndexStoreError(
                    f"Index entry {entry.id} does not exist",
                    code=ErrorCode.INDEX_ENTRY_NOT_FOUND,
                )
            owner = self._by_key.get((entry.bucket, entry.key))
            if owner is not None and owner != entry.id:
                raise IndexStoreError(
                    f"Index entry for {entry.bucket}/{entry.key} already exists"
                )
            entry.touch()
            del self._by_key[(current.bucket, current.key)]
            self._store(entry)

    def upsert(
        self, entry: DocumentIndexEntry, ctx: RunContext | None = None
    ) -> DocumentIndexEntry:
        self._check(ctx, "index upsert")
        with self._lock:
            entry_id = self._by_key.get((entry.bucket, entry.key))
            if entry_id is None:
                self._store(entry)
                return entry.model_copy(deep=True)

            stored = self._entries[entry_id]
            stored.size = entry.size
            stored.content_type = entry.content_type
            stored.etag = entry.etag
            stored.is_encrypted = entry.is_encrypted
            stored.touch()
            return stored.model_copy(deep=True)

    def delete_by_id(self, entry_id: str, ctx: RunContext | None = None) -> None:
        self._check(ctx, "index delete")
        with self._lock:
            entry = self._entries.pop(entry_id, None)
            if entry is not None:
                del self._by_key[(entry.bucket, entry.key)]
                self._seq.pop(entry_id, None)

    def delete_by_bucket_and_key(
        self, bucket: str, key: str, ctx: RunContext | None = None
    ) -> None:
        self._check(ctx, "index delete")
        with self._lock:
            entry_id = self._by_key.pop((bucket, key), None)
            if entry_id is not None:
                del self._entries[entry_id]
                self._seq.pop(entry_id, None)
