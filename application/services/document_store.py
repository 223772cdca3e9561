"""Document and chunk lifecycle: ingest, list, get, delete."""
from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass
from datetime import datetime
from typing import Callable

from domain.entities import Document, SourceKind, utc_now
from domain.errors import InvalidConfig, NotFound
from domain.interfaces import (
    ChunkRepository,
    ChunkSplitter,
    DocumentRepository,
    TransactionManager,
    VectorIndex,
)
from application.services.batch_embedder import BatchEmbedder

logger = logging.getLogger(__name__)

_SOURCE_KINDS = ("file", "url")


@dataclass(slots=True)
class IngestResult:
    document_id: str
    chunk_count: int


class DocumentStore:
    """Owns documents and their chunks.

    Ingest embeds every chunk before touching the store, then writes the
    document row, chunk rows and vectors in one transaction, so readers
    either see the whole document or nothing.
    """

    def __init__(
        self,
        *,
        splitter: ChunkSplitter,
        embedder: BatchEmbedder,
        documents: DocumentRepository,
        chunks: ChunkRepository,
        vector_index: VectorIndex,
        transactions: TransactionManager,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        self._splitter = splitter
        self._embedder = embedder
        self._documents = documents
        self._chunks = chunks
        self._vector_index = vector_index
        self._transactions = transactions
        self._clock = clock

    def ingest(
        self,
        filename: str,
        source_kind: SourceKind,
        raw_text: str,
        *,
        file_type: str | None = None,
        file_size: int | None = None,
    ) -> IngestResult:
        if source_kind not in _SOURCE_KINDS:
            raise InvalidConfig(f"Unknown source kind {source_kind!r}; expected one of {_SOURCE_KINDS}.")
        created_at = self._clock()
        document = Document(
            id=str(uuid.uuid4()),
            filename=filename,
            source_kind=source_kind,
            file_type=file_type or ("url" if source_kind == "url" else "txt"),
            file_size=file_size if file_size is not None else len(raw_text.encode("utf-8")),
            content=raw_text,
            created_at=created_at,
        )
        chunks = self._splitter.split(document)
        for chunk in chunks:
            chunk.created_at = created_at
        document.metadata = {"processed_at": created_at.isoformat(), "chunk_count": len(chunks)}

        vectors = self._embedder.embed_batch([chunk.text for chunk in chunks])

        chunk_ids = [chunk.id for chunk in chunks]
        try:
            with self._transactions.transaction():
                self._documents.add(document)
                self._chunks.add_many(chunks)
                self._vector_index.upsert_many(chunk_ids, vectors)
        except BaseException:
            # rolled back chunks must not stay in an in-memory graph
            self._vector_index.remove_many(chunk_ids)
            raise

        logger.info("Ingested %s (%s) as %s with %d chunks", filename, document.file_type, document.id, len(chunks))
        return IngestResult(document_id=document.id, chunk_count=len(chunks))

    def list(self) -> list[Document]:
        return self._documents.list()

    def get(self, document_id: str) -> Document:
        document = self._documents.get(document_id)
        if document is None:
            raise NotFound(f"Document {document_id} does not exist.")
        return document

    def delete(self, document_id: str) -> None:
        with self._transactions.transaction():
            chunk_ids = [chunk.id for chunk in self._chunks.list_for_document(document_id)]
            removed = self._documents.delete(document_id)
        if removed:
            self._vector_index.remove_many(chunk_ids)
            logger.info("Deleted document %s with %d chunks", document_id, len(chunk_ids))
        else:
            logger.debug("Delete of unknown document %s ignored", document_id)


__all__ = ["DocumentStore", "IngestResult"]
