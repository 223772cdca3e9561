"""Use case that performs semantic search over ingested chunks."""
from __future__ import annotations

import logging
from typing import Sequence

from domain.entities import SearchResult
from domain.interfaces import ChunkRepository, DocumentRepository, VectorIndex
from application.services.batch_embedder import BatchEmbedder

logger = logging.getLogger(__name__)


def search_chunks(
    query_vector: Sequence[float],
    *,
    vector_index: VectorIndex,
    chunk_repository: ChunkRepository,
    document_repository: DocumentRepository,
    top_k: int = 5,
    min_similarity: float = 0.6,
) -> list[SearchResult]:
    """Rank chunks against an embedded query and attach their provenance."""

    hits = vector_index.search(query_vector, top_k=top_k, min_similarity=min_similarity)
    if not hits:
        return []
    chunks = chunk_repository.get_many([chunk_id for chunk_id, _ in hits])
    filenames: dict[str, str | None] = {}
    results: list[SearchResult] = []
    for chunk_id, similarity in hits:
        chunk = chunks.get(chunk_id)
        if chunk is None:
            continue
        if chunk.document_id not in filenames:
            document = document_repository.get(chunk.document_id)
            filenames[chunk.document_id] = document.filename if document else None
        filename = filenames[chunk.document_id]
        if filename is None:
            continue
        results.append(
            SearchResult(
                chunk_id=chunk.id,
                content=chunk.text,
                document_id=chunk.document_id,
                filename=filename,
                chunk_index=chunk.chunk_index,
                similarity=similarity,
            )
        )
    return results


def search_documents(
    query_text: str,
    *,
    embedder: BatchEmbedder,
    vector_index: VectorIndex,
    chunk_repository: ChunkRepository,
    document_repository: DocumentRepository,
    limit: int = 5,
    min_similarity: float = 0.7,
) -> list[SearchResult]:
    """Search for chunks relevant to the provided query text."""

    query_vector = embedder.embed_one(query_text)
    results = search_chunks(
        query_vector,
        vector_index=vector_index,
        chunk_repository=chunk_repository,
        document_repository=document_repository,
        top_k=limit,
        min_similarity=min_similarity,
    )
    logger.debug("Search %r returned %d chunks", query_text, len(results))
    return results


__all__ = ["search_chunks", "search_documents"]
