"""ANN-ускоритель на базе hnswlib поверх SQLite-индекса."""
from __future__ import annotations

import logging
import threading
from typing import Sequence

import hnswlib
import numpy as np

from domain.interfaces import VectorIndex
from infrastructure.storage.sqlite_vector_index import SqliteVectorIndex, validate_search_params

logger = logging.getLogger(__name__)


class HnswVectorIndex(VectorIndex):
    """Uses an in-memory HNSW graph for candidates and SQLite for exact scores.

    The graph is only a candidate generator: every candidate is re-scored
    from the persisted vectors, so the threshold, order and tie-breaking
    match :class:`SqliteVectorIndex`. Removed chunks are marked deleted in
    the graph. Entries that vanished from the store some other way (a
    cascade delete, a rolled back ingest) are skipped by the re-score, and
    the search widens its candidate set until ``top_k`` live hits are found,
    the remaining candidates fall below the threshold, or the graph is
    exhausted.
    """

    def __init__(
        self,
        store: SqliteVectorIndex,
        *,
        max_elements: int = 100_000,
        ef_construction: int = 200,
        M: int = 16,
        ef_search: int = 50,
        oversample: int = 4,
    ) -> None:
        self._store = store
        self._max_elements = max_elements
        self._ef_construction = ef_construction
        self._M = M
        self._ef_search = ef_search
        self._oversample = max(oversample, 1)
        self._lock = threading.Lock()
        self._labels: dict[str, int] = {}
        self._chunk_ids: dict[int, str] = {}
        # labels are never reused: hnswlib keeps deleted labels in the graph
        self._next_label = 0
        self._index = self._build_index()

    @property
    def dimension(self) -> int:
        return self._store.dimension

    def _build_index(self) -> hnswlib.Index:
        existing = self._store.all_vectors()
        index = hnswlib.Index(space="cosine", dim=self._store.dimension)
        index.init_index(
            max_elements=max(self._max_elements, len(existing) + 1),
            ef_construction=self._ef_construction,
            M=self._M,
        )
        index.set_ef(self._ef_search)
        if existing:
            logger.info("Загрузка HNSW индекса из %d сохранённых векторов", len(existing))
            self._add_to_graph(index, [chunk_id for chunk_id, _ in existing], [vector for _, vector in existing])
        return index

    def upsert(self, chunk_id: str, vector: Sequence[float]) -> None:
        self.upsert_many([chunk_id], [vector])

    def upsert_many(self, chunk_ids: Sequence[str], vectors: Sequence[Sequence[float]]) -> None:
        self._store.upsert_many(chunk_ids, vectors)
        if chunk_ids:
            self._add_to_graph(self._index, chunk_ids, vectors)

    def remove_many(self, chunk_ids: Sequence[str]) -> None:
        self._store.remove_many(chunk_ids)
        with self._lock:
            for chunk_id in chunk_ids:
                label = self._labels.pop(chunk_id, None)
                if label is None:
                    continue
                del self._chunk_ids[label]
                self._index.mark_deleted(label)

    def search(
        self,
        query_vector: Sequence[float],
        top_k: int = 5,
        min_similarity: float = 0.6,
    ) -> list[tuple[str, float]]:
        validate_search_params(top_k, min_similarity)
        vector = np.asarray([query_vector], dtype=np.float32)
        k = top_k * self._oversample
        while True:
            with self._lock:
                live = len(self._chunk_ids)
                if live == 0:
                    return []
                k = min(k, live)
                self._index.set_ef(max(self._ef_search, k))
                labels, distances = self._index.knn_query(vector, k=k)
                candidates = [self._chunk_ids[int(label)] for label in labels[0] if int(label) in self._chunk_ids]
            hits = self._store.rescore(query_vector, candidates, top_k=top_k, min_similarity=min_similarity)
            if len(hits) >= top_k or k >= live:
                return hits
            # cosine distance is 1 - similarity; nothing further out can pass the threshold
            if 1.0 - float(distances[0][-1]) < min_similarity - 1e-6:
                return hits
            logger.debug("HNSW: %d live hits from %d candidates, widening search", len(hits), k)
            k *= 2

    def count(self) -> int:
        return self._store.count()

    def _add_to_graph(self, index: hnswlib.Index, chunk_ids: Sequence[str], vectors: Sequence[Sequence[float]]) -> None:
        with self._lock:
            labels: list[int] = []
            for chunk_id in chunk_ids:
                label = self._labels.get(chunk_id)
                if label is None:
                    label = self._next_label
                    self._next_label += 1
                    self._labels[chunk_id] = label
                    self._chunk_ids[label] = chunk_id
                labels.append(label)
            required = max(labels) + 1
            if required > index.get_max_elements():
                index.resize_index(max(required, index.get_max_elements() * 2))
            index.add_items(np.asarray(vectors, dtype=np.float32), labels)


__all__ = ["HnswVectorIndex"]
