"""Персистентный векторный индекс в SQLite с точным косинусным поиском."""
from __future__ import annotations

from typing import Sequence

import numpy as np

from domain.errors import InvalidConfig
from domain.interfaces import VectorIndex
from infrastructure.repositories.sqlite_database import SqliteDatabase


def validate_search_params(top_k: int, min_similarity: float) -> None:
    if top_k < 1:
        raise InvalidConfig(f"top_k must be at least 1, got {top_k}.")
    if not -1.0 <= min_similarity <= 1.0:
        raise InvalidConfig(f"min_similarity must lie in [-1, 1], got {min_similarity}.")


def rank_by_cosine(
    query_vector: np.ndarray,
    chunk_ids: Sequence[str],
    matrix: np.ndarray,
    order_keys: Sequence[int],
    *,
    top_k: int,
    min_similarity: float,
) -> list[tuple[str, float]]:
    """Score rows of ``matrix`` against the query and keep the best ``top_k``.

    Rows are sorted by descending similarity; equal scores keep the
    ascending ``order_keys`` (chunk creation order). Zero vectors score 0.
    """
    if not chunk_ids:
        return []
    query_norm = float(np.linalg.norm(query_vector))
    norms = np.linalg.norm(matrix, axis=1)
    denominators = norms * query_norm
    dots = matrix @ query_vector
    similarities = np.divide(dots, denominators, out=np.zeros_like(dots), where=denominators > 0)
    similarities = np.clip(similarities, -1.0, 1.0)

    keep = np.flatnonzero(similarities > min_similarity)
    if keep.size == 0:
        return []
    keys = np.asarray(order_keys, dtype=np.int64)[keep]
    ordered = keep[np.lexsort((keys, -similarities[keep]))][:top_k]
    return [(chunk_ids[i], float(similarities[i])) for i in ordered]


class SqliteVectorIndex(VectorIndex):
    """Хранит эмбеддинги чанков в SQLite и ищет перебором через numpy."""

    def __init__(self, database: SqliteDatabase, *, dimension: int) -> None:
        if dimension < 1:
            raise InvalidConfig(f"Vector dimension must be positive, got {dimension}.")
        self._database = database
        self._dimension = dimension
        self._ensure_schema()

    @property
    def dimension(self) -> int:
        return self._dimension

    def _ensure_schema(self) -> None:
        with self._database.connection() as conn:
            conn.execute(
                """
                CREATE TABLE IF NOT EXISTS chunk_embeddings (
                    chunk_id TEXT PRIMARY KEY REFERENCES chunks(id) ON DELETE CASCADE,
                    dimension INTEGER NOT NULL,
                    vector BLOB NOT NULL
                )
                """
            )

    def upsert(self, chunk_id: str, vector: Sequence[float]) -> None:
        self.upsert_many([chunk_id], [vector])

    def upsert_many(self, chunk_ids: Sequence[str], vectors: Sequence[Sequence[float]]) -> None:
        if len(chunk_ids) != len(vectors):
            raise InvalidConfig(f"Got {len(chunk_ids)} chunk ids for {len(vectors)} vectors.")
        if not chunk_ids:
            return
        rows = [
            (chunk_id, self._dimension, self._as_array(vector).tobytes())
            for chunk_id, vector in zip(chunk_ids, vectors)
        ]
        with self._database.connection() as conn:
            conn.executemany(
                """
                INSERT OR REPLACE INTO chunk_embeddings (chunk_id, dimension, vector)
                VALUES (?, ?, ?)
                """,
                rows,
            )

    def search(
        self,
        query_vector: Sequence[float],
        top_k: int = 5,
        min_similarity: float = 0.6,
    ) -> list[tuple[str, float]]:
        validate_search_params(top_k, min_similarity)
        query = self._as_array(query_vector)
        with self._database.connection() as conn:
            rows = conn.execute(
                """
                SELECT e.chunk_id, e.vector, c.seq
                FROM chunk_embeddings e JOIN chunks c ON c.id = e.chunk_id
                WHERE e.dimension = ?
                """,
                (self._dimension,),
            ).fetchall()
        return self._rank(query, rows, top_k=top_k, min_similarity=min_similarity)

    def rescore(
        self,
        query_vector: Sequence[float],
        chunk_ids: Sequence[str],
        *,
        top_k: int,
        min_similarity: float,
    ) -> list[tuple[str, float]]:
        """Rank only the given candidates, ignoring ids that are no longer stored."""
        validate_search_params(top_k, min_similarity)
        if not chunk_ids:
            return []
        query = self._as_array(query_vector)
        placeholders = ",".join("?" for _ in chunk_ids)
        with self._database.connection() as conn:
            rows = conn.execute(
                f"""
                SELECT e.chunk_id, e.vector, c.seq
                FROM chunk_embeddings e JOIN chunks c ON c.id = e.chunk_id
                WHERE e.dimension = ? AND e.chunk_id IN ({placeholders})
                """,
                (self._dimension, *chunk_ids),
            ).fetchall()
        return self._rank(query, rows, top_k=top_k, min_similarity=min_similarity)

    def remove_many(self, chunk_ids: Sequence[str]) -> None:
        if not chunk_ids:
            return
        with self._database.connection() as conn:
            conn.executemany(
                "DELETE FROM chunk_embeddings WHERE chunk_id = ?",
                [(chunk_id,) for chunk_id in chunk_ids],
            )

    def all_vectors(self) -> list[tuple[str, np.ndarray]]:
        with self._database.connection() as conn:
            rows = conn.execute(
                """
                SELECT e.chunk_id, e.vector
                FROM chunk_embeddings e JOIN chunks c ON c.id = e.chunk_id
                WHERE e.dimension = ?
                ORDER BY c.seq
                """,
                (self._dimension,),
            ).fetchall()
        return [(row[0], np.frombuffer(row[1], dtype=np.float64)) for row in rows]

    def count(self) -> int:
        with self._database.connection() as conn:
            row = conn.execute(
                "SELECT COUNT(*) FROM chunk_embeddings WHERE dimension = ?",
                (self._dimension,),
            ).fetchone()
        return int(row[0]) if row is not None else 0

    def _rank(self, query: np.ndarray, rows: list[tuple], *, top_k: int, min_similarity: float) -> list[tuple[str, float]]:
        if not rows:
            return []
        chunk_ids = [row[0] for row in rows]
        matrix = np.vstack([np.frombuffer(row[1], dtype=np.float64) for row in rows])
        seqs = [int(row[2]) for row in rows]
        return rank_by_cosine(query, chunk_ids, matrix, seqs, top_k=top_k, min_similarity=min_similarity)

    def _as_array(self, vector: Sequence[float]) -> np.ndarray:
        array = np.asarray(vector, dtype=np.float64)
        if array.ndim != 1 or array.shape[0] != self._dimension:
            raise InvalidConfig(
                f"Vector dimension mismatch: expected {self._dimension}, got {array.shape}."
            )
        return array


__all__ = ["SqliteVectorIndex", "rank_by_cosine", "validate_search_params"]
