"""SQLite-репозиторий для чанков."""
from __future__ import annotations

import json
from typing import Sequence

from domain.entities import Chunk
from domain.interfaces import ChunkRepository
from infrastructure.repositories.sqlite_database import SqliteDatabase, from_iso, to_iso

_COLUMNS = "id, document_id, chunk_index, text, metadata, created_at"


class SqliteChunkRepository(ChunkRepository):
    """Хранит чанки в общей SQLite-базе; удаляются каскадно вместе с документом."""

    def __init__(self, database: SqliteDatabase) -> None:
        self._database = database
        self._ensure_schema()

    def _ensure_schema(self) -> None:
        with self._database.connection() as conn:
            conn.execute(
                """
                CREATE TABLE IF NOT EXISTS chunks (
                    seq INTEGER PRIMARY KEY AUTOINCREMENT,
                    id TEXT NOT NULL UNIQUE,
                    document_id TEXT NOT NULL REFERENCES documents(id) ON DELETE CASCADE,
                    chunk_index INTEGER NOT NULL,
                    text TEXT NOT NULL,
                    metadata TEXT NOT NULL,
                    created_at TEXT NOT NULL,
                    UNIQUE (document_id, chunk_index)
                )
                """
            )
            conn.execute("CREATE INDEX IF NOT EXISTS idx_chunks_document_id ON chunks (document_id)")

    def add_many(self, chunks: Sequence[Chunk]) -> None:
        if not chunks:
            return
        with self._database.connection() as conn:
            conn.executemany(
                f"""
                INSERT INTO chunks ({_COLUMNS})
                VALUES (?, ?, ?, ?, ?, ?)
                """,
                [
                    (
                        chunk.id,
                        chunk.document_id,
                        chunk.chunk_index,
                        chunk.text,
                        json.dumps(chunk.metadata),
                        to_iso(chunk.created_at),
                    )
                    for chunk in chunks
                ],
            )

    def get_many(self, chunk_ids: Sequence[str]) -> dict[str, Chunk]:
        if not chunk_ids:
            return {}
        placeholders = ",".join("?" for _ in chunk_ids)
        with self._database.connection() as conn:
            rows = conn.execute(
                f"SELECT {_COLUMNS} FROM chunks WHERE id IN ({placeholders})",
                tuple(chunk_ids),
            ).fetchall()
        chunks = (self._to_chunk(row) for row in rows)
        return {chunk.id: chunk for chunk in chunks}

    def list_for_document(self, document_id: str) -> list[Chunk]:
        with self._database.connection() as conn:
            rows = conn.execute(
                f"SELECT {_COLUMNS} FROM chunks WHERE document_id = ? ORDER BY chunk_index",
                (document_id,),
            ).fetchall()
        return [self._to_chunk(row) for row in rows]

    @staticmethod
    def _to_chunk(row: tuple) -> Chunk:
        return Chunk(
            id=row[0],
            document_id=row[1],
            chunk_index=int(row[2]),
            text=row[3],
            metadata=json.loads(row[4]),
            created_at=from_iso(row[5]),
        )


__all__ = ["SqliteChunkRepository"]
