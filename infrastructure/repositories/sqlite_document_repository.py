"""SQLite-репозиторий для хранения документов."""
from __future__ import annotations

import json
import sqlite3
import uuid

from domain.entities import Document
from domain.interfaces import DocumentRepository
from infrastructure.repositories.sqlite_database import SqliteDatabase, from_iso, to_iso

_COLUMNS = "id, filename, source_kind, file_type, file_size, content, metadata, created_at"


class SqliteDocumentRepository(DocumentRepository):
    """Хранит документы в общей SQLite-базе."""

    def __init__(self, database: SqliteDatabase) -> None:
        self._database = database
        self._ensure_schema()

    def _ensure_schema(self) -> None:
        with self._database.connection() as conn:
            conn.execute(
                """
                CREATE TABLE IF NOT EXISTS schema_version (
                    id INTEGER PRIMARY KEY CHECK (id = 1),
                    version INTEGER NOT NULL
                )
                """
            )
            conn.execute(
                """
                INSERT OR IGNORE INTO schema_version (id, version) VALUES (1, 1)
                """
            )
            conn.execute(
                """
                CREATE TABLE IF NOT EXISTS documents (
                    seq INTEGER PRIMARY KEY AUTOINCREMENT,
                    id TEXT NOT NULL UNIQUE,
                    filename TEXT NOT NULL,
                    source_kind TEXT NOT NULL,
                    file_type TEXT NOT NULL,
                    file_size INTEGER NOT NULL DEFAULT 0,
                    content TEXT NOT NULL,
                    metadata TEXT NOT NULL,
                    created_at TEXT NOT NULL
                )
                """
            )

    def add(self, document: Document) -> None:
        if not document.id:
            document.id = str(uuid.uuid4())
        with self._database.connection() as conn:
            conn.execute(
                f"""
                INSERT INTO documents ({_COLUMNS})
                VALUES (?, ?, ?, ?, ?, ?, ?, ?)
                """,
                (
                    document.id,
                    document.filename,
                    document.source_kind,
                    document.file_type,
                    document.file_size,
                    document.content,
                    json.dumps(document.metadata),
                    to_iso(document.created_at),
                ),
            )

    def list(self) -> list[Document]:
        with self._database.connection() as conn:
            rows = conn.execute(f"SELECT {_COLUMNS} FROM documents ORDER BY created_at, seq").fetchall()
        return [self._to_document(row) for row in rows]

    def get(self, document_id: str) -> Document | None:
        with self._database.connection() as conn:
            row = conn.execute(f"SELECT {_COLUMNS} FROM documents WHERE id = ?", (document_id,)).fetchone()
        if row is None:
            return None
        return self._to_document(row)

    def delete(self, document_id: str) -> bool:
        with self._database.connection() as conn:
            cursor = conn.execute("DELETE FROM documents WHERE id = ?", (document_id,))
        return cursor.rowcount > 0

    @staticmethod
    def _to_document(row: sqlite3.Row | tuple) -> Document:
        return Document(
            id=row[0],
            filename=row[1],
            source_kind=row[2],
            file_type=row[3],
            file_size=int(row[4]),
            content=row[5] or "",
            metadata=json.loads(row[6]),
            created_at=from_iso(row[7]),
        )


__all__ = ["SqliteDocumentRepository"]
