"""SQLite-репозиторий для разговоров."""
from __future__ import annotations

from datetime import datetime

from domain.entities import Conversation
from domain.interfaces import ConversationRepository
from infrastructure.repositories.sqlite_database import SqliteDatabase, from_iso, to_iso


class SqliteConversationRepository(ConversationRepository):
    """Хранит разговоры; сообщения удаляются каскадно."""

    def __init__(self, database: SqliteDatabase) -> None:
        self._database = database
        self._ensure_schema()

    def _ensure_schema(self) -> None:
        with self._database.connection() as conn:
            conn.execute(
                """
                CREATE TABLE IF NOT EXISTS conversations (
                    seq INTEGER PRIMARY KEY AUTOINCREMENT,
                    id TEXT NOT NULL UNIQUE,
                    title TEXT,
                    created_at TEXT NOT NULL,
                    updated_at TEXT NOT NULL
                )
                """
            )

    def add(self, conversation: Conversation) -> None:
        with self._database.connection() as conn:
            conn.execute(
                """
                INSERT INTO conversations (id, title, created_at, updated_at)
                VALUES (?, ?, ?, ?)
                """,
                (
                    conversation.id,
                    conversation.title,
                    to_iso(conversation.created_at),
                    to_iso(conversation.updated_at),
                ),
            )

    def get(self, conversation_id: str) -> Conversation | None:
        with self._database.connection() as conn:
            row = conn.execute(
                "SELECT id, title, created_at, updated_at FROM conversations WHERE id = ?",
                (conversation_id,),
            ).fetchone()
        if row is None:
            return None
        return self._to_conversation(row)

    def list(self) -> list[Conversation]:
        with self._database.connection() as conn:
            rows = conn.execute(
                "SELECT id, title, created_at, updated_at FROM conversations ORDER BY updated_at DESC, seq DESC"
            ).fetchall()
        return [self._to_conversation(row) for row in rows]

    def touch(self, conversation_id: str, updated_at: datetime) -> bool:
        with self._database.connection() as conn:
            cursor = conn.execute(
                "UPDATE conversations SET updated_at = ? WHERE id = ?",
                (to_iso(updated_at), conversation_id),
            )
        return cursor.rowcount > 0

    def delete(self, conversation_id: str) -> bool:
        with self._database.connection() as conn:
            cursor = conn.execute("DELETE FROM conversations WHERE id = ?", (conversation_id,))
        return cursor.rowcount > 0

    @staticmethod
    def _to_conversation(row: tuple) -> Conversation:
        return Conversation(
            id=row[0],
            title=row[1],
            created_at=from_iso(row[2]),
            updated_at=from_iso(row[3]),
        )


__all__ = ["SqliteConversationRepository"]
