"""SQLite-репозиторий для сообщений разговоров."""
from __future__ import annotations

import json

from domain.entities import Message
from domain.interfaces import MessageRepository
from infrastructure.repositories.sqlite_database import SqliteDatabase, from_iso, to_iso


class SqliteMessageRepository(MessageRepository):
    """Хранит сообщения; порядок задаётся временем создания и порядком вставки."""

    def __init__(self, database: SqliteDatabase) -> None:
        self._database = database
        self._ensure_schema()

    def _ensure_schema(self) -> None:
        with self._database.connection() as conn:
            conn.execute(
                """
                CREATE TABLE IF NOT EXISTS messages (
                    seq INTEGER PRIMARY KEY AUTOINCREMENT,
                    id TEXT NOT NULL UNIQUE,
                    conversation_id TEXT NOT NULL REFERENCES conversations(id) ON DELETE CASCADE,
                    role TEXT NOT NULL CHECK (role IN ('user', 'assistant', 'system')),
                    content TEXT NOT NULL,
                    metadata TEXT,
                    created_at TEXT NOT NULL
                )
                """
            )
            conn.execute(
                "CREATE INDEX IF NOT EXISTS idx_messages_conversation_id ON messages (conversation_id)"
            )

    def add(self, message: Message) -> None:
        with self._database.connection() as conn:
            conn.execute(
                """
                INSERT INTO messages (id, conversation_id, role, content, metadata, created_at)
                VALUES (?, ?, ?, ?, ?, ?)
                """,
                (
                    message.id,
                    message.conversation_id,
                    message.role,
                    message.content,
                    json.dumps(message.metadata) if message.metadata is not None else None,
                    to_iso(message.created_at),
                ),
            )

    def list_for_conversation(self, conversation_id: str) -> list[Message]:
        with self._database.connection() as conn:
            rows = conn.execute(
                """
                SELECT id, conversation_id, role, content, metadata, created_at
                FROM messages WHERE conversation_id = ?
                ORDER BY seq
                """,
                (conversation_id,),
            ).fetchall()
        return [
            Message(
                id=row[0],
                conversation_id=row[1],
                role=row[2],
                content=row[3],
                metadata=json.loads(row[4]) if row[4] is not None else None,
                created_at=from_iso(row[5]),
            )
            for row in rows
        ]


__all__ = ["SqliteMessageRepository"]
