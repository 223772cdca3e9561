from infrastructure.repositories.sqlite_chunk_repository import SqliteChunkRepository
from infrastructure.repositories.sqlite_conversation_repository import SqliteConversationRepository
from infrastructure.repositories.sqlite_database import SqliteDatabase, connect_store
from infrastructure.repositories.sqlite_document_repository import SqliteDocumentRepository
from infrastructure.repositories.sqlite_message_repository import SqliteMessageRepository

__all__ = [
    "SqliteChunkRepository",
    "SqliteConversationRepository",
    "SqliteDatabase",
    "SqliteDocumentRepository",
    "SqliteMessageRepository",
    "connect_store",
]
