"""Abstract interfaces for the DocChat system."""
from __future__ import annotations

from abc import ABC, abstractmethod
from contextlib import AbstractContextManager
from typing import Any, Sequence

from domain.entities import Chunk, Conversation, Document, Message


class TextExtractor(ABC):
    """Extracts text from user provided sources (files, URLs, etc.)."""

    @abstractmethod
    def extract(self, source: bytes | str) -> str:
        """Return the textual representation of a source."""


class ChunkSplitter(ABC):
    """Splits documents into chunks for retrieval."""

    @abstractmethod
    def split_text(self, text: str) -> list[str]:
        """Return the ordered, non-empty chunk texts for raw text."""

    @abstractmethod
    def split(self, document: Document) -> list[Chunk]:
        """Return chunks for the provided document."""


class EmbeddingModel(ABC):
    """Turns text (documents or queries) into vector embeddings."""

    @property
    @abstractmethod
    def model_id(self) -> str:
        """Return the stable identifier for this embedding model."""

    @property
    @abstractmethod
    def dimension(self) -> int:
        """Return the embedding dimension for this model."""

    @abstractmethod
    def embed_texts(self, texts: Sequence[str]) -> list[list[float]]:
        """Embed a sequence of texts into dense vectors."""

    @abstractmethod
    def embed_query(self, text: str) -> list[float]:
        """Embed a user query for retrieval."""


class TextGenerator(ABC):
    """Produces a complete response for a composed chat request."""

    @property
    @abstractmethod
    def supports_tools(self) -> bool:
        """Whether the backend honours tool declarations such as web search."""

    @abstractmethod
    def generate(
        self,
        system_prompt: str,
        history: Sequence[dict[str, str]],
        current_message: str,
        tools: Sequence[dict[str, Any]] | None = None,
    ) -> str:
        """Return the full response text or raise ``GenerationFailed``."""


class TransactionManager(ABC):
    """Groups repository writes into one atomic unit."""

    @abstractmethod
    def transaction(self) -> AbstractContextManager[Any]:
        """Return a context manager that commits on success and rolls back on error."""


class VectorIndex(ABC):
    """Persists chunk embeddings and provides cosine similarity search."""

    @property
    @abstractmethod
    def dimension(self) -> int:
        """Return the dimension every stored vector must have."""

    @abstractmethod
    def upsert(self, chunk_id: str, vector: Sequence[float]) -> None:
        """Store or replace the embedding of a chunk."""

    @abstractmethod
    def upsert_many(self, chunk_ids: Sequence[str], vectors: Sequence[Sequence[float]]) -> None:
        """Store or replace the embeddings of several chunks."""

    @abstractmethod
    def remove_many(self, chunk_ids: Sequence[str]) -> None:
        """Forget the embeddings of several chunks; unknown ids are ignored."""

    @abstractmethod
    def search(
        self,
        query_vector: Sequence[float],
        top_k: int = 5,
        min_similarity: float = 0.6,
    ) -> list[tuple[str, float]]:
        """Return ``(chunk_id, similarity)`` pairs, best first."""

    @abstractmethod
    def count(self) -> int:
        """Return the number of stored vectors."""


class DocumentRepository(ABC):
    """Persists documents."""

    @abstractmethod
    def add(self, document: Document) -> None:
        """Store a document record."""

    @abstractmethod
    def list(self) -> list[Document]:
        """Return all stored documents, oldest first."""

    @abstractmethod
    def get(self, document_id: str) -> Document | None:
        """Retrieve a document by id."""

    @abstractmethod
    def delete(self, document_id: str) -> bool:
        """Delete a document; return whether a row was removed."""


class ChunkRepository(ABC):
    """Persists chunk metadata and content."""

    @abstractmethod
    def add_many(self, chunks: Sequence[Chunk]) -> None:
        """Store several chunks."""

    @abstractmethod
    def get_many(self, chunk_ids: Sequence[str]) -> dict[str, Chunk]:
        """Return the existing chunks among the ids, keyed by id."""

    @abstractmethod
    def list_for_document(self, document_id: str) -> list[Chunk]:
        """Return a document's chunks ordered by chunk index."""


class ConversationRepository(ABC):
    """Persists conversations."""

    @abstractmethod
    def add(self, conversation: Conversation) -> None:
        """Store a conversation."""

    @abstractmethod
    def get(self, conversation_id: str) -> Conversation | None:
        """Retrieve a conversation by id."""

    @abstractmethod
    def list(self) -> list[Conversation]:
        """Return conversations, most recently updated first."""

    @abstractmethod
    def touch(self, conversation_id: str, updated_at: Any) -> bool:
        """Set ``updated_at``; return whether the conversation exists."""

    @abstractmethod
    def delete(self, conversation_id: str) -> bool:
        """Delete a conversation; return whether a row was removed."""


class MessageRepository(ABC):
    """Persists conversation messages."""

    @abstractmethod
    def add(self, message: Message) -> None:
        """Store a message."""

    @abstractmethod
    def list_for_conversation(self, conversation_id: str) -> list[Message]:
        """Return the messages of a conversation in creation order."""


__all__ = [
    "TextExtractor",
    "ChunkSplitter",
    "EmbeddingModel",
    "TextGenerator",
    "TransactionManager",
    "VectorIndex",
    "DocumentRepository",
    "ChunkRepository",
    "ConversationRepository",
    "MessageRepository",
]
