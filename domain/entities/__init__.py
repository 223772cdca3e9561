"""Domain entities for the DocChat system."""
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Literal

SourceKind = Literal["file", "url"]
Role = Literal["user", "assistant", "system"]

ROLES: tuple[str, ...] = ("user", "assistant", "system")


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(slots=True)
class Document:
    """An ingested document together with its extracted text."""

    id: str
    filename: str
    source_kind: SourceKind = "file"
    file_type: str = "txt"
    file_size: int = 0
    content: str = ""
    metadata: dict[str, Any] = field(default_factory=dict)
    created_at: datetime = field(default_factory=utc_now)


@dataclass(slots=True)
class Chunk:
    """A chunk of a larger document used for retrieval."""

    id: str
    document_id: str
    chunk_index: int
    text: str
    metadata: dict[str, Any] = field(default_factory=dict)
    created_at: datetime = field(default_factory=utc_now)


@dataclass(slots=True)
class Conversation:
    id: str
    title: str | None = None
    created_at: datetime = field(default_factory=utc_now)
    updated_at: datetime = field(default_factory=utc_now)


@dataclass(slots=True)
class Message:
    """A single immutable turn fragment inside a conversation."""

    id: str
    conversation_id: str
    role: Role
    content: str
    metadata: dict[str, Any] | None = None
    created_at: datetime = field(default_factory=utc_now)


@dataclass(slots=True)
class SearchResult:
    """A chunk matched by vector search, with its provenance."""

    chunk_id: str
    content: str
    document_id: str
    filename: str
    chunk_index: int
    similarity: float


@dataclass(slots=True)
class RagSource:
    """What the end user sees of a retrieved chunk."""

    filename: str
    preview: str
    similarity: float
    chunk_index: int


@dataclass(slots=True)
class TurnContext:
    """A model-ready request assembled for one chat turn."""

    system_prompt: str
    history: list[dict[str, str]]
    current_message: str
    rag_sources: list[RagSource] = field(default_factory=list)
    tools: list[dict[str, Any]] = field(default_factory=list)


@dataclass(slots=True)
class ChatReply:
    content: str
    conversation_id: str
    sources: dict[str, list[RagSource]] = field(default_factory=dict)


__all__ = [
    "ROLES",
    "Role",
    "SourceKind",
    "Document",
    "Chunk",
    "Conversation",
    "Message",
    "SearchResult",
    "RagSource",
    "TurnContext",
    "ChatReply",
    "utc_now",
]
