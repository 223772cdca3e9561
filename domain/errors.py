"""Error hierarchy shared by every layer of DocChat."""
from __future__ import annotations

from enum import Enum


class DocChatError(Exception):
    """Base class for all domain errors."""


class InvalidConfig(DocChatError):
    """Raised for bad chunking, search or embedding parameters."""


class ExtractionFailed(DocChatError):
    """Raised when a text extractor cannot turn a source into text."""


class EmbeddingUnavailable(DocChatError):
    """Raised when the embedding model errors or returns malformed vectors."""


class NotFound(DocChatError):
    """Raised when an operation requires an entity that does not exist."""


class StoreFailure(DocChatError):
    """Raised when the persistence layer fails."""


class GenerationFailureKind(str, Enum):
    MODEL_NOT_FOUND = "model_not_found"
    PERMISSION_DENIED = "permission_denied"
    QUOTA_EXCEEDED = "quota_exceeded"
    UNKNOWN = "unknown"


_USER_MESSAGES: dict[GenerationFailureKind, str] = {
    GenerationFailureKind.MODEL_NOT_FOUND: "The configured generation model was not found.",
    GenerationFailureKind.PERMISSION_DENIED: "Access to the generation model was denied. Check the API credentials.",
    GenerationFailureKind.QUOTA_EXCEEDED: "The generation quota has been exceeded. Try again later.",
    GenerationFailureKind.UNKNOWN: "The assistant could not generate a response.",
}


class GenerationFailed(DocChatError):
    """Raised when the generation capability fails, tagged with its cause."""

    def __init__(self, kind: GenerationFailureKind = GenerationFailureKind.UNKNOWN, detail: str = "") -> None:
        self.kind = kind
        self.detail = detail
        message = self.user_message if not detail else f"{self.user_message} ({detail})"
        super().__init__(message)

    @property
    def user_message(self) -> str:
        return _USER_MESSAGES[self.kind]

    @property
    def retryable(self) -> bool:
        return self.kind in (GenerationFailureKind.QUOTA_EXCEEDED, GenerationFailureKind.UNKNOWN)


__all__ = [
    "DocChatError",
    "InvalidConfig",
    "ExtractionFailed",
    "EmbeddingUnavailable",
    "GenerationFailed",
    "GenerationFailureKind",
    "NotFound",
    "StoreFailure",
]
