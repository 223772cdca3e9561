"""Chunk splitter that uses a sliding window snapped to sentence breaks."""
from __future__ import annotations

import uuid

from domain.entities import Chunk, Document
from domain.errors import InvalidConfig
from domain.interfaces import ChunkSplitter

DEFAULT_TARGET_SIZE = 1000
DEFAULT_OVERLAP = 200
_BREAK_CHARS = (".", "\n")


def split_into_chunks(
    text: str,
    target_size: int = DEFAULT_TARGET_SIZE,
    overlap: int = DEFAULT_OVERLAP,
) -> list[str]:
    """Split ``text`` into overlapping chunks of at most ``target_size`` characters.

    A window that stops before the end of the text is cut right after its
    last ``.`` or newline, provided that break lies past the middle of the
    window. The next window starts ``overlap`` characters before the end of
    the previous raw chunk. Chunks are stripped and empty ones dropped.
    """
    _validate(target_size, overlap)
    chunks: list[str] = []
    length = len(text)
    start = 0
    while start < length:
        end = min(start + target_size, length)
        chunk = text[start:end]
        if end < length:
            break_point = max(chunk.rfind(char) for char in _BREAK_CHARS)
            if break_point > target_size * 0.5:
                chunk = chunk[: break_point + 1]

        stripped = chunk.strip()
        if stripped:
            chunks.append(stripped)
        if end >= length:
            break
        # never move the cursor backwards or stall on a short chunk
        start = max(start + len(chunk) - overlap, start + 1)
    return chunks


def _validate(target_size: int, overlap: int) -> None:
    if target_size <= 0:
        raise InvalidConfig(f"target_size must be positive, got {target_size}.")
    if overlap < 0:
        raise InvalidConfig(f"overlap must not be negative, got {overlap}.")
    if overlap >= target_size:
        raise InvalidConfig(f"overlap ({overlap}) must be smaller than target_size ({target_size}).")


class SentenceWindowSplitter(ChunkSplitter):
    """Split documents into sentence-aware overlapping windows."""

    def __init__(self, target_size: int = DEFAULT_TARGET_SIZE, overlap: int = DEFAULT_OVERLAP) -> None:
        _validate(target_size, overlap)
        self.target_size = target_size
        self.overlap = overlap

    def split_text(self, text: str) -> list[str]:
        return split_into_chunks(text, self.target_size, self.overlap)

    def split(self, document: Document) -> list[Chunk]:
        return [
            Chunk(
                id=str(uuid.uuid4()),
                document_id=document.id,
                chunk_index=index,
                text=fragment,
                metadata={"char_count": len(fragment)},
            )
            for index, fragment in enumerate(self.split_text(document.content))
        ]


__all__ = ["SentenceWindowSplitter", "split_into_chunks", "DEFAULT_TARGET_SIZE", "DEFAULT_OVERLAP"]
