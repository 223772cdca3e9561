"""Use case for ingesting a file or URL into the document store."""
from __future__ import annotations

import logging
from pathlib import PurePath
from typing import Mapping

from domain.errors import DocChatError, ExtractionFailed, InvalidConfig
from domain.interfaces import TextExtractor
from application.services.document_store import DocumentStore, IngestResult

logger = logging.getLogger(__name__)

_EXTENSION_KINDS: dict[str, str] = {
    ".pdf": "pdf",
    ".html": "html",
    ".htm": "html",
    ".txt": "txt",
    ".md": "txt",
}


def detect_kind(filename: str) -> str:
    """Guess the document kind of an uploaded file from its extension."""
    return _EXTENSION_KINDS.get(PurePath(filename).suffix.lower(), "txt")


def ingest_document(
    filename: str,
    kind: str,
    content: bytes | str,
    *,
    extractors: Mapping[str, TextExtractor],
    document_store: DocumentStore,
) -> IngestResult:
    """Extract text from ``content`` and ingest it.

    ``kind`` selects the extractor (``pdf``, ``txt``, ``html`` or ``url``).
    For ``url`` the content is the address to fetch; the document is then
    recorded with source kind ``url``.
    """

    extractor = extractors.get(kind)
    if extractor is None:
        available = ", ".join(sorted(extractors)) or "none"
        raise InvalidConfig(f"Unsupported document kind {kind!r}. Available: {available}.")

    try:
        text = extractor.extract(content)
    except DocChatError:
        raise
    except Exception as exc:
        logger.warning("Extraction of %s failed: %s", filename, exc)
        raise ExtractionFailed(f"Cannot extract text from {filename}: {exc}") from exc

    raw_size = len(content) if isinstance(content, bytes) else len(content.encode("utf-8"))
    return document_store.ingest(
        filename,
        "url" if kind == "url" else "file",
        text,
        file_type=kind,
        file_size=raw_size,
    )


__all__ = ["ingest_document", "detect_kind"]
