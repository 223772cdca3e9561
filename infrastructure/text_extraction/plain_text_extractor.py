"""Text extractor that treats the payload as plain UTF-8 text."""
from __future__ import annotations

from domain.errors import ExtractionFailed
from domain.interfaces import TextExtractor


class PlainTextExtractor(TextExtractor):
    """Simple extractor for already-clean text blobs."""

    def __init__(self, *, strict: bool = False) -> None:
        self._errors = "strict" if strict else "replace"

    def extract(self, source: bytes | str) -> str:
        if isinstance(source, str):
            return source
        try:
            return source.decode("utf-8", errors=self._errors)
        except UnicodeDecodeError as exc:
            raise ExtractionFailed(f"Payload is not valid UTF-8: {exc}") from exc


__all__ = ["PlainTextExtractor"]
