"""PDF extractor based on pypdf."""
from __future__ import annotations

import logging
from io import BytesIO
from pathlib import Path

from pypdf import PdfReader
from pypdf.errors import PyPdfError

from domain.errors import ExtractionFailed
from domain.interfaces import TextExtractor

logger = logging.getLogger(__name__)


class PdfExtractor(TextExtractor):
    """Concatenate the text layer of every page."""

    def extract(self, source: bytes | str) -> str:
        try:
            reader = PdfReader(BytesIO(source) if isinstance(source, bytes) else Path(source))
            pages = [page.extract_text() or "" for page in reader.pages]
        except (PyPdfError, OSError, ValueError) as exc:
            raise ExtractionFailed(f"Cannot read PDF: {exc}") from exc
        logger.debug("Extracted %d PDF pages", len(pages))
        return "\n".join(page.strip() for page in pages if page.strip())


__all__ = ["PdfExtractor"]
