"""Extractor that downloads a web page and strips it to text."""
from __future__ import annotations

import logging

import requests

from domain.errors import ExtractionFailed
from domain.interfaces import TextExtractor
from infrastructure.text_extraction.html_extractor import HtmlExtractor

logger = logging.getLogger(__name__)


class UrlExtractor(TextExtractor):
    """Fetch ``source`` as a URL and delegate the markup to :class:`HtmlExtractor`."""

    def __init__(self, html_extractor: HtmlExtractor | None = None, *, timeout: float = 30.0) -> None:
        self._html_extractor = html_extractor or HtmlExtractor()
        self._timeout = timeout

    def extract(self, source: bytes | str) -> str:
        url = source.decode("utf-8").strip() if isinstance(source, bytes) else source.strip()
        if not url.startswith(("http://", "https://")):
            raise ExtractionFailed(f"Not an HTTP(S) URL: {url!r}")
        try:
            response = requests.get(url, timeout=self._timeout)
            response.raise_for_status()
        except requests.RequestException as exc:
            logger.warning("Fetching %s failed: %s", url, exc)
            raise ExtractionFailed(f"Cannot fetch {url}: {exc}") from exc
        return self._html_extractor.extract(response.text)


__all__ = ["UrlExtractor"]
