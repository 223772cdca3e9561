"""HTML extractor that drops page chrome and normalises whitespace."""
from __future__ import annotations

import re
from html.parser import HTMLParser

from domain.interfaces import TextExtractor

_SKIPPED_TAGS = frozenset({"script", "style", "nav", "footer", "header", "aside", "noscript"})
_CONTENT_TAGS = ("main", "article")
_VOID_TAGS = frozenset({"area", "base", "br", "col", "embed", "hr", "img", "input", "link", "meta", "source", "track", "wbr"})
_WHITESPACE_RE = re.compile(r"\s+")


class _CollectingParser(HTMLParser):
    def __init__(self) -> None:
        super().__init__()
        self._skip_depth = 0
        self._open_content: dict[str, int] = {tag: 0 for tag in _CONTENT_TAGS}
        self.parts: dict[str, list[str]] = {tag: [] for tag in (*_CONTENT_TAGS, "body")}

    def handle_starttag(self, tag: str, attrs) -> None:
        if tag in _VOID_TAGS:
            return
        if tag in _SKIPPED_TAGS:
            self._skip_depth += 1
        elif tag in self._open_content:
            self._open_content[tag] += 1

    def handle_endtag(self, tag: str) -> None:
        if tag in _SKIPPED_TAGS and self._skip_depth:
            self._skip_depth -= 1
        elif tag in self._open_content and self._open_content[tag]:
            self._open_content[tag] -= 1

    def handle_data(self, data: str) -> None:
        if self._skip_depth or not data.strip():
            return
        self.parts["body"].append(data)
        for tag, depth in self._open_content.items():
            if depth:
                self.parts[tag].append(data)


class HtmlExtractor(TextExtractor):
    """Extract readable text, preferring ``<main>`` then ``<article>`` content."""

    def extract(self, source: bytes | str) -> str:
        if isinstance(source, bytes):
            raw = source.decode("utf-8", errors="ignore")
        else:
            raw = source
        parser = _CollectingParser()
        parser.feed(raw)
        parser.close()
        for tag in (*_CONTENT_TAGS, "body"):
            text = _WHITESPACE_RE.sub(" ", " ".join(parser.parts[tag])).strip()
            if text:
                return text
        return ""


__all__ = ["HtmlExtractor"]
