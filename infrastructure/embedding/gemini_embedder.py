"""Embedding model backed by the Gemini REST API."""
from __future__ import annotations

import logging
from typing import Sequence

import requests

from domain.errors import EmbeddingUnavailable
from domain.interfaces import EmbeddingModel

logger = logging.getLogger(__name__)

GEMINI_API_URL = "https://generativelanguage.googleapis.com/v1beta"


class GeminiEmbeddingModel(EmbeddingModel):
    """Calls ``embedContent`` / ``batchEmbedContents`` for ``text-embedding-004``."""

    def __init__(
        self,
        api_key: str,
        *,
        model: str = "text-embedding-004",
        dimension: int = 768,
        api_url: str = GEMINI_API_URL,
        timeout: float = 60.0,
    ) -> None:
        if not api_key:
            raise EmbeddingUnavailable("Missing Gemini API key.")
        self._api_key = api_key
        self._model = model
        self._dimension = dimension
        self._api_url = api_url.rstrip("/")
        self._timeout = timeout

    @property
    def model_id(self) -> str:
        return self._model

    @property
    def dimension(self) -> int:
        return self._dimension

    def embed_texts(self, texts: Sequence[str]) -> list[list[float]]:
        if not texts:
            return []
        payload = {
            "requests": [
                {"model": f"models/{self._model}", "content": {"parts": [{"text": text}]}}
                for text in texts
            ]
        }
        data = self._post("batchEmbedContents", payload)
        embeddings = data.get("embeddings") or []
        return [list(item.get("values") or []) for item in embeddings]

    def embed_query(self, text: str) -> list[float]:
        payload = {"model": f"models/{self._model}", "content": {"parts": [{"text": text}]}}
        data = self._post("embedContent", payload)
        return list((data.get("embedding") or {}).get("values") or [])

    def _post(self, method: str, payload: dict) -> dict:
        url = f"{self._api_url}/models/{self._model}:{method}"
        try:
            response = requests.post(
                url,
                params={"key": self._api_key},
                json=payload,
                timeout=self._timeout,
            )
            response.raise_for_status()
            return response.json()
        except requests.RequestException as exc:
            logger.warning("Gemini embedding request %s failed: %s", method, exc)
            raise EmbeddingUnavailable(f"Gemini embedding request failed: {exc}") from exc
        except ValueError as exc:
            raise EmbeddingUnavailable("Gemini returned a malformed embedding response.") from exc


__all__ = ["GeminiEmbeddingModel", "GEMINI_API_URL"]
