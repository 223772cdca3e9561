"""Embedder that averages hashed word vectors (GloVe-like toy model)."""
from __future__ import annotations

import hashlib
import re
from collections import Counter
from typing import Sequence

import numpy as np

from domain.interfaces import EmbeddingModel

_WORD_RE = re.compile(r"\w+", re.UNICODE)


class MeanWordHashEmbedder(EmbeddingModel):
    """Produces deterministic vectors by hashing individual words.

    Each word seeds a Gaussian vector, so texts sharing words point in
    similar directions while unrelated texts are close to orthogonal.
    Useful offline and in tests; it has no notion of synonyms.
    """

    def __init__(self, dimension: int = 256) -> None:
        self._dimension = dimension
        self._model_id = f"hash-mean-word-{dimension}"
        self._cache: dict[str, np.ndarray] = {}

    @property
    def model_id(self) -> str:
        return self._model_id

    @property
    def dimension(self) -> int:
        return self._dimension

    def _word_vector(self, word: str) -> np.ndarray:
        vector = self._cache.get(word)
        if vector is None:
            digest = hashlib.sha256(word.encode("utf-8")).digest()
            rng = np.random.default_rng(int.from_bytes(digest[:8], "little"))
            vector = rng.standard_normal(self._dimension)
            self._cache[word] = vector
        return vector

    def _combine(self, text: str) -> list[float]:
        counts = Counter(word.lower() for word in _WORD_RE.findall(text))
        if not counts:
            return [0.0] * self._dimension
        vector = np.zeros(self._dimension)
        total = sum(counts.values())
        for word, count in counts.items():
            vector += self._word_vector(word) * count / total
        norm = float(np.linalg.norm(vector)) or 1.0
        return (vector / norm).tolist()

    def embed_texts(self, texts: Sequence[str]) -> list[list[float]]:
        return [self._combine(text) for text in texts]

    def embed_query(self, text: str) -> list[float]:
        return self._combine(text)


__all__ = ["MeanWordHashEmbedder"]
