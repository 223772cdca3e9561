"""Локальные эмбеддинги на базе sentence-transformers."""
from __future__ import annotations

import logging
from typing import Sequence

from sentence_transformers import SentenceTransformer

from domain.errors import InvalidConfig
from domain.interfaces import EmbeddingModel

logger = logging.getLogger(__name__)


class SentenceTransformersEmbedder(EmbeddingModel):
    """Runs a sentence-transformers model in-process.

    ``expected_dimension`` guards against pointing an existing index at a
    model of a different width; the check runs once when the model loads.
    """

    def __init__(
        self,
        model_name: str,
        *,
        device: str = "cpu",
        expected_dimension: int | None = None,
        query_prefix: str = "",
        passage_prefix: str = "",
    ) -> None:
        logger.info("Загрузка модели sentence-transformers: %s", model_name)
        self._model_name = model_name
        self._model = SentenceTransformer(model_name, device=device)
        self._dimension = int(self._model.get_sentence_embedding_dimension())
        if expected_dimension is not None and expected_dimension != self._dimension:
            raise InvalidConfig(
                f"Model {model_name} produces {self._dimension}-dimensional vectors, "
                f"the index expects {expected_dimension}."
            )
        self._query_prefix = query_prefix
        self._passage_prefix = passage_prefix

    @property
    def model_id(self) -> str:
        return self._model_name

    @property
    def dimension(self) -> int:
        return self._dimension

    def _encode(self, texts: list[str]) -> list[list[float]]:
        embeddings = self._model.encode(
            texts,
            batch_size=len(texts) or 1,
            normalize_embeddings=True,
            show_progress_bar=False,
        )
        return embeddings.tolist()

    def embed_texts(self, texts: Sequence[str]) -> list[list[float]]:
        logger.debug("Кодирование %d чанков моделью %s", len(texts), self._model_name)
        return self._encode([f"{self._passage_prefix}{text}" for text in texts])

    def embed_query(self, text: str) -> list[float]:
        return self._encode([f"{self._query_prefix}{text}"])[0]


__all__ = ["SentenceTransformersEmbedder"]
