"""Ordering and batching policy around an embedding model."""
from __future__ import annotations

import logging
import math
from concurrent.futures import ThreadPoolExecutor, as_completed
from typing import Sequence

from domain.errors import DocChatError, EmbeddingUnavailable, InvalidConfig
from domain.interfaces import EmbeddingModel

logger = logging.getLogger(__name__)


class BatchEmbedder:
    """Embed texts through an :class:`EmbeddingModel` in bounded concurrent sub-batches.

    The input is cut into consecutive sub-batches of ``batch_size`` texts;
    at most ``max_concurrency`` of them are in flight at once. Results are
    written back by sub-batch offset, so the output is index-aligned with the
    input whatever order the sub-batches finish in.
    """

    def __init__(self, model: EmbeddingModel, *, batch_size: int = 5, max_concurrency: int = 5) -> None:
        if batch_size < 1:
            raise InvalidConfig(f"batch_size must be at least 1, got {batch_size}.")
        if max_concurrency < 1:
            raise InvalidConfig(f"max_concurrency must be at least 1, got {max_concurrency}.")
        self._model = model
        self._batch_size = batch_size
        self._max_concurrency = max_concurrency

    @property
    def dimension(self) -> int:
        return self._model.dimension

    @property
    def model_id(self) -> str:
        return self._model.model_id

    def embed_one(self, text: str) -> list[float]:
        try:
            vector = self._model.embed_query(text)
        except DocChatError as exc:
            raise EmbeddingUnavailable(str(exc)) from exc
        except Exception as exc:
            raise EmbeddingUnavailable(f"Embedding model {self.model_id} failed: {exc}") from exc
        return self._check_vector(vector)

    def embed_batch(self, texts: Sequence[str]) -> list[list[float]]:
        if not texts:
            return []
        offsets = range(0, len(texts), self._batch_size)
        results: list[list[float]] = [[] for _ in texts]
        workers = min(self._max_concurrency, math.ceil(len(texts) / self._batch_size))
        logger.debug(
            "Embedding %d texts in %d sub-batches (%d workers)", len(texts), len(offsets), workers
        )
        with ThreadPoolExecutor(max_workers=workers) as pool:
            futures = {
                pool.submit(self._embed_sub_batch, list(texts[offset : offset + self._batch_size])): offset
                for offset in offsets
            }
            try:
                for future in as_completed(futures):
                    vectors = future.result()
                    offset = futures[future]
                    results[offset : offset + len(vectors)] = vectors
            except BaseException:
                # queued sub-batches are dropped; ones already running finish before the pool exits
                pool.shutdown(cancel_futures=True)
                raise
        return results

    def _embed_sub_batch(self, texts: list[str]) -> list[list[float]]:
        try:
            vectors = self._model.embed_texts(texts)
        except DocChatError as exc:
            raise EmbeddingUnavailable(str(exc)) from exc
        except Exception as exc:
            raise EmbeddingUnavailable(f"Embedding model {self.model_id} failed: {exc}") from exc
        if len(vectors) != len(texts):
            raise EmbeddingUnavailable(
                f"Embedding model {self.model_id} returned {len(vectors)} vectors for {len(texts)} texts."
            )
        return [self._check_vector(vector) for vector in vectors]

    def _check_vector(self, vector: Sequence[float]) -> list[float]:
        if len(vector) != self._model.dimension:
            raise EmbeddingUnavailable(
                f"Embedding model {self.model_id} returned a {len(vector)}-dimensional vector, "
                f"expected {self._model.dimension}."
            )
        return list(vector)


__all__ = ["BatchEmbedder"]
