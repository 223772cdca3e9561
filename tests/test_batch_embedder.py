import time
import unittest

from application.services.batch_embedder import BatchEmbedder
from domain.errors import EmbeddingUnavailable, InvalidConfig
from tests.fakes import DelayedEmbedder, FailingEmbedder, KeywordEmbedder


class ShortVectorEmbedder(KeywordEmbedder):
    def embed_texts(self, texts):
        return [vector[:-1] for vector in super().embed_texts(texts)]


class SlowEmbedder(KeywordEmbedder):
    def __init__(self, failing: str, delay: float) -> None:
        super().__init__()
        self._failing = failing
        self._delay = delay

    def embed_texts(self, texts):
        if self._failing in texts:
            raise RuntimeError("embedding service unavailable")
        time.sleep(self._delay)
        return super().embed_texts(texts)


class TestBatchEmbedder(unittest.TestCase):
    def test_output_aligned_with_input_despite_completion_order(self):
        # the first sub-batch is the slowest one
        model = DelayedEmbedder(delays=[0.2, 0.05, 0.0, 0.1])
        embedder = BatchEmbedder(model, batch_size=2, max_concurrency=4)
        texts = ["sky", "grass", "cats", "mammals", "green", "dogs", "rain", "snow"]

        vectors = embedder.embed_batch(texts)

        expected = KeywordEmbedder().embed_texts(texts)
        self.assertEqual(vectors, expected)

    def test_texts_are_cut_into_consecutive_sub_batches(self):
        model = KeywordEmbedder()
        embedder = BatchEmbedder(model, batch_size=3, max_concurrency=1)

        embedder.embed_batch(["a", "b", "c", "d", "e", "f", "g"])

        self.assertEqual(model.calls, [["a", "b", "c"], ["d", "e", "f"], ["g"]])

    def test_empty_input_makes_no_calls(self):
        model = KeywordEmbedder()
        self.assertEqual(BatchEmbedder(model).embed_batch([]), [])
        self.assertEqual(model.calls, [])

    def test_sub_batch_failure_fails_the_whole_batch(self):
        embedder = BatchEmbedder(FailingEmbedder("boom"), batch_size=1, max_concurrency=2)

        with self.assertRaises(EmbeddingUnavailable):
            embedder.embed_batch(["sky", "grass", "boom", "cats"])

    def test_failure_cancels_queued_sub_batches(self):
        model = SlowEmbedder(failing="boom", delay=0.3)
        embedder = BatchEmbedder(model, batch_size=1, max_concurrency=1)

        with self.assertRaises(EmbeddingUnavailable):
            embedder.embed_batch(["boom", "sky", "grass", "cats", "rain"])

        # at most the sub-batch picked up before cancellation ran
        self.assertLessEqual(len(model.calls), 1)

    def test_wrong_dimension_is_rejected(self):
        embedder = BatchEmbedder(ShortVectorEmbedder())

        with self.assertRaises(EmbeddingUnavailable):
            embedder.embed_batch(["sky"])

    def test_embed_one_wraps_model_errors(self):
        embedder = BatchEmbedder(FailingEmbedder("boom"))

        self.assertEqual(embedder.embed_one("sky sky")[0], 2.0)
        with self.assertRaises(EmbeddingUnavailable):
            embedder.embed_one("boom")

    def test_invalid_limits(self):
        with self.assertRaises(InvalidConfig):
            BatchEmbedder(KeywordEmbedder(), batch_size=0)
        with self.assertRaises(InvalidConfig):
            BatchEmbedder(KeywordEmbedder(), max_concurrency=0)


if __name__ == "__main__":
    unittest.main()
