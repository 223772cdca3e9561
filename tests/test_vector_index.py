import importlib.util
import tempfile
import unittest
from pathlib import Path

import numpy as np

from domain.entities import Chunk, Document
from domain.errors import InvalidConfig
from infrastructure.repositories import (
    SqliteChunkRepository,
    SqliteDocumentRepository,
    connect_store,
)
from infrastructure.storage.sqlite_vector_index import SqliteVectorIndex, rank_by_cosine


class VectorIndexFixture:
    """Creates a store with one document whose chunks are named by ``chunk_ids``."""

    def setUp(self) -> None:
        self._tmp = tempfile.TemporaryDirectory()
        self.database = connect_store(Path(self._tmp.name) / "docchat.db")
        self.documents = SqliteDocumentRepository(self.database)
        self.chunks = SqliteChunkRepository(self.database)
        self.index = self.make_index()
        self.documents.add(Document(id="doc-1", filename="a.txt", content="..."))

    def tearDown(self) -> None:
        self._tmp.cleanup()

    def make_index(self):
        return SqliteVectorIndex(self.database, dimension=3)

    def add_chunks(self, vectors: dict[str, list[float]], document_id: str = "doc-1") -> None:
        if self.documents.get(document_id) is None:
            self.documents.add(Document(id=document_id, filename=f"{document_id}.txt", content="..."))
        start = len(self.chunks.list_for_document(document_id))
        self.chunks.add_many(
            [
                Chunk(id=chunk_id, document_id=document_id, chunk_index=start + offset, text=chunk_id)
                for offset, chunk_id in enumerate(vectors)
            ]
        )
        self.index.upsert_many(list(vectors), list(vectors.values()))

    def add_crowded_neighbourhood(self) -> None:
        """Ten chunks of ``doc-1`` around [1, 0, 0] and one farther chunk ``n0`` in ``new``."""
        self.add_chunks({f"old{i}": [1.0, 0.01 * i, 0.0] for i in range(10)})
        self.add_chunks({"n0": [1.0, 0.5, 0.0]}, document_id="new")


class TestSqliteVectorIndex(VectorIndexFixture, unittest.TestCase):
    def test_results_sorted_by_similarity_and_thresholded(self):
        self.add_chunks(
            {
                "exact": [1.0, 0.0, 0.0],
                "close": [0.9, 0.1, 0.0],
                "far": [0.0, 1.0, 0.0],
                "opposite": [-1.0, 0.0, 0.0],
            }
        )

        hits = self.index.search([1.0, 0.0, 0.0], top_k=5, min_similarity=0.5)

        self.assertEqual([chunk_id for chunk_id, _ in hits], ["exact", "close"])
        self.assertAlmostEqual(hits[0][1], 1.0)
        self.assertTrue(all(-1.0 <= score <= 1.0 for _, score in hits))

    def test_threshold_is_strict(self):
        self.add_chunks({"half": [1.0, 1.0, 0.0]})
        similarity = self.index.search([1.0, 0.0, 0.0], top_k=1, min_similarity=0.0)[0][1]

        self.assertEqual(self.index.search([1.0, 0.0, 0.0], top_k=1, min_similarity=similarity), [])

    def test_top_k_limits_results(self):
        self.add_chunks({f"c{i}": [1.0, float(i) / 10, 0.0] for i in range(6)})

        hits = self.index.search([1.0, 0.0, 0.0], top_k=2, min_similarity=-1.0)

        self.assertEqual([chunk_id for chunk_id, _ in hits], ["c0", "c1"])

    def test_ties_keep_insertion_order(self):
        self.add_chunks({"first": [2.0, 0.0, 0.0], "second": [1.0, 0.0, 0.0], "third": [3.0, 0.0, 0.0]})

        hits = self.index.search([1.0, 0.0, 0.0], top_k=3, min_similarity=0.0)

        self.assertEqual([chunk_id for chunk_id, _ in hits], ["first", "second", "third"])

    def test_zero_vectors_score_zero(self):
        self.add_chunks({"zero": [0.0, 0.0, 0.0]})

        self.assertEqual(self.index.search([1.0, 0.0, 0.0], top_k=1, min_similarity=-0.5)[0], ("zero", 0.0))
        self.assertEqual(self.index.search([0.0, 0.0, 0.0], top_k=1, min_similarity=-0.5)[0][1], 0.0)

    def test_upsert_replaces_vector(self):
        self.add_chunks({"c": [0.0, 1.0, 0.0]})
        self.index.upsert("c", [1.0, 0.0, 0.0])

        self.assertEqual(self.index.count(), 1)
        self.assertAlmostEqual(self.index.search([1.0, 0.0, 0.0], top_k=1)[0][1], 1.0)

    def test_invalid_parameters(self):
        with self.assertRaises(InvalidConfig):
            self.index.search([1.0, 0.0, 0.0], top_k=0)
        with self.assertRaises(InvalidConfig):
            self.index.search([1.0, 0.0, 0.0], min_similarity=1.1)
        with self.assertRaises(InvalidConfig):
            self.index.search([1.0, 0.0])
        with self.assertRaises(InvalidConfig):
            self.index.upsert("c", [1.0, 0.0])

    def test_vectors_removed_with_their_document(self):
        self.add_chunks({"a": [1.0, 0.0, 0.0], "b": [0.0, 1.0, 0.0]})

        self.documents.delete("doc-1")

        self.assertEqual(self.index.count(), 0)
        self.assertEqual(self.index.search([1.0, 0.0, 0.0], min_similarity=-1.0), [])

    def test_remove_many_forgets_vectors(self):
        self.add_chunks({"a": [1.0, 0.0, 0.0], "b": [0.0, 1.0, 0.0]})

        self.index.remove_many(["a", "unknown"])
        self.index.remove_many([])

        self.assertEqual(self.index.count(), 1)
        self.assertEqual(self.index.search([1.0, 0.0, 0.0], min_similarity=-1.0)[0][0], "b")


class TestRankByCosine(unittest.TestCase):
    def test_rank_without_rows(self):
        self.assertEqual(rank_by_cosine(np.ones(2), [], np.zeros((0, 2)), [], top_k=3, min_similarity=0.0), [])

    def test_rank_orders_by_similarity_then_key(self):
        matrix = np.array([[0.0, 1.0], [1.0, 0.0], [2.0, 0.0]])

        ranked = rank_by_cosine(np.array([1.0, 0.0]), ["y", "x2", "x1"], matrix, [1, 3, 2], top_k=3, min_similarity=-1.0)

        self.assertEqual([chunk_id for chunk_id, _ in ranked], ["x1", "x2", "y"])


@unittest.skipIf(importlib.util.find_spec("hnswlib") is None, "hnswlib not installed")
class TestHnswVectorIndex(VectorIndexFixture, unittest.TestCase):
    def make_index(self):
        from infrastructure.storage.hnsw_vector_index import HnswVectorIndex  # noqa: PLC0415

        return HnswVectorIndex(SqliteVectorIndex(self.database, dimension=3), max_elements=4)

    def test_matches_exact_ranking(self):
        vectors = {f"c{i}": [1.0, float(i) / 10, float(i % 3) / 10] for i in range(10)}
        self.add_chunks(vectors)
        exact = SqliteVectorIndex(self.database, dimension=3)

        query = [1.0, 0.2, 0.1]
        self.assertEqual(
            self.index.search(query, top_k=3, min_similarity=0.5),
            exact.search(query, top_k=3, min_similarity=0.5),
        )

    def test_reloads_persisted_vectors(self):
        self.add_chunks({"a": [1.0, 0.0, 0.0], "b": [0.0, 1.0, 0.0]})

        reopened = self.make_index()

        self.assertEqual(reopened.search([0.0, 1.0, 0.0], top_k=1)[0][0], "b")

    def test_deleted_chunks_drop_out_of_results(self):
        self.add_chunks({"a": [1.0, 0.0, 0.0]})
        self.documents.delete("doc-1")

        self.assertEqual(self.index.search([1.0, 0.0, 0.0], top_k=1), [])

    def test_live_chunk_found_behind_cascade_deleted_neighbours(self):
        self.add_crowded_neighbourhood()

        self.documents.delete("doc-1")

        [(chunk_id, similarity)] = self.index.search([1.0, 0.0, 0.0], top_k=1, min_similarity=0.6)
        self.assertEqual(chunk_id, "n0")
        self.assertAlmostEqual(similarity, 0.894, places=3)

    def test_removed_chunks_leave_the_graph(self):
        self.add_crowded_neighbourhood()

        self.index.remove_many([f"old{i}" for i in range(10)])

        self.assertEqual(self.index.count(), 1)
        self.assertEqual(self.index.search([1.0, 0.0, 0.0], top_k=3, min_similarity=0.6)[0][0], "n0")
        self.add_chunks({"again": [1.0, 0.0, 0.0]}, document_id="new")
        self.assertEqual(
            [chunk_id for chunk_id, _ in self.index.search([1.0, 0.0, 0.0], top_k=2, min_similarity=0.6)],
            ["again", "n0"],
        )

    def test_matches_exact_ranking_after_deleting_near_neighbours(self):
        self.add_crowded_neighbourhood()
        self.add_chunks({f"mid{i}": [1.0, 0.2 + 0.05 * i, 0.1 * i] for i in range(5)}, document_id="new")
        self.add_chunks({"side": [0.0, 1.0, 0.0], "back": [-1.0, 0.0, 0.0]}, document_id="new")
        exact = SqliteVectorIndex(self.database, dimension=3)

        self.documents.delete("doc-1")
        self.index.remove_many(["mid0", "mid1"])

        for query in ([1.0, 0.0, 0.0], [1.0, 0.3, 0.2], [0.2, 1.0, 0.0]):
            for top_k in (1, 2, 3, 10):
                for min_similarity in (-1.0, 0.0, 0.6, 0.95):
                    with self.subTest(query=query, top_k=top_k, min_similarity=min_similarity):
                        self.assertEqual(
                            self.index.search(query, top_k=top_k, min_similarity=min_similarity),
                            exact.search(query, top_k=top_k, min_similarity=min_similarity),
                        )


if __name__ == "__main__":
    unittest.main()
