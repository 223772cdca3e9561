import unittest

from application.use_cases.search import search_documents
from domain.errors import InvalidConfig
from tests.fakes import TempContainerMixin, make_container


class TestSearchDocuments(TempContainerMixin, unittest.TestCase):
    def setUp(self) -> None:
        super().setUp()
        self.container = make_container(self.tmp)
        self.container.document_store.ingest("sky.txt", "file", "The sky, the sky.")
        self.container.document_store.ingest("mixed.txt", "file", "Sky and grass.")
        self.container.document_store.ingest("cats.txt", "file", "Cats are mammals.")

    def search(self, query: str, **kwargs):
        c = self.container
        return search_documents(
            query,
            embedder=c.embedder,
            vector_index=c.vector_index,
            chunk_repository=c.chunk_repository,
            document_repository=c.document_repository,
            **kwargs,
        )

    def test_default_threshold_keeps_close_matches(self):
        results = self.search("sky")

        self.assertEqual([result.filename for result in results], ["sky.txt", "mixed.txt"])
        self.assertAlmostEqual(results[0].similarity, 1.0)
        self.assertTrue(all(result.similarity > 0.7 for result in results))
        self.assertEqual(results[0].content, "The sky, the sky.")
        self.assertEqual(results[0].chunk_index, 0)

    def test_limit_and_threshold(self):
        self.assertEqual(len(self.search("sky", limit=1)), 1)
        self.assertEqual(self.search("sky", min_similarity=0.99)[0].filename, "sky.txt")
        self.assertEqual(len(self.search("sky", min_similarity=0.99)), 1)

    def test_out_of_range_threshold(self):
        with self.assertRaises(InvalidConfig):
            self.search("sky", min_similarity=1.1)

    def test_deleted_documents_are_not_returned(self):
        sky = self.container.document_store.list()[0]
        self.container.document_store.delete(sky.id)

        self.assertEqual([result.filename for result in self.search("sky")], ["mixed.txt"])


if __name__ == "__main__":
    unittest.main()
