import unittest
from unittest import mock

import requests

from application.use_cases.ingest_documents import detect_kind, ingest_document
from domain.errors import ExtractionFailed, InvalidConfig
from infrastructure.text_extraction.html_extractor import HtmlExtractor
from infrastructure.text_extraction.pdf_extractor import PdfExtractor
from infrastructure.text_extraction.plain_text_extractor import PlainTextExtractor
from infrastructure.text_extraction.url_extractor import UrlExtractor
from tests.fakes import TempContainerMixin, make_container

PAGE = (
    "<html><head><title>Weather</title><style>p {color: red}</style></head>"
    "<body><nav>Home | About</nav><main><p>The sky   is\n blue.</p><script>track()</script></main>"
    "<footer>(c) 2024</footer></body></html>"
)


class TestExtractors(unittest.TestCase):
    def test_plain_text(self):
        self.assertEqual(PlainTextExtractor().extract("zażółć".encode("utf-8")), "zażółć")
        self.assertEqual(PlainTextExtractor().extract("already text"), "already text")

    def test_strict_plain_text_rejects_invalid_utf8(self):
        with self.assertRaises(ExtractionFailed):
            PlainTextExtractor(strict=True).extract(b"\xff\xfe broken")

    def test_html_prefers_main_and_drops_chrome(self):
        self.assertEqual(HtmlExtractor().extract(PAGE.encode("utf-8")), "The sky is blue.")

    def test_html_without_main_uses_body_text(self):
        html = "<body><header>Menu</header><p>Grass is\n\n green.</p><aside>ads</aside></body>"
        self.assertEqual(HtmlExtractor().extract(html), "Grass is green.")

    def test_pdf_garbage_fails(self):
        with self.assertRaises(ExtractionFailed):
            PdfExtractor().extract(b"this is not a pdf")

    @mock.patch("infrastructure.text_extraction.url_extractor.requests.get")
    def test_url_fetches_and_parses_html(self, get):
        get.return_value = mock.Mock(text=PAGE, raise_for_status=mock.Mock(return_value=None))

        self.assertEqual(UrlExtractor().extract("https://example.org/weather"), "The sky is blue.")
        self.assertEqual(get.call_args.args[0], "https://example.org/weather")

    @mock.patch("infrastructure.text_extraction.url_extractor.requests.get")
    def test_url_fetch_failure(self, get):
        get.side_effect = requests.ConnectionError("unreachable")

        with self.assertRaises(ExtractionFailed):
            UrlExtractor().extract("https://example.org")

    def test_url_must_be_http(self):
        with self.assertRaises(ExtractionFailed):
            UrlExtractor().extract("file:///etc/passwd")


class TestDetectKind(unittest.TestCase):
    def test_extensions(self):
        self.assertEqual(detect_kind("report.PDF"), "pdf")
        self.assertEqual(detect_kind("page.htm"), "html")
        self.assertEqual(detect_kind("notes.md"), "txt")
        self.assertEqual(detect_kind("no-extension"), "txt")


class TestIngestDocument(TempContainerMixin, unittest.TestCase):
    def test_ingest_text_file_records_raw_size(self):
        container = make_container(self.tmp)
        raw = "Cats are mammals. Ćma też.".encode("utf-8")

        result = ingest_document(
            "cats.txt", "txt", raw, extractors=container.extractors, document_store=container.document_store
        )

        document = container.document_store.get(result.document_id)
        self.assertEqual(document.file_size, len(raw))
        self.assertEqual(document.file_type, "txt")
        self.assertEqual(document.source_kind, "file")
        self.assertEqual(document.content, "Cats are mammals. Ćma też.")

    @mock.patch("infrastructure.text_extraction.url_extractor.requests.get")
    def test_ingest_url(self, get):
        get.return_value = mock.Mock(text=PAGE, raise_for_status=mock.Mock(return_value=None))
        container = make_container(self.tmp)

        result = ingest_document(
            "https://example.org/weather",
            "url",
            "https://example.org/weather",
            extractors=container.extractors,
            document_store=container.document_store,
        )

        document = container.document_store.get(result.document_id)
        self.assertEqual(document.source_kind, "url")
        self.assertEqual(document.content, "The sky is blue.")
        self.assertEqual(result.chunk_count, 1)

    def test_unknown_kind(self):
        container = make_container(self.tmp)

        with self.assertRaises(InvalidConfig):
            ingest_document("a.xls", "xls", b"", extractors=container.extractors, document_store=container.document_store)

    def test_extraction_failure_leaves_store_empty(self):
        container = make_container(self.tmp)

        with self.assertRaises(ExtractionFailed):
            ingest_document(
                "broken.pdf", "pdf", b"%PDF-garbage", extractors=container.extractors, document_store=container.document_store
            )

        self.assertEqual(container.document_store.list(), [])


if __name__ == "__main__":
    unittest.main()
