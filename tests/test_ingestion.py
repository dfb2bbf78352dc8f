import pytest

from querynest.ingestion import IngestionPipeline, IngestionStatus, UnsupportedFileType
from querynest.ingestion.extraction import (
    decode_text,
    detect_encoding,
    extract_text,
    get_extraction_method,
)
from querynest.utils.result import storage_error
from tests.mocks import MockIndexService


class TestGetExtractionMethod:
    @pytest.mark.parametrize(
        "filename, mime_type, expected",
        [
            ("notes.txt", "text/plain", "text_file"),
            ("readme.md", None, "text_file"),
            ("page", "text/html; charset=utf-8", "text_file"),
            ("data.csv", "text/csv", "csv"),
            ("export.csv", "application/octet-stream", "csv"),
        ],
    )
    def test_supported(self, filename, mime_type, expected):
        assert get_extraction_method(filename, mime_type) == expected

    @pytest.mark.parametrize(
        "filename, mime_type",
        [("scan.png", "image/png"), ("report.pdf", "application/pdf"), ("blob", None)],
    )
    def test_unsupported(self, filename, mime_type):
        with pytest.raises(UnsupportedFileType):
            get_extraction_method(filename, mime_type)


class TestDecoding:
    def test_utf8(self):
        data = "Grüße aus Köln: Äpfel, Öl und Bücher für schöne Tage.".encode("utf-8")
        assert decode_text(data) == "Grüße aus Köln: Äpfel, Öl und Bücher für schöne Tage."

    def test_empty(self):
        assert detect_encoding(b"") == "utf-8"
        assert decode_text(b"") == ""

    def test_undecodable_bytes_are_replaced(self):
        text = decode_text(b"ok \xff\xfe\xfa")
        assert text.startswith("ok ")


class TestExtractText:
    def test_plain_text(self):
        assert extract_text("notes.txt", "text/plain", b"hello world") == "hello world"

    def test_null_bytes_removed(self):
        data = b"plain\x00 text with a stray null byte"
        assert extract_text("notes.txt", "text/plain", data) == "plain text with a stray null byte"

    def test_csv_rows(self):
        data = b"name,amount\nrent,1200\n,\nfood,300\n"

        text = extract_text("budget.csv", "text/csv", data)

        assert text == "name | amount\nrent | 1200\nfood | 300"

    def test_semicolon_csv(self):
        data = b"name;amount\nrent;1200\nfood;300\n"

        text = extract_text("budget.csv", "text/csv", data)

        assert text.splitlines()[1] == "rent | 1200"


class TestIngestionPipeline:
    @pytest.fixture
    def index_service(self):
        return MockIndexService()

    @pytest.fixture
    def pipeline(self, index_service):
        return IngestionPipeline(index_service)

    @pytest.mark.asyncio
    async def test_indexes_text_file(self, pipeline, index_service):
        result = await pipeline.process_file(
            "file-1", "notes.txt", "text/plain", b"hello world", user_id="user-7"
        )

        data = result.unwrap()
        assert data["status"] == IngestionStatus.INDEXED
        assert data["text_length"] == 11
        assert data["index_result"] == "created"

        document = index_service.documents["file-1"]
        assert document["fileId"] == "file-1"
        assert document["userId"] == "user-7"
        assert document["content"] == "hello world"
        assert document["originalName"] == "notes.txt"
        assert "createdAt" in document

    @pytest.mark.asyncio
    async def test_reprocessing_replaces_document(self, pipeline, index_service):
        await pipeline.process_file("file-1", "notes.txt", "text/plain", b"v1")
        result = await pipeline.process_file("file-1", "notes.txt", "text/plain", b"v2")

        assert result.unwrap()["index_result"] == "updated"
        assert index_service.documents["file-1"]["content"] == "v2"

    @pytest.mark.asyncio
    async def test_unsupported_file(self, pipeline, index_service):
        result = await pipeline.process_file("file-2", "scan.png", "image/png", b"\x89PNG")

        assert result.unwrap()["status"] == IngestionStatus.UNSUPPORTED
        assert index_service.documents == {}

    @pytest.mark.asyncio
    async def test_empty_file(self, pipeline, index_service):
        result = await pipeline.process_file("file-3", "empty.txt", "text/plain", b"  \n ")

        assert result.unwrap()["status"] == IngestionStatus.EMPTY
        assert index_service.documents == {}

    @pytest.mark.asyncio
    async def test_blank_file_id(self, pipeline):
        result = await pipeline.process_file(" ", "notes.txt", "text/plain", b"hi")
        assert result.error_type == "ValidationError"

    @pytest.mark.asyncio
    async def test_index_failure_is_returned(self, pipeline, index_service):
        index_service.failure = storage_error("Elasticsearch unreachable")

        result = await pipeline.process_file("file-1", "notes.txt", "text/plain", b"hi")

        assert result.is_failure()
        assert result.error_type == "StorageError"

    @pytest.mark.asyncio
    async def test_remove_file(self, pipeline, index_service):
        await pipeline.process_file("file-1", "notes.txt", "text/plain", b"hi")

        result = await pipeline.remove_file("file-1")

        assert result.unwrap() == {"file_id": "file-1", "deleted": True}
        assert index_service.documents == {}
