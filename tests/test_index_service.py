import aiohttp
import pytest

from querynest.search.client import ElasticsearchClient
from querynest.search.index_service import INDEX_MAPPINGS, DocumentIndexService
from tests.mocks.http import FakeResponse, FakeSession


def _service(*responses, url="http://es.local:9200"):
    client = ElasticsearchClient(url=url, index="documents", api_key="abc123")
    client._session = FakeSession(*responses)
    return DocumentIndexService(client), client._session


class TestEnsureIndex:
    @pytest.mark.asyncio
    async def test_existing_index(self):
        service, session = _service(FakeResponse(200))

        result = await service.ensure_index()

        assert result.unwrap() == {"index": "documents", "created": False}
        assert [r["method"] for r in session.requests] == ["HEAD"]

    @pytest.mark.asyncio
    async def test_creates_missing_index(self):
        service, session = _service(FakeResponse(404), FakeResponse(200, {"acknowledged": True}))

        result = await service.ensure_index()

        assert result.unwrap()["created"] is True
        create = session.requests[1]
        assert create["method"] == "PUT"
        assert create["url"] == "http://es.local:9200/documents"
        assert create["json"] == INDEX_MAPPINGS

    @pytest.mark.asyncio
    async def test_concurrent_creation(self):
        service, _ = _service(
            FakeResponse(404),
            FakeResponse(400, {"error": {"type": "resource_already_exists_exception"}}),
        )

        result = await service.ensure_index()

        assert result.unwrap()["created"] is False

    @pytest.mark.asyncio
    async def test_unexpected_status(self):
        service, _ = _service(FakeResponse(500, "boom"))

        result = await service.ensure_index()

        assert result.error_type == "StorageError"

    @pytest.mark.asyncio
    async def test_unreachable(self):
        service, _ = _service(aiohttp.ClientConnectionError("refused"))

        result = await service.ensure_index()

        assert result.error_type == "StorageError"
        assert "unreachable" in result.error

    @pytest.mark.asyncio
    async def test_not_configured(self):
        service, _ = _service(url=None)

        result = await service.ensure_index()

        assert result.status_code == 503


class TestIndexDocument:
    @pytest.mark.asyncio
    async def test_upsert(self):
        service, session = _service(FakeResponse(201, {"result": "created"}))
        document = {"fileId": "file 1", "content": "hello"}

        result = await service.index_document("file 1", document)

        assert result.unwrap() == {"file_id": "file 1", "result": "created"}
        request = session.requests[0]
        assert request["method"] == "PUT"
        assert request["url"] == "http://es.local:9200/documents/_doc/file%201"
        assert request["json"] == document
        assert request["headers"] == {"Authorization": "ApiKey abc123"}

    @pytest.mark.asyncio
    async def test_rejected(self):
        service, _ = _service(FakeResponse(400, "mapper_parsing_exception"))

        result = await service.index_document("file-1", {"content": "x"})

        assert result.is_failure()
        assert result.error == "Indexing failed with HTTP 400"


class TestDeleteDocument:
    @pytest.mark.asyncio
    async def test_delete(self):
        service, session = _service(FakeResponse(200, {"result": "deleted"}))

        result = await service.delete_document("file-1")

        assert result.unwrap() == {"file_id": "file-1", "deleted": True}
        assert session.requests[0]["method"] == "DELETE"

    @pytest.mark.asyncio
    async def test_already_gone(self):
        service, _ = _service(FakeResponse(404, {"result": "not_found"}))

        result = await service.delete_document("file-1")

        assert result.unwrap() == {"file_id": "file-1", "deleted": False}
