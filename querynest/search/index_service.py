"""
Document index lifecycle: create the index, upsert and remove documents.

Shares the search client's session, endpoint and credentials.
"""

import asyncio
import json
import logging
from typing import Any, Dict, Optional
from urllib.parse import quote

import aiohttp

from ..utils.logging import log_event, track
from ..utils.result import Result, Success, service_unavailable, storage_error
from .client import ElasticsearchClient
from .exceptions import ConfigurationError

INDEX_MAPPINGS: Dict[str, Any] = {
    "mappings": {
        "properties": {
            "fileId": {"type": "keyword"},
            "userId": {"type": "keyword"},
            "content": {"type": "text"},
            "originalName": {"type": "text"},
            "createdAt": {"type": "date"},
        }
    }
}


def _index_result(body: str) -> Optional[str]:
    """The engine's ``result`` field, or None for an unreadable body."""
    try:
        data = json.loads(body) if body else {}
    except ValueError:
        return None
    return data.get("result") if isinstance(data, dict) else None


class DocumentIndexService:
    """Writes documents into the index the search client reads from."""

    def __init__(self, client: ElasticsearchClient):
        self.client = client

    def _doc_url(self, doc_id: str) -> str:
        return f"{self.client._index_url()}/_doc/{quote(doc_id, safe='')}"

    @track(operation="index_ensure", track_performance=True)
    async def ensure_index(self) -> Result[Dict[str, Any], str]:
        """
        Create the index with its mappings if it does not exist.

        Returns:
            Success with ``{"created": bool}``
        """
        try:
            headers = self.client._headers()
            session = self.client._ensure_session()
            url = self.client._index_url()

            async with session.head(url, headers=headers) as response:
                if response.status == 200:
                    return Success({"index": self.client.index, "created": False})
                if response.status != 404:
                    return storage_error(
                        f"Index check failed with HTTP {response.status}",
                        context={"index": self.client.index},
                    )

            async with session.put(url, json=INDEX_MAPPINGS, headers=headers) as response:
                body = await response.text(errors="replace")
                # Another process may have created it between HEAD and PUT
                if response.status == 400 and "resource_already_exists" in body:
                    return Success({"index": self.client.index, "created": False})
                if not 200 <= response.status < 300:
                    return storage_error(
                        f"Index creation failed with HTTP {response.status}",
                        context={"index": self.client.index, "body": body[:500]},
                    )

            log_event("index_created", {"index": self.client.index})
            return Success({"index": self.client.index, "created": True})

        except ConfigurationError as e:
            return service_unavailable(str(e), context={"index": self.client.index})
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            log_event(
                "index_ensure_error",
                {"index": self.client.index, "error": str(e)},
                level=logging.ERROR,
            )
            return storage_error(
                f"Elasticsearch unreachable: {str(e)}",
                context={"index": self.client.index},
            )

    @track(
        operation="index_document",
        include_args=["file_id"],
        track_performance=True,
    )
    async def index_document(
        self, file_id: str, document: Dict[str, Any]
    ) -> Result[Dict[str, Any], str]:
        """
        Upsert a document under ``file_id``.

        Returns:
            Success with the engine's ``result`` ("created" or "updated")
        """
        try:
            headers = self.client._headers()
            session = self.client._ensure_session()

            async with session.put(
                self._doc_url(file_id), json=document, headers=headers
            ) as response:
                if not 200 <= response.status < 300:
                    body = await response.text(errors="replace")
                    log_event(
                        "document_index_failed",
                        {"file_id": file_id, "status": response.status, "error": body[:500]},
                        level=logging.ERROR,
                    )
                    return storage_error(
                        f"Indexing failed with HTTP {response.status}",
                        context={"file_id": file_id},
                    )
                body = await response.text(errors="replace")

            result = _index_result(body)
            log_event(
                "document_indexed",
                {
                    "file_id": file_id,
                    "result": result,
                    "content_length": len(document.get("content") or ""),
                },
            )
            return Success({"file_id": file_id, "result": result})

        except ConfigurationError as e:
            return service_unavailable(str(e), context={"file_id": file_id})
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            log_event(
                "document_index_failed",
                {"file_id": file_id, "error": str(e)},
                level=logging.ERROR,
            )
            return storage_error(
                f"Elasticsearch unreachable: {str(e)}", context={"file_id": file_id}
            )

    @track(
        operation="index_delete_document",
        include_args=["file_id"],
        track_performance=True,
    )
    async def delete_document(self, file_id: str) -> Result[Dict[str, Any], str]:
        """
        Remove a document from the index.

        A document that is already gone is not an error.

        Returns:
            Success with ``{"file_id", "deleted"}``
        """
        try:
            headers = self.client._headers()
            session = self.client._ensure_session()

            async with session.delete(self._doc_url(file_id), headers=headers) as response:
                if response.status == 404:
                    return Success({"file_id": file_id, "deleted": False})
                if not 200 <= response.status < 300:
                    body = await response.text(errors="replace")
                    return storage_error(
                        f"Delete failed with HTTP {response.status}",
                        context={"file_id": file_id, "body": body[:500]},
                    )

            log_event("document_removed", {"file_id": file_id}, level=logging.WARNING)
            return Success({"file_id": file_id, "deleted": True})

        except ConfigurationError as e:
            return service_unavailable(str(e), context={"file_id": file_id})
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            log_event(
                "document_remove_failed",
                {"file_id": file_id, "error": str(e)},
                level=logging.ERROR,
            )
            return storage_error(
                f"Elasticsearch unreachable: {str(e)}", context={"file_id": file_id}
            )
