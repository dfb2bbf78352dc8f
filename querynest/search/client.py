"""
Elasticsearch full-text search over the document index.
"""

import asyncio
import json
import logging
from typing import Any, Dict, List, Optional
from urllib.parse import quote

import aiohttp

from ..utils.http_session import BaseHTTPClient
from ..utils.logging import log_event, track
from .exceptions import ConfigurationError, RetrievalError
from .types import SearchHit

SEARCH_FIELDS = ["originalName^3", "filename^3", "content", "ocr_text"]
SOURCE_FIELDS = ["fileId", "originalName", "content", "ocr_text", "filename", "path"]


def build_auth_header(
    api_key: Optional[str],
    username: Optional[str] = None,
    password: Optional[str] = None,
) -> Dict[str, str]:
    """
    Authorization header for Elasticsearch.

    An API key wins over basic credentials. A key that already carries the
    ``ApiKey`` scheme is used as is.

    Raises:
        ConfigurationError: If neither form of credentials is configured
    """
    if api_key:
        value = api_key if api_key.startswith("ApiKey ") else f"ApiKey {api_key}"
        return {"Authorization": value}

    if username and password:
        return {"Authorization": aiohttp.BasicAuth(username, password).encode()}

    raise ConfigurationError(
        "No Elasticsearch credentials configured (API key or username/password)"
    )


class ElasticsearchClient(BaseHTTPClient):
    """
    Search client for the documents index.

    Issues a single ``_search`` request per call. There are no retries; any
    failure is raised as ``RetrievalError`` for the caller to report.
    """

    def __init__(
        self,
        url: Optional[str],
        index: str = "documents",
        api_key: Optional[str] = None,
        username: Optional[str] = None,
        password: Optional[str] = None,
        timeout_seconds: int = 30,
    ):
        super().__init__()
        self.url = url.rstrip("/") if url else None
        self.index = index
        self.api_key = api_key
        self.username = username
        self.password = password
        self.timeout_seconds = timeout_seconds

    @property
    def is_configured(self) -> bool:
        return bool(self.url) and bool(
            self.api_key or (self.username and self.password)
        )

    async def initialize(self) -> None:
        self._initialize_session(
            timeout_seconds=self.timeout_seconds,
            max_connections=50,
            max_connections_per_host=20,
            headers={"Content-Type": "application/json"},
        )
        log_event(
            "search_client_initialized",
            {"index": self.index, "configured": self.is_configured},
        )

    async def cleanup(self) -> None:
        await self._cleanup_session()

    def _headers(self) -> Dict[str, str]:
        if not self.url:
            raise ConfigurationError("Elasticsearch URL is not configured")
        return build_auth_header(self.api_key, self.username, self.password)

    def _index_url(self) -> str:
        return f"{self.url}/{quote(self.index, safe='')}"

    @staticmethod
    def build_query(query: str, max_hits: int) -> Dict[str, Any]:
        return {
            "size": max_hits,
            "query": {
                "multi_match": {
                    "query": query,
                    "fields": SEARCH_FIELDS,
                    "fuzziness": "AUTO",
                }
            },
            "_source": SOURCE_FIELDS,
        }

    @track(
        operation="document_search",
        include_args=["query", "max_hits"],
        track_performance=True,
        frequency="medium_frequency",
    )
    async def search(self, query: str, max_hits: int) -> List[SearchHit]:
        """
        Run a fuzzy multi-field match against the index.

        Args:
            query: Free-text query
            max_hits: Maximum hits to return

        Returns:
            Hits in engine ranking order

        Raises:
            ConfigurationError: If URL or credentials are missing
            RetrievalError: On transport failure, timeout, non-2xx status or
                a body that is not a search response
        """
        headers = self._headers()
        session = self._ensure_session()
        url = f"{self._index_url()}/_search"

        try:
            async with session.post(
                url, json=self.build_query(query, max_hits), headers=headers
            ) as response:
                status = response.status
                body = await response.text(errors="replace")

        except aiohttp.ClientError as e:
            log_event(
                "search_failed",
                {"error": str(e), "index": self.index},
                level=logging.ERROR,
            )
            raise RetrievalError(f"Elasticsearch request failed: {str(e)}") from e
        except asyncio.TimeoutError as e:
            log_event(
                "search_failed",
                {"error": "timeout", "timeout_seconds": self.timeout_seconds},
                level=logging.ERROR,
            )
            raise RetrievalError(
                f"Elasticsearch request timed out after {self.timeout_seconds}s"
            ) from e

        if not 200 <= status < 300:
            log_event(
                "search_failed",
                {"status": status, "error": body[:500], "index": self.index},
                level=logging.ERROR,
            )
            raise RetrievalError(
                f"Elasticsearch returned HTTP {status}", status=status, body=body
            )

        hits = self._parse_hits(status, body)

        log_event(
            "search_completed",
            {"query_length": len(query), "max_hits": max_hits, "hits": len(hits)},
        )

        return hits

    def _parse_hits(self, status: int, body: str) -> List[SearchHit]:
        """
        Hits from a successful ``_search`` body.

        Raises:
            RetrievalError: If the body is not a JSON search response
        """
        try:
            data = json.loads(body) if body else {}
        except ValueError as e:
            log_event(
                "search_failed",
                {"status": status, "error": "invalid JSON body", "body": body[:500]},
                level=logging.ERROR,
            )
            raise RetrievalError(
                "Elasticsearch returned a non-JSON body", status=status, body=body
            ) from e

        section = (data.get("hits") or {}) if isinstance(data, dict) else None
        raw_hits = (section.get("hits") or []) if isinstance(section, dict) else None
        if not isinstance(raw_hits, list):
            log_event(
                "search_failed",
                {"status": status, "error": "unexpected payload", "body": body[:500]},
                level=logging.ERROR,
            )
            raise RetrievalError(
                "Elasticsearch returned an unexpected payload", status=status, body=body
            )

        return [SearchHit.from_es_hit(hit) for hit in raw_hits if isinstance(hit, dict)]
