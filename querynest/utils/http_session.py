"""
Pooled aiohttp session management for the HTTP clients.
"""

import asyncio
from typing import Dict, Optional

import aiohttp


class BaseHTTPClient:
    """
    Mixin for clients that talk to an HTTP service.

    Owns one ``aiohttp.ClientSession`` with connection pooling. Subclasses
    call ``_initialize_session`` from their ``initialize`` and
    ``_cleanup_session`` from their ``cleanup``.
    """

    def __init__(self):
        self._session: Optional[aiohttp.ClientSession] = None

    def _create_connector(
        self,
        max_connections: int = 100,
        max_connections_per_host: int = 30,
        keepalive_timeout: int = 30,
    ) -> aiohttp.TCPConnector:
        return aiohttp.TCPConnector(
            limit=max_connections,
            limit_per_host=max_connections_per_host,
            ttl_dns_cache=300,
            use_dns_cache=True,
            keepalive_timeout=keepalive_timeout,
            enable_cleanup_closed=True,
        )

    def _initialize_session(
        self,
        timeout_seconds: int,
        max_connections: int = 100,
        max_connections_per_host: int = 30,
        headers: Optional[Dict[str, str]] = None,
        auth: Optional[aiohttp.BasicAuth] = None,
    ) -> None:
        """
        Initialize HTTP session with connection pooling.

        Args:
            timeout_seconds: Total request timeout
            max_connections: Maximum total connections
            max_connections_per_host: Maximum connections per host
            headers: Optional default headers
            auth: Optional basic auth applied to every request
        """
        if self._session is not None:
            return

        timeout = aiohttp.ClientTimeout(
            total=timeout_seconds, connect=10, sock_read=timeout_seconds
        )
        connector = self._create_connector(max_connections, max_connections_per_host)

        self._session = aiohttp.ClientSession(
            timeout=timeout,
            connector=connector,
            connector_owner=True,
            headers=headers,
            auth=auth,
        )

    async def _cleanup_session(self) -> None:
        """Close the session and give connections time to close gracefully."""
        if self._session and not self._session.closed:
            await self._session.close()
            await asyncio.sleep(0.25)

        self._session = None

    def _ensure_session(self) -> aiohttp.ClientSession:
        """
        Return the active session.

        Raises:
            RuntimeError: If ``initialize()`` has not been called
        """
        if self._session is None or self._session.closed:
            raise RuntimeError("HTTP session not initialized. Call initialize() first.")
        return self._session
