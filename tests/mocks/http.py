import json
from typing import Any, Dict, List, Optional


class FakeResponse:
    """
    Canned ``aiohttp.ClientResponse``.

    ``body`` may be raw bytes, a string, or any JSON-serializable value.
    """

    def __init__(
        self,
        status: int = 200,
        body: Any = None,
        headers: Optional[Dict[str, str]] = None,
    ):
        self.status = status
        self.headers = headers or {}
        if body is None:
            self._body = b""
        elif isinstance(body, bytes):
            self._body = body
        elif isinstance(body, str):
            self._body = body.encode("utf-8")
        else:
            self._body = json.dumps(body).encode("utf-8")

    async def text(self, encoding: Optional[str] = None, errors: str = "strict") -> str:
        return self._body.decode(encoding or "utf-8", errors)

    async def json(self, content_type: Optional[str] = "application/json") -> Any:
        return json.loads(self._body.decode("utf-8")) if self._body else None

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc, tb):
        return False


class FakeSession:
    """
    Stand-in for ``aiohttp.ClientSession``.

    Responses (or exceptions) are queued and handed out in order; every
    request is recorded.
    """

    def __init__(self, *responses: Any):
        self.responses: List[Any] = list(responses)
        self.requests: List[Dict[str, Any]] = []
        self.closed = False

    def _request(self, method: str, url: str, **kwargs: Any) -> FakeResponse:
        self.requests.append({"method": method, "url": url, **kwargs})
        response = self.responses.pop(0) if self.responses else FakeResponse(200, {})
        if isinstance(response, Exception):
            raise response
        return response

    def post(self, url: str, **kwargs: Any) -> FakeResponse:
        return self._request("POST", url, **kwargs)

    def put(self, url: str, **kwargs: Any) -> FakeResponse:
        return self._request("PUT", url, **kwargs)

    def head(self, url: str, **kwargs: Any) -> FakeResponse:
        return self._request("HEAD", url, **kwargs)

    def delete(self, url: str, **kwargs: Any) -> FakeResponse:
        return self._request("DELETE", url, **kwargs)

    async def close(self) -> None:
        self.closed = True
