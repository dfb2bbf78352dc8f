"""
Errors raised by the document search and index clients.
"""

from typing import Any, Dict, Optional


class SearchError(Exception):
    """Base class for search-side failures."""

    def to_dict(self) -> Dict[str, Any]:
        return {"error": str(self), "error_type": type(self).__name__}


class ConfigurationError(SearchError):
    """Search endpoint or credentials are not configured."""


class RetrievalError(SearchError):
    """
    The search request failed.

    Attributes:
        status: HTTP status, or None for transport failures and timeouts
        body: Response body (truncated)
    """

    def __init__(self, message: str, status: Optional[int] = None, body: str = ""):
        super().__init__(message)
        self.status = status
        self.body = (body or "")[:1000]

    def to_dict(self) -> Dict[str, Any]:
        data = super().to_dict()
        data["status"] = self.status
        return data
