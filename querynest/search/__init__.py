"""
Document search for QueryNest.
"""

from .client import ElasticsearchClient
from .exceptions import ConfigurationError, RetrievalError, SearchError
from .index_service import DocumentIndexService
from .pruner import prune_hits
from .types import PrunedToolResult, SearchHit

__all__ = [
    "ElasticsearchClient",
    "DocumentIndexService",
    "prune_hits",
    "SearchHit",
    "PrunedToolResult",
    "SearchError",
    "RetrievalError",
    "ConfigurationError",
]
