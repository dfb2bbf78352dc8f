"""
Logging infrastructure for QueryNest.

Structured events, a single ``@track`` decorator for operations and
request-scoped correlation ids.
"""

from .context import get_correlation_id, operation_context
from .smart_logger import track
from .structured import StructuredLogger, log_event

__all__ = [
    "track",
    "log_event",
    "get_correlation_id",
    "operation_context",
    "StructuredLogger",
]
