"""
Correlation ids and operation context for request-scoped logging.

Values live in context variables so concurrent chat turns never see each
other's ids.
"""

import contextvars
import uuid
from contextlib import contextmanager
from typing import Any, Dict, Iterator, Optional

_correlation_id: contextvars.ContextVar[Optional[str]] = contextvars.ContextVar(
    "correlation_id", default=None
)
_operation_context: contextvars.ContextVar[Optional[Dict[str, Any]]] = (
    contextvars.ContextVar("operation_context", default=None)
)


def get_correlation_id() -> str:
    """
    Get the current correlation ID, generating one if none exists.

    Returns:
        Correlation ID string for tracking requests across components
    """
    correlation_id = _correlation_id.get()
    if correlation_id is None:
        correlation_id = str(uuid.uuid4())
        _correlation_id.set(correlation_id)
    return correlation_id


def get_operation_context() -> Dict[str, Any]:
    context = _operation_context.get()
    return context.copy() if context is not None else {}


@contextmanager
def operation_context(**fields: Any) -> Iterator[None]:
    """
    Attach fields to every log event emitted inside the block.

    Example::

        with operation_context(conversation_id=cid, pair_id=pid):
            ...
    """
    merged = get_operation_context()
    merged.update(fields)
    token = _operation_context.set(merged)
    try:
        yield
    finally:
        _operation_context.reset(token)
