"""
Error metadata stored on assistant replies that stand in for a failure.
"""

from typing import Any, Dict, Optional

from .exceptions import LLMProviderError


def create_error_metadata(
    error: Exception,
    model: Optional[str] = None,
    retryable: bool = True,
) -> Dict[str, Any]:
    """
    Create standardized error metadata for message storage.

    Args:
        error: The exception that ended the turn early
        model: Model identifier, used when the error does not carry one
        retryable: Fallback for errors that do not say whether to retry

    Returns:
        Metadata dictionary merged into the assistant message
    """
    if isinstance(error, LLMProviderError):
        return {
            "is_error": True,
            "error_type": error.error_type,
            "provider_id": error.provider_id,
            "model": error.model or model,
            "retryable": error.retryable,
            "raw_error": error.message[:500],
        }

    metadata: Dict[str, Any] = {
        "is_error": True,
        "error_type": type(error).__name__,
        "retryable": retryable,
        "raw_error": str(error)[:500],
    }
    status = getattr(error, "status", None)
    if status is not None:
        metadata["status"] = status
    if model:
        metadata["model"] = model
    return metadata
