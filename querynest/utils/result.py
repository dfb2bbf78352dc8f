"""
Result type for explicit error handling.

Storage and index services return either a Success carrying the value or a
Failure carrying a message, an error category and an HTTP status hint. Routes
turn a Failure straight into a JSON error body.

Example:
    >>> result = Success({"id": "c0ffee"})
    >>> result.unwrap()
    {'id': 'c0ffee'}

    >>> result = not_found_error("Conversation 'c0ffee' not found")
    >>> result.to_dict()
    {'success': False, 'error': "Conversation 'c0ffee' not found", 'error_type': 'NotFoundError'}
"""

from dataclasses import dataclass
from typing import Any, Dict, Generic, Optional, TypeVar, Union

T = TypeVar("T")
E = TypeVar("E")


@dataclass
class Success(Generic[T]):
    """
    Represents a successful operation with a value.

    Attributes:
        value: The successful result value
        metadata: Optional metadata about the operation
    """

    value: T
    metadata: Optional[Dict[str, Any]] = None

    def is_success(self) -> bool:
        return True

    def is_failure(self) -> bool:
        return False

    def unwrap(self) -> T:
        return self.value

    def to_dict(self) -> Dict[str, Any]:
        result = {"success": True, "data": self.value}
        if self.metadata:
            result["metadata"] = self.metadata
        return result

    def __bool__(self) -> bool:
        return True

    def __repr__(self) -> str:
        return f"Success({self.value})"


@dataclass
class Failure(Generic[E]):
    """
    Represents a failed operation with an error.

    Attributes:
        error: The error message
        error_type: Category of error (e.g. "NotFoundError")
        context: Additional context about the error
        recoverable: Whether the caller may try again
        status_code: HTTP status code hint for API responses
    """

    error: E
    error_type: str = "UnknownError"
    context: Optional[Dict[str, Any]] = None
    recoverable: bool = False
    status_code: int = 500

    def is_success(self) -> bool:
        return False

    def is_failure(self) -> bool:
        return True

    def unwrap(self) -> Any:
        """
        Attempt to get the value.

        Raises:
            RuntimeError: Always, since this is a Failure
        """
        raise RuntimeError(f"Called unwrap on Failure: {self.error}")

    def to_dict(self) -> Dict[str, Any]:
        result = {
            "success": False,
            "error": str(self.error),
            "error_type": self.error_type,
        }
        if self.context:
            result["context"] = self.context
        if self.recoverable:
            result["recoverable"] = True
        return result

    def __bool__(self) -> bool:
        return False

    def __repr__(self) -> str:
        return f"Failure({self.error_type}: {self.error})"


Result = Union[Success[T], Failure[E]]


class ErrorType:
    """Error categories as (name, HTTP status, recoverable)."""

    VALIDATION_ERROR = ("ValidationError", 400, True)
    NOT_FOUND_ERROR = ("NotFoundError", 404, False)
    INTERNAL_ERROR = ("InternalError", 500, False)
    STORAGE_ERROR = ("StorageError", 500, True)
    SERVICE_UNAVAILABLE = ("ServiceUnavailable", 503, True)


def _failure(
    kind: tuple, message: str, context: Optional[Dict[str, Any]] = None
) -> Failure:
    error_type, status_code, recoverable = kind
    return Failure(
        error=message,
        error_type=error_type,
        context=context,
        recoverable=recoverable,
        status_code=status_code,
    )


def validation_error(message: str, context: Optional[Dict[str, Any]] = None) -> Failure:
    """Create a validation error result."""
    return _failure(ErrorType.VALIDATION_ERROR, message, context)


def not_found_error(message: str, context: Optional[Dict[str, Any]] = None) -> Failure:
    """Create a not found error result."""
    return _failure(ErrorType.NOT_FOUND_ERROR, message, context)


def internal_error(message: str, context: Optional[Dict[str, Any]] = None) -> Failure:
    """Create an internal error result."""
    return _failure(ErrorType.INTERNAL_ERROR, message, context)


def storage_error(message: str, context: Optional[Dict[str, Any]] = None) -> Failure:
    """Create a storage error result (database or index unreachable/rejecting)."""
    return _failure(ErrorType.STORAGE_ERROR, message, context)


def service_unavailable(
    message: str, context: Optional[Dict[str, Any]] = None
) -> Failure:
    """Create a service unavailable error result."""
    return _failure(ErrorType.SERVICE_UNAVAILABLE, message, context)
