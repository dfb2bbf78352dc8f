"""
Exception hierarchy for the generative model client.

Transport problems and non-200 responses are raised as subclasses of
``LLMProviderError``. Malformed but successful responses are never errors;
they are handled by the response-normalization strategies.
"""

from typing import Any, Dict, Optional

DEFAULT_PROVIDER = "google"


class LLMProviderError(Exception):
    """
    Base exception for all model provider errors.

    Attributes:
        message: Human-readable error message
        provider_id: Identifier of the provider that raised the error
        model: Model identifier (if applicable)
        error_type: Categorization of error type
        retryable: Whether resubmitting the turn may succeed
        metadata: Additional context about the error
    """

    def __init__(
        self,
        message: str,
        provider_id: str = DEFAULT_PROVIDER,
        model: Optional[str] = None,
        error_type: str = "unknown",
        retryable: bool = False,
        metadata: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message)
        self.message = message
        self.provider_id = provider_id
        self.model = model
        self.error_type = error_type
        self.retryable = retryable
        self.metadata = metadata or {}

    def to_dict(self) -> Dict[str, Any]:
        return {
            "error": self.message,
            "error_type": self.error_type,
            "provider_id": self.provider_id,
            "model": self.model,
            "retryable": self.retryable,
            "metadata": self.metadata,
        }

    def __str__(self) -> str:
        if self.model:
            return f"{self.message} (provider: {self.provider_id}, model: {self.model})"
        return f"{self.message} (provider: {self.provider_id})"


# Name used by the orchestrator when it does not care which failure it was
ProviderError = LLMProviderError


class ProviderAPIError(LLMProviderError):
    """
    Non-200 response from the provider API.

    Attributes:
        status_code: HTTP status code
        response_body: Raw response body (truncated in metadata)
    """

    retryable_default = False

    def __init__(
        self,
        message: str,
        status_code: int,
        response_body: str = "",
        provider_id: str = DEFAULT_PROVIDER,
        model: Optional[str] = None,
        retryable: Optional[bool] = None,
    ):
        super().__init__(
            message=message,
            provider_id=provider_id,
            model=model,
            error_type=self.categorize_status_code(status_code),
            retryable=self.retryable_default if retryable is None else retryable,
            metadata={
                "status_code": status_code,
                "response_body": (response_body or "")[:1000],
            },
        )
        self.status_code = status_code
        self.response_body = response_body

    @staticmethod
    def categorize_status_code(status_code: int) -> str:
        if status_code == 400:
            return "invalid_request"
        if status_code in (401, 403):
            return "authentication_error"
        if status_code == 404:
            return "not_found"
        if status_code == 429:
            return "rate_limit_exceeded"
        if 500 <= status_code < 600:
            return "server_error"
        return "api_error"


class AuthenticationError(ProviderAPIError):
    """API key missing, invalid or lacking permission (401/403)."""


class RateLimitError(ProviderAPIError):
    """Quota or rate limit exceeded (429)."""

    retryable_default = True

    def __init__(self, *args, retry_after: Optional[int] = None, **kwargs):
        super().__init__(*args, **kwargs)
        self.retry_after = retry_after
        if retry_after:
            self.metadata["retry_after"] = retry_after


class InvalidRequestError(ProviderAPIError):
    """The provider rejected the payload (400)."""


class ModelNotFoundError(ProviderAPIError):
    """Configured model does not exist or is not available (404)."""


class ServerError(ProviderAPIError):
    """Provider-side failure (5xx)."""

    retryable_default = True


class ConnectionError(LLMProviderError):
    """Unable to reach the provider."""

    def __init__(
        self,
        message: str,
        provider_id: str = DEFAULT_PROVIDER,
        model: Optional[str] = None,
        original_error: Optional[Exception] = None,
    ):
        super().__init__(
            message=message,
            provider_id=provider_id,
            model=model,
            error_type="connection_error",
            retryable=True,
            metadata={"original_error": str(original_error)} if original_error else {},
        )
        self.original_error = original_error


class TimeoutError(LLMProviderError):
    """Request exceeded the configured client timeout."""

    def __init__(
        self,
        message: str,
        timeout_seconds: int,
        provider_id: str = DEFAULT_PROVIDER,
        model: Optional[str] = None,
    ):
        super().__init__(
            message=message,
            provider_id=provider_id,
            model=model,
            error_type="timeout",
            retryable=True,
            metadata={"timeout_seconds": timeout_seconds},
        )
        self.timeout_seconds = timeout_seconds


class ProviderConfigurationError(LLMProviderError):
    """Client configuration is incomplete, e.g. no API key."""

    def __init__(self, message: str, config_field: Optional[str] = None):
        super().__init__(
            message=message,
            error_type="configuration_error",
            retryable=False,
            metadata={"config_field": config_field} if config_field else {},
        )
        self.config_field = config_field
