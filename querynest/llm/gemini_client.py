"""
Gemini generateContent client with function-calling support.

One request per call, no retries. Transport failures and non-200 statuses
raise ``LLMProviderError`` subclasses; everything else is normalized into a
``GenerationResult``.
"""

import asyncio
import json
import logging
from typing import Any, Dict, List, Optional

import aiohttp

from ..utils.http_session import BaseHTTPClient
from ..utils.logging import log_event, track
from .exceptions import (
    AuthenticationError,
    ConnectionError,
    InvalidRequestError,
    ModelNotFoundError,
    ProviderAPIError,
    ProviderConfigurationError,
    RateLimitError,
    ServerError,
    TimeoutError,
)
from .response_parsing import parse_generation
from .types import (
    FUNCTION_CALLING_MODES,
    FunctionDeclaration,
    GenerationResult,
    Turn,
    declarations_to_tools,
)

PROVIDER_ID = "google"


def _parse_retry_after(value: Optional[str]) -> Optional[int]:
    """Seconds from a ``Retry-After`` header; HTTP-date values are ignored."""
    if value and value.strip().isdigit():
        return int(value.strip())
    return None


class GeminiClient(BaseHTTPClient):
    """
    Client for the Google Generative Language API.

    Uses simple API key authentication passed as a query parameter.
    """

    def __init__(
        self,
        api_key: Optional[str],
        model: str,
        base_url: str = "https://generativelanguage.googleapis.com/v1beta",
        timeout_seconds: int = 120,
    ):
        super().__init__()
        self.api_key = api_key
        self.model = model
        self.base_url = base_url.rstrip("/")
        self.timeout_seconds = timeout_seconds

    async def initialize(self) -> None:
        self._initialize_session(
            timeout_seconds=self.timeout_seconds,
            max_connections=50,
            max_connections_per_host=20,
        )
        log_event(
            "gemini_client_initialized",
            {"model": self.model, "base_url": self.base_url},
        )

    async def cleanup(self) -> None:
        await self._cleanup_session()

    def _build_url(self, action: str = "generateContent") -> str:
        return f"{self.base_url}/models/{self.model}:{action}?key={self.api_key}"

    def build_payload(
        self,
        turns: List[Turn],
        system_instruction: Optional[str] = None,
        tools: Optional[List[FunctionDeclaration]] = None,
        function_calling_mode: str = "AUTO",
    ) -> Dict[str, Any]:
        """
        Build the generateContent request body.

        Args:
            turns: Conversation turns in wire shape
            system_instruction: Instruction sent outside the turn list
            tools: Function declarations the model may call
            function_calling_mode: AUTO, ANY or NONE

        Raises:
            ValueError: If the mode is unknown
        """
        if function_calling_mode not in FUNCTION_CALLING_MODES:
            raise ValueError(f"Unknown function calling mode: {function_calling_mode}")

        payload: Dict[str, Any] = {"contents": turns}

        if system_instruction:
            payload["systemInstruction"] = {"parts": [{"text": system_instruction}]}

        if tools:
            payload["tools"] = declarations_to_tools(tools)
            payload["toolConfig"] = {
                "functionCallingConfig": {"mode": function_calling_mode}
            }

        return payload

    @track(
        operation="gemini_generate",
        include_args=["function_calling_mode"],
        track_performance=True,
        frequency="low_frequency",
    )
    async def generate(
        self,
        turns: List[Turn],
        system_instruction: Optional[str] = None,
        tools: Optional[List[FunctionDeclaration]] = None,
        function_calling_mode: str = "AUTO",
    ) -> GenerationResult:
        """
        Send one generateContent request.

        Returns:
            GenerationResult with text, optional function call and raw body

        Raises:
            ProviderConfigurationError: If no API key is configured
            ConnectionError: On network failure
            TimeoutError: When the request exceeds the client timeout
            ProviderAPIError: Or a subclass, on non-200 status
        """
        if not self.api_key:
            raise ProviderConfigurationError(
                "Google API key is not configured", config_field="google_api_key"
            )

        session = self._ensure_session()
        payload = self.build_payload(
            turns, system_instruction, tools, function_calling_mode
        )
        url = self._build_url()

        try:
            async with session.post(url, json=payload) as response:
                response_text = await response.text(errors="replace")

                if response.status != 200:
                    log_event(
                        "gemini_request_failed",
                        {
                            "status": response.status,
                            "error": response_text[:500],
                            "model": self.model,
                        },
                        level=logging.ERROR,
                    )
                    self._raise_api_error(
                        response.status,
                        response_text,
                        retry_after=_parse_retry_after(
                            response.headers.get("Retry-After")
                        ),
                    )

        except aiohttp.ClientError as e:
            log_event(
                "gemini_connection_error",
                {"error": str(e), "model": self.model},
                level=logging.ERROR,
            )
            raise ConnectionError(
                message=f"Failed to connect to Google AI: {str(e)}",
                provider_id=PROVIDER_ID,
                model=self.model,
                original_error=e,
            ) from e
        except asyncio.TimeoutError as e:
            log_event(
                "gemini_timeout",
                {"timeout_seconds": self.timeout_seconds, "model": self.model},
                level=logging.ERROR,
            )
            raise TimeoutError(
                message="Google AI request timed out",
                timeout_seconds=self.timeout_seconds,
                provider_id=PROVIDER_ID,
                model=self.model,
            ) from e

        try:
            raw = json.loads(response_text) if response_text else {}
        except ValueError:
            raw = {"text_body": response_text}
        if not isinstance(raw, dict):
            raw = {"value": raw}

        result = parse_generation(raw)

        log_event(
            "model_response_parsed",
            {
                "model": self.model,
                "mode": function_calling_mode,
                "text_source": result.text_source,
                "has_function_call": result.has_function_call,
                "function_name": (
                    result.function_call.name if result.function_call else None
                ),
            },
            level=logging.DEBUG,
        )

        return result

    def _raise_api_error(
        self,
        status_code: int,
        response_text: str,
        retry_after: Optional[int] = None,
    ) -> None:
        """
        Raise the exception matching a non-200 status.

        Raises:
            ProviderAPIError: Or the subclass for the status code
        """
        error_message = self._extract_error_message(response_text)
        common = {
            "status_code": status_code,
            "response_body": response_text,
            "provider_id": PROVIDER_ID,
            "model": self.model,
        }

        if status_code in (401, 403):
            raise AuthenticationError(
                f"Invalid API key or insufficient permissions: {error_message}",
                **common,
            )
        if status_code == 404:
            if "model" in error_message.lower():
                raise ModelNotFoundError(
                    f"Model '{self.model}' not found: {error_message}", **common
                )
            raise InvalidRequestError(f"Resource not found: {error_message}", **common)
        if status_code == 429:
            raise RateLimitError(
                f"Rate limit exceeded: {error_message}",
                retry_after=retry_after,
                **common,
            )
        if status_code == 400:
            raise InvalidRequestError(f"Invalid request: {error_message}", **common)
        if 500 <= status_code < 600:
            raise ServerError(f"Google AI server error: {error_message}", **common)
        raise ProviderAPIError(f"Google AI API error: {error_message}", **common)

    @staticmethod
    def _extract_error_message(response_text: str) -> str:
        try:
            data = json.loads(response_text)
        except (TypeError, ValueError):
            return (response_text or "")[:500]

        if isinstance(data, dict):
            error = data.get("error", {})
            if isinstance(error, dict):
                return error.get("message") or response_text[:500]
            if isinstance(error, str):
                return error
            return str(data.get("message", response_text[:500]))

        return response_text[:500]
