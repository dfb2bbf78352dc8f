"""
Generative model access for QueryNest.
"""

from .exceptions import LLMProviderError, ProviderError
from .gemini_client import GeminiClient
from .types import FunctionCall, FunctionDeclaration, GenerationResult

__all__ = [
    "GeminiClient",
    "GenerationResult",
    "FunctionCall",
    "FunctionDeclaration",
    "LLMProviderError",
    "ProviderError",
]
