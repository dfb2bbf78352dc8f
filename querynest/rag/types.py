"""
Type definitions for the chat turn.
"""

import math
from dataclasses import dataclass, field
from typing import Any, Dict

from .prompts import SYSTEM_INSTRUCTION


class RetrievedFrom:
    """Values of the ``retrieved_from`` key on assistant message metadata."""

    NONE = "none"
    ELASTICSEARCH_TOOL = "elasticsearch_tool"
    ELASTICSEARCH_ERROR = "elasticsearch_error"
    UNEXPECTED_FUNCTION = "unexpected_function"
    MISSING_ARGUMENT = "missing_argument"
    MODEL_ERROR = "model_error"
    HISTORY_ERROR = "history_error"


@dataclass(frozen=True)
class OrchestratorConfig:
    """
    Tunables for one chat turn.

    Attributes:
        default_max_results: Hits searched when the model gives no count
        max_results_limit: Upper bound on hits the model may request
        tool_max_bytes: Byte budget for the tool result sent back to the model
        hits_sample_size: Hits summarized in the assistant message metadata
        system_instruction: Persona and tool-use guidance for round 1
    """

    default_max_results: int = 5
    max_results_limit: int = 20
    tool_max_bytes: int = 100_000
    hits_sample_size: int = 10
    system_instruction: str = SYSTEM_INSTRUCTION

    def __post_init__(self):
        if self.max_results_limit < 1:
            raise ValueError("max_results_limit must be at least 1")
        if not 1 <= self.default_max_results <= self.max_results_limit:
            raise ValueError("default_max_results must be between 1 and max_results_limit")
        if self.tool_max_bytes < 1:
            raise ValueError("tool_max_bytes must be positive")
        if self.hits_sample_size < 0:
            raise ValueError("hits_sample_size cannot be negative")

    def clamp_max_results(self, requested: Any) -> int:
        """Hit count for a search, from whatever the model passed."""
        if isinstance(requested, bool):
            return self.default_max_results
        if isinstance(requested, str):
            try:
                requested = int(requested.strip())
            except ValueError:
                return self.default_max_results
        if isinstance(requested, float):
            if not math.isfinite(requested):
                return self.default_max_results
            requested = int(requested)
        if not isinstance(requested, int):
            return self.default_max_results
        return max(1, min(requested, self.max_results_limit))


@dataclass
class AssistantReply:
    """Text and metadata of the assistant message a turn will persist."""

    content: str
    metadata: Dict[str, Any] = field(default_factory=dict)


@dataclass
class ChatTurn:
    """
    Outcome of one user message.

    Attributes:
        user: Stored user message
        assistant: Stored assistant message, or an unsaved stand-in with a
            ``temp-`` id when the write failed
        persisted: Whether the assistant message reached the store
    """

    user: Dict[str, Any]
    assistant: Dict[str, Any]
    persisted: bool = True

    @property
    def pair_id(self) -> Any:
        return self.user.get("pair_id")

    def to_dict(self) -> Dict[str, Any]:
        return {"user": self.user, "assistant": self.assistant}
