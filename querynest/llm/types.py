"""
Types exchanged with the generative model.

Turns are plain dictionaries in the provider's wire shape
(``{"role": "user" | "model", "parts": [...]}``) so that the round-1
candidate content can be echoed back verbatim in round 2.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

Turn = Dict[str, Any]


def text_turn(role: str, text: str) -> Turn:
    """Build a single-part text turn."""
    return {"role": role, "parts": [{"text": text}]}


def function_response_turn(name: str, response: Dict[str, Any]) -> Turn:
    """Build the user-role turn that carries a tool result back to the model."""
    return {
        "role": "user",
        "parts": [{"functionResponse": {"name": name, "response": response}}],
    }


@dataclass
class FunctionCall:
    """
    A tool invocation requested by the model.

    Attributes:
        name: Declared function name
        args: Decoded arguments (always a dict)
        candidate_content: Raw model content that produced the call, echoed
            back unchanged when the tool result is returned
    """

    name: str
    args: Dict[str, Any] = field(default_factory=dict)
    candidate_content: Optional[Turn] = None

    def to_dict(self) -> Dict[str, Any]:
        return {"name": self.name, "args": self.args}


@dataclass
class GenerationResult:
    """Normalized view of one generateContent response."""

    text: str
    function_call: Optional[FunctionCall]
    text_source: str
    raw: Dict[str, Any] = field(default_factory=dict)

    @property
    def has_function_call(self) -> bool:
        return self.function_call is not None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "text": self.text,
            "text_source": self.text_source,
            "function_call": (
                self.function_call.to_dict() if self.function_call else None
            ),
        }


@dataclass(frozen=True)
class FunctionDeclaration:
    """A tool the model may call, in OpenAPI-subset parameter schema."""

    name: str
    description: str
    parameters: Dict[str, Any]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "description": self.description,
            "parameters": self.parameters,
        }


FUNCTION_CALLING_MODES = ("AUTO", "ANY", "NONE")


def declarations_to_tools(declarations: List[FunctionDeclaration]) -> List[Dict]:
    """Wrap declarations in the ``tools`` array the API expects."""
    return [{"functionDeclarations": [d.to_dict() for d in declarations]}]
