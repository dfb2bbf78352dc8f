from typing import Any, Dict, List, Optional, Union

from querynest.llm.response_parsing import parse_generation
from querynest.llm.types import GenerationResult


def text_response(text: str) -> Dict[str, Any]:
    return {"candidates": [{"content": {"role": "model", "parts": [{"text": text}]}}]}


def function_call_response(name: str, args: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
    return {
        "candidates": [
            {
                "content": {
                    "role": "model",
                    "parts": [{"functionCall": {"name": name, "args": args or {}}}],
                }
            }
        ]
    }


class MockModelClient:
    """
    Plays back scripted generateContent responses.

    Each script entry is a raw response dict (normalized the same way the
    real client does) or an exception to raise.
    """

    def __init__(self, script: Optional[List[Union[Dict[str, Any], Exception]]] = None):
        self.script = list(script or [])
        self.calls: List[Dict[str, Any]] = []
        self.model = "gemini-test"
        self.api_key = "test-key"

    async def generate(
        self,
        turns,
        system_instruction=None,
        tools=None,
        function_calling_mode="AUTO",
    ) -> GenerationResult:
        self.calls.append(
            {
                "turns": turns,
                "system_instruction": system_instruction,
                "tools": tools,
                "function_calling_mode": function_calling_mode,
            }
        )
        if not self.script:
            raise AssertionError("MockModelClient called more times than scripted")
        step = self.script.pop(0)
        if isinstance(step, Exception):
            raise step
        return parse_generation(step)

    async def cleanup(self) -> None:
        pass
