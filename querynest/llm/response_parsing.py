"""
Normalization of generateContent responses.

Provider responses come in several shapes depending on API version and SDK.
Each extractor below handles one shape and returns None when it does not
apply. They are tried in order and the first non-empty answer wins, so a
shape mismatch degrades to the next strategy instead of raising.
"""

import json
from typing import Any, Callable, Dict, List, Optional, Tuple

from .types import FunctionCall, GenerationResult

RAW_FALLBACK_LIMIT = 1000


def _first_candidate(raw: Dict[str, Any]) -> Dict[str, Any]:
    candidates = raw.get("candidates")
    if isinstance(candidates, list) and candidates and isinstance(candidates[0], dict):
        return candidates[0]
    return {}


def _candidate_parts(raw: Dict[str, Any]) -> List[Dict[str, Any]]:
    content = _first_candidate(raw).get("content")
    if not isinstance(content, dict):
        return []
    parts = content.get("parts")
    if not isinstance(parts, list):
        return []
    return [part for part in parts if isinstance(part, dict)]


def _non_empty(value: Any) -> Optional[str]:
    if isinstance(value, str) and value.strip():
        return value
    return None


# Text strategies


def _text_top_level(raw: Dict[str, Any]) -> Optional[str]:
    return _non_empty(raw.get("text"))


def _text_candidate_parts(raw: Dict[str, Any]) -> Optional[str]:
    texts = [part["text"] for part in _candidate_parts(raw) if isinstance(part.get("text"), str)]
    return _non_empty("".join(texts))


def _text_response_field(raw: Dict[str, Any]) -> Optional[str]:
    response = raw.get("response")
    if isinstance(response, dict):
        return _non_empty(response.get("text"))
    return None


def _text_output_content(raw: Dict[str, Any]) -> Optional[str]:
    output = raw.get("output")
    if not isinstance(output, list) or not output or not isinstance(output[0], dict):
        return None
    content = output[0].get("content")
    if not isinstance(content, list) or not content or not isinstance(content[0], dict):
        return None
    return _non_empty(content[0].get("text"))


TEXT_STRATEGIES: List[Tuple[str, Callable[[Dict[str, Any]], Optional[str]]]] = [
    ("top_level_text", _text_top_level),
    ("candidate_parts", _text_candidate_parts),
    ("response_text", _text_response_field),
    ("output_content", _text_output_content),
]


def extract_text(raw: Dict[str, Any]) -> Tuple[str, str]:
    """
    Return ``(text, text_source)`` for a raw response.

    When no strategy applies, the serialized response (truncated) is returned
    with source ``raw_fallback``.
    """
    if isinstance(raw, dict):
        for source, strategy in TEXT_STRATEGIES:
            text = strategy(raw)
            if text:
                return text, source

    try:
        serialized = json.dumps(raw, default=str)
    except (TypeError, ValueError):
        serialized = str(raw)
    return serialized[:RAW_FALLBACK_LIMIT], "raw_fallback"


# Function-call strategies


def _call_top_level(raw: Dict[str, Any]) -> Optional[Dict[str, Any]]:
    calls = raw.get("functionCalls")
    if isinstance(calls, list) and calls and isinstance(calls[0], dict):
        return calls[0]
    return None


def _call_on_candidate(raw: Dict[str, Any]) -> Optional[Dict[str, Any]]:
    candidate = _first_candidate(raw)
    call = candidate.get("functionCall") or candidate.get("function_call")
    return call if isinstance(call, dict) else None


def _call_in_parts(raw: Dict[str, Any]) -> Optional[Dict[str, Any]]:
    for part in _candidate_parts(raw):
        call = part.get("functionCall") or part.get("function_call")
        if isinstance(call, dict):
            return call
    return None


FUNCTION_CALL_STRATEGIES: List[Callable[[Dict[str, Any]], Optional[Dict[str, Any]]]] = [
    _call_top_level,
    _call_on_candidate,
    _call_in_parts,
]


def _decode_args(args: Any) -> Dict[str, Any]:
    if isinstance(args, dict):
        return args
    if isinstance(args, str):
        try:
            decoded = json.loads(args)
        except ValueError:
            return {}
        return decoded if isinstance(decoded, dict) else {}
    return {}


def extract_function_call(raw: Dict[str, Any]) -> Optional[FunctionCall]:
    """
    Return the first function call found in a raw response, or None.

    The candidate content is kept for round 2. When the response has none
    (e.g. a top-level ``functionCalls`` shape), a model turn carrying just the
    call is synthesized.
    """
    if not isinstance(raw, dict):
        return None

    for strategy in FUNCTION_CALL_STRATEGIES:
        call = strategy(raw)
        if not call:
            continue

        name = call.get("name")
        if not isinstance(name, str) or not name:
            continue

        args = _decode_args(call.get("args", call.get("arguments")))

        content = _first_candidate(raw).get("content")
        if not isinstance(content, dict) or not content.get("parts"):
            content = {
                "role": "model",
                "parts": [{"functionCall": {"name": name, "args": args}}],
            }
        else:
            content = {**content, "role": content.get("role") or "model"}

        return FunctionCall(name=name, args=args, candidate_content=content)

    return None


def parse_generation(raw: Dict[str, Any]) -> GenerationResult:
    """Normalize a raw generateContent response."""
    function_call = extract_function_call(raw)
    text, text_source = extract_text(raw)
    return GenerationResult(
        text=text,
        function_call=function_call,
        text_source=text_source,
        raw=raw if isinstance(raw, dict) else {"value": raw},
    )
