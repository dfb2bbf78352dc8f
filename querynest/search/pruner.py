"""
Fits search hits into a byte budget before they are handed to the model.

Snippets are shortened first; only once they are at the floor are hits
dropped from the tail. Both shrink geometrically so the loop is short even
for large inputs.
"""

import json
import logging
from typing import Any, Dict, List, Sequence

from ..utils.logging import log_event
from .types import PrunedToolResult, SearchHit

INITIAL_SNIPPET_LENGTH = 400
MIN_SNIPPET_LENGTH = 50
SHRINK_FACTOR = 0.7


def _payload(hits: Sequence[SearchHit], count: int, snippet: int) -> List[Dict[str, Any]]:
    return [
        {
            "id": hit.id,
            "score": hit.score,
            "title": hit.title,
            "path": hit.path,
            "content": hit.content[:snippet],
        }
        for hit in hits[:count]
    ]


def _serialized_size(payload: Any) -> int:
    return len(json.dumps(payload, ensure_ascii=False).encode("utf-8"))


def prune_hits(hits: Sequence[SearchHit], max_bytes: int) -> PrunedToolResult:
    """
    Shrink ``hits`` until their JSON serialization fits in ``max_bytes``.

    Never raises. If even a single hit with a minimal snippet is over budget,
    that hit is returned anyway and ``serialized_bytes`` reports the overrun.
    """
    original_count = len(hits)
    if not hits:
        return PrunedToolResult(
            hits=[],
            original_count=0,
            final_count=0,
            snippet_length=INITIAL_SNIPPET_LENGTH,
            serialized_bytes=_serialized_size([]),
            truncated=False,
        )

    snippet = INITIAL_SNIPPET_LENGTH
    count = original_count
    final_hits = _payload(hits, count, snippet)
    size = _serialized_size(final_hits)

    while size > max_bytes:
        if snippet > MIN_SNIPPET_LENGTH:
            snippet = max(MIN_SNIPPET_LENGTH, int(snippet * SHRINK_FACTOR))
        elif count > 1:
            count = max(1, int(count * SHRINK_FACTOR))
        else:
            break
        final_hits = _payload(hits, count, snippet)
        size = _serialized_size(final_hits)

    truncated = count < original_count or snippet < INITIAL_SNIPPET_LENGTH

    if truncated:
        log_event(
            "tool_result_pruned",
            {
                "original_count": original_count,
                "final_count": count,
                "snippet_length": snippet,
                "serialized_bytes": size,
                "max_bytes": max_bytes,
            },
            level=logging.DEBUG,
        )

    return PrunedToolResult(
        hits=final_hits,
        original_count=original_count,
        final_count=count,
        snippet_length=snippet,
        serialized_bytes=size,
        truncated=truncated,
    )
