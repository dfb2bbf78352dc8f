"""
Search result types.
"""

import math
from dataclasses import dataclass, field
from typing import Any, Dict, List


def _score(value: Any) -> float:
    if isinstance(value, bool):
        return 0.0
    try:
        score = float(value)
    except (TypeError, ValueError):
        return 0.0
    return score if math.isfinite(score) else 0.0


def _text(source: Dict[str, Any], *keys: str) -> str:
    """First non-empty string among ``keys``."""
    for key in keys:
        value = source.get(key)
        if isinstance(value, str) and value:
            return value
    return ""


@dataclass
class SearchHit:
    """
    One document returned by the search engine.

    ``content`` is the extracted text, falling back to OCR text when the
    document has no plain content.
    """

    id: str
    score: float = 0.0
    title: str = ""
    path: str = ""
    content: str = ""
    source: Dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_es_hit(cls, hit: Dict[str, Any]) -> "SearchHit":
        """
        Normalize a raw ``hits.hits`` entry.

        Fields of the wrong type are treated as absent, and a score that is
        not a finite number becomes 0.0.
        """
        source = hit.get("_source")
        if not isinstance(source, dict):
            source = {}
        return cls(
            id=str(hit.get("_id") or source.get("fileId") or ""),
            score=_score(hit.get("_score")),
            title=_text(source, "originalName", "filename"),
            path=_text(source, "path"),
            content=_text(source, "content", "ocr_text"),
            source=source,
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "score": self.score,
            "title": self.title,
            "path": self.path,
            "content": self.content,
        }


@dataclass
class PrunedToolResult:
    """Search hits fitted into the byte budget for the model."""

    hits: List[Dict[str, Any]]
    original_count: int
    final_count: int
    snippet_length: int
    serialized_bytes: int
    truncated: bool

    def sample(self, size: int = 10) -> List[Dict[str, Any]]:
        """Compact view of the first hits for message metadata."""
        return [
            {"id": hit["id"], "title": hit["title"], "score": hit["score"]}
            for hit in self.hits[:size]
        ]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "hits": self.hits,
            "original_count": self.original_count,
            "final_count": self.final_count,
            "snippet_length": self.snippet_length,
            "serialized_bytes": self.serialized_bytes,
            "truncated": self.truncated,
        }
