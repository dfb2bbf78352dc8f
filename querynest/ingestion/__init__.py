"""
File ingestion for QueryNest.
"""

from .extraction import UnsupportedFileType, extract_text
from .pipeline import IngestionPipeline, IngestionStatus

__all__ = ["IngestionPipeline", "IngestionStatus", "UnsupportedFileType", "extract_text"]
