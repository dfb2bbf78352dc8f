"""
Ingestion pipeline: uploaded file to searchable document.
"""

import logging
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from ..search.index_service import DocumentIndexService
from ..utils.logging import log_event, track
from ..utils.result import Result, Success, validation_error
from .extraction import UnsupportedFileType, extract_text


class IngestionStatus:
    INDEXED = "indexed"
    EMPTY = "empty"
    UNSUPPORTED = "unsupported"


class IngestionPipeline:
    """
    Extracts text from uploads and keeps the document index in sync.

    Unsupported and empty files are reported, not indexed. A file is indexed
    under its ``file_id`` so reprocessing replaces the previous version.
    """

    def __init__(self, index_service: DocumentIndexService):
        self.index_service = index_service

    @track(
        operation="ingestion_process_file",
        include_args=["file_id", "filename", "mime_type"],
        track_performance=True,
    )
    async def process_file(
        self,
        file_id: str,
        filename: str,
        mime_type: Optional[str],
        data: bytes,
        user_id: Optional[str] = None,
    ) -> Result[Dict[str, Any], str]:
        """
        Extract and index one file.

        Returns:
            Success with ``status`` of indexed, empty or unsupported, or a
            Failure if the index rejected the document
        """
        if not file_id or not file_id.strip():
            return validation_error("file_id is required")

        base = {"file_id": file_id, "filename": filename, "mime_type": mime_type}

        try:
            text = extract_text(filename, mime_type, data)
        except UnsupportedFileType as e:
            log_event(
                "text_extraction_skipped",
                {"file_id": file_id, "reason": str(e)},
                level=logging.WARNING,
            )
            return Success({**base, "status": IngestionStatus.UNSUPPORTED})

        log_event(
            "text_extracted",
            {"file_id": file_id, "bytes": len(data), "text_length": len(text)},
        )

        if not text.strip():
            return Success({**base, "status": IngestionStatus.EMPTY, "text_length": 0})

        document = {
            "fileId": file_id,
            "userId": user_id,
            "content": text,
            "originalName": filename,
            "createdAt": datetime.now(timezone.utc).isoformat(),
        }

        result = await self.index_service.index_document(file_id, document)
        if result.is_failure():
            return result

        return Success(
            {
                **base,
                "status": IngestionStatus.INDEXED,
                "text_length": len(text),
                "index_result": result.unwrap().get("result"),
            }
        )

    async def remove_file(self, file_id: str) -> Result[Dict[str, Any], str]:
        """Remove a file's document from the index."""
        if not file_id or not file_id.strip():
            return validation_error("file_id is required")
        return await self.index_service.delete_document(file_id)
