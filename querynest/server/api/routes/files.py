"""
File processing endpoints.

Uploads are stored elsewhere; these routes only make a file searchable or
remove it from the search index.
"""

from typing import Optional

from fastapi import APIRouter, File, Form, HTTPException, UploadFile
from fastapi.responses import JSONResponse

from ..dependencies import get_container

router = APIRouter(prefix="/api", tags=["files"])


def _ingestion_pipeline():
    container = get_container()
    if not container.ingestion_pipeline:
        raise HTTPException(status_code=503, detail="Ingestion service not available")
    return container.ingestion_pipeline


@router.post("/files/{file_id}/process")
async def process_file(
    file_id: str,
    file: UploadFile = File(...),  # noqa: B008
    user_id: Optional[str] = Form(None),  # noqa: B008
):
    """Extract text from an uploaded file and index it under ``file_id``."""
    pipeline = _ingestion_pipeline()

    data = await file.read()

    result = await pipeline.process_file(
        file_id=file_id,
        filename=file.filename or file_id,
        mime_type=file.content_type,
        data=data,
        user_id=user_id,
    )

    if result.is_failure():
        return JSONResponse(content=result.to_dict(), status_code=result.status_code)

    return {"success": True, **result.unwrap()}


@router.delete("/files/{file_id}")
async def delete_file(file_id: str):
    """Remove a file from the search index."""
    pipeline = _ingestion_pipeline()

    result = await pipeline.remove_file(file_id)

    if result.is_failure():
        return JSONResponse(content=result.to_dict(), status_code=result.status_code)

    return {"success": True, **result.unwrap()}
