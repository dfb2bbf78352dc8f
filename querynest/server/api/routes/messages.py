"""
Message API routes.

Sending a message runs a full chat turn: the user message is stored, the
assistant reply is generated (searching documents when the model asks to)
and stored under the same pair id.
"""

import logging
from typing import Any, Dict, Optional

from fastapi import APIRouter, HTTPException
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field

from ....rag.exceptions import RAGError
from ....utils.logging import log_event
from ..dependencies import get_container
from ..serialization import serialize_for_json

router = APIRouter(prefix="/api", tags=["messages"])


class SendMessageRequest(BaseModel):
    """Request model for sending a message."""

    content: str = Field("", description="Message content (user question)")
    metadata: Optional[Dict[str, Any]] = Field(
        None, description="Metadata stored on the user message"
    )


def _message_service():
    container = get_container()
    if not container.message_service:
        raise HTTPException(status_code=503, detail="Message service not available")
    return container.message_service


@router.get("/conversations/{conversation_id}/messages")
async def get_messages(conversation_id: str):
    """Full message history, oldest first."""
    service = _message_service()

    result = await service.get_messages(conversation_id)

    if result.is_failure():
        return JSONResponse(content=result.to_dict(), status_code=result.status_code)

    return {"success": True, **serialize_for_json(result.unwrap())}


@router.post("/conversations/{conversation_id}/messages")
async def send_message(conversation_id: str, request: SendMessageRequest):
    """
    Send a user message and get the assistant reply.

    Search and model failures do not fail the request; they come back as a
    stored apology from the assistant.
    """
    container = get_container()
    if not container.orchestrator:
        raise HTTPException(status_code=503, detail="Chat service not available")

    try:
        turn = await container.orchestrator.handle_user_message(
            conversation_id=conversation_id,
            content=request.content,
            metadata=request.metadata,
        )
    except RAGError as e:
        if e.status_code >= 500:
            log_event(
                "send_message_failed",
                {"conversation_id": conversation_id, "error": e.message},
                level=logging.ERROR,
            )
        return JSONResponse(content=e.to_dict(), status_code=e.status_code)

    return serialize_for_json(turn.to_dict())


@router.delete("/conversations/{conversation_id}/messages/{message_id}")
async def delete_message(conversation_id: str, message_id: str):
    """
    Delete a message together with its pair.

    Deleting either the question or the answer removes both.
    """
    service = _message_service()

    result = await service.delete_message(conversation_id, message_id)

    if result.is_failure():
        return JSONResponse(content=result.to_dict(), status_code=result.status_code)

    return {"success": True, **serialize_for_json(result.unwrap())}
