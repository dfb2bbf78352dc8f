"""
Conversation API routes.

Provides REST endpoints for conversation management:
- Create conversations
- List conversations
- Get, rename and delete a conversation
"""

from typing import Any, Dict, Optional

from fastapi import APIRouter, HTTPException, Query
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field

from ..dependencies import get_container
from ..serialization import serialize_for_json

router = APIRouter(prefix="/api", tags=["conversations"])


class CreateConversationRequest(BaseModel):
    """Request model for creating a conversation."""

    title: Optional[str] = Field(None, description="Conversation title")
    metadata: Optional[Dict[str, Any]] = Field(None, description="Free-form metadata")


class UpdateConversationRequest(BaseModel):
    """Request model for updating a conversation."""

    title: Optional[str] = Field(None, description="New title")
    metadata: Optional[Dict[str, Any]] = Field(None, description="Replacement metadata")


def _conversation_service():
    container = get_container()
    if not container.conversation_service:
        raise HTTPException(
            status_code=503, detail="Conversation service not available"
        )
    return container.conversation_service


@router.post("/conversations")
async def create_conversation(request: CreateConversationRequest):
    """
    Create a new conversation.

    Returns the created conversation with ID.
    """
    service = _conversation_service()

    result = await service.create_conversation(
        title=request.title, metadata=request.metadata
    )

    if result.is_failure():
        return JSONResponse(content=result.to_dict(), status_code=result.status_code)

    return {
        "success": True,
        "conversation": serialize_for_json(result.unwrap()),
    }


@router.get("/conversations")
async def list_conversations(
    limit: int = Query(50, ge=1, le=100),
    offset: int = Query(0, ge=0),
):
    """List conversations, most recently active first."""
    service = _conversation_service()

    result = await service.list_conversations(limit=limit, offset=offset)

    if result.is_failure():
        return JSONResponse(content=result.to_dict(), status_code=result.status_code)

    return {"success": True, **serialize_for_json(result.unwrap())}


@router.get("/conversations/{conversation_id}")
async def get_conversation(conversation_id: str):
    service = _conversation_service()

    result = await service.get_conversation(conversation_id)

    if result.is_failure():
        return JSONResponse(content=result.to_dict(), status_code=result.status_code)

    return {
        "success": True,
        "conversation": serialize_for_json(result.unwrap()),
    }


@router.patch("/conversations/{conversation_id}")
async def update_conversation(
    conversation_id: str, request: UpdateConversationRequest
):
    """Rename a conversation or replace its metadata."""
    service = _conversation_service()

    result = await service.update_conversation(
        conversation_id, title=request.title, metadata=request.metadata
    )

    if result.is_failure():
        return JSONResponse(content=result.to_dict(), status_code=result.status_code)

    return {
        "success": True,
        "conversation": serialize_for_json(result.unwrap()),
    }


@router.delete("/conversations/{conversation_id}")
async def delete_conversation(conversation_id: str):
    """
    Permanently delete a conversation and all of its messages.
    """
    service = _conversation_service()

    result = await service.delete_conversation(conversation_id)

    if result.is_failure():
        return JSONResponse(content=result.to_dict(), status_code=result.status_code)

    return {"success": True, **serialize_for_json(result.unwrap())}
