"""
Conversation service for managing chat conversations.

Provides CRUD operations for conversations with:
- Create/read/update/delete conversations
- List conversations with pagination, most recently active first
- Result type error handling
"""

import logging
from typing import Any, Dict, Optional

import asyncpg

from ...utils.logging import log_event, track
from ...utils.result import (
    Result,
    Success,
    internal_error,
    not_found_error,
    validation_error,
)
from .utils import (
    affected_rows,
    build_insert_query,
    build_update_query,
    encode_json,
    parse_uuid,
    record_to_dict,
    records_to_list,
)

DEFAULT_TITLE = "New chat"
MAX_TITLE_LENGTH = 200


class ConversationService:
    """
    Service for managing conversations.

    Conversations are hard-deleted; their messages go with them. All methods
    return Result types for consistent error handling.
    """

    def __init__(self, db_pool: asyncpg.Pool):
        self.db_pool = db_pool

    @track(
        operation="conversation_create",
        include_args=["title"],
        include_result=True,
        track_performance=True,
        frequency="low_frequency",
    )
    async def create_conversation(
        self,
        title: Optional[str] = None,
        metadata: Optional[Dict[str, Any]] = None,
    ) -> Result[Dict[str, Any], str]:
        """
        Create a new conversation.

        Args:
            title: Conversation title ("New chat" if None or blank)
            metadata: Additional metadata

        Returns:
            Success with conversation dict, or Failure with error
        """
        try:
            title = (title or "").strip() or DEFAULT_TITLE
            if len(title) > MAX_TITLE_LENGTH:
                return validation_error(
                    f"Title must be at most {MAX_TITLE_LENGTH} characters",
                    context={"title_length": len(title)},
                )

            query, values = build_insert_query(
                "conversations",
                {"title": title, "metadata": encode_json(metadata)},
            )

            async with self.db_pool.acquire() as conn:
                record = await conn.fetchrow(query, *values)

            if not record:
                return internal_error("Failed to create conversation")

            conversation = record_to_dict(record)

            log_event(
                "conversation_created",
                {"conversation_id": str(conversation["id"]), "title": title},
            )

            return Success(conversation)

        except Exception as e:
            log_event(
                "conversation_create_error",
                {"error": str(e), "error_type": type(e).__name__},
                level=logging.ERROR,
            )
            return internal_error(
                f"Failed to create conversation: {str(e)}",
                context={"error_type": type(e).__name__},
            )

    @track(
        operation="conversation_get",
        include_args=["conversation_id"],
        track_performance=True,
        frequency="high_frequency",
    )
    async def get_conversation(
        self, conversation_id: str
    ) -> Result[Dict[str, Any], str]:
        """
        Get conversation by ID.

        Returns:
            Success with conversation dict, or Failure with error
        """
        try:
            conv_uuid = parse_uuid(conversation_id)

            async with self.db_pool.acquire() as conn:
                record = await conn.fetchrow(
                    "SELECT * FROM conversations WHERE id = $1", conv_uuid
                )

            if not record:
                return not_found_error(
                    f"Conversation '{conversation_id}' not found",
                    context={"conversation_id": conversation_id},
                )

            return Success(record_to_dict(record))

        except ValueError as e:
            return validation_error(
                str(e), context={"conversation_id": conversation_id}
            )
        except Exception as e:
            log_event(
                "conversation_get_error",
                {"conversation_id": conversation_id, "error": str(e)},
                level=logging.ERROR,
            )
            return internal_error(
                f"Failed to get conversation: {str(e)}",
                context={"conversation_id": conversation_id},
            )

    @track(
        operation="conversation_list",
        include_args=["limit", "offset"],
        track_performance=True,
        frequency="medium_frequency",
    )
    async def list_conversations(
        self,
        limit: int = 50,
        offset: int = 0,
    ) -> Result[Dict[str, Any], str]:
        """
        List conversations, most recently updated first.

        Args:
            limit: Maximum conversations to return (1-100)
            offset: Pagination offset

        Returns:
            Success with dict containing conversations and pagination info
        """
        try:
            if limit < 1 or limit > 100:
                return validation_error(
                    "Limit must be between 1 and 100", context={"limit": limit}
                )

            if offset < 0:
                return validation_error(
                    "Offset must be non-negative", context={"offset": offset}
                )

            async with self.db_pool.acquire() as conn:
                total = await conn.fetchval("SELECT COUNT(*) FROM conversations")
                records = await conn.fetch(
                    """
                    SELECT * FROM conversations
                    ORDER BY updated_at DESC
                    LIMIT $1 OFFSET $2
                    """,
                    limit,
                    offset,
                )

            conversations = records_to_list(records)

            return Success(
                {
                    "conversations": conversations,
                    "total": total,
                    "limit": limit,
                    "offset": offset,
                    "has_more": offset + len(conversations) < total,
                }
            )

        except Exception as e:
            log_event(
                "conversation_list_error",
                {"error": str(e)},
                level=logging.ERROR,
            )
            return internal_error(f"Failed to list conversations: {str(e)}")

    @track(
        operation="conversation_update",
        include_args=["conversation_id"],
        track_performance=True,
    )
    async def update_conversation(
        self,
        conversation_id: str,
        title: Optional[str] = None,
        metadata: Optional[Dict[str, Any]] = None,
    ) -> Result[Dict[str, Any], str]:
        """
        Update a conversation's title and/or metadata.

        Returns:
            Success with the updated conversation, or Failure with error
        """
        try:
            conv_uuid = parse_uuid(conversation_id)

            updates: Dict[str, Any] = {}
            if title is not None:
                title = title.strip()
                if not title:
                    return validation_error(
                        "Title cannot be empty",
                        context={"conversation_id": conversation_id},
                    )
                if len(title) > MAX_TITLE_LENGTH:
                    return validation_error(
                        f"Title must be at most {MAX_TITLE_LENGTH} characters",
                        context={"title_length": len(title)},
                    )
                updates["title"] = title
            if metadata is not None:
                updates["metadata"] = encode_json(metadata)

            if not updates:
                return validation_error(
                    "No updates provided",
                    context={"conversation_id": conversation_id},
                )

            query, values = build_update_query(
                "conversations", updates, f"id = ${len(updates) + 1}"
            )
            values.append(conv_uuid)

            async with self.db_pool.acquire() as conn:
                record = await conn.fetchrow(query, *values)

            if not record:
                return not_found_error(
                    f"Conversation '{conversation_id}' not found",
                    context={"conversation_id": conversation_id},
                )

            log_event(
                "conversation_updated",
                {"conversation_id": conversation_id, "fields": list(updates)},
            )

            return Success(record_to_dict(record))

        except ValueError as e:
            return validation_error(
                str(e), context={"conversation_id": conversation_id}
            )
        except Exception as e:
            log_event(
                "conversation_update_error",
                {"conversation_id": conversation_id, "error": str(e)},
                level=logging.ERROR,
            )
            return internal_error(
                f"Failed to update conversation: {str(e)}",
                context={"conversation_id": conversation_id},
            )

    @track(
        operation="conversation_delete",
        include_args=["conversation_id"],
        track_performance=True,
    )
    async def delete_conversation(
        self, conversation_id: str
    ) -> Result[Dict[str, Any], str]:
        """
        Permanently delete a conversation and all of its messages.

        Returns:
            Success with the number of deleted messages, or NotFound
        """
        try:
            conv_uuid = parse_uuid(conversation_id)

            async with self.db_pool.acquire() as conn:
                async with conn.transaction():
                    status = await conn.execute(
                        "DELETE FROM messages WHERE conversation_id = $1", conv_uuid
                    )
                    deleted = await conn.fetchval(
                        "DELETE FROM conversations WHERE id = $1 RETURNING id",
                        conv_uuid,
                    )

            if deleted is None:
                return not_found_error(
                    f"Conversation '{conversation_id}' not found",
                    context={"conversation_id": conversation_id},
                )

            deleted_messages = affected_rows(status)

            log_event(
                "conversation_deleted",
                {
                    "conversation_id": conversation_id,
                    "deleted_messages": deleted_messages,
                },
                level=logging.WARNING,
            )

            return Success(
                {
                    "conversation_id": conversation_id,
                    "deleted_messages": deleted_messages,
                }
            )

        except ValueError as e:
            return validation_error(
                str(e), context={"conversation_id": conversation_id}
            )
        except Exception as e:
            log_event(
                "conversation_delete_error",
                {"conversation_id": conversation_id, "error": str(e)},
                level=logging.ERROR,
            )
            return internal_error(
                f"Failed to delete conversation: {str(e)}",
                context={"conversation_id": conversation_id},
            )
