"""
Message service for managing conversation messages.

Provides operations for:
- Appending user and assistant messages grouped by pair_id
- Retrieving ordered message history
- Deleting a message pair as one unit
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
    storage_error,
    validation_error,
)
from .utils import (
    build_insert_query,
    encode_json,
    parse_uuid,
    record_to_dict,
    records_to_list,
)

VALID_ROLES = ("user", "assistant", "system")


class MessageService:
    """
    Service for managing conversation messages.

    Messages are append-only. A user message and its assistant reply share a
    ``pair_id`` and are only ever deleted together. History is always
    returned in ascending ``created_at`` order.

    All methods return Result types for consistent error handling.
    """

    def __init__(self, db_pool: asyncpg.Pool):
        """
        Initialize message service.

        Args:
            db_pool: PostgreSQL connection pool
        """
        self.db_pool = db_pool

    @track(
        operation="message_add",
        include_args=["conversation_id", "role"],
        include_result=True,
        track_performance=True,
        frequency="high_frequency",
    )
    async def add_message(
        self,
        conversation_id: str,
        role: str,
        content: str,
        pair_id: Optional[str] = None,
        metadata: Optional[Dict[str, Any]] = None,
    ) -> Result[Dict[str, Any], str]:
        """
        Append a message to a conversation.

        Also bumps the conversation's ``updated_at`` in the same transaction.

        Args:
            conversation_id: Conversation UUID
            role: Message role ('user', 'assistant', 'system')
            content: Message content
            pair_id: Groups a user message with its assistant reply
            metadata: Free-form metadata (tool provenance, truncation stats)

        Returns:
            Success with message dict, or Failure with error
        """
        try:
            if role not in VALID_ROLES:
                return validation_error(
                    f"Invalid role: {role}. Must be 'user', 'assistant', or 'system'",
                    context={"role": role},
                )

            if not content or not content.strip():
                return validation_error(
                    "Message content cannot be empty",
                    context={"conversation_id": conversation_id},
                )

            conv_uuid = parse_uuid(conversation_id)

            data: Dict[str, Any] = {
                "conversation_id": conv_uuid,
                "role": role,
                "content": content.strip(),
                "metadata": encode_json(metadata),
            }
            if pair_id:
                data["pair_id"] = parse_uuid(pair_id)

            query, values = build_insert_query("messages", data)

            async with self.db_pool.acquire() as conn:
                async with conn.transaction():
                    record = await conn.fetchrow(query, *values)
                    await conn.execute(
                        "UPDATE conversations SET updated_at = now() WHERE id = $1",
                        conv_uuid,
                    )

            if not record:
                return internal_error(
                    "Failed to create message",
                    context={"conversation_id": conversation_id},
                )

            message = record_to_dict(record)

            log_event(
                "message_added",
                {
                    "message_id": str(message["id"]),
                    "conversation_id": conversation_id,
                    "role": role,
                    "pair_id": str(pair_id) if pair_id else None,
                },
            )

            return Success(message)

        except ValueError as e:
            return validation_error(
                str(e), context={"conversation_id": conversation_id}
            )
        except asyncpg.ForeignKeyViolationError:
            return not_found_error(
                f"Conversation '{conversation_id}' not found",
                context={"conversation_id": conversation_id},
            )
        except asyncpg.PostgresError as e:
            log_event(
                "message_add_error",
                {"conversation_id": conversation_id, "error": str(e)},
                level=logging.ERROR,
            )
            return storage_error(
                f"Failed to add message: {str(e)}",
                context={"conversation_id": conversation_id},
            )
        except Exception as e:
            log_event(
                "message_add_error",
                {"conversation_id": conversation_id, "error": str(e)},
                level=logging.ERROR,
            )
            return internal_error(
                f"Failed to add message: {str(e)}",
                context={"conversation_id": conversation_id},
            )

    @track(
        operation="messages_get",
        include_args=["conversation_id"],
        track_performance=True,
        frequency="high_frequency",
    )
    async def get_messages(self, conversation_id: str) -> Result[Dict[str, Any], str]:
        """
        Get the full message history of a conversation.

        Returns:
            Success with ``{"messages": [...], "total": n}`` ordered by
            ``created_at`` ascending
        """
        try:
            conv_uuid = parse_uuid(conversation_id)

            async with self.db_pool.acquire() as conn:
                records = await conn.fetch(
                    """
                    SELECT * FROM messages
                    WHERE conversation_id = $1
                    ORDER BY created_at ASC
                    """,
                    conv_uuid,
                )

            messages = records_to_list(records)
            return Success({"messages": messages, "total": len(messages)})

        except ValueError as e:
            return validation_error(
                str(e), context={"conversation_id": conversation_id}
            )
        except Exception as e:
            log_event(
                "messages_get_error",
                {"conversation_id": conversation_id, "error": str(e)},
                level=logging.ERROR,
            )
            return internal_error(
                f"Failed to get messages: {str(e)}",
                context={"conversation_id": conversation_id},
            )

    async def get_message(
        self, conversation_id: str, message_id: str
    ) -> Result[Dict[str, Any], str]:
        """Get a single message scoped to its conversation."""
        try:
            conv_uuid = parse_uuid(conversation_id)
            msg_uuid = parse_uuid(message_id)

            async with self.db_pool.acquire() as conn:
                record = await conn.fetchrow(
                    "SELECT * FROM messages WHERE id = $1 AND conversation_id = $2",
                    msg_uuid,
                    conv_uuid,
                )

            if not record:
                return not_found_error(
                    f"Message '{message_id}' not found",
                    context={"message_id": message_id},
                )

            return Success(record_to_dict(record))

        except ValueError as e:
            return validation_error(str(e), context={"message_id": message_id})
        except Exception as e:
            log_event(
                "message_get_error",
                {"message_id": message_id, "error": str(e)},
                level=logging.ERROR,
            )
            return internal_error(
                f"Failed to get message: {str(e)}",
                context={"message_id": message_id},
            )

    @track(
        operation="message_pair_delete",
        include_args=["conversation_id", "pair_id"],
        track_performance=True,
    )
    async def delete_message_pair(
        self, conversation_id: str, pair_id: str
    ) -> Result[Dict[str, Any], str]:
        """
        Delete every message sharing ``pair_id`` in one statement.

        Returns:
            Success with the deleted message ids, or NotFound if the pair
            has no messages in this conversation
        """
        try:
            conv_uuid = parse_uuid(conversation_id)
            pair_uuid = parse_uuid(pair_id)

            async with self.db_pool.acquire() as conn:
                records = await conn.fetch(
                    """
                    DELETE FROM messages
                    WHERE conversation_id = $1 AND pair_id = $2
                    RETURNING id
                    """,
                    conv_uuid,
                    pair_uuid,
                )

            if not records:
                return not_found_error(
                    f"Message pair '{pair_id}' not found",
                    context={"conversation_id": conversation_id, "pair_id": pair_id},
                )

            deleted_ids = [str(record["id"]) for record in records]

            log_event(
                "message_pair_deleted",
                {
                    "conversation_id": conversation_id,
                    "pair_id": pair_id,
                    "deleted_count": len(deleted_ids),
                },
                level=logging.WARNING,
            )

            return Success(
                {
                    "conversation_id": conversation_id,
                    "pair_id": pair_id,
                    "deleted_ids": deleted_ids,
                }
            )

        except ValueError as e:
            return validation_error(str(e), context={"pair_id": pair_id})
        except Exception as e:
            log_event(
                "message_pair_delete_error",
                {"pair_id": pair_id, "error": str(e)},
                level=logging.ERROR,
            )
            return internal_error(
                f"Failed to delete message pair: {str(e)}",
                context={"pair_id": pair_id},
            )

    @track(
        operation="message_delete",
        include_args=["conversation_id", "message_id"],
        track_performance=True,
    )
    async def delete_message(
        self, conversation_id: str, message_id: str
    ) -> Result[Dict[str, Any], str]:
        """
        Delete a message together with the rest of its pair.

        A message without a ``pair_id`` is deleted on its own. Resolution and
        deletion happen in a single statement so a pair is never half-deleted.
        """
        try:
            conv_uuid = parse_uuid(conversation_id)
            msg_uuid = parse_uuid(message_id)

            async with self.db_pool.acquire() as conn:
                records = await conn.fetch(
                    """
                    WITH target AS (
                        SELECT id, pair_id FROM messages
                        WHERE id = $2 AND conversation_id = $1
                    )
                    DELETE FROM messages m
                    USING target t
                    WHERE m.conversation_id = $1
                      AND (m.id = t.id
                           OR (t.pair_id IS NOT NULL AND m.pair_id = t.pair_id))
                    RETURNING m.id, m.pair_id
                    """,
                    conv_uuid,
                    msg_uuid,
                )

            if not records:
                return not_found_error(
                    f"Message '{message_id}' not found",
                    context={"message_id": message_id},
                )

            deleted_ids = [str(record["id"]) for record in records]
            pair_uuid = records[0]["pair_id"]

            log_event(
                "message_pair_deleted",
                {
                    "conversation_id": conversation_id,
                    "message_id": message_id,
                    "deleted_count": len(deleted_ids),
                },
                level=logging.WARNING,
            )

            return Success(
                {
                    "conversation_id": conversation_id,
                    "pair_id": str(pair_uuid) if pair_uuid else None,
                    "deleted_ids": deleted_ids,
                }
            )

        except ValueError as e:
            return validation_error(str(e), context={"message_id": message_id})
        except Exception as e:
            log_event(
                "message_delete_error",
                {"message_id": message_id, "error": str(e)},
                level=logging.ERROR,
            )
            return internal_error(
                f"Failed to delete message: {str(e)}",
                context={"message_id": message_id},
            )
