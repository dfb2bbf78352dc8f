"""
Database module for PostgreSQL-backed conversation storage.

Conversations hold an append-only, time-ordered list of messages. A user
message and the assistant reply it produced share a ``pair_id`` and are
deleted together.
"""

from .conversation_service import ConversationService
from .message_service import MessageService
from .schema import SCHEMA_SQL, apply_schema
from .utils import (
    build_insert_query,
    build_update_query,
    parse_uuid,
    record_to_dict,
    records_to_list,
)

__all__ = [
    "ConversationService",
    "MessageService",
    "SCHEMA_SQL",
    "apply_schema",
    "build_insert_query",
    "build_update_query",
    "parse_uuid",
    "record_to_dict",
    "records_to_list",
]
