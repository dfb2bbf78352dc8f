"""
Database utility functions for common operations.

Provides reusable helpers for:
- Query building
- Result mapping (including JSONB metadata decoding)
- UUID parsing
"""

import json
from typing import Any, Dict, List, Optional
from uuid import UUID

import asyncpg

JSON_COLUMNS = ("metadata",)


def encode_json(value: Optional[Dict[str, Any]]) -> str:
    """Serialize a metadata mapping for a JSONB parameter."""
    return json.dumps(value or {}, default=str)


def record_to_dict(record: asyncpg.Record) -> Dict[str, Any]:
    """
    Convert asyncpg Record to dictionary.

    JSONB columns arrive as text and are decoded back into dictionaries.
    """
    data = dict(record)
    for column in JSON_COLUMNS:
        value = data.get(column)
        if isinstance(value, str):
            data[column] = json.loads(value) if value else {}
    return data


def records_to_list(records: List[asyncpg.Record]) -> List[Dict[str, Any]]:
    return [record_to_dict(record) for record in records]


def build_update_query(
    table: str,
    updates: Dict[str, Any],
    where_clause: str,
    returning: str = "*",
) -> tuple[str, List[Any]]:
    """
    Build UPDATE query with parameterized values.

    Args:
        table: Table name
        updates: Dictionary of column: value pairs
        where_clause: WHERE clause using the next free placeholder
        returning: RETURNING clause (default: "*")

    Returns:
        Tuple of (query, values)

    Example:
        query, values = build_update_query(
            "conversations", {"title": "Taxes"}, "id = $2"
        )
    """
    if not updates:
        raise ValueError("No updates provided")

    set_clauses = []
    values = []

    for param_num, (column, value) in enumerate(updates.items(), start=1):
        set_clauses.append(f"{column} = ${param_num}")
        values.append(value)

    query = f"""
        UPDATE {table}
        SET {', '.join(set_clauses)}, updated_at = now()
        WHERE {where_clause}
        RETURNING {returning}
    """

    return query, values


def build_insert_query(
    table: str,
    data: Dict[str, Any],
    returning: str = "*",
) -> tuple[str, List[Any]]:
    """
    Build INSERT query with parameterized values.

    Example:
        query, values = build_insert_query(
            "messages",
            {"conversation_id": conv_uuid, "role": "user", "content": "hi"}
        )
    """
    if not data:
        raise ValueError("No data provided")

    columns = list(data.keys())
    values = list(data.values())
    placeholders = [f"${i+1}" for i in range(len(values))]

    query = f"""
        INSERT INTO {table} ({', '.join(columns)})
        VALUES ({', '.join(placeholders)})
        RETURNING {returning}
    """

    return query, values


def parse_uuid(value: Any) -> Optional[UUID]:
    """
    Safely parse UUID from various input types.

    Raises:
        ValueError: If value is not a valid UUID
    """
    if value is None:
        return None

    if isinstance(value, UUID):
        return value

    if isinstance(value, str):
        try:
            return UUID(value)
        except ValueError:
            raise ValueError(f"Invalid UUID: {value}") from None

    raise ValueError(f"Cannot parse UUID from type {type(value)}")


def affected_rows(status: str) -> int:
    """Row count from an asyncpg command status such as ``'DELETE 3'``."""
    try:
        return int(status.rsplit(" ", 1)[-1])
    except (AttributeError, ValueError):
        return 0
