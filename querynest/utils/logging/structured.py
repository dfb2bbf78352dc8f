"""
Structured logging utilities for event-based logging.

Every log line is an event name plus a dictionary of fields. In development
the fields are rendered into a short human-readable line.
"""

import logging
from datetime import datetime
from typing import Any, Dict, Optional

from .context import get_correlation_id, get_operation_context


class StructuredLogger:
    """
    Structured logger that creates consistent, searchable log events.

    The correlation id and any fields bound with ``operation_context`` are
    merged into every event.
    """

    def __init__(self, name: str):
        self.logger = logging.getLogger(name)

    def event(
        self,
        event_name: str,
        data: Optional[Dict[str, Any]] = None,
        level: int = logging.INFO,
    ):
        """
        Log a structured event with optional data.

        Args:
            event_name: Name of the event (e.g., 'message_added')
            data: Dictionary of structured data to include
            level: Log level (defaults to INFO)
        """
        if not self.logger.isEnabledFor(level):
            return

        structured_data = {
            "event": event_name,
            "correlation_id": get_correlation_id(),
        }

        operation_context = get_operation_context()
        if operation_context:
            structured_data.update(operation_context)

        if data:
            structured_data.update(data)

        record = self.logger.makeRecord(
            self.logger.name, level, "(structured)", 0, event_name, (), None
        )
        record.structured_data = structured_data

        self.logger.handle(record)


_global_logger: Optional[StructuredLogger] = None


def get_structured_logger(name: str = "querynest") -> StructuredLogger:
    """Get or create the structured logger instance."""
    global _global_logger
    if _global_logger is None:
        _global_logger = StructuredLogger(name)
    return _global_logger


def log_event(
    event_name: str, data: Optional[Dict[str, Any]] = None, level: int = logging.INFO
):
    """
    Convenience function for logging structured events.

    Example::

        log_event("search_completed", {
            "query": "budget",
            "hits": 3,
            "took_ms": 12,
        })
    """
    get_structured_logger().event(event_name, data, level)


def create_development_formatter() -> logging.Formatter:
    """
    Create a human-readable formatter for development environments.

    Operation events from ``@track`` get timing badges; domain events get a
    compact summary of their most useful fields.
    """

    class DevelopmentFormatter(logging.Formatter):
        def format(self, record: logging.LogRecord) -> str:
            timestamp = datetime.fromtimestamp(record.created).strftime("%H:%M:%S.%f")[
                :-3
            ]

            data: Optional[dict] = getattr(record, "structured_data", None)

            if not data:
                return f"{timestamp} | {record.levelname:5} | {record.getMessage()}"

            event = data.get("event", "")
            operation = data.get("operation", "")

            if event == "operation_started":
                message_content = f"🚀 {operation or 'operation'} started"
            elif event == "operation_completed":
                message_content = self._format_operation_success(data, operation)
            elif event == "operation_failed":
                message_content = self._format_operation_error(data, operation)
            else:
                message_content = self._format_domain_event(data, event)

            return f"{timestamp} | {record.levelname:5} | {message_content}"

        @staticmethod
        def _format_duration(duration_ms: int) -> str:
            if duration_ms >= 1000:
                return f"{duration_ms/1000:.1f}s"
            return f"{duration_ms}ms"

        def _format_operation_success(self, data: dict, operation: str) -> str:
            duration_ms = data.get("duration_ms", 0)

            if duration_ms < 50:
                duration_emoji = "⚡"
            elif duration_ms > 2000:
                duration_emoji = "🐌"
            else:
                duration_emoji = "⏱️"

            base_message = (
                f"{duration_emoji} {self._format_duration(duration_ms)} {operation}"
            )
            if "result_length" in data:
                return f"{base_message} ({data['result_length']} results)"
            return base_message

        def _format_operation_error(self, data: dict, operation: str) -> str:
            duration_ms = data.get("duration_ms", 0)
            error_type = data.get("error_type", "Error")
            error_message = data.get("error_message", "")

            duration_part = ""
            if duration_ms > 0:
                duration_part = f" {self._format_duration(duration_ms)}"

            if len(error_message) > 60:
                error_message = error_message[:57] + "..."

            return (
                f"❌{duration_part} {operation} failed ({error_type}: {error_message})"
            )

        def _format_domain_event(self, data: dict, event: str) -> str:
            if not event:
                return "📝 log_event"

            context = self._get_domain_context(data, event)
            return f"📝 {event}: {context}" if context else f"📝 {event}"

        def _get_domain_context(self, data: dict, event: str) -> str:
            if event == "message_added":
                role = data.get("role", "?")
                pair_id = str(data.get("pair_id") or "")[:8]
                return f"{role} (pair {pair_id})" if pair_id else role
            elif event == "message_pair_deleted":
                return f"{data.get('deleted_count', 0)} messages"
            elif event == "search_completed":
                return f"'{data.get('query', '')}' → {data.get('hits', 0)} hits"
            elif event == "search_failed":
                status = data.get("status")
                return f"status={status}" if status else str(data.get("error", ""))
            elif event == "tool_result_pruned":
                return (
                    f"{data.get('original_count', 0)} → {data.get('final_count', 0)} hits, "
                    f"snippet {data.get('snippet_length', 0)}, "
                    f"{data.get('serialized_bytes', 0)}B"
                )
            elif event == "model_response_parsed":
                has_call = data.get("has_function_call", False)
                source = data.get("text_source", "none")
                return "function call" if has_call else f"text via {source}"
            elif event == "rag_turn_completed":
                return f"retrieved_from={data.get('retrieved_from', '?')}"
            elif event in ("document_indexed", "document_removed"):
                return f"file {data.get('file_id', '?')}"
            elif event == "text_extracted":
                text_length = data.get("text_length", 0)
                if text_length > 1000:
                    return f"{text_length/1000:.1f}k chars"
                return f"{text_length} chars"

            error = data.get("error")
            return str(error)[:120] if error else ""

    return DevelopmentFormatter()
