"""
Errors raised while handling a chat turn.

Only ``ValidationError``, ``ConversationNotFoundError`` and
``PersistenceError`` escape the orchestrator. The tool-call errors are
caught and turned into a persisted diagnostic reply.
"""

from typing import Any, Dict, Optional


class RAGError(Exception):
    """Base class for chat turn errors."""

    status_code = 500

    def __init__(self, message: str, context: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        self.context = context or {}

    def to_dict(self) -> Dict[str, Any]:
        return {"error": self.message, "error_type": type(self).__name__}


class ValidationError(RAGError):
    """User input rejected before anything was written."""

    status_code = 400


class ConversationNotFoundError(RAGError):
    """The target conversation does not exist."""

    status_code = 404


class PersistenceError(RAGError):
    """The user message could not be stored, so the turn was aborted."""

    status_code = 500


class UnexpectedToolError(RAGError):
    """The model asked for a function that was never declared."""

    def __init__(self, function_name: str):
        super().__init__(
            f"The assistant tried to call an unexpected function: {function_name}.",
            context={"function_name": function_name},
        )
        self.function_name = function_name


class MissingArgumentError(RAGError):
    """The model called a declared function without a required argument."""

    def __init__(self, function_name: str, argument: str):
        super().__init__(
            f"The assistant called {function_name} without the required "
            f"'{argument}' argument, so no document search was run.",
            context={"function_name": function_name, "argument": argument},
        )
        self.function_name = function_name
        self.argument = argument
