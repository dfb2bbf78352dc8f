"""
Retrieval-augmented chat for QueryNest.
"""

from .exceptions import (
    ConversationNotFoundError,
    MissingArgumentError,
    PersistenceError,
    RAGError,
    UnexpectedToolError,
    ValidationError,
)
from .orchestrator import RAGOrchestrator
from .types import ChatTurn, OrchestratorConfig, RetrievedFrom

__all__ = [
    "RAGOrchestrator",
    "OrchestratorConfig",
    "ChatTurn",
    "RetrievedFrom",
    "RAGError",
    "ValidationError",
    "ConversationNotFoundError",
    "PersistenceError",
    "UnexpectedToolError",
    "MissingArgumentError",
]
