"""
Storage layer for QueryNest.
"""

from .database import ConversationService, MessageService

__all__ = ["ConversationService", "MessageService"]
