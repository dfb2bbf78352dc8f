"""
QueryNest: chat with your documents.

Conversations are stored in PostgreSQL, documents are indexed in
Elasticsearch, and answers come from a Gemini model that decides for itself
when to search the user's documents.
"""

__version__ = "0.1.0"
