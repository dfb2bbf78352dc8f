"""
Prompts, tool declarations and canned replies for the chat turn.
"""

from ..llm.types import FunctionDeclaration

SEARCH_TOOL_NAME = "search_documents"

SYSTEM_INSTRUCTION = """You are QueryNest, a helpful assistant with access to the user's uploaded documents.

Call the search_documents function whenever the question may depend on the user's own documents, files or notes. Answer general questions directly without searching.

Be concise and accurate. If you are unsure, say so."""

GROUNDING_RULE = """Base your answer on the search_documents results above. Mention the document titles you relied on. If the results do not contain the answer, say that the documents do not cover it instead of guessing."""

SEARCH_TOOL = FunctionDeclaration(
    name=SEARCH_TOOL_NAME,
    description=(
        "Full-text search over the user's uploaded documents. Returns the "
        "best matching documents with a title, score and content snippet."
    ),
    parameters={
        "type": "OBJECT",
        "properties": {
            "query": {
                "type": "STRING",
                "description": "Search terms describing what to look for",
            },
            "max_results": {
                "type": "INTEGER",
                "description": "Maximum number of documents to return",
            },
        },
        "required": ["query"],
    },
)

MODEL_ERROR_REPLY = "I'm sorry, I couldn't generate a response right now."
NO_TEXT_REPLY = "Sorry, the assistant produced no textual reply."
SEARCH_ERROR_REPLY = (
    "Sorry, I couldn't search your documents right now because the document "
    "search failed. Please try again in a moment."
)
HISTORY_ERROR_REPLY = (
    "Sorry, I couldn't load this conversation's history, so I can't answer "
    "right now. Please try again."
)


def grounded_system_instruction(system_instruction: str = SYSTEM_INSTRUCTION) -> str:
    """System instruction for the round that answers from tool output."""
    return f"{system_instruction}\n\n{GROUNDING_RULE}"
