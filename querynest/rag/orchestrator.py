"""
Chat turn orchestration with tool-based document retrieval.

One user message produces exactly one assistant message with the same
``pair_id``. The model decides whether to search; if it does, the search
result is pruned to a byte budget and handed back for a second, grounded
generation. Every failure after the user message is stored ends in a
persisted fallback reply instead of an exception.
"""

import logging
import time
import uuid
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Tuple

from ..llm.error_formatting import create_error_metadata
from ..llm.exceptions import ProviderError
from ..llm.gemini_client import GeminiClient
from ..llm.types import FunctionCall, GenerationResult, Turn, function_response_turn, text_turn
from ..search.client import ElasticsearchClient
from ..search.exceptions import ConfigurationError, RetrievalError
from ..search.pruner import prune_hits
from ..search.types import PrunedToolResult
from ..storage.database.message_service import MessageService
from ..utils.logging import log_event, operation_context, track
from .exceptions import (
    ConversationNotFoundError,
    MissingArgumentError,
    PersistenceError,
    UnexpectedToolError,
    ValidationError,
)
from .prompts import (
    HISTORY_ERROR_REPLY,
    MODEL_ERROR_REPLY,
    NO_TEXT_REPLY,
    SEARCH_ERROR_REPLY,
    SEARCH_TOOL,
    SEARCH_TOOL_NAME,
    grounded_system_instruction,
)
from .types import AssistantReply, ChatTurn, OrchestratorConfig, RetrievedFrom


class RAGOrchestrator:
    """
    Runs a chat turn against the model with the document search tool.

    Coordinates between:
    - Message persistence (MessageService)
    - Document search (ElasticsearchClient)
    - Generation (GeminiClient)
    """

    def __init__(
        self,
        message_service: MessageService,
        search_client: ElasticsearchClient,
        model_client: GeminiClient,
        config: Optional[OrchestratorConfig] = None,
    ):
        self.message_service = message_service
        self.search_client = search_client
        self.model_client = model_client
        self.config = config or OrchestratorConfig()

    @track(
        operation="rag_handle_user_message",
        include_args=["conversation_id"],
        track_performance=True,
    )
    async def handle_user_message(
        self,
        conversation_id: str,
        content: str,
        metadata: Optional[Dict[str, Any]] = None,
    ) -> ChatTurn:
        """
        Store a user message, generate the reply and store it.

        Args:
            conversation_id: Target conversation
            content: User text (trimmed before storing)
            metadata: Caller metadata stored on the user message

        Returns:
            ChatTurn with both messages

        Raises:
            ValidationError: Content is empty; nothing was written
            ConversationNotFoundError: Conversation does not exist
            PersistenceError: The user message could not be stored
        """
        content = (content or "").strip()
        if not content:
            raise ValidationError("content is required")

        pair_id = str(uuid.uuid4())

        user_message = await self._save_user_message(
            conversation_id, content, pair_id, metadata
        )

        with operation_context(conversation_id=conversation_id, pair_id=pair_id):
            start = time.perf_counter()
            reply = await self._generate_reply(conversation_id)
            assistant_message, persisted = await self._save_assistant_message(
                conversation_id, pair_id, reply
            )

            log_event(
                "rag_turn_completed",
                {
                    "retrieved_from": reply.metadata.get("retrieved_from"),
                    "persisted": persisted,
                    "duration_ms": int((time.perf_counter() - start) * 1000),
                },
            )

        return ChatTurn(
            user=user_message, assistant=assistant_message, persisted=persisted
        )

    async def _save_user_message(
        self,
        conversation_id: str,
        content: str,
        pair_id: str,
        metadata: Optional[Dict[str, Any]],
    ) -> Dict[str, Any]:
        result = await self.message_service.add_message(
            conversation_id=conversation_id,
            role="user",
            content=content,
            pair_id=pair_id,
            metadata=metadata or {},
        )

        if result.is_success():
            return result.unwrap()

        if result.error_type == "NotFoundError":
            raise ConversationNotFoundError(
                f"Conversation '{conversation_id}' not found",
                context={"conversation_id": conversation_id},
            )
        if result.error_type == "ValidationError":
            raise ValidationError(str(result.error))

        log_event(
            "user_message_persist_failed",
            {"conversation_id": conversation_id, "error": str(result.error)},
            level=logging.ERROR,
        )
        raise PersistenceError(
            "Failed to save user message",
            context={"conversation_id": conversation_id, "error": str(result.error)},
        )

    async def _load_turns(self, conversation_id: str) -> Optional[List[Turn]]:
        """History as model turns, or None when it cannot be read."""
        result = await self.message_service.get_messages(
            conversation_id=conversation_id
        )
        if result.is_failure():
            log_event(
                "conversation_history_load_failed",
                {"error": str(result.error)},
                level=logging.ERROR,
            )
            return None

        return [
            text_turn("user" if message["role"] == "user" else "model", message["content"])
            for message in result.unwrap().get("messages", [])
        ]

    async def _generate_reply(self, conversation_id: str) -> AssistantReply:
        turns = await self._load_turns(conversation_id)
        if turns is None:
            return AssistantReply(
                HISTORY_ERROR_REPLY,
                {"retrieved_from": RetrievedFrom.HISTORY_ERROR, "is_error": True},
            )

        try:
            first = await self.model_client.generate(
                turns=turns,
                system_instruction=self.config.system_instruction,
                tools=[SEARCH_TOOL],
                function_calling_mode="AUTO",
            )
        except ProviderError as e:
            return self._model_error_reply(e, round_number=1)

        if first.function_call is None:
            return AssistantReply(
                self._reply_text(first),
                {"retrieved_from": RetrievedFrom.NONE, "text_source": first.text_source},
            )

        try:
            query, max_results = self._parse_search_call(first.function_call)
        except UnexpectedToolError as e:
            log_event(
                "unexpected_function_call",
                {"function_name": e.function_name},
                level=logging.WARNING,
            )
            return AssistantReply(
                e.message,
                {
                    "retrieved_from": RetrievedFrom.UNEXPECTED_FUNCTION,
                    "function_name": e.function_name,
                },
            )
        except MissingArgumentError as e:
            log_event(
                "function_call_missing_argument",
                {"function_name": e.function_name, "argument": e.argument},
                level=logging.WARNING,
            )
            return AssistantReply(
                e.message,
                {
                    "retrieved_from": RetrievedFrom.MISSING_ARGUMENT,
                    "tool_name": e.function_name,
                    "missing_argument": e.argument,
                },
            )

        try:
            hits = await self.search_client.search(query=query, max_hits=max_results)
        except (RetrievalError, ConfigurationError) as e:
            log_event(
                "tool_search_failed",
                {"error": str(e), "error_type": type(e).__name__},
                level=logging.ERROR,
            )
            return AssistantReply(
                SEARCH_ERROR_REPLY,
                {
                    "retrieved_from": RetrievedFrom.ELASTICSEARCH_ERROR,
                    "tool_name": SEARCH_TOOL_NAME,
                    "tool_query": query,
                    **create_error_metadata(e, retryable=True),
                },
            )

        pruned = prune_hits(hits, self.config.tool_max_bytes)
        tool_metadata = self._tool_metadata(query, pruned)

        follow_up = turns + [
            self._candidate_turn(first.function_call),
            function_response_turn(
                SEARCH_TOOL_NAME,
                {
                    "query": query,
                    "hits": pruned.hits,
                    "truncated": pruned.truncated,
                    "original_count": pruned.original_count,
                    "final_count": pruned.final_count,
                },
            ),
        ]

        try:
            second = await self.model_client.generate(
                turns=follow_up,
                system_instruction=grounded_system_instruction(
                    self.config.system_instruction
                ),
                tools=[SEARCH_TOOL],
                function_calling_mode="NONE",
            )
        except ProviderError as e:
            reply = self._model_error_reply(e, round_number=2)
            reply.metadata.update(tool_metadata)
            reply.metadata["retrieved_from"] = RetrievedFrom.MODEL_ERROR
            return reply

        return AssistantReply(
            self._reply_text(second),
            {
                "retrieved_from": RetrievedFrom.ELASTICSEARCH_TOOL,
                "text_source": second.text_source,
                **tool_metadata,
            },
        )

    def _parse_search_call(self, call: FunctionCall) -> Tuple[str, int]:
        """
        Validate a function call against the search tool.

        Raises:
            UnexpectedToolError: Name is not the search tool
            MissingArgumentError: ``query`` is missing or blank
        """
        if call.name != SEARCH_TOOL_NAME:
            raise UnexpectedToolError(call.name)

        query = call.args.get("query")
        if not isinstance(query, str) or not query.strip():
            raise MissingArgumentError(call.name, "query")

        if "max_results" in call.args:
            max_results = self.config.clamp_max_results(call.args["max_results"])
        else:
            max_results = self.config.default_max_results

        return query.strip(), max_results

    def _tool_metadata(self, query: str, pruned: PrunedToolResult) -> Dict[str, Any]:
        return {
            "tool_name": SEARCH_TOOL_NAME,
            "tool_query": query,
            "tool_original_hits_count": pruned.original_count,
            "tool_final_hits_count": pruned.final_count,
            "tool_snippet_length": pruned.snippet_length,
            "tool_serialized_bytes": pruned.serialized_bytes,
            "tool_truncated": pruned.truncated,
            "tool_hits_sample": pruned.sample(self.config.hits_sample_size),
        }

    @staticmethod
    def _candidate_turn(call: FunctionCall) -> Turn:
        if call.candidate_content:
            return call.candidate_content
        return {"role": "model", "parts": [{"functionCall": call.to_dict()}]}

    @staticmethod
    def _reply_text(result: GenerationResult) -> str:
        # A bare function call carries no prose; its raw dump is not a reply
        if result.text_source == "raw_fallback" and result.function_call is not None:
            return NO_TEXT_REPLY
        if not result.text or not result.text.strip():
            return NO_TEXT_REPLY
        return result.text

    def _model_error_reply(self, error: ProviderError, round_number: int) -> AssistantReply:
        log_event(
            "model_generation_failed",
            {
                "round": round_number,
                "error_type": error.error_type,
                "retryable": error.retryable,
                "error": error.message[:500],
            },
            level=logging.ERROR,
        )
        return AssistantReply(
            MODEL_ERROR_REPLY,
            {
                "retrieved_from": RetrievedFrom.MODEL_ERROR,
                "model_round": round_number,
                **create_error_metadata(error, model=self.model_client.model),
            },
        )

    async def _save_assistant_message(
        self, conversation_id: str, pair_id: str, reply: AssistantReply
    ) -> Tuple[Dict[str, Any], bool]:
        """
        Store the assistant reply.

        On failure the reply is still returned to the caller under a
        ``temp-`` id; the transcript then has a user message without a reply.
        """
        result = await self.message_service.add_message(
            conversation_id=conversation_id,
            role="assistant",
            content=reply.content,
            pair_id=pair_id,
            metadata=reply.metadata,
        )

        if result.is_success():
            return result.unwrap(), True

        log_event(
            "assistant_message_persist_failed",
            {
                "conversation_id": conversation_id,
                "pair_id": pair_id,
                "error": str(result.error),
                "retrieved_from": reply.metadata.get("retrieved_from"),
            },
            level=logging.ERROR,
        )

        return (
            {
                "id": f"temp-{pair_id}",
                "conversation_id": conversation_id,
                "pair_id": pair_id,
                "role": "assistant",
                "content": reply.content,
                "metadata": reply.metadata,
                "created_at": datetime.now(timezone.utc).isoformat(),
                "persisted": False,
            },
            False,
        )
