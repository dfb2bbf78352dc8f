from tests.mocks.llm import MockModelClient, function_call_response, text_response
from tests.mocks.messaging import MockConversationService, MockMessageService
from tests.mocks.search import MockIndexService, MockSearchClient, make_hit
from tests.mocks.server import MockIngestionPipeline, MockServiceContainer

__all__ = [
    "MockConversationService",
    "MockIndexService",
    "MockIngestionPipeline",
    "MockMessageService",
    "MockModelClient",
    "MockSearchClient",
    "MockServiceContainer",
    "function_call_response",
    "make_hit",
    "text_response",
]
