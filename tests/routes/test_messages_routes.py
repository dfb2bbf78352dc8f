import uuid
from datetime import datetime, timezone

from fastapi.testclient import TestClient

from querynest.rag.exceptions import (
    ConversationNotFoundError,
    PersistenceError,
    ValidationError,
)
from querynest.rag.types import ChatTurn
from tests.mocks import MockServiceContainer


def _seed_pair(container: MockServiceContainer, conversation_id: str, pair_id: str):
    user = {
        "id": uuid.uuid4(),
        "conversation_id": conversation_id,
        "pair_id": pair_id,
        "role": "user",
        "content": "question",
        "created_at": datetime(2025, 1, 6, 0, 0, 1, tzinfo=timezone.utc),
    }
    assistant = {
        "id": uuid.uuid4(),
        "conversation_id": conversation_id,
        "pair_id": pair_id,
        "role": "assistant",
        "content": "answer",
        "created_at": datetime(2025, 1, 6, 0, 0, 2, tzinfo=timezone.utc),
    }
    container.message_service.messages.extend([user, assistant])
    return user, assistant


class TestGetMessagesEndpoint:
    def test_get_messages_empty(
        self, mock_container: MockServiceContainer, client: TestClient
    ):
        conversation = mock_container.conversation_service.seed()

        response = client.get(f"/api/conversations/{conversation['id']}/messages")

        assert response.status_code == 200
        data = response.json()
        assert data["success"] is True
        assert data["messages"] == []
        assert data["total"] == 0

    def test_get_messages_serializes_ids(
        self, mock_container: MockServiceContainer, client: TestClient
    ):
        conversation_id = str(mock_container.conversation_service.seed()["id"])
        user, assistant = _seed_pair(mock_container, conversation_id, "pair-1")

        data = client.get(f"/api/conversations/{conversation_id}/messages").json()

        assert [m["id"] for m in data["messages"]] == [
            str(user["id"]),
            str(assistant["id"]),
        ]

    def test_get_messages_no_service(self, client_no_services: TestClient):
        response = client_no_services.get(f"/api/conversations/{uuid.uuid4()}/messages")
        assert response.status_code == 503


class TestSendMessageEndpoint:
    def test_send_message_returns_pair(
        self, mock_container: MockServiceContainer, client: TestClient
    ):
        response = client.post(
            "/api/conversations/conv-1/messages", json={"content": "hello"}
        )

        assert response.status_code == 200
        data = response.json()
        assert data["user"]["content"] == "hello"
        assert data["assistant"]["content"] == "hi"

        mock_container.orchestrator.handle_user_message.assert_awaited_once_with(
            conversation_id="conv-1", content="hello", metadata=None
        )

    def test_send_message_forwards_metadata(
        self, mock_container: MockServiceContainer, client: TestClient
    ):
        client.post(
            "/api/conversations/conv-1/messages",
            json={"content": "hello", "metadata": {"client": "web"}},
        )

        kwargs = mock_container.orchestrator.handle_user_message.await_args.kwargs
        assert kwargs["metadata"] == {"client": "web"}

    def test_send_message_serializes_turn(
        self, mock_container: MockServiceContainer, client: TestClient
    ):
        message_id = uuid.uuid4()
        mock_container.orchestrator.handle_user_message.return_value = ChatTurn(
            user={"id": message_id, "role": "user", "content": "q"},
            assistant={"id": "temp-p1", "role": "assistant", "content": "a"},
            persisted=False,
        )

        data = client.post(
            "/api/conversations/conv-1/messages", json={"content": "q"}
        ).json()

        assert data["user"]["id"] == str(message_id)
        assert data["assistant"]["id"] == "temp-p1"

    def test_send_empty_message_is_rejected(
        self, mock_container: MockServiceContainer, client: TestClient
    ):
        mock_container.orchestrator.handle_user_message.side_effect = ValidationError(
            "Message content is required"
        )

        response = client.post("/api/conversations/conv-1/messages", json={})

        assert response.status_code == 400
        data = response.json()
        assert data["error"] == "Message content is required"
        assert data["error_type"] == "ValidationError"

    def test_send_message_unknown_conversation(
        self, mock_container: MockServiceContainer, client: TestClient
    ):
        mock_container.orchestrator.handle_user_message.side_effect = (
            ConversationNotFoundError("missing")
        )

        response = client.post(
            "/api/conversations/missing/messages", json={"content": "hello"}
        )

        assert response.status_code == 404
        assert "error" in response.json()

    def test_send_message_storage_failure(
        self, mock_container: MockServiceContainer, client: TestClient
    ):
        mock_container.orchestrator.handle_user_message.side_effect = PersistenceError(
            "Failed to save message"
        )

        response = client.post(
            "/api/conversations/conv-1/messages", json={"content": "hello"}
        )

        assert response.status_code == 500
        assert response.json()["error"] == "Failed to save message"

    def test_send_message_no_orchestrator(self, client_no_services: TestClient):
        response = client_no_services.post(
            "/api/conversations/conv-1/messages", json={"content": "hello"}
        )
        assert response.status_code == 503


class TestDeleteMessageEndpoint:
    def test_delete_message_removes_pair(
        self, mock_container: MockServiceContainer, client: TestClient
    ):
        conversation_id = str(mock_container.conversation_service.seed()["id"])
        user, assistant = _seed_pair(mock_container, conversation_id, "pair-1")
        _seed_pair(mock_container, conversation_id, "pair-2")

        response = client.delete(
            f"/api/conversations/{conversation_id}/messages/{assistant['id']}"
        )

        assert response.status_code == 200
        data = response.json()
        assert data["success"] is True
        assert data["pair_id"] == "pair-1"
        assert sorted(data["deleted_ids"]) == sorted(
            [str(user["id"]), str(assistant["id"])]
        )
        remaining = mock_container.message_service.for_conversation(conversation_id)
        assert [m["pair_id"] for m in remaining] == ["pair-2", "pair-2"]

    def test_delete_unknown_message(
        self, mock_container: MockServiceContainer, client: TestClient
    ):
        conversation_id = str(mock_container.conversation_service.seed()["id"])

        response = client.delete(
            f"/api/conversations/{conversation_id}/messages/{uuid.uuid4()}"
        )

        assert response.status_code == 404
        assert response.json()["success"] is False
