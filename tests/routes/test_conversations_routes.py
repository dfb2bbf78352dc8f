import uuid

import pytest
from fastapi.testclient import TestClient

from tests.mocks import MockServiceContainer


class TestCreateConversationEndpoint:
    def test_create_conversation_minimal(self, client: TestClient):
        response = client.post("/api/conversations", json={})
        assert response.status_code == 200
        data = response.json()
        assert data["success"] is True
        assert data["conversation"]["title"] == "New chat"

    def test_create_conversation_with_title(self, client: TestClient):
        response = client.post("/api/conversations", json={"title": "Taxes"})
        assert response.status_code == 200
        assert response.json()["conversation"]["title"] == "Taxes"

    def test_create_conversation_serializes_ids_and_dates(self, client: TestClient):
        conversation = client.post("/api/conversations", json={}).json()["conversation"]

        uuid.UUID(conversation["id"])
        assert conversation["created_at"].startswith("2025-01-06T")

    def test_create_conversation_with_metadata(self, client: TestClient):
        response = client.post(
            "/api/conversations", json={"title": "Work", "metadata": {"pinned": True}}
        )
        assert response.json()["conversation"]["metadata"] == {"pinned": True}

    def test_create_conversation_no_service(self, client_no_services: TestClient):
        response = client_no_services.post("/api/conversations", json={})
        assert response.status_code == 503


class TestListConversationsEndpoint:
    def test_list_conversations_empty(self, client: TestClient):
        response = client.get("/api/conversations")
        assert response.status_code == 200
        data = response.json()
        assert data["success"] is True
        assert data["conversations"] == []
        assert data["total"] == 0
        assert data["has_more"] is False

    def test_list_conversations_most_recent_first(
        self, mock_container: MockServiceContainer, client: TestClient
    ):
        older = mock_container.conversation_service.seed("older")
        newer = mock_container.conversation_service.seed("newer")

        data = client.get("/api/conversations").json()

        assert [c["id"] for c in data["conversations"]] == [
            str(newer["id"]),
            str(older["id"]),
        ]

    def test_list_conversations_pagination(
        self, mock_container: MockServiceContainer, client: TestClient
    ):
        for i in range(3):
            mock_container.conversation_service.seed(f"chat {i}")

        data = client.get("/api/conversations?limit=2&offset=0").json()

        assert len(data["conversations"]) == 2
        assert data["total"] == 3
        assert data["has_more"] is True

    @pytest.mark.parametrize("query", ["limit=0", "limit=101", "offset=-1"])
    def test_list_conversations_rejects_bad_pagination(
        self, client: TestClient, query: str
    ):
        response = client.get(f"/api/conversations?{query}")
        assert response.status_code == 422

    def test_list_conversations_no_service(self, client_no_services: TestClient):
        response = client_no_services.get("/api/conversations")
        assert response.status_code == 503


class TestGetConversationEndpoint:
    def test_get_conversation(
        self, mock_container: MockServiceContainer, client: TestClient
    ):
        conversation = mock_container.conversation_service.seed("Taxes")

        response = client.get(f"/api/conversations/{conversation['id']}")

        assert response.status_code == 200
        assert response.json()["conversation"]["title"] == "Taxes"

    def test_get_conversation_not_found(self, client: TestClient):
        response = client.get(f"/api/conversations/{uuid.uuid4()}")

        assert response.status_code == 404
        data = response.json()
        assert data["success"] is False
        assert "not found" in data["error"]


class TestUpdateConversationEndpoint:
    def test_rename_conversation(
        self, mock_container: MockServiceContainer, client: TestClient
    ):
        conversation = mock_container.conversation_service.seed()

        response = client.patch(
            f"/api/conversations/{conversation['id']}", json={"title": "Renamed"}
        )

        assert response.status_code == 200
        assert response.json()["conversation"]["title"] == "Renamed"

    def test_update_without_fields_is_rejected(
        self, mock_container: MockServiceContainer, client: TestClient
    ):
        conversation = mock_container.conversation_service.seed()

        response = client.patch(f"/api/conversations/{conversation['id']}", json={})

        assert response.status_code == 400
        assert "error" in response.json()

    def test_update_unknown_conversation(self, client: TestClient):
        response = client.patch(
            f"/api/conversations/{uuid.uuid4()}", json={"title": "x"}
        )
        assert response.status_code == 404


class TestDeleteConversationEndpoint:
    def test_delete_conversation_removes_messages(
        self, mock_container: MockServiceContainer, client: TestClient
    ):
        conversation = mock_container.conversation_service.seed()
        conversation_id = str(conversation["id"])
        mock_container.message_service.messages.extend(
            [
                {"id": uuid.uuid4(), "conversation_id": conversation_id, "pair_id": None},
                {"id": uuid.uuid4(), "conversation_id": conversation_id, "pair_id": None},
            ]
        )

        response = client.delete(f"/api/conversations/{conversation_id}")

        assert response.status_code == 200
        data = response.json()
        assert data["success"] is True
        assert data["conversation_id"] == conversation_id
        assert data["deleted_messages"] == 2
        assert mock_container.message_service.messages == []

    def test_delete_unknown_conversation(self, client: TestClient):
        response = client.delete(f"/api/conversations/{uuid.uuid4()}")
        assert response.status_code == 404

    def test_delete_conversation_no_service(self, client_no_services: TestClient):
        response = client_no_services.delete(f"/api/conversations/{uuid.uuid4()}")
        assert response.status_code == 503
