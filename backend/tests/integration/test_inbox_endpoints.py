"""
Integration tests for inbox and status endpoints.

WHAT: Drive the messaging view through the HTTP API end to end
WHY: Ensure API contract, error mapping and controller wiring hold together
HOW: FastAPI TestClient with the client factory overridden by a fake
     marketplace
"""

import pytest
from fastapi.testclient import TestClient

from barter_inbox.core.session_manager import session_manager
from barter_inbox.main import app, create_app
from barter_inbox.marketplace.client_factory import override_client
from barter_inbox.marketplace.types import MarketplaceAuthError, MarketplaceTimeoutError
from tests.fixtures.payloads import message, ts


@pytest.fixture
def client(fake_client):
    """Create FastAPI test client backed by the fake marketplace."""
    override_client(lambda token: fake_client)
    return TestClient(app)


@pytest.fixture
def session_id(client):
    response = client.post("/api/v1/inbox/sessions", json={"access_token": "token-1", "role": "giver"})
    assert response.status_code == 201
    return response.json()["session_id"]


def base(session_id: str) -> str:
    return f"/api/v1/inbox/sessions/{session_id}"


@pytest.mark.integration
class TestSessions:
    """Session lifecycle endpoints."""

    def test_create_session(self, client):
        response = client.post("/api/v1/inbox/sessions", json={"access_token": "token-1"})

        assert response.status_code == 201
        data = response.json()
        assert data["user_id"] == "U1"
        assert data["role"] == "offering"
        assert data["session_id"]

    def test_create_session_rejected_token(self, client, fake_client):
        fake_client.fail_current_user = MarketplaceAuthError("expired")

        response = client.post("/api/v1/inbox/sessions", json={"access_token": "bad"})

        assert response.status_code == 401
        assert response.json()["error"] == "MARKETPLACE_UNAUTHORIZED"

    def test_create_session_missing_token(self, client):
        response = client.post("/api/v1/inbox/sessions", json={"access_token": ""})

        assert response.status_code == 400
        assert response.json()["error"] == "VALIDATION_ERROR"

    def test_create_session_bad_role(self, client):
        response = client.post("/api/v1/inbox/sessions", json={"access_token": "t", "role": "admin"})
        assert response.status_code == 400

    def test_initial_state(self, client, session_id):
        response = client.get(base(session_id))

        assert response.status_code == 200
        data = response.json()
        assert data["user_id"] == "U1"
        assert data["role"] == "offering"
        assert [c["id"] for c in data["conversations"]] == ["t1", "t2"]
        assert data["selected_conversation_id"] is None
        assert data["current_messages"] == []
        assert data["is_loading"] is False
        assert data["error"] is None

    def test_sign_out(self, client, session_id):
        assert client.delete(base(session_id)).status_code == 204

        response = client.get(base(session_id))
        assert response.status_code == 404
        assert response.json()["error"] == "SESSION_NOT_FOUND"

    def test_unknown_session(self, client):
        response = client.get(base("does-not-exist") + "/conversations")
        assert response.status_code == 404


@pytest.mark.integration
class TestConversations:
    """Conversation list, role switch and search."""

    def test_list_offering(self, client, session_id):
        data = client.get(base(session_id) + "/conversations").json()

        t1, t2 = data["conversations"]
        assert t1["listing_title"] == "Vintage bike"
        assert t1["other_party_name"] == "Bob Builder"
        assert t1["last_message"] == "Yes, happy to swap"
        assert t1["unread"] is False
        assert t2["last_message"] == "No messages yet"
        assert "messages" not in t1

    def test_switch_role_with_alias(self, client, session_id):
        response = client.put(base(session_id) + "/role", json={"role": "seeker"})

        assert response.status_code == 200
        data = response.json()
        assert data["role"] == "requesting"
        assert [c["id"] for c in data["conversations"]] == ["t3"]
        assert data["conversations"][0]["other_party_name"] == "Dana Baker"

    def test_search(self, client, session_id):
        data = client.get(base(session_id) + "/conversations", params={"q": "carol"}).json()
        assert [c["id"] for c in data["conversations"]] == ["t2"]

    def test_refresh_failure_keeps_list(self, client, session_id, fake_client):
        fake_client.fail_transactions = MarketplaceTimeoutError("slow")

        data = client.post(base(session_id) + "/refresh").json()

        assert data["error"] == "Failed to load messages"
        assert [c["id"] for c in data["conversations"]] == ["t1", "t2"]

        state = client.get(base(session_id)).json()
        assert [n["message"] for n in state["notifications"]] == ["Failed to load messages"]
        assert client.get(base(session_id)).json()["notifications"] == []


@pytest.mark.integration
class TestThreads:
    """Selecting and sending."""

    def test_select_merges_thread(self, client, session_id):
        response = client.post(base(session_id) + "/conversations/t1/select")

        assert response.status_code == 200
        data = response.json()
        assert data["conversation_id"] == "t1"
        assert [m["id"] for m in data["messages"]] == ["m1", "m2", "m3"]
        assert [m["is_own"] for m in data["messages"]] == [False, True, False]

    def test_select_unknown(self, client, session_id):
        response = client.post(base(session_id) + "/conversations/nope/select")

        assert response.status_code == 404
        assert response.json()["error"] == "CONVERSATION_NOT_FOUND"

    def test_send(self, client, session_id, fake_client):
        def deliver(transaction_id, content):
            fake_client.message_pages[transaction_id].messages.append(
                message("m5", content, "U1", ts(10, 20), transaction_id)
            )

        fake_client.on_send = deliver
        client.post(base(session_id) + "/conversations/t1/select")

        response = client.post(base(session_id) + "/messages", json={"content": "  See you  "})

        assert response.status_code == 200
        data = response.json()
        assert data["sent"] is True
        assert data["message_id"] == "sent-1"
        assert [m["id"] for m in data["messages"]] == ["m1", "m2", "m3", "m5"]
        assert data["messages"][-1]["content"] == "See you"
        assert fake_client.sent == [("t1", "See you")]

        state = client.get(base(session_id)).json()
        assert [n["level"] for n in state["notifications"]] == ["success"]

    def test_blank_send_rejected(self, client, session_id, fake_client):
        client.post(base(session_id) + "/conversations/t1/select")

        response = client.post(base(session_id) + "/messages", json={"content": "   "})

        assert response.status_code == 400
        assert response.json()["error"] == "MESSAGE_REJECTED"
        assert fake_client.sent == []

    def test_send_without_selection(self, client, session_id):
        response = client.post(base(session_id) + "/messages", json={"content": "hello"})
        assert response.status_code == 400

    def test_send_failure(self, client, session_id, fake_client):
        fake_client.fail_send = MarketplaceTimeoutError("slow")
        client.post(base(session_id) + "/conversations/t1/select")

        data = client.post(base(session_id) + "/messages", json={"content": "hello"}).json()

        assert data["sent"] is False
        assert data["message_id"] is None
        state = client.get(base(session_id)).json()
        assert [n["message"] for n in state["notifications"]] == ["Failed to send message"]

    def test_current_messages(self, client, session_id):
        client.post(base(session_id) + "/conversations/t1/select")

        data = client.get(base(session_id) + "/messages").json()

        assert data["conversation_id"] == "t1"
        assert len(data["messages"]) == 3


@pytest.mark.integration
class TestStatusEndpoints:
    """Health and marketplace status."""

    def test_health(self, client, session_id):
        data = client.get("/api/v1/health").json()

        assert data["status"] == "healthy"
        assert data["components"]["marketplace"]["available"] is True
        assert data["components"]["inbox"]["active_sessions"] == 1

    def test_marketplace_status(self, client):
        data = client.get("/api/v1/marketplace/status").json()
        assert data["available"] is True
        assert data["error"] is None

    def test_root(self, client):
        assert client.get("/").json()["status"] == "running"

    def test_lifespan_starts_and_drops_sessions(self, fake_client):
        override_client(lambda token: fake_client)

        with TestClient(create_app()) as client:
            assert session_manager._cleanup_thread is not None
            response = client.post("/api/v1/inbox/sessions", json={"access_token": "token-1"})
            assert response.status_code == 201
            assert len(session_manager.sessions) == 1

        assert session_manager._cleanup_thread is None
        assert session_manager.sessions == {}
