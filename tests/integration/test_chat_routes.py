"""Integration tests for chat endpoints."""

from typing import Any
from unittest.mock import MagicMock

import pytest
from fastapi.testclient import TestClient

from typequiz.api.deps import SESSION_TOKEN_HEADER
from typequiz.schemas.profile import Profile
from typequiz.schemas.typology import TypologyResult
from typequiz.services.chat_service import MOCK_REPLY
from typequiz.services.local_cache import KEY_RESULT

RESULT = TypologyResult(ei=20, sn=28, ft=18, jp=30, code="INFP")


@pytest.fixture
def chat_rows(mock_supabase_client: MagicMock) -> MagicMock:
    """Configure the chat_history table: empty history, inserts numbered 1, 2, ..."""
    table = mock_supabase_client.table.return_value
    history = table.select.return_value.eq.return_value.order.return_value.limit.return_value
    history.execute.return_value = MagicMock(data=[])
    table.insert.return_value.execute.side_effect = [MagicMock(data=[{"id": i}]) for i in range(1, 11)]
    return table


def result_session(client: TestClient, registry: Any) -> Any:
    """Create a signed-in session already showing a result."""
    token = client.post("/api/v1/sessions").headers[SESSION_TOKEN_HEADER]
    session = registry.get(token)
    session.cache.save_profile(Profile(first_name="Anna", phone="89151234567", age=28, interests=["Music"]))
    session.cache.save_result(RESULT)
    session.resume()
    return session


class TestOpenChat:
    """Tests for opening and closing the chat."""

    def test_open_requires_result(self, client: TestClient) -> None:
        client.post("/api/v1/sessions")

        assert client.post("/api/v1/chat/open").status_code == 409

    def test_open_loads_history(
        self, client: TestClient, registry: Any, mock_supabase_client: MagicMock
    ) -> None:
        """Test that stored rows come back decoded with their ratings."""
        result_session(client, registry)
        history = mock_supabase_client.table.return_value.select.return_value.eq.return_value
        history.order.return_value.limit.return_value.execute.return_value = MagicMock(
            data=[
                {"id": 1, "role": "user", "content": "Hi", "created_at": "2024-05-01T10:00:00+00:00"},
                {"id": 2, "role": "model", "content": "Hello Anna #liked", "created_at": "2024-05-01T10:00:01+00:00"},
                {"id": 3, "role": "assistant", "content": "How are you?[TAG:dislike]"},
            ]
        )

        response = client.post("/api/v1/chat/open")

        assert response.status_code == 200
        messages = response.json()["messages"]
        assert [(m["role"], m["text"], m["rating"]) for m in messages] == [
            ("user", "Hi", None),
            ("assistant", "Hello Anna", "like"),
            ("assistant", "How are you?", "dislike"),
        ]
        assert client.get("/api/v1/sessions/me").json()["flow"]["chat_open"] is True

    def test_open_without_cached_result(self, client: TestClient, registry: Any, chat_rows: MagicMock) -> None:
        """Test that a result view with nothing cached answers 404 and stays closed."""
        session = result_session(client, registry)
        session.cache.remove(KEY_RESULT)

        response = client.post("/api/v1/chat/open")

        assert response.status_code == 404
        assert client.get("/api/v1/sessions/me").json()["flow"]["chat_open"] is False

    def test_close(self, client: TestClient, registry: Any, chat_rows: MagicMock) -> None:
        result_session(client, registry)
        client.post("/api/v1/chat/open")

        response = client.post("/api/v1/chat/close")

        assert response.status_code == 200
        assert response.json()["chat_open"] is False


class TestSendMessage:
    """Tests for POST /api/v1/chat/messages endpoint."""

    def test_streams_and_stores_both_turns(
        self, client: TestClient, registry: Any, chat_rows: MagicMock
    ) -> None:
        session = result_session(client, registry)
        client.post("/api/v1/chat/open")

        response = client.post("/api/v1/chat/messages", json={"text": "  Hello  "})

        assert response.status_code == 200
        assert response.headers["content-type"].startswith("text/plain")
        assert response.text.strip() == MOCK_REPLY
        assert session.chat_busy is False

        messages = client.get("/api/v1/chat/messages").json()["messages"]
        assert [(m["id"], m["role"], m["text"]) for m in messages] == [
            (1, "user", "Hello"),
            (2, "assistant", MOCK_REPLY),
        ]
        inserted = [call.args[0] for call in chat_rows.insert.call_args_list]
        assert inserted[0] == {"phone": "79151234567", "role": "user", "content": "Hello"}
        assert inserted[1]["content"] == f"{MOCK_REPLY}[TAG:neutral]"

    def test_requires_open_chat(self, client: TestClient, registry: Any) -> None:
        result_session(client, registry)

        assert client.post("/api/v1/chat/messages", json={"text": "Hello"}).status_code == 409

    def test_rejects_blank_text(self, client: TestClient, registry: Any, chat_rows: MagicMock) -> None:
        result_session(client, registry)
        client.post("/api/v1/chat/open")

        assert client.post("/api/v1/chat/messages", json={"text": "   "}).status_code == 422

    def test_rejects_while_reply_streams(self, client: TestClient, registry: Any, chat_rows: MagicMock) -> None:
        session = result_session(client, registry)
        client.post("/api/v1/chat/open")
        session.chat_busy = True

        response = client.post("/api/v1/chat/messages", json={"text": "Hello"})

        assert response.status_code == 409
        chat_rows.insert.assert_not_called()


class TestRateMessage:
    """Tests for POST /api/v1/chat/messages/{index}/rating endpoint."""

    def test_like_then_clear(self, client: TestClient, registry: Any, chat_rows: MagicMock) -> None:
        """Test that repeating a rating clears it and both changes are stored."""
        result_session(client, registry)
        client.post("/api/v1/chat/open")
        client.post("/api/v1/chat/messages", json={"text": "Hello"})
        stored = chat_rows.select.return_value.eq.return_value
        stored.execute.return_value = MagicMock(data=[{"content": f"{MOCK_REPLY}[TAG:neutral]"}])

        liked = client.post("/api/v1/chat/messages/1/rating", json={"rating": "like"})
        cleared = client.post("/api/v1/chat/messages/1/rating", json={"rating": "like"})

        assert liked.json()["rating"] == "like"
        assert cleared.json()["rating"] is None
        patches = [call.args[0]["content"] for call in chat_rows.update.call_args_list]
        assert patches == [f"{MOCK_REPLY}[TAG:like]", f"{MOCK_REPLY}[TAG:neutral]"]

    def test_user_message_cannot_be_rated(self, client: TestClient, registry: Any, chat_rows: MagicMock) -> None:
        result_session(client, registry)
        client.post("/api/v1/chat/open")
        client.post("/api/v1/chat/messages", json={"text": "Hello"})

        assert client.post("/api/v1/chat/messages/0/rating", json={"rating": "like"}).status_code == 422

    def test_unknown_index(self, client: TestClient, registry: Any, chat_rows: MagicMock) -> None:
        result_session(client, registry)
        client.post("/api/v1/chat/open")

        assert client.post("/api/v1/chat/messages/5/rating", json={"rating": "like"}).status_code == 404
