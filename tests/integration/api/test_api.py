"""
Integration tests for the FastAPI application.

These run the full request path (middleware, routes, exception handlers,
store, gateway) in-process; only the Ollama endpoint and the OS keyring
are replaced.
"""

import time
from unittest.mock import MagicMock

import pytest

from neural_mail.api import dependencies
from neural_mail.main import app
from neural_mail.persistence.exceptions import StorageError

pytestmark = pytest.mark.integration


def wait_until(predicate, timeout: float = 5.0) -> bool:
    deadline = time.monotonic() + timeout
    while time.monotonic() < deadline:
        if predicate():
            return True
        time.sleep(0.02)
    return predicate()


def test_root_endpoint(client):
    response = client.get("/")

    assert response.status_code == 200
    data = response.json()
    assert data["version"] == "0.1.0"
    assert data["docs"] == "/docs"
    assert data["health"] == "/health"


def test_request_id_echoed(client):
    response = client.get("/", headers={"X-Request-ID": "req-123"})
    assert response.headers["X-Request-ID"] == "req-123"

    generated = client.get("/").headers["X-Request-ID"]
    assert generated and generated != "req-123"


class TestMailbox:
    def test_fetch_then_background_categorization(self, client):
        response = client.post("/emails/fetch")

        assert response.status_code == 202
        assert response.json() == {"count": 5, "categorization": "scheduled"}

        def all_work() -> bool:
            emails = client.get("/emails").json()["emails"]
            return len(emails) == 5 and all(e["category"] == "Work" for e in emails)

        assert wait_until(all_work)

    def test_categorize_waits_for_report(self, client, store, sample_messages):
        store.replace_all(sample_messages)

        response = client.post("/emails/categorize")

        assert response.status_code == 200
        report = response.json()
        assert report["examined"] == 3
        assert report["categorized"] == 3
        assert report["labels"] == {"1": "Work", "2": "Work", "3": "Work"}

    def test_list_search_and_count(self, client, store, sample_messages):
        store.replace_all(sample_messages)

        listing = client.get("/emails").json()
        assert listing["count"] == 3
        assert [e["id"] for e in listing["emails"]] == [1, 2, 3]

        found = client.get("/emails", params={"q": "PIZZA"}).json()
        assert [e["id"] for e in found["emails"]] == [2]

        assert client.get("/emails", params={"q": "50%"}).json()["count"] == 1
        assert client.get("/emails/count").json() == {"count": 3}

    def test_query_takes_precedence_over_category(self, client, store, sample_messages):
        store.replace_all(sample_messages)

        response = client.get("/emails", params={"q": "invoice", "category": "Social"})

        assert [e["id"] for e in response.json()["emails"]] == [1]

    def test_get_email(self, client, store, sample_messages):
        store.replace_all(sample_messages)

        assert client.get("/emails/3").json()["subject"] == "Flash sale"

        missing = client.get("/emails/42")
        assert missing.status_code == 404
        assert missing.json()["error"] == "not_found"
        assert "timestamp" in missing.json()

    def test_update_category(self, client, store, sample_messages):
        store.replace_all(sample_messages)

        response = client.put("/emails/2/category", json={"category": "Social"})

        assert response.json() == {"id": 2, "category": "Social", "updated": True}
        assert [e["id"] for e in client.get("/emails", params={"category": "Social"}).json()["emails"]] == [2]

    def test_update_unknown_id_is_not_an_error(self, client):
        response = client.put("/emails/99/category", json={"category": "Finance"})

        assert response.status_code == 200
        assert response.json()["updated"] is False

    def test_update_with_invalid_category(self, client, store, sample_messages):
        store.replace_all(sample_messages)

        response = client.put("/emails/1/category", json={"category": "Spam"})

        assert response.status_code == 422
        assert store.get(1).category.value == "Inbox"

    def test_storage_error_maps_to_500(self, client):
        broken = MagicMock()
        broken.all.side_effect = StorageError("Storage error during all: disk I/O error", operation="all")
        app.dependency_overrides[dependencies.get_store] = lambda: broken

        response = client.get("/emails")

        assert response.status_code == 500
        assert response.json()["error"] == "storage_error"


class TestAssistant:
    def test_summary(self, client, store, sample_messages, ollama):
        store.replace_all(sample_messages)
        ollama.reply = "Invoice 4411 is attached."

        response = client.post("/emails/1/summary")

        assert response.status_code == 200
        data = response.json()
        assert data["text"] == "Invoice 4411 is attached."
        assert data["degraded"] is False
        assert "Summarize this email concisely" in ollama.prompts[-1]

    def test_summary_unknown_email(self, client, ollama):
        response = client.post("/emails/7/summary")

        assert response.status_code == 404
        assert ollama.prompts == []

    def test_summary_when_ollama_down(self, client, store, sample_messages, ollama, sleep_recorder):
        store.replace_all(sample_messages)
        ollama.fail = True

        response = client.post("/emails/1/summary")

        assert response.status_code == 503
        data = response.json()
        assert data["error"] == "inference_unavailable"
        assert data["message"].startswith("Ollama Error:")
        assert data["message"].endswith("Ensure Ollama is running.")
        assert sleep_recorder.delays == [0.5, 1.0]

    def test_reply(self, client, store, sample_messages, ollama):
        store.replace_all(sample_messages)
        ollama.reply = "Pizza works for me."

        response = client.post("/emails/2/reply")

        assert response.json()["text"] == "Pizza works for me."

    def test_chat_greeting_answered_locally(self, client, ollama):
        response = client.post("/chat", json={"message": "Hello!"})

        assert response.status_code == 200
        assert response.json()["model"] == "local-greeting"
        assert ollama.prompts == []

    def test_chat_question(self, client, store, sample_messages, ollama):
        store.replace_all(sample_messages)
        ollama.reply = "One invoice is waiting."

        response = client.post("/chat", json={"message": "Any bills?"})

        assert response.json()["text"] == "One invoice is waiting."
        assert '"num_ctx": 32768' in ollama.prompts[-1] or '"num_ctx":32768' in ollama.prompts[-1]

    def test_empty_chat_rejected(self, client, ollama):
        response = client.post("/chat", json={"message": "   "})

        assert response.status_code == 400
        assert response.json()["error"] == "invalid_request"


class TestSystem:
    def test_settings_round_trip(self, client):
        assert client.get("/settings/theme_mode").status_code == 404

        assert client.put("/settings/theme_mode", json={"value": "dark"}).status_code == 200

        assert client.get("/settings/theme_mode").json() == {"key": "theme_mode", "value": "dark"}

    def test_accounts(self, client, memory_keyring, test_settings):
        account = {"email": "me@example.com", "imap_host": "imap.example.com", "password": "s3cret"}

        created = client.post("/accounts", json=account)

        assert created.status_code == 201
        assert "password" not in created.json()
        assert memory_keyring.entries[(test_settings.KEYRING_SERVICE, "me@example.com")] == "s3cret"
        assert [a["email"] for a in client.get("/accounts").json()] == ["me@example.com"]

        assert client.delete("/accounts/me@example.com").status_code == 204
        assert client.get("/accounts").json() == []
        assert memory_keyring.entries == {}
        assert client.delete("/accounts/me@example.com").status_code == 404

    def test_send_logged_in_development(self, client):
        response = client.post("/send", json={"to": ["bob@example.com"], "subject": "Hi", "body": "Hello"})

        assert response.status_code == 200
        assert response.json()["delivered"] is False
        assert response.json()["message_id"].endswith("@dev.neural-mail>")

    def test_send_without_transport(self, client, test_settings):
        test_settings.DEV_MOCK_SEND = False

        response = client.post("/send", json={"to": ["bob@example.com"]})

        assert response.status_code == 503
        assert response.json()["error"] == "transport_not_configured"

    def test_models(self, client):
        response = client.get("/models")

        assert response.status_code == 200
        assert response.json() == {"default": "llama3.1:latest", "models": ["llama3.1:latest"]}

    def test_models_when_ollama_down(self, client, ollama):
        ollama.fail = True

        response = client.get("/models")

        assert response.status_code == 503
        assert response.json()["error"] == "inference_unavailable"

    def test_health_healthy(self, client):
        response = client.get("/health")

        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "healthy"
        assert data["services"] == {"database": "ok", "ollama": "ok"}

    def test_health_degraded_without_ollama(self, client, ollama):
        ollama.fail = True

        response = client.get("/health")

        assert response.status_code == 200
        assert response.json()["status"] == "degraded"
        assert response.json()["services"]["ollama"] == "unreachable"
