"""Shared test fixtures and configuration for all tests.

This conftest.py provides common fixtures used across unit and integration tests.
"""

from typing import Optional

import httpx
import pytest
from keyring.backend import KeyringBackend
from keyring.errors import PasswordDeleteError

from neural_mail.config import Settings
from neural_mail.llm.gateway import OllamaGateway
from neural_mail.models.enums import Category
from neural_mail.models.mail_models import Message
from neural_mail.persistence.store import MailStore

TEST_ENDPOINT = "http://ollama.test/api/generate"


class MemoryKeyring(KeyringBackend):
    """In-process keyring backend so tests never touch the OS credential store."""

    priority = 1

    def __init__(self):
        super().__init__()
        self.entries: dict[tuple[str, str], str] = {}

    def get_password(self, service: str, username: str) -> Optional[str]:
        return self.entries.get((service, username))

    def set_password(self, service: str, username: str, password: str) -> None:
        self.entries[(service, username)] = password

    def delete_password(self, service: str, username: str) -> None:
        if (service, username) not in self.entries:
            raise PasswordDeleteError("not found")
        del self.entries[(service, username)]


class SleepRecorder:
    """Awaitable stand-in for asyncio.sleep that records requested delays."""

    def __init__(self):
        self.delays: list[float] = []

    async def __call__(self, delay: float) -> None:
        self.delays.append(delay)


def generate_response(text: Optional[str] = "ok", model: str = "llama3.1:latest") -> httpx.Response:
    """A /api/generate envelope; ``text=None`` omits the response field."""
    body = {"model": model, "done": True}
    if text is not None:
        body["response"] = text
    return httpx.Response(200, json=body)


@pytest.fixture
def test_settings(tmp_path) -> Settings:
    """Test settings with safe defaults for local testing.

    Override specific settings in individual tests as needed:
        def test_something(test_settings):
            test_settings.MOCK_MAILBOX_SIZE = 3
    """
    return Settings(
        # === Application ===
        APP_NAME="Neural Mail (Test)",
        DEBUG=True,
        LOG_LEVEL="DEBUG",
        ENVIRONMENT="development",

        # === Inference ===
        OLLAMA_URL=TEST_ENDPOINT,
        OLLAMA_MODEL="llama3.1:latest",
        OLLAMA_TIMEOUT=5.0,

        # === Storage / mail ===
        DATABASE_PATH=str(tmp_path / "neural-mail-test.db"),
        MOCK_MAILBOX_SIZE=5,
        DEV_MOCK_SEND=True,
        KEYRING_SERVICE="neural-mail-test",

        WORKER_THREADS=2,
        PROMETHEUS_ENABLED=False,
    )


@pytest.fixture
def make_message():
    """Factory fixture to create Message instances.

    Usage:
        def test_something(make_message):
            message = make_message(1, subject="Invoice", body="Amount due")
    """
    def _create(
        message_id: int,
        subject: str = "Test Subject",
        sender: str = "sender@example.com",
        body: str = "Test email body",
        category: Category = Category.INBOX,
        has_attachment: bool = False,
    ) -> Message:
        return Message(
            id=message_id,
            subject=subject,
            sender=sender,
            date_label="Today",
            body=body,
            has_attachment=has_attachment,
            category=category,
        )

    return _create


@pytest.fixture
def sample_messages(make_message) -> list[Message]:
    return [
        make_message(1, subject="Invoice #4411", sender="billing@acme.com", body="Your invoice is attached."),
        make_message(2, subject="Team lunch", sender="alice@work.com", body="Pizza on Friday?"),
        make_message(3, subject="Flash sale", sender="deals@shop.com", body="50% off everything today."),
    ]


@pytest.fixture
def store(tmp_path):
    """Initialized MailStore on a fresh SQLite file."""
    mail_store = MailStore(tmp_path / "mail.db")
    mail_store.init()
    yield mail_store
    mail_store.close()


@pytest.fixture
def sleep_recorder() -> SleepRecorder:
    return SleepRecorder()


@pytest.fixture
def make_gateway(sleep_recorder):
    """Factory fixture: OllamaGateway backed by an httpx.MockTransport handler."""
    def _create(handler, **kwargs) -> OllamaGateway:
        kwargs.setdefault("endpoint", TEST_ENDPOINT)
        kwargs.setdefault("sleep", sleep_recorder)
        return OllamaGateway(transport=httpx.MockTransport(handler), **kwargs)

    return _create


@pytest.fixture
def memory_keyring() -> MemoryKeyring:
    return MemoryKeyring()


@pytest.fixture
def ollama_reply():
    """The ``generate_response`` builder, for MockTransport handlers."""
    return generate_response
