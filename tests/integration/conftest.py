"""Integration test fixtures.

The API is exercised in-process through TestClient with every long-lived
dependency overridden: a temp SQLite store, a gateway on an
httpx.MockTransport, an in-memory keyring and a real background runtime.
"""

import httpx
import pytest
from fastapi.testclient import TestClient

from neural_mail.api import dependencies
from neural_mail.main import app
from neural_mail.persistence.credentials import CredentialStore
from neural_mail.runtime.background import BackgroundRuntime
from neural_mail.runtime.session import SessionToken


class OllamaStub:
    """MockTransport handler for /api/generate and /api/tags.

    ``reply`` is the generated text; ``fail`` makes every call return 500.
    """

    def __init__(self, reply: str = "Work"):
        self.reply = reply
        self.fail = False
        self.prompts: list[str] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        if self.fail:
            return httpx.Response(500, text="model crashed")
        if request.url.path == "/api/tags":
            return httpx.Response(200, json={"models": [{"name": "llama3.1:latest"}]})
        self.prompts.append(request.read().decode())
        return httpx.Response(200, json={"model": "llama3.1:latest", "response": self.reply, "done": True})


@pytest.fixture
def ollama() -> OllamaStub:
    return OllamaStub()


@pytest.fixture
def api_runtime():
    background = BackgroundRuntime(max_workers=2, name="api-test-runtime")
    background.start()
    yield background
    background.shutdown()


@pytest.fixture
def client(test_settings, store, make_gateway, ollama, api_runtime, memory_keyring):
    """TestClient with dependency overrides; the lifespan is not run."""
    gateway = make_gateway(ollama)
    credentials = CredentialStore(service=test_settings.KEYRING_SERVICE, backend=memory_keyring)
    session = SessionToken("api-test")

    app.dependency_overrides.update({
        dependencies.get_settings: lambda: test_settings,
        dependencies.get_store: lambda: store,
        dependencies.get_gateway: lambda: gateway,
        dependencies.get_runtime: lambda: api_runtime,
        dependencies.get_api_session: lambda: session,
        dependencies.get_credentials: lambda: credentials,
    })
    yield TestClient(app)
    session.invalidate()
    app.dependency_overrides.clear()
