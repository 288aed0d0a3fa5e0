"""Unit test fixtures (mocks and stubs).

Provides mock objects for testing without a running inference endpoint.
"""

from unittest.mock import AsyncMock, MagicMock

import pytest

from neural_mail.llm.gateway import OllamaGateway
from neural_mail.models.llm_models import InferenceResult
from neural_mail.runtime.background import BackgroundRuntime
from neural_mail.runtime.dispatchers import QueueDispatcher


@pytest.fixture
def mock_gateway():
    """Mock OllamaGateway whose infer() answers "Work"."""
    mock = MagicMock(spec=OllamaGateway)
    mock.infer = AsyncMock(return_value=InferenceResult(text="Work", model="llama3.1:latest"))
    mock.health_check = AsyncMock(return_value=True)
    return mock


@pytest.fixture
def runtime():
    """Started BackgroundRuntime, shut down after the test."""
    background = BackgroundRuntime(max_workers=2, name="test-runtime")
    background.start()
    yield background
    background.shutdown()


@pytest.fixture
def dispatcher() -> QueueDispatcher:
    return QueueDispatcher()
