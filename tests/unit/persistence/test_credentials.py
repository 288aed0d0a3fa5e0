"""Unit tests for CredentialStore (in-memory keyring backend)."""

from unittest.mock import MagicMock

import pytest
from keyring.errors import KeyringError

from neural_mail.persistence.credentials import CredentialError, CredentialStore


@pytest.fixture
def credentials(memory_keyring):
    return CredentialStore(service="neural-mail-test", backend=memory_keyring)


def test_save_and_get(credentials, memory_keyring):
    credentials.save_password("me@example.com", "hunter2")

    assert credentials.get_password("me@example.com") == "hunter2"
    assert memory_keyring.entries == {("neural-mail-test", "me@example.com"): "hunter2"}


def test_get_unknown_account(credentials):
    assert credentials.get_password("nobody@example.com") is None


def test_delete(credentials):
    credentials.save_password("me@example.com", "hunter2")

    credentials.delete_password("me@example.com")

    assert credentials.get_password("me@example.com") is None


def test_delete_missing_is_ignored(credentials):
    credentials.delete_password("nobody@example.com")


def test_backend_failure_wrapped():
    backend = MagicMock()
    backend.set_password.side_effect = KeyringError("locked")
    credentials = CredentialStore(backend=backend)

    with pytest.raises(CredentialError) as exc_info:
        credentials.save_password("me@example.com", "hunter2")

    assert exc_info.value.account == "me@example.com"
    assert "locked" in exc_info.value.message
