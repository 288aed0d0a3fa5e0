"""
Account password storage in the OS credential store.

Passwords are kept out of the mail database entirely; the ``keyring``
library routes them to the platform backend (macOS Keychain, Windows
Credential Locker, Secret Service on Linux).
"""

from typing import Optional

import keyring
import structlog
from keyring.backend import KeyringBackend
from keyring.errors import KeyringError, PasswordDeleteError

logger = structlog.get_logger(__name__)


class CredentialError(Exception):
    """Raised when the credential backend rejects an operation."""

    def __init__(self, message: str, account: str | None = None):
        super().__init__(message)
        self.message = message
        self.account = account


class CredentialStore:
    """Save/get/delete account passwords keyed by account identifier."""

    def __init__(self, service: str = "neural-mail", backend: Optional[KeyringBackend] = None):
        """
        Args:
            service: Keyring service name shared by all accounts
            backend: Explicit keyring backend; defaults to the platform backend
        """
        self.service = service
        self._backend = backend

    @property
    def backend(self) -> KeyringBackend:
        return self._backend or keyring.get_keyring()

    def save_password(self, account: str, password: str) -> None:
        try:
            self.backend.set_password(self.service, account, password)
        except KeyringError as e:
            raise CredentialError(f"Could not save password: {e}", account=account) from e
        logger.info("Saved account password", account=account)

    def get_password(self, account: str) -> Optional[str]:
        """Return the stored password, or None if the account has none."""
        try:
            return self.backend.get_password(self.service, account)
        except KeyringError as e:
            raise CredentialError(f"Could not read password: {e}", account=account) from e

    def delete_password(self, account: str) -> None:
        """Remove the stored password. Missing entries are ignored."""
        try:
            self.backend.delete_password(self.service, account)
        except PasswordDeleteError:
            logger.debug("No stored password to delete", account=account)
        except KeyringError as e:
            raise CredentialError(f"Could not delete password: {e}", account=account) from e
        else:
            logger.info("Deleted account password", account=account)
