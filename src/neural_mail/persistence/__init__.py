"""
Persistence layer.

- store.py: SQLite mail store (messages, settings, accounts) via SQLAlchemy Core
- schema.py: table definitions and column migrations
- credentials.py: account passwords in the OS keyring
- exceptions.py: StorageError and MessageNotFound

Storage Strategy:
- One local database file, connection-per-call pooling
- WAL journaling for concurrent readers and the categorization writer
- Bulk ingest as a single delete+insert transaction
"""

from neural_mail.persistence.credentials import CredentialError, CredentialStore
from neural_mail.persistence.exceptions import MessageNotFound, StorageError
from neural_mail.persistence.store import MailStore

__all__ = [
    "MailStore",
    "StorageError",
    "MessageNotFound",
    "CredentialStore",
    "CredentialError",
]
