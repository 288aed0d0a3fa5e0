"""
Storage exceptions.

Every storage-engine failure (I/O, corruption, lock contention, constraint
violation) reaches callers as a StorageError chained to the original
SQLAlchemy exception.
"""


class StorageError(Exception):
    """
    Raised when a MailStore operation fails in the storage engine.

    Attributes:
        message: Human-readable description suitable for display
        operation: Store operation that failed (e.g. "replace_all")
        details: Extra context for logs
    """
    def __init__(self, message: str, operation: str | None = None, details: dict | None = None):
        super().__init__(message)
        self.message = message
        self.operation = operation
        self.details = details or {}


class MessageNotFound(LookupError):
    """Raised when a message id is required to exist but does not."""

    def __init__(self, message_id: int):
        super().__init__(f"Message {message_id} not found")
        self.message_id = message_id
