"""Exceptions raised at the orchestration boundary."""


class ValidationError(ValueError):
    """
    Raised for malformed orchestrator inputs (e.g. an empty chat message).

    Callers on the presentation side handle it locally by declining to
    submit work; it never reaches the result bridge.
    """
    def __init__(self, message: str, field: str | None = None):
        super().__init__(message)
        self.message = message
        self.field = field
