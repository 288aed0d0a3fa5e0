"""
Exceptions for the inference layer.

Only hard failures are exceptions. A reachable endpoint that returns no
usable text is a degraded success (InferenceResult.degraded), not an error.
"""


class InferenceError(Exception):
    """
    Base exception for all inference errors.

    All gateway exceptions inherit from this to allow catching any
    inference-related failure with a single except clause.
    """
    def __init__(self, message: str, details: dict | None = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}


class InferenceUnavailable(InferenceError):
    """
    Raised when every attempt against the inference endpoint failed.

    Carries the description of the last underlying error (transport,
    HTTP status or decode failure) and the number of attempts made.
    """
    def __init__(self, last_error: str, attempts: int, endpoint: str | None = None):
        super().__init__(
            f"Inference endpoint unavailable after {attempts} attempts: {last_error}",
            details={"last_error": last_error, "attempts": attempts, "endpoint": endpoint},
        )
        self.last_error = last_error
        self.attempts = attempts
        self.endpoint = endpoint


class InferenceAttemptError(InferenceError):
    """
    A single failed attempt (transport or decode).

    Internal to the gateway retry loop; never escapes ``infer``.
    """
    pass
