"""
FastAPI exception handlers for structured error responses.

Every body has the same shape: ``{"error", "message", "timestamp"}``.
"""

from datetime import datetime, timezone

import structlog
from fastapi import Request, status
from fastapi.responses import JSONResponse

from neural_mail.assistant.exceptions import ValidationError
from neural_mail.llm.exceptions import InferenceUnavailable
from neural_mail.mail.outbound import TransportNotConfigured
from neural_mail.persistence.credentials import CredentialError
from neural_mail.persistence.exceptions import MessageNotFound, StorageError

logger = structlog.get_logger(__name__)


def _error(status_code: int, error: str, message: str) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content={
            "error": error,
            "message": message,
            "timestamp": datetime.now(timezone.utc).isoformat(),
        },
    )


async def storage_error_handler(request: Request, exc: StorageError) -> JSONResponse:
    logger.error("Storage error", operation=exc.operation, error=exc.message)
    return _error(status.HTTP_500_INTERNAL_SERVER_ERROR, "storage_error", exc.message)


async def inference_unavailable_handler(request: Request, exc: InferenceUnavailable) -> JSONResponse:
    """
    Inference endpoint down after all retries.

    Maps to 503 Service Unavailable with the last underlying error.
    """
    logger.error(
        "Inference unavailable",
        attempts=exc.attempts,
        endpoint=exc.endpoint,
        last_error=exc.last_error,
    )
    return _error(
        status.HTTP_503_SERVICE_UNAVAILABLE,
        "inference_unavailable",
        f"Ollama Error: {exc.last_error}. Ensure Ollama is running.",
    )


async def validation_error_handler(request: Request, exc: ValidationError) -> JSONResponse:
    logger.warning("Rejected request input", field=exc.field, error=exc.message)
    return _error(status.HTTP_400_BAD_REQUEST, "invalid_request", exc.message)


async def message_not_found_handler(request: Request, exc: MessageNotFound) -> JSONResponse:
    return _error(status.HTTP_404_NOT_FOUND, "not_found", str(exc))


async def credential_error_handler(request: Request, exc: CredentialError) -> JSONResponse:
    logger.error("Credential store error", account=exc.account, error=exc.message)
    return _error(status.HTTP_500_INTERNAL_SERVER_ERROR, "credential_error", exc.message)


async def transport_not_configured_handler(
    request: Request, exc: TransportNotConfigured
) -> JSONResponse:
    return _error(status.HTTP_503_SERVICE_UNAVAILABLE, "transport_not_configured", str(exc))


async def generic_error_handler(request: Request, exc: Exception) -> JSONResponse:
    """Unexpected errors: 500 without internals in the body."""
    logger.exception("Unexpected error", error_type=type(exc).__name__)
    return _error(
        status.HTTP_500_INTERNAL_SERVER_ERROR,
        "internal_error",
        "An unexpected error occurred",
    )


# Exception handler mapping for FastAPI app.add_exception_handler()
EXCEPTION_HANDLERS = {
    StorageError: storage_error_handler,
    InferenceUnavailable: inference_unavailable_handler,
    ValidationError: validation_error_handler,
    MessageNotFound: message_not_found_handler,
    CredentialError: credential_error_handler,
    TransportNotConfigured: transport_not_configured_handler,
    Exception: generic_error_handler,
}
