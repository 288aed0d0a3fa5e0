"""
Outbound mail transports.

Only the development transport ships: with DEV_MOCK_SEND enabled, sent mail
is logged instead of delivered. Real SMTP delivery is not implemented.
"""

import uuid

import structlog

from neural_mail.config import Settings
from neural_mail.models.mail_models import OutboundMessage

logger = structlog.get_logger(__name__)


class TransportNotConfigured(RuntimeError):
    """Raised when sending is requested without a usable transport."""


class LogOnlyTransport:
    """Development transport: logs the message and returns a synthetic id."""

    def send(self, message: OutboundMessage) -> str:
        message_id = f"<{uuid.uuid4()}@dev.neural-mail>"
        logger.info(
            "Mock send (not delivered)",
            message_id=message_id,
            to=message.to,
            subject=message.subject,
            body_length=len(message.body),
            attachments=len(message.attachments),
        )
        return message_id


def resolve_transport(settings: Settings) -> LogOnlyTransport:
    """
    Pick the outbound transport for the current configuration.

    Raises:
        TransportNotConfigured: DEV_MOCK_SEND is disabled
    """
    if settings.DEV_MOCK_SEND:
        return LogOnlyTransport()
    raise TransportNotConfigured(
        "No outbound transport configured; enable DEV_MOCK_SEND to log sends locally"
    )
