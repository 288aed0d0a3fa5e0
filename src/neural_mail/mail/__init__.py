"""Mail sources and outbound transports."""

from neural_mail.mail.mock_fetcher import MockMailFetcher
from neural_mail.mail.outbound import LogOnlyTransport, TransportNotConfigured, resolve_transport

__all__ = [
    "MockMailFetcher",
    "LogOnlyTransport",
    "TransportNotConfigured",
    "resolve_transport",
]
