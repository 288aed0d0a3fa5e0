"""
Background runtime.

- session.py: SessionToken liveness/cancellation token
- background.py: event loop thread plus worker pool
- dispatchers.py: hand-off into the presentation context
- bridge.py: ResultBridge and Outcome (import from neural_mail.runtime.bridge;
  it depends on the layers that themselves import session.py)
"""

from neural_mail.runtime.background import BackgroundRuntime, RuntimeStopped
from neural_mail.runtime.dispatchers import AsyncioDispatcher, Dispatcher, QueueDispatcher
from neural_mail.runtime.session import RequestCancelled, SessionToken

__all__ = [
    "BackgroundRuntime",
    "RuntimeStopped",
    "Dispatcher",
    "QueueDispatcher",
    "AsyncioDispatcher",
    "SessionToken",
    "RequestCancelled",
]
