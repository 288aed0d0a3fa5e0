"""
Local HTTP API for a desktop or web shell.

- routes_mail.py: listing, search, categories, fetch, send
- routes_assistant.py: summary, reply draft, chat
- routes_system.py: health, settings, accounts
- dependencies.py: singletons and per-request orchestrators
- models.py: request/response models
- error_handlers.py: exception handlers for structured error responses
"""

from neural_mail.api import dependencies, error_handlers, models
from neural_mail.api.routes_assistant import router as assistant_router
from neural_mail.api.routes_mail import router as mail_router
from neural_mail.api.routes_system import router as system_router

__all__ = [
    "mail_router",
    "assistant_router",
    "system_router",
    "dependencies",
    "error_handlers",
    "models",
]
