"""
Interactive assistant.

- MailAssistant: summarize, draft reply and inbox chat orchestrators
- greeting: local fast path for pure greetings
- ValidationError: rejected inputs at the orchestration boundary
"""

from neural_mail.assistant.exceptions import ValidationError
from neural_mail.assistant.greeting import greeting_reply, is_greeting
from neural_mail.assistant.orchestrators import MailAssistant

__all__ = [
    "MailAssistant",
    "ValidationError",
    "greeting_reply",
    "is_greeting",
]
