"""
Local greeting interceptor for the chat assistant.

Pure greetings are answered on the spot without a model round trip.
"""

from datetime import datetime
from typing import Optional

GREETING_PHRASES = frozenset({
    "hi",
    "hello",
    "hey",
    "hiya",
    "good morning",
    "good afternoon",
    "good evening",
})

_TRAILING = "!.?,;: "


def normalize_greeting(text: str) -> str:
    """Trim, lowercase and drop trailing punctuation."""
    return " ".join(text.strip().lower().rstrip(_TRAILING).split())


def is_greeting(text: Optional[str]) -> bool:
    """True only for an exact (normalized) match: "hi there" is not a greeting."""
    return bool(text) and normalize_greeting(text) in GREETING_PHRASES


def time_of_day_greeting(now: Optional[datetime] = None) -> str:
    hour = (now or datetime.now()).hour
    if hour < 12:
        part = "Good morning"
    elif hour < 18:
        part = "Good afternoon"
    else:
        part = "Good evening"
    return f"{part}! How can I help you with your inbox today?"


def greeting_reply(text: Optional[str], now: Optional[datetime] = None) -> Optional[str]:
    """Return a local greeting for pure greeting inputs, otherwise None."""
    if not is_greeting(text):
        return None
    return time_of_day_greeting(now)
