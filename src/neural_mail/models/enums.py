"""
Enumerations for Neural Mail data models.

Category is a closed taxonomy - no values outside this set are ever stored.
"""

from enum import Enum
from typing import Optional


class Category(str, Enum):
    """
    Closed set of mailbox categories.

    Every message carries exactly one category. INBOX is both the default
    for newly ingested mail and the resolution for anything unrecognized.
    """

    INBOX = "Inbox"
    WORK = "Work"
    FINANCE = "Finance"
    SOCIAL = "Social"
    PROMOTIONS = "Promotions"

    @classmethod
    def coerce(cls, value: Optional[str]) -> "Category":
        """Map a stored label to a Category, falling back to INBOX."""
        if isinstance(value, cls):
            return value
        for category in cls:
            if value == category.value:
                return category
        return cls.INBOX

    @classmethod
    def labels(cls) -> list[str]:
        return [category.value for category in cls]


class Operation(str, Enum):
    """Asynchronous operations delivered through the result bridge."""

    FETCH = "fetch"
    QUERY = "query"
    CATEGORIZE = "categorize"
    SUMMARIZE = "summarize"
    REPLY = "reply"
    CHAT = "chat"
    UPDATE = "update"
