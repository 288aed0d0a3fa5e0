"""
Deterministic mock mailbox.

Stands in for IMAP retrieval in the shipped build. The same (size, seed)
pair always yields the same messages, so demos and tests are reproducible.
The store contract is identical for mock and real sources.
"""

import random

import structlog

from neural_mail.config import Settings
from neural_mail.models.enums import Category
from neural_mail.models.mail_models import Message

logger = structlog.get_logger(__name__)

# (sender, subject, body, has_attachment)
_TEMPLATES = [
    (
        "welcome@neural-mail.app",
        "Welcome to Neural Mail",
        "Your inbox now runs a local assistant. Summaries, drafts and categories "
        "are generated on this machine and never leave it.",
        False,
    ),
    (
        "boss@startup.com",
        "Quarterly review 2026",
        "Hi, please bring the Q1 roadmap and the hiring plan to Thursday's review. "
        "We will also go through the infrastructure budget.",
        True,
    ),
    (
        "billing@cloudhost.io",
        "Your invoice for February",
        "Invoice #4471 for $182.40 is now available. Payment will be charged to the "
        "card on file on March 1st.",
        True,
    ),
    (
        "noreply@bank.example",
        "Statement ready",
        "Your monthly account statement is ready. Log in to online banking to review "
        "recent transactions and your current balance.",
        False,
    ),
    (
        "maria@friends.net",
        "Dinner on Saturday?",
        "Hey! A few of us are getting together on Saturday at 8. Let me know if you "
        "can make it and whether you want to bring anything.",
        False,
    ),
    (
        "events@meetup.example",
        "New event in your group: Local AI night",
        "Join us for talks on running language models at home. RSVP to save a seat.",
        False,
    ),
    (
        "deals@shop.example",
        "48h flash sale: 40% off everything",
        "Our biggest sale of the season ends soon. Use code FLASH40 at checkout. "
        "Unsubscribe at any time.",
        False,
    ),
    (
        "news@gadgets.example",
        "This week's top gadgets",
        "Handpicked offers on headphones, keyboards and monitors, with free shipping "
        "on orders over $50.",
        False,
    ),
    (
        "devops@startup.com",
        "Incident report: API latency",
        "Yesterday's latency spike was caused by a misconfigured connection pool. "
        "Postmortem attached; action items are assigned.",
        True,
    ),
    (
        "hr@startup.com",
        "Benefits enrollment closes Friday",
        "Reminder to confirm your health plan selection before the deadline. "
        "The comparison sheet is attached.",
        True,
    ),
    (
        "ollama@community.org",
        "Local AI is here",
        "New model builds are available. Pull the latest llama3.1 tag to get the "
        "longer context window.",
        False,
    ),
    (
        "alex@family.example",
        "Photos from the trip",
        "Uploaded the pictures from last weekend. The ones from the lake turned out great!",
        True,
    ),
]

_DATE_LABELS = ["Today", "Today", "Yesterday", "Feb 16", "Feb 15", "Feb 14", "Feb 12", "Feb 9"]


class MockMailFetcher:
    """Generate a deterministic mailbox of ``size`` messages."""

    def __init__(self, size: int = 24, seed: int = 7):
        if size < 0:
            raise ValueError("size must be >= 0")
        self.size = size
        self.seed = seed

    @classmethod
    def from_settings(cls, settings: Settings) -> "MockMailFetcher":
        return cls(size=settings.MOCK_MAILBOX_SIZE, seed=settings.MOCK_MAILBOX_SEED)

    def fetch(self) -> list[Message]:
        """
        Return ``size`` messages with ids 1..size, all in the Inbox.

        Messages cycle through a fixed template set in a seeded order.
        """
        rng = random.Random(self.seed)
        order = list(range(len(_TEMPLATES)))
        messages = []

        for index in range(self.size):
            if index % len(order) == 0:
                rng.shuffle(order)
            sender, subject, body, has_attachment = _TEMPLATES[order[index % len(order)]]
            cycle = index // len(order)
            messages.append(
                Message(
                    id=index + 1,
                    subject=subject if cycle == 0 else f"{subject} ({cycle + 1})",
                    sender=sender,
                    date_label=_DATE_LABELS[min(index // 3, len(_DATE_LABELS) - 1)],
                    body=body,
                    has_attachment=has_attachment,
                    category=Category.INBOX,
                )
            )

        logger.info("Generated mock mailbox", size=self.size, seed=self.seed)
        return messages
