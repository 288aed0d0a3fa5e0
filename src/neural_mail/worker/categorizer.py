"""
Background categorization of newly fetched mail.

Triggered once per fetch completion. Reads a bounded slice of the store,
asks the model for one label per message still in the Inbox and writes
each result back immediately, so interactive readers see categories
appear row by row while the batch is still running.
"""

import asyncio
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Optional

import structlog

from neural_mail.config import Settings
from neural_mail.llm.exceptions import InferenceError
from neural_mail.llm.gateway import OllamaGateway
from neural_mail.llm.prompt_builder import PromptBuilder
from neural_mail.models.enums import Category
from neural_mail.monitoring.metrics import categorization_failures_total, categorizations_total
from neural_mail.persistence.store import MailStore

if TYPE_CHECKING:
    from neural_mail.runtime.session import SessionToken

logger = structlog.get_logger(__name__)


def parse_category(text: Optional[str]) -> Category:
    """
    Resolve free model output to a Category.

    Case-insensitive substring match against the label set; the label
    occurring earliest in the text wins. No match resolves to INBOX.

    Examples:
        >>> parse_category("Finance")
        <Category.FINANCE: 'Finance'>
        >>> parse_category("Category: work (maybe finance)")
        <Category.WORK: 'Work'>
        >>> parse_category("unknown")
        <Category.INBOX: 'Inbox'>
    """
    if not text:
        return Category.INBOX

    lowered = text.lower()
    best: Optional[tuple[int, Category]] = None
    for category in Category:
        position = lowered.find(category.value.lower())
        if position != -1 and (best is None or position < best[0]):
            best = (position, category)
    return best[1] if best else Category.INBOX


@dataclass
class CategorizationReport:
    """
    Summary of one worker run.

    Attributes:
        examined: Messages read from the store (at most the batch size)
        candidates: Messages that were still in the Inbox
        categorized: Candidates moved to a non-Inbox category
        unchanged: Candidates that resolved back to Inbox
        failed: Candidates skipped because inference failed
        labels: Persisted label per message id
    """

    examined: int = 0
    candidates: int = 0
    categorized: int = 0
    unchanged: int = 0
    failed: int = 0
    labels: dict[int, Category] = field(default_factory=dict)


class CategorizationWorker:
    """
    Assigns categories to uncategorized messages.

    Per-message inference failures are skipped so one bad message never
    aborts the batch. Storage errors and cancellation propagate.
    """

    def __init__(
        self,
        store: MailStore,
        gateway: OllamaGateway,
        prompt_builder: PromptBuilder,
        model: Optional[str] = None,
        batch_size: int = 20,
    ):
        if batch_size < 1:
            raise ValueError("batch_size must be >= 1")
        self.store = store
        self.gateway = gateway
        self.prompt_builder = prompt_builder
        self.model = model
        self.batch_size = batch_size

    @classmethod
    def from_settings(
        cls, settings: Settings, store: MailStore, gateway: OllamaGateway
    ) -> "CategorizationWorker":
        return cls(
            store=store,
            gateway=gateway,
            prompt_builder=PromptBuilder(
                categorize_body_chars=settings.CATEGORIZE_BODY_CHARS,
                chat_context_messages=settings.CHAT_CONTEXT_MESSAGES,
            ),
            model=settings.OLLAMA_MODEL,
            batch_size=settings.CATEGORIZE_BATCH_SIZE,
        )

    async def categorize(
        self, subject: str, body: str, token: Optional["SessionToken"] = None
    ) -> Category:
        """Classify one subject/body pair. Always returns a member of Category."""
        prompt = self.prompt_builder.build_categorization_prompt(subject, body)
        result = await self.gateway.infer(self.model, prompt, token=token)
        return parse_category(result.text)

    async def run(self, token: Optional["SessionToken"] = None) -> CategorizationReport:
        """
        Categorize one batch.

        1. Read up to ``batch_size`` messages in store scan order
        2. For each message still labeled Inbox, ask the model for a label
        3. Persist the parsed label immediately with ``update_category``
        """
        report = CategorizationReport()
        batch = await asyncio.to_thread(self.store.all, self.batch_size)
        job = [message for message in batch if message.category is Category.INBOX]
        report.examined = len(batch)
        report.candidates = len(job)

        logger.info("Categorization batch started", examined=report.examined, candidates=len(job))

        for message in job:
            if token is not None:
                token.raise_if_cancelled()

            try:
                category = await self.categorize(message.subject, message.body, token=token)
            except InferenceError as e:
                report.failed += 1
                categorization_failures_total.inc()
                logger.warning(
                    "Skipping message, categorization failed",
                    message_id=message.id,
                    error=str(e),
                )
                continue

            await asyncio.to_thread(self.store.update_category, message.id, category)
            report.labels[message.id] = category
            categorizations_total.labels(category=category.value).inc()
            if category is Category.INBOX:
                report.unchanged += 1
            else:
                report.categorized += 1

        logger.info(
            "Categorization batch finished",
            categorized=report.categorized,
            unchanged=report.unchanged,
            failed=report.failed,
        )
        return report
