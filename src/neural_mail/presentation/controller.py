"""
Presentation-side controller.

MailController is what a UI toolkit binds its widgets to. Every method is
called on the presentation thread and returns immediately: storage and
inference work is handed to the ResultBridge, and ViewState changes only
when the bridge delivers an Outcome back on this thread.

Only the greeting fast path of ``send_chat`` and pure view changes
(selection, preference values) complete synchronously.
"""

import asyncio
from typing import Any, Awaitable, Callable, Optional, Union

import structlog

from neural_mail.assistant.orchestrators import MailAssistant
from neural_mail.mail.mock_fetcher import MockMailFetcher
from neural_mail.models.enums import Category, Operation
from neural_mail.models.mail_models import Message
from neural_mail.persistence.store import MailStore
from neural_mail.presentation.state import ChatTurn, ViewState
from neural_mail.runtime.bridge import Outcome, ResultBridge
from neural_mail.runtime.session import SessionToken
from neural_mail.worker.categorizer import CategorizationReport, CategorizationWorker

logger = structlog.get_logger(__name__)

LOADING_STATUS = {
    Operation.FETCH: "Fetching emails...",
    Operation.QUERY: "Loading...",
    Operation.CATEGORIZE: "Categorizing emails...",
    Operation.SUMMARIZE: "Summarizing...",
    Operation.REPLY: "Drafting reply...",
    Operation.CHAT: "Thinking...",
    Operation.UPDATE: "Saving...",
}


class MailController:
    """
    Adapter between a UI session and the core services.

    Attributes:
        state: ViewState rendered by the UI
        session: Liveness token; ``close()`` invalidates it so late
            deliveries are dropped
    """

    def __init__(
        self,
        store: MailStore,
        assistant: MailAssistant,
        worker: CategorizationWorker,
        fetcher: MockMailFetcher,
        bridge: ResultBridge,
        session: Optional[SessionToken] = None,
    ):
        self.store = store
        self.assistant = assistant
        self.worker = worker
        self.fetcher = fetcher
        self.bridge = bridge
        self.session = session or SessionToken("mail-window")
        self.state = ViewState()

    # === Plumbing ===

    def _submit(
        self,
        operation: Operation,
        work: Callable[[SessionToken], Awaitable[Any]],
        apply: Callable[[Any], None],
        on_failure: Optional[Callable[[str], None]] = None,
        loading: bool = True,
    ) -> None:
        def on_loading() -> None:
            self.state.pending += 1
            self.state.status = LOADING_STATUS[operation]
            self.state.error = None

        def on_done(outcome: Outcome) -> None:
            if loading:
                self.state.pending = max(0, self.state.pending - 1)
            if outcome.ok:
                apply(outcome.value)
                if not self.state.loading:
                    self.state.status = "Ready"
                return
            self.state.error = outcome.error
            self.state.status = outcome.error
            if on_failure is not None:
                on_failure(outcome.error)

        self.bridge.submit(
            operation,
            work,
            on_done=on_done,
            session=self.session,
            on_loading=on_loading if loading else None,
        )

    def _show(self, messages: list[Message]) -> None:
        self.state.messages = messages
        if self.state.selected_id is not None and self.state.selected is None:
            self.state.selected_id = None
            self.state.summary = None
            self.state.reply_draft = None

    # === Mailbox ===

    def load_preferences(self) -> None:
        """Load persisted sidebar width and theme mode."""

        async def work(token: SessionToken) -> tuple[float, str]:
            width = await asyncio.to_thread(self.store.get_sidebar_width)
            theme = await asyncio.to_thread(self.store.get_theme_mode)
            return width, theme

        def apply(value: tuple[float, str]) -> None:
            self.state.sidebar_width, self.state.theme_mode = value

        self._submit(Operation.QUERY, work, apply)

    def fetch_emails(self) -> None:
        """
        Ingest the mailbox, then categorize it in the background.

        The list refreshes as soon as ingest completes and again when the
        categorization batch finishes.
        """

        async def work(token: SessionToken) -> list[Message]:
            fetched = self.fetcher.fetch()
            await asyncio.to_thread(self.store.replace_all, fetched)
            return await asyncio.to_thread(self.store.all)

        def apply(messages: list[Message]) -> None:
            self._show(messages)
            self.categorize()

        self._submit(Operation.FETCH, work, apply)

    def categorize(self) -> None:
        """Run one categorization batch, then refresh the current view."""

        async def work(token: SessionToken) -> CategorizationReport:
            return await self.worker.run(token)

        def apply(report: CategorizationReport) -> None:
            self.state.last_report = report
            self.refresh()

        self._submit(Operation.CATEGORIZE, work, apply)

    def refresh(self) -> None:
        """Reload the list for the current query or category filter."""
        query = self.state.query
        category = self.state.category_filter

        async def work(token: SessionToken) -> list[Message]:
            if query.strip():
                return await asyncio.to_thread(self.store.search, query)
            if category is not None:
                return await asyncio.to_thread(self.store.by_category, category)
            return await asyncio.to_thread(self.store.all)

        def apply(messages: list[Message]) -> None:
            if self.state.query != query or self.state.category_filter != category:
                logger.debug("Discarded superseded listing", query_length=len(query))
                return
            self._show(messages)

        self._submit(Operation.QUERY, work, apply)

    def search(self, query: str) -> None:
        self.state.query = query or ""
        self.state.category_filter = None
        self.refresh()

    def filter_category(self, category: Optional[Union[Category, str]]) -> None:
        """Show one category, or everything when ``category`` is None."""
        self.state.query = ""
        self.state.category_filter = Category(category) if category is not None else None
        self.refresh()

    def set_category(self, message_id: int, category: Union[Category, str]) -> None:
        """User action: move a message to ``category``."""
        label = Category(category)

        async def work(token: SessionToken) -> bool:
            return await asyncio.to_thread(self.store.update_category, message_id, label)

        def apply(updated: bool) -> None:
            if not updated:
                logger.info("Category change for vanished message", message_id=message_id)
            self.refresh()

        self._submit(Operation.UPDATE, work, apply)

    def select(self, message_id: Optional[int]) -> None:
        if message_id != self.state.selected_id:
            self.state.summary = None
            self.state.reply_draft = None
        self.state.selected_id = message_id

    # === Assistant ===

    def summarize(self, message_id: Optional[int] = None) -> bool:
        """
        Summarize a message (the selected one by default).

        Returns False without submitting when nothing is selected.
        """
        target = message_id if message_id is not None else self.state.selected_id
        if target is None:
            return False

        def apply(result) -> None:
            if self.state.selected_id in (None, target):
                self.state.summary = result.text

        self._submit(
            Operation.SUMMARIZE, lambda token: self.assistant.summarize(target, token), apply
        )
        return True

    def draft_reply(self, message_id: Optional[int] = None) -> bool:
        target = message_id if message_id is not None else self.state.selected_id
        if target is None:
            return False

        def apply(result) -> None:
            if self.state.selected_id in (None, target):
                self.state.reply_draft = result.text

        self._submit(
            Operation.REPLY, lambda token: self.assistant.draft_reply(target, token), apply
        )
        return True

    def send_chat(self, text: Optional[str]) -> bool:
        """
        Send a chat message.

        Empty input is declined (returns False, nothing submitted). Pure
        greetings are answered immediately without a loading signal. Model
        replies are appended to the history as it stands at delivery time.
        """
        if text is None or not text.strip():
            self.state.status = "Type a message first."
            return False

        self.state.chat_history.append(ChatTurn(role="user", text=text))

        greeting = self.assistant.quick_reply(text)
        if greeting is not None:
            self.state.chat_history.append(ChatTurn(role="assistant", text=greeting))
            return True

        def apply(result) -> None:
            self.state.chat_history.append(ChatTurn(role="assistant", text=result.text))

        def on_failure(error: str) -> None:
            self.state.chat_history.append(ChatTurn(role="assistant", text=error, failed=True))

        self._submit(
            Operation.CHAT,
            lambda token: self.assistant.chat(text, token),
            apply,
            on_failure=on_failure,
        )
        return True

    # === Preferences ===

    def set_sidebar_width(self, width: float) -> None:
        self.state.sidebar_width = float(width)

        async def work(token: SessionToken) -> None:
            await asyncio.to_thread(self.store.set_sidebar_width, width)

        self._submit(Operation.UPDATE, work, lambda _: None, loading=False)

    def set_theme_mode(self, mode: str) -> None:
        self.state.theme_mode = mode

        async def work(token: SessionToken) -> None:
            await asyncio.to_thread(self.store.set_theme_mode, mode)

        self._submit(Operation.UPDATE, work, lambda _: None, loading=False)

    def close(self) -> None:
        """Tear the session down; in-flight results are dropped."""
        self.session.invalidate()
        logger.info("Mail window closed", session_id=self.session.id)
