"""
Request-scoped assistant use cases: summarize, draft reply, inbox chat.

Each call is a short pipeline executed in order:
    gather context -> sanitize (PromptBuilder) -> infer (gateway) -> return

Store reads are pushed to a worker thread so the orchestrators can run on
any event loop. Gateway and store errors propagate unchanged; the caller
(result bridge, API route) turns them into a terminal failure for this one
request.
"""

import asyncio
from datetime import datetime
from typing import TYPE_CHECKING, Callable, Optional, Union

import structlog

from neural_mail.assistant.exceptions import ValidationError
from neural_mail.assistant.greeting import greeting_reply
from neural_mail.config import Settings
from neural_mail.llm.gateway import OllamaGateway
from neural_mail.llm.prompt_builder import PromptBuilder
from neural_mail.models.llm_models import InferenceResult
from neural_mail.models.mail_models import Message
from neural_mail.persistence.exceptions import MessageNotFound
from neural_mail.persistence.store import MailStore

if TYPE_CHECKING:
    from neural_mail.runtime.session import SessionToken

logger = structlog.get_logger(__name__)

LOCAL_MODEL = "local-greeting"


class MailAssistant:
    """
    Orchestrates the interactive assistant features.

    Attributes:
        store: Mail store (read-only use)
        gateway: Inference gateway
        prompt_builder: Template renderer with sanitization
        model: Model name, None for the gateway default
        chat_context_window: num_ctx override for inbox-wide chat
    """

    def __init__(
        self,
        store: MailStore,
        gateway: OllamaGateway,
        prompt_builder: PromptBuilder,
        model: Optional[str] = None,
        chat_context_window: Optional[int] = 32768,
        clock: Callable[[], datetime] = datetime.now,
    ):
        self.store = store
        self.gateway = gateway
        self.prompt_builder = prompt_builder
        self.model = model
        self.chat_context_window = chat_context_window
        self.clock = clock

    @classmethod
    def from_settings(
        cls, settings: Settings, store: MailStore, gateway: OllamaGateway
    ) -> "MailAssistant":
        return cls(
            store=store,
            gateway=gateway,
            prompt_builder=PromptBuilder(
                categorize_body_chars=settings.CATEGORIZE_BODY_CHARS,
                chat_context_messages=settings.CHAT_CONTEXT_MESSAGES,
            ),
            model=settings.OLLAMA_MODEL,
            chat_context_window=settings.CHAT_CONTEXT_WINDOW,
        )

    async def _resolve(self, message: Union[Message, int]) -> Message:
        if isinstance(message, Message):
            return message
        found = await asyncio.to_thread(self.store.get, message)
        if found is None:
            raise MessageNotFound(message)
        return found

    def quick_reply(self, text: Optional[str]) -> Optional[str]:
        """
        Synchronous greeting fast path.

        Returns the local greeting for pure greeting inputs, None when the
        input needs the model.
        """
        return greeting_reply(text, self.clock())

    async def summarize(
        self, message: Union[Message, int], token: Optional["SessionToken"] = None
    ) -> InferenceResult:
        """Summarize one message."""
        target = await self._resolve(message)
        prompt = self.prompt_builder.build_summary_prompt(target)
        logger.info("Summarizing message", message_id=target.id)
        return await self.gateway.infer(self.model, prompt, token=token)

    async def draft_reply(
        self, message: Union[Message, int], token: Optional["SessionToken"] = None
    ) -> InferenceResult:
        """
        Draft a reply body for one message.

        The prompt asks for the reply text only; any framing the model adds
        anyway is returned verbatim.
        """
        target = await self._resolve(message)
        prompt = self.prompt_builder.build_reply_prompt(target)
        logger.info("Drafting reply", message_id=target.id)
        return await self.gateway.infer(self.model, prompt, token=token)

    async def chat(
        self, question: Optional[str], token: Optional["SessionToken"] = None
    ) -> InferenceResult:
        """
        Answer a question about the inbox.

        Pure greetings are answered locally. Otherwise up to
        ``chat_context_messages`` stored messages are sent as context with
        the enlarged context window.

        Raises:
            ValidationError: empty or whitespace-only question
        """
        if question is None or not question.strip():
            raise ValidationError("Chat message must not be empty", field="question")

        greeting = self.quick_reply(question)
        if greeting is not None:
            return InferenceResult(text=greeting, model=LOCAL_MODEL)

        limit = self.prompt_builder.chat_context_messages
        messages = await asyncio.to_thread(self.store.all, limit)
        prompt, included = self.prompt_builder.build_chat_prompt(question, messages)

        logger.info(
            "Chat request",
            question_length=len(question),
            context_messages=included,
            num_ctx=self.chat_context_window,
        )
        return await self.gateway.infer(
            self.model, prompt, context_window=self.chat_context_window, token=token
        )
