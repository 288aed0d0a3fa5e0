"""
Prompt builder for inference requests.

Responsible for:
- Loading and rendering the Jinja2 instruction templates
- Sanitizing every externally sourced field before interpolation
- Bounding context (categorization body prefix, chat context window)
"""

from typing import Iterable, Optional

import structlog
from jinja2 import Environment, PackageLoader

from neural_mail.llm.sanitizer import sanitize, sanitize_fields
from neural_mail.models.enums import Category
from neural_mail.models.mail_models import Message


logger = structlog.get_logger(__name__)


class PromptBuilder:
    """
    Build task prompts from mail messages and user input.

    Templates ship inside the package (``neural_mail/llm/templates``).
    Sanitization happens here rather than in templates so that no caller
    can render a template with raw mail text.
    """

    def __init__(
        self,
        categorize_body_chars: int = 200,
        chat_context_messages: int = 100,
    ):
        """
        Initialize prompt builder.

        Args:
            categorize_body_chars: Body prefix length sent for categorization
            chat_context_messages: Max stored messages included as chat context
        """
        self.categorize_body_chars = categorize_body_chars
        self.chat_context_messages = chat_context_messages

        self.jinja_env = Environment(
            loader=PackageLoader("neural_mail", "llm/templates"),
            trim_blocks=True,
            lstrip_blocks=True,
            autoescape=False  # We're generating prompts, not HTML
        )

        try:
            self.categorize_template = self.jinja_env.get_template("categorize.txt")
            self.summarize_template = self.jinja_env.get_template("summarize.txt")
            self.reply_template = self.jinja_env.get_template("reply.txt")
            self.chat_template = self.jinja_env.get_template("chat.txt")
        except Exception as e:
            logger.error("Failed to load prompt templates", error=str(e))
            raise

        logger.debug(
            "PromptBuilder initialized",
            categorize_body_chars=categorize_body_chars,
            chat_context_messages=chat_context_messages,
        )

    def build_categorization_prompt(self, subject: Optional[str], body: Optional[str]) -> str:
        """
        Build the constrained single-label classification prompt.

        Only the first ``categorize_body_chars`` characters of the body are
        used; shorter (or empty) bodies are sent whole.
        """
        excerpt = (body or "")[: self.categorize_body_chars]
        return self.categorize_template.render(
            labels=Category.labels(),
            **sanitize_fields(subject=subject, body=excerpt),
        ).strip()

    def build_summary_prompt(self, message: Message) -> str:
        return self.summarize_template.render(
            **sanitize_fields(sender=message.sender, subject=message.subject, body=message.body)
        ).strip()

    def build_reply_prompt(self, message: Message) -> str:
        return self.reply_template.render(
            **sanitize_fields(sender=message.sender, subject=message.subject, body=message.body)
        ).strip()

    def build_chat_prompt(self, question: str, messages: Iterable[Message]) -> tuple[str, int]:
        """
        Build the inbox-wide chat prompt.

        Args:
            question: User question (untrusted)
            messages: Stored messages, in scan order

        Returns:
            Tuple of (prompt, number of messages included as context)
        """
        context = []
        for message in messages:
            if len(context) >= self.chat_context_messages:
                break
            context.append(
                sanitize_fields(sender=message.sender, subject=message.subject, body=message.body)
            )

        prompt = self.chat_template.render(
            messages=context,
            question=sanitize(question),
        ).strip()
        return prompt, len(context)
