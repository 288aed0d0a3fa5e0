"""View state owned by the presentation context."""

from dataclasses import dataclass, field
from typing import Optional

from neural_mail.models.enums import Category
from neural_mail.models.mail_models import Message
from neural_mail.worker.categorizer import CategorizationReport


@dataclass
class ChatTurn:
    role: str
    text: str
    failed: bool = False


@dataclass
class ViewState:
    """
    Everything a UI renders.

    Mutated only on the presentation thread, either directly by a
    controller call or inside a result-bridge delivery.
    """

    messages: list[Message] = field(default_factory=list)
    selected_id: Optional[int] = None
    query: str = ""
    category_filter: Optional[Category] = None
    summary: Optional[str] = None
    reply_draft: Optional[str] = None
    chat_history: list[ChatTurn] = field(default_factory=list)
    pending: int = 0
    status: str = ""
    error: Optional[str] = None
    sidebar_width: float = 570.0
    theme_mode: str = "system"
    last_report: Optional[CategorizationReport] = None

    @property
    def loading(self) -> bool:
        return self.pending > 0

    @property
    def selected(self) -> Optional[Message]:
        for message in self.messages:
            if message.id == self.selected_id:
                return message
        return None
