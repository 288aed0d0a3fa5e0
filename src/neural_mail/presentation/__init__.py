"""Presentation-context controller and view state."""

from neural_mail.presentation.controller import MailController
from neural_mail.presentation.state import ChatTurn, ViewState

__all__ = ["MailController", "ViewState", "ChatTurn"]
