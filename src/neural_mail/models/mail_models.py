"""
Mail domain models.

Message and Account rows are owned by the MailStore; every other component
works on copies of these models for the duration of one operation.
"""

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from neural_mail.models.enums import Category


class Message(BaseModel):
    """A stored mail message."""

    model_config = ConfigDict(frozen=True)

    id: int = Field(..., description="Stable identifier assigned at ingest")
    subject: str = Field(default="", description="Subject line")
    sender: str = Field(default="", description="Sender address or display name")
    date_label: str = Field(default="", description="Human-readable date label (e.g. 'Today')")
    body: str = Field(default="", description="Plain text body")
    has_attachment: bool = Field(default=False)
    category: Category = Field(default=Category.INBOX)

    @field_validator("category", mode="before")
    @classmethod
    def _closed_category(cls, value):
        return Category.coerce(value)


class Account(BaseModel):
    """
    Mail account metadata.

    Passwords are never part of this model; they live in the OS credential
    store keyed by ``email``.
    """

    email: str = Field(..., min_length=3, description="Account identifier")
    imap_host: str = Field(..., description="IMAP server host")
    imap_port: int = Field(default=993, ge=1, le=65535)
    smtp_host: Optional[str] = Field(default=None, description="SMTP server host")
    smtp_port: int = Field(default=587, ge=1, le=65535)
    is_demo: bool = Field(default=False)


class OutboundMessage(BaseModel):
    """Composed message handed to an outbound transport."""

    to: list[str] = Field(..., min_length=1)
    subject: str = Field(default="")
    body: str = Field(default="")
    attachments: list[str] = Field(default_factory=list, description="Attachment file names")
