"""
API-specific request and response models.

Domain models (Message, Account, OutboundMessage) are returned as-is where
they fit; these wrap them with list metadata or carry request bodies.
"""

from datetime import datetime, timezone
from typing import Optional

from pydantic import BaseModel, Field

from neural_mail.models.enums import Category
from neural_mail.models.llm_models import InferenceResult
from neural_mail.models.mail_models import Account, Message


class EmailListResponse(BaseModel):
    emails: list[Message]
    count: int = Field(ge=0)


class CountResponse(BaseModel):
    count: int = Field(ge=0)


class CategoryUpdate(BaseModel):
    category: Category = Field(description="New category label", examples=["Work"])


class CategoryUpdateResponse(BaseModel):
    id: int
    category: Category
    updated: bool = Field(description="False when no message has this id")


class FetchResponse(BaseModel):
    """Response for the mailbox fetch endpoint."""

    count: int = Field(ge=0, description="Messages stored by this fetch")
    categorization: str = Field(
        description="Background categorization state",
        examples=["scheduled"],
    )


class CategorizationResponse(BaseModel):
    examined: int
    candidates: int
    categorized: int
    unchanged: int
    failed: int
    labels: dict[int, Category]


class AssistantResponse(BaseModel):
    """Text produced by the assistant (summary, reply draft or chat answer)."""

    text: str
    model: str
    degraded: bool = Field(
        default=False,
        description="True when the endpoint answered without text and the fallback was used",
    )
    attempts: int = Field(default=1, ge=1)
    latency_ms: int = Field(default=0, ge=0)

    @classmethod
    def from_result(cls, result: InferenceResult) -> "AssistantResponse":
        return cls(**result.model_dump())


class ChatRequest(BaseModel):
    message: str = Field(description="User question about the inbox")


class SettingValue(BaseModel):
    key: str
    value: str


class SettingUpdate(BaseModel):
    value: str


class AccountCreate(Account):
    password: Optional[str] = Field(
        default=None,
        description="Stored in the OS credential store, never in the database",
    )


class SendResponse(BaseModel):
    message_id: str
    delivered: bool = Field(description="False for the log-only development transport")


class ModelListResponse(BaseModel):
    """Models installed on the inference endpoint."""

    default: str = Field(description="Model used when a request names none")
    models: list[str]


class HealthResponse(BaseModel):
    """Response for health check endpoint."""

    status: str = Field(
        description="Overall health status",
        examples=["healthy", "degraded", "unhealthy"],
    )
    version: str
    services: dict[str, str] = Field(
        examples=[{"ollama": "ok", "database": "ok"}],
    )
    timestamp: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
