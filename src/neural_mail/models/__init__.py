"""
Pydantic data models for Neural Mail.

Includes:
- Enums (Category, Operation)
- Mail models (Message, Account, OutboundMessage)
- Inference models (InferenceRequest, GenerateEnvelope, InferenceResult)
"""

from neural_mail.models.enums import Category, Operation
from neural_mail.models.llm_models import (
    GenerateEnvelope,
    InferenceOptions,
    InferenceRequest,
    InferenceResult,
)
from neural_mail.models.mail_models import Account, Message, OutboundMessage

__all__ = [
    # Enums
    "Category",
    "Operation",
    # Mail models
    "Message",
    "Account",
    "OutboundMessage",
    # Inference models
    "InferenceOptions",
    "InferenceRequest",
    "GenerateEnvelope",
    "InferenceResult",
]
