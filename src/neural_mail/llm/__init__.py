"""
Inference layer.

Components:
- OllamaGateway: resilient client for the local generate endpoint
- PromptBuilder: renders task prompts from Jinja2 templates
- sanitizer: neutralizes prompt-structural tokens in untrusted text
- exceptions: inference-specific exceptions
"""

from neural_mail.llm.exceptions import (
    InferenceAttemptError,
    InferenceError,
    InferenceUnavailable,
)
from neural_mail.llm.gateway import FALLBACK_TEXT, OllamaGateway
from neural_mail.llm.prompt_builder import PromptBuilder
from neural_mail.llm.sanitizer import sanitize, sanitize_fields

__all__ = [
    "OllamaGateway",
    "FALLBACK_TEXT",
    "PromptBuilder",
    "sanitize",
    "sanitize_fields",
    "InferenceError",
    "InferenceAttemptError",
    "InferenceUnavailable",
]
