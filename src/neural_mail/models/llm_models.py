"""
Wire and result models for the inference endpoint.

InferenceRequest/GenerateEnvelope mirror the Ollama /api/generate payloads;
InferenceResult is what the gateway hands back to orchestrators.
"""

from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


class InferenceOptions(BaseModel):
    """Model runtime options (only the context window is used)."""

    num_ctx: int = Field(..., ge=1, description="Context window size in tokens")


class InferenceRequest(BaseModel):
    """
    Request body for POST /api/generate.

    ``options`` is omitted from the payload entirely when no context window
    override is requested.
    """

    model_config = ConfigDict(frozen=True)

    model: str = Field(..., description="Model name (e.g. 'llama3.1:latest')")
    prompt: str = Field(..., description="Fully rendered prompt")
    stream: bool = Field(default=False, description="Always False: one JSON envelope per call")
    options: Optional[InferenceOptions] = Field(default=None)

    def to_payload(self) -> dict[str, Any]:
        return self.model_dump(exclude_none=True)


class GenerateEnvelope(BaseModel):
    """
    Response envelope from POST /api/generate.

    Only ``response`` is consumed. Anything that is not a string is treated
    as absent so the caller can substitute the fallback text.
    """

    model_config = ConfigDict(extra="ignore")

    response: Optional[str] = None
    model: Optional[str] = None

    @field_validator("response", "model", mode="before")
    @classmethod
    def _strings_only(cls, value):
        return value if isinstance(value, str) else None


class InferenceResult(BaseModel):
    """
    Outcome of a successful gateway call.

    ``degraded`` is True when the endpoint answered but carried no usable
    text; ``text`` then holds the fallback placeholder.
    """

    model_config = ConfigDict(frozen=True)

    text: str
    model: str
    degraded: bool = False
    attempts: int = Field(default=1, ge=1)
    latency_ms: int = Field(default=0, ge=0)
