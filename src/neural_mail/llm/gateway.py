"""
Inference gateway for the local Ollama endpoint.

Communicates with the Ollama generate API using httpx. Supports:
- Typed request/response envelopes (pydantic)
- Per-attempt timeout and bounded retry with linear backoff
- Soft fallback when the endpoint answers without usable text
- Cooperative cancellation through a session token
"""

import asyncio
import time
from typing import TYPE_CHECKING, Awaitable, Callable, Optional

import httpx
import structlog
from pydantic import ValidationError as PydanticValidationError

from neural_mail.config import Settings, resolve_inference_endpoint
from neural_mail.llm.exceptions import InferenceAttemptError, InferenceUnavailable
from neural_mail.models.llm_models import (
    GenerateEnvelope,
    InferenceOptions,
    InferenceRequest,
    InferenceResult,
)
from neural_mail.monitoring.metrics import (
    inference_attempts_total,
    inference_latency_seconds,
    inference_requests_total,
)
from neural_mail.runtime.session import RequestCancelled

if TYPE_CHECKING:
    from neural_mail.runtime.session import SessionToken


logger = structlog.get_logger(__name__)

FALLBACK_TEXT = "No response"


class OllamaGateway:
    """
    Ollama-specific inference gateway.

    API Endpoints:
    - POST {endpoint}: generate a completion (default /api/generate)
    - GET /api/tags: list installed models (health check)

    Retry policy:
    - ``max_attempts`` attempts in total, each bounded by ``timeout``
    - after failed attempt ``n`` wait ``n * backoff_step`` seconds
    - transport errors, HTTP error statuses and undecodable envelopes
      are all retried; the last description ends up in InferenceUnavailable

    A fresh AsyncClient is opened per call, so one gateway instance can be
    shared by the background runtime loop and the API server loop.
    """

    def __init__(
        self,
        endpoint: Optional[str] = None,
        default_model: str = "llama3.1:latest",
        timeout: float = 60.0,
        max_attempts: int = 3,
        backoff_step: float = 0.5,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ):
        """
        Initialize gateway.

        Args:
            endpoint: Fixed generate URL; None resolves it from configuration per call
            default_model: Model used when a caller passes no model
            timeout: Per-attempt timeout in seconds
            max_attempts: Total attempts before giving up
            backoff_step: Linear backoff unit in seconds
            transport: Optional httpx transport (tests use httpx.MockTransport)
            sleep: Awaitable sleep used for backoff
        """
        if max_attempts < 1:
            raise ValueError("max_attempts must be >= 1")
        self.endpoint = endpoint
        self.default_model = default_model
        self.timeout = timeout
        self.max_attempts = max_attempts
        self.backoff_step = backoff_step
        self._transport = transport
        self._sleep = sleep

        logger.info(
            "Inference gateway initialized",
            endpoint=endpoint or "<from settings>",
            default_model=default_model,
            timeout=timeout,
            max_attempts=max_attempts,
        )

    @classmethod
    def from_settings(cls, settings: Settings, **kwargs) -> "OllamaGateway":
        """Build a gateway from application settings (endpoint resolved per call)."""
        return cls(
            default_model=settings.OLLAMA_MODEL,
            timeout=settings.OLLAMA_TIMEOUT,
            max_attempts=settings.INFERENCE_MAX_ATTEMPTS,
            backoff_step=settings.INFERENCE_BACKOFF_STEP,
            **kwargs,
        )

    def resolve_endpoint(self) -> str:
        return self.endpoint or resolve_inference_endpoint()

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            timeout=httpx.Timeout(self.timeout),
            transport=self._transport,
            follow_redirects=True,
        )

    async def infer(
        self,
        model: Optional[str],
        prompt: str,
        context_window: Optional[int] = None,
        token: Optional["SessionToken"] = None,
    ) -> InferenceResult:
        """
        Run one prompt through the endpoint.

        POST {endpoint} with payload:
        {
            "model": "llama3.1:latest",
            "prompt": "...",
            "stream": false,
            "options": {"num_ctx": 32768}     # only when context_window is set
        }

        Returns:
            InferenceResult; ``degraded`` is True when the envelope had no
            usable ``response`` text and the fallback text was substituted

        Raises:
            InferenceUnavailable: every attempt failed
            RequestCancelled: ``token`` was invalidated before an attempt
        """
        endpoint = self.resolve_endpoint()
        request = InferenceRequest(
            model=model or self.default_model,
            prompt=prompt,
            options=InferenceOptions(num_ctx=context_window) if context_window else None,
        )
        payload = request.to_payload()
        start_time = time.perf_counter()

        logger.info(
            "Sending inference request",
            endpoint=endpoint,
            model=request.model,
            prompt_length=len(prompt),
            num_ctx=context_window,
        )

        last_error = "no attempt made"
        try:
            async with self._client() as client:
                for attempt in range(1, self.max_attempts + 1):
                    if token is not None:
                        token.raise_if_cancelled()

                    try:
                        envelope = await self._attempt(client, endpoint, payload)
                    except InferenceAttemptError as e:
                        last_error = e.message
                        logger.warning(
                            "Inference attempt failed",
                            attempt=attempt,
                            max_attempts=self.max_attempts,
                            error=last_error,
                        )
                        if attempt < self.max_attempts:
                            backoff = attempt * self.backoff_step
                            logger.info("Retrying inference after backoff", backoff_s=backoff)
                            await self._sleep(backoff)
                        continue

                    return self._result(envelope, request.model, attempt, start_time)
        except RequestCancelled:
            inference_requests_total.labels(outcome="cancelled").inc()
            logger.info("Inference cancelled by session teardown", model=request.model)
            raise

        latency_s = time.perf_counter() - start_time
        inference_requests_total.labels(outcome="unavailable").inc()
        inference_latency_seconds.labels(model=request.model, success="false").observe(latency_s)
        logger.error(
            "Inference endpoint unavailable",
            endpoint=endpoint,
            attempts=self.max_attempts,
            last_error=last_error,
        )
        raise InferenceUnavailable(last_error, attempts=self.max_attempts, endpoint=endpoint)

    async def _attempt(
        self, client: httpx.AsyncClient, endpoint: str, payload: dict
    ) -> GenerateEnvelope:
        try:
            response = await client.post(endpoint, json=payload)
            response.raise_for_status()
        except httpx.TimeoutException as e:
            inference_attempts_total.labels(result="transport_error").inc()
            raise InferenceAttemptError(
                f"Request timeout after {self.timeout}s",
                details={"error_type": type(e).__name__},
            ) from e
        except httpx.HTTPStatusError as e:
            inference_attempts_total.labels(result="transport_error").inc()
            raise InferenceAttemptError(
                f"HTTP {e.response.status_code}: {e.response.text[:200]}",
                details={"status": e.response.status_code},
            ) from e
        except (httpx.HTTPError, httpx.InvalidURL) as e:
            inference_attempts_total.labels(result="transport_error").inc()
            raise InferenceAttemptError(
                f"{type(e).__name__}: {e}",
                details={"error_type": type(e).__name__},
            ) from e

        try:
            envelope = GenerateEnvelope.model_validate_json(response.content)
        except PydanticValidationError as e:
            inference_attempts_total.labels(result="decode_error").inc()
            reason = e.errors()[0]["msg"] if e.errors() else str(e)
            raise InferenceAttemptError(
                f"Invalid response envelope: {reason}",
                details={"body": response.text[:200]},
            ) from e

        inference_attempts_total.labels(result="ok").inc()
        return envelope

    def _result(
        self, envelope: GenerateEnvelope, model: str, attempt: int, start_time: float
    ) -> InferenceResult:
        latency_s = time.perf_counter() - start_time
        degraded = envelope.response is None
        if degraded:
            inference_requests_total.labels(outcome="degraded").inc()
            logger.warning("Endpoint returned no response text, using fallback", model=model)
        else:
            inference_requests_total.labels(outcome="success").inc()
        inference_latency_seconds.labels(model=model, success="true").observe(latency_s)

        logger.info(
            "Inference successful",
            model=envelope.model or model,
            attempt=attempt,
            latency_ms=int(latency_s * 1000),
            degraded=degraded,
        )

        return InferenceResult(
            text=FALLBACK_TEXT if degraded else envelope.response,
            model=envelope.model or model,
            degraded=degraded,
            attempts=attempt,
            latency_ms=int(latency_s * 1000),
        )

    def _tags_url(self) -> httpx.URL:
        return httpx.URL(self.resolve_endpoint()).join("/api/tags")

    async def health_check(self) -> bool:
        """
        Check endpoint health via GET /api/tags.

        Returns True if the server responds, False otherwise.
        """
        try:
            async with self._client() as client:
                response = await client.get(self._tags_url(), timeout=5.0)
                response.raise_for_status()
            logger.debug("Inference endpoint health check passed")
            return True
        except (httpx.HTTPError, httpx.InvalidURL) as e:
            logger.warning("Inference endpoint health check failed", error=str(e))
            return False

    async def list_models(self) -> list[str]:
        """
        List installed models via GET /api/tags.

        Raises:
            InferenceUnavailable: the endpoint could not be queried
        """
        try:
            async with self._client() as client:
                response = await client.get(self._tags_url(), timeout=10.0)
                response.raise_for_status()
                data = response.json()
        except (httpx.HTTPError, httpx.InvalidURL, ValueError) as e:
            raise InferenceUnavailable(str(e), attempts=1, endpoint=self.resolve_endpoint()) from e

        entries = data.get("models", []) if isinstance(data, dict) else []
        models = [m["name"] for m in entries if isinstance(m, dict) and "name" in m]
        logger.debug("Listed available models", count=len(models), models=models)
        return models

    def __repr__(self) -> str:
        return (
            f"{self.__class__.__name__}("
            f"endpoint={self.endpoint or '<settings>'}, "
            f"timeout={self.timeout}s, attempts={self.max_attempts})"
        )
