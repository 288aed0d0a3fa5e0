"""
Result bridge between background work and the presentation context.

Contract per submitted operation:
1. ``on_loading`` runs synchronously inside ``submit``, before any suspension
2. the work runs on the background runtime
3. exactly one Outcome is posted to the dispatcher, success or failure
4. the delivery is applied only if the session is still live when the
   presentation context runs it; otherwise it is dropped silently
"""

from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Generic, Optional, TypeVar, Union

import structlog

from neural_mail.assistant.exceptions import ValidationError
from neural_mail.llm.exceptions import InferenceError, InferenceUnavailable
from neural_mail.models.enums import Operation
from neural_mail.monitoring.metrics import bridge_deliveries_total
from neural_mail.persistence.exceptions import MessageNotFound, StorageError
from neural_mail.runtime.background import BackgroundRuntime, RuntimeStopped
from neural_mail.runtime.dispatchers import Dispatcher
from neural_mail.runtime.session import RequestCancelled, SessionToken

logger = structlog.get_logger(__name__)

T = TypeVar("T")


@dataclass(frozen=True)
class Outcome(Generic[T]):
    """Terminal result of one bridged operation."""

    operation: Operation
    ok: bool
    value: Optional[T] = None
    error: Optional[str] = None

    @classmethod
    def success(cls, operation: Operation, value: T) -> "Outcome[T]":
        return cls(operation=operation, ok=True, value=value)

    @classmethod
    def failure(cls, operation: Operation, error: str) -> "Outcome[T]":
        return cls(operation=operation, ok=False, error=error)


def describe_failure(exc: BaseException) -> str:
    """Human-readable message for a failed operation."""
    if isinstance(exc, InferenceUnavailable):
        return f"Ollama Error: {exc.last_error}. Ensure Ollama is running."
    if isinstance(exc, InferenceError):
        return f"Ollama Error: {exc.message}"
    if isinstance(exc, StorageError):
        return exc.message
    if isinstance(exc, MessageNotFound):
        return f"Email {exc.message_id} no longer exists."
    if isinstance(exc, ValidationError):
        return exc.message
    if isinstance(exc, RuntimeStopped):
        return "Background worker is shut down."
    return f"Unexpected error: {exc}"


class ResultBridge:
    """
    Submits work to the background runtime and delivers its outcome.

    Usage:
        bridge.submit(
            Operation.SUMMARIZE,
            lambda token: assistant.summarize(message_id, token),
            on_done=show_summary,
            session=session,
            on_loading=lambda: set_loading(True),
        )
    """

    def __init__(self, runtime: BackgroundRuntime, dispatcher: Dispatcher):
        self.runtime = runtime
        self.dispatcher = dispatcher

    def submit(
        self,
        operation: Union[Operation, str],
        work: Callable[[SessionToken], Awaitable[T]],
        on_done: Callable[[Outcome[T]], Any],
        session: SessionToken,
        on_loading: Optional[Callable[[], Any]] = None,
    ) -> None:
        """
        Run ``work(session)`` in the background and deliver one Outcome.

        Args:
            operation: Operation kind (logging and metrics)
            work: Coroutine factory; receives the session as its cancellation token
            on_done: Applied on the presentation context with the Outcome
            session: Liveness token of the requesting session
            on_loading: Called synchronously before anything is scheduled
        """
        operation = Operation(operation)

        if on_loading is not None:
            on_loading()

        if not session.is_live:
            self._drop(operation, session)
            return

        async def run() -> Outcome[T]:
            try:
                value = await work(session)
            except RequestCancelled:
                return Outcome.failure(operation, "Cancelled")
            except (InferenceError, StorageError, MessageNotFound, ValidationError) as e:
                logger.warning(
                    "Bridged operation failed",
                    operation=operation.value,
                    session_id=session.id,
                    error_type=type(e).__name__,
                    error=str(e),
                )
                return Outcome.failure(operation, describe_failure(e))
            except Exception as e:
                logger.exception(
                    "Bridged operation crashed", operation=operation.value, session_id=session.id
                )
                return Outcome.failure(operation, describe_failure(e))
            return Outcome.success(operation, value)

        try:
            future = self.runtime.submit(run())
        except RuntimeStopped as e:
            self._post(Outcome.failure(operation, describe_failure(e)), on_done, session)
            return

        def settle(done) -> None:
            if done.cancelled():
                outcome = Outcome.failure(operation, "Cancelled")
            else:
                outcome = done.result()
            self._post(outcome, on_done, session)

        future.add_done_callback(settle)

    def _post(
        self, outcome: Outcome[T], on_done: Callable[[Outcome[T]], Any], session: SessionToken
    ) -> None:
        def deliver() -> None:
            if not session.is_live:
                self._drop(outcome.operation, session)
                return
            bridge_deliveries_total.labels(
                operation=outcome.operation.value,
                outcome="success" if outcome.ok else "failure",
            ).inc()
            on_done(outcome)

        self.dispatcher.call_soon(deliver)

    @staticmethod
    def _drop(operation: Operation, session: SessionToken) -> None:
        bridge_deliveries_total.labels(operation=operation.value, outcome="dropped").inc()
        logger.debug("Dropped delivery for dead session", operation=operation.value, session_id=session.id)
