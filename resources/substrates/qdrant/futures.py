"""Bridge from vendor futures to single consumer calls on a producer executor."""

from __future__ import annotations

from concurrent.futures import CancelledError, Executor, Future
from typing import Callable, TypeVar

from packages.relay_shared.logging import capture_context, get_logger, run_with_context

from .errors import ProducerShutdownError

T = TypeVar("T")

Consumer = Callable[[T | None, BaseException | None], None]

_LOGGER = get_logger(__name__)


def call(future: Future[T], consumer: Consumer[T], executor: Executor) -> None:
    """Invoke ``consumer(result, error)`` exactly once on ``executor``.

    Exactly one of the two arguments is not None. When the executor no longer
    accepts work, or drops the queued delivery during shutdown, the consumer
    runs on the current thread with a ``ProducerShutdownError``. The caller's
    logging context is restored around the consumer.
    """
    snapshot = capture_context()

    def _deliver(result: T | None, error: BaseException | None) -> None:
        try:
            run_with_context(snapshot, consumer, result, error)
        except Exception:  # noqa: BLE001
            _LOGGER.exception("Completion consumer raised")

    def _deliver_shutdown() -> None:
        _deliver(None, ProducerShutdownError("producer executor is shut down"))

    def _on_task_done(task: Future[None]) -> None:
        if task.cancelled():
            _deliver_shutdown()

    def _on_done(done: Future[T]) -> None:
        result, error = _outcome(done)
        try:
            task = executor.submit(_deliver, result, error)
        except RuntimeError:
            _deliver_shutdown()
            return
        task.add_done_callback(_on_task_done)

    future.add_done_callback(_on_done)


def _outcome(done: Future[T]) -> tuple[T | None, BaseException | None]:
    """Split a completed future into its ``(result, error)`` pair."""
    if done.cancelled():
        return None, CancelledError("qdrant request was cancelled")
    error = done.exception()
    if error is not None:
        return None, error
    return done.result(), None
