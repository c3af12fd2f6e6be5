"""Unit tests for single-shot completion delivery onto a producer executor."""

from __future__ import annotations

import threading
from concurrent.futures import CancelledError, Future, ThreadPoolExecutor

from packages.relay_shared.logging import get_context, log_context
from resources.substrates.qdrant import futures
from resources.substrates.qdrant.errors import ProducerShutdownError


class _Recorder:
    """Consumer capturing every call with the thread and log context seen."""

    def __init__(self, *, raises: Exception | None = None) -> None:
        self.calls: list[tuple[object, BaseException | None]] = []
        self.threads: list[str] = []
        self.contexts: list[dict[str, object]] = []
        self.done = threading.Event()
        self._raises = raises

    def __call__(self, result: object, error: BaseException | None) -> None:
        self.calls.append((result, error))
        self.threads.append(threading.current_thread().name)
        self.contexts.append(get_context())
        self.done.set()
        if self._raises is not None:
            raise self._raises

    def wait(self) -> None:
        assert self.done.wait(5.0), "consumer was not called"


def _executor() -> ThreadPoolExecutor:
    return ThreadPoolExecutor(max_workers=1, thread_name_prefix="completions")


def test_result_is_delivered_on_executor_thread() -> None:
    """A successful future yields ``(result, None)`` on the executor."""
    executor = _executor()
    future: Future[int] = Future()
    consumer = _Recorder()
    try:
        futures.call(future, consumer, executor)
        assert consumer.calls == []

        future.set_result(42)
        consumer.wait()
    finally:
        executor.shutdown(wait=True)

    assert consumer.calls == [(42, None)]
    assert consumer.threads[0].startswith("completions")


def test_failure_is_delivered_as_error() -> None:
    """A failed future yields ``(None, error)`` with the raised exception."""
    executor = _executor()
    future: Future[int] = Future()
    consumer = _Recorder()
    cause = ConnectionError("connection refused")
    try:
        futures.call(future, consumer, executor)
        future.set_exception(cause)
        consumer.wait()
    finally:
        executor.shutdown(wait=True)

    assert consumer.calls == [(None, cause)]


def test_cancelled_future_is_delivered_as_cancellation() -> None:
    """Cancelling the vendor future is reported, not dropped."""
    executor = _executor()
    future: Future[int] = Future()
    consumer = _Recorder()
    try:
        futures.call(future, consumer, executor)
        assert future.cancel()
        consumer.wait()
    finally:
        executor.shutdown(wait=True)

    result, error = consumer.calls[0]
    assert result is None
    assert isinstance(error, CancelledError)
    assert not isinstance(error, ProducerShutdownError)


def test_shut_down_executor_delivers_shutdown_error_inline() -> None:
    """Completions after executor shutdown run on the completing thread."""
    executor = _executor()
    executor.shutdown(wait=True)
    future: Future[int] = Future()
    consumer = _Recorder()

    futures.call(future, consumer, executor)
    future.set_result(1)

    assert len(consumer.calls) == 1
    result, error = consumer.calls[0]
    assert result is None
    assert isinstance(error, ProducerShutdownError)
    assert consumer.threads == [threading.current_thread().name]


def test_queued_delivery_dropped_by_shutdown_still_reaches_consumer() -> None:
    """A delivery cancelled out of the executor queue falls back inline."""
    executor = _executor()
    release = threading.Event()
    blocker_running = threading.Event()

    def _block() -> None:
        blocker_running.set()
        release.wait(5.0)

    executor.submit(_block)
    assert blocker_running.wait(5.0)

    future: Future[int] = Future()
    consumer = _Recorder()
    futures.call(future, consumer, executor)
    future.set_result(1)
    assert consumer.calls == []

    executor.shutdown(wait=False, cancel_futures=True)
    release.set()
    consumer.wait()
    executor.shutdown(wait=True)

    assert len(consumer.calls) == 1
    assert isinstance(consumer.calls[0][1], ProducerShutdownError)


def test_consumer_failure_is_logged_not_redelivered() -> None:
    """A raising consumer is called once and does not break the executor."""
    executor = _executor()
    future: Future[int] = Future()
    consumer = _Recorder(raises=RuntimeError("boom"))
    try:
        futures.call(future, consumer, executor)
        future.set_result(5)
        consumer.wait()
        # The executor keeps serving later completions.
        follow_up = executor.submit(lambda: "ok")
        assert follow_up.result(timeout=5.0) == "ok"
    finally:
        executor.shutdown(wait=True)

    assert consumer.calls == [(5, None)]


def test_caller_log_context_is_restored_for_consumer() -> None:
    """Context bound when the call was registered is visible to the consumer."""
    executor = _executor()
    future: Future[int] = Future()
    consumer = _Recorder()
    try:
        with log_context({"exchange_id": "01J0000000000000000000000"}):
            futures.call(future, consumer, executor)
        future.set_result(1)
        consumer.wait()
    finally:
        executor.shutdown(wait=True)

    assert consumer.contexts[0]["exchange_id"] == "01J0000000000000000000000"
