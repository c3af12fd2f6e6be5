"""Context propagation helpers for structured logging.

The logging context lives in a ``contextvars.ContextVar`` so exchange
correlation fields can be attached to every log line without repetition.
Producers hand work to executor threads, which do not inherit context vars, so
``capture_context`` snapshots the caller's fields and ``run_with_context``
re-binds them around a callable on the worker thread.
"""

from __future__ import annotations

from contextlib import contextmanager
from contextvars import ContextVar
from typing import Any, Callable, Iterator, Mapping, TypeVar

_LOG_CONTEXT: ContextVar[dict[str, str]] = ContextVar("relay_log_context", default={})

T = TypeVar("T")


def get_context() -> dict[str, str]:
    """Return a shallow copy of current logging context."""
    return dict(_LOG_CONTEXT.get())


def bind_context(**values: object) -> None:
    """Bind non-empty values into the current logging context.

    Values are stringified to maintain a stable structured log shape.
    ``None`` values are ignored.
    """
    if not values:
        return
    current = _LOG_CONTEXT.get().copy()
    for key, value in values.items():
        if value is None:
            continue
        current[str(key)] = str(value)
    _LOG_CONTEXT.set(current)


def clear_context(*keys: str) -> None:
    """Clear selected keys or the entire logging context."""
    if not keys:
        _LOG_CONTEXT.set({})
        return
    current = _LOG_CONTEXT.get().copy()
    for key in keys:
        current.pop(key, None)
    _LOG_CONTEXT.set(current)


@contextmanager
def log_context(values: Mapping[str, object]) -> Iterator[None]:
    """Temporarily bind logging context for the duration of a block."""
    token = _LOG_CONTEXT.set(_LOG_CONTEXT.get().copy())
    try:
        bind_context(**dict(values))
        yield
    finally:
        _LOG_CONTEXT.reset(token)


def capture_context() -> dict[str, str]:
    """Snapshot the current logging context for hand-off to another thread."""
    return get_context()


def run_with_context(
    snapshot: Mapping[str, str], func: Callable[..., T], *args: Any
) -> T:
    """Run ``func`` with ``snapshot`` bound as the logging context."""
    with log_context(snapshot):
        return func(*args)
