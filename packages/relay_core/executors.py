"""Host-side executor accounting.

Components never create threads directly: they ask the context's
``ExecutorServiceManager`` for an executor and hand it back on shutdown, so the
host can account for every live thread and reclaim stragglers when the context
stops.
"""

from __future__ import annotations

import re
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from threading import Lock

from packages.relay_shared.logging import get_logger

_LOGGER = get_logger(__name__)
_THREAD_NAME_UNSAFE = re.compile(r"[^A-Za-z0-9_.:-]+")


@dataclass(frozen=True)
class _ManagedExecutor:
    """Bookkeeping entry for one executor handed out by the manager."""

    owner: str
    name: str
    executor: ThreadPoolExecutor


class ExecutorServiceManager:
    """Create, track and shut down executors on behalf of their owners."""

    def __init__(self, *, context_name: str = "relay") -> None:
        self._context_name = context_name
        self._executors: dict[int, _ManagedExecutor] = {}
        self._lock = Lock()

    def new_single_thread_executor(self, owner: object, name: str) -> ThreadPoolExecutor:
        """Return a fresh executor backed by exactly one worker thread."""
        thread_prefix = _THREAD_NAME_UNSAFE.sub(
            "_", f"{self._context_name}-{name}"
        )
        executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix=thread_prefix)
        entry = _ManagedExecutor(
            owner=_describe(owner),
            name=name,
            executor=executor,
        )
        with self._lock:
            self._executors[id(executor)] = entry
        _LOGGER.debug("Created single-thread executor %s for %s", name, entry.owner)
        return executor

    def shutdown_now(self, executor: ThreadPoolExecutor) -> None:
        """Shut ``executor`` down without waiting, cancelling queued tasks."""
        with self._lock:
            entry = self._executors.pop(id(executor), None)
        executor.shutdown(wait=False, cancel_futures=True)
        if entry is not None:
            _LOGGER.debug("Shut down executor %s owned by %s", entry.name, entry.owner)

    def shutdown_all(self) -> None:
        """Shut down every executor still tracked by this manager."""
        with self._lock:
            entries = list(self._executors.values())
            self._executors.clear()
        for entry in entries:
            _LOGGER.warning(
                "Reclaiming executor %s still owned by %s", entry.name, entry.owner
            )
            entry.executor.shutdown(wait=False, cancel_futures=True)

    def active_executor_names(self) -> list[str]:
        """Return names of executors that have not been shut down."""
        with self._lock:
            return sorted(entry.name for entry in self._executors.values())


def _describe(owner: object) -> str:
    describe = getattr(owner, "describe", None)
    if callable(describe):
        return str(describe())
    return type(owner).__name__
