"""Qdrant client construction and the future-returning client bridge.

``AsyncQdrantClient`` speaks coroutines bound to one event loop. Producers need
plain ``concurrent.futures.Future`` handles they can attach callbacks to from
any thread, so the bridge owns a private event loop on a background thread and
schedules every client call onto it.
"""

from __future__ import annotations

import asyncio
import math
from concurrent.futures import Future
from threading import Lock, Thread
from typing import Any, Awaitable, Callable, Sequence, TypeVar

from qdrant_client import AsyncQdrantClient
from qdrant_client.http import models

from packages.relay_shared.logging import get_logger

from .config import QdrantEndpointConfig

T = TypeVar("T")

ClientFactory = Callable[[QdrantEndpointConfig], Any]

_LOGGER = get_logger(__name__)
_CLOSE_TIMEOUT_SECONDS = 5.0


def create_qdrant_client(config: QdrantEndpointConfig) -> AsyncQdrantClient:
    """Construct a configured async Qdrant client instance."""
    return AsyncQdrantClient(
        url=config.url,
        grpc_port=config.grpc_port,
        prefer_grpc=config.prefer_grpc,
        api_key=config.api_key,
        timeout=max(1, math.ceil(config.timeout_seconds)),
    )


class QdrantClientClosedError(RuntimeError):
    """Raised when a call is submitted to a bridge that is not open."""


class QdrantClientBridge:
    """Thread-safe, future-returning facade over one ``AsyncQdrantClient``."""

    def __init__(
        self,
        config: QdrantEndpointConfig,
        *,
        client_factory: ClientFactory = create_qdrant_client,
    ) -> None:
        self._config = config
        self._client_factory = client_factory
        self._client: Any = None
        self._loop: asyncio.AbstractEventLoop | None = None
        self._thread: Thread | None = None
        self._lock = Lock()

    @property
    def is_open(self) -> bool:
        return self._client is not None

    def open(self) -> None:
        """Start the loop thread and build the client on it."""
        with self._lock:
            if self._client is not None:
                return
            loop = asyncio.new_event_loop()
            thread = Thread(
                target=loop.run_forever,
                name=f"qdrant-io:{self._config.endpoint_id}",
                daemon=True,
            )
            thread.start()
            self._loop = loop
            self._thread = thread
            try:
                self._client = asyncio.run_coroutine_threadsafe(
                    self._build_client(), loop
                ).result()
            except Exception:
                self._stop_loop()
                raise
        _LOGGER.info(
            "Opened qdrant client for %s at %s",
            self._config.endpoint_id,
            self._config.url,
        )

    def close(self) -> None:
        """Close the client and stop the loop thread."""
        with self._lock:
            client, loop = self._client, self._loop
            self._client = None
            if client is None or loop is None:
                return
            try:
                asyncio.run_coroutine_threadsafe(_cancel_pending(), loop).result(
                    timeout=_CLOSE_TIMEOUT_SECONDS
                )
                asyncio.run_coroutine_threadsafe(client.close(), loop).result(
                    timeout=_CLOSE_TIMEOUT_SECONDS
                )
            except Exception:  # noqa: BLE001
                _LOGGER.warning(
                    "Qdrant client for %s did not close cleanly",
                    self._config.endpoint_id,
                    exc_info=True,
                )
            finally:
                self._stop_loop()
        _LOGGER.info("Closed qdrant client for %s", self._config.endpoint_id)

    def upsert_async(
        self,
        *,
        collection_name: str,
        points: Sequence[models.PointStruct],
        wait: bool = True,
    ) -> Future[models.UpdateResult]:
        """Schedule an upsert and return its future."""
        return self._submit(
            lambda client: client.upsert(
                collection_name=collection_name,
                points=list(points),
                wait=wait,
            )
        )

    def retrieve_async(
        self,
        *,
        collection_name: str,
        ids: Sequence[models.ExtendedPointId],
        with_payload: bool = True,
        with_vectors: bool = False,
        consistency: models.ReadConsistency | None = None,
    ) -> Future[list[models.Record]]:
        """Schedule a retrieve-by-ids and return its future."""
        return self._submit(
            lambda client: client.retrieve(
                collection_name=collection_name,
                ids=list(ids),
                with_payload=with_payload,
                with_vectors=with_vectors,
                consistency=consistency,
            )
        )

    def delete_async(
        self,
        *,
        collection_name: str,
        points_selector: models.PointsSelector,
        wait: bool = True,
    ) -> Future[models.UpdateResult]:
        """Schedule a points delete and return its future."""
        return self._submit(
            lambda client: client.delete(
                collection_name=collection_name,
                points_selector=points_selector,
                wait=wait,
            )
        )

    def _submit(self, call: Callable[[Any], Awaitable[T]]) -> Future[T]:
        client, loop = self._client, self._loop
        if client is None or loop is None:
            raise QdrantClientClosedError(
                f"qdrant client for {self._config.endpoint_id} is not open"
            )

        async def _run() -> T:
            return await call(client)

        return asyncio.run_coroutine_threadsafe(_run(), loop)

    async def _build_client(self) -> Any:
        return self._client_factory(self._config)

    def _stop_loop(self) -> None:
        loop, thread = self._loop, self._thread
        self._loop = None
        self._thread = None
        if loop is None:
            return
        loop.call_soon_threadsafe(loop.stop)
        if thread is not None:
            thread.join(timeout=_CLOSE_TIMEOUT_SECONDS)
        if not loop.is_running():
            loop.close()


async def _cancel_pending() -> None:
    """Cancel in-flight client calls so their futures complete as cancelled."""
    current = asyncio.current_task()
    pending = [task for task in asyncio.all_tasks() if task is not current]
    for task in pending:
        task.cancel()
    if pending:
        await asyncio.gather(*pending, return_exceptions=True)
