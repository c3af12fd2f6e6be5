"""Blocking request helper over asynchronous producers."""

from __future__ import annotations

from threading import Event
from typing import Any, Mapping

from .exchange import Exchange
from .producer import AsyncProducer

DEFAULT_REQUEST_TIMEOUT_SECONDS = 30.0


class ProducerTemplate:
    """Send exchanges through a producer and wait for their continuation.

    The timeout is a host-level bound on waiting; it does not cancel the
    in-flight vendor call.
    """

    def __init__(
        self,
        producer: AsyncProducer,
        *,
        timeout_seconds: float = DEFAULT_REQUEST_TIMEOUT_SECONDS,
    ) -> None:
        self._producer = producer
        self._timeout_seconds = timeout_seconds

    def request(
        self,
        body: Any = None,
        *,
        headers: Mapping[str, Any] | None = None,
        exchange: Exchange | None = None,
        timeout_seconds: float | None = None,
    ) -> Exchange:
        """Process one exchange and return it once the producer is done."""
        target = exchange if exchange is not None else Exchange.of(body, headers)
        done = Event()

        def _callback(done_sync: bool) -> None:
            target.properties["done_sync"] = done_sync
            done.set()

        self._producer.process(target, _callback)

        timeout = self._timeout_seconds if timeout_seconds is None else timeout_seconds
        if not done.wait(timeout):
            raise TimeoutError(
                f"exchange {target.exchange_id} not completed within {timeout:.3f}s"
            )
        return target
