"""Base class for asynchronous producers."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any

from .context import HostContext
from .exchange import AsyncCallback, Exchange
from .lifecycle import ServiceStateError, ServiceSupport


class AsyncProducer(ServiceSupport, ABC):
    """Producer bound to one endpoint that completes exchanges via callbacks.

    ``process`` returns True when the continuation already ran on the calling
    thread, False when completion was handed off and will be signalled later.
    """

    def __init__(self, endpoint: Any) -> None:
        super().__init__()
        self._endpoint = endpoint

    @property
    def endpoint(self) -> Any:
        return self._endpoint

    @property
    def context(self) -> HostContext:
        return self._endpoint.context

    @abstractmethod
    def process(self, exchange: Exchange, callback: AsyncCallback) -> bool:
        """Process ``exchange`` and signal ``callback`` exactly once."""

    def reject_unless_started(self, exchange: Exchange, callback: AsyncCallback) -> bool:
        """Complete synchronously with a state error when not started.

        Returns True when the exchange was rejected.
        """
        if self.is_started:
            return False
        exchange.set_exception(ServiceStateError(self.describe(), self.status, "process"))
        callback(True)
        return True

    def describe(self) -> str:
        return f"{type(self).__name__}[{getattr(self._endpoint, 'id', '?')}]"
