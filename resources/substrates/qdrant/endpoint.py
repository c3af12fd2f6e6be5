"""Qdrant endpoint: one collection, one shared client, many producers."""

from __future__ import annotations

from typing import TYPE_CHECKING

from packages.relay_core import HostContext, ServiceStateError, ServiceSupport
from packages.relay_shared.logging import ExchangeInstrumentation, get_logger

from .client import QdrantClientBridge
from .config import QdrantEndpointConfig
from .constants import RESOURCE_COMPONENT_ID

if TYPE_CHECKING:
    from .producer import QdrantProducer

_LOGGER = get_logger(__name__)


class QdrantEndpoint(ServiceSupport):
    """Endpoint bound to one Qdrant collection.

    The endpoint owns the client bridge it builds at start and closes it at
    stop. A bridge passed in by the caller is borrowed: it is used as-is and
    never opened or closed here. Producers borrow the client from the endpoint.
    """

    def __init__(
        self,
        *,
        context: HostContext,
        config: QdrantEndpointConfig,
        client: QdrantClientBridge | None = None,
        instrumentation: ExchangeInstrumentation | None = None,
    ) -> None:
        super().__init__()
        self._context = context
        self._config = config
        self._client = client
        self._owns_client = client is None
        self._instrumentation = instrumentation or ExchangeInstrumentation(
            component_id=RESOURCE_COMPONENT_ID,
            logger=_LOGGER,
        )

    @property
    def id(self) -> str:
        return self._config.endpoint_id

    @property
    def collection(self) -> str:
        return self._config.collection_name

    @property
    def context(self) -> HostContext:
        return self._context

    @property
    def config(self) -> QdrantEndpointConfig:
        return self._config

    @property
    def instrumentation(self) -> ExchangeInstrumentation:
        return self._instrumentation

    @property
    def borrowed_client(self) -> QdrantClientBridge | None:
        """The caller-provided client, or None when the endpoint owns its own."""
        return None if self._owns_client else self._client

    def client(self) -> QdrantClientBridge:
        """Return the client shared by this endpoint's producers."""
        if self._client is None:
            raise ServiceStateError(self.describe(), self.status, "provide a client")
        return self._client

    def create_producer(self) -> QdrantProducer:
        """Create a producer registered with this endpoint's context."""
        from .producer import QdrantProducer

        producer = QdrantProducer(self)
        self._context.add_service(producer)
        return producer

    def do_start(self) -> None:
        if self._owns_client:
            bridge = QdrantClientBridge(self._config)
            bridge.open()
            self._client = bridge

    def do_stop(self) -> None:
        if self._owns_client and self._client is not None:
            self._client.close()
            self._client = None

    def describe(self) -> str:
        return f"QdrantEndpoint[{self.id}]"
