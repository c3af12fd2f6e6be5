"""Component wiring Qdrant endpoints into a host context from settings."""

from __future__ import annotations

from pathlib import Path
from threading import Lock
from typing import Any, Mapping

from packages.relay_core import HostContext
from packages.relay_shared.config import (
    RelaySettings,
    load_settings,
    resolve_component_settings,
)
from packages.relay_shared.logging import (
    ExchangeInstrumentation,
    ExchangeInstrumentationConcern,
    build_metrics_concern,
    configure_logging_from_settings,
    get_logger,
)

from .client import QdrantClientBridge
from .config import QdrantEndpointConfig, QdrantSettings
from .constants import RESOURCE_COMPONENT_ID
from .endpoint import QdrantEndpoint

_LOGGER = get_logger(__name__)


class QdrantComponent:
    """Factory and registry for Qdrant endpoints sharing one context."""

    def __init__(
        self,
        *,
        context: HostContext,
        settings: QdrantSettings,
        instrumentation: ExchangeInstrumentation | None = None,
    ) -> None:
        self._context = context
        self._settings = settings
        self._instrumentation = instrumentation or ExchangeInstrumentation(
            component_id=RESOURCE_COMPONENT_ID,
            logger=_LOGGER,
        )
        self._endpoints: dict[str, QdrantEndpoint] = {}
        self._lock = Lock()

    @classmethod
    def from_settings(
        cls, *, context: HostContext, settings: RelaySettings
    ) -> QdrantComponent:
        """Build the component from ``components.substrate.qdrant`` settings."""
        qdrant_settings = resolve_component_settings(
            settings=settings,
            component_id=RESOURCE_COMPONENT_ID,
            model=QdrantSettings,
        )
        exchange_settings = settings.observability.exchange
        concerns: list[ExchangeInstrumentationConcern] = []
        if exchange_settings.metrics_enabled:
            concerns.append(build_metrics_concern(exchange_settings.otel))
        return cls(
            context=context,
            settings=qdrant_settings,
            instrumentation=ExchangeInstrumentation(
                component_id=RESOURCE_COMPONENT_ID,
                concerns=concerns,
                logger=_LOGGER,
            ),
        )

    @classmethod
    def bootstrap(
        cls,
        context: HostContext,
        *,
        cli_params: Mapping[str, Any] | None = None,
        environ: Mapping[str, str] | None = None,
        config_path: str | Path | None = None,
    ) -> QdrantComponent:
        """Load settings through the full cascade, configure logging, build.

        This is the entry point for a process hosting Qdrant producers.
        """
        settings = load_settings(
            cli_params=cli_params,
            environ=environ,
            config_path=config_path,
        )
        configure_logging_from_settings(settings.logging)
        component = cls.from_settings(context=context, settings=settings)
        _LOGGER.info(
            "Qdrant component ready for %s (grpc=%s)",
            component.settings.url,
            component.settings.prefer_grpc,
        )
        return component

    @property
    def settings(self) -> QdrantSettings:
        return self._settings

    def create_endpoint(
        self,
        collection_name: str,
        *,
        endpoint_id: str | None = None,
        client: QdrantClientBridge | None = None,
    ) -> QdrantEndpoint:
        """Return the endpoint for ``collection_name``, creating it once.

        New endpoints are registered with the context, so they start and stop
        with it. Passing a ``client`` for an existing endpoint id that uses a
        different client raises ``ValueError``.
        """
        config = QdrantEndpointConfig.from_settings(
            self._settings,
            collection_name=collection_name,
            endpoint_id=endpoint_id,
        )
        with self._lock:
            existing = self._endpoints.get(config.endpoint_id)
            if existing is not None:
                if client is not None and existing.borrowed_client is not client:
                    raise ValueError(
                        f"endpoint {config.endpoint_id} already exists with a "
                        "different client"
                    )
                return existing
            endpoint = QdrantEndpoint(
                context=self._context,
                config=config,
                client=client,
                instrumentation=self._instrumentation,
            )
            self._endpoints[config.endpoint_id] = endpoint
        self._context.add_service(endpoint)
        return endpoint
