"""Unit tests for Qdrant endpoint ownership and component wiring."""

from __future__ import annotations

import logging

import pytest

from packages.relay_core import HostContext, ServiceStateError, ServiceStatus
from packages.relay_shared.config import RelaySettings
from packages.relay_shared.logging import (
    ExchangeLoggingConcern,
    ExchangeMetricsConcern,
    clear_context,
)
from packages.relay_shared.logging.config import RelayStreamHandler
from resources.substrates.qdrant import endpoint as endpoint_module
from resources.substrates.qdrant.component import QdrantComponent
from resources.substrates.qdrant.config import QdrantEndpointConfig, QdrantSettings
from resources.substrates.qdrant.endpoint import QdrantEndpoint
from resources.substrates.qdrant.producer import QdrantProducer


class _FakeBridge:
    """Bridge fake tracking open/close calls."""

    instances: list["_FakeBridge"] = []

    def __init__(self, config: QdrantEndpointConfig) -> None:
        self.config = config
        self.opened = 0
        self.closed = 0
        _FakeBridge.instances.append(self)

    def open(self) -> None:
        self.opened += 1

    def close(self) -> None:
        self.closed += 1


@pytest.fixture(autouse=True)
def _reset_bridges() -> None:
    _FakeBridge.instances = []


def _config(collection: str = "upsert") -> QdrantEndpointConfig:
    return QdrantEndpointConfig(
        endpoint_id=f"qdrant:{collection}",
        collection_name=collection,
        url="http://qdrant:6333",
    )


def test_endpoint_owns_client_it_builds(monkeypatch: pytest.MonkeyPatch) -> None:
    """An endpoint without an injected client opens and closes its own."""
    monkeypatch.setattr(endpoint_module, "QdrantClientBridge", _FakeBridge)
    context = HostContext("test")
    endpoint = QdrantEndpoint(context=context, config=_config())
    context.add_service(endpoint)

    with pytest.raises(ServiceStateError):
        endpoint.client()

    context.start()
    bridge = endpoint.client()
    assert isinstance(bridge, _FakeBridge)
    assert bridge.config is endpoint.config
    assert bridge.opened == 1

    context.stop()
    assert bridge.closed == 1
    assert endpoint.status is ServiceStatus.STOPPED


def test_endpoint_never_closes_injected_client() -> None:
    """A caller-provided client is borrowed, not managed."""
    client = _FakeBridge(_config())
    context = HostContext("test")
    endpoint = QdrantEndpoint(
        context=context,
        config=_config(),
        client=client,  # type: ignore[arg-type]
    )
    context.add_service(endpoint)

    context.start()
    context.stop()

    assert client.opened == 0
    assert client.closed == 0
    assert endpoint.client() is client


def test_producers_share_endpoint_client_and_stop_first() -> None:
    """Producers borrow the endpoint client and stop before the endpoint."""
    client = _FakeBridge(_config())
    context = HostContext("test")
    endpoint = QdrantEndpoint(
        context=context,
        config=_config(),
        client=client,  # type: ignore[arg-type]
    )
    context.add_service(endpoint)
    first = endpoint.create_producer()
    second = endpoint.create_producer()

    context.start()

    assert isinstance(first, QdrantProducer)
    assert first.is_started and second.is_started
    assert first.endpoint is endpoint
    assert first.describe() == "QdrantProducer[qdrant:upsert]"
    assert len(context.executor_service_manager.active_executor_names()) == 2

    context.stop()

    assert first.is_stopped and second.is_stopped
    assert context.executor_service_manager.active_executor_names() == []


def test_producer_created_on_running_context_starts_immediately() -> None:
    client = _FakeBridge(_config())
    context = HostContext("test")
    endpoint = QdrantEndpoint(
        context=context,
        config=_config(),
        client=client,  # type: ignore[arg-type]
    )
    context.add_service(endpoint)
    context.start()
    try:
        producer = endpoint.create_producer()
        assert producer.is_started
    finally:
        context.stop()


def test_component_creates_one_endpoint_per_collection() -> None:
    """Endpoints are cached by id and bound to the component settings."""
    context = HostContext("test")
    component = QdrantComponent(
        context=context,
        settings=QdrantSettings(url="http://qdrant:6333", request_timeout_seconds=4.0),
    )

    first = component.create_endpoint("upsert")
    again = component.create_endpoint("upsert")
    other = component.create_endpoint("upsert", endpoint_id="qdrant:secondary")

    assert first is again
    assert other is not first
    assert first.id == "qdrant:upsert"
    assert first.collection == "upsert"
    assert first.config.timeout_seconds == 4.0
    assert other.collection == "upsert"
    assert context.services() == [first, other]


def test_component_from_settings_reads_grouped_namespace() -> None:
    """Settings under components.substrate.qdrant reach new endpoints."""
    settings = RelaySettings(
        components={
            "substrate": {
                "qdrant": {"url": "http://vectors:6333", "prefer_grpc": True},
            }
        },
        observability={"exchange": {"metrics_enabled": False}},
    )

    component = QdrantComponent.from_settings(
        context=HostContext("test"), settings=settings
    )
    endpoint = component.create_endpoint("docs")

    assert component.settings.url == "http://vectors:6333"
    assert endpoint.config.prefer_grpc is True
    concerns = endpoint.instrumentation.concerns
    assert [type(concern) for concern in concerns] == [ExchangeLoggingConcern]


def test_component_from_settings_adds_metrics_concern_when_enabled() -> None:
    component = QdrantComponent.from_settings(
        context=HostContext("test"), settings=RelaySettings()
    )

    concerns = component.create_endpoint("docs").instrumentation.concerns

    assert any(isinstance(concern, ExchangeMetricsConcern) for concern in concerns)


def test_component_rejects_conflicting_client_for_cached_endpoint() -> None:
    """A cached endpoint is returned only when the injected client agrees."""
    context = HostContext("test")
    component = QdrantComponent(context=context, settings=QdrantSettings())
    client = _FakeBridge(_config())

    first = component.create_endpoint("upsert", client=client)  # type: ignore[arg-type]

    assert component.create_endpoint("upsert", client=client) is first  # type: ignore[arg-type]
    assert component.create_endpoint("upsert") is first
    with pytest.raises(ValueError, match="qdrant:upsert already exists"):
        component.create_endpoint("upsert", client=_FakeBridge(_config()))  # type: ignore[arg-type]


def test_component_rejects_client_for_endpoint_owning_its_own() -> None:
    component = QdrantComponent(context=HostContext("test"), settings=QdrantSettings())
    component.create_endpoint("upsert")

    with pytest.raises(ValueError, match="different client"):
        component.create_endpoint("upsert", client=_FakeBridge(_config()))  # type: ignore[arg-type]


def test_bootstrap_loads_settings_and_configures_logging(tmp_path) -> None:
    """Bootstrap runs the settings cascade and installs the relay handler."""
    config_file = tmp_path / "relay.yaml"
    config_file.write_text(
        "\n".join(
            [
                "logging:",
                "  level: WARNING",
                "  json_output: false",
                "components:",
                "  substrate:",
                "    qdrant:",
                "      url: http://yaml-qdrant:6333",
            ]
        ),
        encoding="utf-8",
    )
    root = logging.getLogger()
    handlers, level = list(root.handlers), root.level
    try:
        component = QdrantComponent.bootstrap(
            HostContext("test"),
            cli_params={"components": {"substrate": {"qdrant": {"grpc_port": 7334}}}},
            environ={"RELAY_OBSERVABILITY__EXCHANGE__METRICS_ENABLED": "false"},
            config_path=config_file,
        )
        relay_handlers = [h for h in root.handlers if isinstance(h, RelayStreamHandler)]
        assert len(relay_handlers) == 1
        assert root.level == logging.WARNING
    finally:
        root.handlers[:] = handlers
        root.setLevel(level)
        clear_context()

    assert component.settings.url == "http://yaml-qdrant:6333"
    assert component.settings.grpc_port == 7334
    endpoint = component.create_endpoint("docs")
    assert [type(concern) for concern in endpoint.instrumentation.concerns] == [
        ExchangeLoggingConcern
    ]
