"""Qdrant producer component: actions, endpoint, client bridge and producer."""

from resources.substrates.qdrant.client import (
    QdrantClientBridge,
    QdrantClientClosedError,
    create_qdrant_client,
)
from resources.substrates.qdrant.component import QdrantComponent
from resources.substrates.qdrant.config import QdrantEndpointConfig, QdrantSettings
from resources.substrates.qdrant.constants import (
    RESOURCE_COMPONENT_ID,
    QdrantAction,
    QdrantHeaders,
)
from resources.substrates.qdrant.endpoint import QdrantEndpoint
from resources.substrates.qdrant.errors import (
    ProducerShutdownError,
    QdrantActionError,
    UnsupportedActionError,
)
from resources.substrates.qdrant.producer import QdrantProducer

__all__ = [
    "ProducerShutdownError",
    "QdrantAction",
    "QdrantActionError",
    "QdrantClientBridge",
    "QdrantClientClosedError",
    "QdrantComponent",
    "QdrantEndpoint",
    "QdrantEndpointConfig",
    "QdrantHeaders",
    "QdrantProducer",
    "QdrantSettings",
    "RESOURCE_COMPONENT_ID",
    "UnsupportedActionError",
    "create_qdrant_client",
]
