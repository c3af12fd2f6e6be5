"""Shared fixtures for integration-oriented test modules."""

from __future__ import annotations

from uuid import uuid4

import pytest

from packages.relay_shared.config import (
    RelaySettings,
    load_settings,
    resolve_component_settings,
)
from resources.substrates.qdrant.config import QdrantSettings
from resources.substrates.qdrant.constants import RESOURCE_COMPONENT_ID as QDRANT_ID
from tests.integration.helpers import real_provider_tests_enabled


@pytest.fixture(scope="session")
def env_settings() -> RelaySettings:
    """Return loaded settings snapshot for fixture consumers."""
    return load_settings()


@pytest.fixture(scope="session")
def qdrant_settings(env_settings: RelaySettings) -> QdrantSettings | None:
    """Return Qdrant settings when real-provider integrations are enabled."""
    if not real_provider_tests_enabled():
        return None
    return resolve_component_settings(
        settings=env_settings,
        component_id=QDRANT_ID,
        model=QdrantSettings,
    )


@pytest.fixture(scope="session")
def qdrant_client(qdrant_settings: QdrantSettings | None):
    """Return a sync Qdrant client for real-provider tests or skip if unavailable."""
    if qdrant_settings is None:
        pytest.skip("real-provider integration tests disabled")

    from qdrant_client import QdrantClient

    client = QdrantClient(url=qdrant_settings.url, api_key=qdrant_settings.api_key)
    try:
        client.get_collections()
    except Exception as exc:  # noqa: BLE001
        pytest.skip(f"qdrant unavailable for integration tests: {exc}")
    yield client
    client.close()


@pytest.fixture(scope="function")
def qdrant_collection(qdrant_client) -> str:
    """Create a unique two-dimensional cosine collection for one test."""
    from qdrant_client.http import models

    name = f"int_relay_{uuid4().hex[:8]}"
    qdrant_client.create_collection(
        collection_name=name,
        vectors_config=models.VectorParams(size=2, distance=models.Distance.COSINE),
    )
    yield name
    qdrant_client.delete_collection(collection_name=name)
