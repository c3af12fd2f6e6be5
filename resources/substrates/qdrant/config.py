"""Configuration models for Qdrant endpoints."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field, model_validator


class QdrantSettings(BaseModel):
    """Qdrant connection defaults resolved from ``components.substrate.qdrant``."""

    url: str = "http://localhost:6333"
    grpc_port: int = Field(default=6334, gt=0)
    prefer_grpc: bool = False
    api_key: str | None = None
    request_timeout_seconds: float = Field(default=10.0, gt=0)


class QdrantEndpointConfig(BaseModel):
    """Runtime configuration for one endpoint bound to one collection."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    endpoint_id: str
    collection_name: str
    url: str
    grpc_port: int = 6334
    prefer_grpc: bool = False
    api_key: str | None = None
    timeout_seconds: float = 10.0

    @model_validator(mode="after")
    def _validate_fields(self) -> "QdrantEndpointConfig":
        """Validate required Qdrant endpoint configuration invariants."""
        if self.endpoint_id.strip() == "":
            raise ValueError("qdrant.endpoint_id is required")
        if self.collection_name.strip() == "":
            raise ValueError("qdrant.collection_name is required")
        if self.url.strip() == "":
            raise ValueError("qdrant.url is required")
        if self.timeout_seconds <= 0:
            raise ValueError("qdrant.timeout_seconds must be > 0")
        if self.grpc_port <= 0:
            raise ValueError("qdrant.grpc_port must be > 0")
        return self

    @classmethod
    def from_settings(
        cls,
        settings: QdrantSettings,
        *,
        collection_name: str,
        endpoint_id: str | None = None,
    ) -> "QdrantEndpointConfig":
        """Bind connection settings to one collection."""
        return cls(
            endpoint_id=endpoint_id or f"qdrant:{collection_name}",
            collection_name=collection_name,
            url=settings.url,
            grpc_port=settings.grpc_port,
            prefer_grpc=settings.prefer_grpc,
            api_key=settings.api_key,
            timeout_seconds=settings.request_timeout_seconds,
        )
