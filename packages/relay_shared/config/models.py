"""Typed configuration models for relay runtime settings."""

from __future__ import annotations

from pathlib import Path
from typing import Literal, TypeVar

from pydantic import BaseModel, ConfigDict, Field, model_validator
from pydantic_settings import (
    BaseSettings,
    PydanticBaseSettingsSource,
    SettingsConfigDict,
)

DEFAULT_CONFIG_PATH = Path.home() / ".config" / "relay" / "relay.yaml"


class LoggingSettings(BaseModel):
    """Structured logging configuration shared by relay components."""

    level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = "INFO"
    json_output: bool = True
    service: str = "relay"
    environment: str = "dev"


class ExchangeOtelSettings(BaseModel):
    """Configurable OTel names for exchange metrics."""

    meter_name: str = "relay.exchange"
    metric_exchanges_total: str = "relay_exchanges_total"
    metric_exchange_duration_ms: str = "relay_exchange_duration_ms"
    metric_exchange_errors_total: str = "relay_exchange_errors_total"


class ExchangeObservabilitySettings(BaseModel):
    """Exchange observability subtree."""

    metrics_enabled: bool = True
    otel: ExchangeOtelSettings = Field(default_factory=ExchangeOtelSettings)


class ObservabilitySettings(BaseModel):
    """Global observability configuration."""

    exchange: ExchangeObservabilitySettings = Field(
        default_factory=ExchangeObservabilitySettings
    )


class ComponentNamespaceSettings(BaseModel):
    """Namespace map for grouped component settings under ``components.<kind>``."""

    model_config = ConfigDict(extra="allow")


class ComponentsSettings(BaseModel):
    """Typed ``components`` subtree with support for component-local extras."""

    model_config = ConfigDict(extra="allow")

    substrate: ComponentNamespaceSettings = Field(
        default_factory=ComponentNamespaceSettings
    )

    @model_validator(mode="before")
    @classmethod
    def _reject_flat_component_keys(cls, value: object) -> object:
        """Reject flat ``substrate_*`` keys in favor of grouped namespaces."""
        if not isinstance(value, dict):
            return value
        flat_prefixed_keys = tuple(
            key
            for key in value
            if isinstance(key, str) and key.startswith("substrate_")
        )
        if not flat_prefixed_keys:
            return value

        bad_key = flat_prefixed_keys[0]
        kind, _, name = bad_key.partition("_")
        raise ValueError(
            f"components.{bad_key} is invalid; use components.{kind}.{name} instead"
        )


class RelaySettings(BaseSettings):
    """Root runtime settings resolved from init and environment sources."""

    model_config = SettingsConfigDict(
        env_prefix="RELAY_",
        env_nested_delimiter="__",
        extra="ignore",
        nested_model_default_partial_update=True,
    )

    logging: LoggingSettings = Field(default_factory=LoggingSettings)
    observability: ObservabilitySettings = Field(default_factory=ObservabilitySettings)
    components: ComponentsSettings = Field(default_factory=ComponentsSettings)

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        """Init kwargs win over the process environment; YAML is merged upstream."""
        return (init_settings, env_settings)


TComponentSettings = TypeVar("TComponentSettings", bound=BaseModel)


def resolve_component_settings(
    *,
    settings: RelaySettings,
    component_id: str,
    model: type[TComponentSettings],
) -> TComponentSettings:
    """Resolve one component settings object from grouped ``components`` keys."""
    raw_components = settings.components.model_dump(mode="python")
    kind, separator, name = component_id.partition("_")
    if separator and kind == "substrate":
        namespace = raw_components.get(kind, {})
        namespace_path = f"components.{kind}"
        if not isinstance(namespace, dict):
            raise TypeError(f"{namespace_path} must resolve to an object mapping")
        resolved = namespace.get(name, {})
        source_path = f"{namespace_path}.{name}"
    else:
        resolved = raw_components.get(component_id, {})
        source_path = f"components.{component_id}"

    if not isinstance(resolved, dict):
        raise TypeError(f"{source_path} must resolve to an object mapping")
    return model.model_validate(resolved)
