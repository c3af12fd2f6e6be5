"""Public API for shared relay configuration utilities."""

from .loader import load_config, load_settings
from .models import (
    DEFAULT_CONFIG_PATH,
    ComponentsSettings,
    ExchangeObservabilitySettings,
    ExchangeOtelSettings,
    LoggingSettings,
    ObservabilitySettings,
    RelaySettings,
    resolve_component_settings,
)

__all__ = [
    "DEFAULT_CONFIG_PATH",
    "ComponentsSettings",
    "ExchangeObservabilitySettings",
    "ExchangeOtelSettings",
    "LoggingSettings",
    "ObservabilitySettings",
    "RelaySettings",
    "load_config",
    "load_settings",
    "resolve_component_settings",
]
