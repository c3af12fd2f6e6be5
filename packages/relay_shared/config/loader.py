"""Layered settings loading for relay runtimes.

Layers are merged lowest first, so later layers win:
built-in defaults < YAML file < ``RELAY_*`` environment < explicit params.

Environment keys use ``__`` between path segments
(``RELAY_COMPONENTS__SUBSTRATE__QDRANT__URL`` sets
``components.substrate.qdrant.url``). Values are read as YAML scalars, so
``true``, ``7100``, ``2.5``, ``null`` and ``[a, b]`` arrive typed.
"""

from __future__ import annotations

import os
from functools import reduce
from pathlib import Path
from typing import Any, Mapping

import yaml

from .defaults import BUILTIN_DEFAULTS
from .models import DEFAULT_CONFIG_PATH, RelaySettings

ENV_PREFIX = "RELAY_"
_ENV_SEPARATOR = "__"


def load_settings(
    *,
    cli_params: Mapping[str, Any] | None = None,
    environ: Mapping[str, str] | None = None,
    config_path: str | Path | None = None,
) -> RelaySettings:
    """Resolve every layer and validate the result as ``RelaySettings``."""
    merged = load_config(
        cli_params=cli_params,
        environ=environ,
        config_path=config_path,
    )
    return RelaySettings.model_validate(merged)


def load_config(
    *,
    cli_params: Mapping[str, Any] | None = None,
    environ: Mapping[str, str] | None = None,
    config_path: str | Path | None = None,
    defaults: Mapping[str, Any] | None = None,
) -> dict[str, Any]:
    """Return the merged, unvalidated settings tree."""
    layers = (
        BUILTIN_DEFAULTS if defaults is None else defaults,
        read_config_file(config_path),
        env_layer(os.environ if environ is None else environ),
        cli_params or {},
    )
    return reduce(deep_merge, layers, {})


def read_config_file(path: str | Path | None) -> dict[str, Any]:
    """Read the YAML settings file; a missing or empty file is an empty layer."""
    resolved = DEFAULT_CONFIG_PATH if path is None else Path(path)
    if not resolved.is_file():
        return {}
    parsed = yaml.safe_load(resolved.read_text(encoding="utf-8"))
    if parsed is None:
        return {}
    if not isinstance(parsed, Mapping):
        raise ValueError(f"Config file must contain a top-level mapping: {resolved}")
    return deep_merge({}, parsed)


def env_layer(environ: Mapping[str, str]) -> dict[str, Any]:
    """Build a settings tree from ``RELAY_``-prefixed variables."""
    tree: dict[str, Any] = {}
    for key, raw in environ.items():
        if not key.startswith(ENV_PREFIX):
            continue
        path = [
            part.lower()
            for part in key[len(ENV_PREFIX) :].split(_ENV_SEPARATOR)
            if part.strip()
        ]
        if not path:
            continue
        node = tree
        for part in path[:-1]:
            node = node.setdefault(part, {})
            if not isinstance(node, dict):
                raise ValueError(f"{key} conflicts with another environment variable path")
        if isinstance(node.get(path[-1]), dict):
            raise ValueError(f"{key} conflicts with another environment variable path")
        node[path[-1]] = _parse_env_value(raw)
    return tree


def deep_merge(base: Mapping[str, Any], override: Mapping[str, Any]) -> dict[str, Any]:
    """Return a new tree with ``override`` merged over ``base`` key by key."""
    merged = {str(key): _plain(value) for key, value in base.items()}
    for key, value in override.items():
        current = merged.get(str(key))
        if isinstance(current, dict) and isinstance(value, Mapping):
            merged[str(key)] = deep_merge(current, value)
        else:
            merged[str(key)] = _plain(value)
    return merged


def _parse_env_value(raw: str) -> Any:
    text = raw.strip()
    try:
        value = yaml.safe_load(text)
    except yaml.YAMLError:
        return raw
    # Only explicit flow mappings become dicts; "a: b" stays a string.
    if isinstance(value, dict) and not text.startswith("{"):
        return raw
    return value


def _plain(value: Any) -> Any:
    if isinstance(value, Mapping):
        return {str(key): _plain(item) for key, item in value.items()}
    if isinstance(value, list):
        return [_plain(item) for item in value]
    return value
