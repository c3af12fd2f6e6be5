"""Shared ULID primitives for exchange identifiers."""

from packages.relay_shared.ids.ulid import generate_ulid_str, ulid_timestamp_ms

__all__ = [
    "generate_ulid_str",
    "ulid_timestamp_ms",
]
