"""Tests for shared ULID generation and ordering semantics."""

from __future__ import annotations

import pytest

from packages.relay_shared.ids import generate_ulid_str, ulid_timestamp_ms


def test_ulid_string_is_canonical_and_carries_timestamp() -> None:
    """Generated ULIDs are 26 Crockford chars encoding the given timestamp."""
    value = generate_ulid_str(timestamp_ms=1_700_000_000_000)

    assert len(value) == 26
    assert value == value.upper()
    assert ulid_timestamp_ms(value) == 1_700_000_000_000


def test_ulid_order_follows_timestamp() -> None:
    """Lexicographic order of canonical strings follows creation time."""
    earlier = generate_ulid_str(timestamp_ms=1_700_000_000_000)
    later = generate_ulid_str(timestamp_ms=1_700_000_000_001)

    assert earlier < later


def test_ulid_generation_is_unique() -> None:
    values = {generate_ulid_str(timestamp_ms=1_700_000_000_000) for _ in range(300)}

    assert len(values) == 300


def test_ulid_rejects_out_of_range_input() -> None:
    with pytest.raises(ValueError, match="48-bit"):
        generate_ulid_str(timestamp_ms=-1)
    with pytest.raises(ValueError, match="26 characters"):
        ulid_timestamp_ms("TOO-SHORT")
    with pytest.raises(ValueError, match="Invalid ULID character"):
        ulid_timestamp_ms("U" * 26)
