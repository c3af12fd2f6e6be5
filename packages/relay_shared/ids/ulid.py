"""ULID generation helpers for exchange identifiers.

Exchange ids are canonical 26-char Crockford Base32 ULIDs: sortable by creation
time and safe to emit in logs and metrics attributes.
"""

from __future__ import annotations

import secrets
import time

_ULID_ALPHABET = "0123456789ABCDEFGHJKMNPQRSTVWXYZ"
_DECODE_TABLE = {char: index for index, char in enumerate(_ULID_ALPHABET)}
_MAX_ULID_INT = (1 << 128) - 1


def generate_ulid_str(*, timestamp_ms: int | None = None) -> str:
    """Generate a new ULID in canonical 26-char string format.

    Timestamp occupies the high 48 bits (milliseconds since epoch); the
    remaining 80 bits are cryptographically secure random entropy.
    """
    ts_ms = int(time.time() * 1000) if timestamp_ms is None else int(timestamp_ms)
    if ts_ms < 0 or ts_ms >= (1 << 48):
        raise ValueError("timestamp_ms out of ULID 48-bit range")

    number = (ts_ms << 80) | secrets.randbits(80)
    chars: list[str] = []
    for _ in range(26):
        number, remainder = divmod(number, 32)
        chars.append(_ULID_ALPHABET[remainder])
    return "".join(reversed(chars))


def ulid_timestamp_ms(value: str) -> int:
    """Return the millisecond timestamp encoded in a canonical ULID string."""
    candidate = value.strip().upper()
    if len(candidate) != 26:
        raise ValueError("ULID string must be exactly 26 characters")

    number = 0
    for char in candidate:
        if char not in _DECODE_TABLE:
            raise ValueError(f"Invalid ULID character: {char!r}")
        number = (number << 5) | _DECODE_TABLE[char]

    # 26 base32 chars encode 130 bits; canonical ULID uses only lower 128 bits.
    if number > _MAX_ULID_INT:
        raise ValueError("ULID value exceeds 128-bit range")
    return number >> 80
