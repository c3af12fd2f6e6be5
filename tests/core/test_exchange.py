"""Tests for exchange/message containers and header conversion."""

from __future__ import annotations

from enum import Enum

import pytest

from packages.relay_core import Exchange, HeaderConversionError, Message, convert_value
from packages.relay_shared.ids import ulid_timestamp_ms


class _Mode(str, Enum):
    FAST = "fast"
    SAFE = "safe"


def test_exchange_of_builds_message_with_fresh_id() -> None:
    first = Exchange.of([1, 2], {"action": "RETRIEVE"})
    second = Exchange.of()

    assert first.message.body == [1, 2]
    assert first.message.headers == {"action": "RETRIEVE"}
    assert first.exchange_id != second.exchange_id
    assert ulid_timestamp_ms(first.exchange_id) > 0
    assert first.failed is False


def test_exception_slot_can_be_set_and_cleared() -> None:
    exchange = Exchange.of()
    exchange.set_exception(RuntimeError("boom"))
    assert exchange.failed is True

    exchange.set_exception(None)
    assert exchange.failed is False


def test_message_copies_headers_and_mutates_in_place() -> None:
    headers = {"action": "UPSERT"}
    message = Message("body", headers)
    message.set_header("size", 2)
    message.set_body([])

    assert headers == {"action": "UPSERT"}
    assert message.headers == {"action": "UPSERT", "size": 2}
    assert message.remove_header("size") == 2
    assert message.remove_header("size") is None
    assert message.body == []


def test_get_header_defaults_and_converts() -> None:
    message = Message(headers={"includePayload": "false", "limit": "5", "empty": None})

    assert message.get_header("missing", True, bool) is True
    assert message.get_header("empty", "fallback") == "fallback"
    assert message.get_header("includePayload", True, bool) is False
    assert message.get_header("limit", type_=int) == 5
    assert message.get_header("limit") == "5"


@pytest.mark.parametrize(
    ("value", "expected"),
    [(True, True), (0, False), (1, True), ("YES", True), (" off ", False)],
)
def test_bool_conversion_accepts_common_spellings(value: object, expected: bool) -> None:
    assert convert_value("flag", value, bool) is expected


@pytest.mark.parametrize("value", ["maybe", 2.5, None, [True]])
def test_bool_conversion_rejects_other_values(value: object) -> None:
    with pytest.raises(HeaderConversionError) as excinfo:
        convert_value("flag", value, bool)

    assert excinfo.value.name == "flag"
    assert excinfo.value.target is bool


def test_enum_conversion_by_name_or_value() -> None:
    assert convert_value("mode", "fast", _Mode) is _Mode.FAST
    assert convert_value("mode", "SAFE", _Mode) is _Mode.SAFE
    assert convert_value("mode", _Mode.SAFE, _Mode) is _Mode.SAFE

    with pytest.raises(HeaderConversionError):
        convert_value("mode", "reckless", _Mode)


def test_scalar_conversion_errors_are_header_errors() -> None:
    assert convert_value("ratio", "0.5", float) == 0.5
    assert convert_value("name", 7, str) == "7"

    with pytest.raises(HeaderConversionError):
        convert_value("limit", "five", int)
    with pytest.raises(HeaderConversionError):
        convert_value("items", "a", list)
