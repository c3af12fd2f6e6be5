"""Exchange and message containers handed to producers.

An ``Exchange`` is the per-request container owned by the caller until the
producer signals its continuation. Its ``Message`` carries string-keyed
headers and an arbitrary body; header reads can convert values to the type a
producer expects.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Mapping, Protocol, TypeVar

from packages.relay_shared.ids import generate_ulid_str

T = TypeVar("T")

_TRUE_STRINGS = frozenset({"true", "1", "yes", "on"})
_FALSE_STRINGS = frozenset({"false", "0", "no", "off"})


class AsyncCallback(Protocol):
    """Single-shot continuation signalled when an exchange is done."""

    def __call__(self, done_sync: bool) -> None:
        """Signal completion; ``done_sync`` is True when no hand-off occurred."""


class HeaderConversionError(ValueError):
    """Raised when a header value cannot be converted to the requested type."""

    def __init__(self, name: str, value: object, target: type) -> None:
        super().__init__(
            f"header {name!r} value {value!r} cannot be converted to {target.__name__}"
        )
        self.name = name
        self.value = value
        self.target = target


class Message:
    """Mutable message with headers and a body."""

    def __init__(
        self,
        body: Any = None,
        headers: Mapping[str, Any] | None = None,
    ) -> None:
        self.body = body
        self.headers: dict[str, Any] = dict(headers or {})

    def get_header(
        self,
        name: str,
        default: Any = None,
        type_: type[T] | None = None,
    ) -> Any:
        """Return a header value, ``default`` when absent, converted if asked."""
        value = self.headers.get(name)
        if value is None:
            return default
        if type_ is None:
            return value
        return convert_value(name, value, type_)

    def set_header(self, name: str, value: Any) -> None:
        """Set one header value."""
        self.headers[name] = value

    def remove_header(self, name: str) -> Any:
        """Remove one header, returning its previous value."""
        return self.headers.pop(name, None)

    def set_body(self, body: Any) -> None:
        """Replace the message body."""
        self.body = body

    def __repr__(self) -> str:
        return f"Message(headers={self.headers!r}, body={type(self.body).__name__})"


@dataclass
class Exchange:
    """Per-request container with one message and an exception slot."""

    message: Message = field(default_factory=Message)
    exchange_id: str = field(default_factory=generate_ulid_str)
    properties: dict[str, Any] = field(default_factory=dict)
    exception: BaseException | None = None

    def set_exception(self, exception: BaseException | None) -> None:
        """Attach (or clear) the failure for this exchange."""
        self.exception = exception

    @property
    def failed(self) -> bool:
        """Return True when a failure is attached."""
        return self.exception is not None

    @classmethod
    def of(
        cls,
        body: Any = None,
        headers: Mapping[str, Any] | None = None,
    ) -> Exchange:
        """Build an exchange around a new message."""
        return cls(message=Message(body=body, headers=headers))


def convert_value(name: str, value: Any, target: type[T]) -> T:
    """Convert one header value to ``target`` using the supported coercions."""
    if target is bool:
        return _to_bool(name, value)  # type: ignore[return-value]
    if isinstance(target, type) and issubclass(target, Enum):
        return _to_enum(name, value, target)  # type: ignore[return-value]
    if isinstance(value, target):
        return value
    converter = _CONVERTERS.get(target)
    if converter is None:
        raise HeaderConversionError(name, value, target)
    try:
        return converter(value)
    except (TypeError, ValueError) as exc:
        raise HeaderConversionError(name, value, target) from exc


def _to_bool(name: str, value: Any) -> bool:
    if isinstance(value, bool):
        return value
    if isinstance(value, int):
        return value != 0
    if isinstance(value, str):
        lowered = value.strip().lower()
        if lowered in _TRUE_STRINGS:
            return True
        if lowered in _FALSE_STRINGS:
            return False
    raise HeaderConversionError(name, value, bool)


def _to_enum(name: str, value: Any, target: type[Enum]) -> Enum:
    if isinstance(value, target):
        return value
    if isinstance(value, str):
        wanted = value.strip().upper()
        for member in target:
            if member.name.upper() == wanted:
                return member
    try:
        return target(value)
    except ValueError as exc:
        raise HeaderConversionError(name, value, target) from exc


_CONVERTERS: dict[type, Callable[[Any], Any]] = {
    int: int,
    float: float,
    str: str,
}
