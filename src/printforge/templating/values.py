"""Value model for template data.

Every value seen by the expression engine is one of six variants:
NullValue, BoolValue, NumberValue, StringValue, ArrayValue, ObjectValue.

Values are immutable. Equality between different variants is always
defined (and always False); it never raises. Numbers are Decimal so that
currency arithmetic does not drift.
"""

from collections.abc import Iterator, Mapping
from dataclasses import dataclass, field
from datetime import date, datetime
from decimal import Decimal
from types import MappingProxyType
from typing import Any


class TemplateValue:
    """Base class for all template values."""

    __slots__ = ()


@dataclass(frozen=True)
class NullValue(TemplateValue):
    """The absent value."""


NULL = NullValue()


@dataclass(frozen=True)
class BoolValue(TemplateValue):
    value: bool


TRUE = BoolValue(True)
FALSE = BoolValue(False)


@dataclass(frozen=True)
class NumberValue(TemplateValue):
    """An arbitrary-precision decimal number. NaN and infinities are rejected."""

    value: Decimal

    def __post_init__(self) -> None:
        if isinstance(self.value, bool):
            raise TypeError("NumberValue does not accept bool; use BoolValue")
        if not isinstance(self.value, Decimal):
            object.__setattr__(self, "value", _to_decimal(self.value))
        if not self.value.is_finite():
            raise ValueError(f"NumberValue must be finite, got {self.value}")


@dataclass(frozen=True)
class StringValue(TemplateValue):
    value: str


@dataclass(frozen=True)
class ArrayValue(TemplateValue):
    """An ordered, immutable sequence of values."""

    items: tuple[TemplateValue, ...] = field(default_factory=tuple)

    def __post_init__(self) -> None:
        if not isinstance(self.items, tuple):
            object.__setattr__(self, "items", tuple(self.items))

    def __len__(self) -> int:
        return len(self.items)

    def __getitem__(self, index: int) -> TemplateValue:
        return self.items[index]

    def __iter__(self) -> Iterator[TemplateValue]:
        return iter(self.items)


class ObjectValue(TemplateValue):
    """An immutable mapping of property names to values.

    Property lookup through get() ignores case: an exact match wins,
    otherwise the first key that matches case-insensitively is used.
    get_exact() performs a case-sensitive lookup. Keys are stripped of
    surrounding whitespace on construction.
    """

    __slots__ = ("_properties", "_folded")

    def __init__(self, properties: Mapping[str, TemplateValue] | None = None):
        props = {str(key).strip(): value for key, value in (properties or {}).items()}
        folded: dict[str, str] = {}
        for key in props:
            folded.setdefault(key.casefold(), key)
        self._properties = MappingProxyType(props)
        self._folded = MappingProxyType(folded)

    def get(self, key: str, default: TemplateValue = NULL) -> TemplateValue:
        key = key.strip()
        if key in self._properties:
            return self._properties[key]
        actual = self._folded.get(key.casefold())
        if actual is None:
            return default
        return self._properties[actual]

    def get_exact(self, key: str, default: TemplateValue = NULL) -> TemplateValue:
        return self._properties.get(key, default)

    def keys(self):
        return self._properties.keys()

    def items(self):
        return self._properties.items()

    def __contains__(self, key: object) -> bool:
        if not isinstance(key, str):
            return False
        key = key.strip()
        return key in self._properties or key.casefold() in self._folded

    def __len__(self) -> int:
        return len(self._properties)

    def __iter__(self) -> Iterator[str]:
        return iter(self._properties)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, ObjectValue):
            return NotImplemented
        return dict(self._properties) == dict(other._properties)

    def __hash__(self) -> int:
        return hash(frozenset(self._properties.items()))

    def __repr__(self) -> str:
        return f"ObjectValue({dict(self._properties)!r})"


# -----------------------------------------------------------------------------
# Helpers
# -----------------------------------------------------------------------------


def _to_decimal(value: Any) -> Decimal:
    if isinstance(value, float):
        # str() keeps the shortest round-tripping repr, so 10.5 stays 10.5
        return Decimal(str(value))
    return Decimal(value)


def is_truthy(value: TemplateValue) -> bool:
    """Return the truthiness of a value.

    Null is false; a bool is itself; strings, arrays and objects are
    truthy when non-empty; numbers when nonzero.
    """
    if isinstance(value, NullValue):
        return False
    if isinstance(value, BoolValue):
        return value.value
    if isinstance(value, StringValue):
        return value.value != ""
    if isinstance(value, NumberValue):
        return value.value != 0
    if isinstance(value, ArrayValue):
        return len(value) > 0
    if isinstance(value, ObjectValue):
        return len(value) > 0
    raise TypeError(f"Unknown template value: {type(value).__name__}")


def format_number(value: Decimal) -> str:
    """Render a decimal in plain notation, keeping its own scale.

    A negative zero renders without its sign.
    """
    if value.is_zero():
        value = value.copy_abs()
    return format(value, "f")


def to_text(value: TemplateValue) -> str:
    """Stringify a value for substitution into property text.

    Null renders empty, booleans lowercase, numbers without a fixed
    decimal count. Arrays and objects have no text form and render empty.
    """
    if isinstance(value, NullValue):
        return ""
    if isinstance(value, StringValue):
        return value.value
    if isinstance(value, NumberValue):
        return format_number(value.value)
    if isinstance(value, BoolValue):
        return "true" if value.value else "false"
    if isinstance(value, (ArrayValue, ObjectValue)):
        return ""
    raise TypeError(f"Unknown template value: {type(value).__name__}")


def to_value(data: Any) -> TemplateValue:
    """Convert plain Python data (as loaded from YAML or JSON) to a value."""
    if isinstance(data, TemplateValue):
        return data
    if data is None:
        return NULL
    if isinstance(data, bool):
        return TRUE if data else FALSE
    if isinstance(data, (int, float, Decimal)):
        return NumberValue(_to_decimal(data))
    if isinstance(data, str):
        return StringValue(data)
    if isinstance(data, (datetime, date)):
        return StringValue(data.isoformat())
    if isinstance(data, Mapping):
        return ObjectValue({str(key): to_value(item) for key, item in data.items()})
    if isinstance(data, (list, tuple)):
        return ArrayValue(tuple(to_value(item) for item in data))
    raise TypeError(f"Cannot convert {type(data).__name__} to a template value")


def to_python(value: TemplateValue) -> Any:
    """Convert a value back to plain Python data."""
    if isinstance(value, NullValue):
        return None
    if isinstance(value, (BoolValue, NumberValue, StringValue)):
        return value.value
    if isinstance(value, ArrayValue):
        return [to_python(item) for item in value]
    if isinstance(value, ObjectValue):
        return {key: to_python(item) for key, item in value.items()}
    raise TypeError(f"Unknown template value: {type(value).__name__}")
