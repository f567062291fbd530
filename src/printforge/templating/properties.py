"""Deferred property values for template elements.

Every element attribute goes through two phases before layout:

1. resolve(): if the raw text embeds an expression, evaluate it against
   the render data and keep the result as text.
2. materialize(): parse the text into the attribute's typed value
   (text, integer, float, boolean, enum, or an optional of those).

Both calls are no-ops outside the state they apply to, so a literal
value passes through unchanged.

Example:
    width = PropertyValue.from_raw("{{ columns * 8 }}", INTEGER)
    width.resolve(engine.render_text, data)
    width.materialize("width")  # -> 24
"""

import math
import re
from collections.abc import Callable
from dataclasses import dataclass, replace
from decimal import Decimal
from enum import Enum
from typing import Any, Generic, TypeVar

from babel import Locale
from babel.numbers import parse_decimal

from printforge.config import parse_locale
from printforge.templating.context import TemplateContext
from printforge.templating.errors import EngineError
from printforge.templating.values import TemplateValue, to_text

T = TypeVar("T")

EXPRESSION_START = "{{"
EXPRESSION_END = "}}"


class PropertyState(Enum):
    """Lifecycle state of a PropertyValue."""

    LITERAL = "literal"        # holds a typed value
    EXPRESSION = "expression"  # holds unresolved expression text
    PENDING = "pending"        # holds text waiting to be materialized


class ValueKind(Enum):
    """Semantic hint for what a property holds.

    Accepted by materialize() so callers can state intent; no kind
    restricts the accepted text yet.
    """

    ANY = "any"
    COLOR = "color"
    SIZE = "size"
    PATH = "path"


# -----------------------------------------------------------------------------
# Shapes
# -----------------------------------------------------------------------------


class ShapeKind(Enum):
    TEXT = "text"
    INTEGER = "integer"
    FLOAT = "float"
    BOOLEAN = "boolean"
    ENUM = "enum"


@dataclass(frozen=True)
class ValueShape:
    """The target type of a property.

    Attributes:
        kind: Which parser handles the text
        nullable: Empty text materializes to None instead of failing
        enum_type: The Enum class, for ENUM shapes
    """

    kind: ShapeKind
    nullable: bool = False
    enum_type: type[Enum] | None = None

    @property
    def name(self) -> str:
        if self.enum_type is not None:
            return self.enum_type.__name__
        return self.kind.value


TEXT = ValueShape(ShapeKind.TEXT)
INTEGER = ValueShape(ShapeKind.INTEGER)
FLOAT = ValueShape(ShapeKind.FLOAT)
BOOLEAN = ValueShape(ShapeKind.BOOLEAN)


def optional(shape: ValueShape) -> ValueShape:
    """Return a shape that materializes empty text to None."""
    return replace(shape, nullable=True)


def enum_of(enum_type: type[Enum]) -> ValueShape:
    """Return a shape matching member names of enum_type, ignoring case."""
    return ValueShape(ShapeKind.ENUM, enum_type=enum_type)


_INTEGER_PATTERN = re.compile(r"[+-]?\d+")
_FLOAT_PATTERN = re.compile(r"[+-]?(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?")


def _parse_text(shape: ValueShape, text: str, locale: Locale | None) -> str:
    return text


def _parse_integer(shape: ValueShape, text: str, locale: Locale | None) -> int:
    text = text.strip()
    if locale is not None:
        number = parse_decimal(text, locale=locale, strict=True)
        if number != number.to_integral_value():
            raise ValueError(f"not an integer: {text}")
        return int(number)
    if not _INTEGER_PATTERN.fullmatch(text):
        raise ValueError(f"not an integer: {text}")
    return int(text)


def _parse_float(shape: ValueShape, text: str, locale: Locale | None) -> float:
    text = text.strip()
    if locale is not None:
        number: Decimal | str = parse_decimal(text, locale=locale, strict=True)
    elif _FLOAT_PATTERN.fullmatch(text):
        number = text
    else:
        raise ValueError(f"not a number: {text}")

    result = float(number)
    if math.isinf(result):
        raise ValueError(f"number out of range: {text}")
    return result


def _parse_boolean(shape: ValueShape, text: str, locale: Locale | None) -> bool:
    lowered = text.strip().lower()
    if lowered == "true":
        return True
    if lowered == "false":
        return False
    raise ValueError(f"not a boolean: {text}")


def _parse_enum(shape: ValueShape, text: str, locale: Locale | None) -> Enum:
    assert shape.enum_type is not None
    wanted = text.strip().casefold()
    for member in shape.enum_type:
        if member.name.casefold() == wanted:
            return member
    raise ValueError(f"not a {shape.name} member: {text}")


_PARSERS: dict[ShapeKind, Callable[[ValueShape, str, Locale | None], Any]] = {
    ShapeKind.TEXT: _parse_text,
    ShapeKind.INTEGER: _parse_integer,
    ShapeKind.FLOAT: _parse_float,
    ShapeKind.BOOLEAN: _parse_boolean,
    ShapeKind.ENUM: _parse_enum,
}


# -----------------------------------------------------------------------------
# PropertyValue
# -----------------------------------------------------------------------------


def contains_expression(raw: str) -> bool:
    """Return True if raw text embeds at least one {{ expression }}."""
    return EXPRESSION_START in raw


class PropertyValue(Generic[T]):
    """A template attribute that is a literal, an expression, or pending text.

    Precondition: a value built from expression text must be resolve()d
    before materialize(). Materializing unresolved expression text parses
    the braces as literal text, which fails for every non-text shape.
    """

    __slots__ = ("shape", "_state", "_value", "_raw")

    def __init__(
        self,
        shape: ValueShape,
        state: PropertyState,
        value: T | None = None,
        raw: str | None = None,
    ):
        self.shape = shape
        self._state = state
        self._value = value
        self._raw = raw

    @classmethod
    def literal(cls, value: T, shape: ValueShape = TEXT) -> "PropertyValue[T]":
        """Wrap an already-typed value."""
        return cls(shape, PropertyState.LITERAL, value=value)

    @classmethod
    def from_raw(cls, raw: str, shape: ValueShape = TEXT) -> "PropertyValue[T]":
        """Wrap raw template text, detecting whether it embeds an expression."""
        if contains_expression(raw):
            return cls(shape, PropertyState.EXPRESSION, raw=raw)
        return cls(shape, PropertyState.PENDING, raw=raw)

    @classmethod
    def expression(cls, raw: str, shape: ValueShape = TEXT) -> "PropertyValue[T]":
        """Wrap text the caller already knows to be an expression."""
        return cls(shape, PropertyState.EXPRESSION, raw=raw)

    @property
    def state(self) -> PropertyState:
        return self._state

    @property
    def raw_text(self) -> str | None:
        """The unparsed text, or None once the value is typed."""
        return self._raw

    @property
    def is_materialized(self) -> bool:
        return self._state == PropertyState.LITERAL

    @property
    def value(self) -> T | None:
        """The typed value.

        Raises:
            RuntimeError: If the value has not been materialized yet
        """
        if self._state != PropertyState.LITERAL:
            raise RuntimeError(f"Property value is {self._state.value}, not materialized")
        return self._value

    def resolve(
        self,
        evaluate_fn: Callable[[str, TemplateContext | TemplateValue], str | TemplateValue],
        context: TemplateContext | TemplateValue,
    ) -> None:
        """Evaluate expression text, keeping the result as pending text.

        Args:
            evaluate_fn: Called with the raw text and context; a TemplateValue
                result is converted to text (null renders empty)
            context: The render data
        """
        if self._state != PropertyState.EXPRESSION:
            return
        assert self._raw is not None

        result = evaluate_fn(self._raw, context)
        if isinstance(result, TemplateValue):
            result = to_text(result)
        self._raw = result
        self._state = PropertyState.PENDING

    def materialize(
        self,
        property_name: str,
        kind: ValueKind = ValueKind.ANY,
        locale: Locale | str | None = None,
    ) -> T | None:
        """Parse pending text into the typed value and return it.

        Args:
            property_name: Attribute name, used in error messages
            kind: Semantic hint; currently accepted without extra checks
            locale: Parse numbers with this locale's symbols instead of
                the invariant rules

        Raises:
            EngineError: If the text does not parse as the target shape
        """
        if self._state == PropertyState.LITERAL:
            return self._value
        assert self._raw is not None

        raw = self._raw
        self._value = self._parse(property_name, raw, None if locale is None else parse_locale(locale))
        self._raw = None
        self._state = PropertyState.LITERAL
        return self._value

    def _parse(self, property_name: str, raw: str, locale: Locale | None) -> Any:
        shape = self.shape
        if not raw.strip():
            if shape.nullable:
                return None
            if shape.kind == ShapeKind.TEXT:
                return raw
            raise EngineError(
                f"Property '{property_name}': expected {shape.name}, got empty value.",
                property_name=property_name,
                raw=raw,
            )

        try:
            return _PARSERS[shape.kind](shape, raw, locale)
        except ValueError as e:
            message = f"Property '{property_name}': expected {shape.name}, got '{raw}'."
            if shape.enum_type is not None:
                valid = ", ".join(member.name for member in shape.enum_type)
                message += f" Valid values: {valid}."
            raise EngineError(message, property_name=property_name, raw=raw) from e

    def __repr__(self) -> str:
        if self._state == PropertyState.LITERAL:
            return f"PropertyValue(literal={self._value!r})"
        return f"PropertyValue({self._state.value}, raw={self._raw!r})"
