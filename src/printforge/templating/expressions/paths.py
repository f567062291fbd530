"""Path resolution against a template context.

A path is the text of a variable reference: ``user.name``,
``items[0].price``, ``.`` (the current scope) or a loop variable such
as ``@index``. Missing keys, out-of-range indexes and traversal through
non-containers all resolve to null.
"""

import re
from functools import lru_cache

from printforge.templating.context import TemplateContext
from printforge.templating.errors import ParseError
from printforge.templating.values import (
    FALSE,
    NULL,
    TRUE,
    ArrayValue,
    BoolValue,
    NullValue,
    NumberValue,
    ObjectValue,
    StringValue,
    TemplateValue,
    format_number,
)

MAX_PATH_LENGTH = 1000
MAX_ARRAY_INDEX = 10000

_SEGMENT = re.compile(r"\[(\d+)\]|\.?([^.\[]+)")


@lru_cache(maxsize=4096)
def split_path(path: str) -> tuple[str | int, ...]:
    """Split a path into property names (str) and array indexes (int).

    Raises:
        ParseError: If the path or one of its indexes exceeds the limits
    """
    if len(path) > MAX_PATH_LENGTH:
        raise ParseError(
            f"Path length ({len(path)}) exceeds maximum ({MAX_PATH_LENGTH})",
            expression=path[:100],
        )

    segments: list[str | int] = []
    for match in _SEGMENT.finditer(path):
        index_text, name = match.groups()
        if index_text is not None:
            index = int(index_text)
            if index > MAX_ARRAY_INDEX:
                raise ParseError(
                    f"Array index ({index}) exceeds maximum ({MAX_ARRAY_INDEX})",
                    position=match.start(),
                    expression=path,
                )
            segments.append(index)
        elif name:
            segments.append(name)
    return tuple(segments)


def resolve_path(path: str, context: TemplateContext) -> TemplateValue:
    """Resolve a path against the current scope of the context."""
    if not path:
        return NULL
    if path == ".":
        return context.current_scope
    if path.startswith("@"):
        return _resolve_loop_variable(path, context)

    current = context.current_scope
    for segment in split_path(path):
        current = _step(current, segment)
        if isinstance(current, NullValue):
            return NULL
    return current


def _resolve_loop_variable(path: str, context: TemplateContext) -> TemplateValue:
    if path == "@index":
        if context.loop_index is None:
            return NULL
        return NumberValue(context.loop_index)
    if path == "@first":
        return TRUE if context.is_first else FALSE
    if path == "@last":
        return TRUE if context.is_last else FALSE
    if path == "@key":
        if context.loop_key is None:
            return NULL
        return StringValue(context.loop_key)
    return NULL


def _step(current: TemplateValue, segment: str | int) -> TemplateValue:
    if isinstance(segment, str):
        if isinstance(current, ObjectValue):
            return current.get(segment)
        return NULL
    if isinstance(current, ArrayValue) and segment < len(current):
        return current[segment]
    if isinstance(current, ObjectValue):
        return current.get_exact(str(segment))
    return NULL


def index_value(
    target: TemplateValue,
    key: TemplateValue,
    ignore_case: bool = False,
) -> TemplateValue:
    """Look up a computed key in an object or array.

    Objects match the key's text form exactly (case-sensitive) unless
    ignore_case is set, as for dotted member names. Arrays take numeric
    keys only: fractions truncate toward zero and negative keys yield null.
    """
    if isinstance(target, ObjectValue):
        if ignore_case and isinstance(key, StringValue):
            return target.get(key.value)
        if isinstance(key, StringValue):
            return target.get_exact(key.value)
        if isinstance(key, NumberValue):
            return target.get_exact(format_number(key.value))
        if isinstance(key, BoolValue):
            return target.get_exact("true" if key.value else "false")
        return NULL

    if isinstance(target, ArrayValue):
        if not isinstance(key, NumberValue) or key.value < 0:
            return NULL
        index = int(key.value)
        if index < len(target):
            return target[index]
        return NULL

    return NULL
