"""Template expression engine.

Usage:
    from printforge.templating import TemplateEngine, PropertyValue, INTEGER

    engine = TemplateEngine()
    engine.evaluate("name ?? 'Guest'", {})           # StringValue('Guest')
    engine.render_text("{{ qty }} x {{ sku }}", data)

    width = PropertyValue.from_raw("{{ columns * 8 }}", INTEGER)
    engine.resolve_property(width, "width", {"columns": 3})  # 24
"""

from printforge.templating.context import TemplateContext
from printforge.templating.engine import TemplateEngine
from printforge.templating.errors import EngineError, ParseError, TemplateError
from printforge.templating.properties import (
    BOOLEAN,
    FLOAT,
    INTEGER,
    TEXT,
    PropertyState,
    PropertyValue,
    ValueKind,
    ValueShape,
    contains_expression,
    enum_of,
    optional,
)
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
    is_truthy,
    to_python,
    to_text,
    to_value,
)

__all__ = [
    # Engine
    "TemplateEngine",
    "TemplateContext",
    # Errors
    "EngineError",
    "ParseError",
    "TemplateError",
    # Properties
    "BOOLEAN",
    "FLOAT",
    "INTEGER",
    "TEXT",
    "PropertyState",
    "PropertyValue",
    "ValueKind",
    "ValueShape",
    "contains_expression",
    "enum_of",
    "optional",
    # Values
    "FALSE",
    "NULL",
    "TRUE",
    "ArrayValue",
    "BoolValue",
    "NullValue",
    "NumberValue",
    "ObjectValue",
    "StringValue",
    "TemplateValue",
    "is_truthy",
    "to_python",
    "to_text",
    "to_value",
]
