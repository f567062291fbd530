"""Tests for deferred property values."""

from enum import Enum

import pytest

from printforge.templating.engine import TemplateEngine
from printforge.templating.errors import EngineError
from printforge.templating.properties import (
    BOOLEAN,
    FLOAT,
    INTEGER,
    TEXT,
    PropertyState,
    PropertyValue,
    ValueKind,
    contains_expression,
    enum_of,
    optional,
)
from printforge.templating.values import NULL, NumberValue, StringValue


class Alignment(Enum):
    Left = "left"
    Center = "center"
    Right = "right"


@pytest.fixture
def engine():
    return TemplateEngine()


# =============================================================================
# Lifecycle
# =============================================================================


class TestLifecycle:
    """Tests for the literal / expression / pending states."""

    def test_literal_round_trip(self, engine):
        prop = PropertyValue.literal(42, INTEGER)

        prop.resolve(engine.render_text, {})
        assert prop.state == PropertyState.LITERAL
        assert prop.materialize("width") == 42
        assert prop.value == 42

    def test_raw_without_expression_is_pending(self):
        prop = PropertyValue.from_raw("12", INTEGER)

        assert prop.state == PropertyState.PENDING
        assert prop.raw_text == "12"

    def test_raw_with_expression_is_detected(self):
        prop = PropertyValue.from_raw("{{ columns * 8 }}", INTEGER)

        assert prop.state == PropertyState.EXPRESSION
        assert contains_expression("Total: {{ total }}")
        assert not contains_expression("Total")

    def test_resolve_then_materialize(self, engine):
        prop = PropertyValue.from_raw("{{ columns * 8 }}", INTEGER)

        prop.resolve(engine.render_text, {"columns": 3})
        assert prop.state == PropertyState.PENDING
        assert prop.raw_text == "24"

        assert prop.materialize("width") == 24
        assert prop.state == PropertyState.LITERAL
        assert prop.raw_text is None

    def test_resolve_is_noop_when_not_an_expression(self, engine):
        prop = PropertyValue.from_raw("{plain}", TEXT)
        prop.resolve(lambda raw, context: pytest.fail("should not evaluate"), {})

        assert prop.materialize("label") == "{plain}"

    def test_resolve_stringifies_values(self):
        prop = PropertyValue.expression("total", TEXT)
        prop.resolve(lambda raw, context: NumberValue(31.5), {})

        assert prop.raw_text == "31.5"

    def test_resolve_null_renders_empty(self):
        prop = PropertyValue.expression("missing", optional(INTEGER))
        prop.resolve(lambda raw, context: NULL, {})

        assert prop.raw_text == ""
        assert prop.materialize("count") is None

    def test_materialize_is_idempotent(self):
        prop = PropertyValue.from_raw("true", BOOLEAN)

        assert prop.materialize("visible") is True
        assert prop.materialize("visible") is True

    def test_value_before_materialize_raises(self):
        prop = PropertyValue.from_raw("1", INTEGER)

        with pytest.raises(RuntimeError):
            prop.value

    def test_kind_hint_is_accepted(self):
        prop = PropertyValue.from_raw("#ff0000", TEXT)

        assert prop.materialize("color", ValueKind.COLOR) == "#ff0000"

    def test_materializing_unresolved_expression_fails_for_numbers(self):
        prop = PropertyValue.from_raw("{{ width }}", INTEGER)

        with pytest.raises(EngineError):
            prop.materialize("width")


# =============================================================================
# Shapes
# =============================================================================


class TestShapes:
    """Tests for parsing text into typed values."""

    @pytest.mark.parametrize("raw,expected", [("42", 42), (" -7 ", -7), ("+3", 3)])
    def test_integer(self, raw, expected):
        assert PropertyValue.from_raw(raw, INTEGER).materialize("n") == expected

    @pytest.mark.parametrize("raw", ["4.5", "1,000", "12px", "0x10"])
    def test_invalid_integer(self, raw):
        with pytest.raises(EngineError, match=f"Property 'n': expected integer, got '{raw}'."):
            PropertyValue.from_raw(raw, INTEGER).materialize("n")

    @pytest.mark.parametrize(
        "raw,expected",
        [("1.5", 1.5), ("-0.25", -0.25), ("3", 3.0), (".5", 0.5), ("1e3", 1000.0)],
    )
    def test_float(self, raw, expected):
        assert PropertyValue.from_raw(raw, FLOAT).materialize("x") == expected

    @pytest.mark.parametrize("raw", ["nan", "inf", "1,5", "1e999", "abc"])
    def test_invalid_float(self, raw):
        with pytest.raises(EngineError, match="expected float"):
            PropertyValue.from_raw(raw, FLOAT).materialize("x")

    def test_float_with_locale(self):
        prop = PropertyValue.from_raw("1.234,5", FLOAT)
        assert prop.materialize("x", locale="de_DE") == 1234.5

    def test_integer_with_locale(self):
        prop = PropertyValue.from_raw("1,000", INTEGER)
        assert prop.materialize("n", locale="en") == 1000

    @pytest.mark.parametrize("raw,expected", [("true", True), ("False", False), (" TRUE ", True)])
    def test_boolean(self, raw, expected):
        assert PropertyValue.from_raw(raw, BOOLEAN).materialize("b") is expected

    def test_invalid_boolean(self):
        with pytest.raises(EngineError, match="expected boolean, got 'yes'"):
            PropertyValue.from_raw("yes", BOOLEAN).materialize("b")

    def test_enum_ignores_case(self):
        shape = enum_of(Alignment)

        assert PropertyValue.from_raw("center", shape).materialize("align") is Alignment.Center
        assert PropertyValue.from_raw("RIGHT", shape).materialize("align") is Alignment.Right

    def test_invalid_enum_lists_valid_names(self):
        with pytest.raises(EngineError) as exc_info:
            PropertyValue.from_raw("middle", enum_of(Alignment)).materialize("align")

        assert str(exc_info.value) == (
            "Property 'align': expected Alignment, got 'middle'. Valid values: Left, Center, Right."
        )
        assert exc_info.value.property_name == "align"
        assert exc_info.value.raw == "middle"

    def test_empty_text(self):
        assert PropertyValue.from_raw("", TEXT).materialize("label") == ""
        assert PropertyValue.from_raw("", optional(TEXT)).materialize("label") is None
        assert PropertyValue.from_raw("  ", optional(FLOAT)).materialize("x") is None
        assert PropertyValue.from_raw("", optional(enum_of(Alignment))).materialize("a") is None

    def test_empty_text_for_required_shape(self):
        with pytest.raises(EngineError, match="expected integer, got empty value"):
            PropertyValue.from_raw("", INTEGER).materialize("n")

    def test_optional_still_validates(self):
        with pytest.raises(EngineError):
            PropertyValue.from_raw("abc", optional(INTEGER)).materialize("n")


# =============================================================================
# Engine integration
# =============================================================================


class TestEngineResolution:
    """Tests for resolving properties through the engine."""

    def test_resolve_property(self, engine):
        prop = PropertyValue.from_raw("{{ price * quantity | currency }}", TEXT)

        assert engine.resolve_property(prop, "text", {"price": 10.5, "quantity": 3}) == "31.50"

    def test_mixed_text(self, engine):
        prop = PropertyValue.from_raw("{{ qty }} x {{ name | upper }}", TEXT)

        assert engine.resolve_property(prop, "text", {"qty": 2, "name": "tea"}) == "2 x TEA"

    def test_boolean_expression(self, engine):
        prop = PropertyValue.from_raw("{{ total > 100 }}", BOOLEAN)

        assert engine.resolve_property(prop, "visible", {"total": 150}) is True

    def test_bad_result_names_property(self, engine):
        prop = PropertyValue.from_raw("{{ name }}", INTEGER)

        with pytest.raises(EngineError, match="Property 'width': expected integer, got 'abc'"):
            engine.resolve_property(prop, "width", {"name": "abc"})

    def test_data_may_hold_template_values(self, engine):
        prop = PropertyValue.expression("{{ label }}!", TEXT)
        prop.resolve(engine.render_text, {"label": StringValue("x")})

        assert prop.materialize("label") == "x!"

    def test_materialize_with_locale(self, engine):
        prop = PropertyValue.from_raw("{{ amount | number:1 }}", FLOAT)

        assert engine.resolve_property(prop, "x", {"amount": 1.25}, locale="de_DE") == 1.3
