"""Tests for the TemplateEngine facade."""

import pytest

from printforge.config import EngineConfig
from printforge.templating import TemplateContext, TemplateEngine
from printforge.templating.errors import EngineError, ParseError
from printforge.templating.filters import FilterCategory, FilterDefinition, FilterRegistry
from printforge.templating.values import NULL, NumberValue, StringValue, to_value


@pytest.fixture
def engine():
    return TemplateEngine()


class TestEvaluate:
    """Tests for TemplateEngine.evaluate."""

    def test_plain_data(self, engine):
        result = engine.evaluate("price * quantity", {"price": 10.5, "quantity": 3})
        assert result == NumberValue(31.5)

    def test_no_data(self, engine):
        assert engine.evaluate("missing") is NULL
        assert engine.evaluate("1 + 1") == NumberValue(2)

    def test_context_passes_through(self, engine):
        context = TemplateContext(to_value({"items": [{"name": "Tea"}]}))
        context.push_scope(context.root.get("items")[0])

        assert engine.evaluate("name", context) == StringValue("Tea")

    def test_accepts_parsed_tree(self, engine):
        node = engine.parse("total + 1")
        assert engine.evaluate(node, {"total": 1}) == NumberValue(2)

    def test_uses_cache(self, engine):
        engine.evaluate("a + 1", {"a": 1})
        engine.evaluate("a + 1", {"a": 2})

        assert engine.cache.count() == 1

    def test_locale_override(self, engine):
        assert engine.evaluate("1234.5 | currency", locale="de-DE") == StringValue("1.234,50")
        assert engine.evaluate("1234.5 | currency") == StringValue("1,234.50")

    def test_configured_locale(self):
        engine = TemplateEngine(EngineConfig(locale="de_DE"))
        assert engine.evaluate("0.5 | number:2") == StringValue("0,50")

    def test_configured_limits(self):
        engine = TemplateEngine(EngineConfig(max_expression_length=5))

        with pytest.raises(ParseError, match="exceeds maximum"):
            engine.evaluate("a + b + c")

    def test_configured_depth(self):
        engine = TemplateEngine(EngineConfig(max_expression_depth=5))

        with pytest.raises(ParseError, match="nesting depth"):
            engine.evaluate("((((((1))))))")

    def test_unknown_filter(self, engine):
        with pytest.raises(EngineError, match="Unknown filter 'nope'"):
            engine.evaluate("x | nope")

    def test_custom_registry(self):
        registry = FilterRegistry()
        registry.register(
            FilterDefinition(
                "double",
                "Doubles a number",
                FilterCategory.NUMBER,
                lambda value, args, locale: NumberValue(value.value * 2),
            )
        )
        engine = TemplateEngine(filters=registry)

        assert engine.evaluate("21 | double") == NumberValue(42)
        with pytest.raises(EngineError):
            engine.evaluate("'a' | upper")


class TestRenderText:
    """Tests for TemplateEngine.render_text."""

    def test_mixed_text(self, engine):
        text = engine.render_text("Total: {{ total | currency }} ({{ count }} items)", {"total": 5, "count": 2})
        assert text == "Total: 5.00 (2 items)"

    def test_text_without_expressions(self, engine):
        assert engine.render_text("Thank you!") == "Thank you!"

    def test_null_renders_empty(self, engine):
        assert engine.render_text("[{{ missing }}]") == "[]"

    def test_booleans_lowercase(self, engine):
        assert engine.render_text("{{ paid }}", {"paid": True}) == "true"

    def test_negative_zero_renders_unsigned(self, engine):
        assert engine.render_text("{{ -0 }}|{{ 0 * -1 }}") == "0|0"

    def test_adjacent_expressions(self, engine):
        assert engine.render_text("{{a}}{{b}}", {"a": 1, "b": "x"}) == "1x"

    def test_unclosed_delimiter(self, engine):
        with pytest.raises(ParseError) as exc_info:
            engine.render_text("Total: {{ total")

        assert exc_info.value.position == 7

    def test_malformed_inner_expression(self, engine):
        with pytest.raises(ParseError):
            engine.render_text("{{ 1 + }}")

    def test_locale(self, engine):
        assert engine.render_text("{{ 2.5 | number:1 }}", locale="de_DE") == "2,5"
