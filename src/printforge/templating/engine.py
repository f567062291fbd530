"""Template engine facade.

A TemplateEngine owns the expression cache, the filter registry and the
default locale. Build one per process (or per test) and share it; it
holds no per-render state.

Example:
    engine = TemplateEngine()
    engine.evaluate("price * quantity | currency", {"price": 10.5, "quantity": 3})
    engine.render_text("Total: {{ total | currency }}", {"total": 5})
"""

import logging
from typing import Any

from babel import Locale

from printforge.config import EngineConfig, parse_locale
from printforge.templating.context import TemplateContext
from printforge.templating.errors import ParseError
from printforge.templating.expressions.cache import ExpressionCache
from printforge.templating.expressions.evaluator import Evaluator
from printforge.templating.expressions.parser import ASTNode
from printforge.templating.filters.registry import FilterRegistry
from printforge.templating.properties import (
    EXPRESSION_END,
    EXPRESSION_START,
    PropertyValue,
    ValueKind,
)
from printforge.templating.values import TemplateValue, to_text, to_value

logger = logging.getLogger(__name__)


class TemplateEngine:
    """Parses, caches and evaluates template expressions.

    Attributes:
        config: The engine configuration
        filters: Registry consulted for every '|' in an expression
        cache: Parsed expressions keyed by their exact text
        locale: Default locale handed to filters
    """

    def __init__(
        self,
        config: EngineConfig | None = None,
        filters: FilterRegistry | None = None,
    ):
        self.config = config or EngineConfig()
        self.filters = filters if filters is not None else FilterRegistry.create_default()
        self.locale = parse_locale(self.config.locale)
        self.cache = ExpressionCache(
            max_size=self.config.cache_size,
            max_length=self.config.max_expression_length,
            max_depth=self.config.max_expression_depth,
        )
        self._evaluator = Evaluator(self.filters, self.locale)
        logger.debug(
            "Template engine created (locale=%s, %d filters)", self.locale, len(self.filters)
        )

    def parse(self, expression: str) -> ASTNode:
        """Parse an expression through the cache.

        Raises:
            ParseError: If the expression is malformed
        """
        return self.cache.parse(expression)

    def evaluate(
        self,
        expression: str | ASTNode,
        data: Any = None,
        locale: Locale | str | None = None,
    ) -> TemplateValue:
        """Evaluate an expression against render data.

        Args:
            expression: Expression text (without delimiters) or a parsed AST
            data: A TemplateContext, a TemplateValue, or plain Python data
            locale: Overrides the engine locale for this call

        Raises:
            ParseError: If the expression is malformed
            EngineError: If the expression references an unknown filter
        """
        node = self.parse(expression) if isinstance(expression, str) else expression
        evaluator = self._evaluator
        if locale is not None:
            evaluator = Evaluator(self.filters, locale)
        return evaluator.evaluate(node, _as_context(data))

    def render_text(
        self,
        raw: str,
        data: Any = None,
        locale: Locale | str | None = None,
    ) -> str:
        """Replace every {{ expression }} in raw with its text value.

        Text outside the delimiters is kept as is; null results render
        empty. A locale overrides the engine locale for every embedded
        expression.

        Raises:
            ParseError: If a '{{' is never closed or an expression is malformed
        """
        context = _as_context(data)
        parts: list[str] = []
        position = 0

        while (start := raw.find(EXPRESSION_START, position)) != -1:
            end = raw.find(EXPRESSION_END, start + len(EXPRESSION_START))
            if end == -1:
                raise ParseError(
                    f"Unclosed expression delimiter '{EXPRESSION_START}'",
                    position=start,
                    expression=raw,
                )
            parts.append(raw[position:start])
            inner = raw[start + len(EXPRESSION_START):end].strip()
            parts.append(to_text(self.evaluate(inner, context, locale)))
            position = end + len(EXPRESSION_END)

        parts.append(raw[position:])
        return "".join(parts)

    def resolve_property(
        self,
        prop: PropertyValue,
        property_name: str,
        data: Any = None,
        kind: ValueKind = ValueKind.ANY,
        locale: Locale | str | None = None,
    ) -> Any:
        """Run both property phases and return the typed value.

        A locale applies to both phases, so text formatted by a filter
        parses back with the same symbols.

        Raises:
            ParseError: If an embedded expression is malformed
            EngineError: If the result does not parse as the property's shape
        """
        prop.resolve(lambda raw, context: self.render_text(raw, context, locale), _as_context(data))
        return prop.materialize(property_name, kind, locale)


def _as_context(data: Any) -> TemplateContext:
    if isinstance(data, TemplateContext):
        return data
    return TemplateContext(to_value({} if data is None else data))
