"""Evaluator for template expressions.

Walks the AST and computes the result against a template context.
Data-shape problems never raise: missing paths, mismatched operand types
and division by zero produce null (or false for ordered comparisons).
The only error raised while evaluating is an unknown filter name.
"""

from decimal import Context, Decimal
from typing import Any

from babel import Locale

from printforge.config import parse_locale
from printforge.templating.context import TemplateContext
from printforge.templating.errors import EngineError
from printforge.templating.expressions.parser import (
    ASTNode,
    Arithmetic,
    ArithmeticOperator,
    BoolLiteral,
    Coalesce,
    Comparison,
    ComparisonOperator,
    Filter,
    Index,
    LogicalAnd,
    LogicalOr,
    Negate,
    Not,
    NullLiteral,
    NumberLiteral,
    Path,
    StringLiteral,
    parse,
)
from printforge.templating.expressions.paths import index_value, resolve_path
from printforge.templating.filters.registry import FilterArguments, FilterRegistry
from printforge.templating.values import (
    FALSE,
    NULL,
    TRUE,
    NullValue,
    NumberValue,
    ObjectValue,
    StringValue,
    TemplateValue,
    is_truthy,
    to_value,
)

# Overflow and invalid operations produce non-finite results instead of
# raising; those are mapped to null.
_DECIMAL_CONTEXT = Context(traps=[])


class EvaluationError(EngineError):
    """Error during expression evaluation (an unsupported AST node)."""


class Evaluator:
    """Evaluates expression ASTs against template contexts.

    An evaluator holds no per-render state, so one instance can be shared
    across renders and threads.

    Usage:
        evaluator = Evaluator(FilterRegistry.create_default(), locale="de_DE")
        result = evaluator.evaluate(ast, to_value({"price": 10.5}))
    """

    def __init__(
        self,
        filters: FilterRegistry | None = None,
        locale: Locale | str | None = None,
    ):
        self.filters = filters if filters is not None else FilterRegistry.create_default()
        self.locale = parse_locale(locale)

    def evaluate(
        self,
        node: ASTNode,
        context: TemplateContext | TemplateValue | None = None,
    ) -> TemplateValue:
        """Evaluate an AST node and return the resulting value.

        Args:
            node: The AST to evaluate
            context: A TemplateContext, or a bare value used as the root scope

        Raises:
            EngineError: If the expression references an unknown filter
        """
        if not isinstance(context, TemplateContext):
            context = TemplateContext(ObjectValue() if context is None else context)
        return self._evaluate(node, context)

    def _evaluate(self, node: ASTNode, context: TemplateContext) -> TemplateValue:
        method_name = f"_eval_{type(node).__name__.lower()}"
        method = getattr(self, method_name, None)

        if method is None:
            raise EvaluationError(f"Unknown node type: {type(node).__name__}")

        return method(node, context)

    # -------------------------------------------------------------------------
    # Node type evaluators
    # -------------------------------------------------------------------------

    def _eval_path(self, node: Path, context: TemplateContext) -> TemplateValue:
        return resolve_path(node.path, context)

    def _eval_numberliteral(self, node: NumberLiteral, context: TemplateContext) -> TemplateValue:
        return NumberValue(node.value)

    def _eval_stringliteral(self, node: StringLiteral, context: TemplateContext) -> TemplateValue:
        return StringValue(node.value)

    def _eval_boolliteral(self, node: BoolLiteral, context: TemplateContext) -> TemplateValue:
        return TRUE if node.value else FALSE

    def _eval_nullliteral(self, node: NullLiteral, context: TemplateContext) -> TemplateValue:
        return NULL

    def _eval_arithmetic(self, node: Arithmetic, context: TemplateContext) -> TemplateValue:
        """Evaluate + - * / between two numbers; anything else is null."""
        left = self._evaluate(node.left, context)
        right = self._evaluate(node.right, context)

        if not isinstance(left, NumberValue) or not isinstance(right, NumberValue):
            return NULL

        return _calculate(node.operator, left.value, right.value)

    def _eval_negate(self, node: Negate, context: TemplateContext) -> TemplateValue:
        operand = self._evaluate(node.operand, context)
        if isinstance(operand, NumberValue):
            return NumberValue(operand.value.copy_negate())
        return NULL

    def _eval_not(self, node: Not, context: TemplateContext) -> TemplateValue:
        operand = self._evaluate(node.operand, context)
        return FALSE if is_truthy(operand) else TRUE

    def _eval_comparison(self, node: Comparison, context: TemplateContext) -> TemplateValue:
        left = self._evaluate(node.left, context)
        right = self._evaluate(node.right, context)
        return TRUE if _compare(node.operator, left, right) else FALSE

    def _eval_logicaland(self, node: LogicalAnd, context: TemplateContext) -> TemplateValue:
        """Return the left value if it is falsy, otherwise the right value."""
        left = self._evaluate(node.left, context)
        if not is_truthy(left):
            return left
        return self._evaluate(node.right, context)

    def _eval_logicalor(self, node: LogicalOr, context: TemplateContext) -> TemplateValue:
        """Return the left value if it is truthy, otherwise the right value."""
        left = self._evaluate(node.left, context)
        if is_truthy(left):
            return left
        return self._evaluate(node.right, context)

    def _eval_coalesce(self, node: Coalesce, context: TemplateContext) -> TemplateValue:
        """Fall back to the right value only when the left value is null."""
        left = self._evaluate(node.left, context)
        if isinstance(left, NullValue):
            return self._evaluate(node.right, context)
        return left

    def _eval_index(self, node: Index, context: TemplateContext) -> TemplateValue:
        target = self._evaluate(node.target, context)
        key = self._evaluate(node.key, context)
        return index_value(target, key, ignore_case=node.member)

    def _eval_filter(self, node: Filter, context: TemplateContext) -> TemplateValue:
        """Apply a registered filter to the evaluated input."""
        template_filter = self.filters.get(node.name)
        value = self._evaluate(node.input, context)
        args = FilterArguments.from_text(
            node.argument,
            {argument.name: argument.value for argument in node.named_arguments},
        )
        return template_filter.apply(value, args, self.locale)


# -----------------------------------------------------------------------------
# Operator helpers
# -----------------------------------------------------------------------------


def _calculate(operator: ArithmeticOperator, left: Decimal, right: Decimal) -> TemplateValue:
    if operator == ArithmeticOperator.ADD:
        result = _DECIMAL_CONTEXT.add(left, right)
    elif operator == ArithmeticOperator.SUBTRACT:
        result = _DECIMAL_CONTEXT.subtract(left, right)
    elif operator == ArithmeticOperator.MULTIPLY:
        result = _DECIMAL_CONTEXT.multiply(left, right)
    elif operator == ArithmeticOperator.DIVIDE:
        if right == 0:
            return NULL
        result = _DECIMAL_CONTEXT.divide(left, right)
    else:
        raise EvaluationError(f"Unknown operator: {operator}")

    if not result.is_finite():
        return NULL
    return NumberValue(result)


def _compare(operator: ComparisonOperator, left: TemplateValue, right: TemplateValue) -> bool:
    """Compare two values.

    Equality holds only between values of the same variant. Ordering is
    defined for number/number and string/string pairs; any other pairing
    is false for every ordered operator.
    """
    if operator == ComparisonOperator.EQUAL:
        return type(left) is type(right) and left == right
    if operator == ComparisonOperator.NOT_EQUAL:
        return not (type(left) is type(right) and left == right)

    if isinstance(left, NumberValue) and isinstance(right, NumberValue):
        a, b = left.value, right.value
    elif isinstance(left, StringValue) and isinstance(right, StringValue):
        a, b = left.value, right.value
    else:
        return False

    if operator == ComparisonOperator.LESS_THAN:
        return a < b
    if operator == ComparisonOperator.LESS_THAN_OR_EQUAL:
        return a <= b
    if operator == ComparisonOperator.GREATER_THAN:
        return a > b
    if operator == ComparisonOperator.GREATER_THAN_OR_EQUAL:
        return a >= b

    raise EvaluationError(f"Unknown operator: {operator}")


# -----------------------------------------------------------------------------
# Convenience functions
# -----------------------------------------------------------------------------


def evaluate(
    expression: str,
    data: Any = None,
    filters: FilterRegistry | None = None,
    locale: Locale | str | None = None,
) -> TemplateValue:
    """Parse and evaluate an expression (uncached).

    Args:
        expression: The expression text, without template delimiters
        data: Plain Python data, a TemplateValue, or a TemplateContext
        filters: Filter registry (defaults to the built-in filters)
        locale: Locale for filters (defaults to "en")

    Returns:
        The resulting value
    """
    ast = parse(expression)
    if not isinstance(data, TemplateContext):
        data = to_value({} if data is None else data)
    return Evaluator(filters, locale).evaluate(ast, data)


def evaluate_bool(
    expression: str,
    data: Any = None,
    filters: FilterRegistry | None = None,
    locale: Locale | str | None = None,
) -> bool:
    """Evaluate an expression and return its truthiness."""
    return is_truthy(evaluate(expression, data, filters, locale))
