"""Errors raised by the template expression engine.

Only two kinds of failure surface to callers:
- ParseError: the expression text is malformed
- EngineError: an unknown filter was referenced, or a property value
  could not be coerced to its target type

Missing data, mismatched operand types and division by zero are not
errors; they evaluate to null (or false for comparisons).
"""


class TemplateError(Exception):
    """Base exception for template engine failures.

    Attributes:
        position: Character offset in the expression, if known
        expression: The offending expression text, if known
    """

    def __init__(
        self,
        message: str,
        position: int | None = None,
        expression: str | None = None,
    ):
        self.message = message
        self.position = position
        self.expression = expression
        super().__init__(self._format(message, position, expression))

    @staticmethod
    def _format(message: str, position: int | None, expression: str | None) -> str:
        parts = [message]
        if position is not None:
            parts.append(f"at position {position}")
        if expression:
            parts.append(f"in expression '{expression}'")
        return " ".join(parts)


class ParseError(TemplateError):
    """Raised when expression text cannot be parsed."""


class EngineError(TemplateError):
    """Raised for template authoring defects detected at render time.

    Attributes:
        filter_name: The unknown filter, for filter lookup failures
        property_name: The property being materialized, for coercion failures
        raw: The text that failed to coerce
    """

    def __init__(
        self,
        message: str,
        *,
        filter_name: str | None = None,
        property_name: str | None = None,
        raw: str | None = None,
        expression: str | None = None,
    ):
        self.filter_name = filter_name
        self.property_name = property_name
        self.raw = raw
        super().__init__(message, expression=expression)
