"""Parser for inline template expressions.

Converts expression text into an Abstract Syntax Tree (AST) using
precedence climbing (a Pratt parser) over the lexer's token stream.

Operator Precedence (lowest to highest):
1. |  (filter pipe)
2. ?? (null coalesce, right associative)
3. || (or)
4. && (and)
5. == != < <= > >= (non-associative: "a < b < c" is rejected)
6. + -
7. * /
8. ! - (unary)
9. paths, literals, (grouping), a[b] (index)
"""

from dataclasses import dataclass, field
from decimal import Decimal
from enum import Enum, IntEnum

from printforge.templating.errors import ParseError
from printforge.templating.expressions.lexer import (
    KEYWORDS,
    PATH_PATTERN,
    Lexer,
    Token,
    TokenType,
)
from printforge.templating.expressions.paths import split_path

DEFAULT_MAX_LENGTH = 2000
DEFAULT_MAX_DEPTH = 50


# -----------------------------------------------------------------------------
# AST Node Types
# -----------------------------------------------------------------------------


class ArithmeticOperator(Enum):
    ADD = "+"
    SUBTRACT = "-"
    MULTIPLY = "*"
    DIVIDE = "/"


class ComparisonOperator(Enum):
    EQUAL = "=="
    NOT_EQUAL = "!="
    LESS_THAN = "<"
    GREATER_THAN = ">"
    LESS_THAN_OR_EQUAL = "<="
    GREATER_THAN_OR_EQUAL = ">="


@dataclass(frozen=True)
class ASTNode:
    """Base class for AST nodes."""
    pass


@dataclass(frozen=True)
class Path(ASTNode):
    """A variable reference (e.g., user.name, items[0].price, @index)."""
    path: str


@dataclass(frozen=True)
class NumberLiteral(ASTNode):
    value: Decimal


@dataclass(frozen=True)
class StringLiteral(ASTNode):
    value: str


@dataclass(frozen=True)
class BoolLiteral(ASTNode):
    value: bool


@dataclass(frozen=True)
class NullLiteral(ASTNode):
    pass


@dataclass(frozen=True)
class Arithmetic(ASTNode):
    """Binary arithmetic (e.g., price * quantity)."""
    operator: ArithmeticOperator
    left: ASTNode
    right: ASTNode


@dataclass(frozen=True)
class Negate(ASTNode):
    """Unary minus (e.g., -discount)."""
    operand: ASTNode


@dataclass(frozen=True)
class Not(ASTNode):
    """Logical NOT (e.g., !paid)."""
    operand: ASTNode


@dataclass(frozen=True)
class Comparison(ASTNode):
    """Binary comparison (e.g., status == "paid")."""
    operator: ComparisonOperator
    left: ASTNode
    right: ASTNode


@dataclass(frozen=True)
class LogicalAnd(ASTNode):
    left: ASTNode
    right: ASTNode


@dataclass(frozen=True)
class LogicalOr(ASTNode):
    left: ASTNode
    right: ASTNode


@dataclass(frozen=True)
class Coalesce(ASTNode):
    """Null coalesce (e.g., name ?? "Guest")."""
    left: ASTNode
    right: ASTNode


@dataclass(frozen=True)
class Index(ASTNode):
    """Computed key access (e.g., labels[lang], rows[i]).

    member marks a dotted name after an index (labels[lang].short), which
    matches object keys case-insensitively like a plain path.
    """
    target: ASTNode
    key: ASTNode
    member: bool = False


@dataclass(frozen=True)
class FilterNamedArgument:
    """A named filter argument. A value of None marks a bare flag."""
    name: str
    value: str | None = None


@dataclass(frozen=True)
class Filter(ASTNode):
    """A filter application (e.g., name | truncate:30 suffix:'..' fromEnd)."""
    name: str
    input: ASTNode
    argument: str | None = None
    named_arguments: tuple[FilterNamedArgument, ...] = field(default_factory=tuple)


# -----------------------------------------------------------------------------
# Parser
# -----------------------------------------------------------------------------


class Precedence(IntEnum):
    NONE = 0
    FILTER = 1
    COALESCE = 2
    OR = 3
    AND = 4
    COMPARISON = 5
    ADDITIVE = 6
    MULTIPLICATIVE = 7
    UNARY = 8


# token type -> (precedence, right associative)
_INFIX: dict[TokenType, tuple[Precedence, bool]] = {
    TokenType.PIPE: (Precedence.FILTER, False),
    TokenType.COALESCE: (Precedence.COALESCE, True),
    TokenType.OR: (Precedence.OR, False),
    TokenType.AND: (Precedence.AND, False),
    TokenType.EQ: (Precedence.COMPARISON, False),
    TokenType.NEQ: (Precedence.COMPARISON, False),
    TokenType.LT: (Precedence.COMPARISON, False),
    TokenType.LTE: (Precedence.COMPARISON, False),
    TokenType.GT: (Precedence.COMPARISON, False),
    TokenType.GTE: (Precedence.COMPARISON, False),
    TokenType.PLUS: (Precedence.ADDITIVE, False),
    TokenType.MINUS: (Precedence.ADDITIVE, False),
    TokenType.MULTIPLY: (Precedence.MULTIPLICATIVE, False),
    TokenType.DIVIDE: (Precedence.MULTIPLICATIVE, False),
}

_COMPARISON_OPERATORS = {
    TokenType.EQ: ComparisonOperator.EQUAL,
    TokenType.NEQ: ComparisonOperator.NOT_EQUAL,
    TokenType.LT: ComparisonOperator.LESS_THAN,
    TokenType.LTE: ComparisonOperator.LESS_THAN_OR_EQUAL,
    TokenType.GT: ComparisonOperator.GREATER_THAN,
    TokenType.GTE: ComparisonOperator.GREATER_THAN_OR_EQUAL,
}

_ARITHMETIC_OPERATORS = {
    TokenType.PLUS: ArithmeticOperator.ADD,
    TokenType.MINUS: ArithmeticOperator.SUBTRACT,
    TokenType.MULTIPLY: ArithmeticOperator.MULTIPLY,
    TokenType.DIVIDE: ArithmeticOperator.DIVIDE,
}


class Parser:
    """Precedence-climbing parser for the expression language.

    Usage:
        parser = Parser('price * quantity | currency')
        ast = parser.parse()
    """

    def __init__(
        self,
        source: str,
        max_length: int = DEFAULT_MAX_LENGTH,
        max_depth: int = DEFAULT_MAX_DEPTH,
    ):
        self.source = source
        self.max_length = max_length
        self.max_depth = max_depth
        self.lexer = Lexer(source)
        self._depth = 0
        self._token: Token | None = None

    def parse(self) -> ASTNode:
        """Parse the expression and return the AST root."""
        if not self.source or not self.source.strip():
            raise ParseError("Empty expression", expression=self.source)

        if len(self.source) > self.max_length:
            raise ParseError(
                f"Expression length ({len(self.source)}) exceeds maximum ({self.max_length})",
                expression=self.source[:100] + "...",
            )

        self._token = self.lexer.next_token()
        ast = self._parse_expression(Precedence.NONE)

        if not self._is_at_end():
            raise ParseError(
                f"Unexpected token '{self._current().value}'",
                position=self._current().position,
                expression=self.source,
            )

        return ast

    # -------------------------------------------------------------------------
    # Helper methods
    # -------------------------------------------------------------------------

    def _current(self) -> Token:
        assert self._token is not None
        return self._token

    def _is_at_end(self) -> bool:
        return self._current().type == TokenType.EOF

    def _advance(self) -> Token:
        """Consume and return current token."""
        token = self._current()
        self._token = self.lexer.next_token()
        return token

    def _match(self, *types: TokenType) -> bool:
        return self._current().type in types

    def _consume(self, token_type: TokenType, message: str) -> Token:
        """Consume a token of the expected type, or raise error."""
        if self._current().type == token_type:
            return self._advance()
        raise ParseError(message, position=self._current().position, expression=self.source)

    # -------------------------------------------------------------------------
    # Precedence climbing
    # -------------------------------------------------------------------------

    def _enter(self) -> None:
        """Count one more level of tree height, enforcing max_depth."""
        self._depth += 1
        if self._depth > self.max_depth:
            raise ParseError(
                f"Expression nesting depth exceeds maximum ({self.max_depth})",
                expression=self.source,
            )

    def _parse_expression(self, min_precedence: Precedence) -> ASTNode:
        # Each operator folded into a left-deep chain adds a level as well
        entered = 1
        self._enter()

        try:
            left = self._parse_prefix()
            left_is_comparison = False

            while True:
                entry = _INFIX.get(self._current().type)
                if entry is None:
                    break

                precedence, right_associative = entry
                if precedence < min_precedence or (
                    precedence == min_precedence and not right_associative
                ):
                    break

                if precedence == Precedence.COMPARISON and left_is_comparison:
                    raise ParseError(
                        "Chained comparisons are not supported; "
                        "combine comparisons with && or ||",
                        position=self._current().position,
                        expression=self.source,
                    )

                entered += 1
                self._enter()
                left = self._parse_infix(left, precedence)
                left_is_comparison = precedence == Precedence.COMPARISON

            return left
        finally:
            self._depth -= entered

    def _parse_prefix(self) -> ASTNode:
        token = self._current()

        if token.type == TokenType.MINUS:
            self._advance()
            return Negate(self._parse_expression(Precedence.UNARY))

        if token.type == TokenType.NOT:
            self._advance()
            return Not(self._parse_expression(Precedence.UNARY))

        if token.type == TokenType.NUMBER:
            self._advance()
            return NumberLiteral(token.value)

        if token.type == TokenType.STRING:
            self._advance()
            return StringLiteral(token.value)

        if token.type == TokenType.BOOLEAN:
            self._advance()
            return BoolLiteral(token.value)

        if token.type == TokenType.NULL:
            self._advance()
            return NullLiteral()

        if token.type == TokenType.PATH:
            self._advance()
            return self._parse_postfix(make_path(token.value, self.source))

        if token.type == TokenType.LPAREN:
            self._advance()
            expr = self._parse_expression(Precedence.NONE)
            self._consume(TokenType.RPAREN, "Missing closing parenthesis")
            return self._parse_postfix(expr)

        if token.type == TokenType.EOF:
            raise ParseError(
                "Unexpected end of expression",
                position=token.position,
                expression=self.source,
            )

        raise ParseError(
            f"Unexpected token '{token.value}'",
            position=token.position,
            expression=self.source,
        )

    def _parse_postfix(self, expr: ASTNode) -> ASTNode:
        """Parse index access a[b] and member names following an index."""
        entered = 0
        try:
            while True:
                if self._match(TokenType.LBRACKET):
                    self._advance()
                    entered += 1
                    self._enter()
                    key = self._parse_expression(Precedence.NONE)
                    self._consume(TokenType.RBRACKET, "Expected ']' after index")
                    expr = Index(expr, key)

                elif self._match(TokenType.DOT):
                    self._advance()
                    member = self._consume(TokenType.PATH, "Expected name after '.'")
                    for segment in split_path(str(member.value)):
                        entered += 1
                        self._enter()
                        if isinstance(segment, int):
                            expr = Index(expr, NumberLiteral(Decimal(segment)))
                        else:
                            expr = Index(expr, StringLiteral(segment), member=True)

                else:
                    return expr
        finally:
            self._depth -= entered

    def _parse_infix(self, left: ASTNode, precedence: Precedence) -> ASTNode:
        token = self._current()

        if token.type == TokenType.PIPE:
            return self._parse_filter(left)

        self._advance()

        if token.type == TokenType.COALESCE:
            return Coalesce(left, self._parse_expression(precedence))

        if token.type == TokenType.OR:
            return LogicalOr(left, self._parse_expression(precedence))

        if token.type == TokenType.AND:
            return LogicalAnd(left, self._parse_expression(precedence))

        if token.type in _COMPARISON_OPERATORS:
            right = self._parse_expression(precedence)
            return Comparison(_COMPARISON_OPERATORS[token.type], left, right)

        right = self._parse_expression(precedence)
        return Arithmetic(_ARITHMETIC_OPERATORS[token.type], left, right)

    def _parse_filter(self, input_expr: ASTNode) -> Filter:
        """Parse "| name[:arg] [key:value | flag]*".

        The current token is the pipe, so the lexer sits just after it;
        the filter segment is scanned as raw text before resuming tokens.
        """
        name = self.lexer.read_filter_name()

        argument: str | None = None
        if self.lexer.peek_char() == ":":
            self.lexer.position += 1
            argument = self.lexer.read_filter_argument()

        named: list[FilterNamedArgument] = []
        while (pair := self.lexer.read_named_argument()) is not None:
            named.append(FilterNamedArgument(*pair))

        self._token = self.lexer.next_token()
        return Filter(name, input_expr, argument, tuple(named))


def make_path(text: str, source: str) -> Path:
    try:
        split_path(text)
    except ParseError as e:
        raise ParseError(e.message, expression=source) from e
    return Path(text)


def is_simple_path(source: str) -> bool:
    """Return True if source is one bare path with no operators."""
    return PATH_PATTERN.fullmatch(source) is not None and source not in KEYWORDS


def parse(
    source: str,
    max_length: int = DEFAULT_MAX_LENGTH,
    max_depth: int = DEFAULT_MAX_DEPTH,
) -> ASTNode:
    """Convenience function to parse an expression string (uncached).

    Args:
        source: The expression text, without template delimiters

    Returns:
        The AST root node

    Raises:
        ParseError: If the expression is malformed
    """
    return Parser(source, max_length=max_length, max_depth=max_depth).parse()
