"""Inline expression language for template properties.

This module provides:
- Lexer: Tokenizes expression strings
- Parser: Produces AST from tokens
- ExpressionCache: Reuses parsed trees for identical expression text
- Evaluator: Evaluates AST against a template context
"""

from printforge.templating.expressions.cache import ExpressionCache
from printforge.templating.expressions.evaluator import (
    EvaluationError,
    Evaluator,
    evaluate,
    evaluate_bool,
)
from printforge.templating.expressions.lexer import Lexer, LexerError, Token, TokenType
from printforge.templating.expressions.parser import (
    ASTNode,
    Arithmetic,
    ArithmeticOperator,
    BoolLiteral,
    Coalesce,
    Comparison,
    ComparisonOperator,
    Filter,
    FilterNamedArgument,
    Index,
    LogicalAnd,
    LogicalOr,
    Negate,
    Not,
    NullLiteral,
    NumberLiteral,
    Parser,
    Path,
    StringLiteral,
    parse,
)
from printforge.templating.expressions.paths import index_value, resolve_path

__all__ = [
    # Cache
    "ExpressionCache",
    # Evaluator
    "EvaluationError",
    "Evaluator",
    "evaluate",
    "evaluate_bool",
    # Lexer
    "Lexer",
    "LexerError",
    "Token",
    "TokenType",
    # Parser
    "ASTNode",
    "Arithmetic",
    "ArithmeticOperator",
    "BoolLiteral",
    "Coalesce",
    "Comparison",
    "ComparisonOperator",
    "Filter",
    "FilterNamedArgument",
    "Index",
    "LogicalAnd",
    "LogicalOr",
    "Negate",
    "Not",
    "NullLiteral",
    "NumberLiteral",
    "Parser",
    "Path",
    "StringLiteral",
    "parse",
    # Paths
    "index_value",
    "resolve_path",
]
