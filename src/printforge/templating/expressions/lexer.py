"""Lexer/tokenizer for inline template expressions.

Converts expression strings into a stream of tokens for the parser.
Tokens are produced on demand so the parser can switch to raw scanning
for filter arguments (which are text, not expressions).

Token types:
- Literals: NUMBER, STRING, BOOLEAN, NULL
- Paths: PATH (user.name, items[0].price, my-var, @index, .)
- Operators: arithmetic, comparison, logical, null-coalesce, filter pipe
- Punctuation: LPAREN, RPAREN, LBRACKET, RBRACKET, DOT
"""

import re
from dataclasses import dataclass
from decimal import Decimal
from enum import Enum, auto
from typing import Iterator

from printforge.templating.errors import ParseError


class TokenType(Enum):
    """Types of tokens in the expression language."""

    # Literals
    NUMBER = auto()
    STRING = auto()
    BOOLEAN = auto()
    NULL = auto()

    # Variable references
    PATH = auto()

    # Comparison operators
    EQ = auto()          # ==
    NEQ = auto()         # !=
    LT = auto()          # <
    LTE = auto()         # <=
    GT = auto()          # >
    GTE = auto()         # >=

    # Logical operators
    AND = auto()         # &&
    OR = auto()          # ||
    NOT = auto()         # !
    COALESCE = auto()    # ??

    # Arithmetic operators
    PLUS = auto()        # +
    MINUS = auto()       # -
    MULTIPLY = auto()    # *
    DIVIDE = auto()      # /

    # Filters
    PIPE = auto()        # |

    # Punctuation
    LPAREN = auto()      # (
    RPAREN = auto()      # )
    LBRACKET = auto()    # [
    RBRACKET = auto()    # ]
    DOT = auto()         # . before a member name following an index

    # End of input
    EOF = auto()


@dataclass(frozen=True)
class Token:
    """A single token from the lexer.

    Attributes:
        type: The token type
        value: The token's value (Decimal, string content, path text, etc.)
        position: Character position in the source string
    """

    type: TokenType
    value: str | Decimal | bool | None
    position: int

    def __repr__(self) -> str:
        return f"Token({self.type.name}, {self.value!r}, pos={self.position})"


class LexerError(ParseError):
    """Error during lexical analysis."""


_NAME = r"[A-Za-z_@][A-Za-z0-9_@]*(?:-[A-Za-z0-9_@]+)*"

# A path is a name followed by .name segments and numeric [N] indexes.
# Hyphens join name characters only ("my-var"); "a - b" is subtraction.
PATH_PATTERN = re.compile(rf"{_NAME}(?:\.{_NAME}|\[\d+\])*")

# Token patterns (order matters - longer matches first)
TOKEN_PATTERNS = [
    # Multi-character operators (before single character)
    (r"==", TokenType.EQ),
    (r"!=", TokenType.NEQ),
    (r"<=", TokenType.LTE),
    (r">=", TokenType.GTE),
    (r"&&", TokenType.AND),
    (r"\|\|", TokenType.OR),
    (r"\?\?", TokenType.COALESCE),

    # Single character operators
    (r"<", TokenType.LT),
    (r">", TokenType.GT),
    (r"!", TokenType.NOT),
    (r"\+", TokenType.PLUS),
    (r"-", TokenType.MINUS),
    (r"\*", TokenType.MULTIPLY),
    (r"/", TokenType.DIVIDE),
    (r"\|", TokenType.PIPE),

    # Punctuation
    (r"\(", TokenType.LPAREN),
    (r"\)", TokenType.RPAREN),
    (r"\[", TokenType.LBRACKET),
    (r"\]", TokenType.RBRACKET),
    (r"\.(?=[A-Za-z_@])", TokenType.DOT),

    # Numbers (integer and decimal)
    (r"\d+\.\d+", TokenType.NUMBER),
    (r"\d+", TokenType.NUMBER),

    # Strings (double or single quoted)
    (r'"([^"\\]|\\.)*"', TokenType.STRING),
    (r"'([^'\\]|\\.)*'", TokenType.STRING),

    # Paths, keywords, and the current-scope reference "."
    (PATH_PATTERN.pattern, TokenType.PATH),
    (r"\.", TokenType.PATH),
]

_COMPILED_PATTERNS = [
    (re.compile(pattern), token_type) for pattern, token_type in TOKEN_PATTERNS
]

# Keywords only match a whole path token: "trueName" stays a path
KEYWORDS = {
    "true": (TokenType.BOOLEAN, True),
    "false": (TokenType.BOOLEAN, False),
    "null": (TokenType.NULL, None),
}

_FILTER_NAME = re.compile(r"[A-Za-z0-9_]+")
_VALID_FILTER_NAME = re.compile(r"[A-Za-z][A-Za-z0-9]*")
_ARGUMENT_NAME = re.compile(r"[A-Za-z_][A-Za-z0-9_]*")
_UNQUOTED_ARGUMENT = re.compile(r"[^\s|)\]]+")


class Lexer:
    """Tokenizer for the expression language.

    Usage:
        lexer = Lexer('status == "paid" && total > 0')
        for token in lexer:
            print(token)
    """

    def __init__(self, source: str):
        self.source = source
        self.position = 0

    def __iter__(self) -> Iterator[Token]:
        """Iterate over all tokens in the source."""
        while True:
            token = self.next_token()
            yield token
            if token.type == TokenType.EOF:
                break

    def next_token(self) -> Token:
        """Get the next token from the source."""
        self.skip_whitespace()
        if self.position >= len(self.source):
            return Token(TokenType.EOF, None, self.position)

        for pattern, token_type in _COMPILED_PATTERNS:
            match = pattern.match(self.source, self.position)
            if not match:
                continue

            value = match.group()
            start = self.position
            self.position = match.end()

            if token_type == TokenType.NUMBER:
                return Token(token_type, Decimal(value), start)

            if token_type == TokenType.STRING:
                return Token(token_type, _unescape_string(value[1:-1]), start)

            if token_type == TokenType.PATH and value in KEYWORDS:
                keyword_type, keyword_value = KEYWORDS[value]
                return Token(keyword_type, keyword_value, start)

            return Token(token_type, value, start)

        char = self.source[self.position]
        if char in "\"'":
            raise LexerError(
                "Unterminated string literal",
                position=self.position,
                expression=self.source,
            )
        raise LexerError(
            f"Unexpected character '{char}'",
            position=self.position,
            expression=self.source,
        )

    def tokenize(self) -> list[Token]:
        """Tokenize the entire source and return list of tokens."""
        return list(self)

    # -------------------------------------------------------------------------
    # Raw scanning for filter segments: "| name:arg key:value flag"
    # -------------------------------------------------------------------------

    def skip_whitespace(self) -> None:
        while self.position < len(self.source) and self.source[self.position].isspace():
            self.position += 1

    def peek_char(self) -> str:
        if self.position < len(self.source):
            return self.source[self.position]
        return ""

    def read_filter_name(self) -> str:
        """Read the filter name following a '|'."""
        self.skip_whitespace()
        match = _FILTER_NAME.match(self.source, self.position)
        if not match:
            raise LexerError(
                "Expected filter name after '|'",
                position=self.position,
                expression=self.source,
            )
        name = match.group()
        if not _VALID_FILTER_NAME.fullmatch(name):
            raise LexerError(
                f"Invalid filter name '{name}'. Filter names must be alphanumeric",
                position=self.position,
                expression=self.source,
            )
        self.position = match.end()
        return name

    def read_filter_argument(self) -> str:
        """Read a filter argument value following ':'.

        Whitespace after the colon is skipped. Quoted arguments are
        unescaped; unquoted arguments run until whitespace, '|', ')' or ']'.
        """
        self.skip_whitespace()
        if self.position >= len(self.source):
            raise LexerError(
                "Expected filter argument after ':'",
                position=self.position,
                expression=self.source,
            )

        char = self.source[self.position]
        if char in "\"'":
            pattern = r'"([^"\\]|\\.)*"' if char == '"' else r"'([^'\\]|\\.)*'"
            match = re.compile(pattern).match(self.source, self.position)
            if not match:
                raise LexerError(
                    "Unterminated string in filter argument",
                    position=self.position,
                    expression=self.source,
                )
            self.position = match.end()
            return _unescape_string(match.group()[1:-1])

        match = _UNQUOTED_ARGUMENT.match(self.source, self.position)
        if not match:
            raise LexerError(
                "Expected filter argument after ':'",
                position=self.position,
                expression=self.source,
            )
        self.position = match.end()
        return match.group()

    def read_named_argument(self) -> tuple[str, str | None] | None:
        """Read one 'key:value' pair or bare 'flag' after a filter.

        Returns None (consuming nothing) when the next token is not a name.
        """
        start = self.position
        self.skip_whitespace()
        match = _ARGUMENT_NAME.match(self.source, self.position)
        if not match:
            self.position = start
            return None

        self.position = match.end()
        name = match.group()
        if self.peek_char() == ":":
            self.position += 1
            return name, self.read_filter_argument()
        return name, None


def _unescape_string(s: str) -> str:
    """Process escape sequences in a string."""
    result = []
    i = 0
    while i < len(s):
        if s[i] == "\\" and i + 1 < len(s):
            next_char = s[i + 1]
            if next_char == "n":
                result.append("\n")
            elif next_char == "t":
                result.append("\t")
            else:
                # \\, \" and \' map to themselves, as does anything unknown
                result.append(next_char)
            i += 2
        else:
            result.append(s[i])
            i += 1
    return "".join(result)
