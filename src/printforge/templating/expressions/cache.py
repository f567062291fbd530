"""Memoization of parsed expressions.

Parsing the same expression text twice returns the same AST instance.
A bare path ("name", "user.name", "items[0].name") bypasses the cache
and is returned as a fresh Path node.
"""

import logging
import threading

from printforge.templating.expressions.parser import (
    DEFAULT_MAX_DEPTH,
    DEFAULT_MAX_LENGTH,
    ASTNode,
    is_simple_path,
    make_path,
    parse,
)

logger = logging.getLogger(__name__)


class ExpressionCache:
    """Thread-safe map from expression text to parsed AST.

    Keys are compared exactly (no trimming or normalization). When
    max_size is reached the cache is cleared before the next insert;
    max_size=0 disables the bound.

    Example:
        cache = ExpressionCache()
        node = cache.parse("price * quantity")
        assert cache.parse("price * quantity") is node
    """

    def __init__(
        self,
        max_size: int = 1024,
        max_length: int = DEFAULT_MAX_LENGTH,
        max_depth: int = DEFAULT_MAX_DEPTH,
    ):
        self.max_size = max_size
        self.max_length = max_length
        self.max_depth = max_depth
        self._entries: dict[str, ASTNode] = {}
        self._lock = threading.Lock()

    def parse(self, source: str) -> ASTNode:
        """Parse source, reusing a previously parsed tree for the same text.

        Raises:
            ParseError: If the expression is malformed
        """
        if is_simple_path(source) and len(source) <= self.max_length:
            return make_path(source, source)

        with self._lock:
            cached = self._entries.get(source)
        if cached is not None:
            return cached

        # Parse outside the lock; a concurrent duplicate parse is harmless
        node = parse(source, max_length=self.max_length, max_depth=self.max_depth)
        logger.debug("Parsed and cached expression %r", source)

        with self._lock:
            if self.max_size and len(self._entries) >= self.max_size:
                logger.debug("Expression cache full (%d entries), clearing", len(self._entries))
                self._entries.clear()
            return self._entries.setdefault(source, node)

    def clear(self) -> None:
        """Drop all cached trees. Primarily for testing."""
        with self._lock:
            self._entries.clear()

    def count(self) -> int:
        with self._lock:
            return len(self._entries)

    def __len__(self) -> int:
        return self.count()

    def __contains__(self, source: object) -> bool:
        with self._lock:
            return source in self._entries
