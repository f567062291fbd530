"""Data context for expression evaluation.

A TemplateContext wraps the root data value with a stack of scopes
(pushed when iterating an array) and the loop variables exposed to
expressions as @index, @first, @last and @key.
"""

from printforge.templating.values import TemplateValue


class TemplateContext:
    """Scoped, read-only view of the render data.

    Usage:
        ctx = TemplateContext(to_value({"items": [...]}))
        ctx.push_scope(item)
        ctx.set_loop_variables(0, 3)
    """

    def __init__(self, root: TemplateValue):
        if not isinstance(root, TemplateValue):
            raise TypeError(f"Context root must be a TemplateValue, got {type(root).__name__}")
        self._scopes: list[TemplateValue] = [root]
        self.loop_index: int | None = None
        self.is_first = False
        self.is_last = False
        self.loop_key: str | None = None

    @property
    def root(self) -> TemplateValue:
        return self._scopes[0]

    @property
    def current_scope(self) -> TemplateValue:
        return self._scopes[-1]

    @property
    def depth(self) -> int:
        return len(self._scopes)

    def push_scope(self, scope: TemplateValue) -> None:
        if not isinstance(scope, TemplateValue):
            raise TypeError(f"Scope must be a TemplateValue, got {type(scope).__name__}")
        self._scopes.append(scope)

    def pop_scope(self) -> TemplateValue:
        if len(self._scopes) <= 1:
            raise RuntimeError("Cannot pop the root scope")
        return self._scopes.pop()

    def set_loop_variables(self, index: int, count: int) -> None:
        """Set @index/@first/@last for the current iteration."""
        if count <= 0:
            raise ValueError(f"Loop count must be greater than zero, got {count}")
        if not 0 <= index < count:
            raise ValueError(f"Loop index ({index}) must be in range 0..{count - 1}")
        self.loop_index = index
        self.is_first = index == 0
        self.is_last = index == count - 1

    def set_loop_key(self, key: str) -> None:
        self.loop_key = key.strip()

    def clear_loop_variables(self) -> None:
        self.loop_index = None
        self.is_first = False
        self.is_last = False
        self.loop_key = None
