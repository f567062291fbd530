"""Filter registry for template expressions.

Filters post-process an evaluated value (e.g., `total | currency`,
`name | truncate:20 suffix:'~' fromEnd`). Each filter is registered with
metadata for documentation alongside its implementation.

Registries are plain instances: build one per engine, register the
built-ins plus any host filters, then share it read-only.
"""

import logging
from collections.abc import Callable, Mapping
from dataclasses import dataclass, field
from enum import Enum
from types import MappingProxyType
from typing import Any, Protocol

from babel import Locale

from printforge.templating.errors import EngineError
from printforge.templating.values import StringValue, TemplateValue

logger = logging.getLogger(__name__)


class FilterCategory(Enum):
    """Categories for organizing filters in documentation."""

    NUMBER = "number"
    TEXT = "text"
    LOOKUP = "lookup"


class FilterArguments:
    """Arguments supplied to a filter after its name.

    Attributes:
        positional: The value after "name:", or None if absent
        named: Named arguments in source order; a value of None marks a
            bare flag ("fromEnd"), which is distinct from an explicit
            empty value ("suffix:''")
    """

    __slots__ = ("positional", "named")

    def __init__(
        self,
        positional: TemplateValue | None = None,
        named: Mapping[str, TemplateValue | None] | None = None,
    ):
        self.positional = positional
        self.named = MappingProxyType(dict(named or {}))

    @classmethod
    def from_text(
        cls,
        positional: str | None = None,
        named: Mapping[str, str | None] | None = None,
    ) -> "FilterArguments":
        """Build arguments from raw filter text as written in an expression."""
        return cls(
            None if positional is None else StringValue(positional),
            {
                key: None if value is None else StringValue(value)
                for key, value in (named or {}).items()
            },
        )

    def get_named(self, name: str, default: TemplateValue | None = None) -> TemplateValue | None:
        """Return the value of a named argument, or default when absent or a flag."""
        value = self.named.get(name)
        return default if value is None else value

    def has_flag(self, name: str) -> bool:
        """Return True only if name was given as a bare flag with no value."""
        return name in self.named and self.named[name] is None

    def __repr__(self) -> str:
        return f"FilterArguments(positional={self.positional!r}, named={dict(self.named)!r})"


EMPTY_ARGUMENTS = FilterArguments()


class TemplateFilter(Protocol):
    """Anything with a name and an apply() method can be registered."""

    name: str

    def apply(self, value: TemplateValue, args: FilterArguments, locale: Locale) -> TemplateValue:
        ...


@dataclass
class FilterDefinition:
    """Complete definition of a template filter.

    Attributes:
        name: Filter name as used after '|'
        description: Human-readable description
        category: Category for documentation organization
        implementation: Callable taking (value, args, locale)
        examples: Example expressions using this filter
    """

    name: str
    description: str
    category: FilterCategory
    implementation: Callable[[TemplateValue, FilterArguments, Locale], TemplateValue]
    examples: list[str] = field(default_factory=list)

    def apply(self, value: TemplateValue, args: FilterArguments, locale: Locale) -> TemplateValue:
        return self.implementation(value, args, locale)

    def to_dict(self) -> dict[str, Any]:
        """Export for documentation output."""
        return {
            "name": self.name,
            "description": self.description,
            "category": self.category.value,
            "examples": self.examples,
        }


class FilterRegistry:
    """Case-insensitive registry of template filters.

    Registering a name that already exists replaces the earlier filter.

    Example:
        registry = FilterRegistry.create_default()
        registry.register(FilterDefinition(
            name="shout",
            description="Appends an exclamation mark",
            category=FilterCategory.TEXT,
            implementation=lambda value, args, locale: ...,
        ))

        currency = registry.get("Currency")
    """

    def __init__(self) -> None:
        self._filters: dict[str, TemplateFilter] = {}

    @classmethod
    def create_default(cls) -> "FilterRegistry":
        """Create a registry pre-populated with the built-in filters."""
        from printforge.templating.filters.builtins import register_all_builtins

        registry = cls()
        register_all_builtins(registry)
        return registry

    def register(self, template_filter: TemplateFilter) -> None:
        """Register a filter, replacing any filter with the same name.

        Args:
            template_filter: A FilterDefinition or any object with name and apply()
        """
        key = template_filter.name.casefold()
        if key in self._filters:
            logger.debug("Filter '%s' overrides an existing registration", template_filter.name)
        self._filters[key] = template_filter

    def get(self, name: str) -> TemplateFilter:
        """Get a filter by name (case-insensitive).

        Raises:
            EngineError: If the filter is not registered
        """
        template_filter = self._filters.get(name.casefold())
        if template_filter is None:
            raise EngineError(f"Unknown filter '{name}'", filter_name=name)
        return template_filter

    def is_registered(self, name: str) -> bool:
        """Check if a filter is registered."""
        return name.casefold() in self._filters

    def list_all(self) -> list[TemplateFilter]:
        """List all registered filters, in registration order."""
        return list(self._filters.values())

    def export_documentation(self) -> dict[str, Any]:
        """Export documentation for every registered filter.

        Filters registered without metadata are listed by name only.

        Returns:
            Dict with filter documentation keyed by name and grouped by category
        """
        filters: dict[str, dict[str, Any]] = {}
        by_category: dict[str, list[str]] = {}
        for template_filter in self._filters.values():
            if isinstance(template_filter, FilterDefinition):
                doc = template_filter.to_dict()
            else:
                doc = {"name": template_filter.name, "description": "", "category": None, "examples": []}
            filters[template_filter.name] = doc
            if doc["category"] is not None:
                by_category.setdefault(doc["category"], []).append(template_filter.name)

        return {"filters": filters, "byCategory": by_category}

    def clear(self) -> None:
        """Clear all registrations. Primarily for testing."""
        self._filters.clear()

    def __contains__(self, name: object) -> bool:
        return isinstance(name, str) and self.is_registered(name)

    def __len__(self) -> int:
        return len(self._filters)
