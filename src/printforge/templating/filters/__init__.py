"""Filters applied with '|' in template expressions."""

from printforge.templating.filters.builtins import register_all_builtins
from printforge.templating.filters.registry import (
    EMPTY_ARGUMENTS,
    FilterArguments,
    FilterCategory,
    FilterDefinition,
    FilterRegistry,
    TemplateFilter,
)

__all__ = [
    "EMPTY_ARGUMENTS",
    "FilterArguments",
    "FilterCategory",
    "FilterDefinition",
    "FilterRegistry",
    "TemplateFilter",
    "register_all_builtins",
]
