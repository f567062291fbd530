"""Engine configuration."""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass

from babel import Locale, UnknownLocaleError

DEFAULT_LOCALE = "en"


def parse_locale(identifier: Locale | str | None, default: str = DEFAULT_LOCALE) -> Locale:
    """Parse a locale identifier such as "de_DE" or "de-DE".

    Raises:
        ValueError: If the identifier is malformed or unknown to Babel
    """
    if isinstance(identifier, Locale):
        return identifier
    text = (identifier or default).strip().replace("-", "_")
    try:
        return Locale.parse(text)
    except UnknownLocaleError as e:
        raise ValueError(f"Unknown locale: {identifier}") from e


def _int_from_env(name: str, default: int) -> int:
    raw = os.environ.get(name)
    if raw is None or not raw.strip():
        return default
    try:
        value = int(raw)
    except ValueError:
        raise ValueError(f"{name} must be an integer, got {raw!r}") from None
    if value < 0:
        raise ValueError(f"{name} must not be negative, got {value}")
    return value


@dataclass
class EngineConfig:
    """Template engine configuration.

    Attributes:
        locale: Default locale for filters and number parsing
        max_expression_length: Longer expressions are rejected at parse time
        max_expression_depth: Deeper nesting is rejected at parse time
        cache_size: Parsed expressions kept before the cache is cleared (0 = unbounded)
        log_level: Logging level name used by the CLI
    """

    locale: str = DEFAULT_LOCALE
    max_expression_length: int = 2000
    max_expression_depth: int = 50
    cache_size: int = 1024
    log_level: str = "WARNING"

    @classmethod
    def from_env(cls) -> EngineConfig:
        """Create config from environment variables.

        Reads PRINTFORGE_LOCALE, PRINTFORGE_MAX_EXPRESSION_LENGTH,
        PRINTFORGE_MAX_EXPRESSION_DEPTH, PRINTFORGE_CACHE_SIZE and
        PRINTFORGE_LOG_LEVEL; unset variables keep their defaults.

        Raises:
            ValueError: If a variable holds an invalid value
        """
        defaults = cls()
        locale = os.environ.get("PRINTFORGE_LOCALE") or defaults.locale
        try:
            parse_locale(locale)
        except ValueError as e:
            raise ValueError(f"PRINTFORGE_LOCALE: {e}") from e

        log_level = (os.environ.get("PRINTFORGE_LOG_LEVEL") or defaults.log_level).upper()
        if not isinstance(logging.getLevelName(log_level), int):
            raise ValueError(f"PRINTFORGE_LOG_LEVEL must be a logging level name, got {log_level!r}")

        return cls(
            locale=locale,
            max_expression_length=_int_from_env(
                "PRINTFORGE_MAX_EXPRESSION_LENGTH", defaults.max_expression_length
            ),
            max_expression_depth=_int_from_env(
                "PRINTFORGE_MAX_EXPRESSION_DEPTH", defaults.max_expression_depth
            ),
            cache_size=_int_from_env("PRINTFORGE_CACHE_SIZE", defaults.cache_size),
            log_level=log_level,
        )
