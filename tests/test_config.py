"""Tests for engine configuration."""

import pytest
from babel import Locale

from printforge.config import EngineConfig, parse_locale

ENV_VARS = [
    "PRINTFORGE_LOCALE",
    "PRINTFORGE_MAX_EXPRESSION_LENGTH",
    "PRINTFORGE_MAX_EXPRESSION_DEPTH",
    "PRINTFORGE_CACHE_SIZE",
    "PRINTFORGE_LOG_LEVEL",
]


@pytest.fixture
def clean_env(monkeypatch):
    for name in ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    return monkeypatch


class TestParseLocale:
    """Tests for parse_locale."""

    def test_underscore_and_hyphen(self):
        assert parse_locale("de_DE") == Locale("de", "DE")
        assert parse_locale("de-DE") == Locale("de", "DE")

    def test_none_uses_default(self):
        assert parse_locale(None) == Locale("en")
        assert parse_locale(None, default="fr") == Locale("fr")

    def test_locale_passes_through(self):
        locale = Locale("ru")
        assert parse_locale(locale) is locale

    def test_unknown_locale(self):
        with pytest.raises(ValueError, match="Unknown locale"):
            parse_locale("zz_ZZ")


class TestEngineConfig:
    """Tests for EngineConfig.from_env."""

    def test_defaults(self, clean_env):
        config = EngineConfig.from_env()

        assert config == EngineConfig()
        assert config.locale == "en"
        assert config.max_expression_length == 2000
        assert config.max_expression_depth == 50
        assert config.cache_size == 1024
        assert config.log_level == "WARNING"

    def test_reads_environment(self, clean_env):
        clean_env.setenv("PRINTFORGE_LOCALE", "de_DE")
        clean_env.setenv("PRINTFORGE_MAX_EXPRESSION_LENGTH", "500")
        clean_env.setenv("PRINTFORGE_MAX_EXPRESSION_DEPTH", "10")
        clean_env.setenv("PRINTFORGE_CACHE_SIZE", "0")
        clean_env.setenv("PRINTFORGE_LOG_LEVEL", "debug")

        config = EngineConfig.from_env()

        assert config.locale == "de_DE"
        assert config.max_expression_length == 500
        assert config.max_expression_depth == 10
        assert config.cache_size == 0
        assert config.log_level == "DEBUG"

    def test_blank_values_keep_defaults(self, clean_env):
        clean_env.setenv("PRINTFORGE_CACHE_SIZE", "  ")
        assert EngineConfig.from_env().cache_size == 1024

    def test_invalid_integer(self, clean_env):
        clean_env.setenv("PRINTFORGE_CACHE_SIZE", "lots")

        with pytest.raises(ValueError, match="PRINTFORGE_CACHE_SIZE must be an integer"):
            EngineConfig.from_env()

    def test_negative_integer(self, clean_env):
        clean_env.setenv("PRINTFORGE_MAX_EXPRESSION_DEPTH", "-1")

        with pytest.raises(ValueError, match="PRINTFORGE_MAX_EXPRESSION_DEPTH"):
            EngineConfig.from_env()

    def test_invalid_locale(self, clean_env):
        clean_env.setenv("PRINTFORGE_LOCALE", "zz_ZZ")

        with pytest.raises(ValueError, match="PRINTFORGE_LOCALE"):
            EngineConfig.from_env()

    def test_invalid_log_level(self, clean_env):
        clean_env.setenv("PRINTFORGE_LOG_LEVEL", "chatty")

        with pytest.raises(ValueError, match="PRINTFORGE_LOG_LEVEL"):
            EngineConfig.from_env()
