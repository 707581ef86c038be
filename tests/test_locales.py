"""Tests for locale canonicalisation."""

import pytest

from unistt.exceptions import InvalidLocaleError
from unistt.locales import (
    DEFAULT_LOCALE,
    canonical_locale,
    canonical_locales,
    current_locale,
    language_of,
)


class TestCanonicalLocale:
    """Tests for canonical_locale."""

    @pytest.mark.parametrize(
        "value,expected",
        [
            ("en", "en"),
            ("EN", "en"),
            ("en_US", "en_US"),
            ("en-US", "en_US"),
            ("en_us", "en_US"),
            ("fr-ca", "fr_CA"),
            ("es-419", "es_419"),
            ("de_DE.UTF-8", "de_DE"),
            ("ca_ES@valencia", "ca_ES"),
            (" sv_SE ", "sv_SE"),
        ],
    )
    def test_valid(self, value, expected):
        assert canonical_locale(value) == expected

    @pytest.mark.parametrize("value", ["", "e", "english", "en_USA", "en US", "C"])
    def test_invalid(self, value):
        with pytest.raises(InvalidLocaleError):
            canonical_locale(value)

    def test_invalid_is_value_error(self):
        with pytest.raises(ValueError):
            canonical_locale("not a locale")


class TestHelpers:
    """Tests for locale helper functions."""

    def test_canonical_locales_deduplicates(self):
        assert canonical_locales(["en-US", "en_US", "fr"]) == frozenset({"en_US", "fr"})

    def test_language_of(self):
        assert language_of("en-GB") == "en"
        assert language_of("fr") == "fr"


class TestCurrentLocale:
    """Tests for current_locale."""

    def test_uses_lang_environment(self, monkeypatch):
        monkeypatch.delenv("LC_ALL", raising=False)
        monkeypatch.delenv("LC_MESSAGES", raising=False)
        monkeypatch.setenv("LANG", "fr_FR.UTF-8")
        assert current_locale() == "fr_FR"

    def test_lc_all_takes_precedence(self, monkeypatch):
        monkeypatch.setenv("LC_ALL", "de_AT.UTF-8")
        monkeypatch.setenv("LANG", "fr_FR.UTF-8")
        assert current_locale() == "de_AT"

    def test_falls_back_for_posix_locale(self, monkeypatch):
        monkeypatch.setenv("LC_ALL", "C")
        monkeypatch.setenv("LC_MESSAGES", "POSIX")
        monkeypatch.setenv("LANG", "C.UTF-8")
        monkeypatch.setattr("unistt.locales._locale.getlocale", lambda: (None, None))
        assert current_locale() == DEFAULT_LOCALE
