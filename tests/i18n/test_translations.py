"""Unit tests for autoresign/i18n/translations.py"""

from typing import Optional

import pytest

from autoresign.i18n.en import EN
from autoresign.i18n.fr import FR
from autoresign.i18n.translations import get_translations, substitute


@pytest.mark.parametrize("locale", [None, "", "   ", "de", "de-DE", "xx-YY"])
def test_fallback_to_english(locale: Optional[str]) -> None:
    assert get_translations(locale) is EN


@pytest.mark.parametrize("locale", ["fr", "FR", "fr-CA", " fr-FR ", "Fr-be"])
def test_primary_subtag_match(locale: str) -> None:
    assert get_translations(locale) is FR


def test_english_by_tag() -> None:
    assert get_translations("en-GB") is EN


def test_every_language_has_placeholders() -> None:
    for translations in (EN, FR):
        copy = translations.auto_resign
        assert "{name}" in copy.greeting
        assert "{hours}" in copy.body


def test_substitute() -> None:
    assert substitute("Hi {name}, {hours}h left", name="Ada", hours=24) == "Hi Ada, 24h left"
    # unknown tokens stay
    assert substitute("Hi {name}", hours=3) == "Hi {name}"
