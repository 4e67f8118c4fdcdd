"""Translation provider: locale tag -> message templates."""

from typing import Optional

from autoresign.i18n.catalog import Translations
from autoresign.i18n.en import EN
from autoresign.i18n.fr import FR

DEFAULT_LANGUAGE = "en"
DICTIONARIES: dict[str, Translations] = {
    "en": EN,
    "fr": FR,
}


def get_translations(locale: Optional[str] = None) -> Translations:
    """
    Resolve a locale tag to its templates.
    ----
    Matching uses the primary subtag only (fr-CA -> fr). Missing, blank or unknown locales fall back to English.
    """
    if not locale:
        return DICTIONARIES[DEFAULT_LANGUAGE]

    normalized = locale.strip().lower()
    if not normalized:
        return DICTIONARIES[DEFAULT_LANGUAGE]

    base = normalized.split("-")[0]
    return DICTIONARIES.get(base, DICTIONARIES[DEFAULT_LANGUAGE])


def substitute(template: str, **values: object) -> str:
    """Replace `{key}` tokens. Unknown tokens are left as they are."""
    for key, value in values.items():
        template = template.replace("{" + key + "}", str(value))
    return template
