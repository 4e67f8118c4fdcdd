"""Message templates shared by every language. Placeholders: {name}, {hours}."""

from dataclasses import dataclass


@dataclass(frozen=True)
class AutoResignCopy:
    subject: str
    greeting: str
    body: str
    description: str
    cta_text: str
    footer: str
    unsubscribe_link_text: str


@dataclass(frozen=True)
class Translations:
    auto_resign: AutoResignCopy
