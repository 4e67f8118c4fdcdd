"""Build the auto-resign reminder e-mail for one player / game pair."""

from functools import cache
from html import escape
from pathlib import Path
from urllib.parse import quote

from autoresign.core.exceptions import NotificationError
from autoresign.core.models import NotificationRequest
from autoresign.i18n.translations import get_translations, substitute
from autoresign.notifications.email import EmailMessage

TEMPLATE_PATH = Path(__file__).parent / "templates" / "auto_resign_notification.html"


@cache
def load_template() -> str:
    return TEMPLATE_PATH.read_text(encoding="utf-8")


def apply_replacements(template: str, replacements: dict[str, str]) -> str:
    for token, value in replacements.items():
        template = template.replace(token, value)
    return template


def format_hours(hours: float) -> str:
    """24.0 -> '24', 1.5 -> '1.5'"""
    return str(int(hours)) if float(hours).is_integer() else str(hours)


def build_cta_url(base_url: str, game_id: str) -> str:
    return f"{base_url.rstrip('/')}/?gameId={quote(game_id, safe='')}"


def build_unsubscribe_url(unsubscribe_base_url: str, player_id: str) -> str:
    return f"{unsubscribe_base_url}?userId={quote(player_id, safe='')}&unsub=true"


def render_auto_resign_email(
    request: NotificationRequest, base_url: str, unsubscribe_base_url: str
) -> EmailMessage:
    """
    Render subject, HTML and plain text bodies in the player's language.
    ----
    Raises NotificationError if the player cannot be addressed (no ID for the unsubscribe link, no e-mail address).
    """
    player = request.player
    if not player.player_id:
        raise NotificationError("User ID is required to build unsubscribe links.")
    if not player.email:
        raise NotificationError(f"Player {player.player_id} has no e-mail address.")

    copy = get_translations(player.preferred_locale).auto_resign
    player_name = (player.name or "").strip()
    hours = format_hours(request.delay_hours)

    greeting = substitute(copy.greeting, name=player_name)
    body = substitute(copy.body, hours=hours)
    description = substitute(copy.description, hours=hours)
    cta_url = build_cta_url(base_url, str(request.game_id))
    unsubscribe_url = build_unsubscribe_url(unsubscribe_base_url, player.player_id)

    html_body = apply_replacements(
        load_template(),
        {
            "{{subjectHeading}}": escape(copy.subject),
            "{{greeting}}": escape(greeting),
            "{{bodyCopy}}": escape(body),
            "{{descriptionMessage}}": escape(description),
            "{{ctaText}}": escape(copy.cta_text),
            "{{ctaUrl}}": escape(cta_url),
            "{{footerMessage}}": escape(copy.footer),
            "{{unsubscribeText}}": escape(copy.unsubscribe_link_text),
            "{{unsubscribeUrl}}": escape(unsubscribe_url),
        },
    )

    text_lines = [
        greeting,
        body,
        description,
        f"{copy.cta_text}: {cta_url}",
        f"{copy.unsubscribe_link_text}: {unsubscribe_url}",
    ]

    return EmailMessage(
        recipient_email=player.email,
        recipient_name=player_name,
        subject=copy.subject,
        text_body="\n".join(text_lines),
        html_body=html_body,
    )
