"""E-mail channel capability and its Mailjet implementation."""

import logging
from dataclasses import dataclass
from typing import Optional, Protocol

import httpx
from pydantic import BaseModel, Field

from autoresign.core.models import SendResult

logger = logging.getLogger(__name__)

MAILJET_SEND_URL = "https://api.mailjet.com/v3.1/send"


@dataclass(frozen=True)
class EmailMessage:
    recipient_email: str
    recipient_name: str
    subject: str
    text_body: str
    html_body: str


class EmailChannel(Protocol):
    def send(self, message: EmailMessage) -> SendResult:
        """Hand the message over for delivery. Delivery problems are reported, not raised."""
        ...

    def close(self) -> None:
        ...


# --- Mailjet v3.1 payload ---
class MailjetContact(BaseModel):
    email: str = Field(serialization_alias="Email")
    name: str = Field(serialization_alias="Name")


class MailjetMessage(BaseModel):
    sender: MailjetContact = Field(serialization_alias="From")
    to: list[MailjetContact] = Field(serialization_alias="To")
    subject: str = Field(serialization_alias="Subject")
    text_part: str = Field(serialization_alias="TextPart")
    html_part: str = Field(serialization_alias="HTMLPart")


class MailjetPayload(BaseModel):
    messages: list[MailjetMessage] = Field(serialization_alias="Messages")


class MailjetChannel:
    """Sends e-mails through the Mailjet send API (basic auth with API key + secret)."""

    def __init__(
        self,
        api_key: str,
        secret_key: str,
        sender_email: str,
        sender_name: str,
        client: Optional[httpx.Client] = None,
        timeout: float = 30.0,
    ) -> None:
        self.sender = MailjetContact(email=sender_email, name=sender_name)
        self.client = client or httpx.Client(timeout=timeout)
        self.auth = httpx.BasicAuth(api_key, secret_key)

    def send(self, message: EmailMessage) -> SendResult:
        payload = MailjetPayload(
            messages=[
                MailjetMessage(
                    sender=self.sender,
                    to=[
                        MailjetContact(
                            email=message.recipient_email, name=message.recipient_name
                        )
                    ],
                    subject=message.subject,
                    text_part=message.text_body,
                    html_part=message.html_body,
                )
            ]
        )
        try:
            response = self.client.post(
                MAILJET_SEND_URL,
                json=payload.model_dump(by_alias=True),
                auth=self.auth,
            )
        except httpx.HTTPError as exc:
            return SendResult(ok=False, diagnostic=f"Mailjet request failed: {exc}")

        if response.is_success:
            logger.debug(
                "Mailjet accepted message",
                extra={"meta": {"to": message.recipient_email}},
            )
            return SendResult(ok=True)
        return SendResult(
            ok=False,
            diagnostic=f"Mailjet API error ({response.status_code}) for auto-resign notice: {response.text}",
        )

    def close(self) -> None:
        self.client.close()
