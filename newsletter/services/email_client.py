"""Outbound email: template rendering and the delivery API client."""
import logging
from pathlib import Path
from typing import Optional

import httpx
from jinja2 import Environment, FileSystemLoader, StrictUndefined, select_autoescape

from newsletter.config import get_settings
from newsletter.domain import NewSubscriber, SubscriberEmail
from newsletter.utils.redaction import redact_email

logger = logging.getLogger(__name__)

TEMPLATE_DIR = Path(__file__).parent.parent / "templates" / "emails"

CONFIRMATION_SUBJECT = "Welcome!"


class TemplateRenderer:
    """Jinja2 template renderer for email templates."""

    def __init__(self, template_dir: Path = TEMPLATE_DIR):
        self._template_dir = template_dir
        self._env: Optional[Environment] = None

    def _get_env(self) -> Environment:
        """Lazy load the Jinja2 environment."""
        if self._env is None:
            self._env = Environment(
                loader=FileSystemLoader(str(self._template_dir)),
                autoescape=select_autoescape(["html", "xml"]),
                undefined=StrictUndefined,
            )
        return self._env

    def render(self, template_name: str, **context) -> str:
        """Render a template with the given context."""
        return self._get_env().get_template(template_name).render(**context)


template_renderer = TemplateRenderer()


class EmailClient:
    """Client for a Postmark-compatible email delivery API."""

    def __init__(
        self,
        base_url: str,
        sender: SubscriberEmail,
        authorization_token: str,
        timeout: float = 10.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.sender = sender
        self._authorization_token = authorization_token
        self._http = httpx.AsyncClient(base_url=base_url, timeout=timeout, transport=transport)

    async def send_email(
        self,
        recipient: SubscriberEmail,
        subject: str,
        html_content: str,
        text_content: str,
    ) -> None:
        """Send one email. Raises httpx.HTTPError on transport failure or a non-2xx reply."""
        response = await self._http.post(
            "/email",
            json={
                "From": self.sender.value,
                "To": recipient.value,
                "Subject": subject,
                "HtmlBody": html_content,
                "TextBody": text_content,
            },
            headers={"X-Postmark-Server-Token": self._authorization_token},
        )
        response.raise_for_status()
        logger.info(f"Email sent to {redact_email(recipient.value)}, status={response.status_code}")

    async def aclose(self) -> None:
        await self._http.aclose()


_email_client: Optional[EmailClient] = None


async def get_email_client() -> EmailClient:
    """Return the shared email client, built from settings on first use.

    Runs on the event loop, so the first-use check and assignment cannot interleave.
    """
    global _email_client
    if _email_client is None:
        settings = get_settings()
        _email_client = EmailClient(
            base_url=settings.email_base_url,
            sender=settings.email_sender_address(),
            authorization_token=settings.email_authorization_token,
            timeout=settings.email_timeout_seconds,
        )
    return _email_client


async def close_email_client() -> None:
    global _email_client
    if _email_client is not None:
        await _email_client.aclose()
        _email_client = None


def build_confirmation_link(base_url: str, token: str) -> str:
    return f"{base_url.rstrip('/')}/subscriptions/confirm?sub_token={token}"


async def send_confirmation_email(
    email_client: EmailClient,
    new_subscriber: NewSubscriber,
    base_url: str,
    token: str,
) -> None:
    """Email the subscriber a link that confirms their subscription."""
    confirmation_link = build_confirmation_link(base_url, token)
    context = {
        "name": new_subscriber.name.value,
        "confirmation_link": confirmation_link,
    }

    html = template_renderer.render("confirmation.html", **context)
    text = template_renderer.render("confirmation.txt", **context)

    await email_client.send_email(
        new_subscriber.email,
        CONFIRMATION_SUBJECT,
        html_content=html,
        text_content=text,
    )
