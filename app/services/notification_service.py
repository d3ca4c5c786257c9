"""
Administrator notifications for new submissions.

A notifier delivers one rendered message (subject, plain text, HTML) to a
single channel. Delivery is best effort: callers log failures and carry on.
"""
from __future__ import annotations

import html
import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from email.message import EmailMessage
from typing import Any, Callable, Mapping, Optional, Protocol

import httpx

from app.core.config import Settings
from app.core.email import SmtpConfig, send_email
from app.core.errors import NotificationError
from app.forms.fields import FormSpec

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Notification:
    subject: str
    text: str
    html: str


class Notifier(Protocol):
    channel: str

    async def deliver(self, notification: Notification) -> None:
        ...


def _display(value: Any) -> str:
    if value is None or value == "":
        return "N/A"
    return str(value)


def build_notification(
    form: FormSpec,
    values: Mapping[str, Any],
    record_id: Any,
    project_name: str = "NoteEase",
    submitted_at: Optional[datetime] = None,
) -> Notification:
    """Render the summary of one stored submission."""
    submitted_at = submitted_at or datetime.now(timezone.utc)
    subject = f"New {form.title} - {project_name}"

    rows = [("ID", str(record_id))]
    for spec in form.fields:
        label = spec.display_name
        if spec.is_file:
            label = f"{label} (stored file)"
        rows.append((label, _display(values.get(spec.key))))
    rows.append(("Submitted at", submitted_at.strftime("%Y-%m-%d %H:%M:%S %Z").strip()))

    text = "\n".join(f"{label}: {value}" for label, value in rows)

    html_rows = "\n".join(
        f"<p><strong>{html.escape(label)}:</strong> "
        f"<span style=\"white-space: pre-wrap;\">{html.escape(value)}</span></p>"
        for label, value in rows
    )
    body = (
        '<div style="font-family: Arial, sans-serif; max-width: 600px; margin: 0 auto;">\n'
        f"<h2>{html.escape(subject)}</h2>\n"
        f"{html_rows}\n"
        "</div>"
    )
    return Notification(subject=subject, text=text, html=body)


class EmailNotifier:
    """Sends the summary to the administrator mailbox over SMTP."""

    channel = "email"

    def __init__(self, smtp: SmtpConfig, sender: str, recipient: Optional[str]):
        self.smtp = smtp
        self.sender = sender
        self.recipient = recipient

    def build_message(self, notification: Notification) -> EmailMessage:
        msg = EmailMessage()
        msg["From"] = self.smtp.username or self.sender
        msg["To"] = self.recipient
        msg["Subject"] = notification.subject
        msg.set_content(notification.text)
        msg.add_alternative(notification.html, subtype="html")
        return msg

    async def deliver(self, notification: Notification) -> None:
        if not self.smtp.host or not self.recipient:
            raise NotificationError("SMTP_HOST and ADMIN_EMAIL must be configured")
        try:
            await send_email(self.build_message(notification), self.smtp)
        except Exception as exc:
            raise NotificationError(f"Email delivery failed: {exc}") from exc


class TelegramNotifier:
    """Posts the summary to a Telegram chat through the Bot API."""

    channel = "telegram"

    def __init__(
        self,
        bot_token: Optional[str],
        chat_id: Optional[str],
        api_base: str = "https://api.telegram.org",
        timeout: float = 10.0,
        client_factory: Callable[..., httpx.AsyncClient] = httpx.AsyncClient,
    ):
        self.bot_token = bot_token
        self.chat_id = chat_id
        self.api_base = api_base.rstrip("/")
        self.timeout = timeout
        self._client_factory = client_factory

    async def deliver(self, notification: Notification) -> None:
        if not self.bot_token or not self.chat_id:
            raise NotificationError("TELEGRAM_BOT_TOKEN and TELEGRAM_CHAT_ID must be configured")

        url = f"{self.api_base}/bot{self.bot_token}/sendMessage"
        payload = {
            "chat_id": self.chat_id,
            "text": f"{notification.subject}\n\n{notification.text}",
            "disable_web_page_preview": True,
        }
        try:
            async with self._client_factory(timeout=self.timeout) as client:
                response = await client.post(url, json=payload)
        except httpx.HTTPError as exc:
            raise NotificationError(f"Telegram request failed: {type(exc).__name__}") from exc

        if response.status_code != 200:
            raise NotificationError(f"Telegram API responded {response.status_code}")
        logger.info("Telegram notification sent chat_id=%s", self.chat_id)


class LogNotifier:
    """Channel 'none': the summary only goes to the application log."""

    channel = "none"

    async def deliver(self, notification: Notification) -> None:
        logger.info(
            "Notification channel disabled; subject=%s",
            notification.subject,
            extra={"event_name": "notification_skipped"},
        )


def create_notifier(settings: Settings) -> Notifier:
    if settings.NOTIFICATION_CHANNEL == "email":
        password = settings.SMTP_PASSWORD.get_secret_value() if settings.SMTP_PASSWORD else None
        return EmailNotifier(
            smtp=SmtpConfig(
                host=settings.SMTP_HOST,
                port=settings.SMTP_PORT,
                username=settings.SMTP_USER,
                password=password,
                timeout=settings.NOTIFICATION_TIMEOUT_SECONDS,
            ),
            sender=settings.NOTIFY_FROM,
            recipient=settings.ADMIN_EMAIL,
        )
    if settings.NOTIFICATION_CHANNEL == "telegram":
        token = settings.TELEGRAM_BOT_TOKEN.get_secret_value() if settings.TELEGRAM_BOT_TOKEN else None
        return TelegramNotifier(
            bot_token=token,
            chat_id=settings.TELEGRAM_CHAT_ID,
            api_base=settings.TELEGRAM_API_BASE,
            timeout=settings.NOTIFICATION_TIMEOUT_SECONDS,
        )
    return LogNotifier()
