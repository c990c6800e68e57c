"""Email adapter - SMTP delivery of the lead email."""

from dataclasses import dataclass
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText
from urllib.parse import urlencode

import aiosmtplib
import structlog

from crm.config import Settings

logger = structlog.get_logger()


@dataclass(frozen=True)
class SmtpCredentials:
    """SMTP settings handed to the adapter explicitly; nothing is read from globals."""
    host: str
    port: int
    user: str
    password: str
    use_tls: bool = True
    sender: str = ""

    @classmethod
    def from_settings(cls, settings: Settings) -> "SmtpCredentials":
        return cls(
            host=settings.smtp_host,
            port=settings.smtp_port,
            user=settings.smtp_user,
            password=settings.smtp_password,
            use_tls=settings.smtp_use_tls,
            sender=settings.lead_email_from or settings.smtp_user,
        )

    @property
    def is_configured(self) -> bool:
        return bool(self.host) and self.host != "localhost"


def tracking_url(base_url: str, contact_id: str, token: str) -> str:
    return f"{base_url.rstrip('/')}?{urlencode({'contactId': contact_id, 'token': token})}"


def render_lead_email(name: str, link: str) -> tuple[str, str]:
    """Return (subject, html body) for the first email a new lead receives."""
    first_name = name.split()[0] if name.strip() else "there"
    subject = f"{first_name}, a quick hello"
    body = (
        f"<p>Hi {first_name},</p>"
        "<p>Thanks for your interest. We put together a short overview of how we can help.</p>"
        f'<p><a href="{link}">Take a look</a></p>'
        "<p>Best regards</p>"
    )
    return subject, body


async def send_email(
    to_email: str,
    subject: str,
    body_html: str,
    credentials: SmtpCredentials,
) -> bool:
    """Send an email via SMTP.

    Returns False without sending when SMTP is not configured. Delivery
    errors propagate so the calling job can retry.
    """
    if not credentials.is_configured:
        logger.info("email_draft_mode_smtp_not_configured", to=to_email, subject=subject)
        return False

    msg = MIMEMultipart("alternative")
    msg["Subject"] = subject
    msg["From"] = credentials.sender
    msg["To"] = to_email
    msg.attach(MIMEText(body_html, "html"))

    await aiosmtplib.send(
        msg,
        hostname=credentials.host,
        port=credentials.port,
        username=credentials.user or None,
        password=credentials.password or None,
        use_tls=credentials.use_tls,
    )
    logger.info("email_sent", to=to_email, subject=subject)
    return True
