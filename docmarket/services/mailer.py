"""Outbound email: password reset links and contact form messages."""

import logging
from datetime import datetime
from pathlib import Path

from jinja2 import Environment, FileSystemLoader, select_autoescape
from python_http_client.exceptions import HTTPError
from sendgrid import SendGridAPIClient
from sendgrid.helpers.mail import From, Mail, ReplyTo

from docmarket.config import get_settings

logger = logging.getLogger("docmarket")

TEMPLATE_DIR = Path(__file__).resolve().parent.parent / "templates"
SITE_NAME = "DocMarket"


class MailDeliveryError(Exception):
    """SendGrid rejected the message or could not be reached."""


class Mailer:
    """Renders Jinja2 email templates and delivers them through SendGrid."""

    def __init__(self) -> None:
        self.env = Environment(
            loader=FileSystemLoader(str(TEMPLATE_DIR)),
            autoescape=select_autoescape(["html"]),
        )

    def render(self, template_name: str, **context) -> str:
        context.setdefault("site_name", SITE_NAME)
        context.setdefault("year", datetime.utcnow().year)
        return self.env.get_template(template_name).render(**context)

    def send(self, to: str, subject: str, html: str, reply_to: str | None = None) -> bool:
        """Send an HTML email. Returns False when SendGrid is not configured.

        Raises MailDeliveryError when delivery fails.
        """
        settings = get_settings()
        if not settings.mail_configured:
            logger.warning("SendGrid not configured - email to %s not sent (subject: %s)", to, subject)
            return False

        message = Mail(
            from_email=From(settings.MAIL_FROM, SITE_NAME),
            to_emails=to,
            subject=subject,
            html_content=html,
        )
        if reply_to:
            message.reply_to = ReplyTo(reply_to)

        try:
            response = SendGridAPIClient(settings.SENDGRID_API_KEY).send(message)
        except (HTTPError, OSError) as exc:
            raise MailDeliveryError(str(exc)) from exc

        logger.info("Email sent to %s (subject: %s, status: %s)", to, subject, response.status_code)
        return True

    def send_password_reset(self, to: str, reset_url: str, expire_minutes: int) -> bool:
        """Send the reset link. Delivery failures are logged, never raised."""
        html = self.render("email/password_reset.html", reset_url=reset_url, expire_minutes=expire_minutes)
        try:
            return self.send(to, f"Password Reset Request - {SITE_NAME}", html)
        except MailDeliveryError:
            logger.exception("Failed to send password reset email to %s", to)
            return False

    def send_contact_message(self, name: str, email: str, subject: str, message: str) -> bool:
        """Forward a contact form submission to the site inbox."""
        settings = get_settings()
        html = self.render("email/contact.html", name=name, email=email, subject=subject, message=message)
        recipient = settings.CONTACT_RECIPIENT or settings.MAIL_FROM
        return self.send(recipient, f"Contact Form: {subject}", html, reply_to=email)


_mailer: Mailer | None = None


def get_mailer() -> Mailer:
    """Get singleton mailer instance."""
    global _mailer
    if _mailer is None:
        _mailer = Mailer()
    return _mailer
