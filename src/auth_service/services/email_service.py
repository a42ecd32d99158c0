"""Email service — renders templated mails and sends them via async SMTP.

When no SMTP host is configured the rendered message is logged instead
of sent, so the OTP flow can be exercised locally.
"""

from __future__ import annotations

import html
import logging
from email.message import EmailMessage
from typing import Any

import aiosmtplib

from auth_service.config import settings
from auth_service.errors import ExternalServiceError

logger = logging.getLogger(__name__)

_OTP_HTML = """\
<html>
  <body style="font-family:sans-serif;color:#333">
    <h2>{heading}</h2>
    <p>Hello {name},</p>
    <p>{intro}</p>
    <p style="font-size:28px;font-weight:bold;letter-spacing:6px">{otp}</p>
    <p style="color:#888">This code expires in 5 minutes. If you did not
    request it, you can ignore this email.</p>
  </body>
</html>
"""

_TEMPLATES: dict[str, dict[str, str]] = {
    "user-activation-mail": {
        "heading": "Activate your account",
        "intro": "Use the code below to finish creating your account on {app_name}.",
    },
    "seller-activation-mail": {
        "heading": "Activate your seller account",
        "intro": "Use the code below to finish registering as a seller on {app_name}.",
    },
    "forgot-password-user-mail": {
        "heading": "Reset your password",
        "intro": "Use the code below to reset your {app_name} password.",
    },
}


def render_template(template: str, data: dict[str, Any]) -> tuple[str, str]:
    """Return ``(plain_text, html)`` bodies for *template*.

    Raises ``ValueError`` for unknown template names.
    """
    try:
        parts = _TEMPLATES[template]
    except KeyError:
        raise ValueError(f"Unknown email template: {template!r}") from None

    intro = parts["intro"].format(app_name=settings.app_name)
    name = data.get("name", "there")
    otp = data.get("otp", "")
    plain = (
        f"Hello {name},\n\n"
        f"{intro}\n\n"
        f"    {otp}\n\n"
        "This code expires in 5 minutes. If you did not request it, "
        "you can ignore this email.\n\n"
        f"The {settings.app_name} Team"
    )
    body = _OTP_HTML.format(
        heading=html.escape(parts["heading"]),
        name=html.escape(str(name)),
        intro=html.escape(intro),
        otp=html.escape(str(otp)),
    )
    return plain, body


class EmailService:
    """Sends transactional emails using the configured SMTP server."""

    async def send(
        self,
        to_email: str,
        subject: str,
        template: str,
        data: dict[str, Any],
    ) -> None:
        """Render *template* with *data* and deliver it to *to_email*.

        Parameters
        ----------
        to_email:
            Recipient email address.
        subject:
            Subject line.
        template:
            Name of a registered template, e.g. ``user-activation-mail``.
        data:
            Template variables (``name``, ``otp``).
        """
        plain, html = render_template(template, data)

        if not settings.smtp_host:
            logger.info(
                "📧 [DEV] Would send %r to %s:\n%s", subject, to_email, plain
            )
            return

        msg = EmailMessage()
        msg["Subject"] = subject
        msg["From"] = settings.email_from
        msg["To"] = to_email
        msg.set_content(plain)
        msg.add_alternative(html, subtype="html")

        logger.info("Sending %s email to %s", template, to_email)

        try:
            await aiosmtplib.send(
                msg,
                hostname=settings.smtp_host,
                port=settings.smtp_port,
                username=settings.smtp_username or None,
                password=settings.smtp_password or None,
                start_tls=settings.smtp_use_tls,
            )
        except aiosmtplib.SMTPException as exc:
            logger.exception("Failed to send email to %s", to_email)
            raise ExternalServiceError("Failed to send email") from exc

        logger.info("Email sent to %s", to_email)
