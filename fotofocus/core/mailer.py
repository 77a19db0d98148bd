"""
Email adapter for the FotoFocus backend.

The default implementation uses SMTP, reading credentials from Settings.
Outside production an unconfigured SMTP server only logs the message so local
signups keep working; in production it is a delivery failure.
"""

from __future__ import annotations

from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText
import logging
import smtplib
import ssl

from .config import Settings
from .errors import DeliveryFailed

logger = logging.getLogger(__name__)


class Mailer:
    """Sends verification codes and password reset instructions."""

    def __init__(self, settings: Settings) -> None:
        self.settings = settings

    def _configured(self) -> bool:
        s = self.settings
        return bool(s.smtp_host and s.smtp_user and s.smtp_password and s.smtp_from and s.smtp_port)

    def send_email(self, subject: str, to_email: str, text_body: str, html_body: str | None = None) -> bool:
        """
        Send one message. Returns False when SMTP is not configured in a
        non-production environment; raises DeliveryFailed on transport errors.
        """
        settings = self.settings
        if not self._configured():
            if settings.is_production:
                raise DeliveryFailed("Email delivery is not configured")
            logger.warning("SMTP not configured; skipping %r to %s", subject, to_email)
            logger.info("Undelivered message for %s:\n%s", to_email, text_body)
            return False
        msg = MIMEMultipart("alternative")
        msg["Subject"] = subject
        msg["From"] = settings.smtp_from
        msg["To"] = to_email
        msg.attach(MIMEText(text_body, "plain", "utf-8"))
        if html_body:
            msg.attach(MIMEText(html_body, "html", "utf-8"))
        port = settings.smtp_port or 587
        try:
            if port == 465:
                context = ssl.create_default_context()
                with smtplib.SMTP_SSL(settings.smtp_host, port, context=context, timeout=10) as server:
                    server.login(settings.smtp_user, settings.smtp_password)
                    server.sendmail(settings.smtp_from, [to_email], msg.as_string())
            else:
                with smtplib.SMTP(settings.smtp_host, port, timeout=10) as server:
                    server.ehlo()
                    server.starttls(context=ssl.create_default_context())
                    server.login(settings.smtp_user, settings.smtp_password)
                    server.sendmail(settings.smtp_from, [to_email], msg.as_string())
        except (smtplib.SMTPException, OSError) as exc:
            logger.error("Failed to send %r to %s: %s", subject, to_email, exc)
            raise DeliveryFailed("Failed to send email") from exc
        return True

    def send_verification_code(self, to_email: str, code: str) -> bool:
        minutes = max(1, self.settings.registration_code_ttl_seconds // 60)
        return self.send_email(
            "Your FotoFocus verification code",
            to_email,
            f"Your verification code is: {code}\n\nThis code expires in {minutes} minutes.",
        )

    def send_password_reset(self, to_email: str, token: str) -> bool:
        minutes = max(1, self.settings.password_reset_ttl_seconds // 60)
        return self.send_email(
            "Reset your FotoFocus password",
            to_email,
            "We received a request to reset your password.\n\n"
            f"Your reset token is: {token}\n\n"
            f"It expires in {minutes} minutes. If this wasn't you, ignore this message.",
        )
