import logging
import smtplib
from email.message import EmailMessage
from html import escape
from typing import Optional

from ..core.config import Settings, settings as default_settings

logger = logging.getLogger(__name__)

class EmailService:
    """Sends HTML emails over SMTP, or logs them when SMTP is not configured."""

    def __init__(self, config: Optional[Settings] = None):
        self.config = config or default_settings
        if self.config.smtp_configured:
            logger.info("EmailService: SMTP configured (%s:%s)", self.config.SMTP_HOST, self.config.SMTP_PORT)
        else:
            logger.warning("EmailService: no SMTP config found, emails will be logged only")

    def send_email(self, to: str, subject: str, html: str) -> bool:
        """Send an email. Returns False instead of raising when delivery fails."""
        message = EmailMessage()
        message["From"] = self.config.SMTP_FROM
        message["To"] = to
        message["Subject"] = subject
        message.set_content("This message requires an HTML-capable mail client.")
        message.add_alternative(html, subtype="html")

        if not self.config.smtp_configured:
            logger.info("[DEV] Email simulation to=%s subject=%r", to, subject)
            return True

        try:
            with smtplib.SMTP(self.config.SMTP_HOST, self.config.SMTP_PORT, timeout=10) as server:
                server.starttls()
                server.login(self.config.SMTP_USER, self.config.SMTP_PASSWORD)
                server.send_message(message)
        except (smtplib.SMTPException, OSError) as e:
            logger.error(f"EmailService error sending to {to}: {str(e)}")
            return False

        logger.info("Email sent to=%s subject=%r", to, subject)
        return True

    def send_contact_message(self, name: str, email: str, subject: str, body: str) -> bool:
        html = (
            "<h2>Nouveau message de contact</h2>"
            f"<p><strong>De:</strong> {escape(name)} ({escape(email)})</p>"
            f"<p><strong>Sujet:</strong> {escape(subject)}</p>"
            f"<p style=\"white-space: pre-wrap;\">{escape(body)}</p>"
        )
        return self.send_email(self.config.ADMIN_EMAIL, f"[Contact] {subject}", html)

    def send_password_reset(self, to: str, token: str) -> bool:
        link = f"{self.config.FRONTEND_URL}/reset-password?token={token}"
        html = (
            "<p>Vous avez demandé la réinitialisation de votre mot de passe.</p>"
            f"<p><a href=\"{link}\">Réinitialiser mon mot de passe</a></p>"
            "<p>Ce lien expire dans une heure.</p>"
        )
        return self.send_email(to, "Réinitialisation de votre mot de passe", html)

    def send_account_setup(self, to: str, first_name: str, token: str) -> bool:
        link = f"{self.config.FRONTEND_URL}/setup-account?token={token}"
        html = (
            f"<p>Bonjour {escape(first_name)},</p>"
            "<p>Un compte kinésithérapeute a été créé pour vous sur PhysioCenter.</p>"
            f"<p><a href=\"{link}\">Configurer mon compte</a></p>"
        )
        return self.send_email(to, "Bienvenue sur PhysioCenter", html)

email_service = EmailService()

def get_email_service() -> EmailService:
    """Email service dependency."""
    return email_service
