"""Email service for marketplace notifications, invitations and credentials."""
import logging
from typing import Any, Optional

from sendgrid import SendGridAPIClient
from sendgrid.helpers.mail import Mail, Email, To, Content

from app.config import settings
from app.services.email_templates import render

logger = logging.getLogger(__name__)


class EmailService:
    """
    Handles email sending in dev and production modes.

    send() never raises: delivery problems are logged and reported as False
    so callers can carry on with the operation that triggered the email.
    """

    def __init__(self):
        self.mode = settings.email_mode
        if self.mode == "prod" and settings.sendgrid_api_key:
            self.sendgrid_client = SendGridAPIClient(settings.sendgrid_api_key)
        else:
            if self.mode == "prod":
                logger.warning("email_mode is 'prod' but SENDGRID_API_KEY is not set; emails will be skipped")
            self.sendgrid_client = None

    def is_configured(self) -> bool:
        """True when emails actually leave the process."""
        return self.sendgrid_client is not None

    async def send(
        self,
        to_email: str,
        subject: str,
        html_content: str,
        text_content: Optional[str] = None
    ) -> bool:
        """Send one email. Returns True when delivered or intentionally skipped."""
        if self.mode == "dev":
            # Bodies may carry credentials, so only the envelope is logged
            logger.info(f"[DEV MODE] Email to {to_email}: {subject}")
            return True

        if not self.is_configured():
            logger.info(f"Email not configured, skipping '{subject}' to {to_email}")
            return True

        try:
            mail = Mail(
                from_email=Email(settings.email_from, settings.email_from_name),
                to_emails=To(to_email),
                subject=subject,
                html_content=Content("text/html", html_content)
            )
            if text_content:
                mail.add_content(Content("text/plain", text_content))

            response = self.sendgrid_client.send(mail)

            if 200 <= response.status_code < 300:
                logger.info(f"Email sent to {to_email}: {subject}")
                return True
            else:
                logger.error(f"Failed to send email to {to_email}: {response.status_code}")
                return False
        except Exception as e:
            logger.error(f"Error sending email to {to_email}: {str(e)}")
            return False

    async def send_template(
        self,
        to_email: str,
        template_name: str,
        lang: Optional[str],
        variables: dict[str, Any]
    ) -> bool:
        """Render a template and send it."""
        rendered = render(template_name, lang, variables)
        return await self.send(to_email, rendered.subject, rendered.html, rendered.text)


# Global email service instance
email_service = EmailService()
