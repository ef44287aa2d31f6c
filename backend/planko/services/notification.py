"""Email notifications for board invites."""

import logging
from typing import Optional

import aiosmtplib
from email.mime.text import MIMEText
from email.mime.multipart import MIMEMultipart

from ..config import get_config

logger = logging.getLogger(__name__)


class NotificationService:
    """Service for sending invite emails."""

    def __init__(self):
        self.config = get_config()

    def build_invite_url(self, token: str) -> str:
        """Build the link a recipient follows to join a board."""
        return f"{self.config.invites.app_url.rstrip('/')}/join/{token}"

    async def send_board_invite(
        self,
        to_email: str,
        board_title: str,
        token: str,
        invited_by: Optional[str] = None,
    ) -> bool:
        """Send an invite email. Returns True if the email was sent."""
        subject = f"[Planko] You've been invited to {board_title}"
        message = f"{invited_by or 'Someone'} invited you to collaborate on \"{board_title}\".\n"
        message += f"Join the board: {self.build_invite_url(token)}"

        return await self._send_email(to_email, subject, message)

    async def _send_email(self, to_email: str, subject: str, body: str) -> bool:
        """Send an email."""
        if not self.config.smtp.enabled or not self.config.smtp.host:
            logger.debug("Email notifications disabled or SMTP not configured")
            return False

        try:
            msg = MIMEMultipart("alternative")
            msg["Subject"] = subject
            msg["From"] = f"{self.config.smtp.from_name} <{self.config.smtp.from_email}>"
            msg["To"] = to_email

            msg.attach(MIMEText(body, "plain"))

            html_body = f"""
            <html>
            <body style="font-family: Arial, sans-serif; padding: 20px;">
                <h2 style="margin-top: 0;">Planko</h2>
                <pre style="white-space: pre-wrap; font-family: inherit;">{body}</pre>
            </body>
            </html>
            """
            msg.attach(MIMEText(html_body, "html"))

            await aiosmtplib.send(
                msg,
                hostname=self.config.smtp.host,
                port=self.config.smtp.port,
                username=self.config.smtp.username or None,
                password=self.config.smtp.password or None,
                use_tls=self.config.smtp.use_tls,
            )

            logger.info(f"Invite email sent to {to_email}")
            return True
        except (aiosmtplib.SMTPException, OSError) as e:
            logger.error(f"Failed to send invite email: {e}")
            return False
