"""SMTP delivery of rendered newsletters."""

import asyncio
import logging
import smtplib
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText
from email.utils import formataddr, formatdate

from bs4 import BeautifulSoup

from media_newsletter import __version__
from media_newsletter.clients.interfaces import MailTransport

logger = logging.getLogger(__name__)

SMTP_TIMEOUT = 30
IMPLICIT_TLS_PORT = 465
X_MAILER = f"Jellyfin AI Newsletter Plugin v{__version__}"


def html_to_text(html: str) -> str:
    """Plain-text alternative for an HTML body."""
    soup = BeautifulSoup(html, "html.parser")
    for element in soup(["style", "script", "head"]):
        element.decompose()
    lines = (line.strip() for line in soup.get_text("\n").splitlines())
    return "\n".join(line for line in lines if line)


class SmtpMailer(MailTransport):
    """Sends email through an SMTP relay."""

    def __init__(self, settings):
        self.settings = settings

    def is_configured(self) -> bool:
        s = self.settings
        return all([s.smtp_server, s.smtp_username, s.smtp_password, s.sender_email])

    def build_message(self, recipient: str, subject: str, html_body: str) -> MIMEMultipart:
        msg = MIMEMultipart("alternative")
        msg["Subject"] = subject
        msg["From"] = formataddr((self.settings.sender_name, self.settings.sender_email))
        msg["To"] = recipient
        msg["Date"] = formatdate(localtime=True)
        msg["X-Mailer"] = X_MAILER
        msg.attach(MIMEText(html_to_text(html_body), "plain", "utf-8"))
        msg.attach(MIMEText(html_body, "html", "utf-8"))
        return msg

    def _connect(self) -> smtplib.SMTP:
        s = self.settings
        if s.smtp_use_ssl and s.smtp_port == IMPLICIT_TLS_PORT:
            server = smtplib.SMTP_SSL(s.smtp_server, s.smtp_port, timeout=SMTP_TIMEOUT)
        else:
            server = smtplib.SMTP(s.smtp_server, s.smtp_port, timeout=SMTP_TIMEOUT)
            if s.smtp_use_ssl:
                server.starttls()
        return server

    def _send_sync(self, recipient: str, subject: str, html_body: str) -> None:
        msg = self.build_message(recipient, subject, html_body)
        with self._connect() as server:
            server.login(self.settings.smtp_username, self.settings.smtp_password)
            server.send_message(msg)

    async def send(self, recipient: str, subject: str, html_body: str) -> bool:
        """Send one email; returns False instead of raising on SMTP failures."""
        if not self.is_configured():
            logger.error("SMTP not configured - set SMTP_SERVER, SMTP_USERNAME, SMTP_PASSWORD and SENDER_EMAIL")
            return False

        try:
            await asyncio.to_thread(self._send_sync, recipient, subject, html_body)
        except smtplib.SMTPAuthenticationError as e:
            logger.error(f"SMTP authentication failed for {self.settings.smtp_username}: {e.smtp_code}")
            return False
        except (smtplib.SMTPException, OSError) as e:
            logger.error(f"Failed to send email to {recipient}: {e}")
            return False

        logger.info(f"📧 Email sent to {recipient}")
        return True

    def _check_sync(self) -> None:
        with self._connect() as server:
            server.login(self.settings.smtp_username, self.settings.smtp_password)
            server.noop()

    async def test_connection(self) -> bool:
        """Log in and issue NOOP against the SMTP server."""
        if not self.is_configured():
            logger.warning("SMTP not configured, skipping connection test")
            return False
        try:
            await asyncio.to_thread(self._check_sync)
        except (smtplib.SMTPException, OSError) as e:
            logger.error(f"SMTP connection test failed: {e}")
            return False
        logger.info("SMTP connection successful")
        return True
