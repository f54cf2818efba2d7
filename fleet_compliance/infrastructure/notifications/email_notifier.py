"""
Adapter: SMTP Email Notifier

Concrete INotifier for email, sending multipart (text + HTML) messages
through an SMTP relay.
"""

import logging
import smtplib
from email.message import EmailMessage

from fleet_compliance.core.interfaces.notifier import Channel, INotifier, NotifierResult
from fleet_compliance.infrastructure.notifications.templates import render_email_html

logger = logging.getLogger(__name__)


class SmtpEmailNotifier(INotifier):
    """
    Email via SMTP (STARTTLS + login when credentials are set).

    Delivery is confirmed when the relay accepts the message.
    """

    channel = Channel.EMAIL

    def __init__(
        self,
        host: str,
        port: int = 587,
        username: str = "",
        password: str = "",
        from_address: str = "",
        sender_name: str = "",
        use_tls: bool = True,
        timeout: float = 15.0,
    ):
        self._host = host
        self._port = port
        self._username = username
        self._password = password
        self._from = from_address or username
        self._sender_name = sender_name
        self._use_tls = use_tls
        self._timeout = timeout

    def build_message(self, recipient: str, subject: str, body: str, html: str | None = None) -> EmailMessage:
        message = EmailMessage()
        message["From"] = f"{self._sender_name} <{self._from}>" if self._sender_name else self._from
        message["To"] = recipient
        message["Subject"] = subject
        message.set_content(body)
        message.add_alternative(html or render_email_html(subject, body, self._sender_name), subtype="html")
        return message

    def send(self, recipient: str, subject: str, body: str, html: str | None = None) -> NotifierResult:
        if not self._host:
            return NotifierResult(False, "SMTP not configured")

        message = self.build_message(recipient, subject, body, html)
        try:
            with smtplib.SMTP(self._host, self._port, timeout=self._timeout) as server:
                if self._use_tls:
                    server.starttls()
                if self._username and self._password:
                    server.login(self._username, self._password)
                refused = server.send_message(message)
        except (smtplib.SMTPException, OSError) as e:
            logger.error(f"SMTP delivery to {recipient} failed: {e}")
            return NotifierResult(False, f"SMTP failure: {e}")

        if refused:
            return NotifierResult(False, f"Recipient refused: {refused}")
        logger.info(f"Email '{subject}' delivered to {recipient}")
        return NotifierResult(True)
