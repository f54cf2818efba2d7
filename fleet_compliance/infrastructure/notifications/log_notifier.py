"""
Adapter: Logging Notifier

Dry-run INotifier: writes the message to the log and reports success.
Used when NOTIFICATIONS_DRY_RUN is set, e.g. on staging data.
"""

import logging

from fleet_compliance.core.interfaces.notifier import Channel, INotifier, NotifierResult

logger = logging.getLogger(__name__)


class LoggingNotifier(INotifier):

    def __init__(self, channel: Channel):
        self.channel = Channel(channel)
        self.sent: list[tuple[str, str, str]] = []

    def send(self, recipient: str, subject: str, body: str, html: str | None = None) -> NotifierResult:
        self.sent.append((recipient, subject, body))
        logger.info(f"[dry-run] {self.channel.value} to {recipient}: {subject}")
        return NotifierResult(True)
