"""
Contract: Notifier

Delivers a rendered message over one channel (email, SMS).
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import Enum


class Channel(str, Enum):
    EMAIL = "email"
    SMS = "sms"


@dataclass
class NotifierResult:
    """Delivery outcome reported by a provider."""
    success: bool
    error: str | None = None


class INotifier(ABC):
    """
    Port: Notifier

    Implementations must report failure through NotifierResult rather
    than claim success when the provider did not accept the message.
    """

    channel: Channel

    @abstractmethod
    def send(self, recipient: str, subject: str, body: str, html: str | None = None) -> NotifierResult:
        """
        Send one message.

        Args:
            recipient: Email address or phone number.
            subject: Subject line (prefixed to the text for SMS).
            body: Plain-text body.
            html: Optional HTML alternative (email only).

        Returns:
            NotifierResult with success flag and provider error.
        """
        ...
