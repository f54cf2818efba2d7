"""
Contract: Subscriber Store

Subscriber records and the plans they point to.
"""

from abc import ABC, abstractmethod

from fleet_compliance.core.entities.subscription import Plan, Subscriber


class ISubscriberStore(ABC):
    """
    Port: Subscriber Store

    At most one active subscriber exists per user id.
    """

    @abstractmethod
    def get_active_by_user(self, user_id: str) -> Subscriber | None:
        """
        Return the user's active subscriber record.

        Args:
            user_id: Transporter user id.

        Returns:
            The active Subscriber, or None.
        """
        ...

    @abstractmethod
    def get_plan(self, plan_id: str) -> Plan | None:
        """Fetch a subscription plan, or None if missing."""
        ...

    @abstractmethod
    def list_active(self) -> list[Subscriber]:
        """All subscribers currently flagged active."""
        ...

    @abstractmethod
    def update(self, subscriber_id: str, patch: dict) -> Subscriber:
        """Apply a partial update to a subscriber."""
        ...
