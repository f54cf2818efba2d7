"""
Entity: Subscription

Subscription plans and the transporter's subscriber record.
"""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum

UNLIMITED = -1


def is_unlimited(limit: int | None) -> bool:
    return limit == UNLIMITED


class ResourceType(str, Enum):
    DRIVER = "driver"
    VEHICLE = "vehicle"

    @property
    def plural(self) -> str:
        return f"{self.value}s"


class BillingCycle(str, Enum):
    TRIAL = "trial"
    MONTHLY = "monthly"
    QUARTERLY = "quarterly"
    ANNUAL = "annual"


class SubscriberStatus(str, Enum):
    ACTIVE = "active"
    PENDING = "pending"
    EXPIRED = "expired"
    CANCELLED = "cancelled"


@dataclass
class Plan:
    """Domain entity: Subscription plan."""
    id: str
    name: str
    max_drivers: int = 0
    max_vehicles: int = 0
    features: list[str] = field(default_factory=list)
    trial_days: int = 0
    price: float = 0.0
    billing_cycle: BillingCycle = BillingCycle.MONTHLY

    def limit_for(self, resource_type: ResourceType) -> int:
        if resource_type == ResourceType.DRIVER:
            return self.max_drivers
        return self.max_vehicles


@dataclass
class Subscriber:
    """Domain entity: a transporter's subscription to a plan."""
    subscriber_id: str
    user_id: str
    plan_id: str
    start_date: datetime
    end_date: datetime
    is_active: bool = True
    status: SubscriberStatus = SubscriberStatus.ACTIVE
    current_usage: dict = field(default_factory=dict)
