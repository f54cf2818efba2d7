"""
Use Case: Subscription Status

Reports a transporter's subscription, plan and usage across all of the
transporter's companies.
"""

from dataclasses import dataclass, field
from datetime import datetime

from fleet_compliance.core.entities.subscription import Plan, Subscriber, is_unlimited
from fleet_compliance.core.interfaces.company_store import ICompanyStore
from fleet_compliance.core.interfaces.driver_store import IDriverStore
from fleet_compliance.core.interfaces.subscriber_store import ISubscriberStore
from fleet_compliance.core.interfaces.vehicle_store import IVehicleStore
from fleet_compliance.core.use_cases.classify_document import days_until, utcnow


@dataclass
class UsageCounter:
    current: int
    max: int
    unlimited: bool


@dataclass
class SubscriptionStatus:
    has_subscription: bool
    message: str = ""
    subscriber: Subscriber | None = None
    plan: Plan | None = None
    usage: dict[str, UsageCounter] = field(default_factory=dict)
    days_remaining: int = 0


class GetSubscriptionStatusUseCase:
    """Use Case: subscription + plan + usage for one transporter."""

    def __init__(
        self,
        company_store: ICompanyStore,
        driver_store: IDriverStore,
        vehicle_store: IVehicleStore,
        subscriber_store: ISubscriberStore,
    ):
        self._companies = company_store
        self._drivers = driver_store
        self._vehicles = vehicle_store
        self._subscribers = subscriber_store

    def execute(self, user_id: str, now: datetime | None = None) -> SubscriptionStatus:
        subscriber = self._subscribers.get_active_by_user(user_id)
        if subscriber is None:
            return SubscriptionStatus(has_subscription=False, message="No active subscription")

        plan = self._subscribers.get_plan(subscriber.plan_id)
        days_remaining = days_until(subscriber.end_date, now or utcnow())
        if plan is None:
            return SubscriptionStatus(
                has_subscription=True,
                message=f"Plan {subscriber.plan_id} not found",
                subscriber=subscriber,
                days_remaining=days_remaining,
            )

        total_drivers = 0
        total_vehicles = 0
        for company in self._companies.get_by_transporter(user_id):
            total_drivers += self._drivers.count_by_company(company.id)
            total_vehicles += self._vehicles.count_by_company(company.id)

        return SubscriptionStatus(
            has_subscription=True,
            subscriber=subscriber,
            plan=plan,
            usage={
                "drivers": UsageCounter(total_drivers, plan.max_drivers, is_unlimited(plan.max_drivers)),
                "vehicles": UsageCounter(total_vehicles, plan.max_vehicles, is_unlimited(plan.max_vehicles)),
            },
            days_remaining=days_remaining,
        )
