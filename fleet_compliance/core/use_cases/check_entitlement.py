"""
Use Case: Check Entitlement

Decides whether a company may add one more driver or vehicle under its
owner's subscription plan. Read-only, so request handlers can call it as a
guard before creating the resource.

No lock is taken: two concurrent creations for the same company can both
pass the check and exceed the limit by one.
"""

import logging
from dataclasses import dataclass
from datetime import datetime

from fleet_compliance.core.entities.subscription import ResourceType, is_unlimited
from fleet_compliance.core.errors import ConfigurationError, NotFoundError
from fleet_compliance.core.interfaces.company_store import ICompanyStore
from fleet_compliance.core.interfaces.driver_store import IDriverStore
from fleet_compliance.core.interfaces.subscriber_store import ISubscriberStore
from fleet_compliance.core.interfaces.vehicle_store import IVehicleStore
from fleet_compliance.core.use_cases.classify_document import to_naive_utc, utcnow

logger = logging.getLogger(__name__)


@dataclass
class EntitlementDecision:
    allowed: bool
    reason: str | None = None
    current_count: int = 0
    max_allowed: int | None = None

    @property
    def remaining(self) -> int | None:
        if self.max_allowed is None or is_unlimited(self.max_allowed):
            return None
        return max(self.max_allowed - self.current_count, 0)


class CheckEntitlementUseCase:
    """
    Use Case: company → transporter → active subscriber → plan → limit.

    Fails closed: anything short of an active, unexpired subscription with
    a resolvable plan is a denial.
    """

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

    def can_add(
        self,
        resource_type: ResourceType,
        company_id: str,
        now: datetime | None = None,
    ) -> EntitlementDecision:
        """
        Check whether one more resource of this type may be created.

        Raises:
            NotFoundError: the company does not exist.
        """
        resource_type = ResourceType(resource_type)
        company = self._companies.get(company_id)
        if company is None:
            raise NotFoundError("Company", company_id)

        current = self._count(resource_type, company_id)

        subscriber = self._subscribers.get_active_by_user(company.transporter_id)
        if subscriber is None or not subscriber.is_active:
            return EntitlementDecision(
                allowed=False,
                reason=f"No active subscription. Please subscribe to add {resource_type.plural}.",
                current_count=current,
            )

        reference = to_naive_utc(now) if now else utcnow()
        if to_naive_utc(subscriber.end_date) <= reference:
            return EntitlementDecision(
                allowed=False,
                reason=f"Your subscription has expired. Please renew to add {resource_type.plural}.",
                current_count=current,
            )

        try:
            plan = self._resolve_plan(subscriber)
        except ConfigurationError as e:
            logger.error(f"Entitlement denied for company {company_id}: {e}")
            return EntitlementDecision(
                allowed=False,
                reason="Subscription plan could not be resolved. Please contact support.",
                current_count=current,
            )

        limit = plan.limit_for(resource_type)
        if is_unlimited(limit):
            return EntitlementDecision(allowed=True, current_count=current, max_allowed=limit)

        if current >= limit:
            label = resource_type.value.capitalize()
            return EntitlementDecision(
                allowed=False,
                reason=f"{label} limit reached ({limit}). Upgrade your plan to add more {resource_type.plural}.",
                current_count=current,
                max_allowed=limit,
            )

        return EntitlementDecision(allowed=True, current_count=current, max_allowed=limit)

    def _resolve_plan(self, subscriber):
        plan = self._subscribers.get_plan(subscriber.plan_id)
        if plan is None:
            raise ConfigurationError(
                f"Plan {subscriber.plan_id} of subscriber {subscriber.subscriber_id} not found"
            )
        return plan

    def _count(self, resource_type: ResourceType, company_id: str) -> int:
        if resource_type == ResourceType.DRIVER:
            return self._drivers.count_by_company(company_id)
        return self._vehicles.count_by_company(company_id)
