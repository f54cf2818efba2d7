"""
Tests for subscription entitlement checks.
"""

from datetime import timedelta

import pytest

from conftest import REFERENCE_DATE
from fleet_compliance.core.entities.subscription import UNLIMITED, Plan, ResourceType, Subscriber
from fleet_compliance.core.errors import NotFoundError
from fleet_compliance.core.use_cases.check_entitlement import CheckEntitlementUseCase


@pytest.fixture
def use_case(companies, drivers, vehicles, subscribers):
    return CheckEntitlementUseCase(companies, drivers, vehicles, subscribers)


@pytest.fixture
def subscribe(subscribers):
    def _subscribe(max_drivers=5, max_vehicles=3, is_active=True, days_left=30, user_id="u1", plan_id="basic"):
        subscribers.add_plan(Plan(id=plan_id, name=plan_id.title(), max_drivers=max_drivers, max_vehicles=max_vehicles))
        return subscribers.add(Subscriber(
            subscriber_id=f"sub-{user_id}",
            user_id=user_id,
            plan_id=plan_id,
            start_date=REFERENCE_DATE - timedelta(days=10),
            end_date=REFERENCE_DATE + timedelta(days=days_left),
            is_active=is_active,
        ))
    return _subscribe


def test_limit_reached_denies(use_case, subscribe, make_company, make_driver):
    """Plan allows 5 drivers, company has 5."""
    subscribe(max_drivers=5)
    make_company()
    for i in range(5):
        make_driver(driver_id=f"d{i}")

    decision = use_case.can_add(ResourceType.DRIVER, "c1", now=REFERENCE_DATE)

    assert decision.allowed is False
    assert decision.current_count == 5
    assert decision.max_allowed == 5
    assert decision.reason == "Driver limit reached (5). Upgrade your plan to add more drivers."
    assert decision.remaining == 0


def test_under_limit_allows(use_case, subscribe, make_company, make_vehicle):
    subscribe(max_vehicles=3)
    make_company()
    make_vehicle("v1")

    decision = use_case.can_add(ResourceType.VEHICLE, "c1", now=REFERENCE_DATE)

    assert decision.allowed is True
    assert decision.current_count == 1
    assert decision.max_allowed == 3
    assert decision.remaining == 2


def test_inactive_subscriber_denies_regardless_of_counts(use_case, subscribe, make_company):
    subscribe(max_drivers=UNLIMITED, is_active=False)
    make_company()

    decision = use_case.can_add(ResourceType.DRIVER, "c1", now=REFERENCE_DATE)

    assert decision.allowed is False
    assert decision.reason.startswith("No active subscription")
    assert decision.current_count == 0


def test_no_subscriber_denies(use_case, make_company):
    make_company()
    decision = use_case.can_add("vehicle", "c1", now=REFERENCE_DATE)
    assert decision.allowed is False
    assert decision.reason == "No active subscription. Please subscribe to add vehicles."


def test_expired_end_date_denies(use_case, subscribe, make_company):
    subscribe(days_left=-1)
    make_company()

    decision = use_case.can_add(ResourceType.DRIVER, "c1", now=REFERENCE_DATE)

    assert decision.allowed is False
    assert "expired" in decision.reason


def test_unlimited_plan_allows_any_count(use_case, subscribe, make_company, make_driver):
    subscribe(max_drivers=UNLIMITED)
    make_company()
    for i in range(50):
        make_driver(driver_id=f"d{i}")

    decision = use_case.can_add(ResourceType.DRIVER, "c1", now=REFERENCE_DATE)

    assert decision.allowed is True
    assert decision.max_allowed == UNLIMITED
    assert decision.remaining is None


def test_zero_limit_denies(use_case, subscribe, make_company):
    subscribe(max_vehicles=0)
    make_company()
    decision = use_case.can_add(ResourceType.VEHICLE, "c1", now=REFERENCE_DATE)
    assert decision.allowed is False
    assert decision.max_allowed == 0


def test_missing_plan_denies_with_support_message(use_case, subscribers, make_company):
    make_company()
    subscribers.add(Subscriber(
        subscriber_id="sub-u1",
        user_id="u1",
        plan_id="ghost",
        start_date=REFERENCE_DATE,
        end_date=REFERENCE_DATE + timedelta(days=30),
    ))

    decision = use_case.can_add(ResourceType.DRIVER, "c1", now=REFERENCE_DATE)

    assert decision.allowed is False
    assert "contact support" in decision.reason


def test_unknown_company_raises(use_case):
    with pytest.raises(NotFoundError):
        use_case.can_add(ResourceType.DRIVER, "missing")


def test_counts_are_scoped_to_company(use_case, subscribe, make_company, make_driver):
    subscribe(max_drivers=2)
    make_company("c1")
    make_company("c2")
    make_driver("d1", company_id="c1")
    make_driver("d2", company_id="c2")
    make_driver("d3", company_id="c2")

    assert use_case.can_add(ResourceType.DRIVER, "c1", now=REFERENCE_DATE).allowed is True
    assert use_case.can_add(ResourceType.DRIVER, "c2", now=REFERENCE_DATE).allowed is False
