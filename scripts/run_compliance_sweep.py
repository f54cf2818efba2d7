"""
Compliance Sweep Runner

Runs one compliance sweep over every company (document notifications and
deactivations), and optionally the subscription expiry sweep. Meant to be
invoked once a day by cron.

Usage:
    python -m scripts.run_compliance_sweep [--date 2025-01-10] [--subscriptions] [--json]
"""
import argparse
import json
import logging
import os
import sys
from dataclasses import asdict
from datetime import datetime
from pathlib import Path

from dotenv import load_dotenv

# Add project root to path
sys.path.insert(0, str(Path(__file__).resolve().parent.parent))
load_dotenv(os.path.join(os.path.dirname(os.path.dirname(os.path.abspath(__file__))), ".env"))

from fleet_compliance.config.settings import get_settings
from fleet_compliance.core.use_cases.classify_document import DocumentClassifier
from fleet_compliance.core.use_cases.run_compliance_sweep import RunComplianceSweepUseCase
from fleet_compliance.core.use_cases.run_subscription_sweep import RunSubscriptionSweepUseCase
from fleet_compliance.infrastructure.db.database import init_db
from fleet_compliance.infrastructure.db.repository import (
    SqlCompanyStore,
    SqlDriverStore,
    SqlNotificationLedger,
    SqlSubscriberStore,
    SqlVehicleStore,
)
from fleet_compliance.infrastructure.notifications.factory import build_dispatcher

logger = logging.getLogger("run_compliance_sweep")


def parse_date(value: str) -> datetime:
    try:
        return datetime.strptime(value, "%Y-%m-%d")
    except ValueError:
        raise argparse.ArgumentTypeError(f"Invalid date '{value}', expected YYYY-MM-DD")


def main(argv=None) -> int:
    parser = argparse.ArgumentParser(description="Run the fleet compliance sweep")
    parser.add_argument("--date", type=parse_date, default=None, help="Reference date (default: now, UTC)")
    parser.add_argument("--subscriptions", action="store_true", help="Also run the subscription expiry sweep")
    parser.add_argument("--json", action="store_true", help="Print the summary as JSON")
    args = parser.parse_args(argv)

    settings = get_settings()
    logging.basicConfig(
        level=logging.DEBUG if settings.debug else logging.INFO,
        format="%(asctime)s %(levelname)s [%(threadName)s] %(name)s: %(message)s",
    )

    init_db()
    companies = SqlCompanyStore()
    ledger = SqlNotificationLedger()
    dispatcher = build_dispatcher(settings)

    sweep = RunComplianceSweepUseCase(
        company_store=companies,
        driver_store=SqlDriverStore(),
        vehicle_store=SqlVehicleStore(),
        ledger=ledger,
        dispatcher=dispatcher,
        classifier=DocumentClassifier(
            expiring_thresholds=settings.expiring_thresholds,
            grace_thresholds=settings.grace_thresholds,
            deactivation_after_days=settings.deactivation_after_days,
        ),
        max_workers=settings.sweep_max_workers,
        company_timeout_seconds=settings.sweep_company_timeout_seconds,
    )
    summary = sweep.execute(args.date)
    report = {"compliance": asdict(summary)}

    if args.subscriptions:
        subscription_sweep = RunSubscriptionSweepUseCase(
            subscriber_store=SqlSubscriberStore(),
            company_store=companies,
            ledger=ledger,
            dispatcher=dispatcher,
            reminder_days=settings.subscription_reminder_days,
        )
        report["subscriptions"] = asdict(subscription_sweep.execute(args.date))

    if args.json:
        print(json.dumps(report, indent=2, default=str))
    else:
        print(f"{'='*60}")
        print(f"  COMPLIANCE SWEEP ({summary.reference_date.date()})")
        print(f"{'='*60}")
        print(f"  Companies processed: {summary.companies_processed}")
        print(f"  Companies failed:    {summary.companies_failed}")
        print(f"  Notifications sent:  {summary.notifications_sent}")
        print(f"  Deactivated:         {summary.deactivated}")
        print(f"  Total time:          {summary.total_latency_ms / 1000:.1f} s")
        for result in summary.results:
            if result.failed or result.errors:
                print(f"  ! {result.company_id}: {result.error or '; '.join(result.errors)}")
        if "subscriptions" in report:
            subs = report["subscriptions"]
            print(f"  Subscriptions expired: {subs['expired']}, reminders: {subs['reminders_sent']}")
        print(f"{'='*60}")

    return 1 if summary.companies_failed else 0


if __name__ == "__main__":
    sys.exit(main())
