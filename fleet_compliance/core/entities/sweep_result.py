"""
Entity: Sweep Result

Per-company results returned by each sweep task and the aggregate
summary built from them.
"""

from dataclasses import dataclass, field
from datetime import datetime


@dataclass
class CompanySweepResult:
    """Outcome of processing one company."""
    company_id: str
    notifications_sent: int = 0
    deactivated: int = 0
    errors: list[str] = field(default_factory=list)   # per-entity, non-fatal
    error: str | None = None                          # company-level failure
    latency_ms: float = 0.0

    @property
    def failed(self) -> bool:
        return self.error is not None


@dataclass
class SweepSummary:
    """Aggregate of one compliance sweep."""
    reference_date: datetime
    companies_processed: int = 0
    companies_failed: int = 0
    notifications_sent: int = 0
    deactivated: int = 0
    results: list[CompanySweepResult] = field(default_factory=list)
    total_latency_ms: float = 0.0

    def add(self, result: CompanySweepResult) -> None:
        self.results.append(result)
        self.companies_processed += 1
        self.notifications_sent += result.notifications_sent
        self.deactivated += result.deactivated
        if result.failed:
            self.companies_failed += 1


@dataclass
class SubscriptionSweepSummary:
    """Aggregate of one subscription expiry sweep."""
    reference_date: datetime
    expired: int = 0
    reminders_sent: int = 0
    errors: list[str] = field(default_factory=list)
