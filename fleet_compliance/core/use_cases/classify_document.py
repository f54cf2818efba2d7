"""
Use Case: Classify Document

Maps (expiry_date, reference_date) to a lifecycle stage.
Pure and deterministic: no I/O, no clock reads.

Thresholds are exact-match: EXPIRING_SOON(7) only fires when the document
expires in exactly 7 days, so a sweep that skips that day misses the tier.
Deactivation is continuous: anything expired for more than
`deactivation_after_days` is DEACTIVATABLE.
"""

import math
from datetime import date, datetime, timezone

from fleet_compliance.core.entities.stage import DocumentStage

DEFAULT_EXPIRING_THRESHOLDS = (15, 7, 3, 1)
DEFAULT_GRACE_THRESHOLDS = (1, 7, 14)
DEFAULT_DEACTIVATION_AFTER_DAYS = 30

SECONDS_PER_DAY = 24 * 60 * 60


def utcnow() -> datetime:
    """Current time as naive UTC, the convention used across the engine."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def to_naive_utc(value: datetime | date) -> datetime:
    """Normalize dates and aware datetimes to naive UTC datetimes."""
    if not isinstance(value, datetime):
        return datetime(value.year, value.month, value.day)
    if value.tzinfo is not None:
        return value.astimezone(timezone.utc).replace(tzinfo=None)
    return value


def days_until(target: datetime | date, reference: datetime | date) -> int:
    """ceil((target - reference) / 1 day). Negative once target has passed."""
    delta = to_naive_utc(target) - to_naive_utc(reference)
    return math.ceil(delta.total_seconds() / SECONDS_PER_DAY)


class DocumentClassifier:
    """
    Classifies a document's expiry date into a DocumentStage.

    Stage rules, with days_left = ceil((expiry - reference) / 1 day):
      days_left > 0 and in expiring thresholds  → EXPIRING_SOON(days_left)
      days_left > 0 otherwise                   → VALID
      days_past = -days_left > cutoff           → DEACTIVATABLE(days_past)
      days_past in grace thresholds             → GRACE_PERIOD(days_past)
      otherwise                                 → EXPIRED(days_past)
    """

    def __init__(
        self,
        expiring_thresholds=DEFAULT_EXPIRING_THRESHOLDS,
        grace_thresholds=DEFAULT_GRACE_THRESHOLDS,
        deactivation_after_days: int = DEFAULT_DEACTIVATION_AFTER_DAYS,
    ):
        self.expiring_thresholds = frozenset(expiring_thresholds)
        self.grace_thresholds = frozenset(grace_thresholds)
        self.deactivation_after_days = deactivation_after_days

    def classify(self, expiry_date: datetime | date, reference_date: datetime | date) -> DocumentStage:
        days_left = days_until(expiry_date, reference_date)

        if days_left > 0:
            if days_left in self.expiring_thresholds:
                return DocumentStage.expiring_soon(days_left)
            return DocumentStage.valid(days_left)

        days_past = -days_left
        if days_past > self.deactivation_after_days:
            return DocumentStage.deactivatable(days_past)
        if days_past in self.grace_thresholds:
            return DocumentStage.grace_period(days_past)
        return DocumentStage.expired(days_past)


_default_classifier = DocumentClassifier()


def classify(expiry_date: datetime | date, reference_date: datetime | date) -> DocumentStage:
    """Classify with the default thresholds."""
    return _default_classifier.classify(expiry_date, reference_date)
