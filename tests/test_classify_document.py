"""
Tests for the document classifier: stage boundaries, thresholds, monotonicity.
"""

from datetime import date, datetime, timedelta, timezone

import pytest

from fleet_compliance.core.entities.stage import DocumentStage, StageKind
from fleet_compliance.core.use_cases.classify_document import (
    DocumentClassifier,
    classify,
    days_until,
    to_naive_utc,
)

REF = datetime(2025, 1, 10, 9, 0, 0)


@pytest.mark.parametrize(
    "offset_days, expected",
    [
        (60, DocumentStage.valid(60)),
        (16, DocumentStage.valid(16)),
        (15, DocumentStage.expiring_soon(15)),
        (8, DocumentStage.valid(8)),
        (7, DocumentStage.expiring_soon(7)),
        (3, DocumentStage.expiring_soon(3)),
        (2, DocumentStage.valid(2)),
        (1, DocumentStage.expiring_soon(1)),
        (0, DocumentStage.expired(0)),
        (-1, DocumentStage.grace_period(1)),
        (-2, DocumentStage.expired(2)),
        (-7, DocumentStage.grace_period(7)),
        (-14, DocumentStage.grace_period(14)),
        (-20, DocumentStage.expired(20)),
        (-30, DocumentStage.expired(30)),
        (-31, DocumentStage.deactivatable(31)),
        (-400, DocumentStage.deactivatable(400)),
    ],
)
def test_classify_day_offsets(offset_days, expected):
    assert classify(REF + timedelta(days=offset_days), REF) == expected


def test_partial_days_round_up():
    # 6 days and 1 hour left counts as 7
    assert classify(REF + timedelta(days=6, hours=1), REF) == DocumentStage.expiring_soon(7)
    # expired 1 hour ago: ceil(-1/24) == 0
    assert classify(REF - timedelta(hours=1), REF) == DocumentStage.expired(0)


def test_thresholds_are_exact_match():
    stages = {classify(REF + timedelta(days=d), REF).kind for d in (4, 5, 6)}
    assert stages == {StageKind.VALID}


def test_classify_is_deterministic():
    expiry = REF + timedelta(days=7)
    assert classify(expiry, REF) == classify(expiry, REF)


def test_stage_phase_is_monotonic_in_time():
    expiry = REF
    phases = [classify(expiry, REF + timedelta(days=d)).phase for d in range(-40, 60)]
    assert phases == sorted(phases)
    assert set(phases) == {0, 1, 2}


def test_all_five_kinds_reachable():
    kinds = {classify(REF + timedelta(days=d), REF).kind for d in range(-40, 40)}
    assert kinds == set(StageKind)


def test_custom_thresholds():
    classifier = DocumentClassifier(expiring_thresholds=(30,), grace_thresholds=(2,), deactivation_after_days=5)
    assert classifier.classify(REF + timedelta(days=30), REF) == DocumentStage.expiring_soon(30)
    assert classifier.classify(REF + timedelta(days=7), REF).kind == StageKind.VALID
    assert classifier.classify(REF - timedelta(days=2), REF) == DocumentStage.grace_period(2)
    assert classifier.classify(REF - timedelta(days=6), REF) == DocumentStage.deactivatable(6)


def test_dates_and_aware_datetimes_are_normalized():
    aware = datetime(2025, 1, 17, 9, 0, tzinfo=timezone.utc)
    assert to_naive_utc(aware) == datetime(2025, 1, 17, 9, 0)
    assert to_naive_utc(date(2025, 1, 17)) == datetime(2025, 1, 17)
    assert classify(aware, REF) == DocumentStage.expiring_soon(7)


def test_days_until():
    assert days_until(REF + timedelta(days=3), REF) == 3
    assert days_until(REF - timedelta(days=3), REF) == -3
    assert days_until(REF + timedelta(seconds=1), REF) == 1


def test_stage_str():
    assert str(DocumentStage.expiring_soon(7)) == "EXPIRING_SOON(7)"
    assert str(DocumentStage(StageKind.VALID)) == "VALID"
