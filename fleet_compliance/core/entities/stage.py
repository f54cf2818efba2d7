"""
Entity: Document Stage

Lifecycle position of a regulated document relative to its expiry date.
Computed on demand, never stored.
"""

from dataclasses import dataclass
from enum import Enum


class StageKind(str, Enum):
    VALID = "VALID"
    EXPIRING_SOON = "EXPIRING_SOON"
    EXPIRED = "EXPIRED"
    GRACE_PERIOD = "GRACE_PERIOD"
    DEACTIVATABLE = "DEACTIVATABLE"


# Coarse ordering used for monotonicity: active < lapsed < deactivatable
_PHASES = {
    StageKind.VALID: 0,
    StageKind.EXPIRING_SOON: 0,
    StageKind.EXPIRED: 1,
    StageKind.GRACE_PERIOD: 1,
    StageKind.DEACTIVATABLE: 2,
}


@dataclass(frozen=True)
class DocumentStage:
    """Tagged union: kind plus the day count that triggered it."""
    kind: StageKind
    days: int | None = None       # days_left for EXPIRING_SOON, days_past otherwise

    @property
    def phase(self) -> int:
        return _PHASES[self.kind]

    @classmethod
    def valid(cls, days_left: int) -> "DocumentStage":
        return cls(StageKind.VALID, days_left)

    @classmethod
    def expiring_soon(cls, days_left: int) -> "DocumentStage":
        return cls(StageKind.EXPIRING_SOON, days_left)

    @classmethod
    def expired(cls, days_past: int) -> "DocumentStage":
        return cls(StageKind.EXPIRED, days_past)

    @classmethod
    def grace_period(cls, days_past: int) -> "DocumentStage":
        return cls(StageKind.GRACE_PERIOD, days_past)

    @classmethod
    def deactivatable(cls, days_past: int) -> "DocumentStage":
        return cls(StageKind.DEACTIVATABLE, days_past)

    def __str__(self) -> str:
        if self.days is None:
            return self.kind.value
        return f"{self.kind.value}({self.days})"
