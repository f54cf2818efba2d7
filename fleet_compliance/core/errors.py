"""
Domain errors.

Raised by use cases and adapters; the sweep catches them per entity and
per company and records them in the summary instead of aborting.
"""


class ComplianceError(Exception):
    """Base class for every error raised by the compliance engine."""


class NotFoundError(ComplianceError):
    """Company, driver, vehicle or subscriber does not exist."""

    def __init__(self, kind: str, entity_id: str):
        self.kind = kind
        self.entity_id = entity_id
        super().__init__(f"{kind} {entity_id} not found")


class ConfigurationError(ComplianceError):
    """Plan or subscriber data is missing or inconsistent."""


class TransportError(ComplianceError):
    """A notification could not be delivered on any channel."""


class PersistenceError(ComplianceError):
    """A store read or write failed."""


class AssignmentError(ComplianceError):
    """A driver/vehicle assignment would break an assignment invariant."""


class SweepTimeoutError(ComplianceError):
    """A company exceeded its per-run processing deadline."""
