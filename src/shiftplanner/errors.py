"""Exception types raised at command boundaries.

Expected domain conflicts are reported as ``ConflictResult`` values by the
validation layer. These exceptions are what mutation commands raise when a
request cannot be applied.
"""

from typing import Optional


class ShiftPlannerError(Exception):
    """Base class for all shiftplanner errors."""


class ValidationError(ShiftPlannerError):
    """Malformed input: degenerate time interval, missing field, bad format."""

    def __init__(self, message: str, field: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.field = field

    def __str__(self) -> str:
        if self.field:
            return f"{self.field}: {self.message}"
        return self.message


class ConflictError(ShiftPlannerError):
    """An assignment violates a scheduling rule.

    Attributes:
        rule: The violated ``ConflictRule``.
        reason: Human-readable explanation.
    """

    def __init__(self, rule, reason: str):
        super().__init__(f"[{rule.value}] {reason}")
        self.rule = rule
        self.reason = reason


class NotFoundError(ShiftPlannerError):
    """A referenced record does not exist."""

    def __init__(self, kind: str, record_id: str):
        super().__init__(f"{kind} not found: {record_id}")
        self.kind = kind
        self.record_id = record_id


class ExternalServiceError(ShiftPlannerError):
    """The assistant or auto-fill service failed or returned unusable output."""


class ReconciliationError(ShiftPlannerError):
    """Internal invariant violation inside the coverage reconciler.

    This signals a programming error, not a recoverable domain condition.
    """
