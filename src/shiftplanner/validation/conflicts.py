"""Conflict detection for shift assignments.

This module is the single source of truth for assignment legality. The same
checks back interactive assignment (a conflict is reported to the user) and
the configuration cascade (a conflict demotes the shift to open).
"""

from dataclasses import dataclass
from enum import Enum
from typing import Iterable, Optional

from shiftplanner.domain.models import Employee, Shift
from shiftplanner.errors import ConflictError
from shiftplanner.validation.availability import AvailabilityModel


class ConflictRule(Enum):
    """Rules an assignment can violate, in evaluation order."""

    VENUE_NOT_ALLOWED = "venue_not_allowed"
    ABSENCE = "absence"
    UNAVAILABLE = "unavailable"
    OVERLAP = "overlap"


@dataclass(frozen=True)
class ConflictResult:
    """Outcome of an assignment check.

    Attributes:
        ok: True if the assignment is legal.
        rule: The violated rule when not ok.
        reason: Human-readable explanation when not ok.
        conflicting_shift_id: The other shift for overlap conflicts.
    """

    ok: bool
    rule: Optional[ConflictRule] = None
    reason: str = ""
    conflicting_shift_id: Optional[str] = None

    @classmethod
    def success(cls) -> "ConflictResult":
        return cls(ok=True)

    @classmethod
    def conflict(
        cls,
        rule: ConflictRule,
        reason: str,
        conflicting_shift_id: Optional[str] = None,
    ) -> "ConflictResult":
        return cls(
            ok=False,
            rule=rule,
            reason=reason,
            conflicting_shift_id=conflicting_shift_id,
        )

    def raise_for_conflict(self) -> None:
        """Raise ConflictError if this result is a conflict."""
        if not self.ok:
            raise ConflictError(self.rule, self.reason)

    def __str__(self) -> str:
        if self.ok:
            return "ok"
        return f"[{self.rule.value}] {self.reason}"


class ConflictDetector:
    """Validates shift-to-employee bindings.

    Checks run in order and stop at the first failure:

    1. Venue permission (skipped for shows).
    2. Absence, comparing calendar dates with both ends inclusive.
    3. Availability (skipped for shows).
    4. Overlap with the employee's other shifts.

    Example:
        >>> detector = ConflictDetector()
        >>> result = detector.can_assign(employee, shift, employee_shifts)
        >>> if not result.ok:
        ...     print(result.reason)
    """

    def __init__(self, availability_model: Optional[AvailabilityModel] = None):
        self.availability_model = availability_model or AvailabilityModel()

    def can_assign(
        self,
        employee: Employee,
        candidate: Shift,
        employee_shifts: Iterable[Shift],
    ) -> ConflictResult:
        """Check whether a shift may be assigned to an employee.

        Args:
            employee: Employee receiving the shift.
            candidate: Shift being assigned or edited.
            employee_shifts: Shifts to check for overlap. Only those assigned
                to this employee are considered, and the candidate itself
                (matched by id) is skipped.

        Returns:
            ConflictResult describing the first violated rule, or success.
        """
        result = self.check_configuration(employee, candidate)
        if not result.ok:
            return result

        for other in employee_shifts:
            if other.id == candidate.id or other.employee_id != employee.id:
                continue
            if candidate.overlaps(other):
                return ConflictResult.conflict(
                    ConflictRule.OVERLAP,
                    f"{employee.name} already works {other.interval} "
                    f"on {other.date.isoformat()}",
                    conflicting_shift_id=other.id,
                )

        return ConflictResult.success()

    def check_configuration(self, employee: Employee, shift: Shift) -> ConflictResult:
        """Run the venue, absence and availability checks only."""
        if not shift.is_show and not employee.can_work_venue(shift.venue_id):
            return ConflictResult.conflict(
                ConflictRule.VENUE_NOT_ALLOWED,
                f"{employee.name} is not allowed at venue {shift.venue_id}",
            )

        absence = employee.absence_on(shift.date)
        if absence is not None:
            return ConflictResult.conflict(
                ConflictRule.ABSENCE,
                f"{employee.name} is absent ({absence.type.value}) from "
                f"{absence.start_date.isoformat()} to {absence.end_date.isoformat()}",
            )

        if not shift.is_show:
            reason = self.availability_model.unavailable_reason(
                employee, shift.date, shift.venue_id, shift.is_show
            )
            if reason is not None:
                return ConflictResult.conflict(ConflictRule.UNAVAILABLE, reason)

        return ConflictResult.success()

    def revalidate(
        self,
        employee: Employee,
        shifts: Iterable[Shift],
    ) -> list[tuple[Shift, ConflictResult]]:
        """Find assigned shifts that no longer fit an employee's configuration.

        Overlap is not re-checked: the shifts were already accepted together.

        Returns:
            List of (shift, conflict) pairs for each invalid shift.
        """
        invalid = []
        for shift in shifts:
            if shift.employee_id != employee.id:
                continue
            result = self.check_configuration(employee, shift)
            if not result.ok:
                invalid.append((shift, result))
        return invalid
