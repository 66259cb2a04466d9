"""Availability rules for employees.

Decides whether an employee may work a venue on a date under their
availability mode. Absences are not considered here; ConflictDetector checks
them before consulting this model.
"""

from datetime import date
from typing import Optional

from shiftplanner.domain.models import (
    DayOfWeek,
    Employee,
    FixedDaysAvailability,
    FlexibleAvailability,
    HybridAvailability,
)


class AvailabilityModel:
    """Evaluates flexible, fixed-days and hybrid availability.

    Example:
        >>> model = AvailabilityModel()
        >>> model.is_available(employee, date(2024, 6, 10), "venue_1")
        True
    """

    def is_available(
        self,
        employee: Employee,
        d: date,
        venue_id: str,
        is_show_override: bool = False,
    ) -> bool:
        """Check whether an employee may work a venue on a date.

        Args:
            employee: Employee to check.
            d: Calendar date of the work.
            venue_id: Venue of the work.
            is_show_override: True when the work is a show. A show at the
                venue configured for that weekday is always available.

        Returns:
            True if the employee is available.
        """
        return self.unavailable_reason(employee, d, venue_id, is_show_override) is None

    def unavailable_reason(
        self,
        employee: Employee,
        d: date,
        venue_id: str,
        is_show_override: bool = False,
    ) -> Optional[str]:
        """Same as ``is_available`` but explains a negative answer.

        Returns:
            None when available, otherwise a human-readable reason.
        """
        day = DayOfWeek.from_date(d)

        if is_show_override and employee.show_venue_for(day) == venue_id:
            return None

        availability = employee.availability
        if isinstance(availability, FlexibleAvailability):
            return self._check_allowed(employee, venue_id)

        if isinstance(availability, FixedDaysAvailability):
            if day not in availability.days:
                return f"{employee.name} does not work on {day.value}"
            return self._check_allowed(employee, venue_id)

        if isinstance(availability, HybridAvailability):
            fixed_venue = availability.venue_for(day)
            if fixed_venue is None:
                return self._check_allowed(employee, venue_id)
            if fixed_venue != venue_id:
                return (
                    f"{employee.name} is fixed to venue {fixed_venue} "
                    f"on {day.value}"
                )
            return None

        raise TypeError(f"Unknown availability type: {type(availability).__name__}")

    @staticmethod
    def _check_allowed(employee: Employee, venue_id: str) -> Optional[str]:
        if employee.can_work_venue(venue_id):
            return None
        return f"{employee.name} is not allowed at venue {venue_id}"
