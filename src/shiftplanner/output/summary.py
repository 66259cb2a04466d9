"""Weekly summary of a schedule.

This module computes the week-level figures shown on the dashboard:
- Total scheduled hours and the number of open shifts
- Hours per employee, and which regular employees are off target
- Hours per venue
- Absences starting during the week
"""

from dataclasses import dataclass, field
from datetime import date
from pathlib import Path
from typing import Union

from shiftplanner.domain.models import Absence, Employee, EmployeeType
from shiftplanner.scheduling.week import week_dates, week_start
from shiftplanner.store.state import ScheduleState

# Regular employees within this fraction of their target are balanced
TARGET_TOLERANCE = 0.1


@dataclass(frozen=True)
class UpcomingAbsence:
    employee_id: str
    employee_name: str
    absence: Absence


@dataclass
class WeeklySummary:
    """Week-level scheduling figures.

    Only shifts at active venues are counted. Employee figures cover active
    employees only.

    Attributes:
        week_start: Monday of the summarized week.
        total_hours: Hours of all shifts in the week, assigned or open.
        open_shifts: Number of unassigned shifts in the week.
        hours_per_employee: Dict mapping employee ID to scheduled hours.
        imbalanced_employee_ids: Regular employees outside the tolerance
            around their target hours.
        hours_per_venue: Dict mapping venue ID to scheduled hours.
        venue_names: Dict mapping venue ID to display name.
        upcoming_absences: Absences whose first day falls in the week.
    """

    week_start: date
    total_hours: float = 0.0
    open_shifts: int = 0
    hours_per_employee: dict[str, float] = field(default_factory=dict)
    imbalanced_employee_ids: list[str] = field(default_factory=list)
    hours_per_venue: dict[str, float] = field(default_factory=dict)
    venue_names: dict[str, str] = field(default_factory=dict)
    upcoming_absences: list[UpcomingAbsence] = field(default_factory=list)

    @property
    def imbalanced_count(self) -> int:
        return len(self.imbalanced_employee_ids)

    def venue_hours(self) -> list[tuple[str, float]]:
        """(venue name, hours) pairs in venue order, for display."""
        return [
            (self.venue_names.get(venue_id, venue_id), hours)
            for venue_id, hours in self.hours_per_venue.items()
        ]

    @classmethod
    def calculate(cls, state: ScheduleState, start: date) -> "WeeklySummary":
        """Calculate the summary of the week containing ``start``."""
        monday = week_start(start)
        dates = week_dates(monday)
        active_venues = state.active_venues
        active_ids = {v.id for v in active_venues}
        shifts = [s for s in state.shifts_on(dates) if s.venue_id in active_ids]

        hours_per_employee = {}
        for employee in state.active_employees:
            hours_per_employee[employee.id] = sum(
                s.duration_hours for s in shifts if s.employee_id == employee.id
            )

        imbalanced = [
            e.id
            for e in state.active_employees
            if is_off_target(e, hours_per_employee[e.id])
        ]

        hours_per_venue = {
            v.id: sum(s.duration_hours for s in shifts if s.venue_id == v.id)
            for v in active_venues
        }

        upcoming = [
            UpcomingAbsence(employee_id=e.id, employee_name=e.name, absence=a)
            for e in state.active_employees
            for a in e.absences
            if dates[0] <= a.start_date <= dates[-1]
        ]
        upcoming.sort(key=lambda u: (u.absence.start_date, u.employee_name))

        return cls(
            week_start=monday,
            total_hours=sum(s.duration_hours for s in shifts),
            open_shifts=sum(1 for s in shifts if s.is_open),
            hours_per_employee=hours_per_employee,
            imbalanced_employee_ids=imbalanced,
            hours_per_venue=hours_per_venue,
            venue_names={v.id: v.name for v in active_venues},
            upcoming_absences=upcoming,
        )


def is_off_target(employee: Employee, hours: float) -> bool:
    """Check whether a regular employee's hours miss their target band.

    Extra staff have no target and are never off target.
    """
    if employee.type == EmployeeType.EXTRA:
        return False
    low = employee.target_hours * (1 - TARGET_TOLERANCE)
    high = employee.target_hours * (1 + TARGET_TOLERANCE)
    return hours < low or hours > high


class SummaryReport:
    """Generates a plain-text weekly summary report."""

    def generate(
        self,
        state: ScheduleState,
        start: date,
        output_path: Union[str, Path],
    ) -> str:
        """Generate the report and save it to a file.

        Args:
            state: Schedule to summarize.
            start: Any date in the week to summarize.
            output_path: Path to save the text file.

        Returns:
            The generated text content.
        """
        content = self.generate_to_string(state, start)
        Path(output_path).write_text(content)
        return content

    def generate_to_string(self, state: ScheduleState, start: date) -> str:
        summary = WeeklySummary.calculate(state, start)
        return self._generate_content(state, summary)

    def _generate_content(self, state: ScheduleState, summary: WeeklySummary) -> str:
        lines = []

        lines.append("=" * 72)
        lines.append(f"WEEKLY SUMMARY - week of {summary.week_start.isoformat()}")
        lines.append("=" * 72)
        lines.append("")
        lines.append(f"Total hours:          {summary.total_hours:.1f}")
        lines.append(f"Open shifts:          {summary.open_shifts}")
        lines.append(f"Off-target employees: {summary.imbalanced_count}")
        lines.append("")

        lines.append("-" * 72)
        lines.append("HOURS PER EMPLOYEE")
        lines.append("-" * 72)
        lines.append(f"{'Name':<24} {'Type':<8} {'Hours':>7} {'Target':>7}  ")
        lines.append("-" * 72)
        for employee in sorted(state.active_employees, key=lambda e: e.name):
            hours = summary.hours_per_employee.get(employee.id, 0.0)
            if employee.type == EmployeeType.EXTRA:
                target = "-"
            else:
                target = f"{employee.target_hours:.1f}"
            flag = "*" if employee.id in summary.imbalanced_employee_ids else ""
            lines.append(
                f"{employee.name[:24]:<24} {employee.type.value:<8} "
                f"{hours:>7.1f} {target:>7} {flag}"
            )
        lines.append("")

        lines.append("-" * 72)
        lines.append("HOURS PER VENUE")
        lines.append("-" * 72)
        max_hours = max(summary.hours_per_venue.values(), default=0.0) or 1.0
        for name, hours in summary.venue_hours():
            bar = "#" * int(round(hours / max_hours * 30))
            lines.append(f"{name[:24]:<24} {hours:>7.1f} {bar}")
        lines.append("")

        lines.append("-" * 72)
        lines.append("ABSENCES STARTING THIS WEEK")
        lines.append("-" * 72)
        if not summary.upcoming_absences:
            lines.append("None")
        for upcoming in summary.upcoming_absences:
            absence = upcoming.absence
            lines.append(
                f"{upcoming.employee_name[:24]:<24} {absence.type.value:<22} "
                f"{absence.start_date.isoformat()} - {absence.end_date.isoformat()}"
            )
        lines.append("")

        return "\n".join(lines)
