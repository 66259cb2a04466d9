"""Immutable schedule state and configuration objects."""

from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Iterable, Optional

from shiftplanner.domain.models import (
    AbsenceType,
    AiSuggestion,
    Employee,
    Event,
    Shift,
    Venue,
)


@dataclass(frozen=True)
class AbsenceColors:
    """Display colour for each absence type."""

    vacation: str = "#3b82f6"
    medical_leave: str = "#ef4444"
    not_working: str = "#22c55e"
    requested_days_off: str = "#f472b6"

    def color_for(self, absence_type: AbsenceType) -> str:
        return {
            AbsenceType.VACATION: self.vacation,
            AbsenceType.MEDICAL_LEAVE: self.medical_leave,
            AbsenceType.NOT_WORKING: self.not_working,
            AbsenceType.REQUESTED_DAYS_OFF: self.requested_days_off,
        }[absence_type]


@dataclass(frozen=True)
class AppSettings:
    """Persisted presentation preferences.

    Attributes:
        show_border_color: Border colour of show shifts.
        extra_hours_border_color: Border colour of extra-hours shifts.
        theme: ``"light"`` or ``"dark"``.
        absence_colors: Colour per absence type.
        open_shift_color: Colour of unassigned shifts.
        show_logo: Whether exports carry the logo header.
        show_dashboard: Whether the weekly summary is shown.
    """

    show_border_color: str = "#a855f7"
    extra_hours_border_color: str = "#f97316"
    theme: str = "dark"
    absence_colors: AbsenceColors = field(default_factory=AbsenceColors)
    open_shift_color: str = "#f59e0b"
    show_logo: bool = True
    show_dashboard: bool = True


@dataclass(frozen=True)
class PublishedWeek:
    """Snapshot of a week's shifts at publication time.

    Attributes:
        week_id: ISO date of the week's Monday.
        published_at: When the week was published.
        shifts: Shifts of the week as they were published.
    """

    week_id: str
    published_at: datetime
    shifts: tuple[Shift, ...] = ()

    def __post_init__(self) -> None:
        object.__setattr__(self, "shifts", tuple(self.shifts))


@dataclass(frozen=True)
class ScheduleState:
    """The whole schedule aggregate as one immutable snapshot.

    Collections are tuples so snapshots kept in undo history never share
    mutable structure.
    """

    employees: tuple[Employee, ...] = ()
    venues: tuple[Venue, ...] = ()
    shifts: tuple[Shift, ...] = ()
    events: tuple[Event, ...] = ()
    published_weeks: tuple[PublishedWeek, ...] = ()
    settings: AppSettings = field(default_factory=AppSettings)
    ai_suggestions: tuple[AiSuggestion, ...] = ()

    def __post_init__(self) -> None:
        for name in (
            "employees",
            "venues",
            "shifts",
            "events",
            "published_weeks",
            "ai_suggestions",
        ):
            object.__setattr__(self, name, tuple(getattr(self, name)))

    def employee(self, employee_id: Optional[str]) -> Optional[Employee]:
        return _find(self.employees, employee_id)

    def venue(self, venue_id: Optional[str]) -> Optional[Venue]:
        return _find(self.venues, venue_id)

    def event(self, event_id: Optional[str]) -> Optional[Event]:
        return _find(self.events, event_id)

    def shift(self, shift_id: Optional[str]) -> Optional[Shift]:
        return _find(self.shifts, shift_id)

    def suggestion(self, suggestion_id: Optional[str]) -> Optional[AiSuggestion]:
        return _find(self.ai_suggestions, suggestion_id)

    def published_week(self, week_id: str) -> Optional[PublishedWeek]:
        for week in self.published_weeks:
            if week.week_id == week_id:
                return week
        return None

    def shifts_for_employee(self, employee_id: str) -> list[Shift]:
        """Get all shifts assigned to an employee."""
        return [s for s in self.shifts if s.employee_id == employee_id]

    def shifts_on(self, dates: Iterable[date]) -> list[Shift]:
        """Get all shifts dated on any of the given dates."""
        wanted = set(dates)
        return [s for s in self.shifts if s.date in wanted]

    @property
    def active_employees(self) -> list[Employee]:
        return [e for e in self.employees if e.is_active]

    @property
    def active_venues(self) -> list[Venue]:
        return [v for v in self.venues if v.is_active]


def _find(records, record_id):
    if record_id is None:
        return None
    for record in records:
        if record.id == record_id:
            return record
    return None


@dataclass
class StoreConfig:
    """Configuration for ScheduleStore.

    Attributes:
        history_limit: Maximum number of snapshots kept on each of the undo
            and redo stacks.
        reconcile_on_commit: Run open-shift reconciliation for the active
            week after every committed mutation.
    """

    history_limit: int = 50
    reconcile_on_commit: bool = True
