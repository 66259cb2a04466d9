"""Domain models for the staff scheduling system.

This module contains all core data structures used throughout the system:
venues with their staffing needs, employees with availability and absences,
events, shifts and assistant suggestions.

Every model is a frozen dataclass holding tuples rather than lists, so a
schedule snapshot can be shared between undo/redo history entries without
any risk of one entry mutating another.
"""

import re
from dataclasses import dataclass, field, replace
from datetime import date, datetime, time, timedelta
from enum import Enum
from typing import Optional, Union

from shiftplanner.errors import ValidationError

MINUTES_PER_DAY = 24 * 60

_HHMM = re.compile(r"^([01]\d|2[0-3]):([0-5]\d)$")


class DayOfWeek(Enum):
    """Day of the week.

    Values are the day names used by the persisted state, which keeps files
    written by earlier versions of the application readable.
    """

    MONDAY = "Lunes"
    TUESDAY = "Martes"
    WEDNESDAY = "Miércoles"
    THURSDAY = "Jueves"
    FRIDAY = "Viernes"
    SATURDAY = "Sábado"
    SUNDAY = "Domingo"

    @classmethod
    def from_date(cls, d: date) -> "DayOfWeek":
        """Get the day of week for a calendar date."""
        return WEEKDAYS[d.weekday()]

    @property
    def index(self) -> int:
        """Monday-first index (Monday = 0, Sunday = 6)."""
        return WEEKDAYS.index(self)


WEEKDAYS = (
    DayOfWeek.MONDAY,
    DayOfWeek.TUESDAY,
    DayOfWeek.WEDNESDAY,
    DayOfWeek.THURSDAY,
    DayOfWeek.FRIDAY,
    DayOfWeek.SATURDAY,
    DayOfWeek.SUNDAY,
)


def parse_hhmm(value: str, field_name: str = "time") -> int:
    """Convert an ``HH:mm`` string to minutes from midnight.

    Raises:
        ValidationError: If the string is not a valid 24-hour ``HH:mm`` time.
    """
    match = _HHMM.match(value) if isinstance(value, str) else None
    if match is None:
        raise ValidationError(f"expected HH:mm, got {value!r}", field=field_name)
    return int(match.group(1)) * 60 + int(match.group(2))


@dataclass(frozen=True)
class TimeInterval:
    """A [start, end) time-of-day interval with overnight-wrap semantics.

    When ``end`` is not after ``start`` the interval crosses midnight and
    ends on the following day. Venues that close after midnight rely on this.

    Attributes:
        start: Start time as ``HH:mm``.
        end: End time as ``HH:mm``.
    """

    start: str
    end: str

    def __post_init__(self) -> None:
        parse_hhmm(self.start, "start_time")
        parse_hhmm(self.end, "end_time")

    @property
    def start_minutes(self) -> int:
        """Minutes from midnight when the interval starts."""
        return parse_hhmm(self.start)

    @property
    def end_minutes(self) -> int:
        """Minutes from midnight when the interval ends (before wrapping)."""
        return parse_hhmm(self.end)

    @property
    def is_degenerate(self) -> bool:
        """True when start and end are the same instant."""
        return self.start_minutes == self.end_minutes

    @property
    def crosses_midnight(self) -> bool:
        """True when the interval ends on the following day."""
        return self.end_minutes <= self.start_minutes

    def normalized(self) -> tuple[int, int]:
        """Start and end in minutes, with 24h added to the end on wrap."""
        start, end = self.start_minutes, self.end_minutes
        if end <= start:
            end += MINUTES_PER_DAY
        return start, end

    @property
    def duration_minutes(self) -> int:
        """Elapsed minutes, treating end <= start as crossing midnight."""
        start, end = self.normalized()
        return end - start

    @property
    def duration_hours(self) -> float:
        """Elapsed hours, treating end <= start as crossing midnight."""
        return self.duration_minutes / 60.0

    def overlaps(self, other: "TimeInterval") -> bool:
        """Check whether two time-of-day intervals overlap.

        Both intervals are normalized for midnight wrap, then compared with
        the standard ``a.start < b.end and a.end > b.start`` test on the same
        day and on either side of midnight, so ``23:00-06:00`` overlaps
        ``05:00-09:00``.
        """
        a_start, a_end = self.normalized()
        b_start, b_end = other.normalized()
        for offset in (0, -MINUTES_PER_DAY, MINUTES_PER_DAY):
            if a_start < b_end + offset and a_end > b_start + offset:
                return True
        return False

    def span_on(self, day: date) -> tuple[datetime, datetime]:
        """Anchor the interval to a calendar date.

        Returns:
            Tuple of (start, end) datetimes; the end falls on the next day
            when the interval crosses midnight.
        """
        start, end = self.normalized()
        midnight = datetime.combine(day, time())
        return midnight + timedelta(minutes=start), midnight + timedelta(minutes=end)

    def require_valid(self, field_name: str = "interval") -> "TimeInterval":
        """Return self, raising ValidationError for a degenerate interval."""
        if self.is_degenerate:
            raise ValidationError(
                f"start and end cannot both be {self.start}", field=field_name
            )
        return self

    @property
    def key(self) -> str:
        """Compact ``HHMM_HHMM`` form used in generated identifiers."""
        return f"{self.start.replace(':', '')}_{self.end.replace(':', '')}"

    def __str__(self) -> str:
        return f"{self.start}-{self.end}"


def spans_overlap(
    a_date: date,
    a_interval: TimeInterval,
    b_date: date,
    b_interval: TimeInterval,
) -> bool:
    """Check whether two date-anchored intervals overlap in absolute time."""
    a_start, a_end = a_interval.span_on(a_date)
    b_start, b_end = b_interval.span_on(b_date)
    return a_start < b_end and a_end > b_start


class AvailabilityType(Enum):
    """How an employee's working days are constrained."""

    FLEXIBLE = "flexible"
    FIXED_DAYS = "dias_fijos"
    HYBRID = "hibrido"


@dataclass(frozen=True)
class FlexibleAvailability:
    """May work any allowed venue on any day."""

    @property
    def type(self) -> AvailabilityType:
        return AvailabilityType.FLEXIBLE


@dataclass(frozen=True)
class FixedDaysAvailability:
    """May only work on the listed weekdays.

    Attributes:
        days: Exhaustive set of weekdays the employee may work.
    """

    days: frozenset[DayOfWeek] = frozenset()

    def __post_init__(self) -> None:
        object.__setattr__(self, "days", frozenset(self.days))

    @property
    def type(self) -> AvailabilityType:
        return AvailabilityType.FIXED_DAYS


@dataclass(frozen=True)
class DayVenue:
    """A weekday bound to a mandatory venue."""

    day: DayOfWeek
    venue_id: str


@dataclass(frozen=True)
class HybridAvailability:
    """Fixed venue on some weekdays, flexible on the rest.

    Attributes:
        day_venues: Weekdays on which the employee must work one venue.
    """

    day_venues: tuple[DayVenue, ...] = ()

    def __post_init__(self) -> None:
        object.__setattr__(self, "day_venues", tuple(self.day_venues))

    @property
    def type(self) -> AvailabilityType:
        return AvailabilityType.HYBRID

    def venue_for(self, day: DayOfWeek) -> Optional[str]:
        """Get the mandatory venue for a weekday, or None if flexible."""
        for entry in self.day_venues:
            if entry.day == day:
                return entry.venue_id
        return None


Availability = Union[FlexibleAvailability, FixedDaysAvailability, HybridAvailability]


@dataclass(frozen=True)
class ShowOverride:
    """A weekday marked as a mandatory show at a specific venue."""

    day: DayOfWeek
    venue_id: str


class AbsenceType(Enum):
    """Reason for an absence."""

    VACATION = "vacaciones"
    MEDICAL_LEAVE = "baja_medica"
    NOT_WORKING = "no_trabaja"
    REQUESTED_DAYS_OFF = "dias_libres_pedidos"


@dataclass(frozen=True)
class Absence:
    """An inclusive date range during which an employee cannot work.

    Attributes:
        id: Unique identifier.
        type: Reason for the absence.
        start_date: First day of the absence.
        end_date: Last day of the absence (inclusive).
    """

    id: str
    type: AbsenceType
    start_date: date
    end_date: date

    def covers(self, d: date) -> bool:
        """Check if a date falls within the absence, both ends inclusive."""
        return self.start_date <= d <= self.end_date

    def overlaps(self, other: "Absence") -> bool:
        """Check if two absence ranges share at least one day."""
        return self.start_date <= other.end_date and other.start_date <= self.end_date


class EmployeeType(Enum):
    """Contract type of an employee."""

    REGULAR = "regular"
    EXTRA = "extra"


@dataclass(frozen=True)
class Employee:
    """Represents an employee who can be scheduled.

    Attributes:
        id: Unique identifier.
        name: Display name.
        type: Regular or extra staff.
        target_hours: Weekly hour target (always 0 for extra staff).
        allowed_venue_ids: Venues the employee may work at.
        availability: Flexible, fixed-days or hybrid availability.
        show_overrides: Weekdays with a mandatory show at a given venue.
        absences: Absence ranges.
        is_active: Inactive employees are hidden from planning.
    """

    id: str
    name: str
    type: EmployeeType = EmployeeType.REGULAR
    target_hours: float = 0
    allowed_venue_ids: tuple[str, ...] = ()
    availability: Availability = field(default_factory=FlexibleAvailability)
    show_overrides: tuple[ShowOverride, ...] = ()
    absences: tuple[Absence, ...] = ()
    is_active: bool = True

    def __post_init__(self) -> None:
        object.__setattr__(self, "allowed_venue_ids", tuple(self.allowed_venue_ids))
        object.__setattr__(self, "show_overrides", tuple(self.show_overrides))
        object.__setattr__(self, "absences", tuple(self.absences))
        # Extra staff never carry a weekly target
        if self.type == EmployeeType.EXTRA and self.target_hours != 0:
            object.__setattr__(self, "target_hours", 0)

    @property
    def is_extra(self) -> bool:
        return self.type == EmployeeType.EXTRA

    def can_work_venue(self, venue_id: str) -> bool:
        """Check the allowed-venue list (shows are handled by the caller)."""
        return venue_id in self.allowed_venue_ids

    def show_venue_for(self, day: DayOfWeek) -> Optional[str]:
        """Get the configured show venue for a weekday, if any."""
        for override in self.show_overrides:
            if override.day == day:
                return override.venue_id
        return None

    def absence_on(self, d: date) -> Optional[Absence]:
        """Get the absence covering a date, if any."""
        for absence in self.absences:
            if absence.covers(d):
                return absence
        return None


@dataclass(frozen=True)
class StaffingNeed:
    """A venue's headcount requirement for one weekday time window.

    Attributes:
        id: Unique identifier.
        day: Weekday the need applies to.
        interval: Time window to staff.
        required_employees: Number of people required.
    """

    id: str
    day: DayOfWeek
    interval: TimeInterval
    required_employees: int = 1


@dataclass(frozen=True)
class Venue:
    """A venue with weekly staffing needs.

    Attributes:
        id: Unique identifier.
        name: Display name.
        address: Street address.
        color: Hex colour used by roster output.
        staffing_needs: Zero or more needs per weekday.
        is_active: Inactive venues produce no staffing requirement.
    """

    id: str
    name: str
    address: str = ""
    color: str = "#64748b"
    staffing_needs: tuple[StaffingNeed, ...] = ()
    is_active: bool = True

    def __post_init__(self) -> None:
        object.__setattr__(self, "staffing_needs", tuple(self.staffing_needs))

    def needs_for(self, day: DayOfWeek) -> list[StaffingNeed]:
        """Get staffing needs for a weekday, in declaration order."""
        return [need for need in self.staffing_needs if need.day == day]


@dataclass(frozen=True)
class Event:
    """A one-off event that needs its own staff.

    Attributes:
        id: Unique identifier.
        name: Display name.
        venue_id: Venue hosting the event.
        date: Calendar date of the event.
        interval: Event time window.
        required_employees: Staff needed on top of regular needs.
        color: Hex colour used by roster output.
    """

    id: str
    name: str
    venue_id: str
    date: date
    interval: TimeInterval
    required_employees: int = 0
    color: str = "#14b8a6"


@dataclass(frozen=True)
class Shift:
    """A shift at a venue, assigned to an employee or open.

    Attributes:
        id: Unique identifier.
        employee_id: Assigned employee, or None for an open shift.
        venue_id: Venue of the shift.
        date: Calendar date the shift starts on.
        interval: Shift time window.
        is_show: Show shifts bypass venue and availability restrictions.
        is_extra_hours: Shift worked on top of the weekly target.
        event_id: Event this shift staffs, if any.
    """

    id: str
    employee_id: Optional[str]
    venue_id: str
    date: date
    interval: TimeInterval
    is_show: bool = False
    is_extra_hours: bool = False
    event_id: Optional[str] = None

    @property
    def is_open(self) -> bool:
        return self.employee_id is None

    @property
    def start_time(self) -> str:
        return self.interval.start

    @property
    def end_time(self) -> str:
        return self.interval.end

    @property
    def duration_hours(self) -> float:
        return self.interval.duration_hours

    def span(self) -> tuple[datetime, datetime]:
        """Absolute start and end datetimes of the shift."""
        return self.interval.span_on(self.date)

    def overlaps(self, other: "Shift") -> bool:
        """Check whether two shifts overlap in absolute time."""
        return spans_overlap(self.date, self.interval, other.date, other.interval)

    def assigned_to(self, employee_id: Optional[str]) -> "Shift":
        """Copy of this shift with a different assignee."""
        return replace(self, employee_id=employee_id)


@dataclass(frozen=True)
class AiSuggestion:
    """A suggested extra-staff assignment for an open shift.

    Venue, date and interval are copied from the shift when the suggestion
    is made, for display after the shift itself changes.
    """

    id: str
    shift_id: str
    employee_id: str
    venue_id: str
    date: date
    interval: TimeInterval
