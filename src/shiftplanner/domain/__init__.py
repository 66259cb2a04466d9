"""Domain models for venues, employees, events and shifts."""

from shiftplanner.domain.models import (
    WEEKDAYS,
    Absence,
    AbsenceType,
    AiSuggestion,
    Availability,
    AvailabilityType,
    DayOfWeek,
    DayVenue,
    Employee,
    EmployeeType,
    Event,
    FixedDaysAvailability,
    FlexibleAvailability,
    HybridAvailability,
    Shift,
    ShowOverride,
    StaffingNeed,
    TimeInterval,
    Venue,
    parse_hhmm,
    spans_overlap,
)

__all__ = [
    # Time
    "DayOfWeek",
    "TimeInterval",
    "WEEKDAYS",
    "parse_hhmm",
    "spans_overlap",
    # Availability
    "Availability",
    "AvailabilityType",
    "DayVenue",
    "FixedDaysAvailability",
    "FlexibleAvailability",
    "HybridAvailability",
    "ShowOverride",
    # Records
    "Absence",
    "AbsenceType",
    "AiSuggestion",
    "Employee",
    "EmployeeType",
    "Event",
    "Shift",
    "StaffingNeed",
    "Venue",
]
