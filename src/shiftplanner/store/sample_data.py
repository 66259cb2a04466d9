"""Example venues and staff for first use and demos."""

from datetime import date, timedelta
from typing import Optional

from shiftplanner.domain.models import (
    WEEKDAYS,
    Absence,
    AbsenceType,
    DayOfWeek,
    DayVenue,
    Employee,
    EmployeeType,
    Event,
    FixedDaysAvailability,
    HybridAvailability,
    ShowOverride,
    StaffingNeed,
    TimeInterval,
    Venue,
)
from shiftplanner.scheduling.week import week_start
from shiftplanner.store.state import ScheduleState

# (id, name, address, color, weekday window, weekend window, open days)
_VENUES = [
    ("venue_1", "Believe Club", "Carrer de Balmes, 56, 08007 Barcelona", "#8b5cf6",
     ("23:00", "06:00"), ("23:00", "06:00"), WEEKDAYS),
    ("venue_2", "Priscilla Café", "Carrer del Consell de Cent, 294, 08007 Barcelona", "#ec4899",
     ("10:00", "03:00"), ("10:00", "03:00"), WEEKDAYS),
    ("venue_3", "GinGin Gay Bar", "Carrer de Casanova, 85, 08011 Barcelona", "#10b981",
     ("17:00", "03:00"), ("17:00", "03:30"), WEEKDAYS),
    ("venue_4", "Honey Furry", "Carrer de Casanova, 75, 08011 Barcelona", "#f59e0b",
     ("19:00", "04:00"), ("19:00", "04:30"), WEEKDAYS),
    ("venue_10", "Fever Barcelona", "C/ de la Diputació, 94, 08015 Barcelona", "#0ea5e9",
     ("17:00", "21:00"), ("10:00", "22:00"), WEEKDAYS[1:]),
]

_WEEKEND = (DayOfWeek.FRIDAY, DayOfWeek.SATURDAY)

# (id, name, type, allowed venues)
_EMPLOYEES = [
    ("emp_1", "Julio", EmployeeType.REGULAR, ["venue_1"]),
    ("emp_2", "Jenny", EmployeeType.REGULAR, ["venue_1"]),
    ("emp_3", "Jessica", EmployeeType.EXTRA, ["venue_1"]),
    ("emp_4", "Arao", EmployeeType.REGULAR, ["venue_1"]),
    ("emp_8", "Danny Li", EmployeeType.REGULAR, ["venue_4"]),
    ("emp_9", "Brayan", EmployeeType.REGULAR, ["venue_4"]),
    ("emp_10", "Pavel", EmployeeType.REGULAR, ["venue_4", "venue_3"]),
    ("emp_15", "Fozzi", EmployeeType.REGULAR, ["venue_2"]),
    ("emp_16", "Guillermo", EmployeeType.REGULAR, ["venue_2"]),
    ("emp_29", "Wacill", EmployeeType.REGULAR, ["venue_3"]),
    ("emp_41", "Carlos", EmployeeType.REGULAR, ["venue_10"]),
    ("emp_42", "Alison", EmployeeType.EXTRA, ["venue_10", "venue_2"]),
]


def create_sample_venues() -> list[Venue]:
    """Create the example venues with two staff per opening window."""
    venues = []
    for index, (venue_id, name, address, color, weekday, weekend, days) in enumerate(
        _VENUES, start=1
    ):
        needs = []
        for day in days:
            start, end = weekend if day in _WEEKEND else weekday
            needs.append(
                StaffingNeed(
                    id=f"sn_{index}_{day.index + 1}",
                    day=day,
                    interval=TimeInterval(start, end),
                    required_employees=2,
                )
            )
        venues.append(
            Venue(
                id=venue_id,
                name=name,
                address=address,
                color=color,
                staffing_needs=tuple(needs),
            )
        )
    return venues


def create_sample_employees(monday: Optional[date] = None) -> list[Employee]:
    """Create the example staff.

    Most employees are flexible. A few carry fixed-days or hybrid
    availability, a show override and an absence inside the given week so
    every rule is visible in a demo.
    """
    monday = week_start(monday or date.today())
    employees = [
        Employee(
            id=emp_id,
            name=name,
            type=emp_type,
            target_hours=48 if emp_type == EmployeeType.REGULAR else 0,
            allowed_venue_ids=tuple(venues),
        )
        for emp_id, name, emp_type, venues in _EMPLOYEES
    ]

    by_id = {e.id: e for e in employees}
    by_id["emp_4"] = Employee(
        id="emp_4",
        name="Arao",
        target_hours=40,
        allowed_venue_ids=("venue_1",),
        availability=FixedDaysAvailability(
            days=frozenset(
                {DayOfWeek.THURSDAY, DayOfWeek.FRIDAY, DayOfWeek.SATURDAY, DayOfWeek.SUNDAY}
            )
        ),
    )
    by_id["emp_10"] = Employee(
        id="emp_10",
        name="Pavel",
        target_hours=48,
        allowed_venue_ids=("venue_4", "venue_3"),
        availability=HybridAvailability(
            day_venues=(
                DayVenue(DayOfWeek.MONDAY, "venue_3"),
                DayVenue(DayOfWeek.TUESDAY, "venue_3"),
            )
        ),
        show_overrides=(ShowOverride(DayOfWeek.SATURDAY, "venue_1"),),
    )
    by_id["emp_16"] = Employee(
        id="emp_16",
        name="Guillermo",
        target_hours=48,
        allowed_venue_ids=("venue_2",),
        absences=(
            Absence(
                id="abs_1",
                type=AbsenceType.VACATION,
                start_date=monday + timedelta(days=2),
                end_date=monday + timedelta(days=4),
            ),
        ),
    )
    return [by_id[emp_id] for emp_id, *_ in _EMPLOYEES]


def create_sample_events(monday: Optional[date] = None) -> list[Event]:
    """Create one example event on the Friday of the given week."""
    monday = week_start(monday or date.today())
    return [
        Event(
            id="evt_1",
            name="Launch Party",
            venue_id="venue_2",
            date=monday + timedelta(days=4),
            interval=TimeInterval("20:00", "02:00"),
            required_employees=3,
        )
    ]


def create_sample_state(monday: Optional[date] = None) -> ScheduleState:
    """Create a complete example state for the week containing ``monday``."""
    return ScheduleState(
        employees=tuple(create_sample_employees(monday)),
        venues=tuple(create_sample_venues()),
        events=tuple(create_sample_events(monday)),
    )
