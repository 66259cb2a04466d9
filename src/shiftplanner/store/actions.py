"""Actions accepted by the schedule reducer.

Each action is a small frozen record describing one state transition.
Actions that only touch assistant suggestions are excluded from undo history.
"""

from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from shiftplanner.domain.models import AiSuggestion, Employee, Event, Shift, Venue
from shiftplanner.store.state import AppSettings


class Action:
    """Base class for reducer actions."""

    records_history = True


@dataclass(frozen=True)
class AddVenue(Action):
    venue: Venue


@dataclass(frozen=True)
class UpdateVenues(Action):
    venues: tuple[Venue, ...]


@dataclass(frozen=True)
class DeleteVenue(Action):
    venue_id: str


@dataclass(frozen=True)
class ToggleVenueStatus(Action):
    venue_id: str


@dataclass(frozen=True)
class AddEmployee(Action):
    employee: Employee


@dataclass(frozen=True)
class UpdateEmployees(Action):
    """Replace several employees, and the full shift list when given."""

    employees: tuple[Employee, ...]
    shifts: Optional[tuple[Shift, ...]] = None


@dataclass(frozen=True)
class DeleteEmployee(Action):
    """Remove an employee and unassign all of their shifts."""

    employee_id: str


@dataclass(frozen=True)
class ToggleEmployeeStatus(Action):
    employee_id: str


@dataclass(frozen=True)
class AddShift(Action):
    shift: Shift


@dataclass(frozen=True)
class UpdateShift(Action):
    shift: Shift


@dataclass(frozen=True)
class DeleteShift(Action):
    shift_id: str


@dataclass(frozen=True)
class SetShifts(Action):
    shifts: tuple[Shift, ...]


@dataclass(frozen=True)
class AddEvent(Action):
    event: Event


@dataclass(frozen=True)
class UpdateEvent(Action):
    event: Event


@dataclass(frozen=True)
class DeleteEventAndShifts(Action):
    """Remove an event and every shift linked to it."""

    event_id: str


@dataclass(frozen=True)
class PublishWeek(Action):
    week_id: str
    shifts: tuple[Shift, ...]
    published_at: datetime


@dataclass(frozen=True)
class UpdateSettings(Action):
    settings: AppSettings


@dataclass(frozen=True)
class SetAiSuggestions(Action):
    suggestions: tuple[AiSuggestion, ...]

    records_history = False


@dataclass(frozen=True)
class RemoveAiSuggestion(Action):
    suggestion_id: str

    records_history = False
