"""Pure reducer over ScheduleState snapshots.

``reduce(state, action)`` never mutates its input; it returns a new snapshot,
or the same snapshot when the action changes nothing. Validation happens
before an action is built, in ScheduleStore.
"""

from dataclasses import replace
from typing import Callable

from shiftplanner.store import actions as a
from shiftplanner.store.state import PublishedWeek, ScheduleState

_HANDLERS: dict[type, Callable[[ScheduleState, a.Action], ScheduleState]] = {}


def _handles(action_type: type):
    def register(func):
        _HANDLERS[action_type] = func
        return func

    return register


def reduce(state: ScheduleState, action: a.Action) -> ScheduleState:
    """Apply an action to a state snapshot.

    Raises:
        TypeError: If the action type is unknown.
    """
    handler = _HANDLERS.get(type(action))
    if handler is None:
        raise TypeError(f"Unknown action: {type(action).__name__}")
    return handler(state, action)


def _replace_by_id(records, record):
    return tuple(record if r.id == record.id else r for r in records)


def _replace_all(records, replacements):
    by_id = {r.id: r for r in replacements}
    return tuple(by_id.get(r.id, r) for r in records)


def _without_id(records, record_id):
    return tuple(r for r in records if r.id != record_id)


# Venues


@_handles(a.AddVenue)
def _add_venue(state, action):
    return replace(state, venues=state.venues + (action.venue,))


@_handles(a.UpdateVenues)
def _update_venues(state, action):
    return replace(state, venues=_replace_all(state.venues, action.venues))


@_handles(a.DeleteVenue)
def _delete_venue(state, action):
    # Shifts keep their venue reference
    return replace(state, venues=_without_id(state.venues, action.venue_id))


@_handles(a.ToggleVenueStatus)
def _toggle_venue(state, action):
    return replace(
        state,
        venues=tuple(
            replace(v, is_active=not v.is_active) if v.id == action.venue_id else v
            for v in state.venues
        ),
    )


# Employees


@_handles(a.AddEmployee)
def _add_employee(state, action):
    return replace(state, employees=state.employees + (action.employee,))


@_handles(a.UpdateEmployees)
def _update_employees(state, action):
    employees = _replace_all(state.employees, action.employees)
    if action.shifts is None:
        return replace(state, employees=employees)
    return replace(state, employees=employees, shifts=tuple(action.shifts))


@_handles(a.DeleteEmployee)
def _delete_employee(state, action):
    return replace(
        state,
        employees=_without_id(state.employees, action.employee_id),
        shifts=tuple(
            s.assigned_to(None) if s.employee_id == action.employee_id else s
            for s in state.shifts
        ),
    )


@_handles(a.ToggleEmployeeStatus)
def _toggle_employee(state, action):
    return replace(
        state,
        employees=tuple(
            replace(e, is_active=not e.is_active) if e.id == action.employee_id else e
            for e in state.employees
        ),
    )


# Shifts


@_handles(a.AddShift)
def _add_shift(state, action):
    return replace(state, shifts=state.shifts + (action.shift,))


@_handles(a.UpdateShift)
def _update_shift(state, action):
    return replace(state, shifts=_replace_by_id(state.shifts, action.shift))


@_handles(a.DeleteShift)
def _delete_shift(state, action):
    return replace(state, shifts=_without_id(state.shifts, action.shift_id))


@_handles(a.SetShifts)
def _set_shifts(state, action):
    return replace(state, shifts=tuple(action.shifts))


# Events


@_handles(a.AddEvent)
def _add_event(state, action):
    return replace(state, events=state.events + (action.event,))


@_handles(a.UpdateEvent)
def _update_event(state, action):
    # Open shifts carry the old venue/date/time; reconciliation recreates them
    event_id = action.event.id
    return replace(
        state,
        events=_replace_by_id(state.events, action.event),
        shifts=tuple(
            s for s in state.shifts if not (s.event_id == event_id and s.is_open)
        ),
    )


@_handles(a.DeleteEventAndShifts)
def _delete_event(state, action):
    return replace(
        state,
        events=_without_id(state.events, action.event_id),
        shifts=tuple(s for s in state.shifts if s.event_id != action.event_id),
    )


# Publication and settings


@_handles(a.PublishWeek)
def _publish_week(state, action):
    published = PublishedWeek(
        week_id=action.week_id,
        published_at=action.published_at,
        shifts=action.shifts,
    )
    others = tuple(w for w in state.published_weeks if w.week_id != action.week_id)
    return replace(state, published_weeks=others + (published,))


@_handles(a.UpdateSettings)
def _update_settings(state, action):
    return replace(state, settings=action.settings)


# Suggestions


@_handles(a.SetAiSuggestions)
def _set_suggestions(state, action):
    return replace(state, ai_suggestions=tuple(action.suggestions))


@_handles(a.RemoveAiSuggestion)
def _remove_suggestion(state, action):
    if state.suggestion(action.suggestion_id) is None:
        return state
    return replace(
        state, ai_suggestions=_without_id(state.ai_suggestions, action.suggestion_id)
    )
