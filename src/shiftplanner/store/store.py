"""The schedule store: single owner of the schedule state.

Every mutation goes through ScheduleStore. A mutation is validated first,
turned into an action, reduced to a new snapshot, reconciled for the active
week and finally pushed onto the undo history, so one user command is always
one undo step.
"""

import logging
import uuid
from dataclasses import replace
from datetime import date, datetime
from typing import Callable, Iterable, Optional

from shiftplanner.domain.models import (
    AiSuggestion,
    Employee,
    Event,
    Shift,
    Venue,
)
from shiftplanner.errors import NotFoundError, ValidationError
from shiftplanner.scheduling.reconciler import CoverageReconciler, ReconcileResult
from shiftplanner.scheduling.week import week_dates, week_id, week_start
from shiftplanner.store import actions as a
from shiftplanner.store.history import History
from shiftplanner.store.reducer import reduce
from shiftplanner.store.state import (
    AppSettings,
    PublishedWeek,
    ScheduleState,
    StoreConfig,
)
from shiftplanner.validation.conflicts import ConflictDetector, ConflictResult

logger = logging.getLogger(__name__)


def generate_id(prefix: str) -> str:
    """Generate a unique record id such as ``s_1f3a9c0d2b4e``."""
    return f"{prefix}_{uuid.uuid4().hex[:12]}"


class ScheduleStore:
    """Owning aggregate for employees, venues, shifts and events.

    Example:
        >>> store = ScheduleStore(active_week=date(2024, 6, 10))
        >>> store.add_venue(venue)
        >>> store.assign_shift(open_shift_id, "emp_1")
        >>> store.undo()
        True
    """

    def __init__(
        self,
        state: Optional[ScheduleState] = None,
        active_week: Optional[date] = None,
        config: Optional[StoreConfig] = None,
        detector: Optional[ConflictDetector] = None,
        reconciler: Optional[CoverageReconciler] = None,
        clock: Callable[[], datetime] = datetime.now,
    ):
        self.config = config or StoreConfig()
        self.detector = detector or ConflictDetector()
        self.reconciler = reconciler or CoverageReconciler()
        self.clock = clock
        self._active_week = week_start(active_week or clock().date())
        self._history = History(state or ScheduleState(), limit=self.config.history_limit)
        self.reconcile()

    # ------------------------------------------------------------------
    # State access

    @property
    def state(self) -> ScheduleState:
        return self._history.present

    @property
    def active_week(self) -> date:
        """Monday of the week kept in sync with staffing requirements."""
        return self._active_week

    @property
    def week_dates(self) -> list[date]:
        return week_dates(self._active_week)

    @property
    def can_undo(self) -> bool:
        return self._history.can_undo

    @property
    def can_redo(self) -> bool:
        return self._history.can_redo

    # ------------------------------------------------------------------
    # Commit pipeline

    def _commit(self, action: a.Action) -> ScheduleState:
        current = self.state
        new_state = reduce(current, action)
        if new_state is current:
            return current

        if not action.records_history:
            self._history.replace_present(new_state)
            return new_state

        if self.config.reconcile_on_commit:
            new_state = self._reconciled(new_state)[0]
        self._history.push(new_state)
        logger.debug("Committed %s", type(action).__name__)
        return new_state

    def _reconciled(self, state: ScheduleState) -> tuple[ScheduleState, ReconcileResult]:
        result = self.reconciler.reconcile(
            state.shifts, state.venues, state.events, self.week_dates
        )
        if not result.changed:
            return state, result
        return replace(state, shifts=tuple(result.shifts)), result

    def reconcile(self) -> ReconcileResult:
        """Reconcile the active week in place, without an undo step."""
        new_state, result = self._reconciled(self.state)
        if result.changed:
            self._history.replace_present(new_state)
        return result

    def set_active_week(self, d: date) -> None:
        """Point the store at the week containing ``d`` and reconcile it."""
        self._active_week = week_start(d)
        self.reconcile()

    def load_state(self, state: ScheduleState) -> None:
        """Replace the whole state and clear the undo history."""
        self._history.reset(state)
        self.reconcile()
        logger.info(
            "Loaded state: %d employees, %d venues, %d shifts, %d events",
            len(state.employees),
            len(state.venues),
            len(state.shifts),
            len(state.events),
        )

    def undo(self) -> bool:
        """Restore the previous snapshot. Returns False if there is none."""
        if not self._history.undo():
            return False
        self.reconcile()
        return True

    def redo(self) -> bool:
        """Re-apply the next snapshot. Returns False if there is none."""
        if not self._history.redo():
            return False
        self.reconcile()
        return True

    # ------------------------------------------------------------------
    # Lookups

    def get_employee(self, employee_id: str) -> Employee:
        employee = self.state.employee(employee_id)
        if employee is None:
            raise NotFoundError("employee", employee_id)
        return employee

    def get_venue(self, venue_id: str) -> Venue:
        venue = self.state.venue(venue_id)
        if venue is None:
            raise NotFoundError("venue", venue_id)
        return venue

    def get_event(self, event_id: str) -> Event:
        event = self.state.event(event_id)
        if event is None:
            raise NotFoundError("event", event_id)
        return event

    def get_shift(self, shift_id: str) -> Shift:
        shift = self.state.shift(shift_id)
        if shift is None:
            raise NotFoundError("shift", shift_id)
        return shift

    # ------------------------------------------------------------------
    # Venues

    def add_venue(self, venue: Venue) -> Venue:
        self._validate_venue(venue)
        if self.state.venue(venue.id) is not None:
            raise ValidationError(f"duplicate venue id {venue.id}", field="id")
        self._commit(a.AddVenue(venue))
        return venue

    def update_venue(self, venue: Venue) -> Venue:
        self.update_venues([venue])
        return venue

    def update_venues(self, venues: Iterable[Venue]) -> list[Venue]:
        """Replace several venues in one undo step.

        Every venue is checked before anything is committed, so one invalid
        entry leaves the state untouched.
        """
        venues = list(venues)
        for venue in venues:
            self.get_venue(venue.id)
            self._validate_venue(venue)
        if venues:
            self._commit(a.UpdateVenues(tuple(venues)))
        return venues

    def delete_venue(self, venue_id: str) -> None:
        self.get_venue(venue_id)
        self._commit(a.DeleteVenue(venue_id))

    def toggle_venue_status(self, venue_id: str) -> Venue:
        self.get_venue(venue_id)
        self._commit(a.ToggleVenueStatus(venue_id))
        return self.get_venue(venue_id)

    # ------------------------------------------------------------------
    # Employees

    def add_employee(self, employee: Employee) -> Employee:
        self._validate_employee(employee)
        if self.state.employee(employee.id) is not None:
            raise ValidationError(f"duplicate employee id {employee.id}", field="id")
        self._commit(a.AddEmployee(employee))
        return employee

    def update_employee(self, employee: Employee) -> int:
        """Replace an employee's configuration.

        Every shift assigned to the employee is re-checked for venue
        permission, absence and availability. Shifts that no longer fit are
        unassigned in the same undo step as the update.

        Returns:
            Number of shifts demoted to open.
        """
        return self.update_employees([employee])

    def update_employees(self, employees: Iterable[Employee]) -> int:
        """Replace several employees' configuration in one undo step.

        Every employee is validated before anything is committed, so one
        invalid entry leaves the state untouched. Shifts that no longer fit
        are unassigned in the same step.

        Returns:
            Number of shifts demoted to open.
        """
        employees = list(employees)
        for employee in employees:
            self.get_employee(employee.id)
            self._validate_employee(employee)
        if not employees:
            return 0

        demoted_ids = set()
        for employee in employees:
            for shift, result in self.detector.revalidate(employee, self.state.shifts):
                logger.info("Unassigning %s from %s: %s", employee.id, shift.id, result.reason)
                demoted_ids.add(shift.id)

        shifts = None
        if demoted_ids:
            shifts = tuple(
                s.assigned_to(None) if s.id in demoted_ids else s for s in self.state.shifts
            )
        self._commit(a.UpdateEmployees(tuple(employees), shifts))
        return len(demoted_ids)

    def delete_employee(self, employee_id: str) -> int:
        """Delete an employee; their shifts become open.

        Returns:
            Number of shifts unassigned.
        """
        self.get_employee(employee_id)
        unassigned = len(self.state.shifts_for_employee(employee_id))
        self._commit(a.DeleteEmployee(employee_id))
        return unassigned

    def toggle_employee_status(self, employee_id: str) -> Employee:
        self.get_employee(employee_id)
        self._commit(a.ToggleEmployeeStatus(employee_id))
        return self.get_employee(employee_id)

    # ------------------------------------------------------------------
    # Shifts

    def add_shift(self, shift: Shift) -> Shift:
        """Add a shift, validating its assignee if it has one."""
        if self.state.shift(shift.id) is not None:
            raise ValidationError(f"duplicate shift id {shift.id}", field="id")
        self._validate_shift(shift, self.state.shifts)
        self._commit(a.AddShift(shift))
        return shift

    def update_shift(self, shift: Shift) -> Shift:
        """Replace a shift, re-validating its assignee."""
        self.get_shift(shift.id)
        self._validate_shift(shift, self.state.shifts)
        self._commit(a.UpdateShift(shift))
        return shift

    def delete_shift(self, shift_id: str) -> None:
        self.get_shift(shift_id)
        self._commit(a.DeleteShift(shift_id))

    def assign_shift(self, shift_id: str, employee_id: Optional[str]) -> Shift:
        """Assign a shift to an employee, or unassign it with None.

        Raises:
            NotFoundError: If the shift or employee does not exist.
            ConflictError: If the assignment breaks a scheduling rule.
        """
        shift = self.get_shift(shift_id).assigned_to(employee_id)
        return self.update_shift(shift)

    def assign_open_shifts(
        self,
        proposals: Iterable[tuple[str, str]],
        regular_only: bool = False,
    ) -> tuple[list[Shift], list[tuple[str, str, str]]]:
        """Assign several open shifts in one undo step.

        Each (shift id, employee id) pair is checked against the current
        state plus the pairs accepted before it. Pairs whose shift is gone
        or no longer open, or that break a scheduling rule, are skipped.

        Args:
            proposals: (shift id, employee id) pairs, applied in order.
            regular_only: Skip pairs naming extra staff, who are only ever
                suggested for automatic fills.

        Returns:
            Tuple of (assigned shifts, skipped (shift id, employee id, reason)).
        """
        state = self.state
        accepted: dict[str, Shift] = {}
        skipped: list[tuple[str, str, str]] = []

        for shift_id, employee_id in proposals:
            shift = state.shift(shift_id)
            employee = state.employee(employee_id)
            if shift is None:
                reason = "shift not found"
            elif not shift.is_open or shift_id in accepted:
                reason = "shift is no longer open"
            elif employee is None:
                reason = "employee not found"
            elif regular_only and employee.is_extra:
                reason = "extra staff are only suggested"
            else:
                candidate = shift.assigned_to(employee.id)
                others = list(state.shifts) + list(accepted.values())
                result = self.detector.can_assign(employee, candidate, others)
                if result.ok:
                    accepted[shift_id] = candidate
                    continue
                reason = result.reason
            logger.info("Skipping assignment of %s to %s: %s", shift_id, employee_id, reason)
            skipped.append((shift_id, employee_id, reason))

        if accepted:
            self._commit(
                a.SetShifts(tuple(accepted.get(s.id, s) for s in state.shifts))
            )
        return list(accepted.values()), skipped

    def unassign_shifts(self, shift_ids: Iterable[str]) -> int:
        """Unassign several shifts in one undo step. Unknown ids are skipped."""
        ids = set(shift_ids)
        targets = [s for s in self.state.shifts if s.id in ids and not s.is_open]
        if not targets:
            return 0
        shifts = tuple(
            s.assigned_to(None) if s.id in ids else s for s in self.state.shifts
        )
        self._commit(a.SetShifts(shifts))
        return len(targets)

    def delete_shifts(self, shift_ids: Iterable[str]) -> int:
        """Delete several shifts in one undo step. Unknown ids are skipped."""
        ids = set(shift_ids)
        remaining = tuple(s for s in self.state.shifts if s.id not in ids)
        removed = len(self.state.shifts) - len(remaining)
        if removed:
            self._commit(a.SetShifts(remaining))
        return removed

    def replace_shifts_for_employee(
        self,
        employee_id: str,
        start_date: date,
        end_date: date,
        new_shifts: Iterable[Shift],
    ) -> tuple[int, int]:
        """Replace an employee's shifts inside an inclusive date range.

        The new shifts are assigned to the employee and validated against
        the shifts that remain and against each other.

        Returns:
            Tuple of (removed, added) counts.
        """
        employee = self.get_employee(employee_id)
        if end_date < start_date:
            raise ValidationError("end date is before start date", field="date_range")

        def in_range(s: Shift) -> bool:
            return s.employee_id == employee_id and start_date <= s.date <= end_date

        remaining = [s for s in self.state.shifts if not in_range(s)]
        removed = len(self.state.shifts) - len(remaining)
        taken_ids = {s.id for s in remaining}

        added = []
        for shift in new_shifts:
            shift = shift.assigned_to(employee.id)
            if shift.id in taken_ids:
                raise ValidationError(f"duplicate shift id {shift.id}", field="id")
            self._validate_shift(shift, remaining + added)
            taken_ids.add(shift.id)
            added.append(shift)

        self._commit(a.SetShifts(tuple(remaining + added)))
        return removed, len(added)

    # ------------------------------------------------------------------
    # Events

    def add_event(self, event: Event) -> Event:
        self._validate_event(event)
        if self.state.event(event.id) is not None:
            raise ValidationError(f"duplicate event id {event.id}", field="id")
        self._commit(a.AddEvent(event))
        return event

    def update_event(self, event: Event) -> Event:
        """Replace an event.

        Open shifts of the event are regenerated with the new venue, date and
        time; assigned ones keep their details.
        """
        self.get_event(event.id)
        self._validate_event(event)
        self._commit(a.UpdateEvent(event))
        return event

    def delete_event(self, event_id: str) -> int:
        """Delete an event and every shift linked to it, assigned or not.

        Returns:
            Number of shifts removed.
        """
        self.get_event(event_id)
        removed = sum(1 for s in self.state.shifts if s.event_id == event_id)
        self._commit(a.DeleteEventAndShifts(event_id))
        logger.info("Deleted event %s and %d linked shifts", event_id, removed)
        return removed

    # ------------------------------------------------------------------
    # Publication, settings and suggestions

    def publish_week(self, d: Optional[date] = None) -> PublishedWeek:
        """Snapshot the shifts of a week (the active week by default)."""
        dates = week_dates(d or self._active_week)
        shifts = tuple(self.state.shifts_on(dates))
        self._commit(
            a.PublishWeek(week_id=week_id(dates[0]), shifts=shifts, published_at=self.clock())
        )
        return self.state.published_week(week_id(dates[0]))

    def update_settings(self, **changes) -> AppSettings:
        """Update presentation settings, e.g. ``update_settings(theme="light")``."""
        try:
            settings = replace(self.state.settings, **changes)
        except TypeError as e:
            raise ValidationError(str(e), field="settings") from e
        self._commit(a.UpdateSettings(settings))
        return settings

    def set_ai_suggestions(self, suggestions: Iterable[AiSuggestion]) -> None:
        """Replace the suggestion list (not recorded in undo history)."""
        self._commit(a.SetAiSuggestions(tuple(suggestions)))

    def remove_ai_suggestion(self, suggestion_id: str) -> None:
        """Drop one suggestion (not recorded in undo history)."""
        self._commit(a.RemoveAiSuggestion(suggestion_id))

    def apply_suggestion(self, suggestion_id: str) -> Shift:
        """Assign a suggested employee to the suggested shift.

        Raises:
            NotFoundError: If the suggestion is gone, or its shift was deleted
                or already taken meanwhile.
            ConflictError: If the assignment is no longer legal.
        """
        suggestion = self.state.suggestion(suggestion_id)
        if suggestion is None:
            raise NotFoundError("suggestion", suggestion_id)
        shift = self.state.shift(suggestion.shift_id)
        if shift is None or not shift.is_open:
            raise NotFoundError("open shift", suggestion.shift_id)

        assigned = self.assign_shift(shift.id, suggestion.employee_id)
        self.remove_ai_suggestion(suggestion_id)
        return assigned

    # ------------------------------------------------------------------
    # Validation

    def check_assignment(
        self, shift: Shift, others: Optional[Iterable[Shift]] = None
    ) -> ConflictResult:
        """Run ConflictDetector for a shift's assignee without committing.

        Returns:
            ConflictResult; always ok for open shifts.
        """
        if shift.is_open:
            return ConflictResult.success()
        employee = self.get_employee(shift.employee_id)
        others = self.state.shifts if others is None else others
        return self.detector.can_assign(employee, shift, others)

    def _validate_shift(self, shift: Shift, others: Iterable[Shift]) -> None:
        _require(shift.id, "id")
        shift.interval.require_valid("interval")
        self.get_venue(shift.venue_id)
        if shift.event_id is not None:
            self.get_event(shift.event_id)
        self.check_assignment(shift, others).raise_for_conflict()

    def _validate_venue(self, venue: Venue) -> None:
        _require(venue.id, "id")
        _require(venue.name, "name")
        for need in venue.staffing_needs:
            need.interval.require_valid("staffing_needs")
            if need.required_employees < 0:
                raise ValidationError(
                    "required employees cannot be negative", field="staffing_needs"
                )

    def _validate_event(self, event: Event) -> None:
        _require(event.id, "id")
        _require(event.name, "name")
        event.interval.require_valid("interval")
        self.get_venue(event.venue_id)
        if event.required_employees < 0:
            raise ValidationError(
                "required employees cannot be negative", field="required_employees"
            )

    def _validate_employee(self, employee: Employee) -> None:
        _require(employee.id, "id")
        _require(employee.name, "name")
        if employee.target_hours < 0:
            raise ValidationError("target hours cannot be negative", field="target_hours")
        absences = sorted(employee.absences, key=lambda ab: ab.start_date)
        for absence in absences:
            if absence.end_date < absence.start_date:
                raise ValidationError(
                    f"absence {absence.id} ends before it starts", field="absences"
                )
        for earlier, later in zip(absences, absences[1:]):
            if earlier.overlaps(later):
                raise ValidationError(
                    f"absences {earlier.id} and {later.id} overlap", field="absences"
                )


def _require(value, field_name: str) -> None:
    if not value:
        raise ValidationError("is required", field=field_name)
