"""The auto-fill boundary.

An external service proposes employees for open shifts and suggests extra
staff for what it could not fill. The service works on a snapshot that may be
stale by the time its answer arrives, so proposals are re-checked here:
only shifts that are still open are assigned, and only when ConflictDetector
accepts the employee.
"""

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import date
from typing import Callable, Iterable, Optional, Union

from shiftplanner.domain.models import AiSuggestion, Shift
from shiftplanner.errors import ExternalServiceError, ShiftPlannerError
from shiftplanner.store.persistence import employee_to_dict, shift_to_dict
from shiftplanner.store.state import ScheduleState
from shiftplanner.store.store import ScheduleStore, generate_id

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class AutofillRequest:
    """Open shifts to fill plus the staff and venues to fill them with."""

    open_shifts: tuple[Shift, ...]
    state: ScheduleState

    def to_payload(self) -> dict:
        return {
            "openShifts": [shift_to_dict(s) for s in self.open_shifts],
            "employees": [employee_to_dict(e) for e in self.state.active_employees],
            "venues": [{"id": v.id, "name": v.name} for v in self.state.active_venues],
        }


@dataclass(frozen=True)
class AssignmentProposal:
    shift_id: str
    employee_id: str


@dataclass(frozen=True)
class AutofillResponse:
    """What the auto-fill service proposes.

    Attributes:
        assignments: Employees proposed for open shifts.
        suggestions: Extra-staff suggestions as (shift id, employee id) pairs.
    """

    assignments: tuple[AssignmentProposal, ...] = ()
    suggestions: tuple[AssignmentProposal, ...] = ()


@dataclass
class AutofillOutcome:
    """Result of applying an auto-fill response."""

    assigned: list[Shift] = field(default_factory=list)
    skipped: list[tuple[AssignmentProposal, str]] = field(default_factory=list)
    suggestions: list[AiSuggestion] = field(default_factory=list)


class AutofillService(ABC):
    """Proposes assignments for open shifts."""

    @abstractmethod
    def propose(self, request: AutofillRequest) -> AutofillResponse:
        """Return proposals for the request's open shifts.

        Raises:
            ExternalServiceError: If the service fails or its output is
                unusable.
        """


class JsonTransportAutofill(AutofillService):
    """Auto-fill service backed by a transport returning decoded JSON."""

    def __init__(self, transport: Callable[[dict], dict]):
        self.transport = transport

    def propose(self, request: AutofillRequest) -> AutofillResponse:
        try:
            raw = self.transport(request.to_payload())
        except ShiftPlannerError:
            raise
        except Exception as e:
            logger.warning("Auto-fill call failed: %s", e)
            raise ExternalServiceError(f"auto-fill call failed: {e}") from e
        return parse_autofill_response(raw)


def parse_autofill_response(raw: Union[dict, None]) -> AutofillResponse:
    """Decode ``{"assignments": [...], "suggestions": [...]}``.

    Assignment entries may name the shift as ``id`` or ``shiftId``.
    """
    if not isinstance(raw, dict):
        raise ExternalServiceError("auto-fill output is not an object")
    try:
        assignments = tuple(
            AssignmentProposal(
                shift_id=entry.get("shiftId") or entry["id"],
                employee_id=entry["employeeId"],
            )
            for entry in raw.get("assignments") or []
            if entry.get("employeeId")
        )
        suggestions = tuple(
            AssignmentProposal(shift_id=entry["shiftId"], employee_id=entry["employeeId"])
            for entry in raw.get("suggestions") or []
        )
    except (KeyError, TypeError, AttributeError) as e:
        raise ExternalServiceError(f"malformed auto-fill output: {e}") from e
    return AutofillResponse(assignments=assignments, suggestions=suggestions)


def open_shifts_for_autofill(
    state: ScheduleState,
    dates: Iterable[date],
    venue_id: Optional[str] = None,
) -> list[Shift]:
    """List open shifts eligible for auto-fill.

    Event shifts are left for manual staffing, as are shifts at inactive
    venues.
    """
    wanted = set(dates)
    active = {v.id for v in state.active_venues}
    return [
        s
        for s in state.shifts
        if s.is_open
        and s.event_id is None
        and s.date in wanted
        and s.venue_id in active
        and (venue_id is None or s.venue_id == venue_id)
    ]


def apply_autofill(store: ScheduleStore, response: AutofillResponse) -> AutofillOutcome:
    """Apply auto-fill proposals to the store.

    Only regular staff are assigned and only extra staff are suggested.
    Every accepted assignment lands in a single undo step. Proposals for
    shifts that are gone, already assigned or illegal for the employee are
    skipped. Suggestions replace the store's suggestion list without an
    undo step.
    """
    outcome = AutofillOutcome()
    assigned, skipped = store.assign_open_shifts(
        ((p.shift_id, p.employee_id) for p in response.assignments),
        regular_only=True,
    )
    outcome.assigned = assigned
    outcome.skipped = [
        (AssignmentProposal(shift_id, employee_id), reason)
        for shift_id, employee_id, reason in skipped
    ]

    for index, proposal in enumerate(response.suggestions):
        shift = store.state.shift(proposal.shift_id)
        employee = store.state.employee(proposal.employee_id)
        if shift is None or not shift.is_open:
            continue
        if employee is None or not employee.is_extra:
            logger.info("Dropping suggestion of %s: not extra staff", proposal.employee_id)
            continue
        outcome.suggestions.append(
            AiSuggestion(
                id=generate_id(f"sug_{index}"),
                shift_id=shift.id,
                employee_id=proposal.employee_id,
                venue_id=shift.venue_id,
                date=shift.date,
                interval=shift.interval,
            )
        )
    store.set_ai_suggestions(outcome.suggestions)

    logger.info(
        "Auto-fill assigned %d shift(s), skipped %d, suggested %d",
        len(outcome.assigned),
        len(outcome.skipped),
        len(outcome.suggestions),
    )
    return outcome


def run_autofill(
    store: ScheduleStore,
    service: AutofillService,
    venue_id: Optional[str] = None,
) -> AutofillOutcome:
    """Fill the active week's open shifts using an auto-fill service.

    Raises:
        ExternalServiceError: If the service fails. The store is unchanged.
    """
    open_shifts = open_shifts_for_autofill(store.state, store.week_dates, venue_id)
    if not open_shifts:
        return AutofillOutcome()
    request = AutofillRequest(open_shifts=tuple(open_shifts), state=store.state)
    response = service.propose(request)
    return apply_autofill(store, response)

