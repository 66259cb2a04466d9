"""Applies assistant intents through the schedule store.

Intents never bypass the store: created and updated shifts go through the
same ConflictDetector checks as manual edits. A payload is fully decoded
before anything is committed, so malformed assistant output leaves the
schedule untouched.
"""

import logging
from dataclasses import dataclass
from datetime import date
from typing import Any, Callable, Iterable, Optional

from shiftplanner.assistant.intents import AssistantAction, Intent
from shiftplanner.assistant.service import AssistantRequest, AssistantService
from shiftplanner.domain.models import Event
from shiftplanner.errors import (
    ConflictError,
    ExternalServiceError,
    NotFoundError,
    ValidationError,
)
from shiftplanner.store import persistence
from shiftplanner.store.persistence import parse_date
from shiftplanner.store.store import ScheduleStore, generate_id

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class AssistantReply:
    """Outcome of one assistant command.

    Attributes:
        text: Message for the user.
        ok: False when the intent could not be applied.
        action: The action the assistant chose, if any.
        changed: True if the schedule was modified.
    """

    text: str
    ok: bool = True
    action: Optional[AssistantAction] = None
    changed: bool = False


def _decode(func: Callable[[], Any], what: str) -> Any:
    """Run a payload decoder, reporting bad payloads as service errors."""
    try:
        return func()
    except (KeyError, TypeError, ValueError, AttributeError, ValidationError) as e:
        logger.warning("Malformed %s payload from assistant: %s", what, e)
        raise ExternalServiceError(f"malformed {what} payload: {e}") from e


def _as_list(payload: Any) -> list:
    return payload if isinstance(payload, list) else [payload]


class AssistantDispatcher:
    """Executes assistant intents against a ScheduleStore.

    Example:
        >>> dispatcher = AssistantDispatcher(store, JsonTransportAssistant(transport))
        >>> reply = dispatcher.handle_command("Give Julio Monday off")
        >>> print(reply.text)
    """

    def __init__(
        self,
        store: ScheduleStore,
        service: Optional[AssistantService] = None,
        today: Optional[Callable[[], date]] = None,
    ):
        self.store = store
        self.service = service
        self.today = today or date.today
        self._handlers = {
            AssistantAction.QUERY: self._reply_text,
            AssistantAction.CANNOT_PERFORM: self._reply_text,
            AssistantAction.CREATE_SHIFT: self._create_shift,
            AssistantAction.UPDATE_SHIFT: self._update_shift,
            AssistantAction.DELETE_SHIFTS: self._delete_shifts,
            AssistantAction.UNASSIGN_SHIFTS: self._unassign_shifts,
            AssistantAction.REPLACE_SHIFTS_FOR_EMPLOYEE: self._replace_shifts,
            AssistantAction.UPDATE_EMPLOYEE_CONFIG: self._update_employees,
            AssistantAction.UPDATE_VENUE_CONFIG: self._update_venues,
            AssistantAction.CREATE_EVENT: self._create_event,
            AssistantAction.UPDATE_EVENT: self._update_event,
            AssistantAction.DELETE_EVENT: self._delete_event,
        }

    def handle_command(self, command: str, history: Iterable[str] = ()) -> AssistantReply:
        """Ask the assistant service for an intent and apply it.

        Raises:
            ExternalServiceError: If the service fails or returns unusable
                output. The store is left exactly as it was.
            ValueError: If no service is configured.
        """
        if self.service is None:
            raise ValueError("No assistant service configured")
        if not command.strip():
            raise ValidationError("command is empty", field="command")

        request = AssistantRequest(
            command=command,
            state=self.store.state,
            today=self.today(),
            history=tuple(history),
        )
        intent = self.service.interpret(request)
        return self.execute(intent)

    def execute(self, intent: Intent) -> AssistantReply:
        """Apply one intent.

        Domain failures (unknown record, invalid data, scheduling conflict)
        are returned as a reply with ``ok=False``.

        Raises:
            ExternalServiceError: If the payload is malformed.
        """
        logger.info("Executing assistant intent %s", intent.action.value)
        handler = self._handlers[intent.action]
        try:
            reply = handler(intent.payload)
        except ExternalServiceError:
            raise
        except (ValidationError, NotFoundError, ConflictError) as e:
            logger.warning("Assistant intent %s rejected: %s", intent.action.value, e)
            return AssistantReply(text=str(e), ok=False, action=intent.action)
        return AssistantReply(
            text=reply.text, ok=reply.ok, action=intent.action, changed=reply.changed
        )

    # ------------------------------------------------------------------
    # Handlers

    def _reply_text(self, payload: Any) -> AssistantReply:
        return AssistantReply(text=str(payload or ""))

    def _create_shift(self, payload: dict) -> AssistantReply:
        shift = _decode(
            lambda: persistence.shift_from_dict({**payload, "id": generate_id("s_chat")}),
            "create_shift",
        )
        self.store.add_shift(shift)
        return AssistantReply(text="Shift created.", changed=True)

    def _update_shift(self, payload: dict) -> AssistantReply:
        shift_id, updates = _decode(
            lambda: (payload["shiftId"], dict(payload.get("updates") or {})), "update_shift"
        )
        existing = self.store.state.shift(shift_id)
        if existing is None:
            return AssistantReply(text="No matching shift found to update.", ok=False)
        shift = _decode(
            lambda: persistence.shift_from_dict(
                {**persistence.shift_to_dict(existing), **updates, "id": existing.id}
            ),
            "update_shift",
        )
        self.store.update_shift(shift)
        return AssistantReply(text="Shift updated.", changed=True)

    def _delete_shifts(self, payload: dict) -> AssistantReply:
        ids = _decode(lambda: list((payload or {}).get("shiftIds") or []), "delete_shifts")
        removed = self.store.delete_shifts(ids)
        if not removed:
            return AssistantReply(text="No matching shifts found to delete.", ok=False)
        return AssistantReply(text=f"Deleted {removed} shift(s).", changed=True)

    def _unassign_shifts(self, payload: dict) -> AssistantReply:
        ids = _decode(lambda: list((payload or {}).get("shiftIds") or []), "unassign_shifts")
        unassigned = self.store.unassign_shifts(ids)
        if not unassigned:
            return AssistantReply(text="No matching shifts found to unassign.", ok=False)
        return AssistantReply(
            text=f"Moved {unassigned} shift(s) to open shifts.", changed=True
        )

    def _replace_shifts(self, payload: dict) -> AssistantReply:
        def decode():
            employee_id = payload["employeeId"]
            date_range = payload["dateRange"]
            new_shifts = [
                persistence.shift_from_dict(
                    {**data, "employeeId": employee_id, "id": generate_id("s_chat_replace")}
                )
                for data in payload.get("newShifts") or []
            ]
            return (
                employee_id,
                parse_date(date_range["startDate"], "startDate"),
                parse_date(date_range["endDate"], "endDate"),
                new_shifts,
            )

        employee_id, start, end, new_shifts = _decode(decode, "replace_shifts_for_employee")
        employee = self.store.get_employee(employee_id)
        removed, added = self.store.replace_shifts_for_employee(
            employee_id, start, end, new_shifts
        )
        return AssistantReply(
            text=(
                f"Updated the schedule of {employee.name} from {start.isoformat()} "
                f"to {end.isoformat()}: {removed} removed, {added} added."
            ),
            changed=True,
        )

    def _update_employees(self, payload: Any) -> AssistantReply:
        def decode():
            employees = []
            missing = 0
            for entry in _as_list(payload):
                existing = self.store.state.employee(entry["employeeId"])
                if existing is None:
                    missing += 1
                    continue
                updates = dict(entry.get("updates") or {})
                if "absences" in updates:
                    updates["absences"] = self._with_absence_ids(existing, updates["absences"])
                data = {**persistence.employee_to_dict(existing), **updates, "id": existing.id}
                employees.append(persistence.employee_from_dict(data))
            return employees, missing

        employees, missing = _decode(decode, "update_employee_config")
        demoted = self.store.update_employees(employees)

        parts = []
        if employees:
            parts.append(f"Updated configuration of: {', '.join(e.name for e in employees)}.")
        if demoted:
            parts.append(f"{demoted} shift(s) no longer fit and were moved to open shifts.")
        if missing:
            parts.append(f"Could not find {missing} employee(s).")
        if not parts:
            parts.append("No employee configuration was changed.")
        return AssistantReply(text=" ".join(parts), ok=bool(employees), changed=bool(employees))

    def _with_absence_ids(self, employee, absences: list) -> list:
        # Keep ids of absences that already exist so the update is stable
        existing = {
            (a.type.value, a.start_date.isoformat(), a.end_date.isoformat()): a.id
            for a in employee.absences
        }
        result = []
        for data in absences:
            key = (data.get("type"), data.get("startDate"), data.get("endDate"))
            absence_id = data.get("id") or existing.get(key) or generate_id("abs_chat")
            result.append({**data, "id": absence_id})
        return result

    def _update_venues(self, payload: Any) -> AssistantReply:
        def decode():
            venues = []
            missing = 0
            for entry in _as_list(payload):
                existing = self.store.state.venue(entry["venueId"])
                if existing is None:
                    missing += 1
                    continue
                updates = dict(entry.get("updates") or {})
                if "staffingNeeds" in updates:
                    updates["staffingNeeds"] = [
                        {**need, "id": need.get("id") or generate_id(f"sn_{existing.id}")}
                        for need in updates["staffingNeeds"]
                    ]
                data = {**persistence.venue_to_dict(existing), **updates, "id": existing.id}
                venues.append(persistence.venue_from_dict(data))
            return venues, missing

        venues, missing = _decode(decode, "update_venue_config")
        self.store.update_venues(venues)

        parts = []
        if venues:
            parts.append(f"Updated configuration of: {', '.join(v.name for v in venues)}.")
        if missing:
            parts.append(f"Could not find {missing} venue(s).")
        if not parts:
            parts.append("No venue configuration was changed.")
        return AssistantReply(text=" ".join(parts), ok=bool(venues), changed=bool(venues))

    def _create_event(self, payload: dict) -> AssistantReply:
        event: Event = _decode(
            lambda: persistence.event_from_dict({**payload, "id": generate_id("evt_chat")}),
            "create_event",
        )
        self.store.add_event(event)
        return AssistantReply(text=f"Event {event.name} created.", changed=True)

    def _update_event(self, payload: dict) -> AssistantReply:
        event_id, updates = _decode(
            lambda: (payload["eventId"], dict(payload.get("updates") or {})), "update_event"
        )
        existing = self.store.state.event(event_id)
        if existing is None:
            return AssistantReply(text="Could not find the event to update.", ok=False)
        event = _decode(
            lambda: persistence.event_from_dict(
                {**persistence.event_to_dict(existing), **updates, "id": existing.id}
            ),
            "update_event",
        )
        self.store.update_event(event)
        return AssistantReply(text=f"Event {event.name} updated.", changed=True)

    def _delete_event(self, payload: dict) -> AssistantReply:
        event_id = _decode(lambda: payload["eventId"], "delete_event")
        if self.store.state.event(event_id) is None:
            return AssistantReply(text="Could not find the event to delete.", ok=False)
        removed = self.store.delete_event(event_id)
        return AssistantReply(
            text=f"Deleted the event and {removed} linked shift(s).", changed=True
        )

