"""Tests for the assistant boundary."""

import json
from datetime import date

import pytest

from shiftplanner.assistant.dispatcher import AssistantDispatcher
from shiftplanner.assistant.intents import AssistantAction, Intent, parse_intent
from shiftplanner.assistant.service import AssistantRequest, JsonTransportAssistant
from shiftplanner.domain.models import AbsenceType, DayOfWeek, Employee, StaffingNeed, TimeInterval, Venue
from shiftplanner.errors import ExternalServiceError, ValidationError
from shiftplanner.store.state import ScheduleState
from shiftplanner.store.store import ScheduleStore

MONDAY = date(2024, 6, 10)


@pytest.fixture
def store():
    club_x = Venue(
        id="club_x",
        name="Club X",
        staffing_needs=(
            StaffingNeed("n1", DayOfWeek.MONDAY, TimeInterval("18:00", "02:00"), 2),
        ),
    )
    venue_y = Venue(id="venue_y", name="Venue Y")
    employees = (
        Employee(id="e1", name="Julio", target_hours=40, allowed_venue_ids=("club_x",)),
        Employee(id="e2", name="Jenny", target_hours=40, allowed_venue_ids=("venue_y",)),
    )
    return ScheduleStore(
        state=ScheduleState(employees=employees, venues=(club_x, venue_y)),
        active_week=MONDAY,
    )


def dispatcher_for(store, response):
    """Dispatcher whose service always answers with ``response``."""
    calls = []

    def transport(payload):
        calls.append(payload)
        if isinstance(response, Exception):
            raise response
        return response

    dispatcher = AssistantDispatcher(
        store, JsonTransportAssistant(transport), today=lambda: MONDAY
    )
    return dispatcher, calls


class TestParseIntent:
    """Tests for decoding service output."""

    def test_json_text(self):
        intent = parse_intent('{"action": "query", "payload": "Two open shifts."}')
        assert intent == Intent(AssistantAction.QUERY, "Two open shifts.")
        assert intent.action.is_read_only

    def test_decoded_object(self):
        intent = parse_intent({"action": "delete_event", "payload": {"eventId": "x"}})
        assert intent.action == AssistantAction.DELETE_EVENT
        assert not intent.action.is_read_only

    @pytest.mark.parametrize(
        "raw",
        ["not json", '{"payload": {}}', '{"action": "launch_rockets"}', "[]"],
    )
    def test_unusable_output(self, raw):
        with pytest.raises(ExternalServiceError):
            parse_intent(raw)


class TestAssistantRequest:
    """Tests for the request sent to the service."""

    def test_payload(self, store):
        request = AssistantRequest(
            command="who works monday?", state=store.state, today=MONDAY, history=("hi",)
        )
        payload = request.to_payload()
        assert payload["command"] == "who works monday?"
        assert payload["today"] == "2024-06-10"
        assert payload["history"] == ["hi"]
        assert {e["id"] for e in payload["employees"]} == {"e1", "e2"}
        assert len(payload["shifts"]) == 2


class TestAssistantDispatcher:
    """Tests for applying intents through the store."""

    def test_query_changes_nothing(self, store):
        before = store.state
        dispatcher, calls = dispatcher_for(store, {"action": "query", "payload": "Nothing to do."})
        reply = dispatcher.handle_command("how many open shifts?")
        assert reply.ok
        assert reply.text == "Nothing to do."
        assert not reply.changed
        assert store.state is before
        assert calls[0]["command"] == "how many open shifts?"

    def test_service_failure_leaves_state_untouched(self, store):
        """A failed call raises and the store is exactly as before."""
        before = store.state
        dispatcher, _ = dispatcher_for(store, ConnectionError("timeout"))
        with pytest.raises(ExternalServiceError):
            dispatcher.handle_command("give Julio monday off")
        assert store.state is before
        assert not store.can_undo

    def test_invalid_output_leaves_state_untouched(self, store):
        before = store.state
        dispatcher, _ = dispatcher_for(store, "this is not json")
        with pytest.raises(ExternalServiceError):
            dispatcher.handle_command("do something")
        assert store.state is before

    def test_malformed_payload_leaves_state_untouched(self, store):
        before = store.state
        dispatcher, _ = dispatcher_for(
            store, {"action": "create_shift", "payload": {"venueId": "club_x"}}
        )
        with pytest.raises(ExternalServiceError):
            dispatcher.handle_command("add a shift")
        assert store.state is before

    def test_empty_command(self, store):
        dispatcher, calls = dispatcher_for(store, {"action": "query", "payload": ""})
        with pytest.raises(ValidationError):
            dispatcher.handle_command("   ")
        assert calls == []

    def test_no_service(self, store):
        with pytest.raises(ValueError):
            AssistantDispatcher(store).handle_command("hello")

    def test_create_shift(self, store):
        dispatcher, _ = dispatcher_for(
            store,
            {
                "action": "create_shift",
                "payload": {
                    "employeeId": "e2",
                    "venueId": "venue_y",
                    "date": "2024-06-11",
                    "startTime": "10:00",
                    "endTime": "14:00",
                },
            },
        )
        reply = dispatcher.handle_command("Jenny works Tuesday morning at Venue Y")
        assert reply.ok and reply.changed
        created = store.state.shifts_for_employee("e2")
        assert len(created) == 1
        assert created[0].id.startswith("s_chat_")
        assert store.undo()
        assert store.state.shifts_for_employee("e2") == []

    def test_create_shift_conflict_is_reported(self, store):
        """Assistant-created shifts go through the same conflict checks."""
        before = store.state
        dispatcher, _ = dispatcher_for(
            store,
            {
                "action": "create_shift",
                "payload": {
                    "employeeId": "e1",
                    "venueId": "venue_y",
                    "date": "2024-06-11",
                    "startTime": "10:00",
                    "endTime": "14:00",
                },
            },
        )
        reply = dispatcher.handle_command("Julio works at Venue Y")
        assert not reply.ok
        assert "venue_not_allowed" in reply.text
        assert store.state is before

    def test_update_shift_is_validated(self, store):
        shift = store.state.shifts[0]
        dispatcher, _ = dispatcher_for(
            store,
            {
                "action": "update_shift",
                "payload": {"shiftId": shift.id, "updates": {"employeeId": "e2"}},
            },
        )
        reply = dispatcher.handle_command("give that shift to Jenny")
        assert not reply.ok
        assert reply.action == AssistantAction.UPDATE_SHIFT
        assert store.get_shift(shift.id).is_open

    def test_update_shift_assigns(self, store):
        shift = store.state.shifts[0]
        dispatcher, _ = dispatcher_for(store, {"action": "query"})
        reply = dispatcher.execute(
            Intent(
                AssistantAction.UPDATE_SHIFT,
                {"shiftId": shift.id, "updates": {"employeeId": "e1"}},
            )
        )
        assert reply.ok and reply.changed
        assert store.get_shift(shift.id).employee_id == "e1"

    def test_update_unknown_shift(self, store):
        dispatcher, _ = dispatcher_for(store, {"action": "query"})
        reply = dispatcher.execute(
            Intent(AssistantAction.UPDATE_SHIFT, {"shiftId": "nope", "updates": {}})
        )
        assert not reply.ok

    def test_unassign_and_delete(self, store):
        shift = store.state.shifts[0]
        store.assign_shift(shift.id, "e1")
        dispatcher, _ = dispatcher_for(store, {"action": "query"})

        reply = dispatcher.execute(
            Intent(AssistantAction.UNASSIGN_SHIFTS, {"shiftIds": [shift.id]})
        )
        assert reply.ok
        assert store.get_shift(shift.id).is_open

        reply = dispatcher.execute(Intent(AssistantAction.DELETE_SHIFTS, {"shiftIds": ["nope"]}))
        assert not reply.ok

    def test_update_employee_config_demotes(self, store):
        """A new absence from the assistant unassigns conflicting shifts."""
        shift = store.state.shifts[0]
        store.assign_shift(shift.id, "e1")
        dispatcher, _ = dispatcher_for(store, {"action": "query"})
        reply = dispatcher.execute(
            Intent(
                AssistantAction.UPDATE_EMPLOYEE_CONFIG,
                [
                    {
                        "employeeId": "e1",
                        "updates": {
                            "absences": [
                                {
                                    "type": "baja_medica",
                                    "startDate": "2024-06-10",
                                    "endDate": "2024-06-11",
                                }
                            ]
                        },
                    },
                    {"employeeId": "ghost", "updates": {}},
                ],
            )
        )
        assert reply.ok
        assert "1 shift(s)" in reply.text
        assert "Could not find 1 employee(s)" in reply.text
        employee = store.get_employee("e1")
        assert employee.absences[0].type == AbsenceType.MEDICAL_LEAVE
        assert employee.absences[0].id.startswith("abs_chat_")
        assert store.get_shift(shift.id).is_open

    def test_update_employee_keeps_absence_ids(self, store):
        dispatcher, _ = dispatcher_for(store, {"action": "query"})
        absence = {"type": "vacaciones", "startDate": "2024-07-01", "endDate": "2024-07-05"}
        intent = Intent(
            AssistantAction.UPDATE_EMPLOYEE_CONFIG,
            {"employeeId": "e2", "updates": {"absences": [absence]}},
        )
        dispatcher.execute(intent)
        first_id = store.get_employee("e2").absences[0].id
        dispatcher.execute(intent)
        assert store.get_employee("e2").absences[0].id == first_id

    def test_update_venue_config_resyncs(self, store):
        dispatcher, _ = dispatcher_for(store, {"action": "query"})
        reply = dispatcher.execute(
            Intent(
                AssistantAction.UPDATE_VENUE_CONFIG,
                {
                    "venueId": "venue_y",
                    "updates": {
                        "staffingNeeds": [
                            {
                                "day": "Martes",
                                "startTime": "10:00",
                                "endTime": "14:00",
                                "requiredEmployees": 1,
                            }
                        ]
                    },
                },
            )
        )
        assert reply.ok
        need = store.get_venue("venue_y").staffing_needs[0]
        assert need.id.startswith("sn_venue_y_")
        assert [s.venue_id for s in store.state.shifts].count("venue_y") == 1

    def test_update_employee_config_is_all_or_nothing(self, store):
        """One invalid employee rejects the whole command."""
        before = store.state
        dispatcher, _ = dispatcher_for(store, {"action": "query"})
        reply = dispatcher.execute(
            Intent(
                AssistantAction.UPDATE_EMPLOYEE_CONFIG,
                [
                    {"employeeId": "e1", "updates": {"name": "Julio Renamed"}},
                    {
                        "employeeId": "e2",
                        "updates": {
                            "absences": [
                                {"type": "vacaciones", "startDate": "2024-07-01", "endDate": "2024-07-10"},
                                {"type": "baja_medica", "startDate": "2024-07-05", "endDate": "2024-07-08"},
                            ]
                        },
                    },
                ],
            )
        )
        assert not reply.ok
        assert not reply.changed
        assert store.state is before
        assert store.get_employee("e1").name == "Julio"
        assert not store.can_undo

    def test_update_employee_config_single_undo_step(self, store):
        dispatcher, _ = dispatcher_for(store, {"action": "query"})
        dispatcher.execute(
            Intent(
                AssistantAction.UPDATE_EMPLOYEE_CONFIG,
                [
                    {"employeeId": "e1", "updates": {"name": "Julio C."}},
                    {"employeeId": "e2", "updates": {"name": "Jenny R."}},
                ],
            )
        )
        assert store.get_employee("e1").name == "Julio C."
        assert store.get_employee("e2").name == "Jenny R."
        assert store.undo()
        assert store.get_employee("e1").name == "Julio"
        assert store.get_employee("e2").name == "Jenny"
        assert not store.can_undo

    def test_update_venue_config_is_all_or_nothing(self, store):
        before = store.state
        dispatcher, _ = dispatcher_for(store, {"action": "query"})
        reply = dispatcher.execute(
            Intent(
                AssistantAction.UPDATE_VENUE_CONFIG,
                [
                    {"venueId": "club_x", "updates": {"name": "Club X Renamed"}},
                    {
                        "venueId": "venue_y",
                        "updates": {
                            "staffingNeeds": [
                                {
                                    "day": "Martes",
                                    "startTime": "10:00",
                                    "endTime": "10:00",
                                    "requiredEmployees": 1,
                                }
                            ]
                        },
                    },
                ],
            )
        )
        assert not reply.ok
        assert store.state is before
        assert store.get_venue("club_x").name == "Club X"

    def test_event_lifecycle(self, store):
        dispatcher, _ = dispatcher_for(store, {"action": "query"})
        reply = dispatcher.execute(
            Intent(
                AssistantAction.CREATE_EVENT,
                {
                    "name": "Launch Party",
                    "venueId": "venue_y",
                    "date": "2024-06-10",
                    "startTime": "20:00",
                    "endTime": "02:00",
                    "requiredEmployees": 3,
                },
            )
        )
        assert reply.ok
        event = store.state.events[0]
        assert len([s for s in store.state.shifts if s.event_id == event.id]) == 3

        dispatcher.execute(
            Intent(
                AssistantAction.UPDATE_EVENT,
                {"eventId": event.id, "updates": {"requiredEmployees": 1}},
            )
        )
        assert len([s for s in store.state.shifts if s.event_id == event.id]) == 1

        reply = dispatcher.execute(Intent(AssistantAction.DELETE_EVENT, {"eventId": event.id}))
        assert reply.ok
        assert store.state.events == ()
        assert not [s for s in store.state.shifts if s.event_id == event.id]

    def test_replace_shifts_for_employee(self, store):
        dispatcher, _ = dispatcher_for(store, {"action": "query"})
        reply = dispatcher.execute(
            Intent(
                AssistantAction.REPLACE_SHIFTS_FOR_EMPLOYEE,
                {
                    "employeeId": "e2",
                    "dateRange": {"startDate": "2024-06-10", "endDate": "2024-06-16"},
                    "newShifts": [
                        {
                            "venueId": "venue_y",
                            "date": "2024-06-12",
                            "startTime": "12:00",
                            "endTime": "20:00",
                        }
                    ],
                },
            )
        )
        assert reply.ok
        assert "0 removed, 1 added" in reply.text
        assert store.state.shifts_for_employee("e2")[0].id.startswith("s_chat_replace_")

    def test_replace_for_unknown_employee(self, store):
        dispatcher, _ = dispatcher_for(store, {"action": "query"})
        reply = dispatcher.execute(
            Intent(
                AssistantAction.REPLACE_SHIFTS_FOR_EMPLOYEE,
                {
                    "employeeId": "ghost",
                    "dateRange": {"startDate": "2024-06-10", "endDate": "2024-06-16"},
                    "newShifts": [],
                },
            )
        )
        assert not reply.ok

    def test_transport_may_return_text(self, store):
        dispatcher, _ = dispatcher_for(
            store, json.dumps({"action": "cannot_perform", "payload": "I can't do that."})
        )
        reply = dispatcher.handle_command("book me a flight")
        assert reply.ok
        assert reply.action == AssistantAction.CANNOT_PERFORM
        assert reply.text == "I can't do that."
