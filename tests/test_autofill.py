"""Tests for the auto-fill boundary."""

from datetime import date

import pytest

from shiftplanner.assistant.autofill import (
    AssignmentProposal,
    AutofillRequest,
    AutofillResponse,
    AutofillService,
    JsonTransportAutofill,
    apply_autofill,
    open_shifts_for_autofill,
    parse_autofill_response,
    run_autofill,
)
from shiftplanner.domain.models import (
    Absence,
    AbsenceType,
    DayOfWeek,
    Employee,
    EmployeeType,
    Event,
    StaffingNeed,
    TimeInterval,
    Venue,
)
from shiftplanner.errors import ExternalServiceError
from shiftplanner.store.state import ScheduleState
from shiftplanner.store.store import ScheduleStore

MONDAY = date(2024, 6, 10)


class FixedAutofill(AutofillService):
    """Auto-fill service returning a canned response."""

    def __init__(self, response):
        self.response = response
        self.requests = []

    def propose(self, request):
        self.requests.append(request)
        return self.response


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
    event = Event("evt_1", "Launch Party", "venue_y", MONDAY, TimeInterval("20:00", "02:00"), 1)
    employees = (
        Employee(id="e1", name="Julio", target_hours=40, allowed_venue_ids=("club_x",)),
        Employee(id="e2", name="Jenny", target_hours=40, allowed_venue_ids=("club_x",)),
        Employee(
            id="e3",
            name="Jessica",
            target_hours=40,
            allowed_venue_ids=("venue_y",),
            absences=(Absence("a1", AbsenceType.VACATION, date(2024, 6, 12), date(2024, 6, 14)),),
        ),
        Employee(id="x1", name="Pavel", type=EmployeeType.EXTRA, allowed_venue_ids=("club_x",)),
    )
    return ScheduleStore(
        state=ScheduleState(employees=employees, venues=(club_x, venue_y), events=(event,)),
        active_week=MONDAY,
    )


def club_shift_ids(store):
    return [s.id for s in store.state.shifts if s.venue_id == "club_x" and s.is_open]


class TestParseAutofillResponse:
    """Tests for decoding auto-fill output."""

    def test_assignments_and_suggestions(self):
        response = parse_autofill_response(
            {
                "assignments": [
                    {"shiftId": "s1", "employeeId": "e1"},
                    {"id": "s2", "employeeId": "e2"},
                    {"id": "s3", "employeeId": None},
                ],
                "suggestions": [{"shiftId": "s3", "employeeId": "e9"}],
            }
        )
        assert response.assignments == (
            AssignmentProposal("s1", "e1"),
            AssignmentProposal("s2", "e2"),
        )
        assert response.suggestions == (AssignmentProposal("s3", "e9"),)

    def test_empty(self):
        assert parse_autofill_response({}) == AutofillResponse()

    @pytest.mark.parametrize("raw", [None, [], {"assignments": [{"employeeId": "e1"}]}])
    def test_malformed(self, raw):
        with pytest.raises(ExternalServiceError):
            parse_autofill_response(raw)


class TestAutofill:
    """Tests for applying auto-fill proposals."""

    def test_open_shifts_exclude_events(self, store):
        """Event shifts are left for manual staffing."""
        shifts = open_shifts_for_autofill(store.state, store.week_dates)
        assert {s.venue_id for s in shifts} == {"club_x"}
        assert len(shifts) == 2

    def test_venue_filter(self, store):
        assert open_shifts_for_autofill(store.state, store.week_dates, "venue_y") == []

    def test_apply_assigns_in_one_step(self, store):
        first, second = club_shift_ids(store)
        outcome = apply_autofill(
            store,
            AutofillResponse(
                assignments=(AssignmentProposal(first, "e1"), AssignmentProposal(second, "e2"))
            ),
        )
        assert len(outcome.assigned) == 2
        assert outcome.skipped == []
        assert club_shift_ids(store) == []
        assert store.undo()
        assert len(club_shift_ids(store)) == 2

    def test_stale_proposals_are_skipped(self, store):
        """Shifts taken meanwhile or removed are not overwritten."""
        first, second = club_shift_ids(store)
        store.assign_shift(first, "e1")
        outcome = apply_autofill(
            store,
            AutofillResponse(
                assignments=(
                    AssignmentProposal(first, "e2"),
                    AssignmentProposal("deleted", "e2"),
                    AssignmentProposal(second, "e3"),
                )
            ),
        )
        assert outcome.assigned == []
        assert [p.shift_id for p, _ in outcome.skipped] == [first, "deleted", second]
        assert store.get_shift(first).employee_id == "e1"

    def test_suggestions_recorded_without_history(self, store):
        first, _ = club_shift_ids(store)
        outcome = apply_autofill(
            store,
            AutofillResponse(
                suggestions=(
                    AssignmentProposal(first, "x1"),
                    AssignmentProposal("deleted", "x1"),
                )
            ),
        )
        assert len(outcome.suggestions) == 1
        suggestion = store.state.ai_suggestions[0]
        assert suggestion.shift_id == first
        assert suggestion.venue_id == "club_x"
        assert suggestion.id.startswith("sug_0_")
        assert not store.can_undo

    def test_run_autofill(self, store):
        first, second = club_shift_ids(store)
        service = FixedAutofill(
            AutofillResponse(assignments=(AssignmentProposal(first, "e1"),))
        )
        outcome = run_autofill(store, service)
        assert [s.id for s in outcome.assigned] == [first]
        request = service.requests[0]
        assert {s.id for s in request.open_shifts} == {first, second}
        assert {e["id"] for e in request.to_payload()["employees"]} == {"e1", "e2", "e3", "x1"}

    def test_run_autofill_nothing_open(self, store):
        service = FixedAutofill(AutofillResponse())
        outcome = run_autofill(store, service, venue_id="venue_y")
        assert outcome.assigned == []
        assert service.requests == []

    def test_service_failure_leaves_state_untouched(self, store):
        def transport(payload):
            raise TimeoutError("no answer")

        before = store.state
        with pytest.raises(ExternalServiceError):
            run_autofill(store, JsonTransportAutofill(transport))
        assert store.state is before

    def test_extra_staff_are_not_assigned(self, store):
        """Extra staff proposed as assignees are skipped, not assigned."""
        first, second = club_shift_ids(store)
        outcome = apply_autofill(
            store,
            AutofillResponse(
                assignments=(AssignmentProposal(first, "x1"), AssignmentProposal(second, "e1"))
            ),
        )
        assert [s.id for s in outcome.assigned] == [second]
        assert outcome.skipped == [
            (AssignmentProposal(first, "x1"), "extra staff are only suggested")
        ]
        assert store.get_shift(first).is_open

    def test_only_extra_staff_are_suggested(self, store):
        first, second = club_shift_ids(store)
        outcome = apply_autofill(
            store,
            AutofillResponse(
                suggestions=(
                    AssignmentProposal(first, "e1"),
                    AssignmentProposal(second, "x1"),
                    AssignmentProposal(second, "ghost"),
                )
            ),
        )
        assert [(s.shift_id, s.employee_id) for s in outcome.suggestions] == [(second, "x1")]
        assert [s.employee_id for s in store.state.ai_suggestions] == ["x1"]


class TestAutofillRequest:
    """Tests for the payload sent to the auto-fill service."""

    def test_employees_carry_availability_and_absences(self, store):
        request = AutofillRequest(
            open_shifts=tuple(open_shifts_for_autofill(store.state, store.week_dates)),
            state=store.state,
        )
        employees = {e["id"]: e for e in request.to_payload()["employees"]}
        assert employees["e3"]["availability"]["type"] == "flexible"
        assert employees["e3"]["absences"] == [
            {"id": "a1", "type": "vacaciones", "startDate": "2024-06-12", "endDate": "2024-06-14"}
        ]
        assert employees["x1"]["type"] == "extra"
