"""Tests for the weekly summary."""

from dataclasses import replace
from datetime import date

import pytest

from shiftplanner.domain.models import (
    Absence,
    AbsenceType,
    Employee,
    EmployeeType,
    Shift,
    TimeInterval,
    Venue,
)
from shiftplanner.output.summary import SummaryReport, WeeklySummary, is_off_target
from shiftplanner.store.state import ScheduleState

MONDAY = date(2024, 6, 10)


@pytest.fixture
def state():
    venues = (
        Venue(id="v1", name="Club X"),
        Venue(id="v2", name="Closed Bar", is_active=False),
    )
    employees = (
        Employee(id="e1", name="Julio", target_hours=16, allowed_venue_ids=("v1",)),
        Employee(id="e2", name="Jenny", target_hours=40, allowed_venue_ids=("v1",)),
        Employee(id="e3", name="Jessica", type=EmployeeType.EXTRA, allowed_venue_ids=("v1",)),
        Employee(
            id="e4",
            name="Guillermo",
            target_hours=40,
            absences=(
                Absence("a1", AbsenceType.VACATION, date(2024, 6, 12), date(2024, 6, 20)),
                Absence("a2", AbsenceType.VACATION, date(2024, 6, 1), date(2024, 6, 11)),
            ),
        ),
        Employee(id="e5", name="Retired", target_hours=40, is_active=False),
    )
    night = TimeInterval("18:00", "02:00")
    shifts = (
        Shift("s1", "e1", "v1", MONDAY, night),
        Shift("s2", "e1", "v1", date(2024, 6, 11), night),
        Shift("s3", "e3", "v1", date(2024, 6, 12), night),
        Shift("s4", None, "v1", date(2024, 6, 13), night),
        Shift("s5", "e2", "v2", MONDAY, night),
        Shift("s6", "e2", "v1", date(2024, 6, 17), night),
    )
    return ScheduleState(employees=employees, venues=venues, shifts=shifts)


class TestWeeklySummary:
    """Tests for WeeklySummary.calculate."""

    def test_totals(self, state):
        """Only shifts of the week at active venues are counted."""
        summary = WeeklySummary.calculate(state, date(2024, 6, 13))
        assert summary.week_start == MONDAY
        assert summary.total_hours == 32.0
        assert summary.open_shifts == 1

    def test_hours_per_employee(self, state):
        summary = WeeklySummary.calculate(state, MONDAY)
        assert summary.hours_per_employee == {"e1": 16.0, "e2": 0.0, "e3": 8.0, "e4": 0.0}

    def test_imbalanced_regular_employees(self, state):
        """Regular employees outside 90-110% of target are flagged; extras never."""
        summary = WeeklySummary.calculate(state, MONDAY)
        assert summary.imbalanced_employee_ids == ["e2", "e4"]
        assert summary.imbalanced_count == 2

    def test_hours_per_venue(self, state):
        summary = WeeklySummary.calculate(state, MONDAY)
        assert summary.hours_per_venue == {"v1": 32.0}
        assert summary.venue_hours() == [("Club X", 32.0)]

    def test_venues_sharing_a_name_are_kept_apart(self, state):
        """Hours are keyed by venue, not by display name."""
        twin = Venue(id="v3", name="Club X")
        state = replace(
            state,
            venues=state.venues + (twin,),
            shifts=state.shifts + (Shift("s7", "e2", "v3", MONDAY, TimeInterval("10:00", "14:00")),),
        )
        summary = WeeklySummary.calculate(state, MONDAY)
        assert summary.hours_per_venue == {"v1": 32.0, "v3": 4.0}
        assert summary.venue_hours() == [("Club X", 32.0), ("Club X", 4.0)]

    def test_absences_starting_in_week(self, state):
        summary = WeeklySummary.calculate(state, MONDAY)
        assert [u.absence.id for u in summary.upcoming_absences] == ["a1"]
        assert summary.upcoming_absences[0].employee_name == "Guillermo"

    def test_empty_state(self):
        summary = WeeklySummary.calculate(ScheduleState(), MONDAY)
        assert summary.total_hours == 0
        assert summary.hours_per_venue == {}

    @pytest.mark.parametrize("hours,expected", [(35.9, True), (36.0, False), (44.0, False), (44.1, True)])
    def test_target_band(self, hours, expected):
        employee = Employee(id="e1", name="Ana", target_hours=40)
        assert is_off_target(employee, hours) is expected


class TestSummaryReport:
    """Tests for the text report."""

    def test_report_content(self, state):
        text = SummaryReport().generate_to_string(state, MONDAY)
        assert "WEEKLY SUMMARY - week of 2024-06-10" in text
        assert "Open shifts:          1" in text
        assert "Club X" in text
        assert "Guillermo" in text
        assert "Retired" not in text

    def test_report_to_file(self, state, tmp_path):
        path = tmp_path / "summary.txt"
        content = SummaryReport().generate(state, MONDAY, path)
        assert path.read_text() == content
