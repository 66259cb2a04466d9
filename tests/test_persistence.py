"""Tests for JSON persistence and legacy-state migrations."""

from datetime import date, datetime

import pytest

from shiftplanner.domain.models import (
    AbsenceType,
    DayOfWeek,
    FixedDaysAvailability,
    FlexibleAvailability,
    HybridAvailability,
    TimeInterval,
)
from shiftplanner.errors import ValidationError
from shiftplanner.store.persistence import (
    dumps,
    employee_from_dict,
    employee_to_dict,
    load_state_file,
    loads,
    save_state,
    settings_from_dict,
    shift_from_dict,
    shift_to_dict,
    state_from_dict,
    state_to_dict,
)
from shiftplanner.store.sample_data import create_sample_state
from shiftplanner.store.store import ScheduleStore

MONDAY = date(2024, 6, 10)


class TestStateRoundTrip:
    """Tests for encoding and decoding whole states."""

    @pytest.fixture
    def state(self):
        store = ScheduleStore(
            state=create_sample_state(MONDAY),
            active_week=MONDAY,
            clock=lambda: datetime(2024, 6, 9, 12, 0),
        )
        store.publish_week()
        return store.state

    def test_round_trip(self, state):
        """Sample data survives an encode/decode cycle unchanged."""
        assert loads(dumps(state)) == state

    def test_file_round_trip(self, state, tmp_path):
        path = save_state(state, tmp_path / "nested" / "state.json")
        assert path.exists()
        assert load_state_file(path) == state

    def test_wire_format(self, state):
        data = state_to_dict(state)
        assert set(data) == {
            "employees",
            "venues",
            "shifts",
            "events",
            "publishedWeeks",
            "settings",
            "aiSuggestions",
        }
        assert "2024-06-10" in data["publishedWeeks"]
        pavel = next(e for e in data["employees"] if e["id"] == "emp_10")
        assert pavel["availability"]["type"] == "hibrido"
        assert pavel["availability"]["fixedDaySettings"] == {
            "Sábado": {"isShow": True, "showVenueId": "venue_1"}
        }

    def test_shift_optional_flags(self):
        data = {
            "id": "s1",
            "employeeId": "",
            "venueId": "v1",
            "date": "2024-06-10",
            "startTime": "18:00",
            "endTime": "02:00",
        }
        shift = shift_from_dict(data)
        assert shift.is_open
        assert not shift.is_show
        assert shift.event_id is None
        assert "isShow" not in shift_to_dict(shift)


class TestMigrations:
    """Tests for defaults applied to older files."""

    def test_missing_is_active_defaults_true(self):
        state = state_from_dict(
            {
                "employees": [{"id": "e1", "name": "Ana"}],
                "venues": [{"id": "v1", "name": "Club"}],
            }
        )
        assert state.employees[0].is_active
        assert state.venues[0].is_active

    def test_explicit_inactive_kept(self):
        state = state_from_dict({"venues": [{"id": "v1", "name": "Club", "isActive": False}]})
        assert not state.venues[0].is_active

    def test_legacy_absence_type(self):
        """The old "dia_libre" absence type becomes "no_trabaja"."""
        employee = employee_from_dict(
            {
                "id": "e1",
                "name": "Ana",
                "absences": [
                    {
                        "id": "a1",
                        "type": "dia_libre",
                        "startDate": "2024-06-10",
                        "endDate": "2024-06-10",
                    }
                ],
            }
        )
        assert employee.absences[0].type == AbsenceType.NOT_WORKING

    def test_missing_availability_is_flexible(self):
        employee = employee_from_dict({"id": "e1", "name": "Ana"})
        assert isinstance(employee.availability, FlexibleAvailability)
        assert employee.show_overrides == ()

    def test_fixed_days_without_config(self):
        employee = employee_from_dict(
            {
                "id": "e1",
                "name": "Ana",
                "availability": {"type": "dias_fijos", "days": ["Lunes", "Viernes"]},
            }
        )
        assert employee.availability == FixedDaysAvailability(
            days=frozenset({DayOfWeek.MONDAY, DayOfWeek.FRIDAY})
        )

    def test_hybrid_missing_config_is_empty(self):
        employee = employee_from_dict(
            {"id": "e1", "name": "Ana", "availability": {"type": "hibrido"}}
        )
        assert employee.availability == HybridAvailability()

    def test_availability_round_trip(self):
        data = {
            "id": "e1",
            "name": "Ana",
            "availability": {
                "type": "hibrido",
                "fixedDaysConfig": [{"day": "Lunes", "venueId": "v2"}],
            },
        }
        employee = employee_from_dict(data)
        assert employee_from_dict(employee_to_dict(employee)) == employee

    def test_settings_merge_over_defaults(self):
        """Stored settings are deep-merged and legacy colours migrated."""
        settings = settings_from_dict(
            {"theme": "light", "absenceColors": {"dia_libre": "#000000"}}
        )
        assert settings.theme == "light"
        assert settings.absence_colors.not_working == "#000000"
        assert settings.absence_colors.vacation == "#3b82f6"
        assert settings.show_border_color == "#a855f7"

    def test_history_envelope(self):
        """A saved undo history is read through its present snapshot."""
        state = state_from_dict(
            {
                "past": [],
                "present": {"venues": [{"id": "v1", "name": "Club"}]},
                "future": [],
            }
        )
        assert state.venues[0].id == "v1"

    def test_published_week_with_utc_timestamp(self):
        state = state_from_dict(
            {
                "publishedWeeks": {
                    "2024-06-10": {"publishedAt": "2024-06-09T10:00:00.000Z", "shifts": []}
                }
            }
        )
        assert state.published_weeks[0].week_id == "2024-06-10"
        assert state.published_weeks[0].published_at.tzinfo is not None


class TestDecodeErrors:
    """Tests for malformed input."""

    def test_invalid_json(self):
        with pytest.raises(ValidationError):
            loads("{not json")

    def test_missing_field(self):
        with pytest.raises(ValidationError) as exc:
            state_from_dict({"shifts": [{"id": "s1"}]})
        assert "venueId" in str(exc.value)

    def test_bad_time(self):
        with pytest.raises(ValidationError):
            state_from_dict(
                {
                    "shifts": [
                        {
                            "id": "s1",
                            "venueId": "v1",
                            "date": "2024-06-10",
                            "startTime": "25:00",
                            "endTime": "02:00",
                        }
                    ]
                }
            )

    def test_not_an_object(self):
        with pytest.raises(ValidationError):
            state_from_dict([])

    def test_degenerate_interval_loads(self):
        """Loading is permissive; degenerate intervals are rejected on edit."""
        shift = shift_from_dict(
            {
                "id": "s1",
                "venueId": "v1",
                "date": "2024-06-10",
                "startTime": "10:00",
                "endTime": "10:00",
            }
        )
        assert shift.interval == TimeInterval("10:00", "10:00")
