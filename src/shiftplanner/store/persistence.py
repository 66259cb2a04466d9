"""JSON persistence for the schedule state.

The wire format uses camelCase keys and the day, availability and absence
names of files written by earlier versions of the application. Loading is
forward compatible: missing fields get defaults and legacy values are
migrated.

Example:
    >>> save_state(store.state, Path("schedule.json"))
    >>> state = load_state_file(Path("schedule.json"))
"""

import json
import logging
from datetime import date, datetime
from pathlib import Path
from typing import Any, Optional, Union

from shiftplanner.domain.models import (
    Absence,
    AbsenceType,
    AiSuggestion,
    Availability,
    AvailabilityType,
    DayOfWeek,
    DayVenue,
    Employee,
    EmployeeType,
    Event,
    FixedDaysAvailability,
    FlexibleAvailability,
    HybridAvailability,
    Shift,
    ShowOverride,
    StaffingNeed,
    TimeInterval,
    Venue,
    WEEKDAYS,
)
from shiftplanner.errors import ShiftPlannerError, ValidationError
from shiftplanner.store.state import (
    AbsenceColors,
    AppSettings,
    PublishedWeek,
    ScheduleState,
)

logger = logging.getLogger(__name__)

# Absence type renamed in later versions
_LEGACY_ABSENCE_TYPES = {"dia_libre": AbsenceType.NOT_WORKING.value}

_ABSENCE_COLOR_FIELDS = {
    AbsenceType.VACATION.value: "vacation",
    AbsenceType.MEDICAL_LEAVE.value: "medical_leave",
    AbsenceType.NOT_WORKING.value: "not_working",
    AbsenceType.REQUESTED_DAYS_OFF.value: "requested_days_off",
}


# ----------------------------------------------------------------------
# Encoding


def interval_fields(interval: TimeInterval) -> dict:
    return {"startTime": interval.start, "endTime": interval.end}


def shift_to_dict(shift: Shift) -> dict:
    data = {
        "id": shift.id,
        "employeeId": shift.employee_id,
        "venueId": shift.venue_id,
        "date": shift.date.isoformat(),
        **interval_fields(shift.interval),
    }
    if shift.is_show:
        data["isShow"] = True
    if shift.is_extra_hours:
        data["isExtraHours"] = True
    if shift.event_id is not None:
        data["eventId"] = shift.event_id
    return data


def venue_to_dict(venue: Venue) -> dict:
    return {
        "id": venue.id,
        "name": venue.name,
        "address": venue.address,
        "color": venue.color,
        "isActive": venue.is_active,
        "staffingNeeds": [
            {
                "id": need.id,
                "day": need.day.value,
                **interval_fields(need.interval),
                "requiredEmployees": need.required_employees,
            }
            for need in venue.staffing_needs
        ],
    }


def availability_to_dict(employee: Employee) -> dict:
    availability = employee.availability
    days: list[str] = []
    fixed_days_config: list[dict] = []
    if isinstance(availability, FixedDaysAvailability):
        days = [d.value for d in WEEKDAYS if d in availability.days]
    elif isinstance(availability, HybridAvailability):
        fixed_days_config = [
            {"day": dv.day.value, "venueId": dv.venue_id}
            for dv in availability.day_venues
        ]

    data = {
        "type": availability.type.value,
        "days": days,
        "fixedDaysConfig": fixed_days_config,
    }
    if employee.show_overrides:
        data["fixedDaySettings"] = {
            o.day.value: {"isShow": True, "showVenueId": o.venue_id}
            for o in employee.show_overrides
        }
    return data


def employee_to_dict(employee: Employee) -> dict:
    return {
        "id": employee.id,
        "name": employee.name,
        "type": employee.type.value,
        "targetHours": employee.target_hours,
        "allowedVenueIds": list(employee.allowed_venue_ids),
        "availability": availability_to_dict(employee),
        "absences": [
            {
                "id": ab.id,
                "type": ab.type.value,
                "startDate": ab.start_date.isoformat(),
                "endDate": ab.end_date.isoformat(),
            }
            for ab in employee.absences
        ],
        "isActive": employee.is_active,
    }


def event_to_dict(event: Event) -> dict:
    return {
        "id": event.id,
        "name": event.name,
        "venueId": event.venue_id,
        "date": event.date.isoformat(),
        **interval_fields(event.interval),
        "requiredEmployees": event.required_employees,
        "color": event.color,
    }


def suggestion_to_dict(suggestion: AiSuggestion) -> dict:
    return {
        "id": suggestion.id,
        "shiftId": suggestion.shift_id,
        "employeeId": suggestion.employee_id,
        "venueId": suggestion.venue_id,
        "date": suggestion.date.isoformat(),
        **interval_fields(suggestion.interval),
    }


def settings_to_dict(settings: AppSettings) -> dict:
    colors = settings.absence_colors
    return {
        "showShiftStyle": {"borderColor": settings.show_border_color},
        "extraHoursShiftStyle": {"borderColor": settings.extra_hours_border_color},
        "theme": settings.theme,
        "absenceColors": {
            wire: getattr(colors, attr) for wire, attr in _ABSENCE_COLOR_FIELDS.items()
        },
        "openShiftColor": settings.open_shift_color,
        "showLogo": settings.show_logo,
        "showDashboard": settings.show_dashboard,
    }


def state_to_dict(state: ScheduleState) -> dict:
    """Convert a state snapshot to a JSON-compatible dictionary."""
    return {
        "employees": [employee_to_dict(e) for e in state.employees],
        "venues": [venue_to_dict(v) for v in state.venues],
        "shifts": [shift_to_dict(s) for s in state.shifts],
        "events": [event_to_dict(e) for e in state.events],
        "publishedWeeks": {
            week.week_id: {
                "weekId": week.week_id,
                "publishedAt": week.published_at.isoformat(),
                "shifts": [shift_to_dict(s) for s in week.shifts],
            }
            for week in state.published_weeks
        },
        "settings": settings_to_dict(state.settings),
        "aiSuggestions": [suggestion_to_dict(s) for s in state.ai_suggestions],
    }


# ----------------------------------------------------------------------
# Decoding


def parse_date(value: Any, field_name: str = "date") -> date:
    try:
        return date.fromisoformat(value)
    except (TypeError, ValueError) as e:
        raise ValidationError(f"expected YYYY-MM-DD, got {value!r}", field=field_name) from e


def parse_day(value: Any) -> DayOfWeek:
    try:
        return DayOfWeek(value)
    except ValueError as e:
        raise ValidationError(f"unknown day {value!r}", field="day") from e


def interval_from_dict(data: dict) -> TimeInterval:
    return TimeInterval(data["startTime"], data["endTime"])


def shift_from_dict(data: dict) -> Shift:
    return Shift(
        id=data["id"],
        employee_id=data.get("employeeId") or None,
        venue_id=data["venueId"],
        date=parse_date(data["date"]),
        interval=interval_from_dict(data),
        is_show=bool(data.get("isShow", False)),
        is_extra_hours=bool(data.get("isExtraHours", False)),
        event_id=data.get("eventId") or None,
    )


def venue_from_dict(data: dict) -> Venue:
    return Venue(
        id=data["id"],
        name=data.get("name", ""),
        address=data.get("address", ""),
        color=data.get("color", "#64748b"),
        staffing_needs=tuple(
            StaffingNeed(
                id=need["id"],
                day=parse_day(need["day"]),
                interval=interval_from_dict(need),
                required_employees=int(need.get("requiredEmployees", 0)),
            )
            for need in data.get("staffingNeeds") or []
        ),
        is_active=data.get("isActive") is not False,
    )


def availability_from_dict(data: Optional[dict]) -> Availability:
    """Decode an availability record; a missing one means flexible."""
    if not data:
        return FlexibleAvailability()
    kind = data.get("type", AvailabilityType.FLEXIBLE.value)
    if kind == AvailabilityType.FLEXIBLE.value:
        return FlexibleAvailability()
    if kind == AvailabilityType.FIXED_DAYS.value:
        return FixedDaysAvailability(
            days=frozenset(parse_day(d) for d in data.get("days") or [])
        )
    if kind == AvailabilityType.HYBRID.value:
        return HybridAvailability(
            day_venues=tuple(
                DayVenue(day=parse_day(entry["day"]), venue_id=entry["venueId"])
                for entry in data.get("fixedDaysConfig") or []
            )
        )
    raise ValidationError(f"unknown availability type {kind!r}", field="availability")


def show_overrides_from_dict(data: Optional[dict]) -> tuple[ShowOverride, ...]:
    settings = (data or {}).get("fixedDaySettings") or {}
    overrides = []
    for day in WEEKDAYS:
        entry = settings.get(day.value)
        if entry and entry.get("isShow") and entry.get("showVenueId"):
            overrides.append(ShowOverride(day=day, venue_id=entry["showVenueId"]))
    return tuple(overrides)


def absence_from_dict(data: dict) -> Absence:
    kind = _LEGACY_ABSENCE_TYPES.get(data.get("type"), data.get("type"))
    try:
        absence_type = AbsenceType(kind)
    except ValueError as e:
        raise ValidationError(f"unknown absence type {kind!r}", field="absences") from e
    return Absence(
        id=data["id"],
        type=absence_type,
        start_date=parse_date(data["startDate"], "startDate"),
        end_date=parse_date(data["endDate"], "endDate"),
    )


def employee_from_dict(data: dict) -> Employee:
    availability = data.get("availability")
    return Employee(
        id=data["id"],
        name=data.get("name", ""),
        type=EmployeeType(data.get("type", EmployeeType.REGULAR.value)),
        target_hours=data.get("targetHours", 0),
        allowed_venue_ids=tuple(data.get("allowedVenueIds") or []),
        availability=availability_from_dict(availability),
        show_overrides=show_overrides_from_dict(availability),
        absences=tuple(absence_from_dict(ab) for ab in data.get("absences") or []),
        is_active=data.get("isActive") is not False,
    )


def event_from_dict(data: dict) -> Event:
    return Event(
        id=data["id"],
        name=data.get("name", ""),
        venue_id=data["venueId"],
        date=parse_date(data["date"]),
        interval=interval_from_dict(data),
        required_employees=int(data.get("requiredEmployees", 0)),
        color=data.get("color", "#14b8a6"),
    )


def suggestion_from_dict(data: dict) -> AiSuggestion:
    return AiSuggestion(
        id=data["id"],
        shift_id=data["shiftId"],
        employee_id=data["employeeId"],
        venue_id=data["venueId"],
        date=parse_date(data["date"]),
        interval=interval_from_dict(data),
    )


def _parse_timestamp(value: str) -> datetime:
    # Older files carry JavaScript-style UTC timestamps ending in "Z"
    if value.endswith("Z"):
        value = value[:-1] + "+00:00"
    return datetime.fromisoformat(value)


def settings_from_dict(data: Optional[dict]) -> AppSettings:
    """Merge stored settings over the defaults."""
    defaults = AppSettings()
    if not data:
        return defaults

    stored_colors = dict(data.get("absenceColors") or {})
    legacy = stored_colors.pop("dia_libre", None)
    if legacy and AbsenceType.NOT_WORKING.value not in stored_colors:
        stored_colors[AbsenceType.NOT_WORKING.value] = legacy
    colors = AbsenceColors(
        **{
            attr: stored_colors.get(wire, getattr(defaults.absence_colors, attr))
            for wire, attr in _ABSENCE_COLOR_FIELDS.items()
        }
    )

    return AppSettings(
        show_border_color=(data.get("showShiftStyle") or {}).get(
            "borderColor", defaults.show_border_color
        ),
        extra_hours_border_color=(data.get("extraHoursShiftStyle") or {}).get(
            "borderColor", defaults.extra_hours_border_color
        ),
        theme=data.get("theme", defaults.theme),
        absence_colors=colors,
        open_shift_color=data.get("openShiftColor", defaults.open_shift_color),
        show_logo=data.get("showLogo", defaults.show_logo),
        show_dashboard=data.get("showDashboard", defaults.show_dashboard),
    )


def state_from_dict(data: dict) -> ScheduleState:
    """Build a state snapshot from a dictionary, applying migrations.

    A saved history envelope ``{"past", "present", "future"}`` is accepted
    too; only its present snapshot is used.

    Raises:
        ValidationError: If the data cannot be decoded.
    """
    if not isinstance(data, dict):
        raise ValidationError("state must be a JSON object")
    if isinstance(data.get("present"), dict) and "past" in data:
        logger.debug("Reading present snapshot of a history envelope")
        data = data["present"]

    try:
        published = tuple(
            PublishedWeek(
                week_id=week.get("weekId", week_key),
                published_at=_parse_timestamp(week["publishedAt"]),
                shifts=tuple(shift_from_dict(s) for s in week.get("shifts") or []),
            )
            for week_key, week in (data.get("publishedWeeks") or {}).items()
        )
        return ScheduleState(
            employees=tuple(employee_from_dict(e) for e in data.get("employees") or []),
            venues=tuple(venue_from_dict(v) for v in data.get("venues") or []),
            shifts=tuple(shift_from_dict(s) for s in data.get("shifts") or []),
            events=tuple(event_from_dict(e) for e in data.get("events") or []),
            published_weeks=published,
            settings=settings_from_dict(data.get("settings")),
            ai_suggestions=tuple(
                suggestion_from_dict(s) for s in data.get("aiSuggestions") or []
            ),
        )
    except ShiftPlannerError:
        raise
    except KeyError as e:
        raise ValidationError(f"missing field {e.args[0]!r}") from e
    except (TypeError, ValueError, AttributeError) as e:
        raise ValidationError(f"malformed state: {e}") from e


# ----------------------------------------------------------------------
# Text and files


def dumps(state: ScheduleState, indent: Optional[int] = 2) -> str:
    return json.dumps(state_to_dict(state), indent=indent, ensure_ascii=False)


def loads(text: str) -> ScheduleState:
    try:
        data = json.loads(text)
    except json.JSONDecodeError as e:
        raise ValidationError(f"invalid JSON: {e}") from e
    return state_from_dict(data)


def save_state(state: ScheduleState, path: Union[str, Path]) -> Path:
    """Write a state snapshot as JSON."""
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(dumps(state), encoding="utf-8")
    logger.info("Saved state to %s", path)
    return path


def load_state_file(path: Union[str, Path]) -> ScheduleState:
    """Read a state snapshot from a JSON file."""
    path = Path(path)
    state = loads(path.read_text(encoding="utf-8"))
    logger.info("Loaded state from %s", path)
    return state
