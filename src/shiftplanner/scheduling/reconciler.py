"""Weekly open-shift reconciliation.

The reconciler keeps the unassigned shifts of one week equal to the
requirement derived from venue staffing needs and events, minus what is
already assigned. Assigned shifts and shifts outside the week are never
touched.

Every open shift belongs to exactly one bucket:

- ``event|<event_id>`` when the shift is linked to an event.
- ``need|<venue_id>|<date>|<start>|<end>`` otherwise.

Reconciliation compares the per-bucket counts of the freshly required open
shifts with the open shifts already stored. When they match the shift list
is returned untouched, which makes repeated runs a fixpoint.
"""

import logging
from collections import Counter
from dataclasses import dataclass
from datetime import date
from typing import Iterable, Optional, Sequence

from shiftplanner.domain.models import DayOfWeek, Event, Shift, TimeInterval, Venue
from shiftplanner.errors import ReconciliationError

logger = logging.getLogger(__name__)


def need_key(venue_id: str, d: date, interval: TimeInterval) -> str:
    """Bucket key for venue staffing-need shifts."""
    return f"need|{venue_id}|{d.isoformat()}|{interval.start}|{interval.end}"


def event_key(event_id: str) -> str:
    """Bucket key for event shifts."""
    return f"event|{event_id}"


def shift_key(shift: Shift) -> str:
    """Bucket key of a shift; the event bucket takes precedence."""
    if shift.event_id:
        return event_key(shift.event_id)
    return need_key(shift.venue_id, shift.date, shift.interval)


@dataclass(frozen=True)
class _Requirement:
    key: str
    venue_id: str
    date: date
    interval: TimeInterval
    required: int
    event_id: Optional[str] = None


@dataclass(frozen=True)
class ReconcileResult:
    """Outcome of a reconciliation run.

    Attributes:
        shifts: The reconciled shift list. When ``changed`` is False this is
            the input sequence itself.
        changed: True if a resync replaced the week's open shifts.
        added: Open shifts created by the resync.
        removed: Open shifts dropped by the resync.
    """

    shifts: Sequence[Shift]
    changed: bool
    added: int = 0
    removed: int = 0


class CoverageReconciler:
    """Derives required open shifts for a week and syncs the shift list.

    Example:
        >>> reconciler = CoverageReconciler()
        >>> result = reconciler.reconcile(shifts, venues, events, week_dates(monday))
        >>> if result.changed:
        ...     shifts = result.shifts
    """

    def reconcile(
        self,
        shifts: Sequence[Shift],
        venues: Iterable[Venue],
        events: Iterable[Event],
        dates: Sequence[date],
    ) -> ReconcileResult:
        """Synchronize the week's open shifts with its requirements.

        Args:
            shifts: Full shift list, all weeks included.
            venues: All venues; inactive ones produce no requirement.
            events: All events; those dated inside the week produce one.
            dates: The dates of the target week, Monday first.

        Returns:
            ReconcileResult with the new shift list.

        Raises:
            ReconciliationError: If two generated shifts share an id.
        """
        venues = list(venues)
        events = list(events)
        week = set(dates)
        active_venue_ids = {v.id for v in venues if v.is_active}

        def reconciled(s: Shift) -> bool:
            # Open shifts at inactive or unknown venues are left alone
            return (
                s.is_open
                and s.date in week
                and (s.event_id is not None or s.venue_id in active_venue_ids)
            )

        existing_open = [s for s in shifts if reconciled(s)]
        required = self.required_open_shifts(shifts, venues, events, dates)

        required_counts = Counter(shift_key(s) for s in required)
        existing_counts = Counter(shift_key(s) for s in existing_open)
        if required_counts == existing_counts:
            return ReconcileResult(shifts=shifts, changed=False)

        kept = [s for s in shifts if not reconciled(s)]
        logger.info(
            "Resynced open shifts for week of %s: %d removed, %d added",
            dates[0].isoformat() if dates else "?",
            len(existing_open),
            len(required),
        )
        return ReconcileResult(
            shifts=tuple(kept) + tuple(required),
            changed=True,
            added=len(required),
            removed=len(existing_open),
        )

    def required_open_shifts(
        self,
        shifts: Sequence[Shift],
        venues: Iterable[Venue],
        events: Iterable[Event],
        dates: Sequence[date],
    ) -> list[Shift]:
        """Compute the open shifts the week should contain.

        For each bucket, ``max(0, required - assigned)`` open shifts are
        generated with ids derived from the bucket, so the same inputs always
        yield the same ids. Over-staffed buckets simply get no open shifts.
        """
        week = set(dates)
        assigned_counts = Counter(
            shift_key(s) for s in shifts if not s.is_open and s.date in week
        )
        # Ids of shifts that survive a resync; generated ids must not reuse them
        taken_ids = {s.id for s in shifts if not s.is_open or s.date not in week}

        generated: list[Shift] = []
        generated_ids: set[str] = set()
        for req in self._requirements(venues, events, dates):
            assigned = assigned_counts.get(req.key, 0)
            needed = max(0, req.required - assigned)
            slot = assigned
            while needed > 0:
                shift_id = self._shift_id(req, slot)
                slot += 1
                if shift_id in taken_ids:
                    continue
                if shift_id in generated_ids:
                    raise ReconciliationError(f"Duplicate generated shift id: {shift_id}")
                generated_ids.add(shift_id)
                generated.append(
                    Shift(
                        id=shift_id,
                        employee_id=None,
                        venue_id=req.venue_id,
                        date=req.date,
                        interval=req.interval,
                        event_id=req.event_id,
                    )
                )
                needed -= 1
        return generated

    def _requirements(
        self,
        venues: Iterable[Venue],
        events: Iterable[Event],
        dates: Sequence[date],
    ) -> list[_Requirement]:
        # Only the first date of each weekday inside the window counts
        date_for_day: dict[DayOfWeek, date] = {}
        for d in dates:
            date_for_day.setdefault(DayOfWeek.from_date(d), d)

        requirements: dict[str, _Requirement] = {}
        for venue in venues:
            if not venue.is_active:
                continue
            for need in venue.staffing_needs:
                d = date_for_day.get(need.day)
                if d is None or need.interval.is_degenerate:
                    continue
                key = need_key(venue.id, d, need.interval)
                previous = requirements.get(key)
                total = need.required_employees + (previous.required if previous else 0)
                requirements[key] = _Requirement(
                    key=key,
                    venue_id=venue.id,
                    date=d,
                    interval=need.interval,
                    required=total,
                )

        week = set(dates)
        for event in events:
            if event.date not in week or event.interval.is_degenerate:
                continue
            key = event_key(event.id)
            requirements[key] = _Requirement(
                key=key,
                venue_id=event.venue_id,
                date=event.date,
                interval=event.interval,
                required=event.required_employees,
                event_id=event.id,
            )

        return list(requirements.values())

    @staticmethod
    def _shift_id(req: _Requirement, slot: int) -> str:
        if req.event_id is not None:
            return f"s_event_{req.event_id}_slot{slot}"
        return f"s_auto_{req.venue_id}_{req.date.isoformat()}_{req.interval.key}_slot{slot}"
