"""Weekly coverage reconciliation."""

from shiftplanner.scheduling.reconciler import (
    CoverageReconciler,
    ReconcileResult,
    event_key,
    need_key,
    shift_key,
)
from shiftplanner.scheduling.week import shift_week, week_dates, week_id, week_start

__all__ = [
    "CoverageReconciler",
    "ReconcileResult",
    "event_key",
    "need_key",
    "shift_key",
    "shift_week",
    "week_dates",
    "week_id",
    "week_start",
]
