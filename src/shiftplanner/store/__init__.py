"""Schedule state, reducer, undo history and persistence."""

from shiftplanner.store.history import History
from shiftplanner.store.persistence import (
    dumps,
    load_state_file,
    loads,
    save_state,
    state_from_dict,
    state_to_dict,
)
from shiftplanner.store.reducer import reduce
from shiftplanner.store.sample_data import create_sample_state
from shiftplanner.store.state import (
    AbsenceColors,
    AppSettings,
    PublishedWeek,
    ScheduleState,
    StoreConfig,
)
from shiftplanner.store.store import ScheduleStore, generate_id

__all__ = [
    # State
    "AbsenceColors",
    "AppSettings",
    "PublishedWeek",
    "ScheduleState",
    "StoreConfig",
    # Store
    "History",
    "ScheduleStore",
    "generate_id",
    "reduce",
    # Persistence
    "create_sample_state",
    "dumps",
    "load_state_file",
    "loads",
    "save_state",
    "state_from_dict",
    "state_to_dict",
]
