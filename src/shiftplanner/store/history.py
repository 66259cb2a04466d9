"""Bounded undo/redo history of schedule snapshots."""

from collections import deque

from shiftplanner.store.state import ScheduleState


class History:
    """Two bounded stacks of snapshots around the present one.

    ``past`` grows on the right (most recent last) and ``future`` on the
    left (next redo first). When a stack is full its oldest entry is dropped.

    Attributes:
        limit: Maximum number of snapshots on each stack.
    """

    def __init__(self, present: ScheduleState, limit: int = 50):
        if limit < 0:
            raise ValueError("History limit cannot be negative")
        self.limit = limit
        self._present = present
        self._past: deque[ScheduleState] = deque(maxlen=limit)
        self._future: deque[ScheduleState] = deque(maxlen=limit)

    @property
    def present(self) -> ScheduleState:
        return self._present

    @property
    def can_undo(self) -> bool:
        return len(self._past) > 0

    @property
    def can_redo(self) -> bool:
        return len(self._future) > 0

    @property
    def past(self) -> list[ScheduleState]:
        return list(self._past)

    @property
    def future(self) -> list[ScheduleState]:
        return list(self._future)

    def push(self, state: ScheduleState) -> None:
        """Commit a new present; the redo stack is discarded."""
        if self.limit:
            self._past.append(self._present)
        self._present = state
        self._future.clear()

    def replace_present(self, state: ScheduleState) -> None:
        """Swap the present without recording an undo step."""
        self._present = state

    def undo(self) -> bool:
        """Step back one snapshot. Returns False when there is nothing to undo."""
        if not self._past:
            return False
        self._future.appendleft(self._present)
        self._present = self._past.pop()
        return True

    def redo(self) -> bool:
        """Step forward one snapshot. Returns False when there is nothing to redo."""
        if not self._future:
            return False
        self._past.append(self._present)
        self._present = self._future.popleft()
        return True

    def reset(self, state: ScheduleState) -> None:
        """Replace the present and clear both stacks."""
        self._present = state
        self._past.clear()
        self._future.clear()
