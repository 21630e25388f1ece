"""History timeline — snapshot-based linear undo/redo.

Stores immutable StudioState snapshots in a flat list with a cursor.
A commit truncates the undone future; redo branches are not kept.
Pure Python class (no Qt dependency).

Usage::

    timeline = HistoryTimeline()
    timeline.commit(aperture="f/2.8")   # new snapshot, cursor moves
    timeline.undo()                     # cursor back to the initial state
    timeline.redo()
    state = timeline.current()
"""

from __future__ import annotations

from lumina.models.studio import INITIAL_STATE, StudioState


class HistoryTimeline:
    """Ordered snapshots plus a cursor.

    Unbounded unless ``max_levels`` is given, in which case the oldest
    snapshots are dropped past that count.

    Invariants: at least one snapshot is always present and the cursor
    stays within ``[0, len - 1]``.
    """

    def __init__(
        self,
        initial: StudioState = INITIAL_STATE,
        max_levels: int | None = None,
    ) -> None:
        self._snapshots: list[StudioState] = [initial]
        self._cursor = 0
        self._max_levels = None if max_levels is None else max(1, max_levels)

    def __len__(self) -> int:
        return len(self._snapshots)

    @property
    def cursor(self) -> int:
        return self._cursor

    @property
    def can_undo(self) -> bool:
        return self._cursor > 0

    @property
    def can_redo(self) -> bool:
        return self._cursor < len(self._snapshots) - 1

    def current(self) -> StudioState:
        """Snapshot at the cursor."""
        return self._snapshots[self._cursor]

    def snapshots(self) -> list[StudioState]:
        """Copy of the full timeline, oldest first."""
        return list(self._snapshots)

    def commit(self, **changes) -> bool:
        """Merge ``changes`` onto the current snapshot and record the result.

        Returns:
            True if a new snapshot was appended, False if the merged
            candidate equals the current snapshot.
        """
        candidate = self.current().merged(**changes)
        return self.commit_state(candidate)

    def commit_state(self, candidate: StudioState) -> bool:
        """Record a full state (e.g. a loaded scene) as one snapshot."""
        if candidate == self.current():
            return False
        del self._snapshots[self._cursor + 1:]
        self._snapshots.append(candidate)
        if self._max_levels is not None and len(self._snapshots) > self._max_levels:
            self._snapshots.pop(0)  # Drop oldest
        self._cursor = len(self._snapshots) - 1
        return True

    def undo(self) -> bool:
        if not self.can_undo:
            return False
        self._cursor -= 1
        return True

    def redo(self) -> bool:
        if not self.can_redo:
            return False
        self._cursor += 1
        return True

    def reset(self, initial: StudioState = INITIAL_STATE) -> None:
        """Start a new timeline holding only ``initial``."""
        self._snapshots = [initial]
        self._cursor = 0
