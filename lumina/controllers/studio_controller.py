"""Studio controller — central mediator between studio state and UI.

Owns the HistoryTimeline and the per-axis transient overrides. Continuous
gestures (dragging a marker, typing a prompt) write to an override and
only reach history on an explicit commit; discrete controls commit
directly. The derived descriptor is recomputed from the effective state
after every change and broadcast through Qt signals.
"""

from __future__ import annotations

from PyQt6.QtCore import QObject, pyqtSignal

from lumina.constants import AVAILABLE_FILTERS
from lumina.core.history import HistoryTimeline
from lumina.core.overrides import COMMITTED, OverrideSlot, Overridden, is_overridden, resolve
from lumina.core.spatial_math import derive_from_state
from lumina.models.descriptor import DerivedDescriptor
from lumina.models.studio import INITIAL_STATE, PostProcessing, Position, StudioState, SubjectType


class StudioController(QObject):
    """Mediates between the history store, gesture overrides and views.

    All mutations go through this controller. Views read
    :meth:`effective_state` and :attr:`descriptor` and listen for the
    signals below.
    """

    # Committed state moved (commit, undo, redo, scene load)
    state_changed = pyqtSignal()
    # Effective state changed, new descriptor attached
    descriptor_changed = pyqtSignal(object)  # DerivedDescriptor
    # Transient marker moves (lightweight, no history)
    camera_preview_changed = pyqtSignal(object)  # Position
    light_preview_changed = pyqtSignal(object)  # Position
    # Undo/redo availability changed
    undo_state_changed = pyqtSignal()

    def __init__(
        self,
        initial: StudioState = INITIAL_STATE,
        max_history: int | None = None,
        parent: QObject | None = None,
    ):
        super().__init__(parent)
        self._history = HistoryTimeline(initial, max_levels=max_history)
        self._camera_slot: OverrideSlot = COMMITTED
        self._light_slot: OverrideSlot = COMMITTED
        self._prompt_slot: OverrideSlot = COMMITTED
        self._descriptor = derive_from_state(initial)

    # ------------------------------------------------------------------
    # Properties
    # ------------------------------------------------------------------

    @property
    def history(self) -> HistoryTimeline:
        return self._history

    @property
    def state(self) -> StudioState:
        """Committed state at the history cursor."""
        return self._history.current()

    @property
    def descriptor(self) -> DerivedDescriptor:
        """Descriptor of the effective (override-applied) state."""
        return self._descriptor

    @property
    def can_undo(self) -> bool:
        return self._history.can_undo

    @property
    def can_redo(self) -> bool:
        return self._history.can_redo

    @property
    def is_interacting(self) -> bool:
        return any(
            is_overridden(slot)
            for slot in (self._camera_slot, self._light_slot, self._prompt_slot)
        )

    def effective_state(self) -> StudioState:
        """Committed state with active overrides applied."""
        committed = self._history.current()
        return committed.merged(
            camera=resolve(self._camera_slot, committed.camera),
            light=resolve(self._light_slot, committed.light),
            prompt=resolve(self._prompt_slot, committed.prompt),
        )

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _refresh(self) -> None:
        self._descriptor = derive_from_state(self.effective_state())
        self.descriptor_changed.emit(self._descriptor)

    def _commit(self, **changes) -> bool:
        changed = self._history.commit(**changes)
        if changed:
            self.state_changed.emit()
            self.undo_state_changed.emit()
        self._refresh()
        return changed

    # ------------------------------------------------------------------
    # Gestures (two-phase)
    # ------------------------------------------------------------------

    def set_temp_camera(self, pos: Position) -> None:
        """Live camera position during a drag (not recorded)."""
        self._camera_slot = Overridden(pos)
        self.camera_preview_changed.emit(pos)
        self._refresh()

    def set_temp_light(self, pos: Position) -> None:
        """Live light position during a drag (not recorded)."""
        self._light_slot = Overridden(pos)
        self.light_preview_changed.emit(pos)
        self._refresh()

    def set_temp_prompt(self, text: str) -> None:
        """Prompt text being typed (not recorded)."""
        self._prompt_slot = Overridden(text)
        self._refresh()

    def commit_camera(self) -> bool:
        slot, self._camera_slot = self._camera_slot, COMMITTED
        if not is_overridden(slot):
            return False
        return self._commit(camera=slot.value)

    def commit_light(self) -> bool:
        slot, self._light_slot = self._light_slot, COMMITTED
        if not is_overridden(slot):
            return False
        return self._commit(light=slot.value)

    def commit_prompt(self) -> bool:
        slot, self._prompt_slot = self._prompt_slot, COMMITTED
        if not is_overridden(slot):
            return False
        return self._commit(prompt=slot.value)

    def end_interaction(self) -> bool:
        """Pointer released: record camera and light as one snapshot."""
        changes = {}
        if is_overridden(self._camera_slot):
            changes["camera"] = self._camera_slot.value
        if is_overridden(self._light_slot):
            changes["light"] = self._light_slot.value
        self._camera_slot = COMMITTED
        self._light_slot = COMMITTED
        if not changes:
            return False
        return self._commit(**changes)

    def cancel_interaction(self) -> None:
        """Drop all in-flight overrides without recording anything."""
        self._camera_slot = COMMITTED
        self._light_slot = COMMITTED
        self._prompt_slot = COMMITTED
        self._refresh()

    # ------------------------------------------------------------------
    # Discrete controls (commit immediately)
    # ------------------------------------------------------------------

    def set_camera(self, pos: Position) -> bool:
        self._camera_slot = COMMITTED
        return self._commit(camera=pos)

    def set_light(self, pos: Position) -> bool:
        self._light_slot = COMMITTED
        return self._commit(light=pos)

    def set_aperture(self, aperture: str) -> bool:
        return self._commit(aperture=aperture)

    def set_filters(self, filters: list[str] | tuple[str, ...]) -> bool:
        return self._commit(filters=tuple(filters))

    def toggle_filter(self, name: str) -> bool:
        """Add or remove one filter; unknown names are ignored."""
        if name not in AVAILABLE_FILTERS:
            return False
        current = self.state.filters
        if name in current:
            filters = tuple(f for f in current if f != name)
        else:
            filters = current + (name,)
        return self._commit(filters=filters)

    def set_post_processing(self, **levels: int) -> bool:
        """Update any of ``bloom``, ``glare``, ``distortion``."""
        current = self.state.post_processing
        post = PostProcessing(
            bloom=levels.get("bloom", current.bloom),
            glare=levels.get("glare", current.glare),
            distortion=levels.get("distortion", current.distortion),
        )
        return self._commit(post_processing=post)

    def set_subject_type(self, subject: SubjectType | str) -> bool:
        return self._commit(subject_type=subject)

    # ------------------------------------------------------------------
    # Whole-state commits
    # ------------------------------------------------------------------

    def apply_scene(self, state: StudioState) -> bool:
        """Load a saved scene as one history entry."""
        self._camera_slot = COMMITTED
        self._light_slot = COMMITTED
        self._prompt_slot = COMMITTED
        changed = self._history.commit_state(state)
        if changed:
            self.state_changed.emit()
            self.undo_state_changed.emit()
        self._refresh()
        return changed

    def apply_director_result(self, camera: Position, light: Position) -> bool:
        """Record the director agent's placement as one history entry."""
        self.commit_prompt()
        self._camera_slot = COMMITTED
        self._light_slot = COMMITTED
        return self._commit(camera=camera, light=light)

    def pending_prompt(self) -> str:
        """Prompt as currently typed (override or committed)."""
        return resolve(self._prompt_slot, self.state.prompt)

    # ------------------------------------------------------------------
    # Undo / Redo
    # ------------------------------------------------------------------

    def _after_cursor_move(self) -> None:
        # Cursor moves cancel in-progress edits
        self._camera_slot = COMMITTED
        self._light_slot = COMMITTED
        self._prompt_slot = COMMITTED
        self.state_changed.emit()
        self.undo_state_changed.emit()
        self._refresh()

    def undo(self) -> bool:
        """Revert to the previous snapshot."""
        if not self._history.undo():
            return False
        self._after_cursor_move()
        return True

    def redo(self) -> bool:
        """Re-apply the next snapshot."""
        if not self._history.redo():
            return False
        self._after_cursor_move()
        return True

    def reset(self, state: StudioState = INITIAL_STATE) -> None:
        """Start over with a fresh single-snapshot history."""
        self._history.reset(state)
        self._after_cursor_move()
