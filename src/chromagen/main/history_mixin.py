"""History management and undo/redo for the Studio"""

import logging

from chromagen.utils.logger import loggerRaise

logger = logging.getLogger(__name__)


class HistoryMixin:
    """Undo/redo system and gesture bookkeeping

    Every discrete mutation snapshots the session first. Continuous edits
    (slider drags, number field focus, pointer drags) call begin_gesture()
    once; setters called while a gesture is open do not snapshot again.
    """

    def _capture_current_state(self):
        """Capture the current state for history"""
        return self.session.get_snapshot()

    def _restore_state(self, state):
        """Restore a state from history"""
        if state is None:
            return

        self._is_applying_history = True
        try:
            self.session.set_snapshot(state)
            self._on_state_restored()
        except Exception as e:
            loggerRaise(e, "Error restoring history state")
        finally:
            self._is_applying_history = False

    def _on_state_restored(self):
        """Hook for the owner to refresh derived state after undo/redo"""

    def _save_state(self, description):
        """Save current state to history (before it gets mutated)"""
        if self._is_applying_history:
            return  # Don't save state during undo/redo

        self.history_manager.save_state(self._capture_current_state(), description)

    # ========================================
    # Gestures
    # ========================================

    @property
    def gesture_active(self):
        return self._gesture_description is not None

    def begin_gesture(self, description):
        """Snapshot once at the start of a continuous edit

        Returns:
            True if a snapshot was taken, False if a gesture was already open
        """
        if self.gesture_active:
            return False
        self._save_state(description)
        self._gesture_description = description
        return True

    def end_gesture(self):
        self._gesture_description = None

    def _snapshot_unless_gesture(self, description):
        """Snapshot for a discrete change; no-op inside an open gesture"""
        if not self.gesture_active:
            self._save_state(description)

    def _cancel_interaction(self):
        """Close any open gesture or pointer drag before history is applied"""
        self.end_gesture()
        self.transform_actions.end_drag()

    # ========================================
    # Undo / redo
    # ========================================

    def _on_history_changed(self, can_undo, can_redo):
        """Called when history state changes"""
        logger.debug("History changed (can_undo=%s, can_redo=%s)", can_undo, can_redo)

    def can_undo(self):
        return self.history_manager.can_undo()

    def can_redo(self):
        return self.history_manager.can_redo()

    def undo(self):
        """Undo the last action. Returns True if anything changed."""
        if self._is_applying_history:
            return False
        self._cancel_interaction()
        state = self.history_manager.undo(self._capture_current_state())
        if state is None:
            return False
        self._restore_state(state)
        return True

    def redo(self):
        """Redo the last undone action. Returns True if anything changed."""
        if self._is_applying_history:
            return False
        self._cancel_interaction()
        state = self.history_manager.redo(self._capture_current_state())
        if state is None:
            return False
        self._restore_state(state)
        return True
