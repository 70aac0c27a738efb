"""
Undo/Redo History Manager for ChromaGen Studio

Snapshot based history with two stacks:
- past: most recent entry last
- future: most recent entry first

Callers snapshot once at the start of a gesture, before mutating. Undo and
redo take the current state so it can be pushed onto the opposite stack.
"""

import copy
import logging

logger = logging.getLogger(__name__)


class HistoryManager:
	"""Manages undo/redo history with state snapshots"""

	def __init__(self, max_history=None):
		"""
		Initialize the history manager

		Args:
			max_history: Maximum number of past states to keep (None = unbounded)
		"""
		if max_history is not None and max_history < 1:
			raise ValueError(f"max_history must be at least 1, got {max_history}")
		self.max_history = max_history
		self.past = []  # Oldest first, most recent last
		self.future = []  # Most recent first
		self._listeners = []  # Callbacks to notify on state changes

	def save_state(self, state_data, description=""):
		"""
		Push a snapshot of the state as it was before a change

		Args:
			state_data: The state to save (deep copied)
			description: Optional description of the change
		"""
		self.past.append({
			'data': copy.deepcopy(state_data),
			'description': description
		})
		self.future = []

		if self.max_history is not None and len(self.past) > self.max_history:
			self.past.pop(0)

		self._notify_listeners()

		logger.info(f"[History] State saved: {description} (past: {len(self.past)})")

	def undo(self, current_state):
		"""
		Step back one state

		Args:
			current_state: The live state, pushed onto the redo stack

		Returns:
			The previous state, or None if there is nothing to undo
		"""
		if not self.can_undo():
			logger.debug("[History] Cannot undo - at beginning of history")
			return None

		entry = self.past.pop()
		self.future.insert(0, {
			'data': copy.deepcopy(current_state),
			'description': entry['description']
		})

		self._notify_listeners()

		logger.info(f"[History] Undo: {entry['description']} (past: {len(self.past)}, future: {len(self.future)})")
		return entry['data']

	def redo(self, current_state):
		"""
		Step forward one state

		Args:
			current_state: The live state, pushed back onto the undo stack

		Returns:
			The next state, or None if there is nothing to redo
		"""
		if not self.can_redo():
			logger.debug("[History] Cannot redo - at end of history")
			return None

		entry = self.future.pop(0)
		self.past.append({
			'data': copy.deepcopy(current_state),
			'description': entry['description']
		})

		self._notify_listeners()

		logger.info(f"[History] Redo: {entry['description']} (past: {len(self.past)}, future: {len(self.future)})")
		return entry['data']

	def can_undo(self):
		return bool(self.past)

	def can_redo(self):
		return bool(self.future)

	def clear(self):
		"""Clear all history"""
		self.past = []
		self.future = []
		self._notify_listeners()
		logger.info("[History] History cleared")

	def add_listener(self, callback):
		"""Register callback(can_undo, can_redo), called after every push, undo, redo and clear"""
		self._listeners.append(callback)

	def remove_listener(self, callback):
		if callback in self._listeners:
			self._listeners.remove(callback)

	def _notify_listeners(self):
		can_undo, can_redo = self.can_undo(), self.can_redo()
		for callback in list(self._listeners):
			try:
				callback(can_undo, can_redo)
			except Exception:
				logger.exception("[History] Error notifying listener")

	def get_undo_description(self):
		"""Get the description of the change that undo would revert"""
		if self.can_undo():
			return self.past[-1]['description']
		return ""

	def get_redo_description(self):
		"""Get the description of the change that redo would reapply"""
		if self.can_redo():
			return self.future[0]['description']
		return ""
