"""3D scene object operations - add, edit, remove"""
from chromagen.constants import SCENE_OBJECT_TYPES


class SceneActions:
	"""Handles scene object list edits"""

	def __init__(self, main_window):
		self.main_window = main_window

	def add_object(self, object_type):
		"""Append a new primitive with default placement

		Args:
			object_type: One of 'cube', 'sphere', 'cone', 'torus'

		Returns:
			The new SceneObject
		"""
		if object_type not in SCENE_OBJECT_TYPES:
			raise ValueError(f"Unknown scene object type {object_type!r}; expected one of {SCENE_OBJECT_TYPES}")
		self.main_window._save_state(f"Add {object_type}")
		obj = self.main_window.session.add_scene_object(object_type)
		self.main_window._sync_scene()
		return obj

	def update_object(self, object_id, **updates):
		"""Change position / rotation / scale / color of one object

		Returns:
			False if no object has that id
		"""
		session = self.main_window.session
		obj = session.get_scene_object(object_id)
		if obj is None:
			return False
		obj.updated(**updates)  # validate before snapshotting
		self.main_window._snapshot_unless_gesture("Edit scene object")
		session.update_scene_object(object_id, **updates)
		self.main_window._sync_scene()
		return True

	def remove_object(self, object_id):
		"""Delete one object

		Returns:
			False if no object has that id
		"""
		session = self.main_window.session
		if session.get_scene_object(object_id) is None:
			return False
		self.main_window._save_state("Remove object")
		session.remove_scene_object(object_id)
		self.main_window._sync_scene()
		return True
