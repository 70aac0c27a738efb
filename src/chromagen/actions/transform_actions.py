"""Layer transform operations - field edits, visibility, drag"""
import logging
from dataclasses import dataclass

from chromagen.models.transform import Transform
from chromagen.utils import transform_math

logger = logging.getLogger(__name__)

LAYERS = ('foreground', 'background')
_ATTRIBUTES = {'foreground': 'transform', 'background': 'background_transform'}


@dataclass
class DragState:
	start_x: float
	start_y: float
	initial_x: float
	initial_y: float
	view_scale: float


class TransformActions:
	"""Handles foreground / background transform edits"""

	def __init__(self, main_window):
		"""Initialize with reference to the studio

		Args:
			main_window: The Studio instance
		"""
		self.main_window = main_window
		self._drag = None

	# ========================================
	# Field edits
	# ========================================

	def get(self, layer):
		return getattr(self.main_window.session, self._attribute(layer))

	def set_field(self, layer, name, value):
		"""Set one transform field

		Snapshots unless a gesture is open (slider drag / number field focus).

		Args:
			layer: 'foreground' or 'background'
			name: Transform field name
			value: New value
		"""
		self.update(layer, **{name: value})

	def update(self, layer, **changes):
		attribute = self._attribute(layer)
		current = getattr(self.main_window.session, attribute)
		updated = current.with_changes(**changes)  # validates names before snapshotting
		self.main_window._snapshot_unless_gesture(f"Change {layer} {', '.join(sorted(changes))}")
		setattr(self.main_window.session, attribute, updated)

	def toggle_visibility(self, layer):
		"""Show / hide a layer"""
		attribute = self._attribute(layer)
		current = getattr(self.main_window.session, attribute)
		self.main_window._save_state(f"{'Hide' if current.visible else 'Show'} {layer}")
		setattr(self.main_window.session, attribute, current.with_changes(visible=not current.visible))

	def reset(self, layer):
		"""Back to the default transform"""
		self.main_window._save_state(f"Reset {layer} transform")
		setattr(self.main_window.session, self._attribute(layer), Transform())

	# ========================================
	# Drag (foreground only)
	# ========================================

	@property
	def is_dragging(self):
		return self._drag is not None

	def hit_test(self, canvas_x, canvas_y):
		"""Check whether a canvas point lands on the visible foreground (preview geometry)"""
		session = self.main_window.session
		raster = session.keyed_foreground
		if raster is None or not session.transform.visible:
			return False
		width, height = transform_math.capped_size(raster.shape[1], raster.shape[0])
		matrix = transform_math.to_projective(session.transform, width, height)
		return transform_math.contains_point(matrix, width, height, canvas_x, canvas_y)

	def begin_drag(self, pointer_x, pointer_y, view_scale):
		"""Pointer down on the preview

		Args:
			pointer_x: Pointer X in preview pixels (artboard relative)
			pointer_y: Pointer Y in preview pixels
			view_scale: Current preview zoom

		Returns:
			True if the foreground was hit and a drag started
		"""
		view_scale = max(float(view_scale), 0.01)
		if not self.hit_test(pointer_x / view_scale, pointer_y / view_scale):
			return False

		self.main_window._save_state("Move foreground")
		transform = self.main_window.session.transform
		self._drag = DragState(pointer_x, pointer_y, transform.x, transform.y, view_scale)
		logger.debug("Drag started at (%.1f, %.1f)", pointer_x, pointer_y)
		return True

	def drag_to(self, pointer_x, pointer_y):
		"""Pointer move; no-op unless a drag is active"""
		if self._drag is None:
			return False
		drag = self._drag
		dx, dy = transform_math.pointer_delta_to_canvas(
			pointer_x - drag.start_x, pointer_y - drag.start_y, drag.view_scale)
		session = self.main_window.session
		session.transform = session.transform.with_changes(x=drag.initial_x + dx, y=drag.initial_y + dy)
		return True

	def end_drag(self):
		"""Pointer up / cancel"""
		self._drag = None

	@staticmethod
	def _attribute(layer):
		try:
			return _ATTRIBUTES[layer]
		except KeyError:
			raise ValueError(f"Unknown layer {layer!r}; expected one of {LAYERS}") from None
