"""
ChromaGen Studio - Studio controller

Owns the session state and wires keying, history, scene sync and the
compositor together. UI layers call into the Studio and its action handlers
and read session state back; they never mutate the session directly.
"""

import logging

from chromagen.actions.file_actions import FileActions
from chromagen.actions.scene_actions import SceneActions
from chromagen.actions.transform_actions import TransformActions
from chromagen.main.asset_mixin import AssetMixin
from chromagen.main.config_mixin import ConfigMixin
from chromagen.main.history_mixin import HistoryMixin
from chromagen.models.canvas import CanvasSettings
from chromagen.models.session import SessionState
from chromagen.services.compositor import Compositor, session_layers
from chromagen.services.scene_sync import SceneSync
from chromagen.services.segmentation import KeyingScheduler
from chromagen.utils.history_manager import HistoryManager
from chromagen.utils import transform_math

logger = logging.getLogger(__name__)


class Studio(HistoryMixin, ConfigMixin, AssetMixin):
    """Compositing studio core

    Args:
        config_dir: Directory for config.json (None disables persistence)
        scene_renderer: Optional object with render(graph, width, height) -> RGBA array
        shadow_enabled: Draw the foreground drop shadow
        max_history: Cap on undo steps (None = unbounded)
        keying_interval_ms: Keying debounce interval
    """

    def __init__(self, config_dir=None, scene_renderer=None, shadow_enabled=True,
                 max_history=None, keying_interval_ms=None):
        self.session = SessionState()
        self._is_applying_history = False
        self._gesture_description = None

        self._init_config(config_dir)
        self._load_config()

        self.history_manager = HistoryManager(max_history=max_history)
        self.history_manager.add_listener(self._on_history_changed)

        if keying_interval_ms is None:
            self.keying = KeyingScheduler()
        else:
            self.keying = KeyingScheduler(keying_interval_ms)
        self.keying.keyed.connect(self._on_keyed)

        self.compositor = Compositor(self.session.canvas, shadow_enabled=shadow_enabled)
        self.scene_sync = SceneSync()
        self.scene_sync.set_viewport(self.session.canvas.width, self.session.canvas.height)
        self.scene_renderer = scene_renderer

        self.transform_actions = TransformActions(self)
        self.scene_actions = SceneActions(self)
        self.file_actions = FileActions(self)

    # ========================================
    # Canvas
    # ========================================

    def set_canvas(self, canvas: CanvasSettings):
        """Change the output resolution (not part of undo history)"""
        self.session.canvas = canvas
        self.compositor.canvas = canvas
        self.scene_sync.set_viewport(canvas.width, canvas.height)
        self._save_config()
        logger.info("Canvas set to %s (%dx%d)", canvas.name, canvas.width, canvas.height)

    def set_canvas_preset(self, name):
        """Select a named canvas preset

        Raises:
            ValueError: if the preset name is unknown
        """
        canvas = CanvasSettings.preset(name)
        if canvas is None:
            raise ValueError(f"Unknown canvas preset: {name!r}")
        self.set_canvas(canvas)

    def view_scale_for(self, container_w, container_h):
        """Preview zoom for a container size"""
        return transform_math.preview_view_scale(
            container_w, container_h, self.session.canvas.width, self.session.canvas.height)

    # ========================================
    # Rendering
    # ========================================

    def _sync_scene(self):
        self.scene_sync.set_viewport(self.session.canvas.width, self.session.canvas.height)
        self.scene_sync.sync(self.session.scene_objects)

    def _scene_raster(self):
        """Lazy loader for the 3D layer, or None when there is nothing to draw"""
        if self.scene_renderer is None or not self.session.scene_objects:
            return None
        graph = self.scene_sync.graph
        renderer = self.scene_renderer
        width, height = self.session.canvas.width, self.session.canvas.height
        return lambda: renderer.render(graph, width, height)

    def layers(self):
        return session_layers(self.session, self._scene_raster())

    def render_preview(self, view_scale, highlight=None):
        """Interactive preview at canvas size x view_scale

        highlight defaults to whether a foreground drag is in progress.
        """
        if highlight is None:
            highlight = self.transform_actions.is_dragging
        return self.compositor.render_preview(self.layers(), view_scale, highlight=highlight)

    def render_export(self):
        """Full resolution affine render"""
        return self.compositor.render_export(self.layers())

    # ========================================
    # History hooks
    # ========================================

    def _on_state_restored(self):
        # Restored chroma may differ from the one the cutout was made with
        self._schedule_keying()
        self._sync_scene()

    def shutdown(self):
        """Persist settings and stop pending work"""
        self.keying.cancel()
        self._save_config()
