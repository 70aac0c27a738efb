"""
ChromaGen Studio - Session State

One explicit aggregate for everything the user can edit, plus the derived
rasters. The compositor and the history mixin both receive this object
instead of reaching for globals.

Only chroma, both transforms and the scene object list are part of undo
history (HistorySnapshot). Rasters, canvas size and the background toggle
are not.
"""

import copy
import logging
from dataclasses import dataclass, field
from typing import List, Optional, Tuple

import numpy as np

from chromagen.models.canvas import CanvasSettings, GenerationSettings
from chromagen.models.chroma import ChromaKeySettings
from chromagen.models.scene_object import SceneObject
from chromagen.models.transform import Transform


@dataclass(frozen=True)
class HistorySnapshot:
    """Immutable copy of the undoable state."""
    chroma: ChromaKeySettings
    transform: Transform
    background_transform: Transform
    scene_objects: Tuple[SceneObject, ...]


@dataclass
class VideoState:
    """Status of the externally produced video."""
    is_generating: bool = False
    video_handle: Optional[object] = None
    prompt: str = ''


@dataclass
class SessionState:
    """All editable studio state."""
    chroma: ChromaKeySettings = field(default_factory=ChromaKeySettings)
    transform: Transform = field(default_factory=Transform)
    background_transform: Transform = field(default_factory=Transform)
    canvas: CanvasSettings = field(default_factory=CanvasSettings)
    scene_objects: List[SceneObject] = field(default_factory=list)

    # Rasters (HxWx4 uint8). foreground is the keyed source, keyed_foreground the cutout.
    foreground: Optional[np.ndarray] = None
    keyed_foreground: Optional[np.ndarray] = None
    background: Optional[np.ndarray] = None
    generated_backgrounds: List[np.ndarray] = field(default_factory=list)
    show_background: bool = True

    generation: GenerationSettings = field(default_factory=GenerationSettings)
    video: VideoState = field(default_factory=VideoState)

    _logger = logging.getLogger(__name__)

    # ========================================
    # Snapshots (for undo)
    # ========================================

    def get_snapshot(self) -> HistorySnapshot:
        """Deep copy of the undoable state."""
        return HistorySnapshot(
            chroma=self.chroma.copy(),
            transform=self.transform.copy(),
            background_transform=self.background_transform.copy(),
            scene_objects=tuple(copy.deepcopy(self.scene_objects)),
        )

    def set_snapshot(self, snapshot: HistorySnapshot) -> None:
        """Restore undoable state. The snapshot itself is never aliased."""
        self.chroma = snapshot.chroma.copy()
        self.transform = snapshot.transform.copy()
        self.background_transform = snapshot.background_transform.copy()
        self.scene_objects = list(copy.deepcopy(snapshot.scene_objects))
        self._logger.debug("Restored from snapshot (%d scene objects)", len(self.scene_objects))

    # ========================================
    # Scene object list
    # ========================================

    def get_scene_object(self, object_id: str) -> Optional[SceneObject]:
        for obj in self.scene_objects:
            if obj.id == object_id:
                return obj
        return None

    def add_scene_object(self, object_type: str) -> SceneObject:
        obj = SceneObject.create(object_type)
        self.scene_objects = self.scene_objects + [obj]
        return obj

    def update_scene_object(self, object_id: str, **updates) -> bool:
        """Replace the object with an updated copy. Returns False if id is unknown."""
        found = False
        new_list = []
        for obj in self.scene_objects:
            if obj.id == object_id:
                new_list.append(obj.updated(**updates))
                found = True
            else:
                new_list.append(obj)
        if found:
            self.scene_objects = new_list
        return found

    def remove_scene_object(self, object_id: str) -> bool:
        remaining = [obj for obj in self.scene_objects if obj.id != object_id]
        removed = len(remaining) != len(self.scene_objects)
        self.scene_objects = remaining
        return removed
