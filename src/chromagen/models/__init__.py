"""
ChromaGen Studio - Data Models

Pure data, no rendering or UI logic.
"""

from .color import Color
from .transform import Vec3, Transform
from .chroma import ChromaKeySettings
from .canvas import CanvasSettings, GenerationSettings
from .scene_object import SceneObject
from .session import SessionState, HistorySnapshot, VideoState

__all__ = [
    'Color',
    'Vec3',
    'Transform',
    'ChromaKeySettings',
    'CanvasSettings',
    'GenerationSettings',
    'SceneObject',
    'SessionState',
    'HistorySnapshot',
    'VideoState',
]
