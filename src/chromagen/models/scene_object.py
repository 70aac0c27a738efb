"""
ChromaGen Studio - 3D Scene Object Model

Declarative descriptors for the simple primitives placed in the 3D layer.
The session owns the ordered list; scene sync only reads it.
"""

import copy
import uuid as uuid_module
from dataclasses import dataclass, field

from chromagen.constants import DEFAULT_SCENE_OBJECT, SCENE_OBJECT_TYPES
from chromagen.models.color import Color
from chromagen.models.transform import Vec3


_EDITABLE_FIELDS = ('position', 'rotation', 'scale', 'color')


@dataclass
class SceneObject:
    """One primitive (cube / sphere / cone / torus).

    rotation is stored in degrees; scene sync converts to radians.
    """
    type: str
    id: str = field(default_factory=lambda: str(uuid_module.uuid4()))
    position: Vec3 = field(default_factory=lambda: Vec3(*DEFAULT_SCENE_OBJECT['position']))
    rotation: Vec3 = field(default_factory=lambda: Vec3(*DEFAULT_SCENE_OBJECT['rotation']))
    scale: Vec3 = field(default_factory=lambda: Vec3(*DEFAULT_SCENE_OBJECT['scale']))
    color: Color = field(default_factory=lambda: Color.from_hex(DEFAULT_SCENE_OBJECT['color']))

    def __post_init__(self):
        if self.type not in SCENE_OBJECT_TYPES:
            raise ValueError(f"Unknown scene object type {self.type!r}; expected one of {SCENE_OBJECT_TYPES}")
        self.position = Vec3.coerce(self.position)
        self.rotation = Vec3.coerce(self.rotation)
        self.scale = Vec3.coerce(self.scale)
        self.color = Color.coerce(self.color)

    @classmethod
    def create(cls, object_type: str) -> 'SceneObject':
        """New object with a fresh UUID and default transform / color."""
        return cls(type=object_type)

    def updated(self, **updates) -> 'SceneObject':
        """Return a copy with the given fields replaced (id and type are fixed)."""
        unknown = set(updates) - set(_EDITABLE_FIELDS)
        if unknown:
            raise ValueError(f"Cannot update scene object field(s): {', '.join(sorted(unknown))}")
        clone = copy.deepcopy(self)
        for name, value in updates.items():
            setattr(clone, name, value)
        clone.__post_init__()
        return clone

    def to_dict(self) -> dict:
        return {
            'id': self.id,
            'type': self.type,
            'position': list(self.position),
            'rotation': list(self.rotation),
            'scale': list(self.scale),
            'color': self.color.to_hex(),
        }

    @classmethod
    def from_dict(cls, data: dict) -> 'SceneObject':
        return cls(
            type=data['type'],
            id=data.get('id') or str(uuid_module.uuid4()),
            position=data.get('position', DEFAULT_SCENE_OBJECT['position']),
            rotation=data.get('rotation', DEFAULT_SCENE_OBJECT['rotation']),
            scale=data.get('scale', DEFAULT_SCENE_OBJECT['scale']),
            color=data.get('color', DEFAULT_SCENE_OBJECT['color']),
        )
